from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError

from rental_messages.database.connection import mongo_db_dependency
from rental_messages.repositories.directory_repository import DirectoryRepository
from rental_messages.repositories.message_repository import MessageRepository
from rental_messages.services.message_service import MessageService
from rental_messages.utils.security import decode_access_token


# tokens are issued by the auth service
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")


async def get_current_user(token: str = Depends(oauth2_scheme)) -> dict:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid authentication token",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = decode_access_token(token)
    except JWTError:
        raise credentials_exception
    sub = payload.get("sub")
    if not sub:
        raise credentials_exception
    return {"_id": sub}


def get_message_service(request: Request, db = Depends(mongo_db_dependency)) -> MessageService:
    msg_repo = MessageRepository(db)
    directory_repo = DirectoryRepository(db, request.app.state.lookup_cache)
    return MessageService(msg_repo, directory_repo)
