from fastapi import APIRouter, Depends, status

from rental_messages.schemas.message import MessageCreate, MessagePublic
from rental_messages.services.message_service import MessageService
from rental_messages.utils.dependencies import get_current_user, get_message_service


router = APIRouter(prefix="/messages", tags=["messages"])


@router.post("", status_code=status.HTTP_201_CREATED, response_model=MessagePublic)
async def send_message(payload: MessageCreate, current_user: dict = Depends(get_current_user), service: MessageService = Depends(get_message_service)):
    return await service.send_message(current_user["_id"], payload.recipient_id, payload.listing_id, payload.content)


# declared before /{message_id} so it is not captured as an id
@router.get("/unread-count")
async def unread_count(current_user: dict = Depends(get_current_user), service: MessageService = Depends(get_message_service)):
    count = await service.unread_count(current_user["_id"])
    return {"count": count}


@router.get("/{message_id}", response_model=MessagePublic)
async def get_message(message_id: str, current_user: dict = Depends(get_current_user), service: MessageService = Depends(get_message_service)):
    return await service.get_message(current_user["_id"], message_id)


@router.patch("/{message_id}/read")
async def mark_message_read(message_id: str, current_user: dict = Depends(get_current_user), service: MessageService = Depends(get_message_service)):
    updated = await service.mark_message_read(current_user["_id"], message_id)
    return {"success": True, "updated": updated}


@router.delete("/{message_id}")
async def delete_message(message_id: str, current_user: dict = Depends(get_current_user), service: MessageService = Depends(get_message_service)):
    await service.delete_message(current_user["_id"], message_id)
    return {"success": True}
