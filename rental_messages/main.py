import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from rental_messages.config import LOG_LEVEL, LOOKUP_CACHE_MAX_ENTRIES, LOOKUP_CACHE_TTL_SECONDS
from rental_messages.database.connection import close_mongo_connection, connect_to_mongo, get_database
from rental_messages.exceptions import ForbiddenError, MessagingError, NotFoundError
from rental_messages.repositories.message_repository import MessageRepository
from rental_messages.routers.conversations import router as conversations_router
from rental_messages.routers.messages import router as messages_router
from rental_messages.utils.ttl_cache import TTLCache


logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger("rental_messages")


@asynccontextmanager
async def lifespan(app: FastAPI):

    await connect_to_mongo()
    await MessageRepository(get_database()).ensure_indexes()
    try:
        yield
    finally:
        await close_mongo_connection()


def create_app() -> FastAPI:
    app = FastAPI(title="Rental messages", lifespan=lifespan)
    app.state.lookup_cache = TTLCache(ttl_seconds=LOOKUP_CACHE_TTL_SECONDS, max_entries=LOOKUP_CACHE_MAX_ENTRIES)

    app.include_router(conversations_router)
    app.include_router(messages_router)

    @app.exception_handler(MessagingError)
    async def messaging_error_handler(request: Request, exc: MessagingError):
        status_code = 500
        if isinstance(exc, NotFoundError):
            status_code = 404
        elif isinstance(exc, ForbiddenError):
            status_code = 403
        else:
            logger.error("Unhandled messaging error on %s: %s", request.url.path, exc.message)
        return JSONResponse(status_code=status_code, content={"error": exc.error_code, "detail": exc.message})

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content={"error": "VALIDATION_ERROR", "detail": jsonable_encoder(exc.errors())})

    @app.exception_handler(ValueError)
    async def value_error_handler(request: Request, exc: ValueError):
        return JSONResponse(status_code=400, content={"error": "VALIDATION_ERROR", "detail": str(exc)})

    return app


app = create_app()
