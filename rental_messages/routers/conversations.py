from fastapi import APIRouter, Depends

from rental_messages.services.message_service import MessageService
from rental_messages.utils.dependencies import get_current_user, get_message_service


router = APIRouter(prefix="/conversations", tags=["messages"])


@router.get("")
async def list_conversations(include_messages: bool = False, current_user: dict = Depends(get_current_user), service: MessageService = Depends(get_message_service)):
    items = await service.list_conversations(current_user["_id"], include_messages=include_messages)
    return {"items": items}


@router.get("/{counterpart_id}/messages")
async def list_messages(counterpart_id: str, current_user: dict = Depends(get_current_user), service: MessageService = Depends(get_message_service)):
    messages = await service.get_thread(current_user["_id"], counterpart_id)
    return {"items": messages}


@router.post("/{counterpart_id}/read")
async def mark_conversation_read(counterpart_id: str, current_user: dict = Depends(get_current_user), service: MessageService = Depends(get_message_service)):
    count = await service.mark_conversation_read(current_user["_id"], counterpart_id)
    return {"updated": count}
