import logging
from typing import Any, Dict, List

from bson import ObjectId

from rental_messages.exceptions import ForbiddenError, NotFoundError
from rental_messages.models.conversation import Conversation
from rental_messages.repositories.directory_repository import DirectoryRepository
from rental_messages.repositories.message_repository import MessageRepository
from rental_messages.schemas.message import ConversationPublic, ListingPreview, MessagePublic, ParticipantPublic
from rental_messages.services.conversation_aggregator import group_into_conversations, sort_by_recency


logger = logging.getLogger(__name__)


def to_public(message: Dict[str, Any]) -> MessagePublic:
    return MessagePublic(
        id=str(message.get("_id")),
        sender_id=message["sender_id"],
        recipient_id=message["recipient_id"],
        listing_id=message.get("listing_id"),
        content=message.get("content", ""),
        is_read=bool(message.get("is_read", False)),
        created_at=message.get("created_at"),
        read_at=message.get("read_at"),
    )


def _check_message_id(message_id: str) -> None:
    if not ObjectId.is_valid(message_id):
        raise ValueError("Invalid message ID format")


class MessageService:

    def __init__(self, message_repo: MessageRepository, directory_repo: DirectoryRepository) -> None:
        self._message_repo = message_repo
        self._directory_repo = directory_repo

    async def list_conversations(self, user_id: str, include_messages: bool = False) -> List[ConversationPublic]:
        messages = await self._message_repo.list_for_user(user_id)
        try:
            conversations = sort_by_recency(group_into_conversations(messages, user_id))
        except Exception:
            logger.exception("Failed to build conversations for user %s", user_id)
            return []
        items = []
        for conversation in conversations:
            try:
                items.append(await self._enrich(conversation, include_messages))
            except Exception:
                logger.exception("Dropping conversation with %s for user %s", conversation["counterpart_id"], user_id)
        return items

    async def _enrich(self, conversation: Conversation, include_messages: bool) -> ConversationPublic:
        counterpart_id = conversation["counterpart_id"]
        user = await self._directory_repo.get_user(counterpart_id)
        counterpart = ParticipantPublic(id=counterpart_id, name=user.get("name"), avatar=user.get("avatar")) if user else ParticipantPublic(id=counterpart_id)
        listing = None
        if conversation["listing_id"]:
            found = await self._directory_repo.get_listing(conversation["listing_id"])
            if found:
                listing = ListingPreview(**found)
        return ConversationPublic(
            counterpart=counterpart,
            listing=listing,
            last_message=to_public(conversation["last_message"]),
            unread_count=conversation["unread_count"],
            messages=[to_public(m) for m in conversation["messages"]] if include_messages else [],
        )

    async def get_thread(self, user_id: str, counterpart_id: str) -> List[MessagePublic]:
        messages = await self._message_repo.get_thread(user_id, counterpart_id)
        return [to_public(m) for m in messages]

    async def send_message(self, sender_id: str, recipient_id: str, listing_id: str, content: str) -> MessagePublic:
        if not content or not content.strip():
            raise ValueError("Message content cannot be empty")
        if sender_id == recipient_id:
            raise ValueError("Cannot send a message to yourself")
        if not await self._directory_repo.get_user(recipient_id):
            raise NotFoundError("User", recipient_id)
        if not await self._directory_repo.get_listing(listing_id):
            raise NotFoundError("Listing", listing_id)
        saved = await self._message_repo.save_message(
            sender_id=sender_id,
            recipient_id=recipient_id,
            listing_id=listing_id,
            content=content.strip(),
        )
        logger.info("Message %s sent from %s to %s", saved["_id"], sender_id, recipient_id)
        return to_public(saved)

    async def mark_conversation_read(self, user_id: str, counterpart_id: str) -> int:
        return await self._message_repo.mark_conversation_read(user_id, counterpart_id)

    async def get_message(self, user_id: str, message_id: str) -> MessagePublic:
        message = await self._get_owned(user_id, message_id)
        return to_public(message)

    async def mark_message_read(self, user_id: str, message_id: str) -> bool:
        _check_message_id(message_id)
        message = await self._message_repo.get_by_id(message_id)
        if not message:
            raise NotFoundError("Message", message_id)
        if message["recipient_id"] != user_id:
            raise ForbiddenError("Only the recipient can mark a message as read", {"message_id": message_id})
        return await self._message_repo.mark_message_read(message_id)

    async def delete_message(self, user_id: str, message_id: str) -> bool:
        await self._get_owned(user_id, message_id)
        return await self._message_repo.delete_message(message_id)

    async def unread_count(self, user_id: str) -> int:
        return await self._message_repo.count_unread(user_id)

    async def _get_owned(self, user_id: str, message_id: str) -> Dict[str, Any]:
        _check_message_id(message_id)
        message = await self._message_repo.get_by_id(message_id)
        if not message:
            raise NotFoundError("Message", message_id)
        if user_id not in (message["sender_id"], message["recipient_id"]):
            raise ForbiddenError("You do not have permission to access this message", {"message_id": message_id})
        return message
