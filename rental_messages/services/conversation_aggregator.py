"""Groups a user's flat message list into one conversation per counterpart."""
import logging
from typing import Any, Dict, Iterable, List, Optional, Tuple

from rental_messages.exceptions import MalformedMessageError
from rental_messages.models.conversation import Conversation
from rental_messages.models.message import MessageDocument


logger = logging.getLogger(__name__)


def _time_key(message: MessageDocument) -> Tuple[int, Any]:
    # messages without a timestamp sort before everything else
    created_at = message.get("created_at")
    if created_at is None:
        return (0, 0)
    return (1, created_at)


def counterpart_of(message: MessageDocument, user_id: str) -> str:
    sender_id = message.get("sender_id")
    recipient_id = message.get("recipient_id")
    # both participant ids are required
    if sender_id and recipient_id:
        if sender_id == user_id:
            return recipient_id
        if recipient_id == user_id:
            return sender_id
    raise MalformedMessageError(message.get("_id"), user_id)


class _Thread:

    def __init__(self, counterpart_id: str) -> None:
        self.counterpart_id = counterpart_id
        self.messages: List[MessageDocument] = []
        self.unread_count = 0
        self.last_message: Optional[MessageDocument] = None

    def add(self, message: MessageDocument, user_id: str) -> None:
        self.messages.append(message)
        if self.last_message is None or _time_key(message) > _time_key(self.last_message):
            self.last_message = message
        if message.get("recipient_id") == user_id and not message.get("is_read", False):
            self.unread_count += 1

    def finalize(self) -> Conversation:
        return Conversation(
            counterpart_id=self.counterpart_id,
            listing_id=self.last_message.get("listing_id"),
            messages=sorted(self.messages, key=_time_key),
            unread_count=self.unread_count,
            last_message=self.last_message,
        )


def group_into_conversations(
    messages: Iterable[MessageDocument],
    user_id: str,
    strict: bool = False,
) -> List[Conversation]:
    """
    Bucket messages by the participant that is not `user_id`.

    Messages that involve neither participant as `user_id` raise
    MalformedMessageError when `strict` is set, otherwise they are skipped
    with a warning. Conversations come back in order of first appearance.
    """
    threads: Dict[str, _Thread] = {}
    for message in messages:
        try:
            counterpart_id = counterpart_of(message, user_id)
        except MalformedMessageError:
            if strict:
                raise
            logger.warning("Skipping message %s: user %s is neither sender nor recipient", message.get("_id"), user_id)
            continue
        thread = threads.get(counterpart_id)
        if thread is None:
            thread = threads[counterpart_id] = _Thread(counterpart_id)
        thread.add(message, user_id)
    return [thread.finalize() for thread in threads.values()]


def sort_by_recency(conversations: List[Conversation]) -> List[Conversation]:
    """Inbox order: most recent last message first."""
    return sorted(conversations, key=lambda c: _time_key(c["last_message"]), reverse=True)


def mark_conversation_read(messages: Iterable[MessageDocument], user_id: str, counterpart_id: str) -> int:
    updated = 0
    for message in messages:
        if (
            message.get("recipient_id") == user_id
            and message.get("sender_id") == counterpart_id
            and not message.get("is_read", False)
        ):
            message["is_read"] = True
            updated += 1
    return updated
