from typing import List, Optional, TypedDict

from rental_messages.models.message import MessageDocument


class Conversation(TypedDict):
    """Derived view over the messages exchanged with one counterpart. Never persisted."""

    counterpart_id: str
    listing_id: Optional[str]
    messages: List[MessageDocument]
    unread_count: int
    last_message: MessageDocument
