from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class MessageCreate(BaseModel):

    recipient_id: str
    listing_id: str
    content: str = Field(min_length=1, max_length=5000)


class MessagePublic(BaseModel):

    id: str
    sender_id: str
    recipient_id: str
    listing_id: Optional[str] = None
    content: str
    is_read: bool = False
    created_at: Optional[datetime] = None
    read_at: Optional[datetime] = None


class ParticipantPublic(BaseModel):

    id: str
    name: Optional[str] = None
    avatar: Optional[str] = None


class ListingPreview(BaseModel):

    id: str
    title: Optional[str] = None
    image: Optional[str] = None


class ConversationPublic(BaseModel):

    counterpart: ParticipantPublic
    listing: Optional[ListingPreview] = None
    last_message: MessagePublic
    unread_count: int = 0
    messages: List[MessagePublic] = []
