from datetime import datetime
from typing import Optional, TypedDict


class MessageDocument(TypedDict, total=False):
    _id: str
    sender_id: str
    recipient_id: str
    listing_id: str
    content: str
    # only transition allowed is False -> True
    is_read: bool
    created_at: Optional[datetime]
    read_at: Optional[datetime]
