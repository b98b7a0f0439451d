from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from bson import ObjectId
from bson.errors import InvalidId
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING


def _to_object_id(message_id: str) -> Optional[ObjectId]:
    try:
        return ObjectId(message_id)
    except (InvalidId, TypeError):
        return None


class MessageRepository:

    def __init__(self, db: AsyncIOMotorDatabase) -> None:
        self._db = db

    @property
    def collection(self):
        return self._db["messages"]

    async def ensure_indexes(self) -> None:
        await self.collection.create_index([("sender_id", ASCENDING), ("recipient_id", ASCENDING), ("listing_id", ASCENDING)])
        await self.collection.create_index([("created_at", DESCENDING)])
        await self.collection.create_index([("recipient_id", ASCENDING), ("is_read", ASCENDING)])

    async def save_message(self, sender_id: str, recipient_id: str, listing_id: str, content: str) -> Dict[str, Any]:
        doc: Dict[str, Any] = {
            "sender_id": sender_id,
            "recipient_id": recipient_id,
            "listing_id": listing_id,
            "content": content,
            "is_read": False,
            "created_at": datetime.now(timezone.utc),
            "read_at": None,
        }
        result = await self.collection.insert_one(doc)
        doc["_id"] = str(result.inserted_id)
        return doc

    async def get_by_id(self, message_id: str) -> Optional[Dict[str, Any]]:
        oid = _to_object_id(message_id)
        if oid is None:
            return None
        doc = await self.collection.find_one({"_id": oid})
        if doc:
            doc["_id"] = str(doc["_id"])
        return doc

    async def list_for_user(self, user_id: str) -> List[Dict[str, Any]]:
        query = {"$or": [{"sender_id": user_id}, {"recipient_id": user_id}]}
        cursor = self.collection.find(query).sort("created_at", DESCENDING)
        # unbounded: every message must reach the aggregator
        items = await cursor.to_list(length=None)
        for it in items:
            it["_id"] = str(it.get("_id"))
        return items

    async def get_thread(self, user_id: str, counterpart_id: str, limit: int = 500) -> List[Dict[str, Any]]:
        query = {
            "$or": [
                {"sender_id": user_id, "recipient_id": counterpart_id},
                {"sender_id": counterpart_id, "recipient_id": user_id},
            ]
        }
        cursor = self.collection.find(query).sort("created_at", DESCENDING).limit(limit)
        items = await cursor.to_list(length=limit)
        for it in items:
            it["_id"] = str(it.get("_id"))
        # newest `limit` messages, returned in chronological order
        return list(reversed(items))

    async def count_unread(self, user_id: str) -> int:
        return await self.collection.count_documents({"recipient_id": user_id, "is_read": False})

    async def mark_conversation_read(self, user_id: str, counterpart_id: str) -> int:
        # single guarded update: concurrent callers cannot both count the same message
        result = await self.collection.update_many(
            {"recipient_id": user_id, "sender_id": counterpart_id, "is_read": False},
            {"$set": {"is_read": True, "read_at": datetime.now(timezone.utc)}},
        )
        return result.modified_count or 0

    async def mark_message_read(self, message_id: str) -> bool:
        oid = _to_object_id(message_id)
        if oid is None:
            return False
        result = await self.collection.update_one(
            {"_id": oid, "is_read": False},
            {"$set": {"is_read": True, "read_at": datetime.now(timezone.utc)}},
        )
        return bool(result.modified_count)

    async def delete_message(self, message_id: str) -> bool:
        oid = _to_object_id(message_id)
        if oid is None:
            return False
        result = await self.collection.delete_one({"_id": oid})
        return result.deleted_count > 0
