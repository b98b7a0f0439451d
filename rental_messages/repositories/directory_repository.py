from typing import Any, Dict, Optional

from bson import ObjectId
from bson.errors import InvalidId
from motor.motor_asyncio import AsyncIOMotorDatabase

from rental_messages.utils.ttl_cache import TTLCache


class DirectoryRepository:
    """Read-only display lookups for users and listings, cached per app instance."""

    def __init__(self, db: AsyncIOMotorDatabase, cache: TTLCache) -> None:
        self._users = db.get_collection("users")
        self._listings = db.get_collection("properties")
        self._cache = cache

    async def get_user(self, user_id: str) -> Optional[Dict[str, Any]]:
        key = ("user", user_id)
        cached = self._cache.get(key)
        if cached is not None:
            return cached
        doc = await self._find(self._users, user_id, {"name": 1, "email": 1, "avatar": 1})
        if not doc:
            return None
        user = {"id": str(doc["_id"]), "name": doc.get("name"), "email": doc.get("email"), "avatar": doc.get("avatar")}
        self._cache.set(key, user)
        return user

    async def get_listing(self, listing_id: str) -> Optional[Dict[str, Any]]:
        key = ("listing", listing_id)
        cached = self._cache.get(key)
        if cached is not None:
            return cached
        doc = await self._find(self._listings, listing_id, {"title": 1, "image": 1})
        if not doc:
            return None
        listing = {"id": str(doc["_id"]), "title": doc.get("title"), "image": doc.get("image")}
        self._cache.set(key, listing)
        return listing

    async def _find(self, collection, doc_id: str, projection: Dict[str, int]) -> Optional[Dict[str, Any]]:
        try:
            oid = ObjectId(doc_id)
        except (InvalidId, TypeError):
            return None
        return await collection.find_one({"_id": oid}, projection)
