from typing import Dict, Iterable, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from groupledger.models.account import Notification, Profile
from groupledger.repositories.base import NotificationSink, ProfileDirectory, translate_store_errors


class ProfileRepository(ProfileDirectory):
    """Read-only access to user profiles."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.collection = db["profiles"]

    @translate_store_errors
    async def get_profiles(self, user_ids: Iterable[str]) -> Dict[str, Profile]:
        ids = list(set(user_ids))
        if not ids:
            return {}
        cursor = self.collection.find(
            {"_id": {"$in": ids}},
            {"username": 1, "avatar": 1}
        )
        docs = await cursor.to_list(None)
        return {
            doc["_id"]: Profile(id=doc["_id"], username=doc.get("username") or "", avatar=doc.get("avatar"))
            for doc in docs
        }


class NotificationRepository(NotificationSink):
    """Queues notifications for the delivery service."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.collection = db["notifications"]

    @translate_store_errors
    async def notify(
        self, user_id: str, title: str, message: str, data: Optional[dict] = None, type: str = "info"
    ) -> None:
        notification = Notification(
            user_id=user_id,
            type=type,
            title=title,
            message=message,
            data=data or {}
        )
        await self.collection.insert_one(notification.to_document())
