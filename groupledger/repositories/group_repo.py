from typing import Any, Iterable, List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from groupledger.models.group import Group, Member, MemberStatus
from groupledger.repositories.base import GroupStore, translate_store_errors


class GroupRepository(GroupStore):
    """Group and membership database operations."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.collection = db["groups"]
        self.members = db["group_members"]

    @translate_store_errors
    async def create_group(self, group: Group, session: Any = None) -> str:
        await self.collection.insert_one(group.to_document(), session=session)
        return group.id

    @translate_store_errors
    async def get_group(self, group_id: str, session: Any = None) -> Optional[Group]:
        doc = await self.collection.find_one({"_id": group_id}, session=session)
        if doc:
            return Group(**doc)
        return None

    @translate_store_errors
    async def list_groups(self, group_ids: Iterable[str]) -> List[Group]:
        ids = list(group_ids)
        if not ids:
            return []
        cursor = self.collection.find({"_id": {"$in": ids}}).sort("created_at", -1)
        docs = await cursor.to_list(None)
        return [Group(**doc) for doc in docs]

    @translate_store_errors
    async def delete_group(self, group_id: str, session: Any = None) -> bool:
        result = await self.collection.delete_one({"_id": group_id}, session=session)
        return result.deleted_count > 0

    @translate_store_errors
    async def add_member(self, member: Member, session: Any = None) -> None:
        await self.members.insert_one(member.model_dump(mode="python"), session=session)

    @translate_store_errors
    async def get_member(self, group_id: str, user_id: str, session: Any = None) -> Optional[Member]:
        doc = await self.members.find_one(
            {"group_id": group_id, "user_id": user_id},
            session=session
        )
        if doc:
            return Member(**doc)
        return None

    @translate_store_errors
    async def list_members(self, group_id: str, session: Any = None) -> List[Member]:
        cursor = self.members.find({"group_id": group_id}, session=session).sort("joined_at", 1)
        docs = await cursor.to_list(None)
        return [Member(**doc) for doc in docs]

    @translate_store_errors
    async def list_memberships(self, user_id: str, statuses: Iterable[MemberStatus]) -> List[Member]:
        cursor = self.members.find({
            "user_id": user_id,
            "status": {"$in": [s.value for s in statuses]}
        })
        docs = await cursor.to_list(None)
        return [Member(**doc) for doc in docs]

    @translate_store_errors
    async def update_member_status(
        self, group_id: str, user_id: str, status: MemberStatus, session: Any = None
    ) -> bool:
        result = await self.members.update_one(
            {"group_id": group_id, "user_id": user_id},
            {"$set": {"status": status.value}},
            session=session
        )
        return result.matched_count > 0

    @translate_store_errors
    async def delete_members(self, group_id: str, session: Any = None) -> int:
        result = await self.members.delete_many({"group_id": group_id}, session=session)
        return result.deleted_count
