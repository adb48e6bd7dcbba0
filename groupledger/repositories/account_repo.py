from typing import Any, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from groupledger.models.account import Account
from groupledger.repositories.base import AccountStore, translate_store_errors


class AccountRepository(AccountStore):
    """Account balance operations."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.collection = db["accounts"]

    @translate_store_errors
    async def create_account(self, account: Account, session: Any = None) -> str:
        await self.collection.insert_one(account.to_document(), session=session)
        return account.id

    @translate_store_errors
    async def get_account(self, account_id: str, session: Any = None) -> Optional[Account]:
        doc = await self.collection.find_one({"_id": account_id}, session=session)
        if doc:
            return Account(**doc)
        return None

    @translate_store_errors
    async def adjust_balance(self, account_id: str, delta_cents: int, session: Any = None) -> bool:
        # $inc keeps concurrent adjustments from overwriting each other
        result = await self.collection.update_one(
            {"_id": account_id},
            {"$inc": {"balance_cents": delta_cents}},
            session=session
        )
        return result.matched_count > 0
