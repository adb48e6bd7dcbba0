"""
LedgerRepository - transactions and splits in MongoDB.

Collections:
- transactions: one document per monetary event
- splits: one document per (transaction, member) share

Cascading writes (delete a transaction with its splits, replace all splits
of a transaction) always run inside one multi-document transaction: the
caller's session when given, otherwise one opened here.
"""

from typing import Any, Iterable, List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from groupledger.db.mongo import session_scope
from groupledger.models.ledger import Split, Transaction
from groupledger.repositories.base import LedgerStore, translate_store_errors


class LedgerRepository(LedgerStore):
    """Repository for ledger transactions and their splits."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.collection = db["transactions"]
        self.splits = db["splits"]

    @translate_store_errors
    async def create_transaction(self, transaction: Transaction, session: Any = None) -> str:
        await self.collection.insert_one(transaction.to_document(), session=session)
        return transaction.id

    @translate_store_errors
    async def get_transaction(self, transaction_id: str, session: Any = None) -> Optional[Transaction]:
        doc = await self.collection.find_one({"_id": transaction_id}, session=session)
        if doc:
            return Transaction(**doc)
        return None

    @translate_store_errors
    async def delete_transaction(self, transaction_id: str, session: Any = None) -> bool:
        async with session_scope(self.db, session) as s:
            await self.splits.delete_many({"transaction_id": transaction_id}, session=s)
            result = await self.collection.delete_one({"_id": transaction_id}, session=s)
        return result.deleted_count > 0

    @translate_store_errors
    async def replace_splits(self, transaction_id: str, splits: List[Split], session: Any = None) -> None:
        docs = [split.to_document() for split in splits]
        async with session_scope(self.db, session) as s:
            await self.splits.delete_many({"transaction_id": transaction_id}, session=s)
            if docs:
                await self.splits.insert_many(docs, session=s)

    @translate_store_errors
    async def list_transactions(self, group_id: str, session: Any = None) -> List[Transaction]:
        cursor = self.collection.find({"group_id": group_id}, session=session).sort("date", -1)
        docs = await cursor.to_list(None)
        return [Transaction(**doc) for doc in docs]

    @translate_store_errors
    async def list_splits(self, transaction_ids: Iterable[str], session: Any = None) -> List[Split]:
        ids = list(transaction_ids)
        if not ids:
            return []
        cursor = self.splits.find({"transaction_id": {"$in": ids}}, session=session)
        docs = await cursor.to_list(None)
        return [Split(**doc) for doc in docs]

    @translate_store_errors
    async def delete_splits_for_transactions(self, transaction_ids: Iterable[str], session: Any = None) -> int:
        ids = list(transaction_ids)
        if not ids:
            return 0
        result = await self.splits.delete_many({"transaction_id": {"$in": ids}}, session=session)
        return result.deleted_count

    @translate_store_errors
    async def delete_transactions_for_group(self, group_id: str, session: Any = None) -> int:
        result = await self.collection.delete_many({"group_id": group_id}, session=session)
        return result.deleted_count
