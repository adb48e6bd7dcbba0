from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

from motor.motor_asyncio import AsyncIOMotorDatabase

from groupledger.core.config import settings
from groupledger.db.memory import InMemoryStorage
from groupledger.db.mongo import mongodb, transaction_scope
from groupledger.repositories.account_repo import AccountRepository
from groupledger.repositories.base import Storage
from groupledger.repositories.group_repo import GroupRepository
from groupledger.repositories.ledger_repo import LedgerRepository
from groupledger.repositories.user_repo import NotificationRepository, ProfileRepository


class MongoStorage(Storage):
    """All stores over one MongoDB database."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.ledger = LedgerRepository(db)
        self.groups = GroupRepository(db)
        self.accounts = AccountRepository(db)
        self.profiles = ProfileRepository(db)
        self.notifications = NotificationRepository(db)

    @asynccontextmanager
    async def atomic(self) -> AsyncIterator[Any]:
        async with transaction_scope(self.db) as session:
            yield session

_memory_storage: InMemoryStorage | None = None

def get_storage() -> Storage:
    """Storage for the configured backend."""
    global _memory_storage
    if settings.STORAGE_BACKEND == "memory":
        if _memory_storage is None:
            _memory_storage = InMemoryStorage()
        return _memory_storage
    return MongoStorage(mongodb.db)
