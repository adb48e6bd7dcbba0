from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo.errors import PyMongoError

from groupledger.core.config import settings
from groupledger.core.exceptions import StoreFailure
from groupledger.core.logging_config import get_logger

logger = get_logger(__name__)

class MongoDatabase:
    """MongoDB connection manager."""

    client: AsyncIOMotorClient = None
    db: AsyncIOMotorDatabase = None

mongodb = MongoDatabase()

async def connect_to_mongo():
    """Connect to MongoDB."""
    mongodb.client = AsyncIOMotorClient(settings.MONGODB_URL)
    mongodb.db = mongodb.client[settings.DATABASE_NAME]

    await create_indexes(mongodb.db)
    logger.info("mongo_connected", database=settings.DATABASE_NAME)

async def close_mongo_connection():
    """Disconnect from MongoDB."""
    if mongodb.client is not None:
        mongodb.client.close()
        logger.info("mongo_disconnected")

async def create_indexes(db: AsyncIOMotorDatabase):
    """Create database indexes."""
    # Ledger indexes
    await db["transactions"].create_index("group_id")
    await db["transactions"].create_index("user_id")
    await db["splits"].create_index("transaction_id")
    await db["splits"].create_index("user_id")

    # Group membership: one row per (group, user)
    await db["group_members"].create_index([("group_id", 1), ("user_id", 1)], unique=True)
    await db["group_members"].create_index([("user_id", 1), ("status", 1)])

    await db["notifications"].create_index([("user_id", 1), ("is_read", 1)])


@asynccontextmanager
async def transaction_scope(db: AsyncIOMotorDatabase) -> AsyncIterator[Any]:
    """Multi-document transaction: commits on exit, aborts on any exception."""
    try:
        async with await db.client.start_session() as session:
            async with session.start_transaction():
                yield session
    except PyMongoError as e:
        raise StoreFailure(f"Atomic write failed: {e}") from e


@asynccontextmanager
async def session_scope(db: AsyncIOMotorDatabase, session: Any = None) -> AsyncIterator[Any]:
    """Reuse the caller's session, or open a transaction of our own."""
    if session is not None:
        yield session
        return
    async with transaction_scope(db) as own:
        yield own
