import asyncio
from typing import Awaitable, Optional, TypeVar

from groupledger.core.config import settings
from groupledger.core.exceptions import StoreFailure

T = TypeVar("T")


async def bounded(aw: Awaitable[T], timeout: Optional[float] = None) -> T:
    """
    Await ``aw`` for at most ``timeout`` seconds (settings default).

    On expiry the inner task is cancelled, which rolls back any open atomic
    block, and ``StoreFailure`` is raised.
    """
    limit = settings.STORE_TIMEOUT_SECONDS if timeout is None else timeout
    try:
        return await asyncio.wait_for(aw, limit)
    except asyncio.TimeoutError as e:
        raise StoreFailure(f"Ledger write did not complete within {limit}s") from e
