"""
Store contracts shared by the MongoDB and in-memory backends.

Stores do data access only: no business rules. Every write accepts an
optional ``session``; writes made with the session yielded by
``Storage.atomic()`` commit together or not at all.
"""

import functools
from abc import ABC, abstractmethod
from contextlib import AbstractAsyncContextManager
from typing import Any, Dict, Iterable, List, Optional

from pymongo.errors import PyMongoError

from groupledger.core.exceptions import StoreFailure
from groupledger.models.account import Account, Profile
from groupledger.models.group import Group, Member, MemberStatus
from groupledger.models.ledger import Split, Transaction


def translate_store_errors(func):
    """Surface driver errors as ``StoreFailure``."""
    @functools.wraps(func)
    async def wrapper(*args, **kwargs):
        try:
            return await func(*args, **kwargs)
        except PyMongoError as e:
            raise StoreFailure(f"{func.__qualname__} failed: {e}") from e
    return wrapper


class LedgerStore(ABC):
    """Transactions and their splits."""

    @abstractmethod
    async def create_transaction(self, transaction: Transaction, session: Any = None) -> str: ...

    @abstractmethod
    async def get_transaction(self, transaction_id: str, session: Any = None) -> Optional[Transaction]: ...

    @abstractmethod
    async def delete_transaction(self, transaction_id: str, session: Any = None) -> bool:
        """Delete a transaction and cascade its splits in one unit."""

    @abstractmethod
    async def replace_splits(self, transaction_id: str, splits: List[Split], session: Any = None) -> None:
        """Drop every split of the transaction, then insert ``splits``."""

    @abstractmethod
    async def list_transactions(self, group_id: str, session: Any = None) -> List[Transaction]: ...

    @abstractmethod
    async def list_splits(self, transaction_ids: Iterable[str], session: Any = None) -> List[Split]: ...

    @abstractmethod
    async def delete_splits_for_transactions(self, transaction_ids: Iterable[str], session: Any = None) -> int: ...

    @abstractmethod
    async def delete_transactions_for_group(self, group_id: str, session: Any = None) -> int: ...


class GroupStore(ABC):
    """Groups and member rows."""

    @abstractmethod
    async def create_group(self, group: Group, session: Any = None) -> str: ...

    @abstractmethod
    async def get_group(self, group_id: str, session: Any = None) -> Optional[Group]: ...

    @abstractmethod
    async def list_groups(self, group_ids: Iterable[str]) -> List[Group]: ...

    @abstractmethod
    async def delete_group(self, group_id: str, session: Any = None) -> bool: ...

    @abstractmethod
    async def add_member(self, member: Member, session: Any = None) -> None: ...

    @abstractmethod
    async def get_member(self, group_id: str, user_id: str, session: Any = None) -> Optional[Member]: ...

    @abstractmethod
    async def list_members(self, group_id: str, session: Any = None) -> List[Member]: ...

    @abstractmethod
    async def list_memberships(self, user_id: str, statuses: Iterable[MemberStatus]) -> List[Member]: ...

    @abstractmethod
    async def update_member_status(
        self, group_id: str, user_id: str, status: MemberStatus, session: Any = None
    ) -> bool: ...

    @abstractmethod
    async def delete_members(self, group_id: str, session: Any = None) -> int: ...


class AccountStore(ABC):
    """Collaborator: account balances touched by recorded transactions."""

    @abstractmethod
    async def create_account(self, account: Account, session: Any = None) -> str: ...

    @abstractmethod
    async def get_account(self, account_id: str, session: Any = None) -> Optional[Account]: ...

    @abstractmethod
    async def adjust_balance(self, account_id: str, delta_cents: int, session: Any = None) -> bool:
        """Add ``delta_cents``; False when the account does not exist."""

    async def get_balance(self, account_id: str, session: Any = None) -> Optional[int]:
        account = await self.get_account(account_id, session=session)
        return account.balance_cents if account else None


class ProfileDirectory(ABC):
    """Collaborator: display names and avatars."""

    @abstractmethod
    async def get_profiles(self, user_ids: Iterable[str]) -> Dict[str, Profile]: ...

    async def get_profile(self, user_id: str) -> Optional[Profile]:
        profiles = await self.get_profiles([user_id])
        return profiles.get(user_id)


class NotificationSink(ABC):
    """Collaborator: delivery is someone else's job, we only enqueue."""

    @abstractmethod
    async def notify(
        self, user_id: str, title: str, message: str, data: Optional[dict] = None, type: str = "info"
    ) -> None: ...


class Storage(ABC):
    """Bundle of stores sharing one atomic-write boundary."""

    ledger: LedgerStore
    groups: GroupStore
    accounts: AccountStore
    profiles: ProfileDirectory
    notifications: NotificationSink

    @abstractmethod
    def atomic(self) -> AbstractAsyncContextManager:
        """Yield a session; writes made with it commit all-or-nothing."""
