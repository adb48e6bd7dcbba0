"""
In-memory store backend.

Used for tests and single-process embedding. Atomicity comes from an undo
journal: every write made with a session records its inverse, and the
journal is replayed in reverse when the atomic block raises (including on
cancellation). Writes without a session apply immediately; each of them
completes without yielding to the event loop.
"""

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Callable, Dict, Iterable, List, Optional, Tuple

from groupledger.models.account import Account, Notification, Profile
from groupledger.models.group import Group, Member, MemberStatus
from groupledger.models.ledger import Split, Transaction
from groupledger.repositories.base import (
    AccountStore,
    GroupStore,
    LedgerStore,
    NotificationSink,
    ProfileDirectory,
    Storage,
)


class InMemorySession:
    def __init__(self):
        self._undo: List[Callable[[], None]] = []

    def record(self, undo: Callable[[], None]) -> None:
        self._undo.append(undo)

    def rollback(self) -> None:
        while self._undo:
            self._undo.pop()()


def _journal(session: Optional[InMemorySession], undo: Callable[[], None]) -> None:
    if session is not None:
        session.record(undo)


def _restore(table: dict, key: Any, previous: Any) -> Callable[[], None]:
    def undo():
        if previous is None:
            table.pop(key, None)
        else:
            table[key] = previous
    return undo


class InMemoryLedgerStore(LedgerStore):
    def __init__(self):
        self.transactions: Dict[str, Transaction] = {}
        self.splits: Dict[str, Split] = {}

    def _put(self, table: dict, key: Any, value: Any, session) -> None:
        _journal(session, _restore(table, key, table.get(key)))
        table[key] = value

    def _pop(self, table: dict, key: Any, session) -> Any:
        previous = table.pop(key, None)
        if previous is not None:
            _journal(session, _restore(table, key, previous))
        return previous

    async def create_transaction(self, transaction: Transaction, session: Any = None) -> str:
        self._put(self.transactions, transaction.id, transaction.model_copy(), session)
        return transaction.id

    async def get_transaction(self, transaction_id: str, session: Any = None) -> Optional[Transaction]:
        tx = self.transactions.get(transaction_id)
        return tx.model_copy() if tx else None

    async def delete_transaction(self, transaction_id: str, session: Any = None) -> bool:
        self._drop_splits({transaction_id}, session)
        return self._pop(self.transactions, transaction_id, session) is not None

    async def replace_splits(self, transaction_id: str, splits: List[Split], session: Any = None) -> None:
        self._drop_splits({transaction_id}, session)
        for split in splits:
            self._put(self.splits, split.id, split.model_copy(), session)

    async def list_transactions(self, group_id: str, session: Any = None) -> List[Transaction]:
        txns = [tx.model_copy() for tx in self.transactions.values() if tx.group_id == group_id]
        return sorted(txns, key=lambda tx: tx.date, reverse=True)

    async def list_splits(self, transaction_ids: Iterable[str], session: Any = None) -> List[Split]:
        ids = set(transaction_ids)
        return [s.model_copy() for s in self.splits.values() if s.transaction_id in ids]

    async def delete_splits_for_transactions(self, transaction_ids: Iterable[str], session: Any = None) -> int:
        return self._drop_splits(set(transaction_ids), session)

    async def delete_transactions_for_group(self, group_id: str, session: Any = None) -> int:
        ids = [tx_id for tx_id, tx in self.transactions.items() if tx.group_id == group_id]
        for tx_id in ids:
            self._pop(self.transactions, tx_id, session)
        return len(ids)

    def _drop_splits(self, transaction_ids: set, session) -> int:
        doomed = [sid for sid, s in self.splits.items() if s.transaction_id in transaction_ids]
        for sid in doomed:
            self._pop(self.splits, sid, session)
        return len(doomed)


class InMemoryGroupStore(GroupStore):
    def __init__(self):
        self.groups: Dict[str, Group] = {}
        self.members: Dict[Tuple[str, str], Member] = {}

    async def create_group(self, group: Group, session: Any = None) -> str:
        _journal(session, _restore(self.groups, group.id, None))
        self.groups[group.id] = group.model_copy()
        return group.id

    async def get_group(self, group_id: str, session: Any = None) -> Optional[Group]:
        group = self.groups.get(group_id)
        return group.model_copy() if group else None

    async def list_groups(self, group_ids: Iterable[str]) -> List[Group]:
        groups = [self.groups[gid].model_copy() for gid in set(group_ids) if gid in self.groups]
        return sorted(groups, key=lambda g: g.created_at, reverse=True)

    async def delete_group(self, group_id: str, session: Any = None) -> bool:
        previous = self.groups.pop(group_id, None)
        if previous is None:
            return False
        _journal(session, _restore(self.groups, group_id, previous))
        return True

    async def add_member(self, member: Member, session: Any = None) -> None:
        key = (member.group_id, member.user_id)
        _journal(session, _restore(self.members, key, self.members.get(key)))
        self.members[key] = member.model_copy()

    async def get_member(self, group_id: str, user_id: str, session: Any = None) -> Optional[Member]:
        member = self.members.get((group_id, user_id))
        return member.model_copy() if member else None

    async def list_members(self, group_id: str, session: Any = None) -> List[Member]:
        members = [m.model_copy() for (gid, _), m in self.members.items() if gid == group_id]
        return sorted(members, key=lambda m: m.joined_at)

    async def list_memberships(self, user_id: str, statuses: Iterable[MemberStatus]) -> List[Member]:
        wanted = set(statuses)
        return [
            m.model_copy() for (_, uid), m in self.members.items()
            if uid == user_id and m.status in wanted
        ]

    async def update_member_status(
        self, group_id: str, user_id: str, status: MemberStatus, session: Any = None
    ) -> bool:
        key = (group_id, user_id)
        previous = self.members.get(key)
        if previous is None:
            return False
        _journal(session, _restore(self.members, key, previous))
        self.members[key] = previous.model_copy(update={"status": status})
        return True

    async def delete_members(self, group_id: str, session: Any = None) -> int:
        keys = [key for key in self.members if key[0] == group_id]
        for key in keys:
            previous = self.members.pop(key)
            _journal(session, _restore(self.members, key, previous))
        return len(keys)


class InMemoryAccountStore(AccountStore):
    def __init__(self):
        self.accounts: Dict[str, Account] = {}

    async def create_account(self, account: Account, session: Any = None) -> str:
        _journal(session, _restore(self.accounts, account.id, None))
        self.accounts[account.id] = account.model_copy()
        return account.id

    async def get_account(self, account_id: str, session: Any = None) -> Optional[Account]:
        account = self.accounts.get(account_id)
        return account.model_copy() if account else None

    async def adjust_balance(self, account_id: str, delta_cents: int, session: Any = None) -> bool:
        account = self.accounts.get(account_id)
        if account is None:
            return False
        account.balance_cents += delta_cents

        def undo():
            account.balance_cents -= delta_cents
        _journal(session, undo)
        return True


class InMemoryProfileDirectory(ProfileDirectory):
    def __init__(self):
        self.profiles: Dict[str, Profile] = {}

    def add(self, user_id: str, username: str, avatar: Optional[str] = None) -> None:
        self.profiles[user_id] = Profile(id=user_id, username=username, avatar=avatar)

    async def get_profiles(self, user_ids: Iterable[str]) -> Dict[str, Profile]:
        return {uid: self.profiles[uid] for uid in set(user_ids) if uid in self.profiles}


class InMemoryNotificationSink(NotificationSink):
    def __init__(self):
        self.sent: List[Notification] = []

    async def notify(
        self, user_id: str, title: str, message: str, data: Optional[dict] = None, type: str = "info"
    ) -> None:
        self.sent.append(Notification(user_id=user_id, type=type, title=title, message=message, data=data or {}))


class InMemoryStorage(Storage):
    def __init__(self):
        self.ledger = InMemoryLedgerStore()
        self.groups = InMemoryGroupStore()
        self.accounts = InMemoryAccountStore()
        self.profiles = InMemoryProfileDirectory()
        self.notifications = InMemoryNotificationSink()

    @asynccontextmanager
    async def atomic(self) -> AsyncIterator[InMemorySession]:
        session = InMemorySession()
        try:
            yield session
        except BaseException:
            session.rollback()
            raise
