import pytest
import pytest_asyncio

from groupledger.core.locks import GroupLocks
from groupledger.db.memory import InMemoryStorage
from groupledger.models.account import Account
from groupledger.models.ledger import Split, Transaction, TransactionType
from groupledger.services.group_service import GroupService

ALICE = "alice"
BOB = "bob"
CAROL = "carol"

# 1000.00 in cents
OPENING_BALANCE = 100000


@pytest.fixture
def storage() -> InMemoryStorage:
    """Fresh in-memory store for every test."""
    storage = InMemoryStorage()
    storage.profiles.add(ALICE, "Alice", avatar="a.png")
    storage.profiles.add(BOB, "Bob")
    # carol has no profile on purpose
    return storage


@pytest.fixture
def locks() -> GroupLocks:
    return GroupLocks()


@pytest_asyncio.fixture
async def accounts(storage):
    """One account per user, keyed by user id."""
    created = {}
    for user_id in (ALICE, BOB, CAROL):
        account = Account(user_id=user_id, name=f"{user_id} wallet", balance_cents=OPENING_BALANCE)
        await storage.accounts.create_account(account)
        created[user_id] = account.id
    return created


@pytest_asyncio.fixture
async def group(storage, locks):
    """Alice (admin), Bob and Carol, all joined."""
    service = GroupService(storage, locks=locks)
    group = await service.create_group("Goa Trip", ALICE)
    await service.invite_members(group.id, ALICE, [BOB, CAROL])
    await service.accept_invite(group.id, BOB)
    await service.accept_invite(group.id, CAROL)
    return group


@pytest.fixture
def add_transaction(storage):
    """Insert a transaction (and optional splits) straight into the ledger store."""
    async def _add(
        group_id,
        payer_id,
        amount_cents,
        shares=None,
        account_id="external",
        type=TransactionType.EXPENSE,
        name="Dinner",
    ):
        txn = Transaction(
            group_id=group_id,
            user_id=payer_id,
            account_id=account_id,
            amount_cents=amount_cents,
            type=type,
            name=name,
        )
        await storage.ledger.create_transaction(txn)
        if shares:
            await storage.ledger.replace_splits(
                txn.id,
                [Split(transaction_id=txn.id, user_id=uid, amount_cents=amt) for uid, amt in shares.items()],
            )
        return txn
    return _add
