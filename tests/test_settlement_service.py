"""
Tests for SettlementService.

Covers:
- Full and partial settlement against bilateral balances
- Suggested payment amounts
- Payment validation
- Account debit and rollback on failure
"""

import pytest

from groupledger.core.exceptions import NotAuthorized, NotFound, StoreFailure, ValidationError
from groupledger.models.group import Member
from groupledger.models.ledger import TransactionType
from groupledger.schemas.settlement import SettlementPayment
from groupledger.services.balance_service import BalanceService
from groupledger.services.settlement_service import SETTLEMENT_NAME, SettlementService

from conftest import ALICE, BOB, CAROL, OPENING_BALANCE


@pytest.fixture
def service(storage, locks):
    return SettlementService(storage, locks=locks)


@pytest.fixture
def balances(storage):
    return BalanceService(storage)


@pytest.fixture
def bob_paid_dinner(group, add_transaction):
    """Bob paid 300.00, split between Bob and Alice."""
    async def _seed():
        return await add_transaction(group.id, BOB, 30000, shares={BOB: 15000, ALICE: 15000})
    return _seed


@pytest.mark.asyncio
async def test_full_settlement_clears_bilateral(service, balances, storage, group, accounts, bob_paid_dinner):
    await bob_paid_dinner()
    before = await balances.get_group_balances(group.id, ALICE)
    assert before.member(BOB).bilateral_cents == -15000

    transaction_id = await service.plan_settlement(
        group.id, ALICE, accounts[ALICE], [SettlementPayment(payee_id=BOB, amount_cents=15000)]
    )

    after = await balances.get_group_balances(group.id, ALICE)
    assert after.member(BOB).bilateral_cents == 0
    assert after.member(ALICE).net_balance_cents == 0
    assert sum(m.net_balance_cents for m in after.members) == 0

    txn = await storage.ledger.get_transaction(transaction_id)
    assert txn.type == TransactionType.EXPENSE
    assert txn.name == SETTLEMENT_NAME
    assert txn.category_id == "settlement"
    assert txn.amount_cents == 15000
    splits = await storage.ledger.list_splits([transaction_id])
    assert [(s.user_id, s.amount_cents) for s in splits] == [(BOB, 15000)]


@pytest.mark.asyncio
async def test_partial_settlement_leaves_remainder(service, balances, group, accounts, bob_paid_dinner):
    await bob_paid_dinner()

    await service.plan_settlement(
        group.id, ALICE, accounts[ALICE], [SettlementPayment(payee_id=BOB, amount_cents=5000)]
    )

    after = await balances.get_group_balances(group.id, ALICE)
    assert after.member(BOB).bilateral_cents == -10000


@pytest.mark.asyncio
async def test_settlement_debits_payer_account(service, storage, group, accounts, bob_paid_dinner):
    await bob_paid_dinner()

    await service.plan_settlement(
        group.id,
        ALICE,
        accounts[ALICE],
        [SettlementPayment(payee_id=BOB, amount_cents=15000), SettlementPayment(payee_id=CAROL, amount_cents=2500)],
    )

    assert await storage.accounts.get_balance(accounts[ALICE]) == OPENING_BALANCE - 17500


@pytest.mark.asyncio
async def test_suggestions_cover_what_payer_owes(service, group, bob_paid_dinner, add_transaction):
    await bob_paid_dinner()
    await add_transaction(group.id, ALICE, 4000, shares={CAROL: 4000})

    suggestions = await service.suggest_payments(group.id, ALICE)

    assert [s.payee_id for s in suggestions] == [BOB, CAROL]
    assert suggestions[0].suggested_cents == 15000
    assert suggestions[0].username == "Bob"
    # Carol owes Alice, nothing to pay
    assert suggestions[1].bilateral_cents == 4000
    assert suggestions[1].suggested_cents == 0


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "payments, message",
    [
        ([], "at least one"),
        ([SettlementPayment(payee_id=BOB, amount_cents=0)], "must be positive"),
        ([SettlementPayment(payee_id=BOB, amount_cents=-100)], "must be positive"),
        ([SettlementPayment(payee_id=ALICE, amount_cents=100)], "themselves"),
        (
            [SettlementPayment(payee_id=BOB, amount_cents=100), SettlementPayment(payee_id=BOB, amount_cents=100)],
            "Duplicate",
        ),
    ],
)
async def test_invalid_payments_rejected(service, storage, group, accounts, payments, message):
    with pytest.raises(ValidationError, match=message):
        await service.plan_settlement(group.id, ALICE, accounts[ALICE], payments)

    assert await storage.ledger.list_transactions(group.id) == []


@pytest.mark.asyncio
async def test_payee_must_be_member(service, group, accounts):
    with pytest.raises(ValidationError, match="mallory"):
        await service.plan_settlement(
            group.id, ALICE, accounts[ALICE], [SettlementPayment(payee_id="mallory", amount_cents=100)]
        )


@pytest.mark.asyncio
async def test_payer_must_be_joined(service, storage, group, accounts):
    await storage.groups.add_member(Member(group_id=group.id, user_id="dave"))

    with pytest.raises(NotAuthorized):
        await service.plan_settlement(
            group.id, "dave", accounts[ALICE], [SettlementPayment(payee_id=BOB, amount_cents=100)]
        )


@pytest.mark.asyncio
async def test_account_checks(service, group, accounts):
    payment = [SettlementPayment(payee_id=BOB, amount_cents=100)]

    with pytest.raises(ValidationError):
        await service.plan_settlement(group.id, ALICE, "", payment)
    with pytest.raises(NotFound):
        await service.plan_settlement(group.id, ALICE, "no-such-account", payment)
    with pytest.raises(NotAuthorized):
        await service.plan_settlement(group.id, ALICE, accounts[BOB], payment)


@pytest.mark.asyncio
async def test_unknown_group(service, accounts):
    with pytest.raises(NotFound):
        await service.plan_settlement(
            "missing", ALICE, accounts[ALICE], [SettlementPayment(payee_id=BOB, amount_cents=100)]
        )


@pytest.mark.asyncio
async def test_failed_split_write_rolls_back_settlement(service, storage, group, accounts, monkeypatch):
    async def broken(transaction_id, splits, session=None):
        raise StoreFailure("write conflict")

    monkeypatch.setattr(storage.ledger, "replace_splits", broken)

    with pytest.raises(StoreFailure):
        await service.plan_settlement(
            group.id, ALICE, accounts[ALICE], [SettlementPayment(payee_id=BOB, amount_cents=15000)]
        )

    assert await storage.ledger.list_transactions(group.id) == []
    assert await storage.accounts.get_balance(accounts[ALICE]) == OPENING_BALANCE
