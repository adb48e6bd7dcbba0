"""
Tests for BalanceService.

Covers:
- Net balances (zero-sum across the group)
- Bilateral balances and their sign relative to the viewer
- Settled / owed / owes status
- Profile fallbacks and former members
- Per-user group summaries
"""

import pytest

from groupledger.core.exceptions import NotFound, StoreFailure
from groupledger.models.ledger import TransactionType
from groupledger.schemas.balance import BalanceStatus
from groupledger.services.balance_service import BalanceService, balance_status
from groupledger.services.group_service import GroupService

from conftest import ALICE, BOB, CAROL


@pytest.fixture
def service(storage):
    return BalanceService(storage)


@pytest.mark.asyncio
async def test_empty_group_is_all_zero(service, group):
    balances = await service.get_group_balances(group.id, ALICE)

    assert balances.total_spend_cents == 0
    assert [m.id for m in balances.members] == [ALICE, BOB, CAROL]
    for member in balances.members:
        assert member.paid_cents == 0
        assert member.share_cents == 0
        assert member.net_balance_cents == 0
        assert member.bilateral_cents == 0
        assert member.status == BalanceStatus.SETTLED


@pytest.mark.asyncio
async def test_net_balances_sum_to_zero(service, group, add_transaction):
    await add_transaction(group.id, ALICE, 30000, shares={ALICE: 10000, BOB: 10000, CAROL: 10000})
    await add_transaction(group.id, BOB, 9000, shares={ALICE: 4500, CAROL: 4500})
    await add_transaction(group.id, CAROL, 1234, shares={CAROL: 1234})

    balances = await service.get_group_balances(group.id, ALICE)

    assert sum(m.net_balance_cents for m in balances.members) == 0
    alice = balances.member(ALICE)
    assert alice.paid_cents == 30000
    assert alice.share_cents == 14500
    assert alice.net_balance_cents == 15500
    assert alice.status == BalanceStatus.OWED
    assert balances.member(CAROL).status == BalanceStatus.OWES
    assert balances.my_balance_cents == 15500


@pytest.mark.asyncio
async def test_unsplit_transactions_do_not_count(service, group, add_transaction):
    await add_transaction(group.id, ALICE, 50000)
    await add_transaction(group.id, BOB, 6000, shares={ALICE: 3000, BOB: 3000})

    balances = await service.get_group_balances(group.id, ALICE)

    assert balances.member(ALICE).paid_cents == 0
    assert balances.member(BOB).paid_cents == 6000
    assert balances.total_spend_cents == 56000
    assert balances.transaction_count == 2
    assert balances.split_transaction_count == 1


@pytest.mark.asyncio
async def test_income_is_reported_separately(service, group, add_transaction):
    await add_transaction(group.id, ALICE, 7000, type=TransactionType.INCOME)

    balances = await service.get_group_balances(group.id, ALICE)

    assert balances.total_income_cents == 7000
    assert balances.total_spend_cents == 0


@pytest.mark.asyncio
async def test_bilateral_sign_relative_to_viewer(service, group, add_transaction):
    """Alice pays 300.00 split three ways: Bob owes Alice 100.00."""
    await add_transaction(group.id, ALICE, 30000, shares={ALICE: 10000, BOB: 10000, CAROL: 10000})

    as_alice = await service.get_group_balances(group.id, ALICE)
    as_bob = await service.get_group_balances(group.id, BOB)

    assert as_alice.member(BOB).bilateral_cents == 10000
    assert as_alice.member(CAROL).bilateral_cents == 10000
    assert as_alice.member(ALICE).bilateral_cents == 0
    assert as_bob.member(ALICE).bilateral_cents == -10000
    # Bob and Carol never paid for each other
    assert as_bob.member(CAROL).bilateral_cents == 0


@pytest.mark.asyncio
async def test_bilateral_nets_both_directions(service, group, add_transaction):
    await add_transaction(group.id, ALICE, 20000, shares={ALICE: 10000, BOB: 10000})
    await add_transaction(group.id, BOB, 6000, shares={ALICE: 6000})

    as_alice = await service.get_group_balances(group.id, ALICE)

    assert as_alice.member(BOB).bilateral_cents == 4000


@pytest.mark.asyncio
async def test_missing_profile_uses_placeholder(service, group, add_transaction):
    balances = await service.get_group_balances(group.id, ALICE)

    assert balances.member(ALICE).username == "Alice"
    assert balances.member(ALICE).avatar == "a.png"
    assert balances.member(CAROL).username == "Unknown"


@pytest.mark.asyncio
async def test_profile_outage_degrades_to_placeholder(service, storage, group, add_transaction, monkeypatch):
    await add_transaction(group.id, ALICE, 30000, shares={ALICE: 15000, BOB: 15000})

    async def broken(user_ids):
        raise StoreFailure("profiles unavailable")

    monkeypatch.setattr(storage.profiles, "get_profiles", broken)

    balances = await service.get_group_balances(group.id, ALICE)

    assert {m.username for m in balances.members} == {"Unknown"}
    assert balances.member(BOB).bilateral_cents == 15000


@pytest.mark.asyncio
async def test_former_member_still_reported(service, storage, group, add_transaction):
    await add_transaction(group.id, "dave", 9000, shares={ALICE: 3000, BOB: 3000, CAROL: 3000})

    balances = await service.get_group_balances(group.id, ALICE)

    dave = balances.member("dave")
    assert dave is not None
    assert dave.membership is None
    assert dave.net_balance_cents == 9000
    assert sum(m.net_balance_cents for m in balances.members) == 0


@pytest.mark.asyncio
async def test_unknown_group(service):
    with pytest.raises(NotFound):
        await service.get_group_balances("missing", ALICE)


def test_balance_status_threshold():
    assert balance_status(0) == BalanceStatus.SETTLED
    assert balance_status(99) == BalanceStatus.SETTLED
    assert balance_status(-99) == BalanceStatus.SETTLED
    assert balance_status(100) == BalanceStatus.OWED
    assert balance_status(-100) == BalanceStatus.OWES


@pytest.mark.asyncio
async def test_summarize_for_user(service, storage, group, add_transaction):
    await add_transaction(group.id, BOB, 30000, shares={ALICE: 10000, BOB: 10000, CAROL: 10000})
    await add_transaction(group.id, BOB, 5000)

    summaries = await service.summarize_for_user(ALICE)

    assert len(summaries) == 1
    summary = summaries[0]
    assert summary.id == group.id
    assert summary.name == "Goa Trip"
    assert summary.owed_cents == -10000
    assert summary.total_transactions == 2
    assert summary.total_splits == 1
    assert [m.id for m in summary.members] == [ALICE, BOB, CAROL]


@pytest.mark.asyncio
async def test_summarize_skips_pending_invites(service, storage, group):
    other = await GroupService(storage).create_group("Flat", BOB)
    await GroupService(storage).invite_members(other.id, BOB, [ALICE])

    summaries = await service.summarize_for_user(ALICE)

    assert [s.id for s in summaries] == [group.id]
