"""Tests for post-commit notifications."""

import pytest

from groupledger.api.v1.notifications import notify_invites, notify_splits
from groupledger.core.exceptions import StoreFailure
from groupledger.models.group import Group
from groupledger.models.ledger import Transaction
from groupledger.utils.ledger_validation import format_cents

from conftest import ALICE, BOB, CAROL


@pytest.mark.asyncio
async def test_split_notifications_skip_payer(storage):
    txn = Transaction(group_id="g1", user_id=ALICE, account_id="a1", amount_cents=30000, name="Dinner")

    await notify_splits(storage, txn, {ALICE: 10000, BOB: 10000, CAROL: 10000})

    sent = storage.notifications.sent
    assert [n.user_id for n in sent] == [BOB, CAROL]
    assert sent[0].title == "Expense Split"
    assert sent[0].message == 'Alice added you to a split for "Dinner". You owe 100.00.'
    assert sent[0].data == {"transactionId": txn.id, "groupId": "g1"}


@pytest.mark.asyncio
async def test_settlement_notification(storage):
    txn = Transaction(
        group_id="g1", user_id=BOB, account_id="a1", amount_cents=1550, name="Settlement", category_id="settlement"
    )

    await notify_splits(storage, txn, {ALICE: 1550})

    notification = storage.notifications.sent[0]
    assert notification.title == "Settlement Received"
    assert notification.type == "success"
    assert notification.message == "Bob settled 15.50 with you."


@pytest.mark.asyncio
async def test_sink_failure_does_not_raise(storage, monkeypatch):
    async def broken(*args, **kwargs):
        raise StoreFailure("queue unavailable")

    monkeypatch.setattr(storage.notifications, "notify", broken)
    group = Group(name="Goa Trip", created_by=ALICE)

    await notify_invites(storage, group, ALICE, [BOB, CAROL])


@pytest.mark.asyncio
async def test_unknown_inviter_named_someone(storage):
    group = Group(name="Goa Trip", created_by=CAROL)

    await notify_invites(storage, group, CAROL, [BOB])

    assert storage.notifications.sent[0].message == 'Someone invited you to join "Goa Trip".'


def test_format_cents():
    assert format_cents(12345) == "123.45"
    assert format_cents(5) == "0.05"
    assert format_cents(-250) == "-2.50"
