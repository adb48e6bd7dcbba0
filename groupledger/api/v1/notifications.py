"""
Notifications pushed by the API layer after a ledger write has committed.

The ledger itself never notifies. A failing sink is logged and does not
fail the request: the money movement is already recorded.
"""

from typing import Dict, Iterable

from groupledger.core.config import settings
from groupledger.core.exceptions import StoreFailure
from groupledger.core.logging_config import get_logger
from groupledger.models.group import Group
from groupledger.models.ledger import Transaction
from groupledger.repositories.base import Storage
from groupledger.utils.ledger_validation import format_cents

logger = get_logger(__name__)


async def _display_name(storage: Storage, user_id: str) -> str:
    try:
        profile = await storage.profiles.get_profile(user_id)
    except StoreFailure:
        profile = None
    return profile.username if profile and profile.username else "Someone"


async def _send(storage: Storage, user_id: str, title: str, message: str, data: dict, type: str) -> None:
    try:
        await storage.notifications.notify(user_id, title, message, data, type=type)
    except StoreFailure as e:
        logger.warning("notification_failed", user_id=user_id, title=title, error=str(e))


async def notify_splits(storage: Storage, transaction: Transaction, shares: Dict[str, int]) -> None:
    """Tell every non-payer what they owe (or received, for settlements)."""
    is_settlement = transaction.category_id == settings.SETTLEMENT_CATEGORY_ID
    payer_name = await _display_name(storage, transaction.user_id)
    data = {"transactionId": transaction.id, "groupId": transaction.group_id}

    for user_id, amount_cents in shares.items():
        if user_id == transaction.user_id:
            continue
        amount = format_cents(amount_cents)
        if is_settlement:
            await _send(
                storage, user_id, "Settlement Received",
                f"{payer_name} settled {amount} with you.", data, "success",
            )
        else:
            await _send(
                storage, user_id, "Expense Split",
                f'{payer_name} added you to a split for "{transaction.name}". You owe {amount}.', data, "info",
            )


async def notify_invites(storage: Storage, group: Group, inviter_id: str, user_ids: Iterable[str]) -> None:
    inviter = await _display_name(storage, inviter_id)
    for user_id in user_ids:
        await _send(
            storage, user_id, "Group Invitation",
            f'{inviter} invited you to join "{group.name}".', {"groupId": group.id}, "info",
        )
