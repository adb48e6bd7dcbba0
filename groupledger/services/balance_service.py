"""
Balance aggregation - derived on every read, never stored.

Algorithm (one batch load per entity type, joined in memory):
1. Load the group's transactions; only transactions with at least one split
   count toward balances
2. paid[m]  = sum of split transactions paid by m
3. share[m] = sum of m's splits on those transactions
4. net[m]   = paid[m] - share[m]   (sums to zero across the group)
5. bilateral[x] relative to the viewer, see BILATERAL_* in schemas.balance
"""

from collections import defaultdict
from typing import Dict, List, Optional

from groupledger.core.config import settings
from groupledger.core.exceptions import NotFound, StoreFailure
from groupledger.core.logging_config import get_logger
from groupledger.models.account import Profile
from groupledger.models.group import MemberStatus
from groupledger.models.ledger import TransactionType
from groupledger.repositories.base import Storage
from groupledger.schemas.balance import (
    BILATERAL_OWES_VIEWER,
    BILATERAL_VIEWER_OWES,
    BalanceStatus,
    GroupBalances,
    GroupSummary,
    MemberBalance,
    MemberPreview,
)

logger = get_logger(__name__)

MEMBER_PREVIEW_LIMIT = 4


def balance_status(net_cents: int, threshold_cents: Optional[int] = None) -> BalanceStatus:
    """settled below one currency unit, otherwise owed (creditor) / owes (debtor)."""
    threshold = settings.SETTLED_THRESHOLD_CENTS if threshold_cents is None else threshold_cents
    if abs(net_cents) < threshold:
        return BalanceStatus.SETTLED
    return BalanceStatus.OWED if net_cents > 0 else BalanceStatus.OWES


class BalanceService:
    def __init__(self, storage: Storage):
        self.storage = storage

    async def get_group_balances(self, group_id: str, viewer_id: str) -> GroupBalances:
        group = await self.storage.groups.get_group(group_id)
        if group is None:
            raise NotFound("Group not found")

        members = await self.storage.groups.list_members(group_id)
        transactions = await self.storage.ledger.list_transactions(group_id)
        splits = await self.storage.ledger.list_splits([t.id for t in transactions])

        splits_by_txn = defaultdict(list)
        for split in splits:
            splits_by_txn[split.transaction_id].append(split)

        # Group transactions without splits are personal, skip them
        paid_txns = [t for t in transactions if splits_by_txn.get(t.id)]

        paid_map: Dict[str, int] = defaultdict(int)
        share_map: Dict[str, int] = defaultdict(int)
        bilateral: Dict[str, int] = defaultdict(int)

        for txn in paid_txns:
            paid_map[txn.user_id] += txn.amount_cents
            for split in splits_by_txn[txn.id]:
                share_map[split.user_id] += split.amount_cents

                if txn.user_id == viewer_id and split.user_id != viewer_id:
                    bilateral[split.user_id] += BILATERAL_OWES_VIEWER * split.amount_cents
                elif txn.user_id != viewer_id and split.user_id == viewer_id:
                    bilateral[txn.user_id] += BILATERAL_VIEWER_OWES * split.amount_cents

        # Former members still in the ledger are reported so nets sum to zero
        ordered_ids = [m.user_id for m in members]
        for user_id in list(paid_map) + list(share_map):
            if user_id not in ordered_ids:
                ordered_ids.append(user_id)

        profiles = await self._profiles(ordered_ids, group_id)
        rows = {m.user_id: m for m in members}

        balances: List[MemberBalance] = []
        for user_id in ordered_ids:
            paid = paid_map.get(user_id, 0)
            share = share_map.get(user_id, 0)
            net = paid - share
            profile = profiles.get(user_id)
            member = rows.get(user_id)
            balances.append(MemberBalance(
                id=user_id,
                username=(profile.username if profile and profile.username else settings.PLACEHOLDER_USERNAME),
                avatar=profile.avatar if profile else None,
                role=member.role if member else None,
                membership=member.status if member else None,
                paid_cents=paid,
                share_cents=share,
                net_balance_cents=net,
                bilateral_cents=bilateral.get(user_id, 0),
                status=balance_status(net),
            ))

        total_spend = sum(t.amount_cents for t in transactions if t.type == TransactionType.EXPENSE)
        total_income = sum(t.amount_cents for t in transactions if t.type == TransactionType.INCOME)
        my_paid = paid_map.get(viewer_id, 0)
        my_share = share_map.get(viewer_id, 0)

        return GroupBalances(
            group_id=group_id,
            viewer_id=viewer_id,
            members=balances,
            total_spend_cents=total_spend,
            total_income_cents=total_income,
            my_paid_cents=my_paid,
            my_share_cents=my_share,
            my_balance_cents=my_paid - my_share,
            transaction_count=len(transactions),
            split_transaction_count=len(paid_txns),
        )

    async def summarize_for_user(self, user_id: str) -> List[GroupSummary]:
        """Every group the user has joined, with their own net balance."""
        memberships = await self.storage.groups.list_memberships(user_id, [MemberStatus.JOINED])
        groups = await self.storage.groups.list_groups(m.group_id for m in memberships)

        summaries = []
        for group in groups:
            balances = await self.get_group_balances(group.id, user_id)
            preview = [
                MemberPreview(id=m.id, username=m.username, avatar=m.avatar)
                for m in balances.members
                if m.membership is not None
            ][:MEMBER_PREVIEW_LIMIT]
            summaries.append(GroupSummary(
                id=group.id,
                name=group.name,
                description=group.description,
                trip_id=group.trip_id,
                created_by=group.created_by,
                members=preview,
                owed_cents=balances.my_balance_cents,
                total_transactions=balances.transaction_count,
                total_splits=balances.split_transaction_count,
            ))
        return summaries

    async def _profiles(self, user_ids: List[str], group_id: str) -> Dict[str, Profile]:
        # Display data only: a directory outage must not break balances
        try:
            return await self.storage.profiles.get_profiles(user_ids)
        except StoreFailure as e:
            logger.warning("profile_lookup_failed", group_id=group_id, error=str(e))
            return {}
