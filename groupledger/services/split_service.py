"""
Split allocation.

Core algorithm:
1. Total the selected transactions
2. Compute each member's share (equal, or caller-supplied custom amounts)
3. Pro-rate every member's share back onto each transaction:
   share_for_txn = txn.amount * member_share / sum(shares)
   using largest-remainder rounding so each transaction reconciles exactly
4. Replace the splits of every transaction in one atomic write
"""

from typing import Dict, List, Optional, Sequence, Tuple

from groupledger.core.config import settings
from groupledger.core.exceptions import AllocationMismatch, NotAuthorized, NotFound, ValidationError
from groupledger.core.locks import GroupLocks, group_locks
from groupledger.core.logging_config import get_logger
from groupledger.models.ledger import Split, Transaction
from groupledger.repositories.base import Storage
from groupledger.schemas.split import AllocationResult, SplitMethod, SplitRow
from groupledger.utils.ledger_validation import (
    validate_amounts,
    validate_custom_shares,
    validate_members,
)
from groupledger.utils.timeouts import bounded

logger = get_logger(__name__)


class SplitAllocator:
    """Pure allocation arithmetic, no I/O."""

    def __init__(self, share_unit_cents: Optional[int] = None, tolerance_cents: Optional[int] = None):
        self.share_unit_cents = share_unit_cents or settings.SHARE_UNIT_CENTS
        self.tolerance_cents = (
            settings.RECONCILE_TOLERANCE_CENTS if tolerance_cents is None else tolerance_cents
        )

    def allocate(
        self,
        transactions: Sequence,
        members: Sequence[str],
        method: SplitMethod,
        custom_shares: Optional[Dict[str, int]] = None,
    ) -> Dict[str, int]:
        """
        Return ``{member_id: share_cents}`` for the combined transactions.

        Nothing selected yields ``{}``; a zero total yields all-zero shares.
        Raises ValidationError for bad input and AllocationMismatch when
        custom shares do not add up to the total.
        """
        if not transactions:
            return {}

        ordered = validate_members(members)
        total = validate_amounts(transactions)

        if method == SplitMethod.CUSTOM:
            return validate_custom_shares(custom_shares or {}, ordered, total, self.tolerance_cents)

        if total == 0:
            return {member_id: 0 for member_id in ordered}
        return self._equal_shares(total, ordered)

    def _equal_shares(self, total: int, members: List[str]) -> Dict[str, int]:
        """
        Whole-unit shares; the remainder goes out one unit at a time to
        members in listed order (100 over three -> 34, 33, 33).

        Totals smaller than one unit per member are shared out in cents
        instead (1.50 over three -> 0.50 each).
        """
        count = len(members)
        unit = self.share_unit_cents if total >= count * self.share_unit_cents else 1
        base = (total // (count * unit)) * unit
        remainder = total - base * count

        shares = {}
        for member_id in members:
            extra = min(unit, remainder)
            shares[member_id] = base + extra
            remainder -= extra
        return shares

    def distribute(
        self, transactions: Sequence, shares: Dict[str, int]
    ) -> Dict[str, List[Tuple[str, int]]]:
        """Pro-rate member shares onto each transaction, reconciling each one exactly."""
        denominator = sum(shares.values())
        members = list(shares)
        plan: Dict[str, List[Tuple[str, int]]] = {}

        for txn in transactions:
            amount = txn.amount_cents
            if denominator == 0:
                if amount > 0:
                    raise AllocationMismatch(0, amount)
                plan[txn.id] = [(member_id, 0) for member_id in members]
                continue

            floors = {}
            remainders = []
            for index, member_id in enumerate(members):
                scaled = amount * shares[member_id]
                floors[member_id] = scaled // denominator
                remainders.append((-(scaled % denominator), index, member_id))

            leftover = amount - sum(floors.values())
            for _, _, member_id in sorted(remainders)[:leftover]:
                floors[member_id] += 1

            plan[txn.id] = [(member_id, floors[member_id]) for member_id in members]
        return plan


class SplitService:
    def __init__(
        self,
        storage: Storage,
        locks: GroupLocks = group_locks,
        allocator: Optional[SplitAllocator] = None,
    ):
        self.storage = storage
        self.locks = locks
        self.allocator = allocator or SplitAllocator()

    async def preview(
        self,
        group_id: str,
        requester_id: str,
        transaction_ids: Sequence[str],
        method: SplitMethod = SplitMethod.EQUAL,
        custom_shares: Optional[Dict[str, int]] = None,
        member_ids: Optional[Sequence[str]] = None,
    ) -> AllocationResult:
        """Compute the allocation without persisting it."""
        transactions, members = await self._load(group_id, requester_id, transaction_ids, member_ids)
        return self._plan(transactions, members, method, custom_shares)

    async def split_transactions(
        self,
        group_id: str,
        requester_id: str,
        transaction_ids: Sequence[str],
        method: SplitMethod = SplitMethod.EQUAL,
        custom_shares: Optional[Dict[str, int]] = None,
        member_ids: Optional[Sequence[str]] = None,
        timeout: Optional[float] = None,
    ) -> AllocationResult:
        """Allocate and replace the splits of every selected transaction."""
        return await bounded(
            self._split_locked(group_id, requester_id, transaction_ids, method, custom_shares, member_ids),
            timeout,
        )

    async def _split_locked(self, group_id, requester_id, transaction_ids, method, custom_shares, member_ids):
        async with self.locks.hold(group_id):
            transactions, members = await self._load(group_id, requester_id, transaction_ids, member_ids)
            result = self._plan(transactions, members, method, custom_shares)

            rows: Dict[str, List[Split]] = {txn.id: [] for txn in transactions}
            for row in result.splits:
                rows[row.transaction_id].append(
                    Split(transaction_id=row.transaction_id, user_id=row.user_id, amount_cents=row.amount_cents)
                )

            async with self.storage.atomic() as session:
                for transaction_id, splits in rows.items():
                    await self.storage.ledger.replace_splits(transaction_id, splits, session=session)

        logger.info(
            "splits_replaced",
            group_id=group_id,
            transactions=len(transactions),
            members=len(members),
            method=method.value,
            total_cents=result.total_cents,
        )
        return result

    def _plan(
        self,
        transactions: List[Transaction],
        members: List[str],
        method: SplitMethod,
        custom_shares: Optional[Dict[str, int]],
    ) -> AllocationResult:
        shares = self.allocator.allocate(transactions, members, method, custom_shares)
        plan = self.allocator.distribute(transactions, shares) if shares else {}
        splits = [
            SplitRow(transaction_id=transaction_id, user_id=user_id, amount_cents=amount)
            for transaction_id, parts in plan.items()
            for user_id, amount in parts
        ]
        return AllocationResult(
            method=method,
            total_cents=sum(txn.amount_cents for txn in transactions),
            shares=shares,
            splits=splits,
        )

    async def _load(
        self,
        group_id: str,
        requester_id: str,
        transaction_ids: Sequence[str],
        member_ids: Optional[Sequence[str]],
    ) -> Tuple[List[Transaction], List[str]]:
        group = await self.storage.groups.get_group(group_id)
        if group is None:
            raise NotFound("Group not found")

        members = await self.storage.groups.list_members(group_id)
        joined = [m.user_id for m in members if m.is_joined]
        if requester_id not in joined:
            raise NotAuthorized("Only group members can split expenses")

        if member_ids is None:
            selected_members = joined
        else:
            outsiders = [uid for uid in member_ids if uid not in joined]
            if outsiders:
                raise ValidationError(f"Not members of this group: {', '.join(outsiders)}")
            selected_members = list(member_ids)

        wanted = list(dict.fromkeys(transaction_ids))
        by_id = {txn.id: txn for txn in await self.storage.ledger.list_transactions(group_id)}
        missing = [tid for tid in wanted if tid not in by_id]
        if missing:
            raise NotFound(f"Transactions not found in group: {', '.join(missing)}")

        transactions = [by_id[tid] for tid in wanted]
        for txn in transactions:
            if txn.user_id != requester_id:
                raise NotAuthorized("You can only split transactions you paid")
            if txn.category_id == settings.SETTLEMENT_CATEGORY_ID:
                raise ValidationError(f"Settlements cannot be re-split: {txn.id}")

        return transactions, selected_members
