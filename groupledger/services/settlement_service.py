from datetime import datetime, timezone
from typing import List, Optional, Sequence

from groupledger.core.config import settings
from groupledger.core.exceptions import NotAuthorized, NotFound, ValidationError
from groupledger.core.locks import GroupLocks, group_locks
from groupledger.core.logging_config import get_logger
from groupledger.models.ledger import Split, Transaction, TransactionType
from groupledger.repositories.base import Storage
from groupledger.schemas.settlement import SettlementPayment, SuggestedPayment
from groupledger.services.balance_service import BalanceService
from groupledger.utils.ledger_validation import validate_payments
from groupledger.utils.timeouts import bounded

logger = get_logger(__name__)

SETTLEMENT_NAME = "Settlement"


class SettlementService:
    """
    Records settlements.

    A settlement is an ordinary expense paid by the settling member with one
    split per payee. Each split credits the payer against that payee, so
    paying exactly what the bilateral balance shows brings it to zero;
    paying less leaves the rest outstanding.
    """

    def __init__(self, storage: Storage, locks: GroupLocks = group_locks):
        self.storage = storage
        self.locks = locks
        self.balances = BalanceService(storage)

    async def plan_settlement(
        self,
        group_id: str,
        payer_id: str,
        account_id: str,
        payments: Sequence[SettlementPayment],
        date: Optional[datetime] = None,
        timeout: Optional[float] = None,
    ) -> str:
        """Create the settlement transaction and its splits; return the transaction id."""
        total = validate_payments(payments, payer_id)
        if not account_id:
            raise ValidationError("Select an account to pay from")

        return await bounded(
            self._settle_locked(group_id, payer_id, account_id, list(payments), total, date),
            timeout,
        )

    async def _settle_locked(
        self,
        group_id: str,
        payer_id: str,
        account_id: str,
        payments: List[SettlementPayment],
        total: int,
        date: Optional[datetime],
    ) -> str:
        async with self.locks.hold(group_id):
            group = await self.storage.groups.get_group(group_id)
            if group is None:
                raise NotFound("Group not found")

            members = {m.user_id: m for m in await self.storage.groups.list_members(group_id)}
            payer = members.get(payer_id)
            if payer is None or not payer.is_joined:
                raise NotAuthorized("Only group members can settle up")

            outsiders = [p.payee_id for p in payments if p.payee_id not in members]
            if outsiders:
                raise ValidationError(f"Not members of this group: {', '.join(outsiders)}")

            account = await self.storage.accounts.get_account(account_id)
            if account is None:
                raise NotFound("Account not found")
            if account.user_id != payer_id:
                raise NotAuthorized("Account does not belong to the payer")

            transaction = Transaction(
                group_id=group_id,
                user_id=payer_id,
                account_id=account_id,
                amount_cents=total,
                type=TransactionType.EXPENSE,
                name=SETTLEMENT_NAME,
                description=f"Settled with {len(payments)} members",
                category_id=settings.SETTLEMENT_CATEGORY_ID,
                trip_id=group.trip_id,
                date=date or datetime.now(timezone.utc),
            )
            splits = [
                Split(transaction_id=transaction.id, user_id=p.payee_id, amount_cents=p.amount_cents)
                for p in payments
            ]

            async with self.storage.atomic() as session:
                await self.storage.ledger.create_transaction(transaction, session=session)
                for affected, delta in transaction.account_effects():
                    await self.storage.accounts.adjust_balance(affected, delta, session=session)
                await self.storage.ledger.replace_splits(transaction.id, splits, session=session)

        logger.info(
            "settlement_recorded",
            group_id=group_id,
            transaction_id=transaction.id,
            payer_id=payer_id,
            payees=len(payments),
            amount_cents=total,
        )
        return transaction.id

    async def suggest_payments(self, group_id: str, payer_id: str) -> List[SuggestedPayment]:
        """
        Default amount per payee: exactly what the payer owes them,
        max(0, -bilateral). Members owed the most come first.
        """
        balances = await self.balances.get_group_balances(group_id, payer_id)
        suggestions = [
            SuggestedPayment(
                payee_id=m.id,
                username=m.username,
                bilateral_cents=m.bilateral_cents,
                suggested_cents=max(0, -m.bilateral_cents),
            )
            for m in balances.members
            if m.id != payer_id and m.membership is not None
        ]
        return sorted(suggestions, key=lambda s: s.bilateral_cents)
