from datetime import datetime, timezone
from typing import Optional

from groupledger.core.exceptions import NotAuthorized, NotFound, ValidationError
from groupledger.core.locks import GroupLocks, group_locks
from groupledger.core.logging_config import get_logger
from groupledger.models.ledger import Transaction, TransactionType
from groupledger.repositories.base import Storage
from groupledger.schemas.transaction import TransactionCreate
from groupledger.utils.timeouts import bounded

logger = get_logger(__name__)


class TransactionService:
    """Records and deletes transactions together with their account effects."""

    def __init__(self, storage: Storage, locks: GroupLocks = group_locks):
        self.storage = storage
        self.locks = locks

    async def record_transaction(
        self, payer_id: str, tx_in: TransactionCreate, timeout: Optional[float] = None
    ) -> Transaction:
        transaction = Transaction(
            user_id=payer_id,
            date=tx_in.date or datetime.now(timezone.utc),
            **tx_in.model_dump(exclude={"date"}),
        )
        if transaction.type == TransactionType.TRANSFER and transaction.to_account_id == transaction.account_id:
            raise ValidationError("Transfer needs two different accounts")

        return await bounded(self._record_locked(transaction), timeout)

    async def _record_locked(self, transaction: Transaction) -> Transaction:
        async with self.locks.hold(transaction.group_id):
            if transaction.group_id is not None:
                group = await self.storage.groups.get_group(transaction.group_id)
                if group is None:
                    raise NotFound("Group not found")
                member = await self.storage.groups.get_member(transaction.group_id, transaction.user_id)
                if member is None or not member.is_joined:
                    raise NotAuthorized("Only group members can add group transactions")

            for account_id, _ in transaction.account_effects():
                account = await self.storage.accounts.get_account(account_id)
                if account is None:
                    raise NotFound(f"Account {account_id} not found")
                if account.user_id != transaction.user_id:
                    raise NotAuthorized("Account does not belong to the payer")

            async with self.storage.atomic() as session:
                await self.storage.ledger.create_transaction(transaction, session=session)
                for account_id, delta in transaction.account_effects():
                    await self.storage.accounts.adjust_balance(account_id, delta, session=session)

        logger.info(
            "transaction_recorded",
            group_id=transaction.group_id,
            transaction_id=transaction.id,
            type=transaction.type.value,
            amount_cents=transaction.amount_cents,
        )
        return transaction

    async def delete_transaction(
        self, transaction_id: str, requester_id: str, timeout: Optional[float] = None
    ) -> Transaction:
        """Revert the account effect, then delete the transaction and its splits."""
        transaction = await self.storage.ledger.get_transaction(transaction_id)
        if transaction is None:
            raise NotFound("Transaction not found")
        if transaction.user_id != requester_id:
            raise NotAuthorized("Only the payer can delete a transaction")

        return await bounded(self._delete_locked(transaction), timeout)

    async def _delete_locked(self, transaction: Transaction) -> Transaction:
        async with self.locks.hold(transaction.group_id):
            async with self.storage.atomic() as session:
                # Re-read inside the lock: a group deletion may have won the race
                current = await self.storage.ledger.get_transaction(transaction.id, session=session)
                if current is None:
                    raise NotFound("Transaction not found")

                for account_id, delta in current.account_effects():
                    if not await self.storage.accounts.adjust_balance(account_id, -delta, session=session):
                        logger.warning(
                            "account_missing_on_revert",
                            transaction_id=current.id,
                            account_id=account_id,
                        )
                await self.storage.ledger.delete_transaction(current.id, session=session)

        logger.info("transaction_deleted", group_id=transaction.group_id, transaction_id=transaction.id)
        return current
