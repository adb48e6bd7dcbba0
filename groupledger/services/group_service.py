"""
Group lifecycle: creation, invitations and deletion.

Deleting a group undoes its financial side effects before removing rows:
1. revert every transaction's account effect (expense +amount, income -amount)
2. delete splits, then transactions, then members, then the group
all inside one atomic write, so no split ever outlives its transaction.
"""

from typing import List, Optional, Sequence

from groupledger.core.exceptions import NotAuthorized, NotFound, ValidationError
from groupledger.core.locks import GroupLocks, group_locks
from groupledger.core.logging_config import get_logger
from groupledger.models.group import Group, Member, MemberRole, MemberStatus
from groupledger.models.ledger import TransactionType
from groupledger.repositories.base import Storage
from groupledger.schemas.group import GroupDeletionSummary
from groupledger.utils.timeouts import bounded

logger = get_logger(__name__)


class GroupService:
    def __init__(self, storage: Storage, locks: GroupLocks = group_locks):
        self.storage = storage
        self.locks = locks

    async def create_group(
        self,
        name: str,
        created_by: str,
        description: Optional[str] = None,
        trip_id: Optional[str] = None,
    ) -> Group:
        """Create a group with its creator as joined admin."""
        group = Group(name=name, description=description, created_by=created_by, trip_id=trip_id)
        admin = Member(
            group_id=group.id,
            user_id=created_by,
            role=MemberRole.ADMIN,
            status=MemberStatus.JOINED,
        )

        async with self.storage.atomic() as session:
            await self.storage.groups.create_group(group, session=session)
            await self.storage.groups.add_member(admin, session=session)

        logger.info("group_created", group_id=group.id, created_by=created_by)
        return group

    async def invite_members(self, group_id: str, requester_id: str, user_ids: Sequence[str]) -> List[Member]:
        """Invite users; returns only the newly invited rows."""
        async with self.locks.hold(group_id):
            await self._require_group(group_id)
            requester = await self.storage.groups.get_member(group_id, requester_id)
            if requester is None or not requester.is_joined:
                raise NotAuthorized("Only group members can invite")

            existing = {m.user_id for m in await self.storage.groups.list_members(group_id)}
            invited = []
            async with self.storage.atomic() as session:
                for user_id in dict.fromkeys(user_ids):
                    if not user_id or user_id in existing:
                        continue
                    member = Member(group_id=group_id, user_id=user_id)
                    await self.storage.groups.add_member(member, session=session)
                    invited.append(member)

        logger.info("members_invited", group_id=group_id, invited=len(invited))
        return invited

    async def accept_invite(self, group_id: str, user_id: str) -> Member:
        return await self._respond(group_id, user_id, MemberStatus.JOINED)

    async def reject_invite(self, group_id: str, user_id: str) -> Member:
        return await self._respond(group_id, user_id, MemberStatus.REJECTED)

    async def _respond(self, group_id: str, user_id: str, status: MemberStatus) -> Member:
        async with self.locks.hold(group_id):
            member = await self.storage.groups.get_member(group_id, user_id)
            if member is None:
                raise NotFound("Invitation not found")
            if member.status != MemberStatus.INVITED:
                raise ValidationError(f"Invitation already {member.status.value}")

            await self.storage.groups.update_member_status(group_id, user_id, status)

        logger.info("invite_answered", group_id=group_id, user_id=user_id, status=status.value)
        return member.model_copy(update={"status": status})

    async def delete_group(
        self, group_id: str, requester_id: str, timeout: Optional[float] = None
    ) -> GroupDeletionSummary:
        return await bounded(self._delete_locked(group_id, requester_id), timeout)

    async def _delete_locked(self, group_id: str, requester_id: str) -> GroupDeletionSummary:
        async with self.locks.hold(group_id):
            await self._require_group(group_id)
            requester = await self.storage.groups.get_member(group_id, requester_id)
            if requester is None or not requester.is_admin:
                raise NotAuthorized("Only admins can delete groups")

            transactions = await self.storage.ledger.list_transactions(group_id)
            summary = GroupDeletionSummary(group_id=group_id)

            async with self.storage.atomic() as session:
                for txn in transactions:
                    if txn.type == TransactionType.EXPENSE:
                        delta = txn.amount_cents
                    elif txn.type == TransactionType.INCOME:
                        delta = -txn.amount_cents
                    else:
                        # Transfers move money between the user's own accounts
                        summary.transfers_skipped += 1
                        logger.warning("transfer_not_reverted", group_id=group_id, transaction_id=txn.id)
                        continue

                    if await self.storage.accounts.adjust_balance(txn.account_id, delta, session=session):
                        summary.reversals_applied += 1
                    else:
                        logger.warning(
                            "account_missing_on_revert",
                            group_id=group_id,
                            transaction_id=txn.id,
                            account_id=txn.account_id,
                        )

                transaction_ids = [t.id for t in transactions]
                summary.splits_deleted = await self.storage.ledger.delete_splits_for_transactions(
                    transaction_ids, session=session
                )
                summary.transactions_deleted = await self.storage.ledger.delete_transactions_for_group(
                    group_id, session=session
                )
                summary.members_deleted = await self.storage.groups.delete_members(group_id, session=session)
                await self.storage.groups.delete_group(group_id, session=session)

        logger.info("group_deleted", **summary.model_dump())
        return summary

    async def _require_group(self, group_id: str) -> Group:
        group = await self.storage.groups.get_group(group_id)
        if group is None:
            raise NotFound("Group not found")
        return group
