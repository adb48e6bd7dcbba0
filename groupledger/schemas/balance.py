from enum import Enum
from typing import List, Optional

from pydantic import BaseModel

from groupledger.models.group import MemberRole, MemberStatus

# Sign convention for bilateral balances, always relative to the viewer:
#   bilateral_cents > 0  -> that member owes the viewer
#   bilateral_cents < 0  -> the viewer owes that member
BILATERAL_OWES_VIEWER = 1
BILATERAL_VIEWER_OWES = -1


class BalanceStatus(str, Enum):
    SETTLED = "settled"
    OWED = "owed"   # net creditor
    OWES = "owes"   # net debtor


class MemberBalance(BaseModel):
    id: str
    username: str
    avatar: Optional[str] = None
    role: Optional[MemberRole] = None
    # None for users who appear in the ledger but no longer have a member row
    membership: Optional[MemberStatus] = None
    paid_cents: int = 0
    share_cents: int = 0
    net_balance_cents: int = 0
    bilateral_cents: int = 0
    status: BalanceStatus = BalanceStatus.SETTLED


class GroupBalances(BaseModel):
    group_id: str
    viewer_id: str
    members: List[MemberBalance]
    total_spend_cents: int = 0
    total_income_cents: int = 0
    my_paid_cents: int = 0
    my_share_cents: int = 0
    my_balance_cents: int = 0
    transaction_count: int = 0
    split_transaction_count: int = 0

    def member(self, user_id: str) -> Optional[MemberBalance]:
        for m in self.members:
            if m.id == user_id:
                return m
        return None


class MemberPreview(BaseModel):
    id: str
    username: str
    avatar: Optional[str] = None


class GroupSummary(BaseModel):
    """One row of the "my groups" listing."""
    id: str
    name: str
    description: Optional[str] = None
    trip_id: Optional[str] = None
    created_by: str
    members: List[MemberPreview]
    owed_cents: int = 0
    total_transactions: int = 0
    total_splits: int = 0
