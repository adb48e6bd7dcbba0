"""
Ledger models - transactions and the splits that share them out.

Design principles:
- All amounts in integer cents
- A transaction is "split" iff at least one Split references it
- Splits of one transaction always reconcile to its amount (within 1 cent)
- Splits are replaced wholesale on re-allocation, never patched
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import Field, field_validator

from groupledger.models.base import StoredModel, _utcnow


class TransactionType(str, Enum):
    EXPENSE = "expense"
    INCOME = "income"
    TRANSFER = "transfer"


class SplitStatus(str, Enum):
    PENDING = "pending"
    SETTLED = "settled"


class Transaction(StoredModel):
    """A monetary event paid by ``user_id`` from ``account_id``."""

    group_id: Optional[str] = None
    user_id: str  # payer
    account_id: str
    to_account_id: Optional[str] = None  # transfers only
    amount_cents: int = Field(ge=0)
    type: TransactionType = TransactionType.EXPENSE
    name: str = ""
    description: Optional[str] = None
    category_id: Optional[str] = None
    trip_id: Optional[str] = None
    date: datetime = Field(default_factory=_utcnow)

    def account_effects(self) -> list[tuple[str, int]]:
        """
        Balance deltas this transaction applies to accounts when recorded.

        expense: source -amount
        income: source +amount
        transfer: source -amount, destination +amount
        """
        if self.type == TransactionType.EXPENSE:
            return [(self.account_id, -self.amount_cents)]
        if self.type == TransactionType.INCOME:
            return [(self.account_id, self.amount_cents)]
        effects = [(self.account_id, -self.amount_cents)]
        if self.to_account_id:
            effects.append((self.to_account_id, self.amount_cents))
        return effects


class Split(StoredModel):
    """One member's share of one transaction."""

    transaction_id: str
    user_id: str
    amount_cents: int = Field(ge=0)
    status: SplitStatus = SplitStatus.PENDING

    @field_validator("user_id")
    @classmethod
    def user_required(cls, v: str) -> str:
        if not v:
            raise ValueError("Split user_id is required")
        return v
