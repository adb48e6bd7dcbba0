"""Ledger validation utilities."""
from typing import Dict, Iterable, List, Sequence

from groupledger.core.exceptions import AllocationMismatch, ValidationError
from groupledger.schemas.settlement import SettlementPayment


def validate_members(members: Sequence[str]) -> List[str]:
    """
    Validate an allocation member list.

    Rules:
    - at least one member
    - blank ids are rejected
    - duplicates collapse, first occurrence keeps its position
    """
    ordered: List[str] = []
    for member_id in members:
        if not member_id:
            raise ValidationError("Member id must not be empty")
        if member_id not in ordered:
            ordered.append(member_id)

    if not ordered:
        raise ValidationError("At least one member is required to split")
    return ordered


def validate_amounts(transactions: Iterable) -> int:
    """Reject negative transaction amounts and return their total (cents)."""
    total = 0
    for txn in transactions:
        if txn.amount_cents < 0:
            raise ValidationError(
                f"Transaction '{txn.id}' has negative amount: {txn.amount_cents}"
            )
        total += txn.amount_cents
    return total


def validate_custom_shares(
    custom_shares: Dict[str, int],
    members: Sequence[str],
    total_cents: int,
    tolerance_cents: int,
) -> Dict[str, int]:
    """
    Validate caller-supplied shares.

    Rules:
    - every share belongs to a listed member
    - no negative share
    - shares sum to the selected total within tolerance
    """
    unknown = set(custom_shares) - set(members)
    if unknown:
        raise ValidationError(
            f"Custom shares reference non-members: {', '.join(sorted(unknown))}"
        )

    shares = {}
    for member_id in members:
        amount = custom_shares.get(member_id, 0)
        if amount < 0:
            raise ValidationError(f"Member '{member_id}' has negative share: {amount}")
        shares[member_id] = amount

    shares_total = sum(shares.values())
    if abs(shares_total - total_cents) > tolerance_cents:
        raise AllocationMismatch(shares_total, total_cents)
    return shares


def validate_payments(payments: Sequence[SettlementPayment], payer_id: str) -> int:
    """
    Validate a settlement intent and return its total (cents).

    Rules:
    - at least one payment
    - every amount strictly positive
    - one payment per payee, never to the payer
    """
    if not payments:
        raise ValidationError("Select at least one member to pay")

    seen = set()
    for payment in payments:
        if payment.amount_cents <= 0:
            raise ValidationError(
                f"Payment to '{payment.payee_id}' must be positive: {payment.amount_cents}"
            )
        if payment.payee_id == payer_id:
            raise ValidationError("Payer cannot settle with themselves")
        if payment.payee_id in seen:
            raise ValidationError(f"Duplicate payment to '{payment.payee_id}'")
        seen.add(payment.payee_id)

    total = sum(p.amount_cents for p in payments)
    if total <= 0:
        raise ValidationError("Total payment amount must be greater than 0")
    return total


def format_cents(amount_cents: int) -> str:
    """Render cents as a plain decimal amount, e.g. 12345 -> '123.45'."""
    sign = "-" if amount_cents < 0 else ""
    units, cents = divmod(abs(amount_cents), 100)
    return f"{sign}{units}.{cents:02d}"
