from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class SplitMethod(str, Enum):
    EQUAL = "equal"
    CUSTOM = "custom"


class SplitRequest(BaseModel):
    """Request body to split one or more group transactions."""
    transaction_ids: List[str] = Field(..., min_length=1)
    method: SplitMethod = SplitMethod.EQUAL
    custom_shares: Optional[Dict[str, int]] = None
    # Defaults to every joined member of the group
    member_ids: Optional[List[str]] = None


class SplitRow(BaseModel):
    transaction_id: str
    user_id: str
    amount_cents: int


class AllocationResult(BaseModel):
    method: SplitMethod
    total_cents: int
    shares: Dict[str, int]
    splits: List[SplitRow]
