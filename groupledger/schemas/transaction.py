from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from groupledger.models.ledger import TransactionType


class TransactionCreate(BaseModel):
    """Request body to record a transaction paid by the caller."""
    account_id: str
    amount_cents: int = Field(..., ge=0)
    type: TransactionType = TransactionType.EXPENSE
    group_id: Optional[str] = None
    to_account_id: Optional[str] = None
    name: str = ""
    description: Optional[str] = None
    category_id: Optional[str] = None
    trip_id: Optional[str] = None
    date: Optional[datetime] = None


class TransactionResponse(BaseModel):
    id: str = Field(validation_alias="_id", serialization_alias="id")
    group_id: Optional[str] = None
    user_id: str
    account_id: str
    to_account_id: Optional[str] = None
    amount_cents: int
    type: TransactionType
    name: str
    category_id: Optional[str] = None
    date: datetime

    model_config = ConfigDict(populate_by_name=True, from_attributes=True)
