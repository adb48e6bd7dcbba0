from pydantic import BaseModel, Field
from datetime import datetime
from typing import List, Optional

class SettlementPayment(BaseModel):
    payee_id: str
    amount_cents: int

class SettlementCreate(BaseModel):
    account_id: str
    payments: List[SettlementPayment] = Field(default_factory=list)
    date: Optional[datetime] = None

class SettlementResponse(BaseModel):
    transaction_id: str
    group_id: str
    payer_id: str
    amount_cents: int
    payments: List[SettlementPayment]

class SuggestedPayment(BaseModel):
    """Default amount to pay one member so their bilateral balance reaches zero."""
    payee_id: str
    username: str
    bilateral_cents: int
    suggested_cents: int
