from typing import List
from fastapi import APIRouter, Depends, HTTPException, status
from groupledger.api.deps import get_settlement_service
from groupledger.api.v1.notifications import notify_splits
from groupledger.core.auth import get_current_user_id
from groupledger.db.session import get_storage
from groupledger.repositories.base import Storage
from groupledger.schemas.settlement import SettlementCreate, SettlementResponse, SuggestedPayment
from groupledger.services.settlement_service import SettlementService

router = APIRouter()

@router.get("/{group_id}/settlements/suggestions", response_model=List[SuggestedPayment])
async def suggest_settlement(
    group_id: str,
    current_user_id: str = Depends(get_current_user_id),
    storage: Storage = Depends(get_storage),
    settlements: SettlementService = Depends(get_settlement_service)
):
    """What the caller owes each member right now"""
    if await storage.groups.get_member(group_id, current_user_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Group not found")
    return await settlements.suggest_payments(group_id, current_user_id)

@router.post("/{group_id}/settlements", response_model=SettlementResponse, status_code=status.HTTP_201_CREATED)
async def create_settlement(
    group_id: str,
    settlement_in: SettlementCreate,
    current_user_id: str = Depends(get_current_user_id),
    storage: Storage = Depends(get_storage),
    settlements: SettlementService = Depends(get_settlement_service)
):
    """Record a full or partial settlement paid by the caller"""
    transaction_id = await settlements.plan_settlement(
        group_id,
        current_user_id,
        settlement_in.account_id,
        settlement_in.payments,
        date=settlement_in.date
    )

    transaction = await storage.ledger.get_transaction(transaction_id)
    if transaction:
        await notify_splits(
            storage,
            transaction,
            {p.payee_id: p.amount_cents for p in settlement_in.payments}
        )

    return SettlementResponse(
        transaction_id=transaction_id,
        group_id=group_id,
        payer_id=current_user_id,
        amount_cents=sum(p.amount_cents for p in settlement_in.payments),
        payments=settlement_in.payments
    )
