from fastapi import APIRouter, Depends, status
from groupledger.api.deps import get_transaction_service
from groupledger.core.auth import get_current_user_id
from groupledger.schemas.transaction import TransactionCreate, TransactionResponse
from groupledger.services.transaction_service import TransactionService

router = APIRouter()

@router.post("", response_model=TransactionResponse, status_code=status.HTTP_201_CREATED)
async def record_transaction(
    tx_in: TransactionCreate,
    current_user_id: str = Depends(get_current_user_id),
    transactions: TransactionService = Depends(get_transaction_service)
):
    """Record a transaction paid by the caller and apply it to the account"""
    return await transactions.record_transaction(current_user_id, tx_in)

@router.delete("/{transaction_id}")
async def delete_transaction(
    transaction_id: str,
    current_user_id: str = Depends(get_current_user_id),
    transactions: TransactionService = Depends(get_transaction_service)
):
    """Delete a transaction, its splits and its account effect"""
    await transactions.delete_transaction(transaction_id, current_user_id)
    return {"message": "Transaction deleted successfully"}
