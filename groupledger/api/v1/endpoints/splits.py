from collections import defaultdict
from fastapi import APIRouter, Depends
from groupledger.api.deps import get_split_service
from groupledger.api.v1.notifications import notify_splits
from groupledger.core.auth import get_current_user_id
from groupledger.db.session import get_storage
from groupledger.repositories.base import Storage
from groupledger.schemas.split import AllocationResult, SplitRequest
from groupledger.services.split_service import SplitService

router = APIRouter()

@router.post("/{group_id}/splits/preview", response_model=AllocationResult)
async def preview_split(
    group_id: str,
    request: SplitRequest,
    current_user_id: str = Depends(get_current_user_id),
    splits: SplitService = Depends(get_split_service)
):
    """Compute shares without saving them"""
    return await splits.preview(
        group_id,
        current_user_id,
        request.transaction_ids,
        method=request.method,
        custom_shares=request.custom_shares,
        member_ids=request.member_ids
    )

@router.post("/{group_id}/splits", response_model=AllocationResult)
async def split_transactions(
    group_id: str,
    request: SplitRequest,
    current_user_id: str = Depends(get_current_user_id),
    storage: Storage = Depends(get_storage),
    splits: SplitService = Depends(get_split_service)
):
    """Split transactions among members, replacing any previous splits"""
    result = await splits.split_transactions(
        group_id,
        current_user_id,
        request.transaction_ids,
        method=request.method,
        custom_shares=request.custom_shares,
        member_ids=request.member_ids
    )

    per_transaction = defaultdict(dict)
    for row in result.splits:
        per_transaction[row.transaction_id][row.user_id] = row.amount_cents
    for transaction_id, shares in per_transaction.items():
        transaction = await storage.ledger.get_transaction(transaction_id)
        if transaction:
            await notify_splits(storage, transaction, shares)

    return result
