from fastapi import APIRouter
from groupledger.api.v1.endpoints import groups, splits, settlements, transactions

api_router = APIRouter()

api_router.include_router(groups.router, prefix="/groups", tags=["groups"])
api_router.include_router(splits.router, prefix="/groups", tags=["splits"])
api_router.include_router(settlements.router, prefix="/groups", tags=["settlements"])
api_router.include_router(transactions.router, prefix="/transactions", tags=["transactions"])
