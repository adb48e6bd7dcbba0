from fastapi import Depends

from groupledger.db.session import get_storage
from groupledger.repositories.base import Storage
from groupledger.services.balance_service import BalanceService
from groupledger.services.group_service import GroupService
from groupledger.services.settlement_service import SettlementService
from groupledger.services.split_service import SplitService
from groupledger.services.transaction_service import TransactionService


def get_balance_service(storage: Storage = Depends(get_storage)) -> BalanceService:
    return BalanceService(storage)


def get_group_service(storage: Storage = Depends(get_storage)) -> GroupService:
    return GroupService(storage)


def get_split_service(storage: Storage = Depends(get_storage)) -> SplitService:
    return SplitService(storage)


def get_settlement_service(storage: Storage = Depends(get_storage)) -> SettlementService:
    return SettlementService(storage)


def get_transaction_service(storage: Storage = Depends(get_storage)) -> TransactionService:
    return TransactionService(storage)
