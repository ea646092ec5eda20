from .db import Account as AccountModel
from .db import TransactionRecord as TransactionRecordModel
from .schemas import (
    AccountCreate,
    AccountResponse,
    HistoryItemResponse,
    HistoryResponse,
    TransferFailure,
    TransferRequest,
    TransferResult,
    TransferSuccess,
)

__all__ = [
    "AccountCreate",
    "AccountResponse",
    "HistoryItemResponse",
    "HistoryResponse",
    "TransferFailure",
    "TransferRequest",
    "TransferResult",
    "TransferSuccess",
    "AccountModel",
    "TransactionRecordModel",
]
