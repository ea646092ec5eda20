from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse

from ..core.dependencies import get_ledger_service, get_principal
from ..models import (
    AccountCreate,
    AccountResponse,
    HistoryResponse,
    TransferFailure,
    TransferRequest,
    TransferSuccess,
)
from ..services import LedgerService
from .exceptions import failure_response


router = APIRouter(prefix="/accounts", tags=["accounts"])

@router.post("", response_model=AccountResponse, status_code=status.HTTP_201_CREATED)
def create_account(
    payload: AccountCreate,
    service: LedgerService = Depends(get_ledger_service),
) -> AccountResponse:
    # Public signup only ever opens standard accounts.
    return service.open_account(payload.identifier)

@router.get("", response_model=list[str])
def list_accounts(
    service: LedgerService = Depends(get_ledger_service),
) -> list[str]:
    return service.list_accounts()

@router.get("/{identifier}", response_model=AccountResponse)
def get_account(
    identifier: str,
    service: LedgerService = Depends(get_ledger_service),
) -> AccountResponse:
    return service.get_account(identifier)

@router.get("/{identifier}/counterparties", response_model=list[str])
def list_counterparties(
    identifier: str,
    service: LedgerService = Depends(get_ledger_service),
) -> list[str]:
    return service.list_counterparties(identifier)

@router.get("/{identifier}/history", response_model=HistoryResponse)
def get_history(
    identifier: str,
    limit: int = Query(default=50, ge=1, le=500),
    cursor: str | None = None,
    service: LedgerService = Depends(get_ledger_service),
) -> HistoryResponse:
    return service.get_history(identifier, limit=limit, cursor=cursor)

transfer_router = APIRouter(prefix="/transfers", tags=["transfers"])

@transfer_router.post(
    "",
    response_model=TransferSuccess,
    responses={
        400: {"description": "InvalidAmount or SelfTransfer"},
        403: {"description": "SenderNotFound"},
        404: {"description": "ReceiverNotFound"},
        409: {"description": "InsufficientFunds"},
        503: {"description": "TransactionAborted, safe to retry"},
    },
)
def create_transfer(
    payload: TransferRequest,
    principal: str = Depends(get_principal),
    service: LedgerService = Depends(get_ledger_service),
) -> TransferSuccess | JSONResponse:
    role = service.role_of(principal)
    result = service.transfer(principal, payload.receiver, payload.amount, role)
    if isinstance(result, TransferFailure):
        return failure_response(result)
    return result

__all__ = ["router", "transfer_router"]
