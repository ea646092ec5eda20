from __future__ import annotations

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from ..core.errors import (
    AccountNotFoundError,
    DuplicateAccountError,
    FailureKind,
)
from ..models import TransferFailure


FAILURE_STATUS_CODES: dict[FailureKind, int] = {
    FailureKind.INVALID_AMOUNT: status.HTTP_400_BAD_REQUEST,
    FailureKind.SELF_TRANSFER: status.HTTP_400_BAD_REQUEST,
    FailureKind.RECEIVER_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    FailureKind.SENDER_NOT_FOUND: status.HTTP_403_FORBIDDEN,
    FailureKind.INSUFFICIENT_FUNDS: status.HTTP_409_CONFLICT,
    FailureKind.TRANSACTION_ABORTED: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def failure_response(failure: TransferFailure) -> JSONResponse:
    return JSONResponse(
        status_code=FAILURE_STATUS_CODES[failure.kind],
        content={"kind": failure.kind.value, "detail": failure.message},
    )


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(AccountNotFoundError)
    async def account_not_found_handler(
        request: Request, exc: AccountNotFoundError
    ) -> JSONResponse:
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(DuplicateAccountError)
    async def duplicate_account_handler(
        request: Request, exc: DuplicateAccountError
    ) -> JSONResponse:
        return JSONResponse(status_code=409, content={"detail": str(exc)})

    @app.exception_handler(ValueError)
    async def value_error_handler(request: Request, exc: ValueError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"detail": str(exc)})
