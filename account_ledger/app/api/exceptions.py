from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from ..core.errors import (
    AccountDeactivatedError,
    AccountNotFoundError,
    DuplicateAccountNameError,
    DuplicateIdentifierError,
    InsufficientFundsError,
    LedgerError,
    OwnershipViolationError,
    StorageFailureError,
)

_STATUS_CODES: dict[type[LedgerError], int] = {
    AccountNotFoundError: 404,
    OwnershipViolationError: 403,
    InsufficientFundsError: 400,
    AccountDeactivatedError: 409,
    DuplicateAccountNameError: 409,
    DuplicateIdentifierError: 503,
    StorageFailureError: 503,
}


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(LedgerError)
    async def ledger_error_handler(request: Request, exc: LedgerError) -> JSONResponse:
        status_code = _STATUS_CODES.get(type(exc), 500)
        headers = {"Retry-After": "1"} if status_code == 503 else None
        return JSONResponse(
            status_code=status_code, content={"detail": str(exc)}, headers=headers
        )

    @app.exception_handler(ValueError)
    async def value_error_handler(request: Request, exc: ValueError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"detail": str(exc)})
