from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from ..core.errors import ErrorKind, LedgerError

logger = logging.getLogger(__name__)

STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.MISSING_FIELD: status.HTTP_400_BAD_REQUEST,
    ErrorKind.INVALID_ACCOUNT_ID: status.HTTP_400_BAD_REQUEST,
    ErrorKind.INVALID_AMOUNT: status.HTTP_400_BAD_REQUEST,
    ErrorKind.NEGATIVE_BALANCE: status.HTTP_400_BAD_REQUEST,
    ErrorKind.NON_POSITIVE_AMOUNT: status.HTTP_400_BAD_REQUEST,
    ErrorKind.SAME_ACCOUNT: status.HTTP_400_BAD_REQUEST,
    ErrorKind.INSUFFICIENT_FUNDS: status.HTTP_400_BAD_REQUEST,
    ErrorKind.BALANCE_LIMIT_EXCEEDED: status.HTTP_400_BAD_REQUEST,
    ErrorKind.ACCOUNT_EXISTS: status.HTTP_409_CONFLICT,
    ErrorKind.ACCOUNT_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.SOURCE_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.DESTINATION_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.STORE_UNAVAILABLE: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorKind.PROCESSING_FAILED: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorKind.TIMEOUT: status.HTTP_503_SERVICE_UNAVAILABLE,
}

INVALID_REQUEST_CODE = "invalid_request"
INTERNAL_ERROR_CODE = "internal_error"


def _error_body(detail: str, code: str) -> dict[str, str]:
    return {"detail": detail, "code": code}


def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", "-")


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(LedgerError)
    async def ledger_error_handler(request: Request, exc: LedgerError) -> JSONResponse:
        status_code = STATUS_BY_KIND.get(exc.kind, status.HTTP_500_INTERNAL_SERVER_ERROR)
        if status_code >= 500:
            logger.error(
                "request.failed",
                extra={
                    "request_id": _request_id(request),
                    "path": request.url.path,
                    "error_code": exc.kind.value,
                },
            )
        return JSONResponse(
            status_code=status_code,
            content=_error_body(exc.message, exc.kind.value),
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        logger.info(
            "request.invalid",
            extra={"request_id": _request_id(request), "path": request.url.path},
        )
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=_error_body("invalid request body", INVALID_REQUEST_CODE),
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error(
            "request.unhandled",
            extra={"request_id": _request_id(request), "path": request.url.path},
            exc_info=exc,
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=_error_body("internal server error", INTERNAL_ERROR_CODE),
        )
