"""
Error handling middleware.

Standardizes all API error responses to include:
- error_code: machine-readable identifier
- message: human-readable description
- hint: suggested recovery action
"""

import json
import traceback
from collections.abc import Awaitable, Callable

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from stockledger.application.dto.responses import ErrorResponse
from stockledger.config import get_logger
from stockledger.core.exceptions import (
    BatchNotFoundError,
    ConfigurationError,
    ConflictError,
    DuplicateStockItemError,
    InvalidRecipeYieldError,
    LedgerError,
    ManualEntryNotFoundError,
    MovementError,
    PendingDeliveryNotFoundError,
    PermissionDeniedError,
    ScheduleNotFoundError,
    StockItemNotFoundError,
    StorageError,
    ValidationError,
)

logger = get_logger(__name__)


# Map exceptions to HTTP status codes; first match wins
EXCEPTION_STATUS_MAP: dict[type[Exception], int] = {
    ValidationError: status.HTTP_400_BAD_REQUEST,
    StockItemNotFoundError: status.HTTP_404_NOT_FOUND,
    BatchNotFoundError: status.HTTP_404_NOT_FOUND,
    PendingDeliveryNotFoundError: status.HTTP_404_NOT_FOUND,
    ManualEntryNotFoundError: status.HTTP_404_NOT_FOUND,
    ScheduleNotFoundError: status.HTTP_404_NOT_FOUND,
    DuplicateStockItemError: status.HTTP_409_CONFLICT,
    ConflictError: status.HTTP_409_CONFLICT,
    MovementError: 422,
    InvalidRecipeYieldError: 422,
    PermissionDeniedError: status.HTTP_403_FORBIDDEN,
    StorageError: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ConfigurationError: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ValueError: status.HTTP_400_BAD_REQUEST,
}

# Hint messages per error code / exception type
HINT_MAP: dict[str, str] = {
    "STOCK_ITEM_NOT_FOUND": "Check the item ID and try GET /api/stock/items to list stock items.",
    "BATCH_NOT_FOUND": "Check the batch ID and try GET /api/stock/items/{item_id}/batches.",
    "PENDING_DELIVERY_NOT_FOUND": "Try GET /api/purchases/pending to list open orders.",
    "MANUAL_ENTRY_NOT_FOUND": "Try GET /api/purchases/manual to list the manual entries.",
    "SCHEDULE_NOT_FOUND": "Try GET /api/purchases/schedules to list schedule entries.",
    "DUPLICATE_STOCK_ITEM": "A stock item with this ID already exists.",
    "CONFLICT": "The item changed while the request was processed. Retry the request.",
    "DEDUCTION_MISMATCH": "Batch deductions must add up to the exit quantity. Use auto_fifo or GET .../fifo for a suggestion.",
    "INSUFFICIENT_BATCH_QUANTITY": "Deduct at most what each batch holds. List batches to see remaining quantities.",
    "INSUFFICIENT_STOCK": "The exit exceeds the current quantity. Record an entry or adjustment first.",
    "INVALID_RECIPE_YIELD": "The recipe yield must be greater than zero. Fix the recipe and recompute.",
    "PERMISSION_DENIED": "The caller lacks the required capability (X-Actor-Capabilities).",
    "VALIDATION_ERROR": "Check the request body against the API schema.",
    "DATABASE_ERROR": "A database operation failed. Check server logs.",
    "ValueError": "A parameter value is invalid. Check the request.",
}

# Default hints by HTTP status code
STATUS_HINTS: dict[int, str] = {
    400: "Check the request parameters and body.",
    403: "The operation is not permitted for this caller.",
    404: "The requested resource was not found. Verify the ID.",
    409: "The resource changed or already exists. Reload and retry.",
    422: "The request could not be processed. Check the input values.",
    500: "An internal error occurred. Check server logs.",
}


def _get_hint(error_code: str, status_code: int) -> str:
    """Resolve hint from error code, falling back to status-based hint."""
    return HINT_MAP.get(error_code) or STATUS_HINTS.get(status_code, "")


def _status_for(exc: Exception) -> int:
    for exc_type, code in EXCEPTION_STATUS_MAP.items():
        if isinstance(exc, exc_type):
            return code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def build_error_response(request: Request, exc: Exception) -> JSONResponse:
    """Convert an exception to the standardized JSON error response."""
    status_code = _status_for(exc)
    error_code = exc.code if isinstance(exc, LedgerError) else exc.__class__.__name__
    message = exc.message if isinstance(exc, LedgerError) else str(exc)
    detail = (
        json.dumps(exc.details, default=str)
        if isinstance(exc, LedgerError) and exc.details
        else None
    )

    request_id = getattr(request.state, "request_id", None)
    log = logger.error if status_code >= 500 else logger.warning
    log(
        "request_error",
        request_id=request_id,
        path=request.url.path,
        error_type=error_code,
        error=message,
        traceback=traceback.format_exc() if status_code >= 500 else None,
    )

    error_response = ErrorResponse(
        error_code=error_code,
        message=message,
        hint=_get_hint(error_code, status_code),
        detail=detail,
        path=request.url.path,
    )
    return JSONResponse(
        status_code=status_code,
        content=error_response.model_dump(mode="json"),
    )


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """
    Global error handling middleware.

    Converts exceptions that escape the routers to standardized JSON
    error responses.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        try:
            return await call_next(request)
        except Exception as e:
            return build_error_response(request, e)


def setup_exception_handlers(app: FastAPI) -> None:
    """Set up FastAPI exception handlers."""
    from fastapi.exceptions import RequestValidationError
    from starlette.exceptions import HTTPException

    @app.exception_handler(LedgerError)
    async def ledger_exception_handler(
        request: Request,
        exc: LedgerError,
    ) -> JSONResponse:
        """Handle domain errors raised by use cases and stores."""
        return build_error_response(request, exc)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request,
        exc: RequestValidationError,
    ) -> JSONResponse:
        """Handle Pydantic validation errors."""
        errors = []
        for error in exc.errors():
            loc = " -> ".join(str(part) for part in error["loc"])
            errors.append(f"{loc}: {error['msg']}")

        return JSONResponse(
            status_code=422,
            content=ErrorResponse(
                error_code="VALIDATION_ERROR",
                message="Request validation failed",
                hint="Check the request body fields and types.",
                detail="; ".join(errors),
                path=request.url.path,
            ).model_dump(mode="json"),
        )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(
        request: Request,
        exc: HTTPException,
    ) -> JSONResponse:
        """Handle HTTP exceptions with standardized format."""
        error_code = _infer_error_code(exc.status_code)
        return JSONResponse(
            status_code=exc.status_code,
            content=ErrorResponse(
                error_code=error_code,
                message=exc.detail or "An error occurred",
                hint=_get_hint(error_code, exc.status_code),
                path=request.url.path,
            ).model_dump(mode="json"),
        )


def _infer_error_code(status_code: int) -> str:
    if status_code == 404:
        return "NOT_FOUND"
    if status_code == 400:
        return "BAD_REQUEST"
    if status_code == 405:
        return "METHOD_NOT_ALLOWED"
    if status_code == 422:
        return "UNPROCESSABLE_ENTITY"
    return "HTTP_ERROR"
