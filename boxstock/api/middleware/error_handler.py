"""
Error handling middleware.

Standardizes all API error responses to include:
- error_code: machine-readable identifier
- message: human-readable description
- hint: suggested recovery action
"""

import traceback
from collections.abc import Awaitable, Callable

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from boxstock.application.dto.responses import ErrorResponse
from boxstock.config import get_logger
from boxstock.core.exceptions import (
    BoxStockError,
    ConfigurationError,
    ConflictError,
    DuplicateProductError,
    LedgerInvariantError,
    NotFoundError,
    ProductHaltedError,
    StorageError,
    ValidationError,
)

logger = get_logger(__name__)


# Map exceptions to HTTP status codes; first match wins
EXCEPTION_STATUS_MAP: dict[type[Exception], int] = {
    ValidationError: status.HTTP_400_BAD_REQUEST,
    NotFoundError: status.HTTP_404_NOT_FOUND,
    DuplicateProductError: status.HTTP_409_CONFLICT,
    ConflictError: status.HTTP_409_CONFLICT,
    ProductHaltedError: status.HTTP_423_LOCKED,
    LedgerInvariantError: status.HTTP_500_INTERNAL_SERVER_ERROR,
    StorageError: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ConfigurationError: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ValueError: status.HTTP_400_BAD_REQUEST,
}

# Hint messages per error code / exception type
HINT_MAP: dict[str, str] = {
    "PRODUCT_NOT_FOUND": "Check the product ID and try GET /api/products to list products.",
    "SALE_NOT_FOUND": "Check the sale ID and try GET /api/sales to list sales.",
    "AUDIT_NOT_FOUND": "Check the audit ID and try GET /api/sales-audit to list audit records.",
    "DUPLICATE_PRODUCT": "A product with the same ID or SKU already exists.",
    "ALLOCATION_INFEASIBLE": "Reduce the quantity to the suggested maximum or add stock first.",
    "STOCK_CONFLICT": "Stock is lower than the change requires. Reload the product and retry.",
    "SALE_NOT_MUTABLE": "Deleted sales cannot be amended or deleted again.",
    "SALE_CHANGED": "The sale changed after this request was made. Submit a new request.",
    "AUDIT_ALREADY_DECIDED": "This audit record has already been decided.",
    "AUDIT_REVALIDATION_FAILED": "Current stock cannot cover the change. Reject it or add stock first.",
    "PRODUCT_HALTED": "Reconcile the product via POST /api/products/{id}/resync before changing stock.",
    "LEDGER_INVARIANT_VIOLATED": "The product was halted. Inspect GET /api/products/{id}/reconciliation.",
    "VALIDATION_ERROR": "Check the request body against the API schema.",
    "DATABASE_ERROR": "A database operation failed. Check server logs.",
    "ValueError": "A parameter value is invalid. Check the request.",
}

# Default hints by HTTP status code
STATUS_HINTS: dict[int, str] = {
    400: "Check the request parameters and body.",
    401: "Send the caller identity header with the request.",
    404: "The requested resource was not found. Verify the ID.",
    409: "The request conflicts with the current state. Reload and retry.",
    422: "The request could not be processed. Check the input format.",
    423: "The resource is locked pending manual reconciliation.",
    500: "An internal error occurred. Check server logs.",
    503: "The service is temporarily unavailable. Retry later.",
}


def _get_hint(error_code: str, status_code: int) -> str:
    """Resolve hint from error code, falling back to status-based hint."""
    return HINT_MAP.get(error_code) or STATUS_HINTS.get(status_code, "")


def _status_for(exc: Exception) -> int:
    for exc_type, code in EXCEPTION_STATUS_MAP.items():
        if isinstance(exc, exc_type):
            return code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def error_response(request: Request, exc: Exception) -> JSONResponse:
    """Convert an exception to a standardized JSON response."""
    status_code = _status_for(exc)

    # Prefer BoxStockError.code, fall back to class name
    if isinstance(exc, BoxStockError):
        error_code = exc.code
        message = exc.message
        details = exc.details or None
    else:
        error_code = exc.__class__.__name__
        message = str(exc)
        details = None

    request_id = getattr(request.state, "request_id", None)
    log = logger.error if status_code >= 500 else logger.warning
    log(
        "request_error",
        request_id=request_id,
        path=request.url.path,
        status=status_code,
        error_type=error_code,
        error=message,
        traceback=traceback.format_exc() if status_code >= 500 else None,
    )

    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(
            error_code=error_code,
            message=message,
            hint=_get_hint(error_code, status_code),
            details=details,
            path=request.url.path,
        ).model_dump(mode="json"),
    )


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """
    Global error handling middleware.

    Converts exceptions that escape the exception handlers to standardized
    JSON error responses.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        """Handle request with error catching."""
        try:
            return await call_next(request)

        except Exception as e:
            return error_response(request, e)


def setup_exception_handlers(app: FastAPI) -> None:
    """Set up FastAPI exception handlers."""
    from fastapi.exceptions import RequestValidationError
    from starlette.exceptions import HTTPException

    @app.exception_handler(BoxStockError)
    async def domain_exception_handler(
        request: Request,
        exc: BoxStockError,
    ) -> JSONResponse:
        """Handle domain errors with their status, code and details."""
        return error_response(request, exc)

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
        hint = _get_hint(error_code, exc.status_code)

        return JSONResponse(
            status_code=exc.status_code,
            content=ErrorResponse(
                error_code=error_code,
                message=exc.detail or "An error occurred",
                hint=hint,
                path=request.url.path,
            ).model_dump(mode="json"),
        )


def _infer_error_code(status_code: int) -> str:
    """Infer a machine-readable error code from an HTTP status."""
    return {
        400: "BAD_REQUEST",
        401: "UNAUTHORIZED",
        404: "NOT_FOUND",
        405: "METHOD_NOT_ALLOWED",
        422: "UNPROCESSABLE_ENTITY",
    }.get(status_code, "HTTP_ERROR")
