"""
Error taxonomy for the storefront backend

Business and validation errors carry a stable code and a client-safe
message. Infrastructure errors are logged server-side with full context and
reach the client only as an opaque "try again" response.
"""
import logging
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class StorefrontError(Exception):
    """Base class for every error surfaced through the API"""

    code = "ERROR"
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict:
        return {
            "status": "error",
            "error": {
                "code": self.code,
                "message": self.message,
                "details": self.details,
            },
        }


class ValidationError(StorefrontError):
    """Malformed or missing input. Never retried."""
    code = "VALIDATION_ERROR"
    status_code = status.HTTP_400_BAD_REQUEST


class ProductUnavailable(ValidationError):
    """Product missing from the catalog or not published"""
    code = "PRODUCT_UNAVAILABLE"

    def __init__(self, product_id: str, line: int):
        super().__init__(
            f"Product {product_id} is not available",
            {"product_id": product_id, "line": line},
        )
        self.product_id = product_id
        self.line = line


class StockConflict(StorefrontError):
    """Requested quantity exceeds the stock ledger. Safe to retry with a fresh read."""
    code = "INSUFFICIENT_STOCK"
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, product_id: str, line: int, requested: int, available: Optional[int] = None):
        super().__init__(
            f"Insufficient stock for product {product_id}",
            {
                "product_id": product_id,
                "line": line,
                "requested": requested,
                "available": available,
            },
        )
        self.product_id = product_id
        self.line = line
        self.requested = requested
        self.available = available


class IdempotencyConflict(StorefrontError):
    """Idempotency key reused with a different request payload"""
    code = "IDEMPOTENCY_KEY_REUSED"
    status_code = status.HTTP_409_CONFLICT


class PaymentIncomplete(StorefrontError):
    """Gateway has not confirmed payment"""
    code = "PAYMENT_INCOMPLETE"
    status_code = status.HTTP_402_PAYMENT_REQUIRED


class InvalidTransition(StorefrontError):
    """Order state machine guard"""
    code = "INVALID_TRANSITION"
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, order_id: str, current: str, requested: str):
        super().__init__(
            f"Cannot move order from {current} to {requested}",
            {"order_id": order_id, "current_status": current, "requested_status": requested},
        )


class NotFound(StorefrontError):
    code = "NOT_FOUND"
    status_code = status.HTTP_404_NOT_FOUND


class Conflict(StorefrontError):
    code = "CONFLICT"
    status_code = status.HTTP_409_CONFLICT


class Unauthorized(StorefrontError):
    """Admin session or API key missing, invalid or expired"""
    code = "UNAUTHORIZED"
    status_code = status.HTTP_401_UNAUTHORIZED

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message)


class RateLimitExceeded(StorefrontError):
    code = "RATE_LIMITED"
    status_code = status.HTTP_429_TOO_MANY_REQUESTS

    def __init__(self, endpoint_class: str, limit: int, retry_after: int, reset_time: str):
        super().__init__(
            "Too many requests. Please try again later.",
            {"endpoint": endpoint_class, "retry_after": retry_after, "resetTime": reset_time},
        )
        self.limit = limit
        self.retry_after = retry_after
        self.reset_time = reset_time


class InfrastructureError(StorefrontError):
    """Datastore or gateway unreachable. Details stay in the server log."""
    code = "INTERNAL_ERROR"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str = "Something went wrong. Please try again."):
        super().__init__(message)


async def storefront_error_handler(request: Request, exc: StorefrontError) -> JSONResponse:
    headers = None
    if isinstance(exc, RateLimitExceeded):
        headers = {
            "X-RateLimit-Limit": str(exc.limit),
            "X-RateLimit-Remaining": "0",
            "X-RateLimit-Reset": exc.reset_time,
            "Retry-After": str(exc.retry_after),
        }
    elif isinstance(exc, Unauthorized):
        headers = {"WWW-Authenticate": "Bearer"}

    return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=headers)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        {
            "field": ".".join(str(part) for part in error.get("loc", ()) if part != "body"),
            "message": error.get("msg", "Invalid value"),
        }
        for error in exc.errors()
    ]
    logger.info(f"Rejected request to {request.url.path}: {len(errors)} validation error(s)")
    payload = ValidationError("Invalid request", {"errors": errors}).to_dict()
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=payload)


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=InfrastructureError().to_dict(),
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StorefrontError, storefront_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
