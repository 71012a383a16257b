"""
Custom exception classes and error handlers
Provides consistent error responses across the application
"""

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from typing import Any, Dict, Optional
import logging

logger = logging.getLogger(__name__)


class StorefrontException(HTTPException):
    """Base exception class for the storefront application"""

    def __init__(
        self,
        status_code: int,
        detail: str,
        error_code: Optional[str] = None,
        headers: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(status_code=status_code, detail=detail, headers=headers)
        self.error_code = error_code


class BadRequestException(StorefrontException):
    """400 Bad Request"""

    def __init__(self, detail: str, error_code: str = "BAD_REQUEST"):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail,
            error_code=error_code
        )


class UnauthorizedException(StorefrontException):
    """401 Unauthorized"""

    def __init__(self, detail: str = "Unauthorized", error_code: str = "UNAUTHORIZED"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            error_code=error_code,
            headers={"WWW-Authenticate": "Bearer"}
        )


class ForbiddenException(StorefrontException):
    """403 Forbidden"""

    def __init__(self, detail: str = "Forbidden", error_code: str = "FORBIDDEN"):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=detail,
            error_code=error_code
        )


class NotFoundException(StorefrontException):
    """404 Not Found"""

    def __init__(self, detail: str = "Not found", error_code: str = "NOT_FOUND"):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=detail,
            error_code=error_code
        )


class ConflictException(StorefrontException):
    """409 Conflict"""

    def __init__(self, detail: str, error_code: str = "CONFLICT"):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail=detail,
            error_code=error_code
        )


class InternalServerException(StorefrontException):
    """500 Internal Server Error"""

    def __init__(
        self,
        detail: str = "Internal server error",
        error_code: str = "INTERNAL_ERROR"
    ):
        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=detail,
            error_code=error_code
        )


# Business logic exceptions
class InsufficientStockException(BadRequestException):
    """Product stock insufficient"""

    def __init__(self, product_name: str, available: int):
        super().__init__(
            detail=f"Insufficient stock for {product_name}. Only {available} available.",
            error_code="INSUFFICIENT_STOCK"
        )


class ProductUnavailableException(BadRequestException):
    """Product is not on sale"""

    def __init__(self, product_name: str):
        super().__init__(
            detail=f"Product {product_name} is no longer available",
            error_code="PRODUCT_UNAVAILABLE"
        )


class EmptyCartException(BadRequestException):
    """Checkout attempted with nothing in the cart"""

    def __init__(self, detail: str = "Cart is empty"):
        super().__init__(
            detail=detail,
            error_code="EMPTY_CART"
        )


class InvalidOrderStateException(BadRequestException):
    """Order status does not allow the requested operation"""

    def __init__(self, detail: str = "Operation not allowed in current order status"):
        super().__init__(
            detail=detail,
            error_code="INVALID_STATE"
        )


class DuplicateResourceException(ConflictException):
    """Resource already exists"""

    def __init__(self, resource: str, field: str, value: str):
        super().__init__(
            detail=f"{resource} with {field} '{value}' already exists",
            error_code="DUPLICATE_RESOURCE"
        )


def _error_body(code: str, message: str) -> Dict[str, Any]:
    return {"error": {"code": code, "message": message}}


async def storefront_exception_handler(request: Request, exc: StorefrontException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(exc.error_code or "ERROR", str(exc.detail)),
        headers=exc.headers,
    )


HTTP_ERROR_CODES = {
    400: "BAD_REQUEST",
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    409: "CONFLICT",
}


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(HTTP_ERROR_CODES.get(exc.status_code, "ERROR"), str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    first = errors[0] if errors else {}
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "Invalid request data")
    if location:
        message = f"{location}: {message}"
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=_error_body("VALIDATION_ERROR", message),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_body("INTERNAL_ERROR", "An internal error occurred"),
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Attach the error-to-response mapping to an application"""
    app.add_exception_handler(StorefrontException, storefront_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
