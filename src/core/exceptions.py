"""Custom exception classes for the catalog backend.

This module defines application-specific exceptions and the handlers that
translate them into JSON error responses of the form ``{message, error?}``.
"""

import logging
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pymongo.errors import PyMongoError
from starlette.exceptions import HTTPException

logger = logging.getLogger(__name__)


class CatalogError(Exception):
    """Base exception for all request-level catalog errors."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Server error"

    def __init__(self, message: Optional[str] = None, error: Optional[str] = None):
        """Initialize the exception.

        Args:
            message: Human readable message returned to the caller.
            error: Optional detail, returned under the ``error`` key.
        """
        self.message = message or self.default_message
        self.error = error
        super().__init__(self.message)

    def to_dict(self) -> dict:
        body = {"message": self.message}
        if self.error:
            body["error"] = self.error
        return body


class BadRequestError(CatalogError):
    """Raised when input is missing or malformed."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Bad request"


class UnauthenticatedError(CatalogError):
    """Raised when a credential is missing, invalid or expired."""

    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Authentication required"


class ForbiddenError(CatalogError):
    """Raised when a valid credential lacks the required role."""

    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Access denied"


class NotFoundError(CatalogError):
    """Raised when a well-formed identifier matches no record."""

    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


class ConflictError(CatalogError):
    """Raised when a unique key is already taken."""

    status_code = status.HTTP_409_CONFLICT
    default_message = "Conflict"


class ServerError(CatalogError):
    """Raised on unexpected failures, including upstream ones."""

    pass


class MediaUploadError(ServerError):
    """Raised when the media host rejects or fails an upload."""

    default_message = "Image upload failed"


class UserAlreadyExistsError(ConflictError):
    """Raised when registering a username that is already taken."""

    def __init__(self, username: str):
        self.username = username
        super().__init__("Username already exists")


class InvalidProductIdError(BadRequestError):
    """Raised when a product id is not a valid ObjectId."""

    def __init__(self, product_id: str):
        self.product_id = product_id
        super().__init__("Invalid product ID format")


class ProductNotFoundError(NotFoundError):
    """Raised when a requested product cannot be found."""

    def __init__(self, product_id: str):
        self.product_id = product_id
        super().__init__("Product not found")


class ConfigurationError(Exception):
    """Raised when there is a configuration error at startup."""

    pass


async def _catalog_error_handler(request: Request, exc: CatalogError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def _validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    details = "; ".join(
        f"{'.'.join(str(part) for part in err.get('loc', ()))}: {err.get('msg')}"
        for err in exc.errors()
    )
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"message": "Invalid request", "error": details},
    )


async def _http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


async def _store_error_handler(request: Request, exc: PyMongoError) -> JSONResponse:
    logger.exception("Database error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"message": "Server error", "error": str(exc)},
    )


async def _unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"message": "Server error", "error": str(exc)},
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Install the JSON error translation on an application.

    Args:
        app: The FastAPI application.
    """
    app.add_exception_handler(CatalogError, _catalog_error_handler)
    app.add_exception_handler(RequestValidationError, _validation_error_handler)
    app.add_exception_handler(HTTPException, _http_exception_handler)
    app.add_exception_handler(PyMongoError, _store_error_handler)
    app.add_exception_handler(Exception, _unexpected_error_handler)
