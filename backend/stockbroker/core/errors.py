"""
Application exceptions and their HTTP rendering.

Every user-facing failure is a DashboardError subclass; the handlers
registered by `install_error_handlers` turn them, and malformed requests,
into JSON responses of one shape.
"""

from typing import Any, Dict, Optional
import logging

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class DashboardError(Exception):
    """Base exception for all StockBroker Pro errors."""

    status_code = 400

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        original_exception: Optional[Exception] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__.lower()
        self.details = details or {}
        self.original_exception = original_exception

    def to_dict(self) -> Dict[str, Any]:
        result = {
            "error": self.message,
            "code": self.code,
            "type": self.__class__.__name__,
        }
        if self.details:
            result["details"] = self.details
        return result


class ValidationFailed(DashboardError):
    """Raised when user input is empty or malformed."""


class InvalidCredentials(DashboardError):
    status_code = 401


class SessionRequired(DashboardError):
    status_code = 401

    def __init__(self, message: str = "Please login to continue"):
        super().__init__(message, code="session_required")


class AccountNotFound(DashboardError):
    status_code = 404


class AccountExists(DashboardError):
    status_code = 409


class AlreadySubscribed(DashboardError):
    status_code = 409


class StorageError(DashboardError):
    """Raised when the key-value store cannot be read, parsed or written."""

    status_code = 503


async def _dashboard_error_handler(request: Request, exc: DashboardError) -> JSONResponse:
    if exc.original_exception is not None:
        logger.error("%s %s failed: %s (%s)", request.method, request.url.path,
                     exc.message, exc.original_exception)
    else:
        logger.info("%s %s rejected: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def _request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.info("%s %s rejected: malformed request", request.method, request.url.path)
    return JSONResponse(
        status_code=422,
        content={
            "error": "The request is missing fields or has values of the wrong type",
            "code": "invalid_request",
            "type": "RequestValidationError",
            "details": {"errors": jsonable_encoder(exc.errors())},
        },
    )


def install_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(DashboardError, _dashboard_error_handler)
    app.add_exception_handler(RequestValidationError, _request_validation_handler)
