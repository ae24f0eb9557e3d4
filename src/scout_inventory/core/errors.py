"""Error taxonomy shared by the repositories, the backend adapters and the HTTP layer."""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class InventoryError(Exception):
    """Base class for every error the data layer reports to its callers."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(InventoryError):
    """Caller-supplied data violates a domain or shape rule. Fix and resubmit."""

    status_code = 422


class NotFoundError(InventoryError):
    """The referenced id does not exist (any more). Refresh the list view."""

    status_code = status.HTTP_404_NOT_FOUND


class BackendConnectionError(InventoryError):
    """The backend could not be reached. Safe to retry manually."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


class AuthorizationError(InventoryError):
    """The caller's role does not allow the operation."""

    status_code = status.HTTP_403_FORBIDDEN


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(InventoryError)
    async def inventory_error_handler(request: Request, exc: InventoryError):
        if isinstance(exc, BackendConnectionError):
            logger.error(f"Backend unavailable during {request.method} {request.url.path}: {exc.message}")
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        parts = []
        for error in exc.errors():
            location = ".".join(str(part) for part in error["loc"] if part != "body") or "body"
            parts.append(f"{location}: {error['msg']}")
        return JSONResponse(
            status_code=422,
            content={"error": "; ".join(parts)},
        )
