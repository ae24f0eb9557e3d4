"""Selects and opens the configured backend adapter."""

import logging
from typing import Optional

from fastapi import Request

from ..core import config, errors
from .base import BackendAdapter
from .document import DocumentBackend, DocumentStoreConnection
from .relational import RelationalBackend

logger = logging.getLogger(__name__)

BACKEND_KINDS = ("relational", "document")


async def open_backend(kind: Optional[str] = None) -> BackendAdapter:
    """Opens the adapter named by `kind`, or by DATA_BACKEND when omitted.

    The caller owns the returned adapter and must `close()` it.
    """
    kind = (kind or config.DATA_BACKEND).lower()
    if kind == "relational":
        backend = await RelationalBackend.connect(
            config.DATABASE_URL, generate_schemas=config.GENERATE_SCHEMAS
        )
    elif kind == "document":
        connection = DocumentStoreConnection(
            config.MONGODB_CONNECTION_STRING, config.MONGODB_DATABASE
        )
        backend = DocumentBackend(await connection.open())
    else:
        raise ValueError(f"Unknown DATA_BACKEND '{kind}'; expected one of {', '.join(BACKEND_KINDS)}")
    logger.info(f"Using the {backend.name} backend.")
    return backend


class BackendSession:
    """Async context manager around `open_backend` for scripts and the CLI."""

    def __init__(self, kind: Optional[str] = None):
        self.kind = kind
        self.backend: Optional[BackendAdapter] = None

    async def __aenter__(self) -> BackendAdapter:
        self.backend = await open_backend(self.kind)
        return self.backend

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if self.backend is not None:
            await self.backend.close()
            self.backend = None


def get_backend(request: Request) -> BackendAdapter:
    backend = getattr(request.app.state, "backend", None)
    if backend is None:
        raise errors.BackendConnectionError("No backend is configured.")
    return backend
