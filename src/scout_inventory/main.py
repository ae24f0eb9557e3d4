import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from .backends.factory import open_backend
from .core import config
from .core.errors import register_exception_handlers
from .core.logging_config import setup_logging
from .features.auth.router import profiles_router, router as auth_router
from .features.inventory.router import router as inventory_router
from .features.requests.router import router as requests_router
from .features.withdrawals.router import router as withdrawals_router

logger = logging.getLogger("scout_inventory.main")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan context manager.

    Opens the configured backend once on startup and closes it on shutdown;
    request handlers reach it through `app.state.backend`.
    """
    setup_logging()
    logger.info("Starting application...")
    app.state.backend = await open_backend()

    yield

    await app.state.backend.close()
    app.state.backend = None
    logger.info("Application stopped.")


app = FastAPI(
    title="Scout Inventory API",
    description="Troop inventory, item requests and stock withdrawals.",
    version="0.1.0",
    lifespan=lifespan,
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ALLOW_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)
register_exception_handlers(app)


@app.get("/")
async def read_root(request: Request):
    """
    Root endpoint for the API.
    """
    client_host = request.client.host if request.client else "unknown client"
    logger.info(f"Root endpoint '/' accessed by {client_host}")
    return {"message": "Welcome to the Scout Inventory API!"}


app.include_router(inventory_router)
app.include_router(requests_router)
app.include_router(withdrawals_router)
app.include_router(auth_router)
app.include_router(profiles_router)
