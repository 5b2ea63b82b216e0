"""FastAPI application factory.

Creates and configures the FastAPI application with all routers,
middleware, and exception handlers. Every endpoint lives under /api.
"""

import logging
import sys
from contextlib import asynccontextmanager
from functools import lru_cache
from typing import AsyncGenerator

from fastapi import APIRouter, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from trxsync import __version__
from trxsync.presentation.api.exception_handlers import setup_exception_handlers
from trxsync.presentation.api.routers import (
    accounts_router,
    health_router,
    import_router,
    profiles_router,
)
from trxsync_config.settings import Settings, get_settings

API_PREFIX = "/api"

OPENAPI_TAGS = [
    {
        "name": "Import",
        "description": """Bank to Actual Budget import, streamed as Server-Sent Events.

**How it works:**
1. Loads the profile and the ledger settings
2. Picks the start date from the latest transaction in the ledger account
3. Logs in to the bank (BankID QR code, refreshed while pending)
4. Fetches, deduplicates against the overlap window, and imports
""",
    },
    {
        "name": "Profiles",
        "description": "Import profiles defined in profiles.json.",
    },
    {
        "name": "Accounts",
        "description": "Accounts in the Actual Budget ledger.",
    },
    {
        "name": "Health",
        "description": "Service health monitoring endpoints.",
    },
]


@lru_cache(maxsize=1)
def _configure_logging() -> None:
    """Console logging with timestamps and module names.

    Level comes from settings; noisy HTTP client loggers stay at WARNING.
    """
    settings = get_settings()
    log_level = getattr(logging, settings.log_level.upper(), logging.INFO)

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stdout,
        force=True,
    )

    logging.getLogger("trxsync").setLevel(log_level)
    logging.getLogger("trxsync_config").setLevel(log_level)

    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    settings: Settings = app.state.settings
    logger.info("Starting trxsync API v%s...", __version__)
    if settings.use_mock_services:
        logger.info("Mock services enabled (dry run: %s)", settings.dry_run)
    yield
    logger.info("Shutting down trxsync API...")


def create_api_router() -> APIRouter:
    api_router = APIRouter()
    api_router.include_router(health_router, tags=["Health"])
    api_router.include_router(profiles_router, tags=["Profiles"])
    api_router.include_router(accounts_router, tags=["Accounts"])
    api_router.include_router(import_router, tags=["Import"])
    return api_router


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Parameters
    ----------
    settings
        Optional settings override for testing.

    Returns
    -------
    Configured FastAPI application instance.
    """
    _configure_logging()

    if settings is None:
        settings = get_settings()

    app = FastAPI(
        title=f"{settings.app_name} API",
        description="Imports bank transactions into **Actual Budget**.",
        version=__version__,
        docs_url="/docs" if settings.api_debug else None,
        redoc_url="/redoc" if settings.api_debug else None,
        openapi_url="/openapi.json" if settings.api_debug else None,
        lifespan=lifespan,
        openapi_tags=OPENAPI_TAGS,
    )
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    setup_exception_handlers(app)
    app.include_router(create_api_router(), prefix=API_PREFIX)

    return app
