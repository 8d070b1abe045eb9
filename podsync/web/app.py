"""
FastAPI web application exposing the gpodder-compatible sync API.

Wires configuration, the database and the sync core into the routers. Each
request runs its core call in a worker thread so the event loop never
blocks on database I/O.
"""

import logging
import os
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address

from podsync.config import Config
from podsync.db.database import Database
from podsync.db.factory import create_database_from_config
from podsync.db.subscription_store import SubscriptionStore
from podsync.sync.accounts import AccountService
from podsync.sync.group_manager import SyncGroupManager
from podsync.sync.reconciler import ChangeReconciler
from podsync.web.device_routes import router as device_router
from podsync.web.errors import register_error_handlers
from podsync.web.subscription_routes import router as subscription_router
from podsync.web.sync_routes import router as sync_router

# Configure logging
log_level = os.environ.get("LOG_LEVEL", "INFO").upper()
logging.basicConfig(
    level=getattr(logging, log_level, logging.INFO),
    format="%(asctime)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


def create_app(config: Optional[Config] = None, database: Optional[Database] = None) -> FastAPI:
    """
    Build the FastAPI application.

    Parameters:
        config: Application configuration; loaded from the environment if omitted.
        database: Database to use; created from `config` if omitted.

    Returns:
        FastAPI: The configured application. Tables and the bootstrap account
        are created when the application starts.
    """
    config = config or Config()
    database = database or create_database_from_config(config)

    store = SubscriptionStore(database)
    accounts = AccountService(database)

    @asynccontextmanager
    async def lifespan(_app: FastAPI):
        """
        FastAPI lifespan context manager.

        Creates missing tables and the bootstrap account on startup and
        releases database connections on shutdown.
        """
        database.create_tables()
        if config.ADMIN_USERNAME:
            accounts.ensure_user(config.ADMIN_USERNAME)
            logger.info(f"Bootstrap account ready: {config.ADMIN_USERNAME}")
        logger.info(f"Application started on database {config.database_location}")

        yield

        database.close()
        logger.info("Application shutdown")

    app = FastAPI(
        title="podsync",
        description="gpodder-compatible podcast subscription and device sync service",
        version="1.0.0",
        lifespan=lifespan,
    )

    # Rate limiting applies to every route through the middleware
    limiter = Limiter(key_func=get_remote_address, default_limits=[config.WEB_RATE_LIMIT])
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.add_middleware(SlowAPIMiddleware)

    # CORS middleware (configurable via environment variable)
    allowed_origins = config.WEB_ALLOWED_ORIGINS.split(",") if config.WEB_ALLOWED_ORIGINS != "*" else ["*"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_error_handlers(app)

    # Store config and services in app state for access in routes
    app.state.config = config
    app.state.database = database
    app.state.accounts = accounts
    app.state.reconciler = ChangeReconciler(store)
    app.state.sync_manager = SyncGroupManager(database)

    app.include_router(subscription_router)
    app.include_router(sync_router)
    app.include_router(device_router)

    @app.get("/health")
    async def health_check():
        """Health check endpoint to verify the API is running."""
        return {"status": "healthy"}

    return app


def main():
    """Run the API server with uvicorn."""
    import uvicorn

    config = Config()
    uvicorn.run(
        "podsync.web.app:create_app",
        factory=True,
        host="0.0.0.0",
        port=config.WEB_PORT,
        log_level=config.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    main()
