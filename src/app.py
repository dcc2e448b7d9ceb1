"""
User API Server
Core functionality: user CRUD over a Redis store, health check, discovery
"""

import logging
import os
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from config.settings import ALLOWED_ORIGINS, ALLOWED_METHODS, ALLOWED_HEADERS, STATIC_DIR
from database.connection import StoreClient, StoreConnectionError
from middleware.cors_headers import CORSHeadersMiddleware
from api.routes import health, users
from utils.error_handling import setup_error_handling

logger = logging.getLogger(__name__)


def create_app(store: Optional[StoreClient] = None, static_dir: Optional[str] = STATIC_DIR) -> FastAPI:
    """
    Build the FastAPI application

    Args:
        store: Store client to use; by default one is built from settings
            and connected during startup
        static_dir: Directory served for unmatched paths, skipped if missing
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan manager"""
        client = store or StoreClient.from_settings()
        app.state.store = client
        if store is None:
            try:
                await client.connect()
            except StoreConnectionError as e:
                # Keep serving: store operations fail with 500, /health stays up
                logger.error(f"Failed to connect to Redis: {e}")
        yield
        logger.info("Shutting down, closing store connection")
        await client.close()

    app = FastAPI(
        title="User API",
        description="CRUD API for user records stored in Redis",
        version="1.0.0",
        lifespan=lifespan
    )

    # Store is available before startup for callers that inject their own
    if store is not None:
        app.state.store = store

    app.add_middleware(
        CORSMiddleware,
        allow_origins=ALLOWED_ORIGINS,
        allow_methods=ALLOWED_METHODS,
        allow_headers=ALLOWED_HEADERS,
    )
    app.add_middleware(CORSHeadersMiddleware)

    setup_error_handling(app)

    app.include_router(health.router, tags=["Health"])
    app.include_router(users.router, prefix="/user", tags=["Users"])

    # Mounted last so API routes take precedence
    if static_dir and os.path.isdir(static_dir):
        app.mount("/", StaticFiles(directory=static_dir), name="static")
    else:
        logger.info(f"Static directory not found, skipping: {static_dir}")

    return app


app = create_app()
