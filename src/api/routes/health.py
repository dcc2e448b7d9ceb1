"""
Health check and discovery API routes
"""

import time
from datetime import datetime, timezone
from fastapi import APIRouter, Depends

from database.connection import StoreClient, get_store

router = APIRouter()

# Process start, used for uptime reporting
STARTED_AT = time.monotonic()

ENDPOINTS = {
    "health": "/health",
    "listUsers": "GET /user",
    "createUser": "POST /user",
    "getUser": "GET /user/:username",
    "updateUser": "PUT /user/:username",
    "deleteUser": "DELETE /user/:username",
}


@router.get("/health")
async def health_check(store: StoreClient = Depends(get_store)):
    """
    Health check - always reports healthy while the process is serving

    Store connectivity is included for monitoring but does not change the
    status code.
    """
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        "uptime": time.monotonic() - STARTED_AT,
        "store": "connected" if await store.ping() else "disconnected",
    }


@router.get("/")
async def root():
    """Discovery document listing the available endpoints"""
    return {
        "message": "User API",
        "endpoints": ENDPOINTS,
    }
