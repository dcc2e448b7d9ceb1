"""
Configuration settings for the User API
"""

import os
import logging
from pathlib import Path

logger = logging.getLogger(__name__)


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


# Server configuration
HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", 3000))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
SHUTDOWN_TIMEOUT = int(os.getenv("SHUTDOWN_TIMEOUT", 10))

# Redis configuration
REDIS_HOST = os.getenv("REDIS_HOST", "127.0.0.1")
REDIS_PORT = int(os.getenv("REDIS_PORT", 6379))
REDIS_DB = int(os.getenv("REDIS_DB", 0))
REDIS_PASSWORD = os.getenv("REDIS_PASSWORD") or None

# Connection retry strategy: delay = min(attempt * step, cap)
REDIS_MAX_RETRIES = int(os.getenv("REDIS_MAX_RETRIES", 10))
REDIS_RETRY_STEP_MS = int(os.getenv("REDIS_RETRY_STEP_MS", 100))
REDIS_MAX_RETRY_DELAY_MS = int(os.getenv("REDIS_MAX_RETRY_DELAY_MS", 3000))
REDIS_MAX_RETRY_TIME = int(os.getenv("REDIS_MAX_RETRY_TIME", 60 * 60))  # seconds

# Batch multi-field writes into a single MULTI/EXEC transaction
REDIS_ATOMIC_WRITES = _env_bool("REDIS_ATOMIC_WRITES", False)

# Static assets
STATIC_DIR = os.getenv("STATIC_DIR", str(Path(__file__).resolve().parents[2] / "public"))

# CORS settings
ALLOWED_ORIGINS = ["*"]
ALLOWED_METHODS = ["GET", "POST", "PUT", "DELETE"]
ALLOWED_HEADERS = ["Content-Type"]

# Key namespace for user records
USER_KEY_PREFIX = "user:"

if REDIS_PORT <= 0:
    raise ValueError("REDIS_PORT must be a positive integer")

logger.info(f"Redis target: {REDIS_HOST}:{REDIS_PORT}/{REDIS_DB}")
