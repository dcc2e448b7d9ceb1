"""
Entry point for the User API
"""

import sys
import os
import logging
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# Add src directory to Python path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), 'src'))

from config.settings import HOST, PORT, LOG_LEVEL, SHUTDOWN_TIMEOUT

# Configure logging
logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s"
)
logger = logging.getLogger(__name__)

# Import the FastAPI application
from app import app


def main():
    import uvicorn
    logger.info(f"Starting User API on port {PORT}")
    # uvicorn handles SIGTERM/SIGINT: stop accepting, drain in-flight
    # requests, then run the lifespan shutdown that closes the store
    uvicorn.run(
        app,
        host=HOST,
        port=PORT,
        timeout_graceful_shutdown=SHUTDOWN_TIMEOUT,
        log_level=LOG_LEVEL.lower()
    )
    logger.info("Server closed")


if __name__ == "__main__":
    main()
