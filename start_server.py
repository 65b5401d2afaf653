#!/usr/bin/env python3
"""
Startup script for the Task Manager API
"""

import logging
import os

import uvicorn
from dotenv import load_dotenv

from app.config.logging_config import setup_logging

logger = logging.getLogger(__name__)


def main():
    load_dotenv()
    setup_logging()

    host = os.getenv("HOST", "0.0.0.0")
    port = int(os.getenv("PORT", "8000"))
    reload = os.getenv("RELOAD", "false").lower() == "true"

    logger.info(f"Starting Task Manager API on {host}:{port} (reload={reload})")

    uvicorn.run(
        "main:app",
        host=host,
        port=port,
        reload=reload,
        log_level=os.getenv("LOG_LEVEL", "info").lower(),
    )


if __name__ == "__main__":
    main()
