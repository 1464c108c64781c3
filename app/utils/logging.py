# =============================================
# File: app/utils/logging.py
# Purpose: loguru sink for service diagnostics (gate decisions, refilter leaks, catalog refreshes)
# =============================================
import os

from loguru import logger

LOG_FILE = os.getenv("LOG_FILE", "logs/app.log")

logger.add(LOG_FILE, rotation="10 MB", level=os.getenv("LOG_LEVEL", "INFO").upper())
