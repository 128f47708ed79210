# /app/core/config.py

"""
Central place for environment-driven settings. Values are read once at import
time, after `.env` has been loaded, so every module sees the same configuration.
"""

import os
from dotenv import load_dotenv

load_dotenv()

PROJECT_NAME = os.getenv("PROJECT_NAME", "LP Tracker Backend")

# The second argument is a default value for local development.
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./lp_tracker.db")

# How long an admin/teacher dashboard snapshot may be served from memory.
DASHBOARD_CACHE_TTL_SECONDS = int(os.getenv("DASHBOARD_CACHE_TTL_SECONDS", "60"))

LOG_DIR = os.getenv("LOG_DIR", "logs")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_TO_FILES = os.getenv("LOG_TO_FILES", "true").lower() in ("1", "true", "yes")

CORS_ORIGINS = [origin.strip() for origin in os.getenv("CORS_ORIGINS", "*").split(",") if origin.strip()]
