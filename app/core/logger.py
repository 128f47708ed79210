# /app/core/logger.py

"""
loguru setup: one rotating file per level under LOG_DIR, each file holding
only its own level. Set LOG_TO_FILES=false (the test suite does) to keep
loguru's default stderr sink only.
"""

import os
from loguru import logger

from app.core.config import LOG_DIR, LOG_LEVEL, LOG_TO_FILES

LOGS_LEVELS = ["DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"]
LOG_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level} | {name}:{line} | {message}"


def _add_level_sink(level: str):
    logger.add(
        os.path.join(LOG_DIR, f"{level.lower()}.log"),
        format=LOG_FORMAT,
        level=level,
        rotation="100 MB",
        retention="7 days",
        compression="zip",
        enqueue=True,
        filter=lambda record, lvl=level: record["level"].name == lvl,
    )


if LOG_TO_FILES:
    os.makedirs(LOG_DIR, exist_ok=True)
    min_level = logger.level(LOG_LEVEL).no
    for level in LOGS_LEVELS:
        if logger.level(level).no >= min_level:
            _add_level_sink(level)
