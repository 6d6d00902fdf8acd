"""Logging setup shared by every module of the backend."""
from __future__ import annotations

import logging
from typing import List, Optional

from personal_ai.config import config

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

logger = logging.getLogger("personal_ai")


def setup_logging(level: Optional[str] = None, log_file: Optional[str] = None) -> logging.Logger:
    """Configure the root logger and return the application logger."""
    handlers: List[logging.Handler] = [logging.StreamHandler()]
    log_file = log_file or config.log_file
    if log_file:
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))

    logging.basicConfig(
        level=level or config.log_level,
        format=LOG_FORMAT,
        handlers=handlers,
    )
    return logger
