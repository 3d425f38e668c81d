# infrastructure/logging/log_setup.py
import sys
from typing import Any, Optional

from loguru import logger

LOG_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {message} | {extra}"


def setup_console_logging(level: str = "INFO", sink: Optional[Any] = None) -> None:
    """Replace loguru's default handler with a single console sink."""
    logger.remove()
    logger.add(sink or sys.stderr, level=level.upper(), format=LOG_FORMAT)
