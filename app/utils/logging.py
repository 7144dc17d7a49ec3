from __future__ import annotations

import inspect
import json
import logging
import sys
from typing import Any

from loguru import logger

from app.core.config import settings

_DEBUG_CHANNEL = "linkedin_debug"
_debug_sink_path: str | None = None


class InterceptHandler(logging.Handler):
    """Forward stdlib logging records (uvicorn, sqlalchemy) to loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        frame, depth = inspect.currentframe(), 0
        while frame and (depth == 0 or frame.f_code.co_filename == logging.__file__):
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def setup_logging(log_file: str) -> None:
    logger.remove()
    logger.add(
        sys.stderr,
        level="DEBUG" if settings.is_dev else "INFO",
        filter=lambda record: _DEBUG_CHANNEL not in record["extra"],
    )
    logger.add(
        log_file,
        level="INFO",
        rotation="10 MB",
        retention=5,
        filter=lambda record: _DEBUG_CHANNEL not in record["extra"],
    )

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        std_logger = logging.getLogger(name)
        std_logger.handlers = [InterceptHandler()]
        std_logger.propagate = False


def _ensure_debug_sink() -> None:
    global _debug_sink_path  # noqa: PLW0603

    if _debug_sink_path == settings.linkedin_log_path:
        return
    logger.add(
        settings.linkedin_log_path,
        format="[{time:YYYY-MM-DDTHH:mm:ssZZ}] {message}",
        filter=lambda record: record["extra"].get(_DEBUG_CHANNEL) is True,
        catch=True,
    )
    _debug_sink_path = settings.linkedin_log_path


def debug_log(step: str, **ctx: Any) -> None:
    """Write a step of the login flow to the diagnostic log.

    Does nothing unless ``linkedin_debug`` is enabled, and never raises.
    """
    if not settings.linkedin_debug:
        return
    try:
        _ensure_debug_sink()
        line = step
        if ctx:
            line += " | " + json.dumps(ctx, ensure_ascii=False, default=str)
        logger.bind(**{_DEBUG_CHANNEL: True}).info(line)
    except Exception:  # noqa: BLE001
        pass
