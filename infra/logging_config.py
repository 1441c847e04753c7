# infra/logging_config.py
from __future__ import annotations
import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path

from infra.path import log_dir
from infra.operational_support import TraceIdLogFilter

_FILE_FORMAT = "%(asctime)s [%(levelname)s] trace=%(trace_id)s %(name)s - %(message)s"
_CONSOLE_FORMAT = "%(levelname)s [trace=%(trace_id)s]: %(message)s"


def setup_logging(
    directory: Path | None = None,
    *,
    level: int | str | None = None,
    console: bool = True,
) -> Path:
    """
    Configure root logging for the engine.

    Records go to a rotating file in the per-user data directory and,
    optionally, to the console. Every record carries the trace id bound with
    ``infra.operational_support.bind_trace_id``. Returns the log file path.
    """
    target_dir: Path = directory or log_dir()
    target_dir.mkdir(parents=True, exist_ok=True)
    log_file = target_dir / "capacity.log"

    resolved_level = level or (os.getenv("CAPACITY_LOG_LEVEL") or "INFO").strip().upper()

    logger = logging.getLogger()
    logger.setLevel(resolved_level)

    # Re-running setup must not stack duplicate handlers
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    trace_filter = TraceIdLogFilter()

    file_handler = RotatingFileHandler(
        log_file,
        maxBytes=1_000_000,  # 1 MB per file
        backupCount=5,
        encoding="utf-8",
    )
    file_handler.addFilter(trace_filter)
    file_handler.setFormatter(logging.Formatter(_FILE_FORMAT))
    logger.addHandler(file_handler)

    if console:
        stream = logging.StreamHandler()
        stream.addFilter(trace_filter)
        stream.setFormatter(logging.Formatter(_CONSOLE_FORMAT))
        logger.addHandler(stream)

    logger.info("Logging initialized. Log file at %s", log_file)
    return log_file


__all__ = ["setup_logging"]
