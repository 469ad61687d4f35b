"""Logging configuration for Forms Sync."""

import logging
import sys

# Pagination, merge and file-write progress
PIPELINE_LOGGERS = ("app.services.sync", "app.services.sync_service")

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _parse_level(level: str | None, default: int) -> int:
    if not level:
        return default
    value = logging.getLevelName(level.strip().upper())
    return value if isinstance(value, int) else default


def configure_logging(level: str = "INFO", sync_level: str | None = None) -> None:
    """
    Send all logging to stdout with one handler on the root logger.

    `level` applies to the whole application. `sync_level` overrides it
    for the sync pipeline only, so a refresh can be traced at DEBUG
    without turning up every other logger. Unknown level names fall back
    to INFO (or to `level` for the pipeline).
    """
    root_level = _parse_level(level, logging.INFO)
    pipeline_level = _parse_level(sync_level, root_level)

    root_logger = logging.getLogger()
    root_logger.setLevel(root_level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    # The handler passes everything; loggers decide what is emitted
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    root_logger.addHandler(handler)

    for name in PIPELINE_LOGGERS:
        logging.getLogger(name).setLevel(pipeline_level)

    # Per-request HTTP chatter from the client library
    for name in ("httpx", "httpcore"):
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger(__name__).info(
        "Logging configured: root=%s, sync pipeline=%s",
        logging.getLevelName(root_level),
        logging.getLevelName(pipeline_level),
    )
