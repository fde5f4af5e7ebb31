"""Structured logging setup (structlog on top of stdlib handlers)"""

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Optional

import structlog

_HANDLER_MARK = "_docsite_handler"


def _shared_processors() -> list:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]


def setup_logger(
    log_level: str = "INFO",
    log_format: str = "json",
    file_path: Optional[str] = None,
    max_bytes: int = 10485760,
    backup_count: int = 5,
) -> None:
    """
    Configure structlog and the root stdlib logger.

    Args:
        log_level: Minimum level name (DEBUG, INFO, ...)
        log_format: "json" for machine-readable lines, anything else for console output
        file_path: Optional path of a rotating log file
        max_bytes: Rotate the file after this many bytes
        backup_count: Number of rotated files to keep
    """
    if log_format == "json":
        final_processors = [
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.dict_tracebacks,
            structlog.processors.JSONRenderer(),
        ]
    else:
        final_processors = [
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.dev.ConsoleRenderer(colors=False),
        ]

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=_shared_processors(),
        processors=final_processors,
    )

    root = logging.getLogger()
    # Drop handlers from a previous setup_logger call
    for handler in list(root.handlers):
        if getattr(handler, _HANDLER_MARK, False):
            root.removeHandler(handler)
            handler.close()

    stream_handler = logging.StreamHandler(sys.stderr)
    stream_handler.setFormatter(formatter)
    setattr(stream_handler, _HANDLER_MARK, True)
    root.addHandler(stream_handler)

    if file_path:
        log_path = Path(file_path)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_path,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setFormatter(formatter)
        setattr(file_handler, _HANDLER_MARK, True)
        root.addHandler(file_handler)

    root.setLevel(log_level.upper())

    structlog.configure(
        processors=_shared_processors() + [
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )


def get_logger(name: Optional[str] = None):
    """Return a structlog logger bound to the given module name"""
    return structlog.get_logger(name)
