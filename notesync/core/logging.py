"""
Structured Logging.

Every module logs through structlog loggers obtained from ``get_logger``;
``setup_logging`` routes them through the standard library root logger so
records from httpx, SQLAlchemy and aiosqlite share one output.
Configuration is loaded from config/settings/logging.yaml.

JSON records carry:
    timestamp   - ISO 8601 UTC timestamp
    level       - debug, info, warning, error, critical
    logger      - Module path (e.g., notesync.services.sync)
    event       - Log message
    func_name   - Function that emitted the log
    lineno      - Line number in source file
    source      - Origin context (sync, cli, social, remote, local, internal)
    sync_pass   - Pass identifier, on every record emitted inside a sync pass

Usage:
    from notesync.core.logging import get_logger, log_with_source, setup_logging

    setup_logging()                                  # values from logging.yaml
    setup_logging(level="DEBUG", format_type="console")

    logger = get_logger(__name__)
    logger.info("Message", extra={"key": "value"})
    log_with_source(logger, "sync", "info", "Pass finished", uploaded=3)

    with sync_context(user_id="u1", explicit=True):
        ...                                          # records gain sync_pass, user_id

Log File:
    logs/system.jsonl: every record, filter on the 'source' field
"""

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from logging.handlers import RotatingFileHandler
from typing import Any
from uuid import uuid4

import structlog
from structlog.typing import Processor

from notesync.core.config import find_project_root, load_yaml_config

VALID_SOURCES = frozenset({
    "cli",
    "sync",
    "social",
    "remote",
    "local",
    "internal",
    "unknown",
})
"""Log source values. Callers always pass one explicitly."""

_QUIET_LIBRARIES = ("httpx", "sqlalchemy.engine", "aiosqlite")

_logging_config: dict[str, Any] | None = None


def _load_logging_config() -> dict[str, Any]:
    """
    Read logging.yaml once per process.

    Raises:
        FileNotFoundError: If logging.yaml does not exist
    """
    global _logging_config
    if _logging_config is None:
        _logging_config = load_yaml_config("logging.yaml")
    return _logging_config


def _shared_processors() -> list[Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
        structlog.processors.CallsiteParameterAdder(
            parameters=[
                structlog.processors.CallsiteParameter.FUNC_NAME,
                structlog.processors.CallsiteParameter.LINENO,
            ],
        ),
    ]


def _formatter(renderer: Processor, chain: list[Processor]) -> logging.Formatter:
    return structlog.stdlib.ProcessorFormatter(processor=renderer, foreign_pre_chain=chain)


def _file_handler(file_config: dict[str, Any], formatter: logging.Formatter) -> logging.Handler:
    log_path = find_project_root() / file_config["path"]
    log_path.parent.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        filename=str(log_path),
        maxBytes=file_config["max_bytes"],
        backupCount=file_config["backup_count"],
        encoding="utf-8",
    )
    handler.setFormatter(formatter)
    return handler


def setup_logging(
    level: str | None = None,
    format_type: str | None = None,
    enable_console: bool | None = None,
    enable_file_logging: bool | None = None,
) -> None:
    """
    Configure structlog and the root logger.

    Arguments left as None take their value from logging.yaml. The file
    handler always writes JSON; the console follows ``format_type``.
    Calling this again replaces the previous handlers.
    """
    config = _load_logging_config()
    handlers = config["handlers"]
    level = level if level is not None else config["level"]
    format_type = format_type if format_type is not None else config["format"]
    if enable_console is None:
        enable_console = handlers["console"]["enabled"]
    if enable_file_logging is None:
        enable_file_logging = handlers["file"]["enabled"]

    chain = _shared_processors()
    structlog.configure(
        processors=chain + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    json_formatter = _formatter(structlog.processors.JSONRenderer(), chain)

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    if enable_console:
        console_handler = logging.StreamHandler(sys.stderr)
        if format_type == "console":
            console_handler.setFormatter(
                _formatter(structlog.dev.ConsoleRenderer(colors=True), chain)
            )
        else:
            console_handler.setFormatter(json_formatter)
        root_logger.addHandler(console_handler)

    if enable_file_logging:
        root_logger.addHandler(_file_handler(handlers["file"], json_formatter))

    for name in _QUIET_LIBRARIES:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> Any:
    """structlog logger for a module, typically ``get_logger(__name__)``."""
    return structlog.get_logger(name)


def log_with_source(logger: Any, source: str, level: str, message: str, **kwargs: Any) -> None:
    """
    Log a message tagged with where it came from.

    Sources outside VALID_SOURCES are recorded as "unknown".

    Raises:
        AttributeError: If level is not a log level method of the logger

    Example:
        log_with_source(logger, "sync", "info", "Categories deduplicated", removed=2)
    """
    log_method = getattr(logger, level.lower())
    if source not in VALID_SOURCES:
        source = "unknown"
    log_method(message, source=source, **kwargs)


@contextmanager
def sync_context(**fields: Any) -> Iterator[str]:
    """
    Bind a fresh sync pass identifier, plus any fields, to every record
    logged inside the block, across awaits.

    Yields:
        The pass identifier
    """
    pass_id = uuid4().hex[:12]
    with structlog.contextvars.bound_contextvars(sync_pass=pass_id, **fields):
        yield pass_id
