"""
Structured logging configuration using structlog.

All events go through stdlib logging with a structlog ProcessorFormatter,
so the console renderer and the audit trail share one processor chain.
Movement and order events are emitted on the ``stockledger.audit`` logger;
when ``LEDGER_AUDIT_LOG_PATH`` is set they are also written there as JSON
lines.
"""

import logging
import sys
from pathlib import Path
from typing import Any

import structlog
from structlog.types import Processor

from stockledger.config.settings import get_settings

AUDIT_LOGGER_NAME = "stockledger.audit"

# Float noise such as 0.30000000000000004 kept out of quantity fields
QUANTITY_DIGITS = 6
QUANTITY_KEY_SUFFIXES = ("quantity", "total", "difference", "remaining", "received")


def add_app_context(
    logger: logging.Logger, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """Add application context to log events."""
    settings = get_settings()
    event_dict["app"] = settings.app_name
    event_dict["version"] = settings.app_version
    event_dict["environment"] = settings.environment
    return event_dict


def round_quantities(
    logger: logging.Logger, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """Round float quantity fields so logged ledger values compare cleanly."""
    for key, value in event_dict.items():
        if isinstance(value, float) and key.endswith(QUANTITY_KEY_SUFFIXES):
            event_dict[key] = round(value, QUANTITY_DIGITS)
    return event_dict


def _use_json(log_format: str, environment: str) -> bool:
    if log_format == "auto":
        return environment != "development"
    return log_format == "json"


def _formatter(json_output: bool, pre_chain: list[Processor]) -> logging.Formatter:
    renderer: list[Processor]
    if json_output:
        renderer = [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        renderer = [structlog.dev.ConsoleRenderer(colors=True)]
    return structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=pre_chain,
        processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, *renderer],
    )


def _configure_audit_handler(path: Path | None, pre_chain: list[Processor]) -> None:
    audit = logging.getLogger(AUDIT_LOGGER_NAME)
    for handler in list(audit.handlers):
        audit.removeHandler(handler)
        handler.close()
    if path is None:
        return

    path.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setFormatter(_formatter(json_output=True, pre_chain=pre_chain))
    audit.addHandler(handler)
    audit.setLevel(logging.INFO)


def configure_logging() -> None:
    """Configure structlog for the application."""
    settings = get_settings()

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
        round_quantities,
        add_app_context,
    ]

    structlog.configure(
        processors=shared_processors + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(
        _formatter(_use_json(settings.log_format, settings.environment), shared_processors)
    )
    logging.basicConfig(
        handlers=[console],
        level=getattr(logging, settings.log_level),
        force=True,
    )

    _configure_audit_handler(settings.ledger.audit_log_path, shared_processors)

    # Suppress noisy loggers
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)


def get_audit_logger() -> structlog.stdlib.BoundLogger:
    """Logger for stock movements and order changes."""
    return structlog.get_logger(AUDIT_LOGGER_NAME)
