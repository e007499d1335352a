from __future__ import annotations

import logging
import os
from typing import Any, Dict

import structlog


def configure_logging(service_name: str, level: str | None = None) -> None:
    resolved_level = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    logging.basicConfig(level=getattr(logging, resolved_level, logging.INFO))
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
    )
    get_logger(service_name).info("logging_configured", level=resolved_level)


def log_event(logger: structlog.BoundLogger, event_type: str, payload: Dict[str, Any]) -> None:
    logger.info(event_type, **payload)


def get_logger(service_name: str, **bindings: Any) -> structlog.BoundLogger:
    return structlog.get_logger(service=service_name, **bindings)
