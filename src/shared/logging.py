"""
Logging Configuration - Shared Layer

Structlog is bridged onto the standard logging module so that application
events, uvicorn access logs and TensorFlow warnings share one formatter.
"""

import logging
import os
import sys
from typing import Any, List, Optional

import structlog
from structlog.types import Processor

from src.shared.consts import EnumEnvironment

# Libraries that log heavily at INFO while a model trains.
NOISY_LOGGERS = ("tensorflow", "absl", "h5py", "matplotlib")


def _enum_value(value: Any) -> Any:
    return value.value if hasattr(value, "value") else value


def _shared_processors() -> List[Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]


def configure_logging(
    level: Optional[str] = None,
    file_path: Optional[str] = None,
    environment: str = "development",
    json_logs: Optional[bool] = None,
) -> None:
    """
    Configure structlog and the standard logging handlers.

    Called once at import time of the application with environment
    defaults, then again through ``update_logging_from_settings`` when the
    settings are loaded.

    Args:
        level: Log level name, defaults to ``LOG_LEVEL`` or INFO
        file_path: Optional log file, defaults to ``LOG_FILE_PATH``
        environment: Application environment name
        json_logs: Force JSON output; by default only production uses it
    """
    log_level = (level or os.environ.get("LOG_LEVEL") or "INFO").upper()
    log_file = file_path or os.environ.get("LOG_FILE_PATH")
    numeric_level = getattr(logging, log_level, logging.INFO)

    if json_logs is None:
        json_logs = str(environment).lower() == EnumEnvironment.PRODUCTION.value

    renderer: Processor
    if json_logs:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    formatter = structlog.stdlib.ProcessorFormatter(
        processor=renderer,
        foreign_pre_chain=[
            *_shared_processors(),
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
        ],
    )

    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))
    for handler in handlers:
        handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        handler.close()
    root_logger.handlers = handlers
    root_logger.setLevel(numeric_level)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(numeric_level, logging.WARNING))

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *_shared_processors(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    get_logger(__name__).debug(
        "logging.configured", level=log_level, file_path=log_file, json=json_logs
    )


def update_logging_from_settings(settings: Any) -> None:
    """
    Reconfigure logging from the loaded application settings.

    Args:
        settings: Object exposing ``logging.level``, ``logging.file_path``,
            ``logging.json_logs`` (optional) and ``environment``
    """
    logging_settings = settings.logging
    configure_logging(
        level=_enum_value(logging_settings.level),
        file_path=logging_settings.file_path,
        environment=_enum_value(settings.environment),
        json_logs=getattr(logging_settings, "json_logs", None),
    )
    get_logger(__name__).info(
        "logging.updated_from_settings",
        level=_enum_value(logging_settings.level),
        environment=_enum_value(settings.environment),
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structlog logger configured for the project."""
    return structlog.get_logger(name)
