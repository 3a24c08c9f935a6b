"""Logging for the storefront service.

Records go through stdlib logging so that Protean, uvicorn and our own
structlog loggers share one set of handlers. structlog renders JSON in
production and staging, a Rich console view everywhere else.

Environment:
    ENV / ENVIRONMENT / PROTEAN_ENV   picks the environment (first one set wins)
    LOG_LEVEL                        overrides the level derived from it
    STOREFRONT_LOG_DIR               directory for the rotating files ("logs")

Under the ``test`` environment only the console handler is installed.
"""

import logging
import logging.handlers
import os
import sys
from pathlib import Path

import structlog

_LEVELS_BY_ENV = {
    "production": "INFO",
    "staging": "INFO",
    "development": "DEBUG",
    "test": "WARNING",
}

_JSON_ENVIRONMENTS = ("production", "staging")

_QUIET_LOGGERS = ("protean", "urllib3", "asyncio", "uvicorn.access")

# Keys whose values are customer phone numbers
_PHONE_KEYS = ("phone", "customer_phone")

_MAX_BYTES = 10 * 1024 * 1024
_BACKUPS = 5


def current_environment() -> str:
    return (os.getenv("ENV") or os.getenv("ENVIRONMENT") or os.getenv("PROTEAN_ENV") or "development").lower()


def get_log_level() -> str:
    return os.getenv("LOG_LEVEL", _LEVELS_BY_ENV.get(current_environment(), "INFO")).upper()


def mask_phone_numbers(_, __, event_dict):
    """Keep only the last four digits of customer phone numbers."""
    for key in _PHONE_KEYS:
        value = event_dict.get(key)
        if isinstance(value, str) and len(value) > 4:
            event_dict[key] = "*" * (len(value) - 4) + value[-4:]
    return event_dict


def _rotating_file(path: Path, level) -> logging.Handler:
    handler = logging.handlers.RotatingFileHandler(
        filename=path, maxBytes=_MAX_BYTES, backupCount=_BACKUPS, encoding="utf-8"
    )
    handler.setLevel(level)
    return handler


def _handlers(environment: str, level: str, log_dir: str) -> list[logging.Handler]:
    console = logging.StreamHandler(sys.stdout)
    console.setLevel(level)
    if environment == "test":
        return [console]

    directory = Path(log_dir)
    directory.mkdir(parents=True, exist_ok=True)
    return [
        console,
        _rotating_file(directory / "storefront.log", level),
        _rotating_file(directory / "storefront_error.log", logging.ERROR),
    ]


def _processors(json_output: bool) -> list:
    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        mask_phone_numbers,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]
    if json_output:
        processors.append(
            structlog.processors.CallsiteParameterAdder(
                parameters=[
                    structlog.processors.CallsiteParameter.MODULE,
                    structlog.processors.CallsiteParameter.LINENO,
                ]
            )
        )
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(
            structlog.dev.ConsoleRenderer(
                colors=True,
                exception_formatter=structlog.dev.RichTracebackFormatter(show_locals=False, max_frames=3),
            )
        )
    return processors


def configure_logging(log_dir: str | None = None) -> None:
    """Install the handlers and the structlog pipeline for this process."""
    environment = current_environment()
    level = get_log_level()

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers = _handlers(environment, level, log_dir or os.getenv("STOREFRONT_LOG_DIR", "logs"))
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    structlog.configure(
        processors=_processors(json_output=environment in _JSON_ENVIRONMENTS),
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


def bind_request_context(**values) -> None:
    """Attach ``values`` to every record logged while handling the current request."""
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(**values)


def clear_request_context() -> None:
    structlog.contextvars.clear_contextvars()
