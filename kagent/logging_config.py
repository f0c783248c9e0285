"""
Logging configuration for the kagent API server.

Health probes hit the server every few seconds; their access log lines are
filtered out so the real traffic stays readable.
"""

import logging
import logging.config
from typing import Any, Dict

HEALTH_PATHS = ("/health", "/healthz")

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Logger name -> handler it writes through
LOGGER_HANDLERS = {
    "uvicorn": "console",
    "uvicorn.error": "console",
    "uvicorn.access": "access",
    "kagent": "console",
}


class HealthCheckFilter(logging.Filter):
    """Filter to suppress health check endpoint logs."""

    def filter(self, record: logging.LogRecord) -> bool:
        """Drop uvicorn access lines for GET requests on health endpoints."""
        if record.name != "uvicorn.access":
            return True
        message = record.getMessage()
        return not ("GET" in message and any(path in message for path in HEALTH_PATHS))


def _stream_handler(formatter: str, **extra: Any) -> Dict[str, Any]:
    handler = {
        "class": "logging.StreamHandler",
        "formatter": formatter,
        "stream": "ext://sys.stdout",
    }
    handler.update(extra)
    return handler


def get_logging_config(level: str = "INFO") -> Dict[str, Any]:
    """dictConfig for the app and uvicorn at `level`, with health probes muted."""
    level = level.upper()
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {"health_check_filter": {"()": HealthCheckFilter}},
        "formatters": {
            "default": {"format": LOG_FORMAT},
            "access": {"format": "%(message)s"},
        },
        "handlers": {
            "console": _stream_handler("default"),
            "access": _stream_handler("access", filters=["health_check_filter"]),
        },
        "loggers": {
            name: {"handlers": [handler], "level": level, "propagate": False}
            for name, handler in LOGGER_HANDLERS.items()
        },
        "root": {"level": level, "handlers": ["console"]},
    }


def setup_logging(level: str = "INFO") -> None:
    """Apply the logging configuration."""
    logging.config.dictConfig(get_logging_config(level))
