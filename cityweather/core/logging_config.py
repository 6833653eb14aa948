"""JSON logging for the API process and the refresh worker."""

from __future__ import annotations

import logging
from typing import IO, Optional

from pythonjsonlogger import jsonlogger

from cityweather.core.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(threadName)s %(message)s %(service)s"

# httpx logs every request URL at INFO, and the URL carries the API key.
_NOISY_LOGGERS = ("httpx", "httpcore")

_CONFIGURED = False


class _ServiceNameFilter(logging.Filter):
    def __init__(self, service_name: str) -> None:
        super().__init__()
        self.service_name = service_name

    def filter(self, record: logging.LogRecord) -> bool:
        record.service = self.service_name
        return True


def build_handler(service_name: str, stream: Optional[IO[str]] = None) -> logging.Handler:
    """Stream handler emitting one JSON object per record, tagged with the service."""

    handler = logging.StreamHandler(stream)
    handler.setFormatter(jsonlogger.JsonFormatter(LOG_FORMAT))
    handler.addFilter(_ServiceNameFilter(service_name))
    return handler


def setup_logging(service_name: Optional[str] = None, level: Optional[str] = None) -> None:
    """Route the root logger through a single JSON handler.

    The level comes from ``CITYWEATHER_LOG_LEVEL`` unless passed in. Calling
    this more than once is a no-op so the API factory and the worker can both
    call it.
    """

    global _CONFIGURED
    if _CONFIGURED:
        return

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(build_handler(service_name or settings.app_name))
    root.setLevel((level or settings.log_level).upper())
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    logging.captureWarnings(True)
    _CONFIGURED = True


__all__ = ["build_handler", "setup_logging"]
