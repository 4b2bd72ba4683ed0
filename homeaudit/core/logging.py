from __future__ import annotations

import logging
import sys
from typing import Any

import structlog
from homeaudit.core.config import Settings, get_settings

_CONFIGURED = False

# Third-party loggers that log every outbound provider request at INFO.
_CHATTY_LOGGERS = ("httpx", "httpcore", "rq.worker")


def _resolve_level(level: int | str | None, settings: Settings) -> int:
    if level is None:
        level = settings.log_level
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.upper())
    return resolved if isinstance(resolved, int) else logging.INFO


def _service_fields(settings: Settings) -> structlog.types.Processor:
    def add_service_fields(_: Any, __: str, event_dict: dict[str, Any]) -> dict[str, Any]:
        event_dict.setdefault("service", settings.app_name)
        event_dict.setdefault("environment", settings.environment)
        return event_dict

    return add_service_fields


def setup_logging(level: int | str | None = None) -> None:
    """Configure structlog once for the API process and the reminder worker.

    Deployed environments emit JSON lines; local and development runs get the
    console renderer. Every event carries the service name and environment.
    """
    global _CONFIGURED
    if _CONFIGURED:
        return

    settings = get_settings()
    resolved = _resolve_level(level, settings)

    logging.basicConfig(level=resolved, format="%(message)s", stream=sys.stdout)
    for name in _CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(max(resolved, logging.WARNING))

    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        _service_fields(settings),
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", key="timestamp"),
    ]
    if settings.environment in ("local", "development"):
        processors.append(structlog.dev.ConsoleRenderer(colors=False))
    else:
        processors.extend(
            [structlog.processors.dict_tracebacks, structlog.processors.JSONRenderer()]
        )

    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.make_filtering_bound_logger(resolved),
        cache_logger_on_first_use=True,
    )

    _CONFIGURED = True
