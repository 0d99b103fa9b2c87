"""structlog setup for the ledger service.

Library modules keep using ``logging.getLogger(__name__)``; their records
pass through the same processor chain as structlog loggers, so request
context bound by the middleware shows up on every line.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Any

import structlog

# Held at WARNING regardless of the configured level.
QUIET_LOGGERS = ("uvicorn.access", "httpx", "httpcore")


def _wants_json() -> bool:
    return os.getenv("LEDGER_LOG_JSON") == "1" or not sys.stderr.isatty()


def _stamp_service(service_name: str):
    def processor(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
        event_dict.setdefault("service", service_name)
        return event_dict

    return processor


def _pre_chain(service_name: str, json_output: bool) -> list[Any]:
    chain: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        _stamp_service(service_name),
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]
    if json_output:
        chain.append(structlog.processors.format_exc_info)
    return chain


def configure_logging(
    level: str = "INFO",
    json_output: bool | None = None,
    service_name: str = "milk-ledger",
) -> None:
    """Route stdlib and structlog output through one stderr handler.

    ``json_output=None`` picks JSON lines off a terminal or when
    ``LEDGER_LOG_JSON=1``, and the colored console renderer otherwise.
    """
    if json_output is None:
        json_output = _wants_json()

    pre_chain = _pre_chain(service_name, json_output)
    renderer: Any = (
        structlog.processors.JSONRenderer(ensure_ascii=False)
        if json_output
        else structlog.dev.ConsoleRenderer(colors=True)
    )

    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler()
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=pre_chain,
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        )
    )

    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(level.upper())

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


def bind_context(**kwargs) -> None:
    """Attach key/value pairs to every log line in the current context.

    The middleware binds ``correlation_id``, ``request_id``, ``path`` and
    ``method`` per request.
    """
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()


__all__ = [
    "configure_logging",
    "get_logger",
    "bind_context",
    "clear_context",
]
