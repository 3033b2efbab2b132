from __future__ import annotations

import logging
import sys

import structlog


def configure_logging(log_level: str, json_logs: bool = True) -> None:
    """
    Route structlog events to stdout at `log_level`.

    `json_logs` renders one JSON object per event (for log shippers); turn it off
    for key=value console lines when running seeds by hand.
    """
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=log_level.upper())
    renderer = structlog.processors.JSONRenderer() if json_logs else structlog.dev.ConsoleRenderer(colors=False)
    structlog.configure(
        processors=[
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.processors.dict_tracebacks,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(logging.getLevelName(log_level.upper())),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.typing.FilteringBoundLogger:
    return structlog.get_logger(name)


logger = get_logger("pgseed")
