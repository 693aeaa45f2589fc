"""Structured logging for Grocersee."""

from __future__ import annotations

import logging
import sys
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, Iterator

import structlog
from structlog.types import Processor

if TYPE_CHECKING:
    from grocersee.config import Config


def setup_logging(
    level: str = "INFO",
    json_output: bool = False,
    service_name: str | None = None,
) -> None:
    """Configure structlog for every Grocersee component.

    Args:
        level: Standard logging level name; per-frame stage events are DEBUG.
        json_output: Render JSON lines instead of the console format.
        service_name: Component name; adds call-site info to every entry.
    """
    numeric_level = getattr(logging, level.upper())

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=numeric_level,
    )

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if service_name:
        processors.insert(
            0,
            structlog.processors.CallsiteParameterAdder(
                parameters=[
                    structlog.processors.CallsiteParameter.FILENAME,
                    structlog.processors.CallsiteParameter.LINENO,
                ]
            ),
        )

    if json_output:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def setup_logging_from_config(config: Config, service_name: str | None = None) -> None:
    """Configure logging from the device section of a configuration."""
    setup_logging(
        level=config.device.log_level,
        json_output=config.device.mode == "production",
        service_name=service_name,
    )


def get_logger(name: str | None = None, **initial_values: Any) -> structlog.BoundLogger:
    """Get a structlog logger, optionally with values pre-bound.

    Pipeline stages name their logger after the stage, e.g.
    ``get_logger("grocersee.decoder")``.
    """
    logger = structlog.get_logger(name)
    if initial_values:
        logger = logger.bind(**initial_values)
    return logger


@contextmanager
def frame_context(frame_id: str, **values: Any) -> Iterator[None]:
    """Bind a frame id to every log entry emitted inside the block."""
    with structlog.contextvars.bound_contextvars(frame_id=frame_id, **values):
        yield
