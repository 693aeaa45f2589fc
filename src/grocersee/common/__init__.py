"""Common utilities for Grocersee."""

from grocersee.common.logging import frame_context, get_logger, setup_logging, setup_logging_from_config

__all__ = [
    "frame_context",
    "get_logger",
    "setup_logging",
    "setup_logging_from_config",
]
