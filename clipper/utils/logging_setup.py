"""Logging helpers for the clipper service and CLI."""
from __future__ import annotations

import logging
import sys
from typing import Iterable, Mapping

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Third-party loggers that are noisy at INFO when the opus decoder is loaded.
QUIET_LOGGERS = ("discord",)


def _level(name: str) -> int:
    return getattr(logging, str(name).upper(), logging.INFO)


def configure_logging(
    level: str = "INFO",
    extra_handlers: Iterable[logging.Handler] | None = None,
    logger_levels: Mapping[str, str] | None = None,
) -> None:
    """Configure console logging.

    ``level`` applies to the root logger. ``logger_levels`` overrides single
    loggers, so ``{"clipper.capture": "DEBUG"}`` traces reconstruction while
    everything else stays at ``level``.
    """
    root_level = _level(level)

    # Handlers stay unfiltered; levels are decided per logger.
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))

    handlers: list[logging.Handler] = [console_handler]
    if extra_handlers:
        handlers.extend(extra_handlers)

    logging.basicConfig(level=root_level, handlers=handlers, force=True)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(root_level, logging.WARNING))
    for name, logger_level in (logger_levels or {}).items():
        logging.getLogger(name).setLevel(_level(logger_level))


__all__ = ["configure_logging"]
