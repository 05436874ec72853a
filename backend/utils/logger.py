"""Planner logging.

All planner loggers live under the ``roomplan`` namespace and write to one
stdout handler, so uvicorn's own root/access logging is left untouched.
"""

from __future__ import annotations

import logging
import sys
from typing import Optional

from backend.utils.config import get_settings


LOGGER_NAMESPACE = "roomplan"
LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def _namespace_logger() -> logging.Logger:
    return logging.getLogger(LOGGER_NAMESPACE)


def configure_logging(level: Optional[str] = None) -> logging.Logger:
    """Attach the stdout handler once; an explicit ``level`` is always applied."""
    namespace = _namespace_logger()
    if not namespace.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        namespace.addHandler(handler)
        namespace.propagate = False
        namespace.setLevel((level or get_settings().log_level).upper())
    elif level is not None:
        namespace.setLevel(level.upper())
    return namespace


def get_logger(name: str) -> logging.Logger:
    configure_logging()
    if name == LOGGER_NAMESPACE or name.startswith(f"{LOGGER_NAMESPACE}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{LOGGER_NAMESPACE}.{name}")
