"""Logging configuration for the positioning service.

One stdout handler on the root logger serves every module logger. The
``positioning.logic`` logger gets its own level: repository writes log at
INFO, while each bulk shift logs at DEBUG, so lowering that level to DEBUG
traces every sibling renumbering.
"""
from __future__ import annotations

import logging
from logging.config import dictConfig
from typing import Any, Dict

LOGIC_LOGGER = "positioning.logic"


def build_logging_config(logic_level: str = "INFO") -> Dict[str, Any]:
    """Return the ``dictConfig`` mapping with ``logic_level`` for the position logic."""
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {"format": "%(asctime)s %(levelname)s:%(name)s:%(message)s"},
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": "DEBUG",
                "formatter": "default",
                "stream": "ext://sys.stdout",
            }
        },
        "root": {"level": "INFO", "handlers": ["console"]},
        "loggers": {
            LOGIC_LOGGER: {"level": logic_level.upper()},
            "uvicorn": {"level": "INFO", "handlers": ["console"], "propagate": False},
            "uvicorn.access": {"level": "INFO", "handlers": ["console"], "propagate": False},
        },
    }


def configure_logging(logic_level: str = "INFO") -> None:
    """Install the service logging once.

    A root logger that already has handlers (reloaders, test runners) is left
    alone, apart from the position logic level.
    """
    root = logging.getLogger()
    if root.handlers:
        logging.getLogger(LOGIC_LOGGER).setLevel(logic_level.upper())
        return
    dictConfig(build_logging_config(logic_level))
