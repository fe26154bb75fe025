"""Logger lookup for the ``rangetree`` namespace.

Levels come from ``RuntimeConfig.log_level`` unless a caller pins one with
:func:`set_log_level` (the CLI does this for ``--log-level``).
"""

from __future__ import annotations

import logging
from typing import Optional

from . import config as rt_config

_ROOT_NAME = "rangetree"
_level_override: Optional[str] = None


def _effective_level() -> str:
    if _level_override is not None:
        return _level_override
    return rt_config.runtime_config().log_level


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return ``rangetree`` or ``rangetree.<name>`` at the effective level."""

    logger = logging.getLogger(_ROOT_NAME if name is None else f"{_ROOT_NAME}.{name}")
    logger.setLevel(_effective_level())
    return logger


def set_log_level(level: Optional[str]) -> None:
    """Pin every ``rangetree`` logger to ``level``; ``None`` restores the config level."""

    global _level_override
    if level is not None:
        level = level.strip().upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level '{level}'")
    _level_override = level
    effective = _effective_level()
    for logger_name, logger in logging.root.manager.loggerDict.items():
        if isinstance(logger, logging.Logger) and (
            logger_name == _ROOT_NAME or logger_name.startswith(f"{_ROOT_NAME}.")
        ):
            logger.setLevel(effective)
            for handler in logger.handlers:
                handler.setLevel(effective)
