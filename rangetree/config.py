from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from functools import lru_cache

_SUPPORTED_ENGINES = {"python", "numba"}


def _bool_from_env(value: str | None, *, default: bool) -> bool:
    if value is None:
        return default
    value = value.strip().lower()
    if value in {"1", "true", "yes", "on"}:
        return True
    if value in {"0", "false", "no", "off"}:
        return False
    return default


def _normalise_engine(value: str | None) -> str:
    if value is None or value.strip() == "":
        return "python"
    value = value.strip().lower()
    if value not in _SUPPORTED_ENGINES:
        raise ValueError(f"Unsupported engine '{value}'. Expected one of {_SUPPORTED_ENGINES}.")
    return value


def _normalise_log_level(value: str | None) -> str:
    level = (value or "INFO").strip().upper()
    if not isinstance(logging.getLevelName(level), int):
        raise ValueError(f"Unknown log level '{value}'")
    return level


@dataclass(frozen=True)
class RuntimeConfig:
    engine: str
    log_level: str
    validate_on_build: bool
    default_operation: str

    @property
    def numba_requested(self) -> bool:
        return self.engine == "numba"


def _configure_logging(level: str) -> None:
    logger = logging.getLogger("rangetree")
    logger.setLevel(level)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setLevel(level)
        formatter = logging.Formatter("%(levelname)s %(name)s: %(message)s")
        handler.setFormatter(formatter)
        logger.addHandler(handler)


@lru_cache(maxsize=None)
def runtime_config() -> RuntimeConfig:
    engine = _normalise_engine(os.getenv("RANGETREE_ENGINE"))
    log_level = _normalise_log_level(os.getenv("RANGETREE_LOG_LEVEL"))
    validate_on_build = _bool_from_env(os.getenv("RANGETREE_VALIDATE_ON_BUILD"), default=False)
    default_operation = os.getenv("RANGETREE_DEFAULT_OPERATION", "sum").strip().lower() or "sum"

    config = RuntimeConfig(
        engine=engine,
        log_level=log_level,
        validate_on_build=validate_on_build,
        default_operation=default_operation,
    )
    _configure_logging(config.log_level)
    return config


def reset_runtime_config_cache() -> None:
    runtime_config.cache_clear()


def describe_runtime() -> dict[str, object]:
    """Return the active configuration as a plain mapping."""

    runtime = runtime_config()
    return {
        "engine": runtime.engine,
        "log_level": runtime.log_level,
        "validate_on_build": runtime.validate_on_build,
        "default_operation": runtime.default_operation,
    }
