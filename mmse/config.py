"""
Application configuration.

Values come from Streamlit secrets first, then environment variables, then
the defaults below. The resulting ``AppConfig`` is passed explicitly to the
pieces that need it (narrative client, classifier factory).
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, replace
from typing import Any, Mapping, Optional

from .errors import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_NARRATIVE_MODEL = "claude-haiku-4-5-20251001"
DEFAULT_MAX_TOKENS = 1024
DEFAULT_MODEL_TIMEOUT = 5.0

# Values shipped in templates / docs that should count as "no key".
_PLACEHOLDER_KEYS = {"sk-ant-...", "YOUR_API_KEY_HERE"}


@dataclass(frozen=True)
class AppConfig:
    api_key: Optional[str] = None
    narrative_model: str = DEFAULT_NARRATIVE_MODEL
    max_tokens: int = DEFAULT_MAX_TOKENS
    temperature: float = 0.2
    model_path: Optional[str] = None
    model_timeout: float = DEFAULT_MODEL_TIMEOUT
    log_level: str = "INFO"

    @property
    def has_api_key(self) -> bool:
        return _clean_key(self.api_key) is not None

    def with_api_key(self, key: Optional[str]) -> "AppConfig":
        """Return a copy using ``key`` when it is a usable credential."""
        cleaned = _clean_key(key)
        if cleaned is None:
            return self
        return replace(self, api_key=cleaned)


def _clean_key(key: Optional[str]) -> Optional[str]:
    if key is None:
        return None
    key = str(key).strip()
    if not key or key in _PLACEHOLDER_KEYS:
        return None
    return key


def _lookup(name: str, secrets: Mapping[str, Any], environ: Mapping[str, str]) -> Optional[str]:
    if name in secrets:
        value = secrets[name]
    else:
        value = environ.get(name)
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def _as_int(name: str, raw: Optional[str], default: int) -> int:
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got {raw!r}")
    if value <= 0:
        raise ConfigError(f"{name} must be positive, got {value}")
    return value


def _as_float(name: str, raw: Optional[str], default: float) -> float:
    if raw is None:
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ConfigError(f"{name} must be a number, got {raw!r}")
    if value <= 0:
        raise ConfigError(f"{name} must be positive, got {value}")
    return value


def load_config(
    secrets: Optional[Mapping[str, Any]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> AppConfig:
    """Build an ``AppConfig``.

    Args:
        secrets: Streamlit secrets (or any mapping). Takes precedence.
        environ: Environment mapping, defaults to ``os.environ``.

    Raises:
        ConfigError: when a numeric setting cannot be parsed.
    """
    secrets = secrets or {}
    environ = os.environ if environ is None else environ

    cfg = AppConfig(
        api_key=_clean_key(_lookup("ANTHROPIC_API_KEY", secrets, environ)),
        narrative_model=_lookup("MMSE_NARRATIVE_MODEL", secrets, environ) or DEFAULT_NARRATIVE_MODEL,
        max_tokens=_as_int("MMSE_MAX_TOKENS", _lookup("MMSE_MAX_TOKENS", secrets, environ), DEFAULT_MAX_TOKENS),
        model_path=_lookup("MMSE_MODEL_PATH", secrets, environ),
        model_timeout=_as_float(
            "MMSE_MODEL_TIMEOUT", _lookup("MMSE_MODEL_TIMEOUT", secrets, environ), DEFAULT_MODEL_TIMEOUT
        ),
        log_level=(_lookup("MMSE_LOG_LEVEL", secrets, environ) or "INFO").upper(),
    )
    logger.debug(
        "config loaded: model=%s key=%s classifier=%s",
        cfg.narrative_model,
        "present" if cfg.has_api_key else "missing",
        cfg.model_path or "heuristic",
    )
    return cfg
