from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

from .errors import MissingConfigurationError

DEFAULT_PROVIDER = "openai"
DEFAULT_TIMEOUT_SECONDS = 60.0

MISSING_KEY_MESSAGE = (
    "LLM API key not configured. Please add LLM_API_KEY to environment variables."
)


@dataclass(frozen=True)
class ProviderConfig:
    """Process-wide LLM settings, read once and never mutated."""

    provider: str = DEFAULT_PROVIDER
    api_key: str = ""
    model: Optional[str] = None
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    log_level: str = "INFO"

    @property
    def has_api_key(self) -> bool:
        return bool(self.api_key)

    def require_api_key(self) -> None:
        """Raise MissingConfigurationError when no API key is configured."""
        if not self.has_api_key:
            raise MissingConfigurationError(MISSING_KEY_MESSAGE)

    @classmethod
    def from_env(cls) -> ProviderConfig:
        """Build the configuration from the environment (and a local .env file).

        Raises:
            ValueError: if LLM_TIMEOUT_SECONDS is not a positive number or
                LOG_LEVEL is not a logging level name. The app is built at
                import time, so this stops the server from starting.
        """
        load_dotenv()
        timeout = _positive_float("LLM_TIMEOUT_SECONDS", DEFAULT_TIMEOUT_SECONDS)
        log_level = os.getenv("LOG_LEVEL", "INFO").upper()
        if not isinstance(logging.getLevelName(log_level), int):
            raise ValueError(f"LOG_LEVEL must be a logging level name, got {log_level!r}")
        return cls(
            provider=os.getenv("LLM_PROVIDER") or DEFAULT_PROVIDER,
            api_key=os.getenv("LLM_API_KEY", ""),
            model=os.getenv("LLM_MODEL") or None,
            timeout_seconds=timeout,
            log_level=log_level,
        )


def _positive_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        value = 0.0
    if not value > 0:
        raise ValueError(f"{name} must be a positive number, got {raw!r}")
    return value
