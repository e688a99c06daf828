"""
Reassembly Configuration
========================

Tunables for the completion driver and the backend client.
Values can be overridden from the environment (a .env file is honoured).
"""

import os
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field

from core.errors import ConfigurationError

# Round budget for one reassembly operation
MAX_ROUNDS = 5


def _env(name: str, default=None):
    value = os.getenv(name)
    return default if value is None or value == "" else value


class ReassemblyConfig(BaseModel):
    """
    Configuration for the completion driver.

    Example:
        >>> config = ReassemblyConfig(max_rounds=3, round_timeout=30.0)
        >>> config.check()
    """
    max_rounds: int = Field(default=MAX_ROUNDS, description="Maximum backend rounds per operation")
    context_lines: int = Field(default=10, description="Trailing lines sent as anchor in continuation prompts")
    reasonable_ratio: float = Field(default=0.9, description="Length ratio accepted when structure balances")
    round_timeout: Optional[float] = Field(default=None, description="Seconds allowed per round (None = no limit)")
    cancel_poll_interval: float = Field(default=0.1, description="Seconds between cancellation checks")
    max_workers: int = Field(default=3, description="Concurrent operations in batch runs")

    def check(self):
        """
        Check value ranges.

        Raises:
            ConfigurationError: If any value is out of range
        """
        if self.max_rounds < 1:
            raise ConfigurationError(f"max_rounds must be >= 1, got {self.max_rounds}")
        if self.context_lines < 1:
            raise ConfigurationError(f"context_lines must be >= 1, got {self.context_lines}")
        if not 0.0 < self.reasonable_ratio <= 1.0:
            raise ConfigurationError(f"reasonable_ratio must be in (0, 1], got {self.reasonable_ratio}")
        if self.round_timeout is not None and self.round_timeout <= 0:
            raise ConfigurationError(f"round_timeout must be positive, got {self.round_timeout}")
        if self.cancel_poll_interval <= 0:
            raise ConfigurationError(f"cancel_poll_interval must be positive, got {self.cancel_poll_interval}")
        if self.max_workers < 1:
            raise ConfigurationError(f"max_workers must be >= 1, got {self.max_workers}")
        return self

    @classmethod
    def from_env(cls, dotenv_path: Optional[str] = None) -> "ReassemblyConfig":
        """Build config from PRESTO_* environment variables."""
        load_dotenv(dotenv_path)
        timeout = _env("PRESTO_ROUND_TIMEOUT")
        return cls(
            max_rounds=int(_env("PRESTO_MAX_ROUNDS", MAX_ROUNDS)),
            context_lines=int(_env("PRESTO_CONTEXT_LINES", 10)),
            reasonable_ratio=float(_env("PRESTO_REASONABLE_RATIO", 0.9)),
            round_timeout=float(timeout) if timeout is not None else None,
            max_workers=int(_env("PRESTO_MAX_CONCURRENT", 3)),
        ).check()


class BackendConfig(BaseModel):
    """Settings for the OpenRouter backend client"""
    model: str = Field(default="anthropic/claude-3.5-sonnet", description="Model identifier")
    base_url: str = Field(default="https://openrouter.ai/api/v1", description="API base URL")
    api_key_env: str = Field(default="OPENROUTER_API_KEY", description="Env var holding the API key")
    max_tokens: int = Field(default=4000, description="Default per-round output token limit")
    temperature: float = Field(default=0.1, description="Default sampling temperature")
    timeout: float = Field(default=60.0, description="HTTP timeout in seconds")

    def get_api_key(self) -> Optional[str]:
        """Retrieve the API key from the environment"""
        return os.getenv(self.api_key_env)

    def check(self):
        if not self.get_api_key():
            raise ConfigurationError(f"API key not found in environment variable {self.api_key_env}")
        if not self.model:
            raise ConfigurationError("model not specified")
        if self.max_tokens <= 0:
            raise ConfigurationError(f"max_tokens must be positive, got {self.max_tokens}")
        if self.timeout <= 0:
            raise ConfigurationError(f"timeout must be positive, got {self.timeout}")
        return self

    @classmethod
    def from_env(cls, dotenv_path: Optional[str] = None) -> "BackendConfig":
        """Build config from PRESTO_* environment variables."""
        load_dotenv(dotenv_path)
        defaults = cls()
        return cls(
            model=_env("PRESTO_MODEL", defaults.model),
            base_url=_env("PRESTO_BASE_URL", defaults.base_url),
            api_key_env=_env("PRESTO_API_KEY_ENV", defaults.api_key_env),
            max_tokens=int(_env("PRESTO_MAX_TOKENS", defaults.max_tokens)),
            temperature=float(_env("PRESTO_TEMPERATURE", defaults.temperature)),
            timeout=float(_env("PRESTO_TIMEOUT", defaults.timeout)),
        )


# Presets
FAST_CONFIG = ReassemblyConfig(max_rounds=2, round_timeout=30.0, max_workers=5)
ROBUST_CONFIG = ReassemblyConfig(max_rounds=MAX_ROUNDS, round_timeout=120.0, max_workers=2)
