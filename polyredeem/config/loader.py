"""TOML config loader with environment variable overrides."""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any

from polyredeem.errors import PolyRedeemError


class ConfigError(PolyRedeemError):
    """Raised when config loading or validation fails."""


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge override into base, returning a new dict."""
    result = dict(base)
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _apply_env_overrides(config: dict[str, Any], prefix: str = "POLYREDEEM") -> dict[str, Any]:
    """Apply environment variable overrides.

    Env var naming: POLYREDEEM__section__key=value (double underscore separator).
    Nested keys: POLYREDEEM__funding__min_usdc_balance=2000000
    """
    result = dict(config)
    env_prefix = f"{prefix}__"

    for env_key, env_value in os.environ.items():
        if not env_key.startswith(env_prefix):
            continue

        parts = env_key[len(env_prefix) :].lower().split("__")
        target = result
        for part in parts[:-1]:
            if part not in target:
                target[part] = {}
            if isinstance(target[part], dict):
                target = target[part]
            else:
                break
        else:
            target[parts[-1]] = _coerce_value(env_value)

    return result


def _coerce_value(value: str) -> Any:
    """Coerce string env var value to appropriate Python type.

    Numeric conversion is attempted BEFORE boolean so "0"/"1" stay integers.
    """
    try:
        return int(value)
    except ValueError:
        pass
    try:
        return float(value)
    except ValueError:
        pass
    if value.lower() in ("true", "yes"):
        return True
    if value.lower() in ("false", "no"):
        return False
    return value


class ConfigLoader:
    """Load and merge TOML config files with env var overrides."""

    def __init__(
        self,
        config_dir: str | Path = "config",
        env: str | None = None,
    ) -> None:
        self._config_dir = Path(config_dir)
        self._env = env or os.environ.get("POLYREDEEM_ENV", "development")
        self._config: dict[str, Any] = {}

    def load(self) -> dict[str, Any]:
        """Load config: default.toml → {env}.toml → env vars."""
        default_path = self._config_dir / "default.toml"
        if not default_path.exists():
            msg = f"Default config not found: {default_path}"
            raise ConfigError(msg)

        self._config = self._load_toml(default_path)

        env_path = self._config_dir / f"{self._env}.toml"
        if env_path.exists():
            env_config = self._load_toml(env_path)
            self._config = _deep_merge(self._config, env_config)

        self._config = _apply_env_overrides(self._config)
        return self._config

    def get(self, dotted_key: str, default: Any = None) -> Any:
        """Get a config value using dotted notation: 'redeem.max_markets'."""
        if not self._config:
            self.load()

        current: Any = self._config
        for part in dotted_key.split("."):
            if isinstance(current, dict) and part in current:
                current = current[part]
            else:
                return default
        return current

    def validate_keys(self, required_keys: list[str]) -> None:
        """Validate that all required keys exist."""
        missing = [k for k in required_keys if self.get(k) is None]
        if missing:
            msg = f"Missing required config keys: {', '.join(missing)}"
            raise ConfigError(msg)

    def validate_ranges(self) -> None:
        """Validate config value ranges for redemption and funding parameters.

        Raises:
            ConfigError: If any parameter is out of valid range.
        """
        if not self._config:
            self.load()

        errors: list[str] = []

        max_markets = self.get("redeem.max_markets")
        if max_markets is not None and max_markets <= 0:
            errors.append(f"redeem.max_markets must be > 0, got {max_markets}")

        page_size = self.get("redeem.page_size")
        if page_size is not None and page_size <= 0:
            errors.append(f"redeem.page_size must be > 0, got {page_size}")

        min_balance = self.get("funding.min_usdc_balance")
        if min_balance is not None and min_balance < 0:
            errors.append(f"funding.min_usdc_balance must be >= 0, got {min_balance}")

        poll_ms = self.get("funding.poll_interval_ms")
        if poll_ms is not None and poll_ms <= 0:
            errors.append(f"funding.poll_interval_ms must be > 0, got {poll_ms}")

        timeout_ms = self.get("funding.timeout_ms")
        if timeout_ms is not None and timeout_ms < 0:
            errors.append(f"funding.timeout_ms must be >= 0, got {timeout_ms}")

        receipt_timeout = self.get("chain.receipt_timeout_seconds")
        if receipt_timeout is not None and receipt_timeout <= 0:
            errors.append(
                f"chain.receipt_timeout_seconds must be > 0, got {receipt_timeout}",
            )

        if errors:
            msg = "Config validation failed:\n  " + "\n  ".join(errors)
            raise ConfigError(msg)

    @staticmethod
    def _load_toml(path: Path) -> dict[str, Any]:
        with open(path, "rb") as f:
            return tomllib.load(f)
