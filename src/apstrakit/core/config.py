"""apstrakit configuration: Pydantic model, load, and save."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator

from apstrakit.core.constants import (
    APSTRAKIT_DIR_NAME,
    CONFIG_FILENAME,
    RULE_LOOKUP_BACKOFF_SECONDS,
    RULE_LOOKUP_MAX_RETRIES,
)
from apstrakit.core.exceptions import ConfigError, ConfigNotFoundError


def apstrakit_dir() -> Path:
    """Return the apstrakit config directory (~/.apstrakit), creating it if needed."""
    d = Path.home() / APSTRAKIT_DIR_NAME
    d.mkdir(mode=0o700, parents=True, exist_ok=True)
    return d


# ---------------------------------------------------------------------------
# Sub-models
# ---------------------------------------------------------------------------


class RulesConfig(BaseModel):
    lookup_max_retries: int = RULE_LOOKUP_MAX_RETRIES
    lookup_backoff_seconds: float = RULE_LOOKUP_BACKOFF_SECONDS

    @field_validator("lookup_max_retries")
    @classmethod
    def validate_retries(cls, v: int) -> int:
        if not (0 <= v <= 100):
            raise ValueError("lookup_max_retries must be between 0 and 100")
        return v

    @field_validator("lookup_backoff_seconds")
    @classmethod
    def validate_backoff(cls, v: float) -> float:
        if not (0 <= v <= 10):
            raise ValueError("lookup_backoff_seconds must be between 0 and 10")
        return v


class QueryConfig(BaseModel):
    blueprint_id: str = ""
    blueprint_type: str = ""  # "" | config | deployed | operation | staging

    @field_validator("blueprint_type")
    @classmethod
    def validate_type(cls, v: str) -> str:
        allowed = {"", "config", "deployed", "operation", "staging"}
        if v not in allowed:
            raise ValueError(f"blueprint_type must be one of: {sorted(allowed)}")
        return v


class LoggingConfig(BaseModel):
    level: str = "INFO"
    format: str = "text"  # "text" | "json"

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR"}
        if v.upper() not in allowed:
            raise ValueError(f"Log level must be one of: {allowed}")
        return v.upper()

    @field_validator("format")
    @classmethod
    def validate_format(cls, v: str) -> str:
        if v not in ("text", "json"):
            raise ValueError("Log format must be 'text' or 'json'")
        return v


# ---------------------------------------------------------------------------
# Root config
# ---------------------------------------------------------------------------


class ApstraKitConfig(BaseModel):
    """Root apstrakit configuration model."""

    rules: RulesConfig = Field(default_factory=RulesConfig)
    query: QueryConfig = Field(default_factory=QueryConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    # Computed paths (not stored in config file)
    _config_path: Path | None = None

    @property
    def config_path(self) -> Path | None:
        return self._config_path


# ---------------------------------------------------------------------------
# Load / save
# ---------------------------------------------------------------------------


def _config_file_path() -> Path:
    if env_path := os.environ.get("APSTRAKIT_CONFIG"):
        return Path(env_path)
    return apstrakit_dir() / CONFIG_FILENAME


def load_config(path: Path | None = None) -> ApstraKitConfig:
    """
    Load ApstraKitConfig from TOML file, overlaid with environment variables.

    Priority (highest to lowest):
      1. Environment variables (APSTRAKIT_*)
      2. Config file (~/.apstrakit/config.toml)
    """
    import tomllib

    cfg_path = path or _config_file_path()

    if not cfg_path.exists():
        raise ConfigNotFoundError(
            f"apstrakit is not configured. Run 'apstrakit config init' first.\n"
            f"(Config file not found: {cfg_path})"
        )

    try:
        with open(cfg_path, "rb") as f:
            data = tomllib.load(f)
    except Exception as exc:
        raise ConfigError(f"Cannot read config file {cfg_path}: {exc}") from exc

    _apply_env_overrides(data)

    try:
        config = ApstraKitConfig.model_validate(data)
    except Exception as exc:
        raise ConfigError(f"Invalid config at {cfg_path}: {exc}") from exc

    config._config_path = cfg_path
    return config


def load_config_or_default(path: Path | None = None) -> ApstraKitConfig:
    """Like :func:`load_config`, but fall back to defaults (plus env) when no file exists."""
    try:
        return load_config(path)
    except ConfigNotFoundError:
        data: dict[str, Any] = {}
        _apply_env_overrides(data)
        try:
            return ApstraKitConfig.model_validate(data)
        except Exception as exc:
            raise ConfigError(f"Invalid config from environment: {exc}") from exc


def _apply_env_overrides(data: dict[str, Any]) -> None:
    """Overlay APSTRAKIT_* environment variables onto the parsed TOML data."""
    if level := os.environ.get("APSTRAKIT_LOG_LEVEL"):
        data.setdefault("logging", {})["level"] = level
    if fmt := os.environ.get("APSTRAKIT_LOG_FORMAT"):
        data.setdefault("logging", {})["format"] = fmt
    if retries := os.environ.get("APSTRAKIT_RULE_LOOKUP_RETRIES"):
        data.setdefault("rules", {})["lookup_max_retries"] = retries
    if backoff := os.environ.get("APSTRAKIT_RULE_LOOKUP_BACKOFF"):
        data.setdefault("rules", {})["lookup_backoff_seconds"] = backoff
    if blueprint := os.environ.get("APSTRAKIT_BLUEPRINT_ID"):
        data.setdefault("query", {})["blueprint_id"] = blueprint


def save_config(config_data: dict[str, Any], path: Path | None = None) -> Path:
    """Write config dict to TOML file with secure permissions (0600)."""
    import tomli_w

    cfg_path = path or _config_file_path()
    cfg_path.parent.mkdir(mode=0o700, parents=True, exist_ok=True)

    # Write atomically
    tmp_path = cfg_path.with_suffix(".tmp")
    try:
        with open(tmp_path, "wb") as f:
            tomli_w.dump(config_data, f)
        tmp_path.rename(cfg_path)
    except Exception as exc:
        tmp_path.unlink(missing_ok=True)
        raise ConfigError(f"Cannot write config to {cfg_path}: {exc}") from exc

    cfg_path.chmod(0o600)
    return cfg_path
