"""Engine settings: init kwargs, environment and a YAML file in one object.

Priority chain (highest to lowest):
  1. Init kwargs
  2. Env vars, ``RESERVATION_ENGINE_*`` prefix, ``__`` for nested sections
  3. YAML file named by ``load_settings(path)`` or ``RESERVATION_ENGINE_CONFIG``
  4. Code defaults
"""

from __future__ import annotations

import os
from pathlib import Path
import threading
from typing import Any

from pydantic import BaseModel, Field, ValidationError
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict, SettingsError
import yaml

from .errors import ConfigError
from .validation import BookingRules

CONFIG_ENV_VAR = "RESERVATION_ENGINE_CONFIG"


class LoadCheckSettings(BaseModel):
    """[load_check] section."""

    model_config = {"frozen": True, "extra": "ignore"}

    duration_seconds: float = Field(default=10.0, gt=0)
    interval_seconds: float = Field(default=0.5, gt=0)
    creates_per_tick: int = Field(default=20, ge=0)
    retrieves_per_tick: int = Field(default=20, ge=0)
    updates_per_tick: int = Field(default=5, ge=0)
    cancels_per_tick: int = Field(default=5, ge=0)
    availability_checks_per_tick: int = Field(default=5, ge=0)


class YamlSettingsSource(PydanticBaseSettingsSource):
    """Read settings from a YAML mapping file."""

    def __init__(self, settings_cls: type[BaseSettings], yaml_path: Path | None) -> None:
        super().__init__(settings_cls)
        self._data: dict[str, Any] = {}
        if yaml_path is None:
            return

        try:
            payload = yaml.safe_load(yaml_path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, yaml.YAMLError) as error:
            raise ConfigError(f"Failed to read config file: {yaml_path}") from error

        if payload is None:
            return
        if not isinstance(payload, dict):
            raise ConfigError(f"Top-level YAML is not a mapping: {yaml_path}")
        self._data = payload

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        value = self._data.get(field_name)
        return value, field_name, field_name in self._data

    def __call__(self) -> dict[str, Any]:
        return self._data


# YAML path handed to settings_customise_sources during construction.
_tls = threading.local()


class EngineSettings(BaseSettings):
    model_config = SettingsConfigDict(
        frozen=True,
        env_prefix="RESERVATION_ENGINE_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    host: str = "127.0.0.1"
    port: int = Field(default=8080, gt=0, lt=65536)
    mailbox_size: int = Field(default=1024, gt=0)
    ask_timeout_seconds: float = Field(default=3.0, gt=0)
    get_timeout_seconds: float = Field(default=1.0, gt=0)
    serialize_bookings: bool = False
    verbose: bool = False
    log_json: bool = False
    rules: BookingRules = Field(default_factory=BookingRules)
    load_check: LoadCheckSettings = Field(default_factory=LoadCheckSettings)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,
            env_settings,
            YamlSettingsSource(settings_cls, getattr(_tls, "yaml_path", None)),
        )


def load_settings(path: str | Path | None = None, **overrides: Any) -> EngineSettings:
    """Build settings from overrides, environment, YAML file and defaults.

    Without an explicit path the RESERVATION_ENGINE_CONFIG variable names the
    YAML file; without either only environment and defaults apply.
    Unknown keys are ignored and invalid values raise ConfigError.
    """
    source = path or os.environ.get(CONFIG_ENV_VAR)
    _tls.yaml_path = Path(source) if source else None
    try:
        return EngineSettings(**overrides)
    except (ValidationError, SettingsError) as error:
        raise ConfigError(f"Invalid configuration: {error}") from error
    finally:
        _tls.yaml_path = None
