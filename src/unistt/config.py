"""Configuration management using Pydantic settings."""

from pathlib import Path
from typing import Literal, Self

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

from unistt.exceptions import ConfigError
from unistt.locales import canonical_locale
from unistt.models import Mode


class CoordinatorConfig(BaseModel):
    """Initial coordinator state."""

    locale: str | None = Field(
        default=None,
        description="Recognition locale, e.g. en_US. Defaults to the process locale",
    )
    mode: Mode = Field(default=Mode.UNSPECIFIED)
    contextual_strings: list[str] = Field(default_factory=list)
    disabled: bool = Field(default=False)

    @field_validator("locale")
    @classmethod
    def validate_locale(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return canonical_locale(value)


class BackendConfig(BaseModel):
    """Backend selection."""

    name: str = Field(default="scripted")
    transcript: Path | None = Field(default=None)
    interval_s: float = Field(default=0.25, ge=0.0, le=10.0)
    locales: list[str] | None = Field(default=None)

    @field_validator("locales")
    @classmethod
    def validate_locales(cls, value: list[str] | None) -> list[str] | None:
        if value is None:
            return None
        return [canonical_locale(v) for v in value]

    @model_validator(mode="after")
    def validate_transcript(self) -> Self:
        if self.name == "replay" and self.transcript is None:
            raise ValueError("the replay backend requires a transcript path")
        return self


class DeliveryConfig(BaseModel):
    """Where forwarded events are delivered."""

    mode: Literal["immediate", "queued"] = Field(default="queued")


class Settings(BaseModel):
    """Application settings loaded from settings.yml."""

    coordinator: CoordinatorConfig = Field(default_factory=CoordinatorConfig)
    backend: BackendConfig = Field(default_factory=BackendConfig)
    delivery: DeliveryConfig = Field(default_factory=DeliveryConfig)

    @classmethod
    def load(cls, config_path: Path | None = None) -> "Settings":
        """Load settings from YAML file.

        Args:
            config_path: Path to settings file. Defaults to ./settings.yml

        Returns:
            Loaded Settings instance

        Raises:
            ConfigError: If config file exists but is invalid
        """
        if config_path is None:
            config_path = Path("./settings.yml")

        if not config_path.exists():
            return cls()

        try:
            with open(config_path) as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"Failed to parse config file: {e}") from e

        if data is None:
            return cls()

        try:
            return cls.model_validate(data)
        except Exception as e:
            raise ConfigError(f"Invalid configuration: {e}") from e


_settings: Settings | None = None


def get_settings(config_path: Path | None = None) -> Settings:
    """Get application settings (singleton).

    Args:
        config_path: Optional path to config file

    Returns:
        Settings instance
    """
    global _settings
    if _settings is None:
        _settings = Settings.load(config_path)
    return _settings


def reset_settings() -> None:
    """Reset settings singleton (for testing)."""
    global _settings
    _settings = None
