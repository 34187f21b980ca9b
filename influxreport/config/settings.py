import os
import tomllib
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..core.errors import ConfigurationError
from ..core.logging import get_logger, setup_logging
from .influx import InfluxConfig


__all__ = ["LoggingSettings", "Settings", "ConfigurationError"]

ENV_PREFIX = "INFLUXREPORT_"
CONFIG_FILE_NAME = "influxreport.toml"


class LoggingSettings(BaseModel):
    """Logging configuration."""

    model_config = ConfigDict(validate_assignment=True)

    level: str = Field(default="INFO", description="Log level for the influxreport logger")
    json_logs: bool = Field(default=False, description="Render logs as JSON")

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        upper_v = v.upper()
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if upper_v not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return upper_v


class Settings(BaseSettings):
    """
    Configuration settings for InfluxDB reporting.

    Settings are loaded from environment variables, .env files, and TOML configuration files.
    Environment variables take precedence over TOML file values. The TOML file is either
    passed explicitly, named by INFLUXREPORT_CONFIG_FILE, or influxreport.toml in the
    current directory.
    """

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        env_nested_delimiter="__",
        validate_assignment=True,
    )

    influxdb: InfluxConfig = Field(
        default_factory=InfluxConfig,
        description="InfluxDB connection settings",
    )

    transport: Literal["http", "https", "udp", "json"] = Field(
        default="http",
        description="Transport used to deliver records",
    )

    report_interval: float = Field(
        default=10.0,
        gt=0,
        description="Seconds between scheduled reports",
    )

    global_tags: str = Field(
        default="",
        description="Comma-separated key=value tags added to every record",
    )

    logging: LoggingSettings = Field(
        default_factory=LoggingSettings,
        description="Logging configuration",
    )

    def configure_logging(self) -> Any:
        """Apply the logging settings and return a logger."""
        return setup_logging(json_logs=self.logging.json_logs, log_level=self.logging.level)

    @classmethod
    def load_toml_config(cls, toml_path: Path) -> dict[str, Any]:
        """Load configuration from a TOML file."""
        try:
            with toml_path.open("rb") as f:
                return tomllib.load(f)
        except OSError as e:
            raise ConfigurationError(f"Cannot read TOML config file {toml_path}: {e}", e) from e
        except tomllib.TOMLDecodeError as e:
            raise ConfigurationError(f"Invalid TOML syntax in {toml_path}: {e}", e) from e

    @classmethod
    def from_config(
        cls,
        config_path: Path | str | None = None,
        **kwargs: Any,
    ) -> "Settings":
        """Create Settings instance from configuration file."""
        if config_path is None:
            config_path_env = os.environ.get(f"{ENV_PREFIX}CONFIG_FILE")
            if config_path_env:
                config_path = Path(config_path_env)

        if isinstance(config_path, str):
            config_path = Path(config_path)

        if config_path is None:
            default_path = Path.cwd() / CONFIG_FILE_NAME
            if default_path.exists():
                config_path = default_path

        config_data: dict[str, Any] = {}
        if config_path is not None:
            if config_path.suffix.lower() != ".toml":
                raise ConfigurationError(
                    f"Unsupported config file format: {config_path.suffix}. "
                    "Only TOML (.toml) files are supported."
                )
            if config_path.exists():
                config_data = cls.load_toml_config(config_path)
                logger.info("config_file_loaded", path=str(config_path), category="config")

        settings = cls()

        for key, value in config_data.items():
            if not hasattr(settings, key):
                continue
            if key in ["influxdb", "logging"] and isinstance(value, dict):
                nested_obj = getattr(settings, key)
                for nested_key, nested_value in value.items():
                    env_key = f"{ENV_PREFIX}{key.upper()}__{nested_key.upper()}"
                    if os.getenv(env_key) is None:
                        setattr(nested_obj, nested_key, nested_value)
            else:
                env_key = f"{ENV_PREFIX}{key.upper()}"
                if os.getenv(env_key) is None:
                    setattr(settings, key, value)

        for key, value in kwargs.items():
            target = getattr(settings, key, None)
            if isinstance(value, dict) and isinstance(target, BaseModel):
                for nested_key, nested_value in value.items():
                    setattr(target, nested_key, nested_value)
            else:
                setattr(settings, key, value)

        return settings


logger = get_logger(__name__)
