"""
AppConfig: Immutable application configuration.

This module contains ONLY static configuration that doesn't change during a
conversation. Runtime state lives in the controller and the state machine.

Design principles:
- Frozen dataclasses prevent accidental mutation
- Configuration loaded once at startup
- Environment variables override config file values
"""

import os
import json
from dataclasses import dataclass, field

from logging_utils import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class ApiConfig:
    """Endpoints and fixed request parameters of the three providers."""
    postal_base_url: str = "https://viacep.com.br/ws"
    geocoding_url: str = "https://geocoding-api.open-meteo.com/v1/search"
    forecast_url: str = "https://api.open-meteo.com/v1/forecast"
    geocoding_language: str = "pt"
    geocoding_count: int = 1
    forecast_timezone: str = "America/Sao_Paulo"
    forecast_days: int = 1
    timeout: float = 10.0  # seconds

    @classmethod
    def from_env(cls, defaults: "ApiConfig | None" = None) -> "ApiConfig":
        """Create ApiConfig from environment variables, falling back to `defaults`."""
        base = defaults or cls()
        return cls(
            postal_base_url=os.environ.get("CONSULTABOT_POSTAL_URL", base.postal_base_url),
            geocoding_url=os.environ.get("CONSULTABOT_GEOCODING_URL", base.geocoding_url),
            forecast_url=os.environ.get("CONSULTABOT_FORECAST_URL", base.forecast_url),
            geocoding_language=os.environ.get("CONSULTABOT_GEOCODING_LANGUAGE", base.geocoding_language),
            geocoding_count=base.geocoding_count,
            forecast_timezone=os.environ.get("CONSULTABOT_FORECAST_TIMEZONE", base.forecast_timezone),
            forecast_days=base.forecast_days,
            timeout=float(os.environ.get("CONSULTABOT_TIMEOUT", base.timeout)),
        )


@dataclass(frozen=True)
class LogConfig:
    """Where the access and error streams are written."""
    log_dir: str = "logs"
    access_file: str = "access.log"
    error_file: str = "errors.log"
    verbose: bool = False


@dataclass(frozen=True)
class AppConfig:
    """
    Complete immutable application configuration.

    Create once at startup and pass to the components that need it.
    """
    api: ApiConfig = field(default_factory=ApiConfig)
    logs: LogConfig = field(default_factory=LogConfig)

    # Duration of the cosmetic loading animation; 0 disables it
    loading_seconds: float = 1.5


def default_config_path() -> str:
    """Default JSON config location: <repo root>/inputs/consultabot_config.json."""
    src_dir = os.path.dirname(os.path.abspath(__file__))
    root_dir = os.path.dirname(src_dir)
    return os.path.join(root_dir, "inputs", "consultabot_config.json")


def load_config(config_path: str | None = None) -> AppConfig:
    """
    Load configuration from JSON file and environment variables.

    Priority: Environment variables > Config file > Defaults

    Args:
        config_path: Path to JSON config file. If None, uses default location.

    Returns:
        Immutable AppConfig instance.
    """
    if config_path is None:
        config_path = default_config_path()

    config_data = {}
    if os.path.exists(config_path):
        try:
            with open(config_path, "r", encoding="utf-8") as f:
                config_data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Failed to load config from %s: %s", config_path, e)

    api_defaults = ApiConfig()
    file_api = ApiConfig(
        postal_base_url=config_data.get("postal_base_url", api_defaults.postal_base_url),
        geocoding_url=config_data.get("geocoding_url", api_defaults.geocoding_url),
        forecast_url=config_data.get("forecast_url", api_defaults.forecast_url),
        geocoding_language=config_data.get("geocoding_language", api_defaults.geocoding_language),
        geocoding_count=api_defaults.geocoding_count,
        forecast_timezone=config_data.get("forecast_timezone", api_defaults.forecast_timezone),
        forecast_days=api_defaults.forecast_days,
        timeout=float(config_data.get("timeout", api_defaults.timeout)),
    )

    logs = LogConfig(
        log_dir=os.environ.get("CONSULTABOT_LOG_DIR", config_data.get("log_dir", "logs")),
        access_file=config_data.get("access_log_file", "access.log"),
        error_file=config_data.get("error_log_file", "errors.log"),
        verbose=_env_flag("CONSULTABOT_VERBOSE", config_data.get("verbose", False)),
    )

    return AppConfig(
        api=ApiConfig.from_env(file_api),
        logs=logs,
        loading_seconds=float(
            os.environ.get("CONSULTABOT_LOADING_SECONDS", config_data.get("loading_seconds", 1.5))
        ),
    )


def _env_flag(key: str, default: bool) -> bool:
    """Read a boolean environment variable ("1", "true", "yes" are truthy)."""
    value = os.environ.get(key)
    if value is None or value == "":
        return bool(default)
    return value.strip().lower() in ("1", "true", "yes")


def ensure_directories(config: AppConfig) -> None:
    """Ensure all required directories exist."""
    if not os.path.exists(config.logs.log_dir):
        os.makedirs(config.logs.log_dir)
        logger.info("Created directory: %s", config.logs.log_dir)
