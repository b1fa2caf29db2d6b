"""Configuration management using pydantic-settings.

Priority order (highest first):

1. Explicit constructor arguments
2. ConfigMap YAML (path from ``CLIENTIP_CONFIGMAP_FILE`` env var)
3. Environment variables (``CLIENTIP_`` prefix, ``__`` nesting)
4. ``.env`` dotenv file
5. Static YAML (``configs/config.yaml``)
6. File secrets
7. Field defaults
"""

import functools
import os
from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

from .system import ClientIPConfig, LoggingConfig, MetricsConfig

# ---------------------------------------------------------------------------
# Path constants
# ---------------------------------------------------------------------------

CONFIG_PY_PATH = Path(__file__).resolve()
PROJECT_ROOT = CONFIG_PY_PATH.parent.parent.parent.parent
CONFIG_DIR = PROJECT_ROOT / "configs"

STATIC_CONFIG_FILE = CONFIG_DIR / "config.yaml"

_configmap_env = os.environ.get("CLIENTIP_CONFIGMAP_FILE")
CONFIGMAP_CONFIG_FILE: Optional[Path] = Path(_configmap_env) if _configmap_env else None

DOTENV_FILE_PATH = PROJECT_ROOT / ".env"
ENV_DELIMITER = "__"
ENV_PREFIX = "CLIENTIP_"

DEFAULT_ENCODING = "utf-8"


class AppConfig(BaseSettings):
    """Application configuration."""

    model_config = SettingsConfigDict(
        env_file=DOTENV_FILE_PATH,
        env_file_encoding=DEFAULT_ENCODING,
        env_nested_delimiter=ENV_DELIMITER,
        env_prefix=ENV_PREFIX,
        case_sensitive=False,
        extra="ignore",
        yaml_file=STATIC_CONFIG_FILE,
        yaml_file_encoding=DEFAULT_ENCODING,
    )

    client_ip: ClientIPConfig = Field(
        default_factory=ClientIPConfig,
        description="Client IP detection settings",
    )

    logging: LoggingConfig = Field(
        default_factory=LoggingConfig,
        description="Logging settings",
    )

    metrics: MetricsConfig = Field(
        default_factory=MetricsConfig,
        description="Prometheus metrics settings",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        sources: list[PydanticBaseSettingsSource] = [init_settings]

        if CONFIGMAP_CONFIG_FILE is not None and CONFIGMAP_CONFIG_FILE.is_file():
            sources.append(
                YamlConfigSettingsSource(
                    settings_cls,
                    yaml_file=CONFIGMAP_CONFIG_FILE,
                )
            )

        sources.append(env_settings)
        sources.append(dotenv_settings)
        sources.append(YamlConfigSettingsSource(settings_cls))
        sources.append(file_secret_settings)

        return tuple(sources)


@functools.lru_cache(maxsize=1)
def get_app_config() -> AppConfig:
    """Get the application configuration (read once per process).

    The detector chain is frozen when the middleware is built, so
    re-reading config later would have no effect on request handling.
    """
    return AppConfig()