import os
import tomllib
from pathlib import Path
from typing import Any

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from corethink.core.errors import ConfigurationError
from corethink.core.logging import get_logger
from corethink.utils.merge import deep_merge

from .core import HTTPSettings, LoggingSettings, ProviderOverride


__all__ = ["Settings", "find_toml_config_file", "get_xdg_config_home", "get_xdg_data_home"]

logger = get_logger(__name__)

CONFIG_ENV_VAR = "CORETHINK_CONFIG"


def get_xdg_config_home() -> Path:
    return Path(os.environ.get("XDG_CONFIG_HOME") or Path.home() / ".config")


def get_xdg_data_home() -> Path:
    return Path(os.environ.get("XDG_DATA_HOME") or Path.home() / ".local" / "share")


def _default_data_dir() -> Path:
    return get_xdg_data_home() / "corethink"


def find_toml_config_file() -> Path | None:
    """Locate the configuration file.

    Search order:
    1. ``$CORETHINK_CONFIG``
    2. ``corethink.toml`` in the current directory
    3. ``config.toml`` in ``$XDG_CONFIG_HOME/corethink/``
    """
    explicit = os.environ.get(CONFIG_ENV_VAR)
    if explicit:
        return Path(explicit)

    candidates = [
        Path.cwd() / "corethink.toml",
        get_xdg_config_home() / "corethink" / "config.toml",
    ]
    for candidate in candidates:
        if candidate.is_file():
            return candidate
    return None


class Settings(BaseSettings):
    """
    Process-wide configuration.

    Values are layered: keyword overrides passed to ``from_config`` win over
    environment variables (``CORETHINK_`` prefix, ``__`` for nesting), which
    win over the TOML configuration file, which wins over defaults.
    """

    model_config = SettingsConfigDict(
        env_prefix="CORETHINK_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        env_nested_delimiter="__",
    )

    model: str | None = Field(
        default=None,
        description="Default model as 'provider/model'",
    )

    small_model: str | None = Field(
        default=None,
        description="Model used for lightweight tasks as 'provider/model'",
    )

    provider: dict[str, ProviderOverride] = Field(
        default_factory=dict,
        description="Per-provider overrides keyed by provider id",
    )

    http: HTTPSettings = Field(
        default_factory=HTTPSettings,
        description="HTTP client configuration settings",
    )

    logging: LoggingSettings = Field(
        default_factory=LoggingSettings,
        description="Logging configuration",
    )

    data_dir: Path = Field(
        default_factory=_default_data_dir,
        description="Directory holding persisted credentials",
    )

    output_token_max: int = Field(
        default=32_000,
        description="Global ceiling for requested output tokens",
        ge=1,
    )

    @property
    def auth_file(self) -> Path:
        """Location of the persisted credential file."""
        return self.data_dir / "auth.json"

    def provider_options(self, provider_id: str) -> dict[str, Any]:
        """Return the configured option override bag for a provider."""
        override = self.provider.get(provider_id)
        return dict(override.options) if override else {}

    @classmethod
    def load_toml_config(cls, toml_path: Path) -> dict[str, Any]:
        """Load configuration from a TOML file."""
        try:
            with toml_path.open("rb") as f:
                return tomllib.load(f)
        except OSError as e:
            raise ConfigurationError(f"Cannot read TOML config file {toml_path}: {e}") from e
        except tomllib.TOMLDecodeError as e:
            raise ConfigurationError(f"Invalid TOML syntax in {toml_path}: {e}") from e

    @classmethod
    def from_config(
        cls,
        config_path: Path | str | None = None,
        **overrides: Any,
    ) -> "Settings":
        """Create Settings from the configuration file, environment and overrides."""
        if isinstance(config_path, str):
            config_path = Path(config_path)
        if config_path is None:
            config_path = find_toml_config_file()

        config_data: dict[str, Any] = {}
        if config_path is not None:
            if config_path.suffix.lower() != ".toml":
                raise ConfigurationError(
                    f"Unsupported config file format: {config_path.suffix}. "
                    "Only TOML (.toml) files are supported."
                )
            if config_path.exists():
                config_data = cls.load_toml_config(config_path)
                logger.info("config_file_loaded", path=str(config_path))

        # Fields populated from the environment count as "set", so dumping
        # them lets the environment win over the file.
        try:
            env_data = cls().model_dump(exclude_unset=True)
            merged = deep_merge(deep_merge(config_data, env_data), overrides)
            return cls(**merged)
        except ValueError as e:
            raise ConfigurationError(f"Invalid configuration: {e}") from e
