"""wordpress-boost configuration.

Two layers, both built once by the CLI and passed down explicitly:

  - ``Settings``: process settings from the environment / ``.env`` file
    (``WP_BOOST_*`` variables).
  - ``BoostConfig``: tool policy loaded from the static ``boost.json``
    defaults file.  A missing file means defaults, never a startup failure.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from wpboost.exceptions import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = Path(__file__).with_name("boost.json")


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="WP_BOOST_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # --- WordPress ---
    PATH: Path = Path(".")

    # --- Boost config file ---
    CONFIG_FILE: Path = DEFAULT_CONFIG_FILE

    # --- Logging (stderr only; stdout is the protocol channel) ---
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "WARNING"

    # --- Documentation lookups ---
    DOCS_API_URL: str = "https://developer.wordpress.org/wp-json/wp/v2"
    HTTP_TIMEOUT: float = 10.0

    @field_validator("LOG_LEVEL", mode="before")
    @classmethod
    def _upper_level(cls, v: str) -> str:
        return v.upper() if isinstance(v, str) else v


# ---------------------------------------------------------------------------
# Static boost configuration
# ---------------------------------------------------------------------------


class _Section(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)


class SecurityConfig(_Section):
    """Limits for security_audit."""
    max_scan_files: int = Field(default=500, ge=1)
    max_reported_issues: int = Field(default=100, ge=1)
    skip_dirs: list[str] = Field(default_factory=lambda: ["vendor", "node_modules"])


class ToolsConfig(_Section):
    max_log_lines: int = Field(default=500, ge=1)


class IntegrationsConfig(_Section):
    acf: bool = True
    woocommerce: bool = True


class BoostConfig(_Section):
    security: SecurityConfig = Field(default_factory=SecurityConfig)
    tools: ToolsConfig = Field(default_factory=ToolsConfig)
    integrations: IntegrationsConfig = Field(default_factory=IntegrationsConfig)


def load_boost_config(path: Path | str | None = None) -> BoostConfig:
    """Load the boost configuration file.

    A missing file yields ``BoostConfig()`` defaults.  A file that exists
    but is not valid JSON, or holds values of the wrong type, raises
    ``ConfigError`` so the mistake is visible at startup.
    """
    config_path = Path(path) if path is not None else DEFAULT_CONFIG_FILE
    if not config_path.is_file():
        logger.debug("No boost config at %s, using defaults", config_path)
        return BoostConfig()

    try:
        data = json.loads(config_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Invalid JSON in {config_path}: {exc}") from exc

    if not isinstance(data, dict):
        raise ConfigError(f"{config_path} must contain a JSON object")

    try:
        config = BoostConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid boost config in {config_path}: {exc}") from exc

    logger.debug("Loaded boost config from %s", config_path)
    return config
