"""Runtime settings and the static boost configuration."""

from wpboost.config.settings import (
    BoostConfig,
    Settings,
    load_boost_config,
)

__all__ = ["BoostConfig", "Settings", "load_boost_config"]
