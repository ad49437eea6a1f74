"""Configuration management for bpsites."""

from bpsites.config.config_manager import ConfigContext
from bpsites.config.config_manager import config_context
from bpsites.config.config_manager import get_config
from bpsites.config.config_manager import reset_config
from bpsites.config.config_manager import set_config
from bpsites.config.config_manager import update_config
from bpsites.config.resolver_config import DEFAULT_CONFIG
from bpsites.config.resolver_config import ResolverConfig

__all__ = [
    "DEFAULT_CONFIG",
    "ConfigContext",
    "ResolverConfig",
    "config_context",
    "get_config",
    "reset_config",
    "set_config",
    "update_config",
]
