"""
Configuration helpers for tagsmith builds.
"""

from .models import BuildConfig, ConfigError, find_default_config, load_config
from .settings import EnvironmentSettings, get_settings

__all__ = ["BuildConfig", "ConfigError", "find_default_config", "load_config", "EnvironmentSettings", "get_settings"]
