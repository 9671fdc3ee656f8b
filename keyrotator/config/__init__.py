"""Configuration management for keyrotator."""

from .ambient import AmbientCredentials, provision_ambient_credentials
from .manager import ConfigManager
from .models import Config, Credentials, KeyLocation
from .schemas import CONFIG_SCHEMA
from .validator import ConfigValidationError, ConfigValidator

__all__ = [
    "AmbientCredentials",
    "CONFIG_SCHEMA",
    "Config",
    "ConfigManager",
    "ConfigValidationError",
    "ConfigValidator",
    "Credentials",
    "KeyLocation",
    "provision_ambient_credentials",
]
