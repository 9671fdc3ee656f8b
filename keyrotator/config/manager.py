"""Configuration management for keyrotator."""

import json
import logging
import os
from typing import Any, Dict, List, Mapping, Optional

import yaml

from keyrotator.utils.errors import ConfigurationError, create_error_suggestions

from .models import Config
from .sources import get_gcs_object, get_secret
from .validator import ConfigValidationError, ConfigValidator

logger = logging.getLogger(__name__)

CONFIG_DIRS = ("/etc/cloud-key-rotator", ".")
CONFIG_EXTENSIONS = ("yaml", "yml", "json")
CONFIG_TYPES = ("yaml", "yml", "json")

BOOLEAN_OVERRIDES = {
    "CKR_ROTATION_MODE": "rotation_mode",
    "CKR_INCLUDE_AWS_USER_KEYS": "include_aws_user_keys",
    "CKR_INCLUDE_INACTIVE_KEYS": "include_inactive_keys",
    "CKR_ENABLE_KEY_AGE_LOGGING": "enable_key_age_logging",
}
INTEGER_OVERRIDES = {
    "CKR_DEFAULT_ROTATION_AGE_THRESHOLD_MINS": "default_rotation_age_threshold_mins",
}


class ConfigManager:
    """Loads, overrides and validates keyrotator configuration."""

    def __init__(self, environ: Optional[Mapping[str, str]] = None):
        """
        Initialize configuration manager.

        Args:
            environ: Environment used for CKR_* overrides (defaults to os.environ)
        """
        self.environ = os.environ if environ is None else environ
        self.validator = ConfigValidator()

    def find_config_path(self) -> Optional[str]:
        """Return the first config file found in the default locations."""
        for directory in CONFIG_DIRS:
            for extension in CONFIG_EXTENSIONS:
                candidate = os.path.join(directory, f"config.{extension}")
                if os.path.isfile(candidate):
                    return candidate
        return None

    def load_config(self, config_path: Optional[str] = None, validate: bool = True) -> Config:
        """
        Load configuration from a file.

        Args:
            config_path: Path to the configuration file (searched for when omitted)
            validate: Whether to validate the configuration

        Returns:
            Config: Loaded configuration

        Raises:
            ConfigurationError: If no file is found or it cannot be parsed
            ConfigValidationError: If validation fails
        """
        config_path = config_path or self.find_config_path()
        if not config_path:
            raise ConfigurationError(
                "No configuration file found",
                suggestions=[
                    f"Create config.yaml in one of: {', '.join(CONFIG_DIRS)}",
                    "Or pass --config with the path to a configuration file",
                ],
            )
        if not os.path.isfile(config_path):
            raise ConfigurationError(f"Configuration file not found: {config_path}")

        config_type = os.path.splitext(config_path)[1].lstrip(".") or "yaml"
        with open(config_path, encoding="utf-8") as f:
            text = f.read()

        logger.debug("Loading configuration from %s", config_path)
        return self.load_config_text(text, config_type, validate=validate, source=config_path)

    def load_config_text(
        self, text: str, config_type: str = "yaml", validate: bool = True, source: str = "<string>"
    ) -> Config:
        """Parse, override, validate and build configuration from text."""
        data = self.parse(text, config_type, source)
        data = self.apply_env_overrides(data)

        if validate:
            errors = self.validate_config(data)
            if errors:
                raise ConfigValidationError(errors)

        return Config.from_dict(data)

    def load_from_secrets_manager(
        self, secret_name: str, config_type: str = "json", client: Any = None, validate: bool = True
    ) -> Config:
        """Load configuration stored as an AWS Secrets Manager secret."""
        try:
            text = get_secret(secret_name, client=client)
        except Exception as e:
            raise ConfigurationError(f"Unable to read configuration secret {secret_name}: {e}") from e
        return self.load_config_text(text, config_type, validate=validate, source=f"secret {secret_name}")

    def load_from_gcs(
        self, bucket_name: str, object_name: str, config_type: str = "json", client: Any = None, validate: bool = True
    ) -> Config:
        """Load configuration stored as a Google Cloud Storage object."""
        source = f"gs://{bucket_name}/{object_name}"
        try:
            text = get_gcs_object(bucket_name, object_name, client=client)
        except Exception as e:
            raise ConfigurationError(f"Unable to read configuration from {source}: {e}") from e
        return self.load_config_text(text, config_type, validate=validate, source=source)

    def parse(self, text: str, config_type: str, source: str = "<string>") -> Dict[str, Any]:
        config_type = config_type.lower()
        if config_type not in CONFIG_TYPES:
            raise ConfigurationError(
                f"Unsupported configuration type: {config_type}",
                suggestions=[f"Use one of: {', '.join(CONFIG_TYPES)}"],
            )

        try:
            if config_type == "json":
                data = json.loads(text) if text.strip() else {}
            else:
                data = yaml.safe_load(text)
        except (ValueError, yaml.YAMLError) as e:
            raise ConfigurationError(
                f"Error parsing configuration from {source}: {e}",
                suggestions=create_error_suggestions("configuration_invalid"),
            ) from e

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigurationError(f"Configuration from {source} must be a mapping")
        return data

    def apply_env_overrides(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Apply CKR_* environment overrides to top-level settings."""
        data = dict(data)

        for env_var, key in BOOLEAN_OVERRIDES.items():
            value = self.environ.get(env_var)
            if value is not None and value != "":
                data[key] = value.strip().lower() in ("1", "true", "yes", "on")

        for env_var, key in INTEGER_OVERRIDES.items():
            value = self.environ.get(env_var)
            if value is not None and value != "":
                try:
                    data[key] = int(value)
                except ValueError as e:
                    raise ConfigurationError(f"{env_var} must be an integer, got: {value}") from e

        return data

    def validate_config(self, data: Dict[str, Any]) -> List[str]:
        return self.validator.validate_config(data)
