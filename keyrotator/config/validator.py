"""Configuration validation for keyrotator."""

from typing import Any, Dict, List

import jsonschema

from keyrotator.locations import location_from_dict
from keyrotator.utils.errors import ConfigurationError, format_validation_errors

from .schemas import CONFIG_SCHEMA

FILTER_MODES = ("include", "exclude")


class ConfigValidationError(ConfigurationError):
    """Raised when configuration validation fails."""

    def __init__(self, errors: List[str]):
        self.errors = errors
        super().__init__(
            "Configuration validation failed",
            details=format_validation_errors(errors),
        )


class ConfigValidator:
    """Validates keyrotator configuration."""

    def validate_config(self, config: Dict[str, Any]) -> List[str]:
        """
        Validate a configuration mapping.

        Args:
            config: Configuration dictionary to validate

        Returns:
            List[str]: List of validation errors (empty if valid)
        """
        errors = []

        try:
            jsonschema.validate(config, CONFIG_SCHEMA)
        except jsonschema.ValidationError as e:
            path = ".".join(str(part) for part in e.absolute_path)
            errors.append(f"Schema validation failed{' at ' + path if path else ''}: {e.message}")
            return errors
        except jsonschema.SchemaError as e:
            errors.append(f"Schema error: {e.message}")
            return errors

        if not config.get("cloud_providers"):
            errors.append("At least one cloud provider must be configured")

        for provider in config.get("cloud_providers", []):
            errors.extend(self._validate_provider(provider))

        mode = (config.get("account_filter") or {}).get("mode", "")
        if mode and mode not in FILTER_MODES:
            errors.append(f"Unsupported account filter mode: {mode}, use one of: {', '.join(FILTER_MODES)}")

        errors.extend(self._validate_key_locations(config.get("account_key_locations", [])))
        return errors

    def _validate_provider(self, provider: Dict[str, Any]) -> List[str]:
        if provider.get("name") == "gcp" and not provider.get("project"):
            return ["Cloud provider gcp requires a project"]
        return []

    def _validate_key_locations(self, key_locations: List[Dict[str, Any]]) -> List[str]:
        errors = []
        seen = set()

        for key_location in key_locations:
            name = key_location["service_account_name"]
            if name in seen:
                errors.append(f"Duplicate key locations for service account: {name}")
            seen.add(name)

            for location in key_location.get("locations", []):
                try:
                    location_from_dict(location)
                except (ConfigurationError, TypeError) as e:
                    errors.append(f"Invalid location for {name}: {getattr(e, 'message', e)}")

        return errors
