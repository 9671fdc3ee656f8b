"""Key location abstraction shared by every destination kind."""

import dataclasses
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, List, Type

from keyrotator.utils.errors import ConfigurationError


@dataclass(frozen=True)
class KeyMaterial:
    """A freshly created key, its id, and the provider that issued it."""

    key: str
    key_id: str
    provider: str


@dataclass
class UpdatedLocation:
    """Audit record of one successful location write."""

    location_type: str
    location_uri: str
    location_ids: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "location_type": self.location_type,
            "location_uri": self.location_uri,
            "location_ids": list(self.location_ids),
        }


class LocationWriter(ABC):
    """A destination that must receive every new key of an account."""

    location_type: ClassVar[str] = ""
    requires_google_credentials: ClassVar[bool] = False

    @abstractmethod
    def write(self, service_account_name: str, key_material: KeyMaterial, credentials: Any) -> UpdatedLocation:
        """
        Write the new key to this location.

        Args:
            service_account_name: Account the key belongs to
            key_material: New key, key id and provider
            credentials: Credential bundle holding tokens for the location's API

        Returns:
            UpdatedLocation: What was changed

        Raises:
            KeyRotatorError: If the write fails
        """


LOCATION_TYPES: Dict[str, Type[LocationWriter]] = {}


def register_location(name: str):
    """Class decorator registering a location under its configuration ``type`` tag."""

    def decorator(cls):
        LOCATION_TYPES[name] = cls
        return cls

    return decorator


def location_from_dict(data: Dict[str, Any]) -> LocationWriter:
    """Build a location from its configuration mapping."""
    data = dict(data)
    location_type = data.pop("type", None)
    cls = LOCATION_TYPES.get(location_type)
    if cls is None:
        raise ConfigurationError(
            f"Unknown key location type: {location_type}",
            suggestions=[f"Supported types: {', '.join(sorted(LOCATION_TYPES))}"],
        )

    known = {f.name for f in dataclasses.fields(cls)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigurationError(f"Unknown fields for {location_type} location: {', '.join(unknown)}")

    return cls(**data)
