"""Destinations that receive newly created keys."""

from .base import (
    LOCATION_TYPES,
    KeyMaterial,
    LocationWriter,
    UpdatedLocation,
    location_from_dict,
    register_location,
)

# Imported for their registration side effect
from . import aws, atlas, circleci, datadog, gcs, git, github, gocd, k8s  # noqa: E402,F401

__all__ = [
    "LOCATION_TYPES",
    "KeyMaterial",
    "LocationWriter",
    "UpdatedLocation",
    "location_from_dict",
    "register_location",
]
