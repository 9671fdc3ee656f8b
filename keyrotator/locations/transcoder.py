"""Conversion of key material into the representation a location expects."""

import base64
import binascii
import configparser
import io
import json
from dataclasses import dataclass
from typing import Dict, Optional

from keyrotator.utils.errors import TranscodeError

from .base import KeyMaterial


@dataclass(frozen=True)
class ProviderDefaults:
    """Default variable names and file type for keys of one provider."""

    key_var: str
    key_id_var: str = ""
    file_type: str = ""


PROVIDER_DEFAULTS: Dict[str, ProviderDefaults] = {
    "aiven": ProviderDefaults(key_var="AIVEN_TOKEN"),
    "aws": ProviderDefaults(
        key_var="AWS_SECRET_ACCESS_KEY",
        key_id_var="AWS_ACCESS_KEY_ID",
        file_type="ini",
    ),
    "gcp": ProviderDefaults(key_var="GCLOUD_SERVICE_KEY", file_type="b64"),
}

FILE_TYPES = ("b64", "ini", "json", "raw", "")


def provider_defaults(provider: str) -> ProviderDefaults:
    try:
        return PROVIDER_DEFAULTS[provider]
    except KeyError:
        raise TranscodeError(f"No default env var names available for provider: {provider}")


def var_name(provider: str, supplied: Optional[str] = None, id_value: bool = False) -> Optional[str]:
    """
    Resolve the variable name for a key or key id.

    A supplied name always wins. Otherwise the provider's default is used; a
    provider without a default id variable yields None, meaning the id is not
    written.
    """
    if supplied:
        return supplied

    defaults = provider_defaults(provider)
    if id_value:
        return defaults.key_id_var or None

    if not defaults.key_var:
        raise TranscodeError(f"No key variable name configured for provider: {provider}")
    return defaults.key_var


def file_type(provider: str, supplied: Optional[str] = None) -> str:
    """Resolve the file type, falling back to the provider default."""
    if supplied:
        return supplied
    defaults = PROVIDER_DEFAULTS.get(provider)
    return defaults.file_type if defaults else ""


def decode_key(key: str) -> str:
    """Base64 decode a key; GCP returns its key files encoded."""
    try:
        return base64.b64decode(key, validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError) as e:
        raise TranscodeError(f"Unable to base64 decode key: {e}") from e


def ini_credentials(key_id: str, key: str) -> str:
    parser = configparser.ConfigParser(interpolation=None)
    parser["default"] = {"aws_access_key_id": key_id, "aws_secret_access_key": key}
    buffer = io.StringIO()
    parser.write(buffer)
    return buffer.getvalue()


def key_for_file_based_location(key_material: KeyMaterial, supplied_file_type: Optional[str] = None) -> str:
    """
    Render key material for a location that stores it as a file.

    Args:
        key_material: New key, key id and provider
        supplied_file_type: Configured file type (b64, ini, json, raw)

    Returns:
        str: File contents

    Raises:
        TranscodeError: On an unsupported file type or undecodable key
    """
    resolved = file_type(key_material.provider, supplied_file_type)

    if resolved == "b64":
        return decode_key(key_material.key)
    if resolved == "ini":
        return ini_credentials(key_material.key_id, key_material.key)
    if resolved == "json":
        return json.dumps(
            {
                "aws_access_key_id": key_material.key_id,
                "aws_secret_access_key": key_material.key,
            }
        )
    if resolved in ("raw", ""):
        return key_material.key

    raise TranscodeError(
        f"Unsupported file type: {resolved}",
        suggestions=["Use one of: b64, ini, json, raw"],
    )
