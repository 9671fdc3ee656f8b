"""Datadog's GCP integration."""

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict

import requests

from keyrotator.utils.errors import LocationWriteError

from .base import KeyMaterial, LocationWriter, UpdatedLocation, register_location
from .transcoder import decode_key

logger = logging.getLogger(__name__)

DATADOG_GCP_INTEGRATION_URL = "https://api.datadoghq.com/api/v1/integration/gcp"


@register_location("datadog")
@dataclass
class Datadog(LocationWriter):
    """Private key of the Datadog GCP integration for one service account."""

    project: str
    client_email: str

    location_type = "DatadogGCPIntegration"

    def write(self, service_account_name: str, key_material: KeyMaterial, credentials: Any) -> UpdatedLocation:
        logger.info("Starting Datadog GCP integration update for %s in project %s", self.client_email, self.project)

        if key_material.provider != "gcp":
            raise LocationWriteError("This location only supports GCP service account keys")

        keys = credentials.datadog
        if not keys.api_key or not keys.app_key:
            raise LocationWriteError("Missing Datadog credentials", suggestions=["Set 'datadog' in credentials"])
        headers = {"DD-API-KEY": keys.api_key, "DD-APPLICATION-KEY": keys.app_key}

        integration = self._find_integration(headers)
        integration.update(self._private_key_fields(key_material))

        response = requests.put(DATADOG_GCP_INTEGRATION_URL, json=integration, headers=headers, timeout=30)
        if response.status_code == 403:
            raise LocationWriteError("Invalid Datadog credentials")
        if response.status_code == 400:
            raise LocationWriteError("Datadog rejected the GCP integration update", details=response.text)
        if response.status_code != 200:
            raise LocationWriteError(f"Datadog GCP integration update returned {response.status_code}")

        return UpdatedLocation(
            location_type=self.location_type,
            location_uri=integration["project_id"],
            location_ids=[integration["client_email"]],
        )

    def _find_integration(self, headers: Dict[str, str]) -> Dict[str, Any]:
        response = requests.get(DATADOG_GCP_INTEGRATION_URL, headers=headers, timeout=30)
        if response.status_code == 403:
            raise LocationWriteError("Invalid Datadog credentials")
        if response.status_code != 200:
            raise LocationWriteError(f"Datadog GCP integration list returned {response.status_code}")

        for account in response.json():
            if account.get("client_email") == self.client_email and account.get("project_id") == self.project:
                return dict(account)
        raise LocationWriteError(f"Existing Datadog integration not found for {self.client_email} in {self.project}")

    @staticmethod
    def _private_key_fields(key_material: KeyMaterial) -> Dict[str, str]:
        try:
            key_file = json.loads(decode_key(key_material.key))
        except ValueError as e:
            raise LocationWriteError(f"Unable to parse GCP key file: {e}") from e
        return {
            "private_key_id": key_file["private_key_id"],
            "private_key": key_file["private_key"],
        }
