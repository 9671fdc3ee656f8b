"""GoCD environment variables."""

import logging
from dataclasses import dataclass
from typing import Any

import requests

from keyrotator.utils.errors import LocationWriteError, VerificationError

from .base import KeyMaterial, LocationWriter, UpdatedLocation, register_location

logger = logging.getLogger(__name__)

GOCD_ACCEPT = "application/vnd.go.cd.v3+json"


@register_location("gocd")
@dataclass
class Gocd(LocationWriter):
    """Secure variables of a GoCD environment, replaced in a single PATCH."""

    env_name: str
    key_env_var: str
    key_id_env_var: str = ""

    location_type = "Gocd"

    def write(self, service_account_name: str, key_material: KeyMaterial, credentials: Any) -> UpdatedLocation:
        server = credentials.gocd_server
        session = requests.Session()
        session.auth = (server.username, server.password)
        session.verify = not server.skip_ssl_check
        session.headers.update({"Accept": GOCD_ACCEPT})
        url = f"{server.server.rstrip('/')}/go/api/admin/environments/{self.env_name}"

        if self.key_id_env_var:
            self._update_env_var(session, url, self.key_id_env_var, key_material.key_id)
        self._update_env_var(session, url, self.key_env_var, key_material.key)

        return UpdatedLocation(
            location_type=self.location_type,
            location_uri=self.env_name,
            location_ids=[self.key_id_env_var, self.key_env_var],
        )

    def _update_env_var(self, session: requests.Session, url: str, name: str, value: str) -> None:
        self._verify_env_var(session, url, name)
        patch = {
            "environment_variables": {
                "add": [{"name": name, "value": value, "secure": True}],
                "remove": [name],
            }
        }
        response = session.patch(url, json=patch, headers={"Content-Type": "application/json"}, timeout=30)
        if response.status_code != 200:
            raise LocationWriteError(
                f"GoCD environment {self.env_name} PATCH returned {response.status_code}",
                details=response.text,
            )
        logger.info("Replaced GoCD env var: %s in env: %s", name, self.env_name)
        self._verify_env_var(session, url, name)

    def _verify_env_var(self, session: requests.Session, url: str, name: str) -> None:
        response = session.get(url, timeout=30)
        if response.status_code != 200:
            raise LocationWriteError(
                f"GoCD environment {self.env_name} GET returned {response.status_code}",
                details=response.text,
            )
        env_vars = response.json().get("environment_variables", [])
        if not any(env_var.get("name") == name for env_var in env_vars):
            raise VerificationError(f"Env var: {name} not found in environment: {self.env_name}")
