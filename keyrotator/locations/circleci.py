"""CircleCI project environment variables and contexts."""

import logging
from dataclasses import dataclass
from typing import Any, List, Optional

import requests

from keyrotator.utils.errors import LocationWriteError, VerificationError
from keyrotator.verification import retry_with_backoff

from .base import KeyMaterial, LocationWriter, UpdatedLocation, register_location
from .transcoder import decode_key, var_name

logger = logging.getLogger(__name__)

CIRCLECI_V1_URL = "https://circleci.com/api/v1.1"
CIRCLECI_V2_URL = "https://circleci.com/api/v2"


class CircleCIClient:
    """Minimal client for the CircleCI REST endpoints used by key locations."""

    def __init__(self, token: str, session: Optional[requests.Session] = None):
        self.token = token
        self.session = session or requests.Session()

    def _request(self, method: str, url: str, ok=(200, 201), **kwargs) -> Any:
        response = self.session.request(
            method,
            url,
            headers={"Circle-Token": self.token, "Accept": "application/json"},
            timeout=30,
            **kwargs,
        )
        if response.status_code not in ok:
            raise LocationWriteError(
                f"CircleCI API {method} {url} returned {response.status_code}",
                details=response.text,
            )
        return response

    def _envvar_url(self, username: str, project: str, name: str = "") -> str:
        url = f"{CIRCLECI_V1_URL}/project/github/{username}/{project}/envvar"
        return f"{url}/{name}" if name else url

    def list_env_vars(self, username: str, project: str) -> List[dict]:
        return self._request("GET", self._envvar_url(username, project)).json()

    def delete_env_var(self, username: str, project: str, name: str) -> None:
        self._request("DELETE", self._envvar_url(username, project, name))

    def add_env_var(self, username: str, project: str, name: str, value: str) -> None:
        self._request("POST", self._envvar_url(username, project), json={"name": name, "value": value})

    def delete_context_var(self, context_id: str, name: str) -> None:
        self._request(
            "DELETE",
            f"{CIRCLECI_V2_URL}/context/{context_id}/environment-variable/{name}",
            ok=(200, 204, 404),
        )

    def put_context_var(self, context_id: str, name: str, value: str) -> None:
        self._request(
            "PUT",
            f"{CIRCLECI_V2_URL}/context/{context_id}/environment-variable/{name}",
            json={"value": value},
        )


def _resolve_key(key_material: KeyMaterial, base64_decode: bool) -> str:
    # GCP returns its keys base64 encoded
    if base64_decode:
        return decode_key(key_material.key)
    return key_material.key


@register_location("circleci")
@dataclass
class CircleCI(LocationWriter):
    """Project environment variables, replaced by delete then add."""

    username_project: str
    key_id_env_var: str = ""
    key_env_var: str = ""
    base64_decode: bool = False

    location_type = "CircleCI"

    def write(self, service_account_name: str, key_material: KeyMaterial, credentials: Any) -> UpdatedLocation:
        username, project = self.username_project.split("/", 1)
        logger.info("Starting CircleCI env var updates, username: %s, project: %s", username, project)

        client = CircleCIClient(credentials.circleci_api_token)
        key = _resolve_key(key_material, self.base64_decode)
        key_env_var = var_name(key_material.provider, self.key_env_var)
        key_id_env_var = var_name(key_material.provider, self.key_id_env_var, id_value=True)

        if key_id_env_var:
            self._update_env_var(client, username, project, key_id_env_var, key_material.key_id)
        self._update_env_var(client, username, project, key_env_var, key)

        return UpdatedLocation(
            location_type=self.location_type,
            location_uri=self.username_project,
            location_ids=[key_id_env_var or "", key_env_var],
        )

    def _update_env_var(self, client: CircleCIClient, username: str, project: str, name: str, value: str) -> None:
        self._verify_env_var(client, username, project, name)
        client.delete_env_var(username, project, name)
        logger.info("Deleted CircleCI env var: %s from %s/%s", name, username, project)
        client.add_env_var(username, project, name, value)
        logger.info("Added CircleCI env var: %s to %s/%s", name, username, project)
        self._verify_env_var(client, username, project, name)

    def _verify_env_var(self, client: CircleCIClient, username: str, project: str, name: str) -> None:
        def check() -> None:
            names = [env_var.get("name") for env_var in client.list_env_vars(username, project)]
            if name not in names:
                raise VerificationError(f"CircleCI env var: {name} not detected on {username}/{project}")

        retry_with_backoff(check, max_elapsed=60.0, retry_on=(VerificationError,))
        logger.info("Verified CircleCI env var: %s on %s/%s", name, username, project)


@register_location("circleci_context")
@dataclass
class CircleCIContext(LocationWriter):
    """Environment variables of a CircleCI context."""

    context_id: str
    key_id_env_var: str = ""
    key_env_var: str = ""
    base64_decode: bool = False

    location_type = "CircleCIContext"

    def write(self, service_account_name: str, key_material: KeyMaterial, credentials: Any) -> UpdatedLocation:
        logger.info("Starting CircleCI context env var updates")

        client = CircleCIClient(credentials.circleci_api_token)
        key = _resolve_key(key_material, self.base64_decode)
        key_env_var = var_name(key_material.provider, self.key_env_var)
        key_id_env_var = var_name(key_material.provider, self.key_id_env_var, id_value=True)

        if key_id_env_var:
            self._update_context_var(client, key_id_env_var, key_material.key_id)
        self._update_context_var(client, key_env_var, key)

        return UpdatedLocation(
            location_type=self.location_type,
            location_uri=self.context_id,
            location_ids=[key_id_env_var or "", key_env_var],
        )

    def _update_context_var(self, client: CircleCIClient, name: str, value: str) -> None:
        def replace() -> None:
            client.delete_context_var(self.context_id, name)
            client.put_context_var(self.context_id, name, value)

        retry_with_backoff(replace, retry_on=(LocationWriteError, requests.RequestException))
        logger.info("Updated CircleCI context env var: %s in %s", name, self.context_id)
