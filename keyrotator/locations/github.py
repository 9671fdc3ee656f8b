"""GitHub Actions repository and environment secrets."""

import base64
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import requests
from nacl import encoding, public

from keyrotator.utils.errors import LocationWriteError

from .base import KeyMaterial, LocationWriter, UpdatedLocation, register_location
from .transcoder import decode_key, var_name

logger = logging.getLogger(__name__)

GITHUB_API_URL = "https://api.github.com"


def encrypt_secret(public_key: str, secret_value: str) -> str:
    """Seal ``secret_value`` for the given base64 encoded public key."""
    key = public.PublicKey(public_key.encode("utf-8"), encoding.Base64Encoder())
    sealed = public.SealedBox(key).encrypt(secret_value.encode("utf-8"))
    return base64.b64encode(sealed).decode("utf-8")


@register_location("github")
@dataclass
class GitHub(LocationWriter):
    """Actions secrets, on the repository or on one of its environments.

    Environment secrets are addressed by repository id, so ``repo`` must be
    numeric when ``env`` is set.
    """

    owner: str
    repo: str
    env: str = ""
    key_id_env_var: str = ""
    key_env_var: str = ""
    base64_decode: bool = False

    location_type = "GitHub"

    def write(self, service_account_name: str, key_material: KeyMaterial, credentials: Any) -> UpdatedLocation:
        logger.info("Starting GitHub env var updates, owner: %s, repo: %s", self.owner, self.repo)

        session = requests.Session()
        session.headers.update(
            {
                "Authorization": f"Bearer {credentials.github_api_token}",
                "Accept": "application/vnd.github+json",
            }
        )

        key = decode_key(key_material.key) if self.base64_decode else key_material.key
        key_env_var = var_name(key_material.provider, self.key_env_var)
        key_id_env_var = var_name(key_material.provider, self.key_id_env_var, id_value=True)

        if key_id_env_var:
            self._add_secret(session, key_id_env_var, key_material.key_id)
        self._add_secret(session, key_env_var, key)

        return UpdatedLocation(
            location_type=self.location_type,
            location_uri=f"{self.owner}/{self.repo}",
            location_ids=[key_id_env_var or "", key_env_var],
        )

    def _secrets_url(self) -> str:
        if self.env:
            try:
                repo_id = int(self.repo)
            except ValueError as e:
                raise LocationWriteError(
                    f"Error parsing repo string: {self.repo} to int",
                    suggestions=["Environment secrets need the numeric repository id as 'repo'"],
                ) from e
            return f"{GITHUB_API_URL}/repositories/{repo_id}/environments/{self.env}/secrets"
        return f"{GITHUB_API_URL}/repos/{self.owner}/{self.repo}/actions/secrets"

    def _call(self, session: requests.Session, method: str, url: str, json: Optional[Dict] = None) -> requests.Response:
        response = session.request(method, url, json=json, timeout=30)
        if response.status_code not in (200, 201, 204):
            raise LocationWriteError(
                f"GitHub API {method} {url} returned {response.status_code}",
                details=response.text,
            )
        return response

    def _add_secret(self, session: requests.Session, name: str, value: str) -> None:
        url = self._secrets_url()
        public_key = self._call(session, "GET", f"{url}/public-key").json()
        self._call(
            session,
            "PUT",
            f"{url}/{name}",
            json={
                "encrypted_value": encrypt_secret(public_key["key"], value),
                "key_id": public_key["key_id"],
            },
        )
        logger.info("Added GitHub secret: %s to %s/%s", name, self.owner, self.repo)
