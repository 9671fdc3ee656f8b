"""MongoDB Atlas encryption-at-rest credentials."""

import logging
from dataclasses import dataclass
from typing import Any, Dict

import requests
from requests.auth import HTTPDigestAuth

from keyrotator.utils.errors import LocationWriteError

from .base import KeyMaterial, LocationWriter, UpdatedLocation, register_location
from .transcoder import decode_key

logger = logging.getLogger(__name__)

ATLAS_API_URL = "https://cloud.mongodb.com/api/atlas/v1.0"


@register_location("atlas")
@dataclass
class Atlas(LocationWriter):
    """The KMS credentials Atlas uses to encrypt a project's data at rest."""

    project_id: str

    location_type = "Atlas"

    def write(self, service_account_name: str, key_material: KeyMaterial, credentials: Any) -> UpdatedLocation:
        keys = credentials.atlas_keys
        if not keys.public_key or not keys.private_key:
            raise LocationWriteError("Missing MongoDB Atlas API keys", suggestions=["Set 'atlas_keys' in credentials"])

        url = f"{ATLAS_API_URL}/groups/{self.project_id}/encryptionAtRest"
        auth = HTTPDigestAuth(keys.public_key, keys.private_key)

        response = requests.get(url, auth=auth, timeout=30)
        if response.status_code != 200:
            raise LocationWriteError(f"Atlas encryption-at-rest GET returned {response.status_code}", details=response.text)

        patch = self._patch_for(key_material, response.json())
        response = requests.patch(url, json=patch, auth=auth, timeout=30)
        if response.status_code != 200:
            raise LocationWriteError(f"Atlas encryption-at-rest PATCH returned {response.status_code}", details=response.text)
        logger.info("Updated Atlas encryption-at-rest credentials for project %s", self.project_id)

        return UpdatedLocation(location_type=self.location_type, location_uri=self.project_id)

    def _patch_for(self, key_material: KeyMaterial, current: Dict[str, Any]) -> Dict[str, Any]:
        if key_material.provider == "aws":
            aws_kms = dict(current.get("awsKms") or {})
            aws_kms.update({"accessKeyID": key_material.key_id, "secretAccessKey": key_material.key})
            return {"awsKms": aws_kms}
        if key_material.provider == "gcp":
            gcp_kms = dict(current.get("googleCloudKms") or {})
            gcp_kms["serviceAccountKey"] = decode_key(key_material.key)
            return {"googleCloudKms": gcp_kms}
        raise LocationWriteError(f"Atlas location does not support keys from provider: {key_material.provider}")
