"""Google Cloud Storage objects."""

import logging
from dataclasses import dataclass
from typing import Any

from keyrotator.utils.errors import LocationWriteError

from .base import KeyMaterial, LocationWriter, UpdatedLocation, register_location
from .transcoder import key_for_file_based_location

logger = logging.getLogger(__name__)


@register_location("gcs")
@dataclass
class Gcs(LocationWriter):
    bucket_name: str
    object_name: str
    file_type: str = ""

    location_type = "GCS"
    requires_google_credentials = True

    def write(self, service_account_name: str, key_material: KeyMaterial, credentials: Any) -> UpdatedLocation:
        key = key_for_file_based_location(key_material, self.file_type)

        from google.cloud import storage

        try:
            client = storage.Client(credentials=credentials.ambient.google_credentials())
            blob = client.bucket(self.bucket_name).blob(self.object_name)
            blob.upload_from_string(key)
        except Exception as e:
            raise LocationWriteError(f"Failed to write gs://{self.bucket_name}/{self.object_name}: {e}") from e
        logger.info("Uploaded key to gs://%s/%s", self.bucket_name, self.object_name)

        return UpdatedLocation(
            location_type=self.location_type,
            location_uri=self.bucket_name,
            location_ids=[self.object_name],
        )
