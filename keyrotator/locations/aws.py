"""AWS Systems Manager parameters and Secrets Manager secrets."""

import logging
from dataclasses import dataclass
from typing import Any

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from keyrotator.utils.errors import LocationWriteError

from .base import KeyMaterial, LocationWriter, UpdatedLocation, register_location
from .transcoder import key_for_file_based_location, var_name

logger = logging.getLogger(__name__)


@register_location("ssm")
@dataclass
class Ssm(LocationWriter):
    """The key id as a String parameter and the key as a SecureString."""

    region: str
    key_param_name: str = ""
    key_id_param_name: str = ""
    convert_to_json: bool = False

    location_type = "SSM"

    def write(self, service_account_name: str, key_material: KeyMaterial, credentials: Any) -> UpdatedLocation:
        if self.convert_to_json:
            key = key_for_file_based_location(key_material, "json")
        else:
            key = key_material.key

        key_param = var_name(key_material.provider, self.key_param_name)
        key_id_param = var_name(key_material.provider, self.key_id_param_name, id_value=True)

        client = boto3.client("ssm", region_name=self.region)
        if key_id_param:
            self._put_parameter(client, key_id_param, key_material.key_id, "String")
        self._put_parameter(client, key_param, key, "SecureString")

        return UpdatedLocation(
            location_type=self.location_type,
            location_uri=self.region,
            location_ids=[key_id_param or "", key_param],
        )

    def _put_parameter(self, client: Any, name: str, value: str, parameter_type: str) -> None:
        try:
            client.put_parameter(Name=name, Value=value, Type=parameter_type, Overwrite=True)
        except (BotoCoreError, ClientError) as e:
            raise LocationWriteError(f"Failed to put SSM parameter {name} in {self.region}: {e}") from e
        logger.info("Updated SSM parameter: %s in %s", name, self.region)


@register_location("secretsmanager")
@dataclass
class SecretsManager(LocationWriter):
    """A single file-style secret, or separate key id and key secrets."""

    region: str
    key_param_name: str = ""
    key_id_param_name: str = ""
    convert_to_file: bool = False
    file_type: str = ""

    location_type = "secretsmanager"

    def write(self, service_account_name: str, key_material: KeyMaterial, credentials: Any) -> UpdatedLocation:
        key_param = var_name(key_material.provider, self.key_param_name)
        key_id_param = None

        # GCP keys are whole credential files
        if self.convert_to_file or key_material.provider == "gcp":
            key = key_for_file_based_location(key_material, self.file_type)
        else:
            key = key_material.key
            key_id_param = var_name(key_material.provider, self.key_id_param_name, id_value=True)

        client = boto3.client(
            "secretsmanager",
            region_name=self.region,
            endpoint_url=f"https://secretsmanager.{self.region}.amazonaws.com",
        )
        if key_id_param:
            self._put_secret(client, key_id_param, key_material.key_id)
        self._put_secret(client, key_param, key)

        return UpdatedLocation(
            location_type=self.location_type,
            location_uri=self.region,
            location_ids=[key_id_param or "", key_param],
        )

    def _put_secret(self, client: Any, name: str, value: str) -> None:
        try:
            client.put_secret_value(SecretId=name, SecretString=value)
        except (BotoCoreError, ClientError) as e:
            raise LocationWriteError(f"Failed to put secret {name} in {self.region}: {e}") from e
        logger.info("Updated Secrets Manager secret: %s in %s", name, self.region)
