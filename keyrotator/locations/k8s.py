"""Secrets in GKE clusters."""

import base64
import logging
import os
import tempfile
from dataclasses import dataclass
from typing import Any, Tuple

from keyrotator.utils.errors import LocationWriteError

from .base import KeyMaterial, LocationWriter, UpdatedLocation, register_location
from .transcoder import decode_key

logger = logging.getLogger(__name__)


def kubernetes_client(cluster: Any, google_credentials: Any = None) -> Tuple[Any, str]:
    """Build a CoreV1Api client for a GKE cluster using an OAuth bearer token."""
    import google.auth
    import google.auth.transport.requests
    from kubernetes import client

    if google_credentials is None:
        google_credentials, _ = google.auth.default(scopes=["https://www.googleapis.com/auth/cloud-platform"])
    google_credentials.refresh(google.auth.transport.requests.Request())

    ca_file = tempfile.NamedTemporaryFile(delete=False, suffix=".crt")
    with ca_file:
        ca_file.write(base64.b64decode(cluster.master_auth.cluster_ca_certificate))

    configuration = client.Configuration()
    configuration.host = f"https://{cluster.endpoint}"
    configuration.ssl_ca_cert = ca_file.name
    configuration.api_key = {"authorization": f"Bearer {google_credentials.token}"}
    return client.CoreV1Api(client.ApiClient(configuration)), ca_file.name


@register_location("k8s")
@dataclass
class K8s(LocationWriter):
    """One data entry of a secret, replaced by the decoded key."""

    project: str
    location: str
    cluster_name: str
    namespace: str
    secret_name: str
    data_name: str

    location_type = "K8S"
    requires_google_credentials = True

    def write(self, service_account_name: str, key_material: KeyMaterial, credentials: Any) -> UpdatedLocation:
        from google.cloud import container_v1

        google_credentials = credentials.ambient.google_credentials()
        name = f"projects/{self.project}/locations/{self.location}/clusters/{self.cluster_name}"
        # the secret holds the key file itself
        decoded = decode_key(key_material.key)

        ca_path = None
        try:
            cluster = container_v1.ClusterManagerClient(credentials=google_credentials).get_cluster(name=name)
            core, ca_path = kubernetes_client(cluster, google_credentials)

            logger.info("Starting k8s secret updates")
            secret = core.read_namespaced_secret(self.secret_name, self.namespace)
            secret.data = {self.data_name: base64.b64encode(decoded.encode("utf-8")).decode("utf-8")}
            core.replace_namespaced_secret(self.secret_name, self.namespace, secret)
        except Exception as e:
            raise LocationWriteError(
                f"Failed to update secret {self.namespace}/{self.secret_name} in cluster {name}: {e}"
            ) from e
        finally:
            if ca_path:
                os.unlink(ca_path)
        logger.info("Updated k8s secret %s/%s", self.namespace, self.secret_name)

        return UpdatedLocation(
            location_type=self.location_type,
            location_uri=self.project,
            location_ids=[self.location],
        )
