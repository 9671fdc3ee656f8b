"""Provisioning of the process's own cloud credentials."""

import logging
import os
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional

from .sources import get_secret

logger = logging.getLogger(__name__)

GOOGLE_SCOPES = (
    "https://www.googleapis.com/auth/cloud-platform",
    "https://www.googleapis.com/auth/userinfo.email",
)
GCP_KEY_SECRET_NAME = "ckr-gcp-key"
DEFAULT_KEY_FILE_PATH = "/tmp/key.json"


@dataclass(frozen=True)
class AmbientCredentials:
    """Credentials this process uses for its own GCP API calls.

    With no key file, Google clients fall back to application default
    credentials.
    """

    google_credentials_file: Optional[str] = None

    def google_credentials(self, scopes=GOOGLE_SCOPES) -> Any:
        if not self.google_credentials_file:
            return None

        from google.oauth2 import service_account

        return service_account.Credentials.from_service_account_file(self.google_credentials_file, scopes=list(scopes))


def in_lambda(environ: Optional[Mapping[str, str]] = None) -> bool:
    environ = os.environ if environ is None else environ
    return bool(environ.get("AWS_LAMBDA_FUNCTION_NAME"))


def provision_ambient_credentials(
    requires_google_credentials: bool,
    environ: Optional[Mapping[str, str]] = None,
    secret_fetcher: Callable[[str], str] = get_secret,
    key_file_path: str = DEFAULT_KEY_FILE_PATH,
) -> AmbientCredentials:
    """
    Materialise a GCP key for this process when running inside AWS Lambda.

    Outside Lambda, or when no GCP access is needed, application default
    credentials are used and nothing is written.

    Args:
        requires_google_credentials: Whether any key or location needs GCP access
        environ: Environment mapping, defaults to os.environ
        secret_fetcher: Returns the value of a named secret
        key_file_path: Where to write the key file

    Returns:
        AmbientCredentials: Value to thread into the rotation
    """
    if not requires_google_credentials or not in_lambda(environ):
        return AmbientCredentials()

    secret_value = secret_fetcher(GCP_KEY_SECRET_NAME)
    with open(key_file_path, "w", encoding="utf-8") as f:
        f.write(secret_value)
    os.chmod(key_file_path, 0o600)
    logger.info("Provisioned GCP credentials for this process at %s", key_file_path)

    return AmbientCredentials(google_credentials_file=key_file_path)
