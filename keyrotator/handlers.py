"""Serverless entry points: AWS Lambda and Google Cloud Functions."""

import logging
import os
from typing import Any, Mapping, Optional, Tuple

from keyrotator.config import Config, ConfigManager, provision_ambient_credentials
from keyrotator.rotation import RotationManager, RunReport
from keyrotator.utils.errors import ConfigurationError
from keyrotator.utils.logging import setup_logging

logger = logging.getLogger(__name__)

DEFAULT_SECRET_CONFIG_NAME = "ckr-config"
DEFAULT_GCS_CONFIG_NAME = "ckr-config.json"
DEFAULT_CONFIG_TYPE = "json"
BUCKET_ENV_VAR = "CKR_BUCKET_NAME"


def _rotate(config: Config, environ: Mapping[str, str]) -> RunReport:
    ambient = provision_ambient_credentials(config.requires_google_credentials(), environ=environ)
    report = RotationManager(config, ambient=ambient).run()
    if report.results:
        logger.info("Rotation results: %s", [result.to_dict() for result in report.results])
    return report


def handle_request(event: Any, context: Any, environ: Optional[Mapping[str, str]] = None) -> str:
    """
    Run a rotation with configuration stored in AWS Secrets Manager.

    The secret is named by CKR_SECRET_CONFIG_NAME and parsed as
    CKR_CONFIG_TYPE (json or yaml).

    Returns:
        str: "success"; any failure is raised so the invocation is marked failed
    """
    environ = os.environ if environ is None else environ
    setup_logging()

    secret_name = environ.get("CKR_SECRET_CONFIG_NAME") or DEFAULT_SECRET_CONFIG_NAME
    config_type = environ.get("CKR_CONFIG_TYPE") or DEFAULT_CONFIG_TYPE
    logger.info("Loading configuration from secret %s (%s)", secret_name, config_type)

    config = ConfigManager(environ=environ).load_from_secrets_manager(secret_name, config_type)
    _rotate(config, environ)
    return "success"


def cloud_function_request(request: Any, environ: Optional[Mapping[str, str]] = None) -> Tuple[str, int]:
    """
    Run a rotation with configuration stored in Google Cloud Storage.

    CKR_BUCKET_NAME is required. The object is named by
    CKR_SECRET_CONFIG_NAME and parsed as CKR_CONFIG_TYPE.

    Returns:
        Tuple[str, int]: HTTP response body and status; failures answer 500
        with the error text
    """
    environ = os.environ if environ is None else environ
    setup_logging()

    try:
        bucket_name = environ.get(BUCKET_ENV_VAR)
        if not bucket_name:
            raise ConfigurationError(f"Env var: {BUCKET_ENV_VAR} is required")

        object_name = environ.get("CKR_SECRET_CONFIG_NAME") or DEFAULT_GCS_CONFIG_NAME
        config_type = environ.get("CKR_CONFIG_TYPE") or DEFAULT_CONFIG_TYPE
        logger.info("Loading configuration from gs://%s/%s (%s)", bucket_name, object_name, config_type)

        config = ConfigManager(environ=environ).load_from_gcs(bucket_name, object_name, config_type)
        _rotate(config, environ)
    except Exception as e:
        logger.exception("Key rotation failed")
        return str(e), 500

    return "success", 200
