"""Remote sources of configuration and bootstrap secrets."""

from typing import Any


def get_secret(secret_name: str, client: Any = None) -> str:
    """
    Get the current value of a secret in AWS Secrets Manager.

    Args:
        secret_name: Name of the secret
        client: Optional boto3 secretsmanager client

    Returns:
        str: Secret string
    """
    if client is None:
        import boto3

        client = boto3.client("secretsmanager")

    result = client.get_secret_value(SecretId=secret_name, VersionStage="AWSCURRENT")
    return result.get("SecretString") or ""


def get_gcs_object(bucket_name: str, object_name: str, client: Any = None, credentials: Any = None) -> str:
    """
    Read a text object from Google Cloud Storage.

    Args:
        bucket_name: Bucket holding the object
        object_name: Name of the object
        client: Optional google.cloud.storage client
        credentials: Optional Google credentials for a new client

    Returns:
        str: Object contents
    """
    if client is None:
        from google.cloud import storage

        client = storage.Client(credentials=credentials)

    return client.bucket(bucket_name).blob(object_name).download_as_text()
