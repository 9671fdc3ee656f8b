"""AWS IAM access-key provider."""

from datetime import datetime, timezone
from typing import Any, Callable, List, Optional, Tuple

from keyrotator.utils.errors import ProviderError

from .models import Key, ProviderScope
from .provider import KeyProvider


class AwsKeyProvider(KeyProvider):
    """Manages IAM user access keys through boto3."""

    def __init__(self, client: Any = None, clock: Optional[Callable[[], datetime]] = None):
        self._client = client
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    @property
    def client(self) -> Any:
        if self._client is None:
            import boto3

            self._client = boto3.client("iam")
        return self._client

    def list_keys(self, scope: ProviderScope, include_inactive: bool = False) -> List[Key]:
        try:
            keys = []
            now = self.clock()
            paginator = self.client.get_paginator("list_users")
            for page in paginator.paginate():
                for user in page.get("Users", []):
                    user_name = user["UserName"]
                    response = self.client.list_access_keys(UserName=user_name)
                    for meta in response.get("AccessKeyMetadata", []):
                        status = meta.get("Status", "")
                        if status != "Active" and not include_inactive:
                            continue
                        age = (now - meta["CreateDate"]).total_seconds() / 60
                        keys.append(
                            Key(
                                id=meta["AccessKeyId"],
                                account=user_name,
                                full_account=user_name,
                                name=user_name,
                                provider=scope,
                                age=age,
                                status=status,
                            )
                        )
            return keys
        except Exception as e:
            raise ProviderError(f"Failed to list AWS access keys: {e}") from e

    def create_key(self, key: Key) -> Tuple[str, str]:
        try:
            response = self.client.create_access_key(UserName=key.account)
            access_key = response["AccessKey"]
            return access_key["AccessKeyId"], access_key["SecretAccessKey"]
        except Exception as e:
            raise ProviderError(f"Failed to create AWS access key for {key.account}: {e}") from e

    def delete_key(self, key: Key) -> None:
        try:
            self.client.delete_access_key(UserName=key.account, AccessKeyId=key.id)
        except Exception as e:
            raise ProviderError(f"Failed to delete AWS access key for {key.account}: {e}") from e
