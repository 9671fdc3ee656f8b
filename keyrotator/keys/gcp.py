"""GCP service-account key provider."""

from datetime import datetime, timezone
from typing import Any, Callable, List, Optional, Tuple

from keyrotator.utils.errors import ProviderError

from .models import Key, ProviderScope
from .provider import KeyProvider


def parse_rfc3339(value: str) -> datetime:
    """Parse the timestamps returned by the IAM API, e.g. ``2019-01-01T10:00:00Z``."""
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    return datetime.fromisoformat(value)


class GcpKeyProvider(KeyProvider):
    """Manages user-managed service-account keys through the IAM API."""

    def __init__(
        self,
        service: Any = None,
        ambient: Any = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self._service = service
        self.ambient = ambient
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    @property
    def service(self) -> Any:
        if self._service is None:
            from googleapiclient import discovery

            credentials = self.ambient.google_credentials() if self.ambient else None
            self._service = discovery.build("iam", "v1", credentials=credentials, cache_discovery=False)
        return self._service

    def list_keys(self, scope: ProviderScope, include_inactive: bool = False) -> List[Key]:
        try:
            keys = []
            now = self.clock()
            accounts = self.service.projects().serviceAccounts()
            request = accounts.list(name=f"projects/{scope.project}")
            while request is not None:
                response = request.execute()
                for account in response.get("accounts", []):
                    keys.extend(self._account_keys(account, scope, now, include_inactive))
                request = accounts.list_next(previous_request=request, previous_response=response)
            return keys
        except Exception as e:
            raise ProviderError(f"Failed to list GCP keys in project {scope.project}: {e}") from e

    def _account_keys(self, account: dict, scope: ProviderScope, now: datetime, include_inactive: bool) -> List[Key]:
        email = account["email"]
        response = (
            self.service.projects()
            .serviceAccounts()
            .keys()
            .list(name=account["name"], keyTypes="USER_MANAGED")
            .execute()
        )
        keys = []
        for item in response.get("keys", []):
            disabled = item.get("disabled", False)
            if disabled and not include_inactive:
                continue
            age = (now - parse_rfc3339(item["validAfterTime"])).total_seconds() / 60
            keys.append(
                Key(
                    id=item["name"].split("/")[-1],
                    account=email.split("@")[0],
                    full_account=email,
                    name=email,
                    provider=scope,
                    age=age,
                    status="Disabled" if disabled else "Active",
                )
            )
        return keys

    def create_key(self, key: Key) -> Tuple[str, str]:
        try:
            response = (
                self.service.projects()
                .serviceAccounts()
                .keys()
                .create(
                    name=f"projects/{key.provider.project}/serviceAccounts/{key.full_account}",
                    body={"privateKeyType": "TYPE_GOOGLE_CREDENTIALS_FILE", "keyAlgorithm": "KEY_ALG_RSA_2048"},
                )
                .execute()
            )
            return response["name"].split("/")[-1], response["privateKeyData"]
        except Exception as e:
            raise ProviderError(f"Failed to create GCP key for {key.full_account}: {e}") from e

    def delete_key(self, key: Key) -> None:
        try:
            (
                self.service.projects()
                .serviceAccounts()
                .keys()
                .delete(name=f"projects/{key.provider.project}/serviceAccounts/{key.full_account}/keys/{key.id}")
                .execute()
            )
        except Exception as e:
            raise ProviderError(f"Failed to delete GCP key for {key.full_account}: {e}") from e
