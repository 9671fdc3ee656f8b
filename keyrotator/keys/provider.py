"""Key provider interface and the provider dispatcher."""

import logging
from abc import ABC, abstractmethod
from typing import Dict, Iterable, List, Tuple

from keyrotator.utils.errors import ProviderError

from .models import Key, ProviderScope

logger = logging.getLogger(__name__)


class KeyProvider(ABC):
    """Lists, creates and deletes service-account keys at one cloud provider."""

    @abstractmethod
    def list_keys(self, scope: ProviderScope, include_inactive: bool = False) -> List[Key]:
        """Return every key visible in the scope."""

    @abstractmethod
    def create_key(self, key: Key) -> Tuple[str, str]:
        """Create a new key for the key's account, returning (key id, key material)."""

    @abstractmethod
    def delete_key(self, key: Key) -> None:
        """Delete the key."""


class CloudKeyProvider(KeyProvider):
    """Dispatches key operations to the provider registered for each key."""

    def __init__(self, providers: Dict[str, KeyProvider]):
        """
        Initialize dispatcher.

        Args:
            providers: Mapping of provider name (``aws``, ``gcp``) to implementation
        """
        self.providers = providers

    def _provider_for(self, name: str) -> KeyProvider:
        try:
            return self.providers[name]
        except KeyError:
            raise ProviderError(
                f"Unsupported key provider: {name}",
                suggestions=[f"Supported providers: {', '.join(sorted(self.providers))}"],
            )

    def list_keys(self, scope: ProviderScope, include_inactive: bool = False) -> List[Key]:
        return self._provider_for(scope.provider).list_keys(scope, include_inactive)

    def list_all_keys(self, scopes: Iterable[ProviderScope], include_inactive: bool = False) -> List[Key]:
        """Return the keys of every scope, in scope order."""
        keys: List[Key] = []
        for scope in scopes:
            scope_keys = self.list_keys(scope, include_inactive)
            logger.debug("Found %d keys for provider %s %s", len(scope_keys), scope.provider, scope.project)
            keys.extend(scope_keys)
        return keys

    def create_key(self, key: Key) -> Tuple[str, str]:
        return self._provider_for(key.provider.provider).create_key(key)

    def delete_key(self, key: Key) -> None:
        self._provider_for(key.provider.provider).delete_key(key)


def default_key_provider(ambient=None) -> CloudKeyProvider:
    """Build the dispatcher over the AWS and GCP providers."""
    from .aws import AwsKeyProvider
    from .gcp import GcpKeyProvider

    return CloudKeyProvider({"aws": AwsKeyProvider(), "gcp": GcpKeyProvider(ambient=ambient)})
