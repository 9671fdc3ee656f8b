"""Cloud-provider key inventory and lifecycle."""

from .models import Key, ProviderScope
from .provider import CloudKeyProvider, KeyProvider, default_key_provider

__all__ = ["CloudKeyProvider", "Key", "KeyProvider", "ProviderScope", "default_key_provider"]
