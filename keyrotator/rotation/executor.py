"""Create, propagate and retire keys for the selected candidates."""

import logging
from dataclasses import dataclass, field
from typing import Any, List, Optional

from keyrotator.keys import KeyProvider
from keyrotator.locations import KeyMaterial, LocationWriter, UpdatedLocation
from keyrotator.utils.errors import (
    KeyRotatorError,
    LocationWriteError,
    ProviderError,
    create_error_suggestions,
)
from keyrotator.utils.logging import AuditLogger, obfuscate

from .selector import RotationCandidate

logger = logging.getLogger(__name__)


@dataclass
class RotationResult:
    """Outcome of rotating one candidate's key."""

    account: str
    provider: str
    old_key_id: str
    new_key_id: str
    updated_locations: List[UpdatedLocation] = field(default_factory=list)

    def to_dict(self):
        return {
            "account": self.account,
            "provider": self.provider,
            "old_key_id": obfuscate(self.old_key_id),
            "new_key_id": obfuscate(self.new_key_id),
            "updated_locations": [location.to_dict() for location in self.updated_locations],
        }


class RotationExecutor:
    """Rotates candidates one at a time, stopping at the first error.

    The old key of a candidate is deleted only after every one of its
    locations holds the new key. Locations written before a failure keep the
    new key; nothing is rolled back.
    """

    def __init__(self, key_provider: KeyProvider, credentials: Any, audit_logger: Optional[AuditLogger] = None):
        """
        Initialize executor.

        Args:
            key_provider: Creates and deletes keys
            credentials: Credential bundle handed to every location write
            audit_logger: Sink for audit records
        """
        self.key_provider = key_provider
        self.credentials = credentials
        self.audit = audit_logger or AuditLogger()

    def rotate(self, candidates: List[RotationCandidate]) -> List[RotationResult]:
        results = []
        for candidate in candidates:
            results.append(self.rotate_candidate(candidate))
        return results

    def rotate_candidate(self, candidate: RotationCandidate) -> RotationResult:
        key = candidate.key
        provider = key.provider.provider

        self.audit.event(
            "Rotation process started",
            key_provider=provider,
            account=key.full_account,
            key_id=key.id,
            key_age=key.age,
            key_age_threshold=candidate.rotation_threshold_mins,
        )

        try:
            new_key_id, new_key = self.key_provider.create_key(key)
        except KeyRotatorError:
            raise
        except Exception as e:
            raise ProviderError(
                f"Failed to create new key for {key.full_account}: {e}",
                suggestions=create_error_suggestions("provider_auth_failed"),
            ) from e

        self.audit.event("New key created", key_provider=provider, account=key.full_account, key_id=new_key_id)

        material = KeyMaterial(key=new_key, key_id=new_key_id, provider=provider)
        updated = self._update_locations(candidate, material)

        self.audit.event(
            "Key locations updated",
            key_provider=provider,
            account=key.full_account,
            key_id=new_key_id,
            key_location_updates=updated,
        )

        try:
            self.key_provider.delete_key(key)
        except KeyRotatorError:
            raise
        except Exception as e:
            raise ProviderError(f"Failed to delete old key for {key.full_account}: {e}") from e

        self.audit.event("Old key deleted", key_provider=provider, account=key.full_account, key_id=key.id)

        return RotationResult(
            account=key.full_account,
            provider=provider,
            old_key_id=key.id,
            new_key_id=new_key_id,
            updated_locations=updated,
        )

    def _update_locations(self, candidate: RotationCandidate, material: KeyMaterial) -> List[UpdatedLocation]:
        service_account_name = candidate.key_location.service_account_name
        updated: List[UpdatedLocation] = []

        for destination in candidate.key_location.destinations:
            try:
                updated.append(destination.write(service_account_name, material, self.credentials))
            except Exception as e:
                self._log_partial_propagation(candidate, destination, updated)
                if isinstance(e, KeyRotatorError):
                    raise
                raise LocationWriteError(
                    f"Failed to update {_describe(destination)} for {service_account_name}: {e}",
                    suggestions=create_error_suggestions("partial_propagation"),
                ) from e

        return updated

    def _log_partial_propagation(
        self, candidate: RotationCandidate, destination: LocationWriter, updated: List[UpdatedLocation]
    ) -> None:
        logger.error(
            "Writing to %s failed for %s; %d location(s) already hold the new key and the old key was kept: %s",
            _describe(destination),
            candidate.key.full_account,
            len(updated),
            ", ".join(f"{u.location_type}:{u.location_uri}" for u in updated) or "none",
        )


def _describe(destination: LocationWriter) -> str:
    return destination.location_type or type(destination).__name__
