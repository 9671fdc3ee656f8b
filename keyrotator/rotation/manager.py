"""Runs a key rotation: inventory, selection, then reporting or rotation."""

import dataclasses
import logging
from dataclasses import dataclass, field
from typing import List, Optional

from keyrotator import __version__
from keyrotator.config.ambient import AmbientCredentials
from keyrotator.config.models import Config
from keyrotator.keys import CloudKeyProvider, Key, ProviderScope, default_key_provider
from keyrotator.utils.errors import ConfigurationError
from keyrotator.utils.logging import AuditLogger, obfuscate

from .executor import RotationExecutor, RotationResult
from .selector import CandidateSelector, RotationCandidate, filter_keys

logger = logging.getLogger(__name__)


@dataclass
class RunReport:
    """What a run found and, in rotation mode, what it rotated."""

    rotation_mode: bool
    keys: List[Key] = field(default_factory=list)
    candidates: List[RotationCandidate] = field(default_factory=list)
    results: List[RotationResult] = field(default_factory=list)


def validate_flags(account: Optional[str], provider: Optional[str], project: Optional[str]) -> None:
    """Check command line overrides are complete."""
    if account and not provider:
        raise ConfigurationError("Both account AND provider flags must be set")
    if provider == "gcp" and not project:
        raise ConfigurationError("Project flag must be set when using the GCP provider")


def key_provider_scopes(config: Config, provider: Optional[str] = None, project: Optional[str] = None) -> List[ProviderScope]:
    """A provider override replaces the configured cloud providers."""
    if provider:
        return [ProviderScope(provider=provider, project=project or "")]
    return [cloud_provider.scope for cloud_provider in config.cloud_providers]


class RotationManager:
    """Drives one run over the configured cloud providers."""

    def __init__(
        self,
        config: Config,
        ambient: Optional[AmbientCredentials] = None,
        key_provider: Optional[CloudKeyProvider] = None,
        audit_logger: Optional[AuditLogger] = None,
        dry_run: bool = False,
    ):
        """
        Initialize rotation manager.

        Args:
            config: Validated configuration
            ambient: Credentials this process uses for its own cloud calls
            key_provider: Key inventory and lifecycle (defaults to AWS and GCP)
            audit_logger: Sink for audit records
            dry_run: Report only, even when rotation mode is enabled
        """
        self.config = config
        self.ambient = ambient or AmbientCredentials()
        self.key_provider = key_provider or default_key_provider(ambient=self.ambient)
        self.audit = audit_logger or AuditLogger()
        self.dry_run = dry_run
        self.credentials = dataclasses.replace(config.credentials, ambient=self.ambient)

    @property
    def rotation_mode(self) -> bool:
        return self.config.rotation_mode and not self.dry_run

    def run(self, account: Optional[str] = None, provider: Optional[str] = None, project: Optional[str] = None) -> RunReport:
        """
        Inventory keys and, in rotation mode, rotate the ones due.

        Raises:
            KeyRotatorError: On the first failure; later candidates are not attempted
        """
        logger.info("keyrotator %s rotate called", __version__)
        validate_flags(account, provider, project)

        scopes = key_provider_scopes(self.config, provider, project)
        all_keys = self.key_provider.list_all_keys(scopes, include_inactive=self.config.include_inactive_keys)
        keys = filter_keys(all_keys, self.config, account)
        logger.info("Filtered down to %d keys based on current app config", len(keys))

        report = RunReport(rotation_mode=self.rotation_mode, keys=keys)
        if not self.rotation_mode:
            if self.config.enable_key_age_logging:
                self.log_key_ages(keys)
            return report

        report.candidates = CandidateSelector(self.config).select_filtered(keys)
        logger.info(
            "Finalised %d keys that are candidates for rotation: %s",
            len(report.candidates),
            [candidate.key.account for candidate in report.candidates],
        )

        executor = RotationExecutor(self.key_provider, self.credentials, self.audit)
        report.results = executor.rotate(report.candidates)
        return report

    def log_key_ages(self, keys: List[Key]) -> None:
        ages = [dict(key.to_dict(), id=obfuscate(key.id)) for key in keys]
        logger.info("Results of key dating: %s", ages)
