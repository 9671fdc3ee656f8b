"""Typed configuration for a rotation run."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from keyrotator.keys.models import ProviderScope
from keyrotator.locations import LocationWriter, location_from_dict

from .ambient import AmbientCredentials

DEFAULT_ROTATION_AGE_THRESHOLD_MINS = 5


@dataclass(frozen=True)
class CloudProvider:
    """A provider (and project) whose keys are inventoried.

    ``self_account`` names the account this process authenticates as.
    """

    name: str
    project: str = ""
    self_account: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CloudProvider":
        return cls(
            name=data.get("name", ""),
            project=data.get("project", "") or "",
            self_account=data.get("self", "") or "",
        )

    @property
    def scope(self) -> ProviderScope:
        return ProviderScope(provider=self.name, project=self.project)


@dataclass
class ProviderServiceAccounts:
    provider: CloudProvider
    accounts: List[str] = field(default_factory=list)


@dataclass
class AccountFilter:
    mode: str = ""
    accounts: List[ProviderServiceAccounts] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "AccountFilter":
        data = data or {}
        return cls(
            mode=data.get("mode", "") or "",
            accounts=[
                ProviderServiceAccounts(
                    provider=CloudProvider.from_dict(item.get("provider", {})),
                    accounts=list(item.get("accounts", [])),
                )
                for item in data.get("accounts", [])
            ],
        )


@dataclass
class KeyLocation:
    """The ordered destinations of one service account's key."""

    service_account_name: str
    rotation_age_threshold_mins: int = 0
    destinations: List[LocationWriter] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "KeyLocation":
        return cls(
            service_account_name=data["service_account_name"],
            rotation_age_threshold_mins=data.get("rotation_age_threshold_mins", 0) or 0,
            destinations=[location_from_dict(item) for item in data.get("locations", [])],
        )


@dataclass(frozen=True)
class GitAccount:
    git_access_token: str = ""
    git_name: str = ""
    git_email: str = ""


@dataclass(frozen=True)
class GocdServer:
    server: str = ""
    username: str = ""
    password: str = ""
    skip_ssl_check: bool = False


@dataclass(frozen=True)
class AtlasKeys:
    public_key: str = ""
    private_key: str = ""


@dataclass(frozen=True)
class DatadogKeys:
    api_key: str = ""
    app_key: str = ""


@dataclass(frozen=True)
class Credentials:
    """Secrets the key locations need. Never inspected by the rotation core."""

    circleci_api_token: str = ""
    github_api_token: str = ""
    git_account: GitAccount = field(default_factory=GitAccount)
    akr_pass: str = ""
    akr_path: str = ""
    kms_key: str = ""
    gocd_server: GocdServer = field(default_factory=GocdServer)
    atlas_keys: AtlasKeys = field(default_factory=AtlasKeys)
    datadog: DatadogKeys = field(default_factory=DatadogKeys)
    ambient: AmbientCredentials = field(default_factory=AmbientCredentials)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "Credentials":
        data = data or {}
        return cls(
            circleci_api_token=data.get("circleci_api_token", ""),
            github_api_token=data.get("github_api_token", ""),
            git_account=GitAccount(**data.get("git_account", {})),
            akr_pass=data.get("akr_pass", ""),
            akr_path=data.get("akr_path", ""),
            kms_key=data.get("kms_key", ""),
            gocd_server=GocdServer(**data.get("gocd_server", {})),
            atlas_keys=AtlasKeys(**data.get("atlas_keys", {})),
            datadog=DatadogKeys(**data.get("datadog", {})),
        )


@dataclass
class Config:
    """Application configuration, loaded once per run and read-only after."""

    cloud_providers: List[CloudProvider] = field(default_factory=list)
    rotation_mode: bool = False
    include_aws_user_keys: bool = False
    include_inactive_keys: bool = False
    enable_key_age_logging: bool = False
    default_rotation_age_threshold_mins: int = 0
    account_filter: AccountFilter = field(default_factory=AccountFilter)
    account_key_locations: List[KeyLocation] = field(default_factory=list)
    credentials: Credentials = field(default_factory=Credentials)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Config":
        return cls(
            cloud_providers=[CloudProvider.from_dict(item) for item in data.get("cloud_providers", [])],
            rotation_mode=bool(data.get("rotation_mode", False)),
            include_aws_user_keys=bool(data.get("include_aws_user_keys", False)),
            include_inactive_keys=bool(data.get("include_inactive_keys", False)),
            enable_key_age_logging=bool(data.get("enable_key_age_logging", False)),
            default_rotation_age_threshold_mins=int(data.get("default_rotation_age_threshold_mins", 0) or 0),
            account_filter=AccountFilter.from_dict(data.get("account_filter")),
            account_key_locations=[KeyLocation.from_dict(item) for item in data.get("account_key_locations", [])],
            credentials=Credentials.from_dict(data.get("credentials")),
        )

    @property
    def rotation_age_threshold_mins(self) -> int:
        """Run-wide age threshold, used where a key location has no override."""
        if self.default_rotation_age_threshold_mins > 0:
            return self.default_rotation_age_threshold_mins
        return DEFAULT_ROTATION_AGE_THRESHOLD_MINS

    def requires_google_credentials(self) -> bool:
        if any(provider.name == "gcp" for provider in self.cloud_providers):
            return True
        return any(
            destination.requires_google_credentials
            for location in self.account_key_locations
            for destination in location.destinations
        )
