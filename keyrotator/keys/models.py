"""Key inventory models."""

from dataclasses import dataclass


@dataclass(frozen=True)
class ProviderScope:
    """A cloud provider, and for project-scoped providers the project."""

    provider: str
    project: str = ""


@dataclass(frozen=True)
class Key:
    """A service-account key as reported by a cloud provider.

    ``age`` is in minutes.
    """

    id: str
    account: str
    full_account: str
    provider: ProviderScope
    name: str = ""
    age: float = 0.0
    status: str = ""

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "account": self.account,
            "full_account": self.full_account,
            "provider": self.provider.provider,
            "project": self.provider.project,
            "name": self.name,
            "age": self.age,
            "status": self.status,
        }
