"""Tests for cloud key providers."""

from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest

from keyrotator.keys import CloudKeyProvider, ProviderScope
from keyrotator.keys.aws import AwsKeyProvider
from keyrotator.keys.gcp import GcpKeyProvider, parse_rfc3339
from keyrotator.utils.errors import ProviderError

NOW = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


class TestAwsKeyProvider:
    """Test IAM access key inventory and lifecycle."""

    def setup_method(self):
        """Setup test environment."""
        self.client = MagicMock()
        self.client.get_paginator.return_value.paginate.return_value = [
            {"Users": [{"UserName": "ci-user"}, {"UserName": "jane.doe"}]}
        ]
        self.client.list_access_keys.side_effect = lambda UserName: {
            "ci-user": {
                "AccessKeyMetadata": [
                    {"AccessKeyId": "AKIA1", "Status": "Active", "CreateDate": NOW - timedelta(hours=2)},
                    {"AccessKeyId": "AKIA2", "Status": "Inactive", "CreateDate": NOW - timedelta(days=1)},
                ]
            },
            "jane.doe": {"AccessKeyMetadata": []},
        }[UserName]
        self.provider = AwsKeyProvider(client=self.client, clock=lambda: NOW)
        self.scope = ProviderScope(provider="aws")

    def test_list_active_keys(self):
        keys = self.provider.list_keys(self.scope)

        assert len(keys) == 1
        key = keys[0]
        assert key.id == "AKIA1"
        assert key.account == key.full_account == "ci-user"
        assert key.age == 120
        assert key.status == "Active"
        assert key.provider == self.scope

    def test_list_inactive_keys(self):
        keys = self.provider.list_keys(self.scope, include_inactive=True)

        assert [key.id for key in keys] == ["AKIA1", "AKIA2"]
        assert keys[1].status == "Inactive"

    def test_list_failure(self):
        self.client.get_paginator.side_effect = RuntimeError("AccessDenied")

        with pytest.raises(ProviderError, match="AccessDenied"):
            self.provider.list_keys(self.scope)

    def test_create_and_delete(self, make_key):
        key = make_key(account="ci-user", provider="aws", project="", key_id="AKIA1")
        self.client.create_access_key.return_value = {
            "AccessKey": {"AccessKeyId": "AKIA3", "SecretAccessKey": "secret"}
        }

        assert self.provider.create_key(key) == ("AKIA3", "secret")
        self.provider.delete_key(key)

        self.client.create_access_key.assert_called_once_with(UserName="ci-user")
        self.client.delete_access_key.assert_called_once_with(UserName="ci-user", AccessKeyId="AKIA1")

    def test_create_failure(self, make_key):
        self.client.create_access_key.side_effect = RuntimeError("LimitExceeded")

        with pytest.raises(ProviderError, match="ci-user"):
            self.provider.create_key(make_key(account="ci-user", provider="aws"))


class TestGcpKeyProvider:
    """Test IAM service-account key inventory and lifecycle."""

    def setup_method(self):
        """Setup test environment."""
        self.service = MagicMock()
        self.accounts = self.service.projects.return_value.serviceAccounts.return_value
        self.accounts.list.return_value.execute.return_value = {
            "accounts": [
                {
                    "email": "sa1@my-project.iam.gserviceaccount.com",
                    "name": "projects/my-project/serviceAccounts/sa1@my-project.iam.gserviceaccount.com",
                }
            ]
        }
        self.accounts.list_next.return_value = None
        self.accounts.keys.return_value.list.return_value.execute.return_value = {
            "keys": [
                {"name": "projects/my-project/serviceAccounts/sa1/keys/k1", "validAfterTime": "2024-01-01T11:00:00Z"},
                {
                    "name": "projects/my-project/serviceAccounts/sa1/keys/k2",
                    "validAfterTime": "2023-12-31T12:00:00Z",
                    "disabled": True,
                },
            ]
        }
        self.provider = GcpKeyProvider(service=self.service, clock=lambda: NOW)
        self.scope = ProviderScope(provider="gcp", project="my-project")

    def test_list_keys(self):
        keys = self.provider.list_keys(self.scope)

        assert len(keys) == 1
        assert keys[0].id == "k1"
        assert keys[0].account == "sa1"
        assert keys[0].full_account == "sa1@my-project.iam.gserviceaccount.com"
        assert keys[0].age == 60
        self.accounts.list.assert_called_once_with(name="projects/my-project")
        self.accounts.keys.return_value.list.assert_called_once_with(
            name="projects/my-project/serviceAccounts/sa1@my-project.iam.gserviceaccount.com",
            keyTypes="USER_MANAGED",
        )

    def test_list_disabled_keys(self):
        keys = self.provider.list_keys(self.scope, include_inactive=True)

        assert [(key.id, key.status) for key in keys] == [("k1", "Active"), ("k2", "Disabled")]

    def test_create_key(self, make_key):
        keys = self.accounts.keys.return_value
        keys.create.return_value.execute.return_value = {
            "name": "projects/my-project/serviceAccounts/sa1/keys/k3",
            "privateKeyData": "eyJ0eXBlIjogInNlcnZpY2VfYWNjb3VudCJ9",
        }

        assert self.provider.create_key(make_key()) == ("k3", "eyJ0eXBlIjogInNlcnZpY2VfYWNjb3VudCJ9")
        assert keys.create.call_args[1]["name"] == (
            "projects/my-project/serviceAccounts/sa1@my-project.iam.gserviceaccount.com"
        )
        assert keys.create.call_args[1]["body"]["privateKeyType"] == "TYPE_GOOGLE_CREDENTIALS_FILE"

    def test_delete_key(self, make_key):
        self.provider.delete_key(make_key(key_id="k1"))

        self.accounts.keys.return_value.delete.assert_called_once_with(
            name="projects/my-project/serviceAccounts/sa1@my-project.iam.gserviceaccount.com/keys/k1"
        )

    def test_delete_failure(self, make_key):
        self.accounts.keys.return_value.delete.return_value.execute.side_effect = RuntimeError("NOT_FOUND")

        with pytest.raises(ProviderError, match="NOT_FOUND"):
            self.provider.delete_key(make_key())

    def test_parse_rfc3339(self):
        assert parse_rfc3339("2024-01-01T11:00:00Z") == datetime(2024, 1, 1, 11, 0, tzinfo=timezone.utc)


class TestCloudKeyProvider:
    """Test dispatching to the provider of each key."""

    def setup_method(self):
        """Setup test environment."""
        self.aws = MagicMock()
        self.gcp = MagicMock()
        self.provider = CloudKeyProvider({"aws": self.aws, "gcp": self.gcp})

    def test_list_all_keys_in_scope_order(self, make_key):
        self.gcp.list_keys.return_value = [make_key(account="sa1")]
        self.aws.list_keys.return_value = [make_key(account="ci-user", provider="aws")]
        scopes = [ProviderScope("gcp", "my-project"), ProviderScope("aws")]

        keys = self.provider.list_all_keys(scopes, include_inactive=True)

        assert [key.account for key in keys] == ["sa1", "ci-user"]
        self.aws.list_keys.assert_called_once_with(ProviderScope("aws"), True)

    def test_create_dispatch(self, make_key):
        key = make_key(provider="aws")

        self.provider.create_key(key)

        self.aws.create_key.assert_called_once_with(key)
        self.gcp.create_key.assert_not_called()

    def test_unsupported_provider(self, make_key):
        with pytest.raises(ProviderError, match="azure"):
            self.provider.delete_key(make_key(provider="azure"))
