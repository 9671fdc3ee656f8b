"""Tests for rotation runs."""

import logging
from unittest.mock import MagicMock, patch

import pytest

from keyrotator.config import AmbientCredentials
from keyrotator.keys import ProviderScope
from keyrotator.rotation import RotationManager, key_provider_scopes, validate_flags
from keyrotator.utils.errors import ConfigurationError
from keyrotator.utils.logging import AuditLogger


class TestValidateFlags:
    def test_account_requires_provider(self):
        with pytest.raises(ConfigurationError, match="Both account AND provider"):
            validate_flags("sa1", None, None)

    def test_gcp_requires_project(self):
        with pytest.raises(ConfigurationError, match="Project flag"):
            validate_flags(None, "gcp", None)

    def test_valid_combinations(self):
        validate_flags(None, None, None)
        validate_flags("ci-user", "aws", None)
        validate_flags("sa1", "gcp", "my-project")


class TestKeyProviderScopes:
    def test_configured_providers(self, sample_config):
        assert key_provider_scopes(sample_config) == [
            ProviderScope("gcp", "my-project"),
            ProviderScope("aws", ""),
        ]

    def test_override(self, sample_config):
        assert key_provider_scopes(sample_config, "gcp", "other") == [ProviderScope("gcp", "other")]


class TestRotationManager:
    """Test reporting and rotation runs."""

    def setup_method(self):
        """Setup test environment."""
        self.key_provider = MagicMock()
        self.key_provider.create_key.return_value = ("new-key-id-0001", "bmV3LWtleQ==")
        self.audit = AuditLogger(logging.getLogger("test.audit"))

    def manager(self, config, **kwargs):
        return RotationManager(config, key_provider=self.key_provider, audit_logger=self.audit, **kwargs)

    def test_rotation_run(self, sample_config, make_key, recording_writer):
        writer, calls = recording_writer
        sample_config.account_key_locations[0].destinations = [writer("sa1-dest")]
        sample_config.account_key_locations[1].destinations = [writer("sa2-dest")]
        self.key_provider.list_all_keys.return_value = [
            make_key(account="key-rotator", key_id="self-key-0000001"),
            make_key(account="sa2", age=45, key_id="sa2-key-00000001"),
            make_key(account="sa1", age=45, key_id="sa1-key-00000001"),
            make_key(account="other", key_id="other-key-000001"),
        ]

        report = self.manager(sample_config).run()

        assert report.rotation_mode
        assert [key.account for key in report.keys] == ["sa2", "sa1", "key-rotator"]
        # sa1 uses the 60 minute default, sa2 its own 30 minutes
        assert [c.key.account for c in report.candidates] == ["sa2", "key-rotator"]
        assert [call[1] for call in calls] == ["sa2-dest"]
        assert [r.account for r in report.results] == ["sa2", "key-rotator"]
        assert self.key_provider.delete_key.call_count == 2
        self.key_provider.list_all_keys.assert_called_once_with(
            [ProviderScope("gcp", "my-project"), ProviderScope("aws", "")], include_inactive=False
        )

    def test_first_key_old_enough_is_rotated(self, sample_config, make_key, recording_writer):
        writer, calls = recording_writer
        sample_config.account_key_locations[0].destinations = [writer("sa1-dest")]
        self.key_provider.list_all_keys.return_value = [
            make_key(account="key-rotator", key_id="me-key-000000001"),
            make_key(account="sa1", age=60.0, key_id="abcdefgh1234"),
            make_key(account="sa1", age=61, key_id="zzzzzzzz9999"),
            make_key(account="sa1", age=62, key_id="yyyyyyyy8888"),
        ]

        report = self.manager(sample_config).run()

        assert [(r.account, r.old_key_id) for r in report.results] == [
            ("sa1", "zzzzzzzz9999"),
            ("key-rotator", "me-key-000000001"),
        ]
        assert [call[1] for call in calls] == ["sa1-dest"]
        deleted = [c.args[0].id for c in self.key_provider.delete_key.call_args_list]
        assert deleted == ["zzzzzzzz9999", "me-key-000000001"]

    def test_reporting_mode(self, sample_config, make_key):
        sample_config.rotation_mode = False
        self.key_provider.list_all_keys.return_value = [make_key(account="sa1"), make_key(account="other")]

        with patch("keyrotator.rotation.manager.RotationExecutor") as mock_executor:
            report = self.manager(sample_config).run()

        assert not report.rotation_mode
        assert [key.account for key in report.keys] == ["sa1"]
        assert report.candidates == []
        mock_executor.assert_not_called()
        self.key_provider.create_key.assert_not_called()

    def test_reporting_mode_without_filter_lists_everything(self, sample_config, make_key):
        sample_config.rotation_mode = False
        sample_config.account_filter.mode = ""
        self.key_provider.list_all_keys.return_value = [make_key(account="sa1"), make_key(account="other")]

        report = self.manager(sample_config).run()

        assert len(report.keys) == 2

    def test_key_age_logging(self, sample_config, make_key, caplog):
        sample_config.rotation_mode = False
        sample_config.enable_key_age_logging = True
        self.key_provider.list_all_keys.return_value = [make_key(account="sa1", key_id="abcdef1234567890")]

        with caplog.at_level(logging.INFO, logger="keyrotator.rotation.manager"):
            self.manager(sample_config).run()

        assert "Results of key dating" in caplog.text
        assert "************7890" in caplog.text
        assert "abcdef1234567890" not in caplog.text

    def test_dry_run(self, sample_config, make_key):
        self.key_provider.list_all_keys.return_value = [make_key(account="sa1")]

        report = self.manager(sample_config, dry_run=True).run()

        assert not report.rotation_mode
        self.key_provider.create_key.assert_not_called()

    def test_account_override(self, sample_config, make_key):
        self.key_provider.list_all_keys.return_value = [make_key(account="sa1"), make_key(account="sa2")]

        with patch("keyrotator.rotation.manager.RotationExecutor") as mock_executor:
            mock_executor.return_value.rotate.return_value = []
            report = self.manager(sample_config).run(account="sa2", provider="gcp", project="my-project")

        assert [key.account for key in report.keys] == ["sa2"]
        self.key_provider.list_all_keys.assert_called_once_with(
            [ProviderScope("gcp", "my-project")], include_inactive=False
        )

    def test_missing_key_location(self, sample_config, make_key):
        sample_config.account_filter.mode = "exclude"
        sample_config.account_filter.accounts = []
        self.key_provider.list_all_keys.return_value = [make_key(account="unknown")]

        with pytest.raises(ConfigurationError, match="unknown"):
            self.manager(sample_config).run()

    def test_ambient_credentials_threaded_to_locations(self, sample_config):
        ambient = AmbientCredentials(google_credentials_file="/tmp/key.json")

        manager = self.manager(sample_config, ambient=ambient)

        assert manager.credentials.ambient is ambient
        assert manager.credentials.circleci_api_token == "circle-token"
        assert sample_config.credentials.ambient == AmbientCredentials()

    def test_default_key_provider_gets_ambient(self, sample_config):
        ambient = AmbientCredentials(google_credentials_file="/tmp/key.json")

        with patch("keyrotator.rotation.manager.default_key_provider") as mock_default:
            RotationManager(sample_config, ambient=ambient)

        mock_default.assert_called_once_with(ambient=ambient)
