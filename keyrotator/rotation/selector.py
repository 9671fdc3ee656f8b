"""Selection of the keys to rotate in a run."""

import logging
import re
from dataclasses import dataclass
from typing import List, Optional

from keyrotator.config.models import Config, KeyLocation, ProviderServiceAccounts
from keyrotator.keys import Key
from keyrotator.utils.errors import ConfigurationError, create_error_suggestions
from keyrotator.utils.logging import obfuscate

logger = logging.getLogger(__name__)

# IAM users named like people (jane.doe) hold personal keys
AWS_USER_KEY_PATTERN = re.compile(r"[a-zA-Z]\.[a-zA-Z]")


@dataclass
class RotationCandidate:
    """A key selected for rotation, with its destinations and threshold."""

    key: Key
    key_location: KeyLocation
    rotation_threshold_mins: int


def valid_key(key: Key, config: Config) -> bool:
    """Drop AWS user keys unless the config includes them."""
    if key.provider.provider != "aws" or config.include_aws_user_keys:
        return True
    return AWS_USER_KEY_PATTERN.search(key.name) is None


def key_defined_in_filtering(provider_accounts: List[ProviderServiceAccounts], key: Key) -> bool:
    for entry in provider_accounts:
        if entry.provider.name == key.provider.provider and entry.provider.project == key.provider.project:
            if key.account in entry.accounts:
                return True
    return False


def is_key_eligible(config: Config, key: Key) -> bool:
    mode = config.account_filter.mode
    if mode == "include":
        return key_defined_in_filtering(config.account_filter.accounts, key)
    if mode == "exclude":
        return not key_defined_in_filtering(config.account_filter.accounts, key)
    raise ConfigurationError(
        f"Filter mode: {mode} is not supported",
        suggestions=create_error_suggestions("unsupported_filter_mode"),
    )


def filter_key(account: Optional[str], config: Config, key: Key) -> bool:
    """
    Decide whether a key passes the account policy.

    An account override (from the command line) wins over everything.
    Outside rotation mode keys pass unless an account filter is set.
    """
    if account:
        return key.account == account
    if not config.rotation_mode and not config.account_filter.mode:
        return True
    return is_key_eligible(config, key)


def is_self(config: Config, key: Key) -> bool:
    """Whether the key belongs to the identity performing the rotation."""
    for provider in config.cloud_providers:
        if (
            provider.name == key.provider.provider
            and provider.project == key.provider.project
            and provider.self_account == key.account
        ):
            return True
    return False


def filter_keys(keys: List[Key], config: Config, account: Optional[str] = None) -> List[Key]:
    """Apply validity and eligibility checks, moving self keys to the end."""
    filtered = []
    self_keys = []

    for key in keys:
        if not valid_key(key, config):
            continue
        if not filter_key(account, config, key):
            continue
        if is_self(config, key):
            logger.info(
                "Key has been identified as a key-rotator key, so will be processed last: %s/%s",
                key.provider.provider,
                key.account,
            )
            self_keys.append(key)
        else:
            filtered.append(key)

    return filtered + self_keys


def account_key_location(account: str, key_locations: List[KeyLocation]) -> KeyLocation:
    for key_location in key_locations:
        if key_location.service_account_name == account:
            return key_location
    raise ConfigurationError(
        f"Account: {account} could not be found in account_key_locations",
        suggestions=create_error_suggestions("missing_key_location"),
    )


def rotation_age_threshold(key_location: KeyLocation, default_threshold_mins: int) -> int:
    if key_location.rotation_age_threshold_mins > 0:
        return key_location.rotation_age_threshold_mins
    return default_threshold_mins


def rotation_candidates(
    keys: List[Key], key_locations: List[KeyLocation], default_threshold_mins: int
) -> List[RotationCandidate]:
    """
    Pair keys with their locations and keep those old enough to rotate.

    At most one key per account is selected. A key exactly at its threshold
    is not rotated.

    Raises:
        ConfigurationError: If a key's account has no key location
    """
    candidates = []
    processed = set()

    for key in keys:
        key_location = account_key_location(key.account, key_locations)

        if key.full_account in processed:
            logger.info(
                "Skipping SA: %s, key: %s as a key for this account has already been added as a candidate for rotation",
                key.full_account,
                obfuscate(key.id),
            )
            continue

        threshold = rotation_age_threshold(key_location, default_threshold_mins)
        if not key.age > threshold:
            logger.info(
                "Skipping SA: %s, key: %s as it's only %f minutes old (threshold: %d mins)",
                key.full_account,
                obfuscate(key.id),
                key.age,
                threshold,
            )
            continue

        candidates.append(RotationCandidate(key=key, key_location=key_location, rotation_threshold_mins=threshold))
        processed.add(key.full_account)

    return candidates


class CandidateSelector:
    """Turns a key inventory into the ordered candidates of one run."""

    def __init__(self, config: Config):
        self.config = config

    def select(self, keys: List[Key], account: Optional[str] = None) -> List[RotationCandidate]:
        return self.select_filtered(filter_keys(keys, self.config, account))

    def select_filtered(self, keys: List[Key]) -> List[RotationCandidate]:
        """Select candidates from keys that already passed filter_keys."""
        return rotation_candidates(
            keys,
            self.config.account_key_locations,
            self.config.rotation_age_threshold_mins,
        )
