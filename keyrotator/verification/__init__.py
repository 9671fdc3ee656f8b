"""Verification of asynchronous downstream work."""

from .circleci import CircleCIBuildVerifier
from .poller import JobPoller, PollState, retry_with_backoff

__all__ = ["CircleCIBuildVerifier", "JobPoller", "PollState", "retry_with_backoff"]
