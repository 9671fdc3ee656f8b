"""Verification of CircleCI builds triggered by a pushed commit."""

import logging
from typing import Any, List, Optional

import requests

from keyrotator.utils.errors import VerificationError

from .poller import JobPoller, PollState

logger = logging.getLogger(__name__)

CIRCLECI_API_URL = "https://circleci.com/api/v1.1"


class CircleCIBuildVerifier:
    """Finds the build of a job for a commit and waits for it to succeed."""

    def __init__(
        self,
        token: str,
        poller: Optional[JobPoller] = None,
        session: Optional[requests.Session] = None,
        branch: str = "master",
    ):
        self.token = token
        self.poller = poller or JobPoller()
        self.session = session or requests.Session()
        self.branch = branch

    def _get(self, path: str, params: Optional[dict] = None) -> Any:
        response = self.session.get(
            f"{CIRCLECI_API_URL}{path}",
            params=params,
            headers={"Circle-Token": self.token, "Accept": "application/json"},
            timeout=30,
        )
        if response.status_code != 200:
            raise VerificationError(f"CircleCI API returned {response.status_code} for {path}")
        return response.json()

    def recent_builds(self, org: str, repo: str) -> List[dict]:
        return self._get(
            f"/project/github/{org}/{repo}/tree/{self.branch}",
            params={"filter": "running", "limit": 100},
        )

    def build_status(self, org: str, repo: str, build_num: int) -> str:
        return self._get(f"/project/github/{org}/{repo}/{build_num}").get("status", "")

    def verify(self, org_repo: str, git_hash: str, job_name: str) -> PollState:
        """
        Verify the build running ``job_name`` for ``git_hash`` succeeded.

        Raises:
            VerificationError: If the build failed
            VerificationTimeoutError: If the build could not be found or did not finish in time
        """
        org, repo = org_repo.split("/", 1)

        def find() -> Optional[int]:
            return build_num_from_recent_builds(self.recent_builds(org, repo), git_hash, job_name)

        return self.poller.verify(
            find,
            lambda build_num: self.build_status(org, repo, build_num),
            description=f"CircleCI build of {job_name} on {org_repo}",
        )


def build_num_from_recent_builds(builds: List[dict], git_hash: str, job_name: str) -> Optional[int]:
    """Return the number of the build for ``git_hash`` that runs ``job_name``."""
    for build in builds:
        logger.debug("Checking for target job in CircleCI build: %s", build.get("build_num"))
        parameters = build.get("build_parameters") or {}
        if build.get("vcs_revision") == git_hash and parameters.get("CIRCLE_JOB") == job_name:
            return build.get("build_num")
    return None
