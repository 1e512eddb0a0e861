"""
CI environment detection

Identifies pull request builds on common CI services from their
environment variables, so a run can be skipped there.
"""

from dataclasses import dataclass
from typing import Mapping


FALSY = {"", "0", "false", "no"}


@dataclass
class CIInfo:
    isCi: bool
    isPr: bool


def _flag(environment: Mapping[str, str], name: str) -> bool:
    return environment.get(name, "").strip().lower() not in FALSY


def pullRequest_detect(environment: Mapping[str, str]) -> bool:
    """Check for the pull request markers of the supported CI services"""
    if environment.get("GITHUB_EVENT_NAME") in ("pull_request", "pull_request_target"):
        return True
    # Travis and Buildkite set the variable to "false" on branch builds
    for name in ("TRAVIS_PULL_REQUEST", "BUILDKITE_PULL_REQUEST"):
        if _flag(environment, name):
            return True
    for name in (
        "CIRCLE_PULL_REQUEST",
        "CI_MERGE_REQUEST_ID",
        "SYSTEM_PULLREQUEST_PULLREQUESTID",
        "BITBUCKET_PR_ID",
        "CHANGE_ID",
    ):
        if environment.get(name):
            return True
    return False


def ci_detect(environment: Mapping[str, str]) -> CIInfo:
    """
    Describe the CI context of a run

    Args:
        environment: Process environment

    Returns:
        CIInfo(isCi, isPr); isPr is only True inside CI

    Example:
        >>> ci_detect({"CI": "true", "GITHUB_EVENT_NAME": "pull_request"})
        CIInfo(isCi=True, isPr=True)
    """
    is_ci = _flag(environment, "CI") or "BUILD_NUMBER" in environment
    return CIInfo(isCi=is_ci, isPr=is_ci and pullRequest_detect(environment))
