"""Shared fixtures for ghcontrib tests (no network required)."""

import pytest
import structlog

from ghcontrib.engines.contribution_collector.models import (
    ContributionSnapshot,
    RepositoryContribution,
)


@pytest.fixture(scope="session")
def anyio_backend():
    return "asyncio"


@pytest.fixture(autouse=True)
def captured_logs():
    """Capture structlog events instead of printing them."""
    with structlog.testing.capture_logs() as logs:
        yield logs


def make_snapshot(
    login: str = "octocat",
    *,
    commits: int = 0,
    issues: int = 0,
    prs: int = 0,
    reviews: int = 0,
    repos: tuple[str, ...] = (),
    issue_repos: tuple[str, ...] = (),
    past: bool = True,
) -> ContributionSnapshot:
    return ContributionSnapshot(
        login=login,
        has_any_contributions=bool(commits or issues or prs or reviews),
        has_activity_in_the_past=past,
        total_commit_contributions=commits,
        total_issue_contributions=issues,
        total_pull_request_contributions=prs,
        total_pull_request_review_contributions=reviews,
        commit_contributions=tuple(
            RepositoryContribution(name=n, url=f"https://github.com/{login}/{n}", count=1)
            for n in repos
        ),
        issue_contributions=tuple(
            RepositoryContribution(name=n, url=f"https://github.com/{login}/{n}", count=1)
            for n in issue_repos
        ),
    )


@pytest.fixture
def snapshot():
    """Factory for synthetic ContributionSnapshot instances."""
    return make_snapshot
