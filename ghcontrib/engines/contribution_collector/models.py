"""Data models for the contribution collector engine."""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field

import structlog
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

log = structlog.get_logger("ghcontrib.engine")


@dataclass(frozen=True)
class RepositoryContribution:
    """Contributions of one category made to a single repository."""

    name: str
    url: str = ""
    count: int = 0


@dataclass(frozen=True)
class ContributionSnapshot:
    """One user's contributions collection for one calendar year.

    Decoded from the GraphQL response; the external field names only
    exist in :mod:`ghcontrib.engines.contribution_collector.queries`.
    """

    login: str
    has_any_contributions: bool = False
    has_activity_in_the_past: bool = False
    restricted_contributions_count: int = 0
    total_commit_contributions: int = 0
    total_issue_contributions: int = 0
    total_pull_request_contributions: int = 0
    total_pull_request_review_contributions: int = 0
    total_repositories_with_contributed_commits: int = 0
    total_repositories_with_contributed_issues: int = 0
    total_repositories_with_contributed_pull_requests: int = 0
    total_repositories_with_contributed_pull_request_reviews: int = 0
    commit_contributions: tuple[RepositoryContribution, ...] = ()
    issue_contributions: tuple[RepositoryContribution, ...] = ()
    pull_request_contributions: tuple[RepositoryContribution, ...] = ()
    pull_request_review_contributions: tuple[RepositoryContribution, ...] = ()

    @property
    def other_contributions(self) -> int:
        """Issues + pull requests + pull request reviews."""
        return (
            self.total_issue_contributions
            + self.total_pull_request_contributions
            + self.total_pull_request_review_contributions
        )

    def repositories(self) -> Iterator[RepositoryContribution]:
        """All per-repository entries across the four categories."""
        yield from self.commit_contributions
        yield from self.issue_contributions
        yield from self.pull_request_contributions
        yield from self.pull_request_review_contributions


def store_key(user: str, year: int) -> str:
    return f"{user}-{year}"


class ResultStore(Mapping[str, ContributionSnapshot]):
    """Snapshots keyed by ``<user>-<year>`` for the lifetime of one run.

    Entries are only ever added.  A key is written at most once; later
    writes for the same key are ignored.
    """

    def __init__(self) -> None:
        self._snapshots: dict[str, ContributionSnapshot] = {}

    def add(self, user: str, year: int, snapshot: ContributionSnapshot) -> bool:
        """Store *snapshot* under ``<user>-<year>``.

        Returns False (and leaves the store untouched) when the key is
        already present.
        """
        key = store_key(user, year)
        if key in self._snapshots:
            log.warning("store.duplicate_key", key=key)
            return False
        self._snapshots[key] = snapshot
        return True

    def get_for(self, user: str, year: int) -> ContributionSnapshot | None:
        return self._snapshots.get(store_key(user, year))

    def __getitem__(self, key: str) -> ContributionSnapshot:
        return self._snapshots[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._snapshots)

    def __len__(self) -> int:
        return len(self._snapshots)


class Summary(BaseModel):
    """Aggregated totals across every stored snapshot."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    timestamp: int
    total_commit_contributions: int = 0
    total_repositories: int = 0
    total_other_contributions: int = 0


@dataclass
class CollectResult:
    """Outcome of collecting for a single credential."""

    username: str
    years_queried: list[int] = field(default_factory=list)
    stored: int = 0
    errors: list[str] = field(default_factory=list)
