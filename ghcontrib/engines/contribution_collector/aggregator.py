"""Aggregation of stored snapshots into a single Summary."""

from __future__ import annotations

import time
from collections import Counter
from collections.abc import Mapping

import structlog
from pydantic_core import PydanticSerializationError

from ghcontrib.engines.contribution_collector.models import ContributionSnapshot, Summary
from ghcontrib.exceptions import SerializationFailure

log = structlog.get_logger("ghcontrib.engine")


def aggregate(snapshots: Mapping[str, ContributionSnapshot]) -> Summary:
    """Reduce every snapshot (all users, all years) into one Summary.

    - total_commit_contributions: commits summed over all snapshots
    - total_other_contributions: issues + pull requests + reviews
    - total_repositories: distinct repository *names* across the four
      per-repository lists; the URL is not part of the identity

    The timestamp is taken once, when aggregation runs.
    """
    total_commits = 0
    total_other = 0
    repositories: Counter[str] = Counter()

    for key, snapshot in snapshots.items():
        log.debug("aggregator.snapshot", key=key)
        total_commits += snapshot.total_commit_contributions
        total_other += snapshot.other_contributions
        repositories.update(repo.name for repo in snapshot.repositories())

    return Summary(
        timestamp=int(time.time()),
        total_commit_contributions=total_commits,
        total_repositories=len(repositories),
        total_other_contributions=total_other,
    )


def serialize(summary: Summary) -> str:
    """Pretty-printed JSON with camelCase keys and two-space indentation."""
    try:
        return summary.model_dump_json(by_alias=True, indent=2)
    except PydanticSerializationError as exc:
        raise SerializationFailure(f"couldn't encode summary: {exc}") from exc


def report(snapshots: Mapping[str, ContributionSnapshot]) -> str:
    """Aggregate then serialize."""
    summary = aggregate(snapshots)
    log.info(
        "aggregator.summary",
        snapshots=len(snapshots),
        total_commit_contributions=summary.total_commit_contributions,
        total_repositories=summary.total_repositories,
        total_other_contributions=summary.total_other_contributions,
    )
    return serialize(summary)
