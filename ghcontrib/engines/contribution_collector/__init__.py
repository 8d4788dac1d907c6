"""Contribution collector engine — GitHub GraphQL collection and aggregation."""

from ghcontrib.engines.contribution_collector.aggregator import aggregate, report, serialize
from ghcontrib.engines.contribution_collector.github_client import GitHubGraphQLClient
from ghcontrib.engines.contribution_collector.models import (
    CollectResult,
    ContributionSnapshot,
    RepositoryContribution,
    ResultStore,
    Summary,
)
from ghcontrib.engines.contribution_collector.reporter import (
    DEFAULT_FIRST_CONTRIBUTION_YEAR,
    Reporter,
    contribution_window,
    normalize_years,
)
from ghcontrib.engines.contribution_collector.runner import ContributionRunner

__all__ = [
    "DEFAULT_FIRST_CONTRIBUTION_YEAR",
    "CollectResult",
    "ContributionRunner",
    "ContributionSnapshot",
    "GitHubGraphQLClient",
    "RepositoryContribution",
    "Reporter",
    "ResultStore",
    "Summary",
    "aggregate",
    "contribution_window",
    "normalize_years",
    "report",
    "serialize",
]
