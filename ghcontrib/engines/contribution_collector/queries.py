"""GraphQL query document and response decoding for contributions."""

from __future__ import annotations

from typing import Any

from ghcontrib.engines.contribution_collector.models import (
    ContributionSnapshot,
    RepositoryContribution,
)

_BY_REPOSITORY = """
        repository {
          name
          url
        }
        contributions {
          totalCount
        }"""

CONTRIBUTIONS_QUERY = f"""
query($login: String!, $from: DateTime!, $to: DateTime!) {{
  user(login: $login) {{
    login
    contributionsCollection(from: $from, to: $to) {{
      hasAnyContributions
      hasActivityInThePast
      restrictedContributionsCount
      totalCommitContributions
      totalIssueContributions
      totalPullRequestContributions
      totalPullRequestReviewContributions
      totalRepositoriesWithContributedIssues
      totalRepositoriesWithContributedCommits
      totalRepositoriesWithContributedPullRequests
      totalRepositoriesWithContributedPullRequestReviews
      commitContributionsByRepository {{{_BY_REPOSITORY}
      }}
      issueContributionsByRepository {{{_BY_REPOSITORY}
      }}
      pullRequestContributionsByRepository {{{_BY_REPOSITORY}
      }}
      pullRequestReviewContributionsByRepository {{{_BY_REPOSITORY}
      }}
    }}
  }}
}}
"""


def decode_snapshot(data: dict[str, Any] | None) -> ContributionSnapshot:
    """Decode the ``data`` member of a contributions query response.

    A missing or null ``user`` decodes to a snapshot with an empty login,
    which callers treat as "user not resolved".
    """
    user = (data or {}).get("user") or {}
    collection = user.get("contributionsCollection") or {}

    return ContributionSnapshot(
        login=user.get("login") or "",
        has_any_contributions=bool(collection.get("hasAnyContributions")),
        has_activity_in_the_past=bool(collection.get("hasActivityInThePast")),
        restricted_contributions_count=_int(collection, "restrictedContributionsCount"),
        total_commit_contributions=_int(collection, "totalCommitContributions"),
        total_issue_contributions=_int(collection, "totalIssueContributions"),
        total_pull_request_contributions=_int(collection, "totalPullRequestContributions"),
        total_pull_request_review_contributions=_int(
            collection, "totalPullRequestReviewContributions"
        ),
        total_repositories_with_contributed_commits=_int(
            collection, "totalRepositoriesWithContributedCommits"
        ),
        total_repositories_with_contributed_issues=_int(
            collection, "totalRepositoriesWithContributedIssues"
        ),
        total_repositories_with_contributed_pull_requests=_int(
            collection, "totalRepositoriesWithContributedPullRequests"
        ),
        total_repositories_with_contributed_pull_request_reviews=_int(
            collection, "totalRepositoriesWithContributedPullRequestReviews"
        ),
        commit_contributions=_by_repository(collection.get("commitContributionsByRepository")),
        issue_contributions=_by_repository(collection.get("issueContributionsByRepository")),
        pull_request_contributions=_by_repository(
            collection.get("pullRequestContributionsByRepository")
        ),
        pull_request_review_contributions=_by_repository(
            collection.get("pullRequestReviewContributionsByRepository")
        ),
    )


# ── helpers ───────────────────────────────────────────────────────────────


def _int(obj: dict[str, Any], key: str) -> int:
    return int(obj.get(key) or 0)


def _by_repository(items: list[dict[str, Any]] | None) -> tuple[RepositoryContribution, ...]:
    entries = []
    for item in items or []:
        repository = item.get("repository") or {}
        contributions = item.get("contributions") or {}
        entries.append(
            RepositoryContribution(
                name=repository.get("name") or "",
                url=repository.get("url") or "",
                count=int(contributions.get("totalCount") or 0),
            )
        )
    return tuple(entries)
