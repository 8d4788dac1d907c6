"""Tests for the GraphQL client and response decoding (no network)."""

from __future__ import annotations

import time
from datetime import datetime, timezone
from unittest.mock import AsyncMock, patch

import httpx
import pytest

from ghcontrib.engines.contribution_collector.github_client import (
    DEFAULT_GRAPHQL_URL,
    GitHubGraphQLClient,
)
from ghcontrib.engines.contribution_collector.queries import CONTRIBUTIONS_QUERY, decode_snapshot
from ghcontrib.exceptions import QueryFailure

_REQUEST = httpx.Request("POST", DEFAULT_GRAPHQL_URL)


def _response(status: int = 200, **kwargs) -> httpx.Response:
    return httpx.Response(status, request=_REQUEST, **kwargs)


def _client_with(post: AsyncMock) -> GitHubGraphQLClient:
    client = GitHubGraphQLClient.__new__(GitHubGraphQLClient)
    client._url = DEFAULT_GRAPHQL_URL
    client._client = AsyncMock()
    client._client.post = post
    return client


_USER_DATA = {
    "user": {
        "login": "octocat",
        "contributionsCollection": {
            "hasAnyContributions": True,
            "hasActivityInThePast": False,
            "restrictedContributionsCount": 4,
            "totalCommitContributions": 120,
            "totalIssueContributions": 3,
            "totalPullRequestContributions": 7,
            "totalPullRequestReviewContributions": 11,
            "totalRepositoriesWithContributedIssues": 1,
            "totalRepositoriesWithContributedCommits": 2,
            "totalRepositoriesWithContributedPullRequests": 1,
            "totalRepositoriesWithContributedPullRequestReviews": 1,
            "commitContributionsByRepository": [
                {
                    "repository": {"name": "hello-world", "url": "https://github.com/octocat/hello-world"},
                    "contributions": {"totalCount": 100},
                },
                {
                    "repository": {"name": "spoon-knife", "url": "https://github.com/octocat/spoon-knife"},
                    "contributions": {"totalCount": 20},
                },
            ],
            "issueContributionsByRepository": [
                {
                    "repository": {"name": "linguist", "url": "https://github.com/github/linguist"},
                    "contributions": {"totalCount": 3},
                },
            ],
            "pullRequestContributionsByRepository": [],
            "pullRequestReviewContributionsByRepository": None,
        },
    }
}


# ── TestDecodeSnapshot ────────────────────────────────────────────────────


class TestDecodeSnapshot:
    def test_full_response(self):
        snap = decode_snapshot(_USER_DATA)
        assert snap.login == "octocat"
        assert snap.has_any_contributions is True
        assert snap.has_activity_in_the_past is False
        assert snap.restricted_contributions_count == 4
        assert snap.total_commit_contributions == 120
        assert snap.other_contributions == 3 + 7 + 11
        assert snap.total_repositories_with_contributed_commits == 2
        assert [r.name for r in snap.commit_contributions] == ["hello-world", "spoon-knife"]
        assert snap.commit_contributions[0].count == 100
        assert snap.issue_contributions[0].url == "https://github.com/github/linguist"
        assert snap.pull_request_contributions == ()
        assert snap.pull_request_review_contributions == ()

    def test_null_user(self):
        snap = decode_snapshot({"user": None})
        assert snap.login == ""
        assert snap.has_activity_in_the_past is False
        assert snap.total_commit_contributions == 0

    def test_empty_data(self):
        assert decode_snapshot(None).login == ""
        assert decode_snapshot({}).login == ""

    def test_query_document_declares_variables(self):
        assert "user(login: $login)" in CONTRIBUTIONS_QUERY
        assert "contributionsCollection(from: $from, to: $to)" in CONTRIBUTIONS_QUERY
        assert CONTRIBUTIONS_QUERY.count("contributions {") == 4
        assert CONTRIBUTIONS_QUERY.count("{") == CONTRIBUTIONS_QUERY.count("}")


# ── TestGitHubGraphQLClient ───────────────────────────────────────────────


class TestGitHubGraphQLClient:
    @pytest.mark.anyio
    async def test_token_sent_as_bearer(self):
        client = GitHubGraphQLClient(token="test-token-123")
        try:
            assert client._client.headers["authorization"] == "bearer test-token-123"
        finally:
            await client.close()

    @pytest.mark.anyio
    async def test_token_falls_back_to_env(self):
        with patch.dict("os.environ", {"GITHUB_TOKEN": "env-token"}):
            client = GitHubGraphQLClient()
        try:
            assert client._client.headers["authorization"] == "bearer env-token"
        finally:
            await client.close()

    @pytest.mark.anyio
    async def test_url_override_from_env(self):
        with patch.dict("os.environ", {"GHCONTRIB_GRAPHQL_URL": "http://ghe.local/api/graphql"}):
            client = GitHubGraphQLClient(token="t")
        try:
            assert client._url == "http://ghe.local/api/graphql"
        finally:
            await client.close()

    @pytest.mark.anyio
    async def test_fetch_contributions_variables(self):
        post = AsyncMock(return_value=_response(json={"data": _USER_DATA}))
        client = _client_with(post)

        snap = await client.fetch_contributions(
            "octocat",
            datetime(2024, 1, 1, tzinfo=timezone.utc),
            datetime(2024, 12, 31, 23, 59, 59, tzinfo=timezone.utc),
        )

        assert snap.login == "octocat"
        post.assert_awaited_once()
        url = post.call_args.args[0]
        body = post.call_args.kwargs["json"]
        assert url == DEFAULT_GRAPHQL_URL
        assert body["query"] == CONTRIBUTIONS_QUERY
        assert body["variables"] == {
            "login": "octocat",
            "from": "2024-01-01T00:00:00Z",
            "to": "2024-12-31T23:59:59Z",
        }

    @pytest.mark.anyio
    async def test_graphql_errors_raise(self):
        payload = {
            "data": {"user": None},
            "errors": [{"type": "NOT_FOUND", "message": "Could not resolve to a User"}],
        }
        client = _client_with(AsyncMock(return_value=_response(json=payload)))

        with pytest.raises(QueryFailure, match="Could not resolve to a User"):
            await client.query(CONTRIBUTIONS_QUERY, {"login": "nobody"})

    @pytest.mark.anyio
    async def test_http_error_status_raises(self):
        client = _client_with(AsyncMock(return_value=_response(401, json={"message": "Bad credentials"})))

        with pytest.raises(QueryFailure, match="401"):
            await client.query(CONTRIBUTIONS_QUERY, {})

    @pytest.mark.anyio
    async def test_transport_error_raises_without_retry(self):
        post = AsyncMock(side_effect=httpx.ConnectError("connection refused"))
        client = _client_with(post)

        with pytest.raises(QueryFailure, match="ConnectError"):
            await client.query(CONTRIBUTIONS_QUERY, {})
        assert post.await_count == 1

    @pytest.mark.anyio
    async def test_invalid_json_raises(self):
        client = _client_with(AsyncMock(return_value=_response(text="<html>oops</html>")))

        with pytest.raises(QueryFailure, match="invalid JSON"):
            await client.query(CONTRIBUTIONS_QUERY, {})

    @pytest.mark.anyio
    async def test_non_object_payload_raises(self):
        client = _client_with(AsyncMock(return_value=_response(json=[1, 2])))

        with pytest.raises(QueryFailure, match="unexpected"):
            await client.query(CONTRIBUTIONS_QUERY, {})

    @pytest.mark.anyio
    async def test_missing_data_returns_empty(self):
        client = _client_with(AsyncMock(return_value=_response(json={})))
        assert await client.query(CONTRIBUTIONS_QUERY, {}) == {}

    @pytest.mark.anyio
    async def test_rate_limit_exhausted_sleeps(self):
        headers = {
            "X-RateLimit-Remaining": "0",
            "X-RateLimit-Reset": str(int(time.time()) + 2),
        }
        client = _client_with(
            AsyncMock(return_value=_response(json={"data": _USER_DATA}, headers=headers))
        )

        with patch("asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
            data = await client.query(CONTRIBUTIONS_QUERY, {})

        mock_sleep.assert_awaited_once()
        assert mock_sleep.call_args[0][0] >= 1
        assert data["user"]["login"] == "octocat"

    @pytest.mark.anyio
    async def test_rate_limit_remaining_no_sleep(self):
        headers = {"X-RateLimit-Remaining": "4999"}
        client = _client_with(AsyncMock(return_value=_response(json={"data": {}}, headers=headers)))

        with patch("asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
            await client.query(CONTRIBUTIONS_QUERY, {})
        mock_sleep.assert_not_called()

    def test_rate_limit_wait_prefers_retry_after(self):
        resp = _response(headers={"Retry-After": "30", "X-RateLimit-Reset": "0"})
        assert GitHubGraphQLClient._get_rate_limit_wait(resp) == 30

    def test_rate_limit_wait_fallback(self):
        assert GitHubGraphQLClient._get_rate_limit_wait(_response()) == 60

    def test_parse_header_int(self):
        assert GitHubGraphQLClient._parse_header_int("42") == 42
        assert GitHubGraphQLClient._parse_header_int(None) is None
        assert GitHubGraphQLClient._parse_header_int("garbage") is None
