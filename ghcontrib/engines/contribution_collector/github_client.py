"""Async GitHub GraphQL client for contributions queries."""

from __future__ import annotations

import asyncio
import os
import time
from datetime import datetime
from typing import Any

import httpx
import structlog

from ghcontrib.engines.contribution_collector.models import ContributionSnapshot
from ghcontrib.engines.contribution_collector.queries import CONTRIBUTIONS_QUERY, decode_snapshot
from ghcontrib.exceptions import QueryFailure

log = structlog.get_logger("ghcontrib.engine")

DEFAULT_GRAPHQL_URL = "https://api.github.com/graphql"


class GitHubGraphQLClient:
    """Thin async wrapper around the GitHub GraphQL API.

    Each query is sent exactly once; failures surface as
    :class:`QueryFailure` and are never retried here.
    """

    def __init__(
        self,
        token: str | None = None,
        *,
        url: str | None = None,
        timeout: float = 30.0,
    ) -> None:
        resolved_token = token or os.environ.get("GITHUB_TOKEN")
        headers: dict[str, str] = {
            "Accept": "application/json",
            "User-Agent": "ghcontributions",
        }
        if resolved_token:
            headers["Authorization"] = f"bearer {resolved_token}"
        self._url = url or os.environ.get("GHCONTRIB_GRAPHQL_URL", DEFAULT_GRAPHQL_URL)
        self._client = httpx.AsyncClient(headers=headers, timeout=timeout)

    # ── lifecycle ──────────────────────────────────────────────────────────

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> GitHubGraphQLClient:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()

    # ── public ─────────────────────────────────────────────────────────────

    async def query(self, query: str, variables: dict[str, Any] | None = None) -> dict[str, Any]:
        """POST a GraphQL document and return its ``data`` member.

        Transport errors, HTTP error statuses, undecodable bodies and a
        non-empty ``errors`` array all raise :class:`QueryFailure`.
        """
        try:
            response = await self._client.post(
                self._url, json={"query": query, "variables": variables or {}}
            )
        except httpx.HTTPError as exc:
            raise QueryFailure(f"{type(exc).__name__}: {exc}") from exc

        await self._check_rate_limit(response)

        if response.status_code >= 400:
            raise QueryFailure(
                f"GitHub GraphQL error {response.status_code}: {response.text[:200]}"
            )

        try:
            payload = response.json()
        except ValueError as exc:
            raise QueryFailure(f"invalid JSON in GraphQL response: {exc}") from exc
        if not isinstance(payload, dict):
            raise QueryFailure(f"unexpected GraphQL response type: {type(payload).__name__}")

        errors = payload.get("errors")
        if errors:
            messages = "; ".join(str(e.get("message", e)) for e in errors if isinstance(e, dict))
            raise QueryFailure(f"GraphQL errors: {messages or errors}")

        return payload.get("data") or {}

    async def fetch_contributions(
        self,
        login: str,
        from_: datetime,
        to: datetime,
    ) -> ContributionSnapshot:
        """Fetch one user's contributions collection for ``[from_, to]``."""
        variables = {
            "login": login,
            "from": _format_datetime(from_),
            "to": _format_datetime(to),
        }
        data = await self.query(CONTRIBUTIONS_QUERY, variables)
        return decode_snapshot(data)

    # ── internal ───────────────────────────────────────────────────────────

    async def _check_rate_limit(self, response: httpx.Response) -> None:
        """Sleep until rate-limit resets if remaining == 0."""
        remaining = self._parse_header_int(response.headers.get("X-RateLimit-Remaining"))
        if remaining is not None and remaining == 0:
            wait = self._get_rate_limit_wait(response)
            log.warning("github.rate_limit_wait", wait_seconds=wait)
            await asyncio.sleep(wait)

    @staticmethod
    def _get_rate_limit_wait(response: httpx.Response) -> int:
        """Calculate how long to wait based on rate-limit headers."""
        retry_after = GitHubGraphQLClient._parse_header_int(response.headers.get("Retry-After"))
        if retry_after is not None:
            return max(retry_after, 1)
        reset_ts = GitHubGraphQLClient._parse_header_int(response.headers.get("X-RateLimit-Reset"))
        if reset_ts is not None:
            return max(reset_ts - int(time.time()), 1)
        return 60  # conservative fallback

    @staticmethod
    def _parse_header_int(value: str | None) -> int | None:
        """Safely parse an integer header value."""
        if value is None:
            return None
        try:
            return int(value)
        except (ValueError, TypeError):
            return None


def _format_datetime(value: datetime) -> str:
    """GraphQL ``DateTime`` literal, e.g. ``2024-01-01T00:00:00Z``."""
    return value.strftime("%Y-%m-%dT%H:%M:%SZ")
