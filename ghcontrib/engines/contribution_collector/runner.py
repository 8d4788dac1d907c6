"""ContributionRunner — drives one Reporter per credential over a shared store."""

from __future__ import annotations

import asyncio
from collections import defaultdict
from collections.abc import Callable, Sequence

import structlog

from ghcontrib.core.credentials import Credential
from ghcontrib.engines.contribution_collector.github_client import GitHubGraphQLClient
from ghcontrib.engines.contribution_collector.models import CollectResult, ResultStore
from ghcontrib.engines.contribution_collector.reporter import (
    DEFAULT_FIRST_CONTRIBUTION_YEAR,
    Reporter,
)
from ghcontrib.exceptions import InvalidUserError, QueryFailure

log = structlog.get_logger("ghcontrib.engine")

ClientFactory = Callable[[str], GitHubGraphQLClient]


class ContributionRunner:
    """Orchestration layer: credentials → Reporter.collect → shared store."""

    def __init__(
        self,
        client_factory: ClientFactory = GitHubGraphQLClient,
        *,
        first_year: int = DEFAULT_FIRST_CONTRIBUTION_YEAR,
        last_year: int = 0,
        concurrency: int = 1,
    ) -> None:
        self._client_factory = client_factory
        self.first_year = first_year
        self.last_year = last_year
        self.concurrency = max(concurrency, 1)

    async def run(self, credential: Credential, store: ResultStore) -> CollectResult:
        """Collect for a single credential.

        Construction and query failures are logged and recorded on the
        result; they never propagate, so the next credential still runs.
        """
        result = CollectResult(username=credential.username)
        client = self._client_factory(credential.token)
        try:
            reporter = Reporter(client, credential.username, self.first_year, self.last_year)
            return await reporter.collect(store, result)
        except InvalidUserError as exc:
            log.error("runner.invalid_user", error=str(exc))
            result.errors.append(str(exc))
        except QueryFailure as exc:
            log.error(
                "runner.collect_failed",
                user=credential.username,
                year=exc.year,
                error=str(exc),
            )
            result.errors.append(str(exc))
        finally:
            await client.close()
        return result

    async def run_all(
        self,
        credentials: Sequence[Credential],
        store: ResultStore | None = None,
    ) -> tuple[ResultStore, list[CollectResult]]:
        """Collect for every credential into one store.

        With ``concurrency == 1`` credentials are processed strictly in
        order.  Otherwise they run as tasks bounded by a semaphore; years
        within one credential are always sequential, and credentials sharing
        a username are serialized so a (user, year) is queried at most once.
        """
        if store is None:
            store = ResultStore()

        if self.concurrency == 1:
            results = [await self.run(credential, store) for credential in credentials]
        else:
            sem = asyncio.Semaphore(self.concurrency)
            user_locks: dict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

            async def _run_one(credential: Credential) -> CollectResult:
                async with user_locks[credential.username], sem:
                    return await self.run(credential, store)

            results = list(await asyncio.gather(*(_run_one(c) for c in credentials)))

        log.info(
            "runner.done",
            credentials=len(credentials),
            stored=len(store),
            failed=sum(1 for r in results if r.errors),
        )
        return store, results
