"""Reporter — year-by-year contribution collection for one user."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import structlog

from ghcontrib.engines.contribution_collector.github_client import GitHubGraphQLClient
from ghcontrib.engines.contribution_collector.models import CollectResult, ResultStore
from ghcontrib.exceptions import InvalidUserError, QueryFailure

log = structlog.get_logger("ghcontrib.engine")

DEFAULT_FIRST_CONTRIBUTION_YEAR = 2000


def current_year() -> int:
    return datetime.now(timezone.utc).year


def normalize_years(
    first_year: int,
    last_year: int,
    *,
    this_year: int | None = None,
) -> tuple[int, int]:
    """Clamp a requested year range to ``2000 <= first <= last <= this_year``.

    - a first year before 2000 or in the future falls back to 2000
    - a last year in the future is clamped to this year
    - an unset (0) last year, or one before the first year, becomes this year
    """
    if this_year is None:
        this_year = current_year()

    if first_year < DEFAULT_FIRST_CONTRIBUTION_YEAR or first_year > this_year:
        first_year = DEFAULT_FIRST_CONTRIBUTION_YEAR

    if last_year > this_year:
        log.warning("reporter.last_year_in_future", requested=last_year, using=this_year)
        last_year = this_year

    if last_year == 0 or last_year < first_year:
        log.warning(
            "reporter.last_year_before_first",
            requested=last_year,
            first_year=first_year,
            using=this_year,
        )
        last_year = this_year

    return first_year, last_year


def contribution_window(year: int) -> tuple[datetime, datetime]:
    """``[Jan 1 00:00:00, next Jan 1 00:00:00 - 1s]`` of *year*, in UTC."""
    start = datetime(year, 1, 1, tzinfo=timezone.utc)
    end = datetime(year + 1, 1, 1, tzinfo=timezone.utc) - timedelta(seconds=1)
    return start, end


class Reporter:
    """Collects yearly contributions snapshots for a single GitHub login."""

    def __init__(
        self,
        client: GitHubGraphQLClient,
        user: str,
        first_year: int = DEFAULT_FIRST_CONTRIBUTION_YEAR,
        last_year: int = 0,
    ) -> None:
        if not user:
            raise InvalidUserError("user cannot be blank in constructing a query")
        self.client = client
        self.user = user
        self.first_year, self.last_year = normalize_years(first_year, last_year)

    def years(self) -> range:
        """Target years, most recent first."""
        return range(self.last_year, self.first_year - 1, -1)

    async def collect(
        self,
        store: ResultStore,
        result: CollectResult | None = None,
    ) -> CollectResult:
        """Query each year from ``last_year`` down to ``first_year``.

        Snapshots with a resolved login are added to *store*.  Iteration
        stops after the first year whose response reports no activity in
        the past.  A failing query raises :class:`QueryFailure` and ends
        the collection; years already stored are kept.

        Progress is recorded on *result* as it happens, so a caller that
        passes its own result still sees the partial counts after a failure.
        """
        if result is None:
            result = CollectResult(username=self.user)
        log.info(
            "reporter.collect_start",
            user=self.user,
            first_year=self.first_year,
            last_year=self.last_year,
        )

        for year in self.years():
            snapshot = store.get_for(self.user, year)
            if snapshot is not None:
                log.info("reporter.year_already_stored", user=self.user, year=year)
            else:
                start, end = contribution_window(year)
                result.years_queried.append(year)
                try:
                    snapshot = await self.client.fetch_contributions(self.user, start, end)
                except QueryFailure as exc:
                    log.error("reporter.query_failed", user=self.user, year=year, error=str(exc))
                    raise QueryFailure(str(exc), user=self.user, year=year) from exc

                if snapshot.login:
                    if store.add(self.user, year, snapshot):
                        result.stored += 1
                        log.info("reporter.year_stored", user=self.user, year=year)
                else:
                    log.warning("reporter.user_not_resolved", user=self.user, year=year)

            if not snapshot.has_activity_in_the_past:
                log.info("reporter.early_stop", user=self.user, year=year)
                break

        return result
