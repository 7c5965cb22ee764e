"""Contributor fetcher: cached, rate-limit aware, bounded-parallel.

Each distinct repository reference goes through one of::

    cache hit
    fetching -> (rate limited -> fetching)* -> fetched -> cache write
    fetching -> (rate limited -> fetching)* -> failed

A repository that fails is reported as a warning and left out; only an
authentication failure aborts the whole run. Cache entries are written only
after every page of a repository has been retrieved.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable, Iterable, Mapping
from dataclasses import dataclass, field

from pydantic import TypeAdapter, ValidationError

from acknowledge.cache.store import CacheStore
from acknowledge.config.models import FetchConfig
from acknowledge.errors import (
    AuthFetchError,
    CacheCorruptionError,
    FetchError,
    TransientFetchError,
)
from acknowledge.runlog import RunLog
from acknowledge.vcs.base import ContributorSource, seconds_until
from acknowledge.vcs.models import (
    ContributorPage,
    ContributorRecord,
    Provider,
    RepositoryReference,
)

logger = logging.getLogger(__name__)

_records_adapter = TypeAdapter(list[ContributorRecord])


@dataclass
class FetchReport:
    """Contributor lists for every repository that could be fetched."""

    contributors: dict[RepositoryReference, list[ContributorRecord]] = field(
        default_factory=dict
    )
    failed: list[RepositoryReference] = field(default_factory=list)
    cache_hits: int = 0
    network_fetches: int = 0

    @property
    def succeeded(self) -> int:
        return len(self.contributors)


@dataclass
class _Outcome:
    ref: RepositoryReference
    records: list[ContributorRecord] | None
    from_cache: bool = False


class ContributorFetcher:
    """Fetches contributor lists for many repositories at once."""

    def __init__(
        self,
        sources: Mapping[Provider, ContributorSource],
        cache: CacheStore,
        run_log: RunLog,
        config: FetchConfig | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.sources = dict(sources)
        self.cache = cache
        self.run_log = run_log
        self.config = config or FetchConfig()
        self._sleep = sleep
        self._clock = clock

    async def fetch_all(self, refs: Iterable[RepositoryReference]) -> FetchReport:
        """Fetch every reference with at most max_concurrency in flight per provider.

        Raises AuthFetchError if a provider rejects the token; every other
        failure is recorded in the run log and the repository is skipped.
        """
        unique = sorted(set(refs), key=str)
        semaphores = {
            provider: asyncio.Semaphore(self.config.max_concurrency) for provider in Provider
        }
        tasks = [
            asyncio.create_task(self._fetch_one(ref, semaphores[ref.provider]))
            for ref in unique
        ]
        try:
            outcomes = await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

        report = FetchReport()
        for outcome in outcomes:
            if outcome.records is None:
                report.failed.append(outcome.ref)
                continue
            report.contributors[outcome.ref] = outcome.records
            if outcome.from_cache:
                report.cache_hits += 1
            else:
                report.network_fetches += 1
        logger.info(
            "fetched %d repositories (%d cached, %d failed)",
            report.succeeded,
            report.cache_hits,
            len(report.failed),
        )
        return report

    async def _fetch_one(
        self, ref: RepositoryReference, semaphore: asyncio.Semaphore
    ) -> _Outcome:
        cached = self.read_cached(ref)
        if cached is not None:
            logger.info("cached %s data for %s", ref.provider.value, ref.slug)
            return _Outcome(ref, cached, from_cache=True)

        source = self.sources.get(ref.provider)
        if source is None:
            self.run_log.warn("fetch", str(ref), f"no {ref.provider.value} source configured")
            return _Outcome(ref, None)

        async with semaphore:
            logger.info("fetching %s data for %s", ref.provider.value, ref.slug)
            try:
                records = await self.fetch_repository(source, ref)
            except AuthFetchError:
                raise
            except FetchError as e:
                self.run_log.warn("fetch", str(ref), f"skipped: {e}")
                return _Outcome(ref, None)

        self.cache.set(ref.cache_key, _records_adapter.dump_json(records))
        return _Outcome(ref, records)

    def read_cached(self, ref: RepositoryReference) -> list[ContributorRecord] | None:
        """Return the cached contributor list, or None on a miss or bad entry."""
        try:
            entry = self.cache.read_entry(ref.cache_key)
        except CacheCorruptionError as e:
            self.run_log.warn("cache", str(ref), f"{e}; fetching again")
            return None
        if entry is None:
            return None
        try:
            return _records_adapter.validate_json(entry.payload)
        except ValidationError as e:
            self.run_log.warn(
                "cache",
                str(ref),
                f"malformed contributor list ({e.error_count()} errors); fetching again",
            )
            return None

    async def fetch_repository(
        self, source: ContributorSource, ref: RepositoryReference
    ) -> list[ContributorRecord]:
        """Walk every page of a repository's contributors, dropping bots."""
        records: list[ContributorRecord] = []
        page = 1
        while True:
            result = await self._fetch_page(source, ref, page)
            records.extend(r for r in result.records if not r.is_bot)
            if not result.has_next or not result.records:
                return records
            page += 1

    async def _fetch_page(
        self, source: ContributorSource, ref: RepositoryReference, page: int
    ) -> ContributorPage:
        attempt = 0
        while True:
            try:
                return await source.fetch_page(ref, page)
            except TransientFetchError as e:
                if attempt >= self.config.max_retries:
                    raise
                delay = self.backoff_delay(e, attempt)
                if e.rate_limited:
                    logger.warning(
                        "%s rate limit reached for %s, waiting %.0fs (retry %d/%d)",
                        source.provider.value,
                        ref.slug,
                        delay,
                        attempt + 1,
                        self.config.max_retries,
                    )
                else:
                    logger.warning("%s; retrying in %.1fs", e, delay)
                await self._sleep(delay)
                attempt += 1

    def backoff_delay(self, error: TransientFetchError, attempt: int) -> float:
        """Delay before retry number attempt+1, from the reset hint when there is one."""
        if error.retry_after is not None:
            delay = error.retry_after
        elif error.reset_at is not None:
            delay = seconds_until(error.reset_at, self._clock())
        else:
            delay = self.config.retry_delay * (2**attempt)
        return min(delay, self.config.max_backoff)
