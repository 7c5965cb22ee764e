"""Contributor aggregation engine.

Runs one pass of the pipeline::

    idle -> resolving -> locating -> fetching -> aggregating -> filtering -> done

and hands back the output model plus every non-fatal warning. The engine never
writes files itself other than through the cache store.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from acknowledge.aggregate import OutputModel, aggregate, build_model
from acknowledge.cache import CacheStore, create_cache
from acknowledge.config.models import AcknowledgeConfig
from acknowledge.manifest import DependencyEdge, read_manifest, resolve_dependencies
from acknowledge.runlog import RunLog, RunWarning
from acknowledge.vcs import (
    ContributorFetcher,
    ContributorSource,
    CratesIoRegistry,
    Provider,
    RepositoryLocator,
    create_sources,
    parse_sources,
)

logger = logging.getLogger(__name__)


class RunStage(str, Enum):
    IDLE = "idle"
    RESOLVING = "resolving"
    LOCATING = "locating"
    FETCHING = "fetching"
    AGGREGATING = "aggregating"
    FILTERING = "filtering"
    DONE = "done"


@dataclass
class RunStats:
    dependencies: int = 0
    repositories: int = 0
    cache_hits: int = 0
    network_fetches: int = 0
    failed: int = 0
    contributors: int = 0


@dataclass
class RunResult:
    model: OutputModel
    warnings: list[RunWarning] = field(default_factory=list)
    stats: RunStats = field(default_factory=RunStats)


class AcknowledgementEngine:
    """Turns a dependency set into a ranked list of the people behind it."""

    def __init__(
        self,
        config: AcknowledgeConfig,
        *,
        cache: CacheStore | None = None,
        sources: Mapping[Provider, ContributorSource] | None = None,
        registry: CratesIoRegistry | None = None,
        github_token: str | None = None,
        gitlab_token: str | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.config = config
        self.cache = cache if cache is not None else create_cache(config.cache)
        self.sources = (
            dict(sources)
            if sources is not None
            else create_sources(config.vcs, config.fetch, github_token, gitlab_token)
        )
        self.registry = registry or CratesIoRegistry(config.registry, self.cache, sleep=sleep)
        self._sleep = sleep
        self.stage = RunStage.IDLE

    def _enter(self, stage: RunStage) -> None:
        logger.debug("stage %s -> %s", self.stage.value, stage.value)
        self.stage = stage

    async def run(self, manifest_path: str | Path) -> RunResult:
        """Run the engine against a Cargo project.

        Raises ConfigurationError for a bad manifest or source list and
        AuthFetchError when a provider rejects the token.
        """
        edges = read_manifest(manifest_path)
        return await self.run_edges(edges)

    async def run_edges(self, edges: Iterable[DependencyEdge]) -> RunResult:
        """Run the engine against dependency edges from any manifest reader."""
        self._enter(RunStage.RESOLVING)
        run_log = RunLog()
        stats = RunStats()

        extra = parse_sources(self.config.sources, self.config.vcs.gitlab_hosts)
        descriptors = resolve_dependencies(edges, self.config.breadth)
        stats.dependencies = len(descriptors)
        logger.info("analyzing %d dependencies", len(descriptors))

        self._enter(RunStage.LOCATING)
        locator = RepositoryLocator(self.registry, run_log, self.config.vcs.gitlab_hosts)
        refs = await locator.locate(descriptors, extra)
        stats.repositories = len(refs)

        self._enter(RunStage.FETCHING)
        if not any(s.authenticated for s in self.sources.values()):
            logger.info("starting without access tokens, rate limits may slow this down")
        fetcher = ContributorFetcher(
            self.sources, self.cache, run_log, self.config.fetch, sleep=self._sleep
        )
        report = await fetcher.fetch_all(refs)
        stats.cache_hits = report.cache_hits
        stats.network_fetches = report.network_fetches
        stats.failed = len(report.failed)
        if refs and not report.contributors:
            logger.warning("no repository could be fetched; the list will be empty")

        self._enter(RunStage.AGGREGATING)
        aggregation = aggregate(report.contributors, refs)
        stats.contributors = len(aggregation.contributors)

        self._enter(RunStage.FILTERING)
        model = build_model(
            aggregation,
            self.config.output.format,
            self.config.contributions_threshold,
            mention=self.config.output.mention,
        )

        self._enter(RunStage.DONE)
        return RunResult(model=model, warnings=run_log.warnings, stats=stats)

    async def aclose(self) -> None:
        """Close network clients held by the registry and the sources."""
        await self.registry.aclose()
        for source in self.sources.values():
            await source.aclose()
