"""Shared test fixtures for acknowledge."""

from collections.abc import Iterable

import pytest

from acknowledge.cache import CacheStore, NullCache
from acknowledge.config.models import AcknowledgeConfig, CacheConfig
from acknowledge.runlog import RunLog
from acknowledge.vcs.base import ContributorSource
from acknowledge.vcs.models import (
    ContributorPage,
    ContributorRecord,
    Provider,
    RepositoryReference,
)
from acknowledge.vcs.registry import CratesIoRegistry


def make_record(login: str, count: int, profile: bool = True) -> ContributorRecord:
    return ContributorRecord(
        login=login,
        profile_url=f"https://github.com/{login}" if profile else None,
        contribution_count=count,
    )


class FakeSource(ContributorSource):
    """In-memory contributor source that pages its data and counts requests.

    ``failures`` maps a slug to exceptions raised, one per request, before
    the real data is served.
    """

    def __init__(
        self,
        provider: Provider,
        data: dict[str, list[ContributorRecord]] | None = None,
        failures: dict[str, list[Exception]] | None = None,
        per_page: int = 100,
        token: str | None = "test-token",
    ) -> None:
        super().__init__(token, per_page)
        self.provider = provider
        self.data = data or {}
        self.failures = {k: list(v) for k, v in (failures or {}).items()}
        self.calls: list[tuple[str, int]] = []
        self.closed = False

    async def fetch_page(self, ref: RepositoryReference, page: int) -> ContributorPage:
        self.calls.append((ref.slug, page))
        pending = self.failures.get(ref.slug)
        if pending:
            raise pending.pop(0)
        records = self.data.get(ref.slug, [])
        start = (page - 1) * self.per_page
        chunk = records[start : start + self.per_page]
        return ContributorPage(records=chunk, has_next=start + self.per_page < len(records))

    def is_rate_limited(self, status, headers) -> bool:
        return status == 429

    async def aclose(self) -> None:
        self.closed = True


class FakeRegistry(CratesIoRegistry):
    """Registry answering from a dict instead of crates.io."""

    def __init__(self, urls: dict[str, str | None] | None = None, cache=None) -> None:
        super().__init__(AcknowledgeConfig().registry, cache or NullCache())
        self.urls = urls or {}
        self.lookups: list[str] = []

    async def repository_url(self, name: str, run_log: RunLog | None = None) -> str | None:
        self.lookups.append(name)
        return self.urls.get(name)


class RecordingSleep:
    """Stand-in for asyncio.sleep that returns at once and remembers delays."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture
def record():
    return make_record


@pytest.fixture
def fake_source():
    def _make(provider: Provider = Provider.GITHUB, **kwargs) -> FakeSource:
        return FakeSource(provider, **kwargs)

    return _make


@pytest.fixture
def fake_registry():
    def _make(urls: dict[str, str | None] | None = None) -> FakeRegistry:
        return FakeRegistry(urls)

    return _make


@pytest.fixture
def sleep():
    return RecordingSleep()


@pytest.fixture
def cache(tmp_path):
    return CacheStore(tmp_path / "cache")


@pytest.fixture
def run_log():
    return RunLog()


@pytest.fixture
def sample_config(tmp_path):
    return AcknowledgeConfig(cache=CacheConfig(directory=str(tmp_path / "cache")))


def gh(slug: str) -> RepositoryReference:
    owner, repo = slug.split("/")
    return RepositoryReference(provider=Provider.GITHUB, owner=owner, repo=repo)


@pytest.fixture
def github_ref():
    return gh


def write_manifest(directory, body: str, members: Iterable[tuple[str, str]] = ()):
    """Write Cargo.toml (and member manifests) under directory."""
    directory.mkdir(parents=True, exist_ok=True)
    (directory / "Cargo.toml").write_text(body)
    for rel, member_body in members:
        member = directory / rel
        member.mkdir(parents=True, exist_ok=True)
        (member / "Cargo.toml").write_text(member_body)
    return directory


@pytest.fixture
def cargo_project(tmp_path):
    def _make(body: str, members: Iterable[tuple[str, str]] = ()):
        return write_manifest(tmp_path / "project", body, members)

    return _make
