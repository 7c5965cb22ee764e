"""crates.io lookup of a crate's declared repository URL."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from urllib.parse import quote

import httpx

from acknowledge.cache.store import CacheStore
from acknowledge.config.models import RegistryConfig
from acknowledge.errors import CacheCorruptionError, FetchError, TransientFetchError
from acknowledge.runlog import RunLog

logger = logging.getLogger(__name__)


class CratesIoRegistry:
    """Cached, politely paced crates.io client.

    crates.io asks API users for a descriptive User-Agent and at most one
    request per second; lookups are serialized to honour that.
    """

    def __init__(
        self,
        config: RegistryConfig,
        cache: CacheStore,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.config = config
        self.cache = cache
        self._sleep = sleep
        self._lock = asyncio.Lock()
        self._last_request: float | None = None
        self._client: httpx.AsyncClient | None = None
        self.network_calls = 0

    @staticmethod
    def cache_key(name: str) -> str:
        return f"crates-io:{name}"

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.config.base_url,
                headers={"User-Agent": self.config.user_agent},
                timeout=httpx.Timeout(30.0, connect=5.0),
            )
        return self._client

    def read_cached(self, name: str, run_log: RunLog | None = None) -> str | None:
        """Return the cached repository URL, or None on a miss or bad entry."""
        try:
            entry = self.cache.read_entry(self.cache_key(name))
        except CacheCorruptionError as e:
            if run_log is not None:
                run_log.warn("cache", name, f"{e}; asking crates.io again")
            else:
                logger.warning("%s; asking crates.io again", e)
            return None
        if entry is None:
            return None
        url = entry.payload.decode("utf-8", errors="replace").strip()
        return url or None

    async def repository_url(self, name: str, run_log: RunLog | None = None) -> str | None:
        """Return the repository URL a crate declares, or None if it has none.

        Only found URLs are cached. A corrupt cache entry is recorded on
        run_log and looked up again. Raises FetchError if crates.io cannot be
        reached or answers with an error other than 404.
        """
        url = self.read_cached(name, run_log)
        if url is not None:
            logger.debug("cached crates.io data for %s", name)
            return url

        async with self._lock:
            await self._pace()
            logger.info("fetching crates.io data for %s", name)
            self.network_calls += 1
            try:
                resp = await self._get_client().get(f"/crates/{quote(name, safe='')}")
            except httpx.HTTPError as e:
                raise TransientFetchError("crates.io", f"lookup {name}", e) from e
            finally:
                self._last_request = time.monotonic()

        if resp.status_code == 404:
            return None
        if resp.status_code != 200:
            raise FetchError(
                "crates.io",
                f"lookup {name}",
                f"HTTP {resp.status_code}",
                retryable=resp.status_code in (429, 500, 502, 503, 504),
            )
        try:
            repository = (resp.json().get("crate") or {}).get("repository")
        except (ValueError, AttributeError) as e:
            raise FetchError("crates.io", f"lookup {name}", f"malformed response: {e}") from e

        if repository:
            self.cache.set(self.cache_key(name), repository.encode("utf-8"))
        return repository or None

    async def _pace(self) -> None:
        if self._last_request is None:
            return
        elapsed = time.monotonic() - self._last_request
        if elapsed < self.config.min_interval:
            await self._sleep(self.config.min_interval - elapsed)

    async def aclose(self) -> None:
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
        self._client = None
