"""Abstract contributor-source interface for hosting providers."""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from collections.abc import Mapping

from acknowledge.vcs.models import ContributorPage, Provider, RepositoryReference


class ContributorSource(ABC):
    """Base class for hosting-provider adapters.

    The fetcher only drives pagination and retries; everything that depends on
    a provider's wire format lives here: fetching one page, recognizing a
    rate-limit response, and turning it into a backoff hint. Adapters raise
    TransientFetchError (with reset_at / retry_after filled in from
    ``backoff_hint``) or AuthFetchError instead of provider exceptions.
    """

    provider: Provider
    reset_header: str = "x-ratelimit-reset"

    def __init__(self, token: str | None = None, per_page: int = 100) -> None:
        self._token = token or None
        self.per_page = per_page

    @property
    def authenticated(self) -> bool:
        return self._token is not None

    @abstractmethod
    async def fetch_page(self, ref: RepositoryReference, page: int) -> ContributorPage:
        """Fetch one page (1-based) of contributors for ref."""
        ...

    @abstractmethod
    def is_rate_limited(self, status: int, headers: Mapping[str, str]) -> bool:
        """Whether a response signals quota exhaustion."""
        ...

    def backoff_hint(self, headers: Mapping[str, str]) -> tuple[float | None, float | None]:
        """Return (reset_at, retry_after) read from rate-limit headers."""
        lowered = {k.lower(): v for k, v in headers.items()}
        return (
            _to_float(lowered.get(self.reset_header)),
            _to_float(lowered.get("retry-after")),
        )

    async def aclose(self) -> None:
        """Release network resources."""
        return None


def _to_float(value: str | None) -> float | None:
    if value is None:
        return None
    try:
        return float(value)
    except ValueError:
        return None


def seconds_until(reset_at: float, now: float | None = None) -> float:
    """Seconds from now until a unix timestamp, never negative."""
    now = time.time() if now is None else now
    return max(0.0, reset_at - now)
