"""GitLab contributor source using the REST v4 API via httpx."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from urllib.parse import quote

import httpx

from acknowledge.errors import AuthFetchError, FetchError, TransientFetchError
from acknowledge.vcs.base import ContributorSource
from acknowledge.vcs.models import (
    ContributorPage,
    ContributorRecord,
    Provider,
    RepositoryReference,
)

logger = logging.getLogger(__name__)


class GitLabSource(ContributorSource):
    """GitLab adapter for gitlab.com and self-hosted instances.

    GitLab reports contributors by commit author name and email, not by
    account, so records carry no profile URL.
    """

    provider = Provider.GITLAB
    reset_header = "ratelimit-reset"

    def __init__(
        self, token: str | None = None, per_page: int = 100, timeout: float = 30.0
    ) -> None:
        super().__init__(token, per_page)
        self._timeout = timeout
        self._client: httpx.AsyncClient | None = None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            headers = {"Accept": "application/json"}
            if self._token:
                headers["Authorization"] = f"Bearer {self._token}"
            self._client = httpx.AsyncClient(
                headers=headers,
                timeout=httpx.Timeout(self._timeout, connect=5.0),
            )
        return self._client

    @staticmethod
    def contributors_url(ref: RepositoryReference) -> str:
        project = quote(ref.slug, safe="")
        return f"https://{ref.host}/api/v4/projects/{project}/repository/contributors"

    def is_rate_limited(self, status: int, headers: Mapping[str, str]) -> bool:
        if status == 429:
            return True
        lowered = {k.lower(): v for k, v in headers.items()}
        return status == 403 and lowered.get("ratelimit-remaining") == "0"

    async def fetch_page(self, ref: RepositoryReference, page: int) -> ContributorPage:
        operation = f"list contributors {ref.slug} page {page}"
        try:
            resp = await self._get_client().get(
                self.contributors_url(ref),
                params={
                    "per_page": self.per_page,
                    "page": page,
                    "order_by": "commits",
                    "sort": "desc",
                },
            )
        except httpx.HTTPError as e:
            raise TransientFetchError("gitlab", operation, e) from e

        if resp.status_code == 401:
            raise AuthFetchError("gitlab", operation, f"HTTP 401: {resp.text[:200]}")
        if self.is_rate_limited(resp.status_code, resp.headers):
            reset_at, retry_after = self.backoff_hint(resp.headers)
            raise TransientFetchError(
                "gitlab",
                operation,
                f"HTTP {resp.status_code}: rate limit exceeded",
                rate_limited=True,
                reset_at=reset_at,
                retry_after=retry_after,
            )
        if resp.status_code >= 500:
            raise TransientFetchError("gitlab", operation, f"HTTP {resp.status_code}")
        if resp.status_code != 200:
            raise FetchError("gitlab", operation, f"HTTP {resp.status_code}")

        try:
            data = resp.json()
            records = [
                ContributorRecord(
                    login=c["name"],
                    profile_url=None,
                    contribution_count=c.get("commits", 0),
                )
                for c in data
            ]
        except (ValueError, KeyError, TypeError) as e:
            raise FetchError("gitlab", operation, f"malformed response: {e}") from e

        next_page = resp.headers.get("x-next-page")
        if next_page is not None:
            has_next = bool(next_page.strip())
        else:
            has_next = len(records) >= self.per_page
        logger.debug("gitlab %s page %d: %d contributors", ref.slug, page, len(records))
        return ContributorPage(records=records, has_next=has_next)

    async def aclose(self) -> None:
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
        self._client = None
