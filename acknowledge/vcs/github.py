"""GitHub contributor source using PyGithub."""

import asyncio
from collections.abc import Mapping
from functools import cached_property

from github import (
    Auth,
    BadCredentialsException,
    Github,
    GithubException,
    RateLimitExceededException,
)

from acknowledge.errors import AuthFetchError, FetchError, TransientFetchError
from acknowledge.vcs.base import ContributorSource
from acknowledge.vcs.models import (
    ContributorPage,
    ContributorRecord,
    Provider,
    RepositoryReference,
)


class GitHubSource(ContributorSource):
    """GitHub implementation of ContributorSource using PyGithub.

    PyGithub is synchronous, so all blocking calls are wrapped
    with asyncio.to_thread() to avoid blocking the event loop.
    Works without a token, subject to the unauthenticated rate limit.
    """

    provider = Provider.GITHUB

    def __init__(
        self, token: str | None = None, per_page: int = 100, timeout: float = 30.0
    ) -> None:
        super().__init__(token, per_page)
        self._timeout = timeout

    @cached_property
    def _client(self) -> Github:
        auth = Auth.Token(self._token) if self._token else None
        # retry=None: rate limits are handled by the fetcher, not inside PyGithub
        return Github(
            auth=auth,
            per_page=self.per_page,
            timeout=int(self._timeout),
            retry=None,
        )

    def is_rate_limited(self, status: int, headers: Mapping[str, str]) -> bool:
        if status not in (403, 429):
            return False
        lowered = {k.lower(): v for k, v in headers.items()}
        return lowered.get("x-ratelimit-remaining") == "0" or "retry-after" in lowered

    async def fetch_page(self, ref: RepositoryReference, page: int) -> ContributorPage:
        """Fetch one page of a repository's contributors, most active first."""
        # built on the event loop so concurrent worker threads share one client
        client = self._client

        def _sync() -> ContributorPage:
            repo = client.get_repo(ref.slug, lazy=True)
            users = repo.get_contributors().get_page(page - 1)
            records = [
                ContributorRecord(
                    login=u.login,
                    profile_url=u.html_url,
                    contribution_count=u.contributions or 0,
                )
                for u in users
            ]
            return ContributorPage(records=records, has_next=len(users) >= self.per_page)

        operation = f"list contributors {ref.slug} page {page}"
        try:
            return await asyncio.to_thread(_sync)
        except BadCredentialsException as e:
            raise AuthFetchError("github", operation, e) from e
        except GithubException as e:
            raise self._translate(e, operation) from e
        except OSError as e:
            # requests' connection errors derive from OSError
            raise TransientFetchError("github", operation, e) from e

    def _translate(self, e: GithubException, operation: str) -> FetchError:
        headers = e.headers or {}
        if e.status == 401:
            return AuthFetchError("github", operation, e)
        if isinstance(e, RateLimitExceededException) or self.is_rate_limited(
            e.status, headers
        ):
            reset_at, retry_after = self.backoff_hint(headers)
            return TransientFetchError(
                "github",
                operation,
                e,
                rate_limited=True,
                reset_at=reset_at,
                retry_after=retry_after,
            )
        if e.status >= 500:
            return TransientFetchError("github", operation, e)
        return FetchError("github", operation, e)

    async def aclose(self) -> None:
        if "_client" in self.__dict__:
            await asyncio.to_thread(self._client.close)
