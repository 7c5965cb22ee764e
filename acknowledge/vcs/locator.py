"""Repository locator: dependency descriptors -> canonical repository references."""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from urllib.parse import urlsplit

from acknowledge.errors import ConfigurationError, FetchError
from acknowledge.manifest.models import DependencyDescriptor
from acknowledge.runlog import RunLog
from acknowledge.vcs.models import Provider, RepositoryReference
from acknowledge.vcs.registry import CratesIoRegistry

logger = logging.getLogger(__name__)

# git@github.com:owner/repo.git
_SCP_LIKE = re.compile(r"^(?:[\w.-]+@)?(?P<host>[\w.-]+):(?P<path>[^/].*)$")


def _split_url(url: str) -> tuple[str, str] | None:
    """Return (host, path) for the URL forms cargo and crates.io use."""
    url = url.strip()
    if url.startswith("git+"):
        url = url[len("git+"):]
    if "://" in url:
        parts = urlsplit(url)
        if not parts.hostname:
            return None
        return parts.hostname.lower(), parts.path
    match = _SCP_LIKE.match(url)
    if match:
        return match.group("host").lower(), match.group("path")
    return None


def parse_repository_url(
    url: str, gitlab_hosts: Iterable[str] = ("gitlab.com",)
) -> RepositoryReference | None:
    """Normalize a repository URL, or return None for unknown hosts and bad URLs.

    Mono-repo sub-paths (``/tree/main/crates/x``, ``/-/tree/...``) are cut off.
    """
    split = _split_url(url)
    if split is None:
        return None
    host, path = split
    if host.startswith("www."):
        host = host[len("www."):]

    segments = [s for s in path.split("/") if s]
    if host == "github.com":
        provider = Provider.GITHUB
        segments = segments[:2]
    elif host in {h.lower() for h in gitlab_hosts}:
        provider = Provider.GITLAB
        # GitLab allows nested groups; "-" separates the project from sub-pages
        if "-" in segments:
            segments = segments[: segments.index("-")]
    else:
        return None

    if len(segments) < 2:
        return None
    owner = "/".join(segments[:-1])
    repo = segments[-1]
    if repo.endswith(".git"):
        repo = repo[: -len(".git")]
    if not owner or not repo:
        return None
    return RepositoryReference(provider=provider, owner=owner, repo=repo, host=host)


def parse_sources(
    sources: Iterable[str], gitlab_hosts: Iterable[str] = ("gitlab.com",)
) -> dict[RepositoryReference, set[str]]:
    """Parse user-supplied extra sources, labelled by repository name.

    Raises ConfigurationError for a source that is not a GitHub/GitLab URL.
    """
    refs: dict[RepositoryReference, set[str]] = {}
    for source in sources:
        ref = parse_repository_url(source, gitlab_hosts)
        if ref is None:
            raise ConfigurationError(
                f"Unsupported source {source!r}: expected a GitHub or GitLab repository URL"
            )
        refs.setdefault(ref, set()).add(ref.repo)
    return refs


class RepositoryLocator:
    """Maps each dependency to the repository its contributors live in."""

    def __init__(
        self,
        registry: CratesIoRegistry,
        run_log: RunLog,
        gitlab_hosts: Iterable[str] = ("gitlab.com",),
    ) -> None:
        self.registry = registry
        self.run_log = run_log
        self.gitlab_hosts = list(gitlab_hosts)

    async def locate(
        self,
        descriptors: Iterable[DependencyDescriptor],
        extra: dict[RepositoryReference, set[str]] | None = None,
    ) -> dict[RepositoryReference, set[str]]:
        """Return each distinct reference with the dependency names it serves."""
        refs: dict[RepositoryReference, set[str]] = {
            ref: set(names) for ref, names in (extra or {}).items()
        }

        for descriptor in descriptors:
            url = descriptor.repository or await self._lookup(descriptor.name)
            if url is None:
                continue
            ref = parse_repository_url(url, self.gitlab_hosts)
            if ref is None:
                self.run_log.warn(
                    "locate",
                    descriptor.name,
                    f"repository {url} is not hosted on a supported provider",
                )
                continue
            refs.setdefault(ref, set()).add(descriptor.name)

        logger.info("located %d distinct repositories", len(refs))
        return refs

    async def _lookup(self, name: str) -> str | None:
        try:
            url = await self.registry.repository_url(name, self.run_log)
        except FetchError as e:
            self.run_log.warn("locate", name, f"registry lookup failed: {e}")
            return None
        if url is None:
            self.run_log.warn("locate", name, "no repository URL declared on crates.io")
        return url
