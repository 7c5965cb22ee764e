"""Hosting providers, repository location and contributor fetching."""

import os

from acknowledge.config.models import FetchConfig, VCSConfig
from acknowledge.vcs.base import ContributorSource
from acknowledge.vcs.fetcher import ContributorFetcher, FetchReport
from acknowledge.vcs.github import GitHubSource
from acknowledge.vcs.gitlab import GitLabSource
from acknowledge.vcs.locator import RepositoryLocator, parse_repository_url, parse_sources
from acknowledge.vcs.models import (
    ContributorPage,
    ContributorRecord,
    Provider,
    RepositoryReference,
)
from acknowledge.vcs.registry import CratesIoRegistry


def create_sources(
    config: VCSConfig,
    fetch: FetchConfig,
    github_token: str | None = None,
    gitlab_token: str | None = None,
) -> dict[Provider, ContributorSource]:
    """Create one contributor source per supported provider.

    Explicit tokens win; otherwise they are read from the environment
    variables named in config. Both providers work without a token.
    """
    github_token = github_token or os.environ.get(config.github_token_env) or None
    gitlab_token = gitlab_token or os.environ.get(config.gitlab_token_env) or None
    return {
        Provider.GITHUB: GitHubSource(
            token=github_token, per_page=fetch.per_page, timeout=fetch.timeout
        ),
        Provider.GITLAB: GitLabSource(
            token=gitlab_token, per_page=fetch.per_page, timeout=fetch.timeout
        ),
    }


__all__ = [
    "ContributorFetcher",
    "ContributorPage",
    "ContributorRecord",
    "ContributorSource",
    "CratesIoRegistry",
    "FetchReport",
    "GitHubSource",
    "GitLabSource",
    "Provider",
    "RepositoryLocator",
    "RepositoryReference",
    "create_sources",
    "parse_repository_url",
    "parse_sources",
]
