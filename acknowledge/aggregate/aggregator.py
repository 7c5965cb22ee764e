"""Merges per-repository contributor records into per-identity totals."""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Mapping
from dataclasses import dataclass, field

from acknowledge.aggregate.models import AggregatedContributor
from acknowledge.vcs.models import ContributorRecord, RepositoryReference

logger = logging.getLogger(__name__)


def normalize_login(login: str) -> str:
    return login.strip().casefold()


def identity_key(
    record: ContributorRecord, accounts: Mapping[str, str] | None = None
) -> str:
    """Bucket key deciding which records belong to the same person.

    Records with a profile URL match case-insensitively on login. A record
    without one joins an account only when its login equals a login seen on
    that account exactly (``accounts`` maps such logins to their key);
    otherwise it stays on its own, keyed by the exact login.
    """
    if record.profile_url:
        return f"account:{normalize_login(record.login)}"
    if accounts and record.login in accounts:
        return accounts[record.login]
    return f"name:{record.login}"


@dataclass
class Aggregation:
    """Aggregator output: the views every output shape is projected from."""

    contributors: dict[str, AggregatedContributor] = field(default_factory=dict)
    by_dependency: dict[str, list[str]] = field(default_factory=dict)
    by_repository: dict[RepositoryReference, list[str]] = field(default_factory=dict)

    def sole_contributors(self) -> set[str]:
        """Keys of people who are the only contributor of some repository."""
        return {keys[0] for keys in self.by_repository.values() if len(keys) == 1}


@dataclass
class _Bucket:
    total: int = 0
    logins: set[str] = field(default_factory=set)
    profile_urls: dict[str, set[str]] = field(default_factory=lambda: defaultdict(set))
    repositories: set[RepositoryReference] = field(default_factory=set)
    dependencies: set[str] = field(default_factory=set)


def aggregate(
    contributors: Mapping[RepositoryReference, list[ContributorRecord]],
    dependencies: Mapping[RepositoryReference, set[str]],
) -> Aggregation:
    """Merge records across repositories. Independent of input order."""
    accounts: dict[str, str] = {}
    for records in contributors.values():
        for record in records:
            if record.profile_url:
                accounts[record.login] = identity_key(record)

    buckets: dict[str, _Bucket] = defaultdict(_Bucket)
    by_repository: dict[RepositoryReference, set[str]] = {}
    by_dependency: dict[str, set[str]] = defaultdict(set)

    for ref, records in contributors.items():
        dep_names = dependencies.get(ref) or {ref.repo}
        repo_keys = by_repository.setdefault(ref, set())
        for record in records:
            key = identity_key(record, accounts)
            bucket = buckets[key]
            bucket.total += record.contribution_count
            bucket.logins.add(record.login)
            if record.profile_url:
                bucket.profile_urls[record.login].add(record.profile_url)
            bucket.repositories.add(ref)
            bucket.dependencies.update(dep_names)
            repo_keys.add(key)
            for name in dep_names:
                by_dependency[name].add(key)

    result = Aggregation(
        contributors={key: _finish(key, bucket) for key, bucket in sorted(buckets.items())},
        by_dependency={name: sorted(keys) for name, keys in sorted(by_dependency.items())},
        by_repository={
            ref: sorted(by_repository[ref]) for ref in sorted(by_repository, key=str)
        },
    )
    logger.info(
        "aggregated %d contributors across %d repositories",
        len(result.contributors),
        len(result.by_repository),
    )
    return result


def _finish(key: str, bucket: _Bucket) -> AggregatedContributor:
    # prefer a login that came with a profile URL, then the smallest spelling
    attributed = sorted(bucket.profile_urls)
    login = attributed[0] if attributed else min(bucket.logins)
    urls = bucket.profile_urls.get(login)
    return AggregatedContributor(
        key=key,
        identity=normalize_login(login),
        login=login,
        profile_url=min(urls) if urls else None,
        total_count=bucket.total,
        repositories=frozenset(bucket.repositories),
        dependencies=frozenset(bucket.dependencies),
    )
