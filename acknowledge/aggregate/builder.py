"""Contribution threshold and projection into the requested output shape."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from acknowledge.aggregate.aggregator import Aggregation
from acknowledge.aggregate.models import (
    AggregatedContributor,
    ContributorDependencies,
    ContributorEntry,
    DepAndNames,
    DependencyEntry,
    NameAndCount,
    NameAndDeps,
    OutputModel,
)
from acknowledge.config.models import OutputFormat

logger = logging.getLogger(__name__)


@dataclass
class Selection:
    """Contributors kept after the threshold, and how many were dropped."""

    retained: dict[str, AggregatedContributor]
    by_dependency: dict[str, list[str]]
    others: int


def select(aggregation: Aggregation, threshold: int) -> Selection:
    """Apply the contribution threshold.

    A contributor is kept when their total reaches the threshold, or when they
    are the only contributor of at least one repository. Dependencies left
    without contributors are removed.
    """
    sole = aggregation.sole_contributors()
    retained = {
        key: c
        for key, c in aggregation.contributors.items()
        if c.total_count >= threshold or key in sole
    }
    by_dependency = {
        name: [k for k in keys if k in retained]
        for name, keys in aggregation.by_dependency.items()
    }
    by_dependency = {name: keys for name, keys in by_dependency.items() if keys}
    others = len(aggregation.contributors) - len(retained)
    logger.debug(
        "kept %d contributors, %d others below threshold %d", len(retained), others, threshold
    )
    return Selection(retained=retained, by_dependency=by_dependency, others=others)


def _entry(c: AggregatedContributor) -> ContributorEntry:
    return ContributorEntry(login=c.login, profile_url=c.profile_url, count=c.total_count)


def build_model(
    aggregation: Aggregation,
    layout: OutputFormat,
    threshold: int,
    mention: bool = False,
) -> OutputModel:
    """Filter the aggregation and project it into one output shape."""
    layout = OutputFormat(layout)
    selection = select(aggregation, threshold)
    retained = selection.retained

    if layout is OutputFormat.NAME_AND_COUNT:
        ordered = sorted(retained.values(), key=lambda c: (-c.total_count, *c.sort_key))
        return NameAndCount(
            contributors=[_entry(c) for c in ordered],
            others=selection.others,
            mention=mention,
        )

    if layout is OutputFormat.DEP_AND_NAMES:
        dependencies = [
            DependencyEntry(
                dependency=name,
                contributors=[
                    _entry(c)
                    for c in sorted((retained[k] for k in keys), key=lambda c: c.sort_key)
                ],
            )
            for name, keys in sorted(selection.by_dependency.items())
        ]
        return DepAndNames(dependencies=dependencies, others=selection.others, mention=mention)

    if layout is OutputFormat.NAME_AND_DEPS:
        ordered = sorted(
            retained.values(), key=lambda c: (-len(c.dependencies), *c.sort_key)
        )
        return NameAndDeps(
            contributors=[
                ContributorDependencies(
                    login=c.login,
                    profile_url=c.profile_url,
                    count=c.total_count,
                    dependencies=sorted(c.dependencies),
                )
                for c in ordered
            ],
            others=selection.others,
            mention=mention,
        )

    raise ValueError(f"Unsupported output format: {layout!r}")
