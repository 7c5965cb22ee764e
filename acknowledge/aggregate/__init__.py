"""Identity merging, threshold filtering and output shaping."""

from acknowledge.aggregate.aggregator import Aggregation, aggregate, identity_key, normalize_login
from acknowledge.aggregate.builder import Selection, build_model, select
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

__all__ = [
    "AggregatedContributor",
    "Aggregation",
    "ContributorDependencies",
    "ContributorEntry",
    "DepAndNames",
    "DependencyEntry",
    "NameAndCount",
    "NameAndDeps",
    "OutputModel",
    "Selection",
    "aggregate",
    "build_model",
    "identity_key",
    "normalize_login",
    "select",
]
