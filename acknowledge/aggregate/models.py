"""Pydantic models for aggregated contributors and the output shapes."""

from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from acknowledge.vcs.models import RepositoryReference


class AggregatedContributor(BaseModel):
    """One human identity, with contributions summed across repositories."""

    model_config = ConfigDict(frozen=True)

    key: str = Field(description="Bucket key: 'account:<login>' or 'name:<login>'")
    identity: str = Field(description="Normalized (case-folded) login")
    login: str = Field(description="Login as displayed")
    profile_url: str | None = None
    total_count: int
    repositories: frozenset[RepositoryReference]
    dependencies: frozenset[str] = frozenset()

    @property
    def sort_key(self) -> tuple[str, str]:
        return (self.identity, self.key)


class ContributorEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    login: str
    profile_url: str | None = None
    count: int


class DependencyEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    dependency: str
    contributors: list[ContributorEntry]


class ContributorDependencies(BaseModel):
    model_config = ConfigDict(frozen=True)

    login: str
    profile_url: str | None = None
    count: int
    dependencies: list[str]


class NameAndCount(BaseModel):
    """Contributors by total contributions, most first."""

    layout: Literal["name-and-count"] = "name-and-count"
    contributors: list[ContributorEntry] = Field(default_factory=list)
    others: int = 0
    mention: bool = False


class DepAndNames(BaseModel):
    """Dependencies by name, each with the people behind it."""

    layout: Literal["dep-and-names"] = "dep-and-names"
    dependencies: list[DependencyEntry] = Field(default_factory=list)
    others: int = 0
    mention: bool = False


class NameAndDeps(BaseModel):
    """Contributors by how many dependencies they touched, most first."""

    layout: Literal["name-and-deps"] = "name-and-deps"
    contributors: list[ContributorDependencies] = Field(default_factory=list)
    others: int = 0
    mention: bool = False


OutputModel = Annotated[
    Union[NameAndCount, DepAndNames, NameAndDeps], Field(discriminator="layout")
]
