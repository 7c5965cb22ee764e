"""Pydantic models for hosting-provider data."""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator


class Provider(str, Enum):
    GITHUB = "github"
    GITLAB = "gitlab"


DEFAULT_HOSTS: dict[Provider, str] = {
    Provider.GITHUB: "github.com",
    Provider.GITLAB: "gitlab.com",
}


class RepositoryReference(BaseModel):
    """Canonical identity of a source repository; the unit of fetching and caching."""

    model_config = ConfigDict(frozen=True)

    provider: Provider
    owner: str
    repo: str
    host: str = ""

    @model_validator(mode="before")
    @classmethod
    def _canonical_identity(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        if not data.get("host"):
            data["host"] = DEFAULT_HOSTS[Provider(data.get("provider"))]
        # both providers resolve owner/repo paths case-insensitively
        for field in ("host", "owner", "repo"):
            if isinstance(data.get(field), str):
                data[field] = data[field].lower()
        return data

    @property
    def slug(self) -> str:
        return f"{self.owner}/{self.repo}"

    @property
    def url(self) -> str:
        return f"https://{self.host}/{self.slug}"

    @property
    def cache_key(self) -> str:
        return f"contributors:{self.provider.value}:{self.host}/{self.slug}"

    def __str__(self) -> str:
        return f"{self.host}/{self.slug}"


class ContributorRecord(BaseModel):
    """One contributor of one repository, as reported by the provider."""

    model_config = ConfigDict(frozen=True)

    login: str
    profile_url: str | None = None
    contribution_count: int = Field(ge=0)

    @property
    def is_bot(self) -> bool:
        return self.login.endswith("[bot]")


class ContributorPage(BaseModel):
    """A single page of contributor results."""

    records: list[ContributorRecord] = Field(default_factory=list)
    has_next: bool = False
