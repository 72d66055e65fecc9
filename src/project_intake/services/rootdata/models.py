"""Pydantic views over the project-data provider's responses."""

from __future__ import annotations

from typing import Any, Dict, List
from urllib.parse import urlparse

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


def is_http_url(value: str | None) -> bool:
    """Return True when ``value`` is an absolute http(s) URL."""

    if not value:
        return False
    try:
        parsed = urlparse(value.strip())
    except ValueError:
        return False
    return parsed.scheme in {"http", "https"} and bool(parsed.netloc)


def _clean_optional(value: Any) -> str | None:
    if not isinstance(value, str):
        return None
    stripped = value.strip()
    return stripped or None


class Website(BaseModel):
    """A titled link shown on the registry profile."""

    model_config = ConfigDict(frozen=True)

    title: str
    url: str


class CanonicalRecord(BaseModel):
    """Read-only view of the provider's best-known facts about one project.

    Every field is optional; an instance with no populated fields means "no data
    available" and is a normal outcome rather than an error.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    project_id: int | None = Field(default=None, serialization_alias="projectId")
    name: str | None = None
    tagline: str | None = None
    logo_url: str | None = Field(default=None, serialization_alias="logoUrl")
    description: str | None = Field(default=None, serialization_alias="mainDescription")
    website: str | None = None
    rootdata_url: str | None = Field(default=None, serialization_alias="rootdataUrl")
    tags: List[str] = Field(default_factory=list)
    has_funding: bool | None = Field(default=None, serialization_alias="fundingStatus")
    date_founded: str | None = Field(default=None, serialization_alias="dateFounded")
    token_contract: str | None = Field(default=None, serialization_alias="tokenContract")

    @classmethod
    def from_provider(cls, detail: Dict[str, Any], *, project_id: int | None = None) -> "CanonicalRecord":
        """Map the provider's ``get_item`` detail payload onto the narrow view."""

        social = detail.get("social_media")
        website = social.get("website") if isinstance(social, dict) else None
        raw_tags = detail.get("tags")
        tags: List[str] = []
        if isinstance(raw_tags, list):
            tags = [tag.strip() for tag in raw_tags if isinstance(tag, str) and tag.strip()]
        investors = detail.get("investors")
        has_funding = len(investors) > 0 if isinstance(investors, list) else None
        return cls(
            project_id=project_id,
            name=_clean_optional(detail.get("project_name")),
            tagline=_clean_optional(detail.get("one_liner")),
            logo_url=_clean_optional(detail.get("logo")),
            description=_clean_optional(detail.get("description")),
            website=_clean_optional(website),
            rootdata_url=_clean_optional(detail.get("rootdataurl")),
            tags=tags,
            has_funding=has_funding,
            date_founded=_clean_optional(detail.get("establishment_date")),
            token_contract=_clean_optional(detail.get("contract_address")),
        )

    @property
    def is_empty(self) -> bool:
        """bool: True when the provider returned nothing usable."""

        return not any(
            (
                self.name,
                self.tagline,
                self.logo_url,
                self.description,
                self.website,
                self.rootdata_url,
                self.tags,
                self.has_funding is not None,
                self.date_founded,
                self.token_contract,
            )
        )

    @property
    def websites(self) -> List[Website]:
        """list[Website]: The official website as a titled link, when known."""

        if not self.website:
            return []
        return [Website(title="Official Website", url=self.website)]

    @property
    def candidate_hints(self) -> Dict[str, str]:
        """dict[str, str]: Provider-supplied structured values the extractor should corroborate."""

        hints: Dict[str, str] = {}
        if self.date_founded:
            hints["dateFounded"] = self.date_founded
        if self.token_contract:
            hints["tokenContract"] = self.token_contract
        return hints

    @property
    def grounding_urls(self) -> List[str]:
        """list[str]: Distinct http(s) URLs the extractor may trust, official site first."""

        urls: List[str] = []
        for candidate in (self.website, self.rootdata_url):
            if candidate and is_http_url(candidate) and candidate not in urls:
                urls.append(candidate)
        return urls


class SearchHit(BaseModel):
    """Ranked keyword-search candidate returned by the provider."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str = Field(validation_alias=AliasChoices("id", "project_id"))
    name: str = Field(validation_alias=AliasChoices("name", "project_name"))
    description: str | None = Field(default=None, validation_alias=AliasChoices("description", "introduce"))
    logo_url: str | None = Field(
        default=None,
        validation_alias=AliasChoices("logoUrl", "logo_url", "logo"),
        serialization_alias="logoUrl",
    )
    website: str | None = None

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> Any:
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value
