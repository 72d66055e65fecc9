"""Merge the provider's canonical record with the AI extraction result.

Precedence lives in :data:`FIELD_PRECEDENCE`, one entry per candidate field.
The provider wins for identity and presentation fields. The extraction wins for
structured and classification fields, including the ones the provider also
supplies (founding date, token contract), because provider values only reach
the extractor as candidates to corroborate.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Callable, Dict, List

from pydantic import BaseModel, ConfigDict, Field

from project_intake.services.extraction.schema import ExtractedRecord, Founder
from project_intake.services.rootdata.models import CanonicalRecord, Website


class Source(str, Enum):
    """Record a candidate field is taken from."""

    CANONICAL = "canonical"
    EXTRACTED = "extracted"


FIELD_PRECEDENCE: Dict[str, Source] = {
    "project_id": Source.CANONICAL,
    "name": Source.CANONICAL,
    "tagline": Source.CANONICAL,
    "logo_url": Source.CANONICAL,
    "description": Source.CANONICAL,
    "tags": Source.CANONICAL,
    "websites": Source.CANONICAL,
    "funding_status": Source.CANONICAL,
    "rootdata_url": Source.CANONICAL,
    "categories": Source.EXTRACTED,
    "date_founded": Source.EXTRACTED,
    "date_launch": Source.EXTRACTED,
    "dev_status": Source.EXTRACTED,
    "org_structure": Source.EXTRACTED,
    "open_source": Source.EXTRACTED,
    "public_goods": Source.EXTRACTED,
    "founders": Source.EXTRACTED,
    "code_repo": Source.EXTRACTED,
    "token_contract": Source.EXTRACTED,
    "white_paper": Source.EXTRACTED,
}


class MergedCandidate(BaseModel):
    """Union of provider and extraction fields presented to the user for review."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    project_id: int | None = Field(default=None, alias="projectId")
    name: str | None = None
    tagline: str | None = None
    logo_url: str | None = Field(default=None, alias="logoUrl")
    description: str | None = Field(default=None, alias="mainDescription")
    tags: List[str] = Field(default_factory=list)
    websites: List[Website] = Field(default_factory=list)
    funding_status: bool | None = Field(default=None, alias="fundingStatus")
    rootdata_url: str | None = Field(default=None, alias="rootdataUrl")
    categories: List[str] = Field(default_factory=list)
    date_founded: str | None = Field(default=None, alias="dateFounded")
    date_launch: str | None = Field(default=None, alias="dateLaunch")
    dev_status: str | None = Field(default=None, alias="devStatus")
    org_structure: str | None = Field(default=None, alias="orgStructure")
    open_source: bool | None = Field(default=None, alias="openSource")
    public_goods: bool | None = Field(default=None, alias="publicGoods")
    founders: List[Founder] = Field(default_factory=list)
    code_repo: str | None = Field(default=None, alias="codeRepo")
    token_contract: str | None = Field(default=None, alias="tokenContract")
    white_paper: str | None = Field(default=None, alias="whitePaper")

    def to_wire(self) -> Dict[str, Any]:
        """Return the camelCase JSON body handed to the review form."""

        return self.model_dump(mode="json", by_alias=True)


_CANONICAL_GETTERS: Dict[str, Callable[[CanonicalRecord], Any]] = {
    "project_id": lambda record: record.project_id,
    "name": lambda record: record.name,
    "tagline": lambda record: record.tagline,
    "logo_url": lambda record: record.logo_url,
    "description": lambda record: record.description,
    "tags": lambda record: list(record.tags),
    "websites": lambda record: record.websites,
    "funding_status": lambda record: record.has_funding,
    "rootdata_url": lambda record: record.rootdata_url,
}

_EXTRACTED_GETTERS: Dict[str, Callable[[ExtractedRecord], Any]] = {
    "categories": lambda record: [category.value for category in record.categories],
    "date_founded": lambda record: record.date_founded,
    "date_launch": lambda record: record.date_launch,
    "dev_status": lambda record: record.dev_status.value,
    "org_structure": lambda record: record.org_structure.value,
    "open_source": lambda record: record.open_source,
    "public_goods": lambda record: record.public_goods,
    "founders": lambda record: list(record.founders),
    "code_repo": lambda record: record.code_repo,
    "token_contract": lambda record: record.token_contract,
    "white_paper": lambda record: record.white_paper,
}


def reconcile(canonical: CanonicalRecord, extracted: ExtractedRecord) -> MergedCandidate:
    """Combine both records field by field according to :data:`FIELD_PRECEDENCE`.

    Pure and total: no I/O, no failure mode, and the same inputs always yield an
    equal candidate.
    """

    values: Dict[str, Any] = {}
    for field, source in FIELD_PRECEDENCE.items():
        if source is Source.CANONICAL:
            values[field] = _CANONICAL_GETTERS[field](canonical)
        else:
            values[field] = _EXTRACTED_GETTERS[field](extracted)
    return MergedCandidate(**values)


__all__ = ["FIELD_PRECEDENCE", "MergedCandidate", "Source", "reconcile"]
