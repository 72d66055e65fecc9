"""Fixed output schema for schema-constrained project extraction."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, List

from pydantic import BaseModel, ConfigDict, Field, field_validator

from project_intake.services.rootdata.models import is_http_url


class Category(str, Enum):
    """Closed set of registry categories."""

    APPLICATIONS = "Applications/dApps"
    COMMUNITY = "Community & Coordination"
    DEVELOPER_TOOLS = "Developer tools"
    HUBS = "Hubs"
    INFRASTRUCTURE = "Infrastructure"
    SECURITY_PRIVACY = "Security & Privacy"
    STORAGE_DATA = "Storage & Data"
    EVENTS = "Events"
    LOCAL_COMMUNITIES = "Local Communities"
    OTHER = "Other"


class DevStatus(str, Enum):
    """Closed set of development stages."""

    IDEA = "Idea/Whitepaper"
    PROTOTYPE = "Prototype"
    IN_DEVELOPMENT = "In development"
    ALPHA = "Alpha"
    BETA = "Beta"
    ABANDONED = "Broken / Abandoned"
    CONCEPT = "Concept"
    STEALTH = "Stealth"
    ACTIVE_COMMUNITY = "Active Community"


class OrgStructure(str, Enum):
    """Closed set of organization structures."""

    FOR_PROFIT = "For-Profit Company"
    NON_PROFIT = "Non-Profit Organization / Association"
    FOUNDATION = "Foundation"
    COOPERATIVE = "Cooperative"
    DAO = "DAO"
    FEDERATED_DAO = "Federated DAO / SubDAO"
    WITHIN_DAO = "Project within a DAO"
    ANONYMOUS = "Anonymous Collective"
    SOLE_DEVELOPER = "Sole Developer"
    ACADEMIC = "University / Academic-Led Initiative"
    PUBLIC_PRIVATE = "Public-Private Partnership"
    COMMUNITY_LED = "Community-Led Initiative (no legal entity)"
    HYBRID = "Hybrid Structure (e.g. Company + DAO)"
    EVOLVING = "Evolving Structure"


DEFAULT_ORG_STRUCTURE = OrgStructure.EVOLVING


class Founder(BaseModel):
    """A founder with the evidence-backed role they hold."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str
    title: str

    @field_validator("name", "title", mode="before")
    @classmethod
    def _require_text(cls, value: Any) -> Any:
        if not isinstance(value, str) or not value.strip():
            raise ValueError("founder name and title must be non-empty")
        return value.strip()


def parse_offset_datetime(value: str) -> datetime:
    """Parse an ISO-8601 timestamp that must carry an explicit offset or ``Z``."""

    cleaned = value.strip()
    if cleaned.endswith(("Z", "z")):
        cleaned = f"{cleaned[:-1]}+00:00"
    parsed = datetime.fromisoformat(cleaned)
    if parsed.tzinfo is None:
        raise ValueError("timestamp must include a time-offset")
    return parsed


class ExtractedRecord(BaseModel):
    """Structured fields produced by the AI capability.

    The model doubles as the JSON schema handed to the capability and as the
    boundary validator applied to whatever the capability returns.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    categories: List[Category]
    date_founded: str | None = Field(alias="dateFounded")
    date_launch: str | None = Field(alias="dateLaunch")
    dev_status: DevStatus = Field(alias="devStatus")
    org_structure: OrgStructure = Field(alias="orgStructure")
    open_source: bool = Field(alias="openSource")
    public_goods: bool = Field(alias="publicGoods")
    founders: List[Founder]
    code_repo: str | None = Field(alias="codeRepo")
    token_contract: str | None = Field(alias="tokenContract")
    white_paper: str | None = Field(alias="whitePaper")

    @field_validator("categories", mode="after")
    @classmethod
    def _require_categories(cls, value: List[Category]) -> List[Category]:
        if not value:
            raise ValueError("categories must contain at least one item")
        deduped: List[Category] = []
        for item in value:
            if item not in deduped:
                deduped.append(item)
        return deduped

    @field_validator("founders", mode="after")
    @classmethod
    def _require_founders(cls, value: List[Founder]) -> List[Founder]:
        if not value:
            raise ValueError("founders must contain at least one founder")
        return value

    @field_validator("org_structure", mode="before")
    @classmethod
    def _default_org_structure(cls, value: Any) -> Any:
        if value is None or (isinstance(value, str) and not value.strip()):
            return DEFAULT_ORG_STRUCTURE
        return value

    @field_validator("date_founded", "date_launch", mode="before")
    @classmethod
    def _validate_date(cls, value: Any) -> Any:
        if value is None:
            return None
        if isinstance(value, datetime):
            if value.tzinfo is None:
                raise ValueError("timestamp must include a time-offset")
            return value.isoformat()
        if not isinstance(value, str):
            raise ValueError("date must be an ISO-8601 string")
        if not value.strip():
            return None
        parse_offset_datetime(value)
        return value.strip()

    @field_validator("code_repo", "white_paper", mode="before")
    @classmethod
    def _drop_invalid_urls(cls, value: Any) -> Any:
        if value is None:
            return None
        if not isinstance(value, str):
            raise ValueError("URL fields must be strings")
        cleaned = value.strip()
        return cleaned if is_http_url(cleaned) else None

    @field_validator("token_contract", mode="before")
    @classmethod
    def _empty_to_none(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value.strip() if isinstance(value, str) else value

    @property
    def founded_at(self) -> datetime | None:
        return parse_offset_datetime(self.date_founded) if self.date_founded else None

    @property
    def launched_at(self) -> datetime | None:
        return parse_offset_datetime(self.date_launch) if self.date_launch else None


__all__ = [
    "Category",
    "DEFAULT_ORG_STRUCTURE",
    "DevStatus",
    "ExtractedRecord",
    "Founder",
    "OrgStructure",
    "parse_offset_datetime",
]
