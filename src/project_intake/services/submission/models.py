"""Pydantic models for user edits and the registry submission payload."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict, Field

from project_intake.services.extraction.schema import Founder
from project_intake.services.rootdata.models import Website


class EditedCandidate(BaseModel):
    """Form values after the user's review step.

    Every field is optional and loosely typed: ``None`` means "not edited" and
    falls back to the prior candidate, while the sanitizer decides whether what
    remains is acceptable.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    name: Any = None
    tagline: Any = None
    main_description: Any = Field(default=None, alias="mainDescription")
    categories: Any = None
    logo_url: Any = Field(default=None, alias="logoUrl")
    websites: Any = None
    app_url: Any = Field(default=None, alias="appUrl")
    date_founded: Any = Field(default=None, alias="dateFounded")
    date_launch: Any = Field(default=None, alias="dateLaunch")
    dev_status: Any = Field(default=None, alias="devStatus")
    funding_status: Any = Field(default=None, alias="fundingStatus")
    open_source: Any = Field(default=None, alias="openSource")
    code_repo: Any = Field(default=None, alias="codeRepo")
    token_contract: Any = Field(default=None, alias="tokenContract")
    org_structure: Any = Field(default=None, alias="orgStructure")
    public_goods: Any = Field(default=None, alias="publicGoods")
    founders: Any = None
    tags: Any = None
    white_paper: Any = Field(default=None, alias="whitePaper")
    dapp_smart_contracts: Any = Field(default=None, alias="dappSmartContracts")


class SmartContract(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    chain: str
    addresses: str


class Reference(BaseModel):
    model_config = ConfigDict(frozen=True)

    key: str
    value: str


class SubmissionPayload(BaseModel):
    """Exact shape accepted by the registry's create-project procedure."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str
    tagline: str
    categories: List[str]
    main_description: str = Field(alias="mainDescription")
    logo_url: str = Field(alias="logoUrl")
    websites: List[Website]
    app_url: str | None = Field(alias="appUrl")
    date_founded: datetime = Field(alias="dateFounded")
    date_launch: datetime | None = Field(alias="dateLaunch")
    dev_status: str = Field(alias="devStatus")
    funding_status: str | None = Field(alias="fundingStatus")
    open_source: bool = Field(alias="openSource")
    code_repo: str | None = Field(alias="codeRepo")
    token_contract: str | None = Field(alias="tokenContract")
    org_structure: str = Field(alias="orgStructure")
    public_goods: bool = Field(alias="publicGoods")
    founders: List[Founder]
    tags: List[str]
    white_paper: str | None = Field(alias="whitePaper")
    dapp_smart_contracts: List[SmartContract] | None = Field(alias="dappSmartContracts")
    refs: List[Reference] | None = None

    def to_wire(self) -> Dict[str, Any]:
        """Return the camelCase payload with native ``datetime`` values intact."""

        return self.model_dump(by_alias=True)


__all__ = ["EditedCandidate", "Reference", "SmartContract", "SubmissionPayload"]
