"""Project intake API router: search, fill, check-name and submit."""

from __future__ import annotations

import logging
from typing import Any, Dict, List

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ConfigDict, Field, field_validator

from project_intake.registry.client import RegistryProjectResult
from project_intake.services.factories import build_fill_service, build_search_service, build_submit_service
from project_intake.services.intake import IntakeService
from project_intake.services.reconcile import MergedCandidate
from project_intake.services.rootdata.models import SearchHit
from project_intake.services.submission.models import EditedCandidate
from project_intake.settings import Settings, get_settings

router = APIRouter(prefix="/projects", tags=["projects"])
LOGGER = logging.getLogger(__name__)


class SearchResponse(BaseModel):
    query: str
    results: List[SearchHit]


class FillRequest(BaseModel):
    """Identifier of the provider project to fill the review form from."""

    model_config = ConfigDict(populate_by_name=True)

    project_id: int = Field(alias="projectId", ge=1, strict=True)


class SubmitRequest(BaseModel):
    """Reviewed values plus the candidate and search hit they were derived from."""

    values: EditedCandidate
    candidate: MergedCandidate | None = None
    selection: SearchHit | None = None


class CheckNameRequest(BaseModel):
    name: str

    @field_validator("name", mode="after")
    @classmethod
    def _require_name(cls, value: str) -> str:
        trimmed = value.strip()
        if not trimmed:
            raise ValueError("Project name cannot be empty")
        return trimmed


class CheckNameResponse(BaseModel):
    name: str
    exists: bool


def get_app_settings() -> Settings:
    """Return process settings; overridden in tests."""

    return get_settings()


def get_search_service(settings: Settings = Depends(get_app_settings)) -> IntakeService:
    """Dependency provider for keyword search; checks configuration before any call."""

    return build_search_service(settings)


def get_fill_service(settings: Settings = Depends(get_app_settings)) -> IntakeService:
    return build_fill_service(settings)


def get_submit_service(settings: Settings = Depends(get_app_settings)) -> IntakeService:
    return build_submit_service(settings)


@router.get("/search", response_model=SearchResponse, summary="Search provider projects by keyword")
def search_projects(
    q: str = Query(..., min_length=1),
    service: IntakeService = Depends(get_search_service),
) -> SearchResponse:
    query = q.strip()
    results = service.search(query)
    return SearchResponse(query=query, results=results)


@router.post("/fill", summary="Build a review candidate for a provider project")
def fill_project(
    payload: FillRequest,
    service: IntakeService = Depends(get_fill_service),
) -> Dict[str, Any]:
    """Fetch, extract and reconcile; returns the camelCase candidate for the review form."""

    candidate = service.fill(payload.project_id)
    LOGGER.info("Filled project %s with %s categories", payload.project_id, len(candidate.categories))
    return candidate.to_wire()


@router.post("/check-name", response_model=CheckNameResponse, summary="Check whether the registry has a name")
async def check_project_name(
    payload: CheckNameRequest,
    service: IntakeService = Depends(get_submit_service),
) -> CheckNameResponse:
    exists = await service.check_name(payload.name)
    return CheckNameResponse(name=payload.name, exists=exists)


@router.post("/submit", summary="Validate reviewed values and create the registry project")
async def submit_project(
    payload: SubmitRequest,
    service: IntakeService = Depends(get_submit_service),
) -> Dict[str, Any]:
    result: RegistryProjectResult = await service.submit(
        payload.values,
        payload.candidate,
        selection=payload.selection,
    )
    return result.model_dump(mode="json", by_alias=True)
