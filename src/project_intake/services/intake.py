"""High-level orchestration of search, fill, and submit."""

from __future__ import annotations

import asyncio
import logging
from contextlib import contextmanager, nullcontext
from typing import Any, Iterator, List

from project_intake.observability import Observability
from project_intake.registry.client import RegistryClient, RegistryProjectResult
from project_intake.services.extraction.extractor import SchemaExtractor
from project_intake.services.reconcile import MergedCandidate, reconcile
from project_intake.services.rootdata.client import RootDataClient
from project_intake.services.rootdata.models import SearchHit
from project_intake.services.submission.models import EditedCandidate
from project_intake.services.submission.validator import build_payload

LOGGER = logging.getLogger(__name__)


class IntakeService:
    """Coordinates fetcher, extractor, reconciler, validator and registry client.

    Stages run strictly in sequence; a failure in one stage surfaces once to the
    caller and nothing is retried.
    """

    def __init__(
        self,
        *,
        fetcher: RootDataClient,
        extractor: SchemaExtractor | None = None,
        registry: RegistryClient | None = None,
        observability: Observability | None = None,
    ) -> None:
        self.fetcher = fetcher
        self.extractor = extractor
        self.registry = registry
        self.observability = observability

    def _emit(self, event: str, **fields: Any) -> None:
        if self.observability is not None:
            self.observability.emit_event(event, **fields)

    @contextmanager
    def _stage(self, event: str, **fields: Any) -> Iterator[None]:
        timer = self.observability.timed(event, **fields) if self.observability is not None else nullcontext()
        with timer:
            yield

    def search(self, query: str) -> List[SearchHit]:
        """Return provider candidates for ``query`` (empty when the provider has nothing)."""

        cleaned = query.strip()
        with self._stage("intake.search", query=cleaned):
            hits = self.fetcher.search(cleaned)
        self._emit("intake.search.results", query=cleaned, results=len(hits))
        return hits

    def fill(self, project_id: int) -> MergedCandidate:
        """Fetch, extract and reconcile the candidate record for ``project_id``."""

        if self.extractor is None:
            raise RuntimeError("IntakeService.fill requires an extractor")

        with self._stage("intake.fetch", project_id=project_id):
            canonical = self.fetcher.fetch(project_id)
        if canonical.is_empty:
            LOGGER.info("No provider data for project %s; extracting from the identifier alone", project_id)

        project_name = canonical.name or str(project_id)
        with self._stage("intake.extract", project_id=project_id, grounding_urls=len(canonical.grounding_urls)):
            extracted = self.extractor.extract(project_name, canonical.grounding_urls, canonical.candidate_hints)

        candidate = reconcile(canonical, extracted)
        self._emit(
            "intake.fill",
            project_id=project_id,
            provider_data=not canonical.is_empty,
            categories=candidate.categories,
        )
        return candidate

    async def submit(
        self,
        edited: EditedCandidate,
        prior: MergedCandidate | None = None,
        *,
        selection: SearchHit | None = None,
        cancel: asyncio.Event | None = None,
    ) -> RegistryProjectResult:
        """Validate the reviewed candidate and forward it to the registry."""

        if self.registry is None:
            raise RuntimeError("IntakeService.submit requires a registry client")
        payload = build_payload(edited, prior, selection=selection)
        with self._stage("intake.submit", name=payload.name):
            result = await self.registry.submit(payload, cancel=cancel)
        self._emit("intake.submit.created", name=payload.name, registry_id=result.id)
        return result

    async def check_name(self, name: str, *, cancel: asyncio.Event | None = None) -> bool:
        if self.registry is None:
            raise RuntimeError("IntakeService.check_name requires a registry client")
        cleaned = name.strip()
        with self._stage("intake.check_name", name=cleaned):
            return await self.registry.check_name_exists(cleaned, cancel=cancel)


__all__ = ["IntakeService"]
