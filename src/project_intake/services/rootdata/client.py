"""Best-effort client for the project-data provider.

Provider data is an optional enrichment: every failure (missing key, HTTP
error, malformed body) is logged and degrades to an empty result instead of
propagating to the caller.
"""

from __future__ import annotations

import logging
from typing import Any, List

import httpx
from pydantic import ValidationError

from .models import CanonicalRecord, SearchHit

LOGGER = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.rootdata.com/open"
_DETAIL_PATH = "/get_item"
_SEARCH_PATH = "/ser_inv"


class RootDataClient:
    """Fetch canonical records and keyword matches from the provider API."""

    def __init__(
        self,
        api_key: str | None,
        *,
        base_url: str = DEFAULT_BASE_URL,
        language: str = "en",
        timeout: float = 20.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.api_key = (api_key or "").strip()
        self.base_url = base_url.rstrip("/")
        self.language = language
        self.timeout = timeout
        self._transport = transport

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)

    def fetch(self, project_id: int | None) -> CanonicalRecord:
        """Return the canonical record for ``project_id`` or an empty record.

        No request is made when the API key is absent or the identifier is not a
        positive integer.
        """

        if not self.enabled or not _is_positive_id(project_id):
            return CanonicalRecord()

        body = self._post(_DETAIL_PATH, {"project_id": project_id, "include_investors": True}, label="detail")
        if body is None:
            return CanonicalRecord()
        detail = body.get("data")
        if not isinstance(detail, dict):
            LOGGER.warning("Provider detail for project %s has no data object", project_id)
            return CanonicalRecord()
        return CanonicalRecord.from_provider(detail, project_id=project_id)

    def search(self, query: str) -> List[SearchHit]:
        """Return ranked candidates for ``query``; empty on any failure."""

        cleaned = (query or "").strip()
        if not self.enabled or not cleaned:
            return []

        body = self._post(_SEARCH_PATH, {"query": cleaned}, label="search")
        if body is None:
            return []
        items = body.get("data")
        if not isinstance(items, list):
            return []

        hits: List[SearchHit] = []
        for item in items:
            if not isinstance(item, dict):
                continue
            try:
                hits.append(SearchHit.model_validate(item))
            except ValidationError:
                LOGGER.debug("Skipping malformed search item: %s", item)
        return hits

    def _headers(self) -> dict[str, str]:
        return {
            "apikey": self.api_key,
            "language": self.language,
            "content-type": "application/json",
        }

    def _post(self, path: str, payload: dict[str, Any], *, label: str) -> dict[str, Any] | None:
        try:
            with httpx.Client(
                base_url=self.base_url,
                headers=self._headers(),
                timeout=self.timeout,
                transport=self._transport,
            ) as client:
                response = client.post(path, json=payload)
        except httpx.HTTPError as exc:
            LOGGER.warning("Provider %s request failed: %s", label, exc)
            return None

        if not response.is_success:
            LOGGER.warning("Provider %s returned HTTP %s", label, response.status_code)
            return None
        try:
            body = response.json()
        except ValueError:
            LOGGER.warning("Provider %s returned a non-JSON body", label)
            return None
        if not isinstance(body, dict):
            LOGGER.warning("Provider %s returned an unexpected body type %s", label, type(body).__name__)
            return None
        return body


def _is_positive_id(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, int):
        return False
    return value > 0
