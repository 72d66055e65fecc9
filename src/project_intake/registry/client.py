"""RPC client for the downstream project registry.

Procedures are exposed over HTTP: mutating calls POST a SuperJSON body, read
calls GET with the SuperJSON-encoded input in the ``input`` query parameter.
Every call carries the shared-secret ``x-ai-system-token`` header. Responses are
either a success envelope (``result.data.json``) or an error envelope
(``error`` with message, code and optional HTTP status).
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import suppress
from typing import Any, Awaitable, Dict, Mapping

import httpx
from pydantic import BaseModel, ConfigDict, Field

from project_intake.errors import ConfigurationMissing, ProtocolFailure, RequestCancelled, TransportFailure
from project_intake.services.submission.models import SubmissionPayload

from . import superjson

LOGGER = logging.getLogger(__name__)

TOKEN_HEADER = "x-ai-system-token"
DEFAULT_CREATE_ROUTE = "/api/trpc/project.createProjectViaAI"
DEFAULT_CHECK_NAME_ROUTE = "/api/trpc/project.checkProjectName"
_UNKNOWN_ERROR = "registry returned an unknown error."


class RegistryProjectResult(BaseModel):
    """Normalized create-project response; unknown registry fields are preserved."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: str
    project_id: str = Field(alias="projectId")
    proposal_id: str | None = Field(default=None, alias="proposalId")


def _non_empty_string(value: Any) -> str | None:
    if not isinstance(value, str):
        return None
    trimmed = value.strip()
    return trimmed or None


def extract_error_message(payload: Any) -> str | None:
    """Return a human-readable message for an error envelope, or ``None`` when there is none.

    Falls back through message, symbolic code, numeric code and HTTP status so a
    caller always has something to display.
    """

    if not isinstance(payload, Mapping):
        return None
    error = payload.get("error")
    if error is None:
        return None
    if isinstance(error, Mapping) and isinstance(error.get("json"), Mapping):
        error = error["json"]
    if not isinstance(error, Mapping):
        return _UNKNOWN_ERROR

    message = _non_empty_string(error.get("message"))
    if message:
        return message

    data = error.get("data") if isinstance(error.get("data"), Mapping) else {}
    code = data.get("code") if data.get("code") is not None else error.get("code")
    if isinstance(code, str) and code.strip():
        return code
    if isinstance(code, (int, float)) and not isinstance(code, bool):
        return f"registry error code {code}"

    http_status = data.get("httpStatus")
    if isinstance(http_status, int) and not isinstance(http_status, bool):
        return f"registry HTTP status {http_status}"
    return _UNKNOWN_ERROR


def extract_success_value(payload: Any) -> Any:
    """Return the decoded value under ``result.data.json`` or raise :class:`ProtocolFailure`."""

    if not isinstance(payload, Mapping):
        raise ProtocolFailure("Registry response is not a JSON object.")
    result = payload.get("result")
    data = result.get("data") if isinstance(result, Mapping) else None
    if not isinstance(data, Mapping) or "json" not in data:
        raise ProtocolFailure("Registry response did not contain a result.")
    try:
        return superjson.deserialize(dict(data))
    except (ValueError, KeyError, IndexError, TypeError) as exc:
        raise ProtocolFailure(f"Registry result could not be decoded: {exc}") from exc


def normalize_project_result(data: Any) -> RegistryProjectResult:
    """Reconcile ``id``/``projectId``/``proposalId`` in a create-project result."""

    if not isinstance(data, Mapping):
        raise ProtocolFailure("Registry response data is not an object.")
    raw_id = _non_empty_string(data.get("id"))
    raw_project_id = _non_empty_string(data.get("projectId"))
    normalized_id = raw_id or raw_project_id
    if not normalized_id:
        raise ProtocolFailure("Registry response is missing the id field.")

    normalized: Dict[str, Any] = {
        **data,
        "id": normalized_id,
        "projectId": raw_project_id or normalized_id,
    }
    proposal_id = _non_empty_string(data.get("proposalId"))
    if proposal_id is not None:
        normalized["proposalId"] = proposal_id
    elif "proposalId" in data:
        normalized["proposalId"] = None
    return RegistryProjectResult.model_validate(normalized)


class RegistryClient:
    """Call the registry's create-project and check-name procedures."""

    def __init__(
        self,
        base_url: str | None,
        system_token: str | None,
        *,
        create_route: str = DEFAULT_CREATE_ROUTE,
        check_name_route: str = DEFAULT_CHECK_NAME_ROUTE,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        missing = []
        if not base_url:
            missing.append("PENSIEVE_BASE_URL")
        if not system_token:
            missing.append("PENSIEVE_SYSTEM_TOKEN")
        if missing:
            raise ConfigurationMissing(missing, hint="Registry integration is not configured.")
        self.base_url = base_url.rstrip("/")
        self.system_token = system_token
        self.create_route = create_route
        self.check_name_route = check_name_route
        self.timeout = timeout
        self._transport = transport

    def _headers(self) -> dict[str, str]:
        return {
            "content-type": "application/json",
            TOKEN_HEADER: self.system_token,
        }

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            headers=self._headers(),
            timeout=self.timeout,
            transport=self._transport,
        )

    async def submit(
        self,
        payload: SubmissionPayload,
        *,
        cancel: asyncio.Event | None = None,
    ) -> RegistryProjectResult:
        """Create a project from ``payload``.

        Raises:
            TransportFailure: The registry could not be reached.
            ProtocolFailure: The registry returned an error envelope or an
                undecodable body.
            RequestCancelled: ``cancel`` fired before the call completed.
        """

        body = superjson.stringify(payload.to_wire())
        async with self._client() as client:
            response = await self._send(client.post(self.create_route, content=body), cancel, "create project")
        data = self._decode(response)
        result = normalize_project_result(data)
        LOGGER.info("Registry created project %s (projectId=%s)", result.id, result.project_id)
        return result

    async def check_name_exists(self, name: str, *, cancel: asyncio.Event | None = None) -> bool:
        """Return True when the registry already holds a project called ``name``."""

        params = {"input": superjson.stringify({"name": name})}
        async with self._client() as client:
            response = await self._send(
                client.get(self.check_name_route, params=params),
                cancel,
                "check name",
            )
        data = self._decode(response)
        if isinstance(data, bool):
            return data
        if isinstance(data, Mapping) and isinstance(data.get("exists"), bool):
            return data["exists"]
        raise ProtocolFailure("Registry check-name response did not contain a boolean result.")

    async def _send(
        self,
        request: Awaitable[httpx.Response],
        cancel: asyncio.Event | None,
        label: str,
    ) -> httpx.Response:
        request_task = asyncio.ensure_future(request)
        cancel_task: asyncio.Future | None = None
        try:
            if cancel is None:
                return await request_task
            if cancel.is_set():
                raise RequestCancelled(f"Registry {label} call was cancelled.")
            cancel_task = asyncio.ensure_future(cancel.wait())
            done, _ = await asyncio.wait({request_task, cancel_task}, return_when=asyncio.FIRST_COMPLETED)
            if request_task in done:
                return request_task.result()
            LOGGER.info("Registry %s call cancelled by caller", label)
            raise RequestCancelled(f"Registry {label} call was cancelled.")
        except httpx.HTTPError as exc:
            LOGGER.error("Registry %s network error: %s", label, exc)
            raise TransportFailure(f"Failed to reach registry service: {exc}") from exc
        finally:
            if not request_task.done():
                request_task.cancel()
                with suppress(asyncio.CancelledError, httpx.HTTPError):
                    await request_task
            if cancel_task is not None and not cancel_task.done():
                cancel_task.cancel()
                with suppress(asyncio.CancelledError):
                    await cancel_task

    def _decode(self, response: httpx.Response) -> Any:
        try:
            payload = response.json()
        except ValueError as exc:
            raise ProtocolFailure(f"Registry returned a non-JSON response (HTTP {response.status_code}).") from exc

        message = extract_error_message(payload)
        if message is not None:
            LOGGER.warning("Registry error envelope (HTTP %s): %s", response.status_code, message)
            raise ProtocolFailure(message)
        if not response.is_success:
            raise ProtocolFailure(f"registry HTTP status {response.status_code}")
        return extract_success_value(payload)


__all__ = [
    "RegistryClient",
    "RegistryProjectResult",
    "TOKEN_HEADER",
    "extract_error_message",
    "extract_success_value",
    "normalize_project_result",
]
