"""Tests for the registry RPC client, its envelopes, and cancellation."""

from __future__ import annotations

import asyncio
import json
from datetime import datetime, timezone

import httpx
import pytest

from project_intake.errors import ConfigurationMissing, ProtocolFailure, RequestCancelled, TransportFailure
from project_intake.registry import RegistryClient, extract_error_message, normalize_project_result
from project_intake.services.rootdata import Website
from project_intake.services.extraction import Founder
from project_intake.services.submission import SubmissionPayload


def _payload() -> SubmissionPayload:
    return SubmissionPayload(
        name="Acme",
        tagline="Settlement for everyone",
        categories=["Infrastructure"],
        main_description="Acme builds settlement rails.",
        logo_url="https://cdn.example/acme.png",
        websites=[Website(title="Official Website", url="https://acme.io")],
        app_url=None,
        date_founded=datetime(2021, 6, 1, tzinfo=timezone.utc),
        date_launch=None,
        dev_status="Beta",
        funding_status=None,
        open_source=True,
        code_repo=None,
        token_contract=None,
        org_structure="DAO",
        public_goods=False,
        founders=[Founder(name="Ada", title="CEO")],
        tags=[],
        white_paper=None,
        dapp_smart_contracts=None,
    )


def _client(handler) -> RegistryClient:
    return RegistryClient(
        "https://registry.example/",
        "system-token",
        transport=httpx.MockTransport(handler),
    )


def _success(data) -> dict:
    return {"result": {"data": {"json": data}}}


def test_missing_configuration_is_reported() -> None:
    with pytest.raises(ConfigurationMissing) as excinfo:
        RegistryClient(None, "token")

    assert excinfo.value.missing == ["PENSIEVE_BASE_URL"]


def test_submit_posts_superjson_with_token_header() -> None:
    seen: dict[str, object] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["token"] = request.headers.get("x-ai-system-token")
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json=_success({"projectId": "p-1", "proposalId": "prop-9", "status": "pending"}))

    result = asyncio.run(_client(handler).submit(_payload()))

    assert seen["url"] == "https://registry.example/api/trpc/project.createProjectViaAI"
    assert seen["token"] == "system-token"
    body = seen["body"]
    assert body["json"]["dateFounded"] == "2021-06-01T00:00:00.000Z"
    assert body["json"]["mainDescription"] == "Acme builds settlement rails."
    assert body["meta"]["values"] == {"dateFounded": ["Date"]}
    assert result.id == "p-1"
    assert result.project_id == "p-1"
    assert result.proposal_id == "prop-9"
    assert result.model_dump(by_alias=True)["status"] == "pending"


def test_error_envelope_uses_symbolic_code() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            409,
            json={"error": {"json": {"message": "", "code": -32600, "data": {"code": "CONFLICT", "httpStatus": 409}}}},
        )

    with pytest.raises(ProtocolFailure) as excinfo:
        asyncio.run(_client(handler).submit(_payload()))

    assert excinfo.value.message == "CONFLICT"


def test_error_envelope_falls_back_to_http_status() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503, json={"error": {"json": {"data": {"httpStatus": 503}}}})

    with pytest.raises(ProtocolFailure) as excinfo:
        asyncio.run(_client(handler).submit(_payload()))

    assert excinfo.value.message == "registry HTTP status 503"


@pytest.mark.parametrize(
    ("payload", "expected"),
    [
        ({"result": {}}, None),
        ({"error": {"message": "Name taken"}}, "Name taken"),
        ({"error": {"code": -32603}}, "registry error code -32603"),
        ({"error": {"code": "CONFLICT"}}, "CONFLICT"),
        ({"error": {"data": {"httpStatus": 503}}}, "registry HTTP status 503"),
        ({"error": "boom"}, "registry returned an unknown error."),
        ({"error": {}}, "registry returned an unknown error."),
    ],
)
def test_extract_error_message(payload, expected) -> None:
    assert extract_error_message(payload) == expected


def test_non_json_response_is_protocol_failure() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(502, text="Bad Gateway")

    with pytest.raises(ProtocolFailure):
        asyncio.run(_client(handler).submit(_payload()))


def test_network_error_is_transport_failure() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(TransportFailure) as excinfo:
        asyncio.run(_client(handler).submit(_payload()))

    assert excinfo.value.message.startswith("Failed to reach registry service")


def test_result_without_id_is_protocol_failure() -> None:
    with pytest.raises(ProtocolFailure):
        normalize_project_result({"proposalId": "prop-1"})

    normalized = normalize_project_result({"id": "r-1", "proposalId": " "})
    assert normalized.project_id == "r-1"
    assert normalized.proposal_id is None


def test_check_name_sends_superjson_input() -> None:
    seen: dict[str, str] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["method"] = request.method
        seen["path"] = request.url.path
        seen["input"] = request.url.params["input"]
        return httpx.Response(200, json=_success(True))

    exists = asyncio.run(_client(handler).check_name_exists("Acme"))

    assert exists is True
    assert seen["method"] == "GET"
    assert seen["path"] == "/api/trpc/project.checkProjectName"
    assert json.loads(seen["input"]) == {"json": {"name": "Acme"}}


def test_check_name_accepts_exists_object() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=_success({"exists": False}))

    assert asyncio.run(_client(handler).check_name_exists("Acme")) is False


def test_check_name_rejects_unexpected_shape() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=_success("maybe"))

    with pytest.raises(ProtocolFailure):
        asyncio.run(_client(handler).check_name_exists("Acme"))


def test_cancel_before_send_raises_request_cancelled() -> None:
    def handler(request: httpx.Request) -> httpx.Response:  # pragma: no cover - must not complete
        return httpx.Response(200, json=_success(True))

    async def scenario() -> None:
        cancel = asyncio.Event()
        cancel.set()
        await _client(handler).check_name_exists("Acme", cancel=cancel)

    with pytest.raises(RequestCancelled):
        asyncio.run(scenario())


def test_cancel_aborts_in_flight_call() -> None:
    async def slow_handler(request: httpx.Request) -> httpx.Response:
        await asyncio.sleep(5)
        return httpx.Response(200, json=_success({"projectId": "late"}))

    async def scenario() -> None:
        cancel = asyncio.Event()
        asyncio.get_running_loop().call_later(0.01, cancel.set)
        await _client(slow_handler).submit(_payload(), cancel=cancel)

    with pytest.raises(RequestCancelled):
        asyncio.run(scenario())


@pytest.mark.parametrize(
    "envelope",
    [
        {"result": {"data": {"json": {"id": 5}, "meta": {"values": {"id": ["Date"]}}}}},
        {"result": {"data": {"json": {"id": 5}, "meta": ["bogus"]}}},
    ],
)
def test_malformed_success_meta_is_protocol_failure(envelope) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=envelope)

    with pytest.raises(ProtocolFailure) as excinfo:
        asyncio.run(_client(handler).check_name_exists("Acme"))

    assert excinfo.value.message.startswith("Registry result could not be decoded")


def test_outer_cancellation_leaves_no_pending_tasks() -> None:
    async def slow_handler(request: httpx.Request) -> httpx.Response:
        await asyncio.sleep(5)
        return httpx.Response(200, json=_success(True))

    async def scenario() -> list:
        cancel = asyncio.Event()
        call = asyncio.create_task(_client(slow_handler).check_name_exists("Acme", cancel=cancel))
        await asyncio.sleep(0.01)
        call.cancel()
        with pytest.raises(asyncio.CancelledError):
            await call
        return [task for task in asyncio.all_tasks() if task is not asyncio.current_task()]

    assert asyncio.run(scenario()) == []
