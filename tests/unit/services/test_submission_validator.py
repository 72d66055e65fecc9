"""Tests for submission validation and sanitization."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from project_intake.errors import ValidationFailure
from project_intake.services.reconcile import MergedCandidate
from project_intake.services.rootdata import SearchHit
from project_intake.services.submission import EditedCandidate, build_payload
from project_intake.services.submission.validator import normalize_funding_status, parse_date


def _prior(**overrides) -> MergedCandidate:
    values = {
        "projectId": 42,
        "name": "Acme Protocol",
        "tagline": "Settlement for everyone",
        "logoUrl": "https://cdn.example/acme.png",
        "mainDescription": "Acme builds settlement rails.",
        "tags": ["Infra"],
        "websites": [{"title": "Official Website", "url": "https://acme.io"}],
        "fundingStatus": True,
        "rootdataUrl": "https://www.rootdata.com/Projects/detail/Acme?k=42",
        "categories": ["Infrastructure"],
        "dateFounded": "2021-06-01T00:00:00Z",
        "dateLaunch": None,
        "devStatus": "Beta",
        "orgStructure": "DAO",
        "openSource": True,
        "publicGoods": False,
        "founders": [{"name": "Ada", "title": "CEO"}],
        "codeRepo": None,
        "tokenContract": None,
        "whitePaper": None,
    }
    values.update(overrides)
    return MergedCandidate.model_validate(values)


def _fails_on(edited: EditedCandidate, prior: MergedCandidate | None = None) -> str:
    with pytest.raises(ValidationFailure) as excinfo:
        build_payload(edited, prior)
    return excinfo.value.field


def test_unedited_candidate_builds_payload() -> None:
    selection = SearchHit(id="42", name="Acme Protocol")

    payload = build_payload(EditedCandidate(), _prior(), selection=selection)

    assert payload.name == "Acme Protocol"
    assert payload.categories == ["Infrastructure"]
    assert payload.date_founded == datetime(2021, 6, 1, tzinfo=timezone.utc)
    assert payload.date_launch is None
    assert payload.funding_status == "Has Funding"
    assert payload.org_structure == "DAO"
    assert [(ref.key, ref.value) for ref in payload.refs] == [
        ("rootdataProjectId", "42"),
        ("rootdataUrl", "https://www.rootdata.com/Projects/detail/Acme?k=42"),
    ]
    wire = payload.to_wire()
    assert wire["mainDescription"] == "Acme builds settlement rails."
    assert isinstance(wire["dateFounded"], datetime)


def test_empty_categories_fail_on_categories() -> None:
    assert _fails_on(EditedCandidate(categories=[]), _prior()) == "categories"


def test_non_list_categories_edit_fails_on_categories() -> None:
    assert _fails_on(EditedCandidate(categories="Infrastructure"), _prior()) == "categories"


def test_blank_categories_are_dropped() -> None:
    payload = build_payload(EditedCandidate(categories=["Infrastructure", "", "  "]), _prior())

    assert payload.categories == ["Infrastructure"]


def test_edits_override_prior_values_and_are_trimmed() -> None:
    edited = EditedCandidate.model_validate(
        {
            "name": "  Acme  ",
            "dateFounded": "2020-02-03",
            "openSource": False,
            "fundingStatus": "Seed",
            "codeRepo": "  ",
            "founders": [{"name": "Bo", "title": "CTO"}, {"name": "", "title": "Advisor"}],
            "dappSmartContracts": [{"id": "1", "chain": "eth", "addresses": "0xabc"}, {"id": "2"}],
        }
    )

    payload = build_payload(edited, _prior())

    assert payload.name == "Acme"
    assert payload.date_founded == datetime(2020, 2, 3, tzinfo=timezone.utc)
    assert payload.open_source is False
    assert payload.funding_status == "Seed"
    assert payload.code_repo is None
    assert [founder.name for founder in payload.founders] == ["Bo"]
    assert [contract.chain for contract in payload.dapp_smart_contracts] == ["eth"]


def test_first_failing_field_is_reported() -> None:
    edited = EditedCandidate(name="  ", categories=[])

    assert _fails_on(edited, _prior()) == "name"


@pytest.mark.parametrize(
    ("edited", "prior_overrides", "field"),
    [
        (EditedCandidate(tagline=""), {}, "tagline"),
        (EditedCandidate(), {"mainDescription": None}, "description"),
        (EditedCandidate(logoUrl=" "), {}, "logoUrl"),
        (EditedCandidate(websites=[{"title": "", "url": "https://acme.io"}]), {}, "websites"),
        (EditedCandidate(dateFounded="not a date"), {}, "dateFounded"),
        (EditedCandidate(), {"devStatus": None}, "devStatus"),
        (EditedCandidate(openSource="yes"), {"openSource": None}, "openSource"),
        (EditedCandidate(), {"publicGoods": None}, "publicGoods"),
        (EditedCandidate(orgStructure=""), {}, "orgStructure"),
        (EditedCandidate(founders=[]), {}, "founders"),
    ],
)
def test_required_fields(edited, prior_overrides, field) -> None:
    assert _fails_on(edited, _prior(**prior_overrides)) == field


def test_missing_prior_requires_every_field() -> None:
    assert _fails_on(EditedCandidate()) == "name"


def test_parse_date_variants() -> None:
    assert parse_date("2021-06-01T00:00:00Z") == datetime(2021, 6, 1, tzinfo=timezone.utc)
    assert parse_date("2021-06-01T02:00:00+02:00") == datetime(2021, 6, 1, tzinfo=timezone.utc)
    assert parse_date("") is None
    assert parse_date(None) is None
    assert parse_date("June 2021") is None


def test_normalize_funding_status() -> None:
    assert normalize_funding_status(None, True) == "Has Funding"
    assert normalize_funding_status(False, True) is None
    assert normalize_funding_status(" Series A ", None) == "Series A"
    assert normalize_funding_status(None, None) is None
