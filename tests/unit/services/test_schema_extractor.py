"""Tests for the schema-constrained extractor and its boundary validation."""

from __future__ import annotations

import pytest

from project_intake.errors import ExtractionFailure, UpstreamUnavailable
from project_intake.services.extraction import (
    Category,
    ExtractedRecord,
    MockSearchCapability,
    OrgStructure,
    SchemaExtractor,
)

_VALID = {
    "categories": ["Infrastructure", "Infrastructure", "Developer tools"],
    "dateFounded": "2021-06-01T00:00:00Z",
    "dateLaunch": "2022-01-15T12:00:00+02:00",
    "devStatus": "Beta",
    "orgStructure": "DAO",
    "openSource": True,
    "publicGoods": False,
    "founders": [{"name": " Ada ", "title": "CEO"}],
    "codeRepo": "https://github.com/acme/acme",
    "tokenContract": "0xabc",
    "whitePaper": "not a url",
}


class _RaisingCapability:
    def generate(self, *, system, prompt, schema):
        raise RuntimeError("socket closed")


def _extract(payload, urls=("https://acme.io",)) -> ExtractedRecord:
    return SchemaExtractor(MockSearchCapability(payload)).extract("Acme", list(urls))


def test_extract_returns_validated_record() -> None:
    capability = MockSearchCapability(_VALID)
    record = SchemaExtractor(capability).extract("Acme", ["https://acme.io", "https://rootdata.com/x"])

    assert record.categories == [Category.INFRASTRUCTURE, Category.DEVELOPER_TOOLS]
    assert record.founders[0].name == "Ada"
    assert record.white_paper is None
    assert record.code_repo == "https://github.com/acme/acme"
    assert record.launched_at is not None and record.launched_at.utcoffset().total_seconds() == 7200
    assert capability.calls[0]["schema"] == "ExtractedRecord"
    assert '"site:https://acme.io"' in capability.calls[0]["prompt"]


def test_missing_org_structure_defaults_to_evolving() -> None:
    record = _extract({**_VALID, "orgStructure": None})

    assert record.org_structure is OrgStructure.EVOLVING


def test_none_output_is_extraction_failure() -> None:
    class _Empty:
        def generate(self, *, system, prompt, schema):
            return None

    with pytest.raises(ExtractionFailure) as excinfo:
        SchemaExtractor(_Empty()).extract("Acme", [])

    assert excinfo.value.kind == "extraction_incomplete"


def test_capability_error_is_upstream_unavailable() -> None:
    with pytest.raises(UpstreamUnavailable) as excinfo:
        SchemaExtractor(_RaisingCapability()).extract("Acme", [])

    assert excinfo.value.status_code == 502


@pytest.mark.parametrize(
    ("override", "location"),
    [
        ({"categories": []}, "categories"),
        ({"categories": ["Gaming"]}, "categories"),
        ({"founders": []}, "founders"),
        ({"devStatus": "Shipping"}, "devStatus"),
        ({"dateFounded": "2021-06-01"}, "dateFounded"),
        ({"extra": "field"}, "extra"),
    ],
)
def test_schema_violations_are_extraction_failures(override, location) -> None:
    with pytest.raises(ExtractionFailure) as excinfo:
        _extract({**_VALID, **override})

    assert location in excinfo.value.message


def test_missing_required_field_is_extraction_failure() -> None:
    payload = dict(_VALID)
    payload.pop("openSource")

    with pytest.raises(ExtractionFailure):
        _extract(payload)


def test_model_instance_output_is_accepted() -> None:
    parsed = ExtractedRecord.model_validate(_VALID)

    class _Parsed:
        def generate(self, *, system, prompt, schema):
            return parsed

    record = SchemaExtractor(_Parsed()).extract("Acme", [])

    assert record == parsed
