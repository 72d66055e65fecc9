"""Validate and sanitize a reviewed candidate into a registry submission payload.

Validation is fail-fast: the first unmet invariant raises
:class:`~project_intake.errors.ValidationFailure` naming that field, so the user
is always told which single field to fix next.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from typing import Any, Iterable, List, Mapping

from project_intake.errors import ValidationFailure
from project_intake.services.extraction.schema import Founder
from project_intake.services.reconcile import MergedCandidate
from project_intake.services.rootdata.models import SearchHit, Website

from .models import EditedCandidate, Reference, SmartContract, SubmissionPayload

LOGGER = logging.getLogger(__name__)

FUNDED_LABEL = "Has Funding"


def sanitize_string(value: Any) -> str:
    """Return ``value`` trimmed, or ``""`` for anything that is not a string."""

    if not isinstance(value, str):
        return ""
    return value.strip()


def sanitize_nullable_string(value: Any) -> str | None:
    sanitized = sanitize_string(value)
    return sanitized or None


def resolve_boolean(value: Any, fallback: Any) -> bool | None:
    """Prefer an explicit user boolean, then the prior candidate's, else ``None``."""

    if isinstance(value, bool):
        return value
    if isinstance(fallback, bool):
        return fallback
    return None


def parse_date(value: Any) -> datetime | None:
    """Parse ``value`` as a calendar date/time; naive values are taken as UTC."""

    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    else:
        text = sanitize_string(value)
        if not text:
            return None
        if text.endswith(("Z", "z")):
            text = f"{text[:-1]}+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed


def normalize_funding_status(value: Any, fallback: Any) -> str | None:
    """Map the form's funding answer onto the registry's nullable label."""

    for candidate in (value, fallback):
        if isinstance(candidate, str):
            return sanitize_nullable_string(candidate)
        if isinstance(candidate, bool):
            return FUNDED_LABEL if candidate else None
    return None


def _pick(value: Any, fallback: Any) -> Any:
    return value if value is not None else fallback


def _pick_list(value: Any, fallback: Any) -> list:
    """An edited list wins; any other non-None edit counts as an empty list."""

    if value is not None:
        return value if isinstance(value, list) else []
    return fallback if isinstance(fallback, list) else []


def _field(entry: Any, key: str) -> Any:
    if isinstance(entry, Mapping):
        return entry.get(key)
    return getattr(entry, key, None)


def _require_text(field: str, value: Any, reason: str) -> str:
    sanitized = sanitize_string(value)
    if not sanitized:
        raise ValidationFailure(field, reason)
    return sanitized


def _clean_strings(values: Iterable[Any]) -> List[str]:
    return [item for item in (sanitize_string(value) for value in values) if item]


def _clean_websites(entries: Iterable[Any]) -> List[Website]:
    websites: List[Website] = []
    for entry in entries:
        title = sanitize_string(_field(entry, "title"))
        url = sanitize_string(_field(entry, "url"))
        if title and url:
            websites.append(Website(title=title, url=url))
    return websites


def _clean_founders(entries: Iterable[Any]) -> List[Founder]:
    founders: List[Founder] = []
    for entry in entries:
        name = sanitize_string(_field(entry, "name"))
        title = sanitize_string(_field(entry, "title"))
        if name and title:
            founders.append(Founder(name=name, title=title))
    return founders


def _clean_smart_contracts(entries: Any) -> List[SmartContract] | None:
    if not isinstance(entries, list):
        return None
    contracts: List[SmartContract] = []
    for entry in entries:
        values = {key: sanitize_string(_field(entry, key)) for key in ("id", "chain", "addresses")}
        if all(values.values()):
            contracts.append(SmartContract(**values))
    return contracts or None


def build_refs(selection: SearchHit | None, prior: MergedCandidate | None) -> List[Reference] | None:
    """Reference the provider project the submission was filled from."""

    refs: List[Reference] = []
    project_id = selection.id if selection else None
    if not project_id and prior is not None and prior.project_id:
        project_id = str(prior.project_id)
    if project_id:
        refs.append(Reference(key="rootdataProjectId", value=project_id))
    rootdata_url = prior.rootdata_url if prior is not None else None
    if rootdata_url:
        refs.append(Reference(key="rootdataUrl", value=rootdata_url))
    return refs or None


def build_payload(
    edited: EditedCandidate,
    prior: MergedCandidate | None = None,
    *,
    selection: SearchHit | None = None,
) -> SubmissionPayload:
    """Return the registry payload for ``edited``, falling back to ``prior`` per field.

    Args:
        edited: Values from the review step; ``None`` means "keep the prior value".
        prior: Candidate produced by reconciliation, if any.
        selection: Search hit the user picked, used for registry references.

    Raises:
        ValidationFailure: The first required field that is missing or invalid.
    """

    base = prior or MergedCandidate()

    name = _require_text(
        "name",
        _pick(edited.name, base.name or (selection.name if selection else None)),
        "Project name is required before submission.",
    )
    tagline = _require_text("tagline", _pick(edited.tagline, base.tagline), "Tagline is required before submission.")
    main_description = _require_text(
        "description",
        _pick(edited.main_description, base.description),
        "Project description is required before submission.",
    )

    categories = _clean_strings(_pick_list(edited.categories, base.categories))
    if not categories:
        raise ValidationFailure("categories", "Select at least one category before submission.")

    logo_url = _require_text(
        "logoUrl",
        _pick(edited.logo_url, base.logo_url or (selection.logo_url if selection else None)),
        "Please provide a logo URL before submission.",
    )

    websites = _clean_websites(_pick_list(edited.websites, base.websites))
    if not websites:
        raise ValidationFailure("websites", "Provide at least one website link before submission.")

    app_url = sanitize_nullable_string(edited.app_url)

    date_founded = parse_date(_pick(edited.date_founded, base.date_founded))
    if date_founded is None:
        raise ValidationFailure("dateFounded", "Founding date must be a valid ISO string.")

    date_launch = parse_date(_pick(edited.date_launch, base.date_launch))

    dev_status = _require_text(
        "devStatus",
        _pick(edited.dev_status, base.dev_status),
        "Development status is required before submission.",
    )

    funding_status = normalize_funding_status(edited.funding_status, base.funding_status)

    open_source = resolve_boolean(edited.open_source, base.open_source)
    if open_source is None:
        raise ValidationFailure("openSource", "Please indicate whether the project is open source.")

    public_goods = resolve_boolean(edited.public_goods, base.public_goods)
    if public_goods is None:
        raise ValidationFailure("publicGoods", "Please indicate whether the project is a public good.")

    code_repo = sanitize_nullable_string(_pick(edited.code_repo, base.code_repo))

    org_structure = _require_text(
        "orgStructure",
        _pick(edited.org_structure, base.org_structure),
        "Organization structure is required before submission.",
    )

    founders = _clean_founders(_pick_list(edited.founders, base.founders))
    if not founders:
        raise ValidationFailure("founders", "Please provide at least one founder with name and title.")

    tags = _clean_strings(_pick_list(edited.tags, base.tags))
    white_paper = sanitize_nullable_string(_pick(edited.white_paper, base.white_paper))
    token_contract = sanitize_nullable_string(_pick(edited.token_contract, base.token_contract))

    payload = SubmissionPayload(
        name=name,
        tagline=tagline,
        categories=categories,
        main_description=main_description,
        logo_url=logo_url,
        websites=websites,
        app_url=app_url,
        date_founded=date_founded,
        date_launch=date_launch,
        dev_status=dev_status,
        funding_status=funding_status,
        open_source=open_source,
        code_repo=code_repo,
        token_contract=token_contract,
        org_structure=org_structure,
        public_goods=public_goods,
        founders=founders,
        tags=tags,
        white_paper=white_paper,
        dapp_smart_contracts=_clean_smart_contracts(edited.dapp_smart_contracts),
        refs=build_refs(selection, prior),
    )
    LOGGER.debug("Built submission payload for %s with %s founders", payload.name, len(payload.founders))
    return payload


__all__ = [
    "build_payload",
    "build_refs",
    "normalize_funding_status",
    "parse_date",
    "resolve_boolean",
    "sanitize_nullable_string",
    "sanitize_string",
]
