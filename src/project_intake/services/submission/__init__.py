"""Submission payload models and the fail-fast validator/sanitizer."""

from .models import EditedCandidate, Reference, SmartContract, SubmissionPayload
from .validator import (
    build_payload,
    build_refs,
    normalize_funding_status,
    parse_date,
    resolve_boolean,
    sanitize_nullable_string,
    sanitize_string,
)

__all__ = [
    "EditedCandidate",
    "Reference",
    "SmartContract",
    "SubmissionPayload",
    "build_payload",
    "build_refs",
    "normalize_funding_status",
    "parse_date",
    "resolve_boolean",
    "sanitize_nullable_string",
    "sanitize_string",
]
