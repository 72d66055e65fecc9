"""Prompt templates for grounded, schema-constrained project extraction."""

from __future__ import annotations

from typing import Mapping, Sequence

SYSTEM_INSTRUCTION = "\n".join(
    [
        "You are a researcher responsible for extracting structured on-chain project intelligence.",
        "Process requirements: 1) Use only the allowed domains and confirm their credibility; "
        "2) Provide evidence-backed values for every field and use null only when evidence is absent;",
        "3) The output must strictly follow the provided JSON Schema with no extra or missing fields;",
        "4) Ensure categories contains at least one enum item and return ISO 8601 date strings with time-offset "
        "(e.g., 2024-01-01T00:00:00Z) for dateFounded and dateLaunch;",
        "5) Choose devStatus and orgStructure from their enums using the best-supported value "
        "(if unresolved, use Evolving Structure for orgStructure, never null);",
        "6) Provide boolean values for publicGoods and openSource, include at least one founder with name and title, "
        "and verify founders via evidence;",
        "7) Preserve array element structure, remove invalid URLs, and when sources conflict prefer the most recent "
        "authoritative evidence, otherwise return null;",
        "8) Treat provider-supplied founders, dateFounded, dateLaunch, and whitePaper as candidates only; "
        "validate them against the schema and corroborate them with current evidence;",
        "9) If ISO 8601 formatted dates cannot be verified, set the corresponding field to null;",
    ]
)

_NO_DOMAINS = "No trusted domains detected. Prioritize authoritative sources and verify credibility."
_NO_SITES = "When possible, prioritize search sub-queries targeting official and authoritative domains."
_MAX_SITE_HINTS = 2


def build_domain_instruction(grounding_urls: Sequence[str]) -> str:
    """Restrict evidence to the grounding domains, or ask for authoritative sources when there are none."""

    urls = [url for url in grounding_urls if url]
    if not urls:
        return _NO_DOMAINS
    return f"Use only the following domains and validate each domain's credibility: {', '.join(urls)}."


def build_site_hint(grounding_urls: Sequence[str]) -> str:
    """Bias first-pass search sub-queries toward at most two grounding domains."""

    qualifiers = [f'"site:{url}"' for url in grounding_urls if url][:_MAX_SITE_HINTS]
    if not qualifiers:
        return _NO_SITES
    return f"When possible, prioritize search sub-queries that include {' and '.join(qualifiers)}."


def build_candidate_hint(candidates: Mapping[str, str] | None) -> str | None:
    """List provider-supplied values as candidates to corroborate, or ``None`` when there are none."""

    if not candidates:
        return None
    pairs = ", ".join(f"{key}={value}" for key, value in candidates.items() if value)
    if not pairs:
        return None
    return f"Provider-supplied candidates to corroborate (not ground truth): {pairs}."


def build_user_prompt(
    project_name: str,
    grounding_urls: Sequence[str],
    candidates: Mapping[str, str] | None = None,
) -> str:
    lines = [
        f'Goal: extract and populate form fields about "{project_name}".',
        build_domain_instruction(grounding_urls),
        build_site_hint(grounding_urls),
    ]
    candidate_hint = build_candidate_hint(candidates)
    if candidate_hint:
        lines.append(candidate_hint)
    return "\n".join(
        [
            *lines,
            "Before filling each field, verify evidence and schema constraints, ensure all required fields have "
            "values, and return an object that conforms to the schema (only fields marked nullable may be null).",
            "Do not output any schema-undefined fields or explanatory text.",
        ]
    )


__all__ = [
    "SYSTEM_INSTRUCTION",
    "build_candidate_hint",
    "build_domain_instruction",
    "build_site_hint",
    "build_user_prompt",
]
