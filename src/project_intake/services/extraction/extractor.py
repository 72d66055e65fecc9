"""Schema-constrained extraction of structured project fields."""

from __future__ import annotations

import logging
from typing import Mapping, Sequence

from pydantic import BaseModel, ValidationError

from project_intake.errors import ExtractionFailure, IntakeError, UpstreamUnavailable

from .capability import StructuredSearchCapability
from .prompts import SYSTEM_INSTRUCTION, build_user_prompt
from .schema import ExtractedRecord

LOGGER = logging.getLogger(__name__)


def _describe_validation_error(exc: ValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Model output did not match the extraction schema."
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ())) or "<root>"
    return f"Model output did not match the extraction schema at '{location}': {first.get('msg', 'invalid value')}"


class SchemaExtractor:
    """Ask the AI capability for an :class:`ExtractedRecord` and validate it at the boundary."""

    def __init__(self, capability: StructuredSearchCapability) -> None:
        self.capability = capability

    def extract(
        self,
        project_name: str,
        grounding_urls: Sequence[str],
        candidates: Mapping[str, str] | None = None,
    ) -> ExtractedRecord:
        """Return a schema-valid record for ``project_name``.

        Args:
            project_name: Name (or identifier) of the project to research.
            grounding_urls: Domains the capability should trust; only the first
                two become site-query hints.
            candidates: Provider-supplied values to corroborate rather than copy.

        Raises:
            UpstreamUnavailable: The capability call itself failed.
            ExtractionFailure: The call succeeded but produced no structured
                output, or output that does not validate against the schema.
        """

        urls = [url for url in grounding_urls if url]
        prompt = build_user_prompt(project_name, urls, candidates)
        try:
            output = self.capability.generate(system=SYSTEM_INSTRUCTION, prompt=prompt, schema=ExtractedRecord)
        except IntakeError:
            raise
        except Exception as exc:
            LOGGER.exception("Structured generation failed for %s", project_name)
            raise UpstreamUnavailable("Structured generation failed. Please try again later.") from exc

        if output is None:
            raise ExtractionFailure("Model output did not contain structured data.")

        if isinstance(output, BaseModel):
            output = output.model_dump(by_alias=True)
        try:
            record = ExtractedRecord.model_validate(output)
        except ValidationError as exc:
            LOGGER.warning("Extraction for %s failed schema validation: %s", project_name, exc)
            raise ExtractionFailure(_describe_validation_error(exc)) from exc

        LOGGER.info(
            "Extracted %s: categories=%s founders=%s grounding=%s",
            project_name,
            [category.value for category in record.categories],
            len(record.founders),
            len(urls),
        )
        return record
