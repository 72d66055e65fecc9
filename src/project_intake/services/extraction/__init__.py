"""Schema-constrained extraction primitives."""

from .capability import MockSearchCapability, OpenAIWebSearchCapability, StructuredSearchCapability, build_capability
from .extractor import SchemaExtractor
from .prompts import SYSTEM_INSTRUCTION, build_domain_instruction, build_site_hint, build_user_prompt
from .schema import DEFAULT_ORG_STRUCTURE, Category, DevStatus, ExtractedRecord, Founder, OrgStructure

__all__ = [
    "Category",
    "DEFAULT_ORG_STRUCTURE",
    "DevStatus",
    "ExtractedRecord",
    "Founder",
    "MockSearchCapability",
    "OpenAIWebSearchCapability",
    "OrgStructure",
    "SYSTEM_INSTRUCTION",
    "SchemaExtractor",
    "StructuredSearchCapability",
    "build_capability",
    "build_domain_instruction",
    "build_site_hint",
    "build_user_prompt",
]
