"""Factory helpers that instantiate pipeline components from configuration.

Components never read settings themselves. These helpers run the fail-fast
configuration checks and pass explicit values into each constructor, raising
:class:`~project_intake.errors.ConfigurationMissing` before any network call
when a required credential is absent.
"""

from __future__ import annotations

from project_intake.observability import get_observability
from project_intake.registry.client import RegistryClient
from project_intake.services.extraction.capability import build_capability
from project_intake.services.extraction.extractor import SchemaExtractor
from project_intake.services.intake import IntakeService
from project_intake.services.rootdata.client import RootDataClient
from project_intake.settings import Settings, get_settings


def build_rootdata_client(settings: Settings | None = None) -> RootDataClient:
    """Return a provider client; a missing key yields a client that always returns empty data."""

    resolved = settings or get_settings()
    config = resolved.rootdata
    return RootDataClient(
        config.api_key,
        base_url=config.base_url,
        language=config.language,
        timeout=config.timeout_seconds,
    )


def build_extractor(settings: Settings | None = None) -> SchemaExtractor:
    """Return a :class:`SchemaExtractor` bound to the configured AI capability.

    Raises:
        ConfigurationMissing: The capability's API key is not configured.
    """

    resolved = settings or get_settings()
    resolved.require_llm()
    return SchemaExtractor(build_capability(resolved))


def build_registry_client(settings: Settings | None = None) -> RegistryClient:
    """Return a :class:`RegistryClient`.

    Raises:
        ConfigurationMissing: Base URL or system token is not configured.
    """

    resolved = settings or get_settings()
    resolved.require_registry()
    config = resolved.registry
    return RegistryClient(
        config.base_url,
        config.system_token,
        create_route=config.create_route,
        check_name_route=config.check_name_route,
        timeout=config.timeout_seconds,
    )


def build_search_service(settings: Settings | None = None) -> IntakeService:
    resolved = settings or get_settings()
    resolved.require_llm()
    return IntakeService(
        fetcher=build_rootdata_client(resolved),
        observability=get_observability(component="search", settings=resolved),
    )


def build_fill_service(settings: Settings | None = None) -> IntakeService:
    resolved = settings or get_settings()
    return IntakeService(
        fetcher=build_rootdata_client(resolved),
        extractor=build_extractor(resolved),
        observability=get_observability(component="fill", settings=resolved),
    )


def build_submit_service(settings: Settings | None = None) -> IntakeService:
    resolved = settings or get_settings()
    return IntakeService(
        fetcher=build_rootdata_client(resolved),
        registry=build_registry_client(resolved),
        observability=get_observability(component="submit", settings=resolved),
    )


__all__ = [
    "build_extractor",
    "build_fill_service",
    "build_registry_client",
    "build_rootdata_client",
    "build_search_service",
    "build_submit_service",
]
