"""Layered configuration for project-intake.

Sections are assembled from (highest first) constructor kwargs, ``.env`` files,
TOML files under ``config/`` and finally the field defaults. Environment
variables are then applied on top of every section: ``INTAKE_<SECTION>__<FIELD>``
first, then the field's well-known unprefixed names (``OPENAI_API_KEY``,
``ROOTDATA_API_KEY``, ``PENSIEVE_*``, ``LOG_LEVEL`` and so on) so deployments can
share one environment with other tools.
"""

from __future__ import annotations

import os
import tomllib
from functools import lru_cache
from pathlib import Path
from typing import Any, Literal

from pydantic import AliasChoices, Field, field_validator, model_validator
from pydantic.fields import FieldInfo
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

from project_intake.errors import ConfigurationMissing

ENV_VAR_NAME = "INTAKE_ENV"
SETTINGS_FILE_ENV_VAR = "INTAKE_SETTINGS_FILE"
PROJECT_ROOT = Path(__file__).resolve().parents[3]
CONFIG_DIR = PROJECT_ROOT / "config"

_SECTION_CONFIG = SettingsConfigDict(extra="ignore", populate_by_name=True)


def _active_env(requested: str | None = None) -> str:
    return (requested or os.getenv(ENV_VAR_NAME) or "local").strip()


def _dotenv_files(env: str) -> list[Path]:
    """Existing ``.env`` files for ``env``; later files override earlier ones."""

    names = (".env", f".env.{env}", ".env.local")
    return [PROJECT_ROOT / name for name in names if (PROJECT_ROOT / name).exists()]


def _toml_files() -> tuple[Path, ...]:
    """Existing TOML config files, highest precedence first.

    ``INTAKE_SETTINGS_FILE`` may name an extra file; relative paths are taken
    from the project root.
    """

    candidates: list[Path] = []
    override = os.getenv(SETTINGS_FILE_ENV_VAR)
    if override:
        path = Path(override).expanduser()
        candidates.append(path if path.is_absolute() else (PROJECT_ROOT / path).resolve())
    candidates.extend([CONFIG_DIR / "settings.local.toml", CONFIG_DIR / "settings.default.toml"])
    return tuple(path for path in candidates if path.exists())


class TomlFileSource(PydanticBaseSettingsSource):
    """Settings source backed by a single TOML document, parsed once."""

    def __init__(self, settings_cls: type[BaseSettings], path: Path) -> None:
        super().__init__(settings_cls)
        self.path = path
        try:
            with path.open("rb") as handle:
                self.data: dict[str, Any] = tomllib.load(handle)
        except tomllib.TOMLDecodeError as exc:
            raise ValueError(f"{path} is not valid TOML: {exc}") from exc

    def get_field_value(self, field, field_name: str) -> tuple[Any, str, bool]:
        return self.data.get(field_name), field_name, False

    def __call__(self) -> dict[str, Any]:
        return dict(self.data)


class RuntimeSettings(BaseSettings):
    model_config = _SECTION_CONFIG

    log_level: str = Field(default="INFO", validation_alias=AliasChoices("LOG_LEVEL", "RUNTIME__LOG_LEVEL"))


class LLMSettings(BaseSettings):
    """AI capability used for grounded, schema-constrained extraction."""

    model_config = _SECTION_CONFIG

    provider: Literal["openai", "mock"] = Field(
        default="openai",
        validation_alias=AliasChoices("LLM_PROVIDER", "LLM__PROVIDER"),
    )
    api_key: str | None = Field(default=None, validation_alias=AliasChoices("OPENAI_API_KEY", "LLM__API_KEY"))
    model: str = Field(default="gpt-4o-mini", validation_alias=AliasChoices("LLM_MODEL", "LLM__MODEL"))
    temperature: float = Field(default=0.0, validation_alias=AliasChoices("LLM_TEMPERATURE", "LLM__TEMPERATURE"))
    search_context_size: Literal["low", "medium", "high"] = Field(
        default="high",
        validation_alias=AliasChoices("LLM_SEARCH_CONTEXT_SIZE", "LLM__SEARCH_CONTEXT_SIZE"),
    )
    # Upper bound on a single grounded generation; None disables the client timeout.
    timeout_seconds: float | None = Field(
        default=120.0,
        validation_alias=AliasChoices("LLM_TIMEOUT_SECONDS", "LLM__TIMEOUT_SECONDS"),
    )

    @field_validator("provider", mode="before")
    @classmethod
    def _lower_provider(cls, value: Any) -> Any:
        return value.strip().lower() if isinstance(value, str) else value


class RootDataSettings(BaseSettings):
    """Project-data provider. A missing key disables enrichment rather than failing."""

    model_config = _SECTION_CONFIG

    api_key: str | None = Field(default=None, validation_alias=AliasChoices("ROOTDATA_API_KEY", "ROOTDATA__API_KEY"))
    base_url: str = Field(
        default="https://api.rootdata.com/open",
        validation_alias=AliasChoices("ROOTDATA_BASE_URL", "ROOTDATA__BASE_URL"),
    )
    language: str = Field(default="en", validation_alias=AliasChoices("ROOTDATA_LANGUAGE", "ROOTDATA__LANGUAGE"))
    timeout_seconds: float = Field(
        default=20.0,
        validation_alias=AliasChoices("ROOTDATA_TIMEOUT_SECONDS", "ROOTDATA__TIMEOUT_SECONDS"),
    )


class RegistrySettings(BaseSettings):
    """Downstream registry RPC endpoint and its shared-secret token."""

    model_config = _SECTION_CONFIG

    base_url: str | None = Field(
        default=None,
        validation_alias=AliasChoices("PENSIEVE_BASE_URL", "REGISTRY_BASE_URL", "REGISTRY__BASE_URL"),
    )
    system_token: str | None = Field(
        default=None,
        validation_alias=AliasChoices("PENSIEVE_SYSTEM_TOKEN", "REGISTRY_SYSTEM_TOKEN", "REGISTRY__SYSTEM_TOKEN"),
    )
    create_route: str = Field(
        default="/api/trpc/project.createProjectViaAI",
        validation_alias=AliasChoices("REGISTRY_CREATE_ROUTE", "REGISTRY__CREATE_ROUTE"),
    )
    check_name_route: str = Field(
        default="/api/trpc/project.checkProjectName",
        validation_alias=AliasChoices("REGISTRY_CHECK_NAME_ROUTE", "REGISTRY__CHECK_NAME_ROUTE"),
    )
    timeout_seconds: float = Field(
        default=30.0,
        validation_alias=AliasChoices("REGISTRY_TIMEOUT_SECONDS", "REGISTRY__TIMEOUT_SECONDS"),
    )


class SearchSettings(BaseSettings):
    model_config = _SECTION_CONFIG

    default_limit: int = Field(default=3, validation_alias=AliasChoices("DEFAULT_LIMIT", "SEARCH__DEFAULT_LIMIT"))

    @field_validator("default_limit", mode="before")
    @classmethod
    def _clamp_limit(cls, value: Any) -> int:
        try:
            parsed = int(value)
        except (TypeError, ValueError):
            return 1
        return min(5, max(1, parsed))


class ObservabilitySettings(BaseSettings):
    model_config = _SECTION_CONFIG

    structured_logging: bool = Field(
        default=False,
        validation_alias=AliasChoices("STRUCTURED_LOGGING", "OBSERVABILITY__STRUCTURED_LOGGING"),
    )
    service_name: str = Field(
        default="project-intake",
        validation_alias=AliasChoices("SERVICE_NAME", "OBSERVABILITY__SERVICE_NAME"),
    )


_SECTIONS: dict[str, type[BaseSettings]] = {
    "runtime": RuntimeSettings,
    "llm": LLMSettings,
    "rootdata": RootDataSettings,
    "registry": RegistrySettings,
    "search": SearchSettings,
    "observability": ObservabilitySettings,
}


def environment_names(section: str, field_name: str, field: FieldInfo) -> tuple[str, ...]:
    """Variables that set ``<section>.<field_name>``, highest precedence first.

    ``INTAKE_<SECTION>__<FIELD>`` comes first, then the field's own aliases.
    """

    names = [f"INTAKE_{section.upper()}__{field_name.upper()}"]
    alias = field.validation_alias
    if isinstance(alias, AliasChoices):
        names.extend(choice for choice in alias.choices if isinstance(choice, str))
    elif isinstance(alias, str):
        names.append(alias)
    return tuple(dict.fromkeys(names))


def _environment_values(section: str, section_cls: type[BaseSettings]) -> dict[str, str]:
    values: dict[str, str] = {}
    for field_name, field in section_cls.model_fields.items():
        raw = next(
            (os.environ[name] for name in environment_names(section, field_name, field) if os.environ.get(name)),
            None,
        )
        if raw is not None:
            values[field_name] = raw
    return values


def environment_variable_names() -> tuple[str, ...]:
    """Every variable the override pass reads, across all sections."""

    names: list[str] = []
    for section, section_cls in _SECTIONS.items():
        for field_name, field in section_cls.model_fields.items():
            names.extend(environment_names(section, field_name, field))
    return tuple(dict.fromkeys(names))


class Settings(BaseSettings):
    """Root settings object; one nested section per subsystem."""

    env: str = Field(default_factory=lambda: _active_env(), validation_alias=AliasChoices("ENV", "ENVIRONMENT"))
    runtime: RuntimeSettings = Field(default_factory=RuntimeSettings)
    llm: LLMSettings = Field(default_factory=LLMSettings)
    rootdata: RootDataSettings = Field(default_factory=RootDataSettings)
    registry: RegistrySettings = Field(default_factory=RegistrySettings)
    search: SearchSettings = Field(default_factory=SearchSettings)
    observability: ObservabilitySettings = Field(default_factory=ObservabilitySettings)
    config_files: tuple[Path, ...] = Field(default_factory=tuple, exclude=True)

    model_config = SettingsConfigDict(
        env_prefix="INTAKE_",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        toml_sources = [TomlFileSource(settings_cls, path) for path in _toml_files()]
        return (init_settings, env_settings, dotenv_settings, *toml_sources, file_secret_settings)

    @model_validator(mode="after")
    def _apply_environment_overrides(self) -> "Settings":
        """Let environment variables win over values read from TOML sections."""

        for section, section_cls in _SECTIONS.items():
            updates = _environment_values(section, section_cls)
            if updates:
                merged = {**getattr(self, section).model_dump(), **updates}
                object.__setattr__(self, section, section_cls.model_validate(merged))
        return self

    def require_llm(self) -> None:
        """Raise :class:`ConfigurationMissing` unless the AI capability is usable."""

        if self.llm.provider != "mock" and not self.llm.api_key:
            raise ConfigurationMissing(["OPENAI_API_KEY"])

    def require_registry(self) -> None:
        """Raise :class:`ConfigurationMissing` unless registry base URL and token are set."""

        missing = [
            name
            for name, value in (
                ("PENSIEVE_BASE_URL", self.registry.base_url),
                ("PENSIEVE_SYSTEM_TOKEN", self.registry.system_token),
            )
            if not value
        ]
        if missing:
            raise ConfigurationMissing(missing, hint="Registry integration is not configured.")


@lru_cache(maxsize=1)
def get_settings(env: str | None = None) -> Settings:
    """Return the process-wide settings, built on first use.

    Args:
        env: Environment name; defaults to ``INTAKE_ENV`` or ``local``. Selects
            which ``.env.<env>`` file is read.
    """

    active = _active_env(env)
    dotenv = _dotenv_files(active)
    return Settings(
        _env_file=[str(path) for path in dotenv] or None,
        _env_file_encoding="utf-8",
        env=active,
        config_files=_toml_files(),
    )


def reload_settings(env: str | None = None) -> Settings:
    """Drop the cached settings (e.g. after changing the environment) and build them again."""

    get_settings.cache_clear()
    return get_settings(env)


__all__ = [
    "ENV_VAR_NAME",
    "PROJECT_ROOT",
    "Settings",
    "environment_variable_names",
    "get_settings",
    "reload_settings",
]
