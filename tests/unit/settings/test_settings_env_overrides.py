"""Unit tests covering environment variable overrides and fail-fast configuration checks."""

from __future__ import annotations

import textwrap
from pathlib import Path

import pytest

from project_intake.errors import ConfigurationMissing
from project_intake.settings.config import SearchSettings, reload_settings


def test_defaults_come_from_toml() -> None:
    settings = reload_settings(env="dev")

    assert settings.env == "dev"
    assert settings.llm.provider == "openai"
    assert settings.llm.api_key is None
    assert settings.rootdata.base_url == "https://api.rootdata.com/open"
    assert settings.registry.create_route == "/api/trpc/project.createProjectViaAI"


def test_well_known_env_names_override(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    monkeypatch.setenv("ROOTDATA_API_KEY", "rd-test")
    monkeypatch.setenv("PENSIEVE_BASE_URL", "https://registry.example")
    monkeypatch.setenv("PENSIEVE_SYSTEM_TOKEN", "secret")

    settings = reload_settings(env="dev")

    assert settings.llm.api_key == "sk-test"
    assert settings.rootdata.api_key == "rd-test"
    assert settings.registry.base_url == "https://registry.example"
    assert settings.registry.system_token == "secret"


def test_prefixed_provider_override(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("INTAKE_LLM__PROVIDER", "mock")

    settings = reload_settings(env="dev")

    assert settings.llm.provider == "mock"


def test_settings_file_override(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    config_file = tmp_path / "settings.toml"
    config_file.write_text(
        textwrap.dedent(
            """
            [llm]
            model = "gpt-test"

            [registry]
            timeout_seconds = 5.0
            """
        )
    )
    monkeypatch.setenv("INTAKE_SETTINGS_FILE", str(config_file))

    settings = reload_settings(env="dev")

    assert settings.llm.model == "gpt-test"
    assert settings.registry.timeout_seconds == 5.0
    assert config_file in settings.config_files


def test_require_llm_reports_missing_key() -> None:
    settings = reload_settings(env="dev")

    with pytest.raises(ConfigurationMissing) as excinfo:
        settings.require_llm()

    assert excinfo.value.missing == ["OPENAI_API_KEY"]
    assert "OPENAI_API_KEY" in excinfo.value.message


def test_require_llm_allows_mock_provider(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LLM_PROVIDER", "mock")

    reload_settings(env="dev").require_llm()


def test_require_registry_lists_every_missing_variable(monkeypatch: pytest.MonkeyPatch) -> None:
    settings = reload_settings(env="dev")
    with pytest.raises(ConfigurationMissing) as excinfo:
        settings.require_registry()
    assert excinfo.value.missing == ["PENSIEVE_BASE_URL", "PENSIEVE_SYSTEM_TOKEN"]

    monkeypatch.setenv("PENSIEVE_BASE_URL", "https://registry.example")
    settings = reload_settings(env="dev")
    with pytest.raises(ConfigurationMissing) as excinfo:
        settings.require_registry()
    assert excinfo.value.missing == ["PENSIEVE_SYSTEM_TOKEN"]


@pytest.mark.parametrize(("raw", "expected"), [(0, 1), (3, 3), (9, 5), ("oops", 1)])
def test_search_limit_is_clamped(raw, expected) -> None:
    assert SearchSettings(default_limit=raw).default_limit == expected


@pytest.mark.parametrize("variable", ["LOG_LEVEL", "INTAKE_RUNTIME__LOG_LEVEL"])
def test_log_level_env_beats_toml(monkeypatch: pytest.MonkeyPatch, variable: str) -> None:
    monkeypatch.setenv(variable, "DEBUG")

    assert reload_settings(env="dev").runtime.log_level == "DEBUG"


def test_prefixed_name_wins_over_alias(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LOG_LEVEL", "WARNING")
    monkeypatch.setenv("INTAKE_RUNTIME__LOG_LEVEL", "DEBUG")

    assert reload_settings(env="dev").runtime.log_level == "DEBUG"


def test_every_section_field_honours_the_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LLM_TEMPERATURE", "0.7")
    monkeypatch.setenv("LLM_SEARCH_CONTEXT_SIZE", "low")
    monkeypatch.setenv("ROOTDATA_BASE_URL", "https://rootdata.test/open")
    monkeypatch.setenv("REGISTRY_TIMEOUT_SECONDS", "7.5")
    monkeypatch.setenv("DEFAULT_LIMIT", "9")
    monkeypatch.setenv("STRUCTURED_LOGGING", "true")

    settings = reload_settings(env="dev")

    assert settings.llm.temperature == 0.7
    assert settings.llm.search_context_size == "low"
    assert settings.llm.model == "gpt-4o-mini"
    assert settings.rootdata.base_url == "https://rootdata.test/open"
    assert settings.registry.timeout_seconds == 7.5
    assert settings.registry.create_route == "/api/trpc/project.createProjectViaAI"
    assert settings.search.default_limit == 5
    assert settings.observability.structured_logging is True


def test_provider_override_is_case_insensitive(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LLM_PROVIDER", " Mock ")

    assert reload_settings(env="dev").llm.provider == "mock"
