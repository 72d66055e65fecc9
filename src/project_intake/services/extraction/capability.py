"""AI capability seam: prompt + schema + web search in, schema-shaped object out."""

from __future__ import annotations

import json
import logging
from typing import Any, Mapping, Protocol, Type

from langchain_core.messages import HumanMessage, SystemMessage
from pydantic import BaseModel

from project_intake.errors import ConfigurationMissing
from project_intake.settings import Settings, get_settings

LOGGER = logging.getLogger(__name__)

WEB_SEARCH_TOOL = "web_search_preview"


class StructuredSearchCapability(Protocol):
    """Given a prompt, a system instruction and a schema, return a conforming object or ``None``."""

    def generate(
        self,
        *,
        system: str,
        prompt: str,
        schema: Type[BaseModel],
    ) -> Mapping[str, Any] | BaseModel | None:
        ...


def _strip_code_fence(text: str) -> str:
    stripped = text.strip()
    if stripped.startswith("```") and stripped.endswith("```"):
        lines = stripped.splitlines()
        if len(lines) >= 2:
            return "\n".join(lines[1:-1]).strip()
    return stripped


def _message_text(content: Any) -> str:
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for block in content:
            if isinstance(block, str):
                parts.append(block)
            elif isinstance(block, dict) and block.get("type") in {"text", "output_text"}:
                parts.append(str(block.get("text") or ""))
        return "".join(parts)
    return ""


class OpenAIWebSearchCapability:
    """Grounded structured generation through the OpenAI Responses API.

    The model is bound to exactly one hosted web-search tool, forced via
    ``tool_choice``, and to ``response_format=schema`` so the answer is emitted
    as a parsed object rather than free text.
    """

    def __init__(
        self,
        *,
        api_key: str,
        model: str = "gpt-4o-mini",
        temperature: float = 0.0,
        search_context_size: str = "high",
        timeout: float | None = None,
    ) -> None:
        if not api_key:
            raise ConfigurationMissing(["OPENAI_API_KEY"])
        self.model = model
        self.search_context_size = search_context_size
        self._client = self._build_client(api_key=api_key, temperature=temperature, timeout=timeout)

    def _build_client(self, *, api_key: str, temperature: float, timeout: float | None):
        from langchain_openai import ChatOpenAI

        return ChatOpenAI(
            model=self.model,
            api_key=api_key,
            temperature=temperature,
            timeout=timeout,
            use_responses_api=True,
        )

    def generate(
        self,
        *,
        system: str,
        prompt: str,
        schema: Type[BaseModel],
    ) -> Mapping[str, Any] | BaseModel | None:
        tool = {"type": WEB_SEARCH_TOOL, "search_context_size": self.search_context_size}
        bound = self._client.bind_tools(
            [tool],
            tool_choice={"type": WEB_SEARCH_TOOL},
            response_format=schema,
            strict=True,
        )
        response = bound.invoke([SystemMessage(content=system), HumanMessage(content=prompt)])

        parsed = response.additional_kwargs.get("parsed") if hasattr(response, "additional_kwargs") else None
        if parsed is not None:
            return parsed

        text = _strip_code_fence(_message_text(getattr(response, "content", "")))
        if not text:
            return None
        try:
            data = json.loads(text)
        except json.JSONDecodeError:
            LOGGER.warning("Model returned text that is not a JSON object (%s chars)", len(text))
            return None
        return data if isinstance(data, dict) else None


class MockSearchCapability:
    """Deterministic capability for local runs and tests; never touches the network."""

    def __init__(self, payload: Mapping[str, Any] | None = None) -> None:
        self.payload = dict(payload) if payload is not None else None
        self.calls: list[dict[str, str]] = []

    def generate(
        self,
        *,
        system: str,
        prompt: str,
        schema: Type[BaseModel],
    ) -> Mapping[str, Any] | BaseModel | None:
        self.calls.append({"system": system, "prompt": prompt, "schema": schema.__name__})
        if self.payload is not None:
            return dict(self.payload)
        return {
            "categories": ["Infrastructure"],
            "dateFounded": "2021-01-01T00:00:00Z",
            "dateLaunch": None,
            "devStatus": "In development",
            "orgStructure": "Evolving Structure",
            "openSource": True,
            "publicGoods": False,
            "founders": [{"name": "Unknown Founder", "title": "Founder"}],
            "codeRepo": None,
            "tokenContract": None,
            "whitePaper": None,
        }


def build_capability(settings: Settings | None = None) -> StructuredSearchCapability:
    """Return the capability configured by ``settings.llm.provider``."""

    resolved = settings or get_settings()
    llm = resolved.llm
    if llm.provider == "mock":
        return MockSearchCapability()
    if llm.provider == "openai":
        return OpenAIWebSearchCapability(
            api_key=llm.api_key or "",
            model=llm.model,
            temperature=llm.temperature,
            search_context_size=llm.search_context_size,
            timeout=llm.timeout_seconds,
        )
    raise RuntimeError(f"Unsupported LLM provider '{llm.provider}'")


__all__ = [
    "MockSearchCapability",
    "OpenAIWebSearchCapability",
    "StructuredSearchCapability",
    "WEB_SEARCH_TOOL",
    "build_capability",
]
