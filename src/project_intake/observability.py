"""Structured event logging for pipeline stages."""

from __future__ import annotations

import json
import logging
import time
from contextlib import contextmanager
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Iterator

from pydantic import BaseModel

from project_intake.settings import Settings, get_settings

_EVENT_LOGGER = logging.getLogger("project_intake.observability")
_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def _jsonable(value: Any) -> Any:
    """Reduce ``value`` to JSON-friendly primitives; unknown objects become ``str``."""

    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", by_alias=True)
    if isinstance(value, dict):
        return {str(key): _jsonable(item) for key, item in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [_jsonable(item) for item in value]
    return str(value)


class Observability:
    """Emit one log record per pipeline event, tagged with the component that raised it.

    With ``observability.structured_logging`` enabled each record is a single
    JSON object; otherwise it is ``"<event> | <fields>"`` for humans.
    """

    def __init__(
        self,
        *,
        settings: Settings,
        component: str | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.component = component or "intake"
        self.service = settings.observability.service_name
        self.structured = bool(settings.observability.structured_logging)
        self._logger = logger or _EVENT_LOGGER

    def _render(self, event: str, fields: dict[str, Any]) -> dict[str, Any]:
        record = {key: _jsonable(value) for key, value in fields.items() if value is not None}
        record.update(
            event=event,
            component=self.component,
            service=self.service,
            timestamp=datetime.now(timezone.utc).isoformat(),
        )
        return record

    def emit_event(self, event: str, **fields: Any) -> None:
        record = self._render(event, fields)
        if self.structured:
            self._logger.info(json.dumps(record, sort_keys=True))
        else:
            self._logger.info("%s | %s", event, record)

    @contextmanager
    def timed(self, event: str, **fields: Any) -> Iterator[None]:
        """Bracket a stage with ``<event>.started`` and ``<event>.finished`` (outcome, elapsed_ms)."""

        self.emit_event(f"{event}.started", **fields)
        began = time.perf_counter()
        outcome = "error"
        try:
            yield
            outcome = "ok"
        finally:
            elapsed_ms = round((time.perf_counter() - began) * 1000, 2)
            self.emit_event(f"{event}.finished", outcome=outcome, elapsed_ms=elapsed_ms, **fields)


def get_observability(*, component: str | None = None, settings: Settings | None = None) -> Observability:
    return Observability(settings=settings or get_settings(), component=component)


def configure_logging(settings: Settings | None = None) -> None:
    """Configure root logging from ``settings.runtime.log_level``."""

    resolved = settings or get_settings()
    level = getattr(logging, resolved.runtime.log_level.upper(), logging.INFO)
    logging.basicConfig(level=level, format=_LOG_FORMAT)


__all__ = ["Observability", "configure_logging", "get_observability"]
