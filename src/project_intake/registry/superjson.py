"""SuperJSON wire codec used by the registry's RPC procedures.

A serialized value is ``{"json": <plain JSON>, "meta": {"values": {...}}}``.
``json`` holds the value with every non-JSON-native leaf replaced by a JSON
stand-in, and ``meta.values`` maps the dot-joined path of each such leaf to its
type annotation so the receiver can restore it exactly. Dates travel as ISO-8601
UTC strings annotated ``["Date"]``. Annotated containers (sets) carry their
children's annotations nested as ``["set", {<relative path>: <annotation>}]``.
"""

from __future__ import annotations

import copy
import json
import math
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Tuple

_DATE = "Date"
_SET = "set"
_NUMBER = "number"
_BIGINT = "bigint"
_CUSTOM = "custom"
_DECIMAL = "Decimal"

# Integers beyond this travel as strings annotated ``["bigint"]``.
MAX_SAFE_INTEGER = 2**53 - 1

Annotation = Any


def escape_key(key: str) -> str:
    return key.replace("\\", "\\\\").replace(".", "\\.")


def parse_path(path: str) -> List[str]:
    """Split a dot-joined path, honouring ``\\.`` escapes."""

    parts: List[str] = []
    current: List[str] = []
    index = 0
    while index < len(path):
        char = path[index]
        if char == "\\" and index + 1 < len(path):
            current.append(path[index + 1])
            index += 2
            continue
        if char == ".":
            parts.append("".join(current))
            current = []
        else:
            current.append(char)
        index += 1
    parts.append("".join(current))
    return parts


def format_datetime(value: datetime) -> str:
    """Render ``value`` as ISO-8601 UTC, keeping microseconds only when they are non-zero."""

    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    if value.microsecond % 1000 == 0:
        fraction = f"{value.microsecond // 1000:03d}"
    else:
        fraction = f"{value.microsecond:06d}"
    return f"{value.strftime('%Y-%m-%dT%H:%M:%S')}.{fraction}Z"


def parse_datetime(value: Any) -> datetime:
    if not isinstance(value, str):
        raise ValueError(f"Date value must be a string, got {type(value).__name__}")
    cleaned = value.strip()
    if cleaned.endswith(("Z", "z")):
        cleaned = f"{cleaned[:-1]}+00:00"
    parsed = datetime.fromisoformat(cleaned)
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed


def _encode_leaf(value: Any) -> Tuple[Any, Annotation | None]:
    if isinstance(value, datetime):
        return format_datetime(value), [_DATE]
    if isinstance(value, date):
        midnight = datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
        return format_datetime(midnight), [_DATE]
    if isinstance(value, Decimal):
        return str(value), [_CUSTOM, _DECIMAL]
    if isinstance(value, int) and not isinstance(value, bool) and abs(value) > MAX_SAFE_INTEGER:
        return str(value), [_BIGINT]
    if isinstance(value, float) and not math.isfinite(value):
        if math.isnan(value):
            return "NaN", [_NUMBER]
        return ("Infinity" if value > 0 else "-Infinity"), [_NUMBER]
    return value, None


def _walk(value: Any, path: List[str], annotations: Dict[str, Annotation]) -> Any:
    if isinstance(value, dict):
        return {str(key): _walk(item, [*path, escape_key(str(key))], annotations) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_walk(item, [*path, str(index)], annotations) for index, item in enumerate(value)]
    if isinstance(value, (set, frozenset)):
        # Children of an annotated container nest under it with paths relative to the set.
        children: Dict[str, Annotation] = {}
        items = [_walk(item, [str(index)], children) for index, item in enumerate(value)]
        annotations[".".join(path)] = [_SET, children] if children else [_SET]
        return items
    encoded, annotation = _encode_leaf(value)
    if annotation is not None:
        annotations[".".join(path)] = annotation
    return encoded


def serialize(value: Any) -> Dict[str, Any]:
    """Return the ``{"json", "meta"}`` envelope for ``value``."""

    annotations: Dict[str, Annotation] = {}
    plain = _walk(value, [], annotations)
    result: Dict[str, Any] = {"json": plain}
    if annotations:
        if list(annotations) == [""]:
            result["meta"] = {"values": annotations[""]}
        else:
            result["meta"] = {"values": annotations}
    return result


def _decode_leaf(value: Any, kind: Any, annotation: Annotation) -> Any:
    if kind == _DATE:
        return parse_datetime(value)
    if kind == _SET:
        if not isinstance(value, list):
            raise ValueError("set value must be a JSON array")
        return set(value)
    if kind == _NUMBER:
        if not isinstance(value, (str, int, float)) or isinstance(value, bool):
            raise ValueError("number value must be a string or number")
        return float(value)
    if kind == _BIGINT:
        if not isinstance(value, (str, int)) or isinstance(value, bool):
            raise ValueError("bigint value must be a string or integer")
        return int(value)
    if kind == _CUSTOM and annotation[1:] == [_DECIMAL]:
        if not isinstance(value, (str, int, float)) or isinstance(value, bool):
            raise ValueError("Decimal value must be a string or number")
        return Decimal(str(value))
    raise ValueError(f"Unsupported superjson annotation: {annotation!r}")


def _apply_node(value: Any, node: Annotation) -> Any:
    """Apply one annotation tree node: ``[kind]`` or ``[kind, {relative path: node}]``."""

    if isinstance(node, str):
        node = [node]
    if not isinstance(node, list) or not node:
        raise ValueError(f"Malformed superjson annotation: {node!r}")
    kind = node[0]
    if kind == _SET and len(node) == 2:
        value = _apply_paths(value, node[1])
        return _decode_leaf(value, kind, node[:1])
    return _decode_leaf(value, kind, node)


def _apply_at(target: Any, parts: List[str], node: Annotation) -> Any:
    if not parts:
        return _apply_node(target, node)
    head, rest = parts[0], parts[1:]
    if isinstance(target, dict):
        target[head] = _apply_at(target[head], rest, node)
    elif isinstance(target, list):
        index = int(head)
        target[index] = _apply_at(target[index], rest, node)
    else:
        raise ValueError(f"Cannot follow superjson path segment {head!r}")
    return target


def _apply_paths(value: Any, annotations: Any) -> Any:
    if not isinstance(annotations, Mapping):
        raise ValueError("superjson meta.values must be an object or an annotation")
    paths = {path: (parse_path(path) if path else []) for path in annotations}
    for path in sorted(paths, key=lambda item: len(paths[item]), reverse=True):
        value = _apply_at(value, paths[path], annotations[path])
    return value


def deserialize(envelope: Mapping[str, Any]) -> Any:
    """Restore the native value from a ``{"json", "meta"}`` envelope.

    Raises:
        ValueError: ``meta`` is malformed or an annotated leaf has the wrong shape.
    """

    if not isinstance(envelope, Mapping):
        raise ValueError("superjson envelope must be an object")
    value = copy.deepcopy(envelope.get("json"))
    meta = envelope.get("meta")
    if meta is None:
        return value
    if not isinstance(meta, Mapping):
        raise ValueError("superjson meta must be an object")
    values = meta.get("values")
    if values is None:
        return value
    if isinstance(values, (list, str)):
        return _apply_node(value, values)
    return _apply_paths(value, values)


def stringify(value: Any) -> str:
    return json.dumps(serialize(value), separators=(",", ":"))


def parse(text: str) -> Any:
    return deserialize(json.loads(text))


__all__ = ["deserialize", "format_datetime", "parse", "parse_datetime", "serialize", "stringify"]
