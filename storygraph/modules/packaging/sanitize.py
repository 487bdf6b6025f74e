"""Strip executable payloads from the free-text fields of an imported model."""
from __future__ import annotations

import copy
import re
from typing import Any

_SCRIPT_BLOCK_RE = re.compile(r"<script\b[^<]*(?:(?!</script>)<[^<]*)*</script>", re.IGNORECASE)
_JS_SCHEME_RE = re.compile(r"javascript:", re.IGNORECASE)
_INLINE_HANDLER_RE = re.compile(r"on\w+\s*=", re.IGNORECASE)


def sanitize_text(value: object) -> str:
    text = "" if value is None else str(value)
    text = _SCRIPT_BLOCK_RE.sub("", text)
    text = _JS_SCHEME_RE.sub("", text)
    return _INLINE_HANDLER_RE.sub("", text)


def _sanitize_fields(entity: object, fields: tuple[str, ...]) -> None:
    if not isinstance(entity, dict):
        return
    for name in fields:
        if isinstance(entity.get(name), str):
            entity[name] = sanitize_text(entity[name])


def _entities(model: dict[str, Any], collection: str) -> list[Any]:
    entries = model.get(collection)
    return list(entries.values()) if isinstance(entries, dict) else []


def sanitize_model_text_fields(model: dict[str, Any] | None) -> dict[str, Any]:
    cleaned = copy.deepcopy(model) if isinstance(model, dict) else {}
    for node in _entities(cleaned, "nodes"):
        _sanitize_fields(node, ("text", "id"))
        choices = node.get("choices") if isinstance(node, dict) else None
        for choice in choices if isinstance(choices, list) else []:
            _sanitize_fields(choice, ("label", "id"))
    for collection in ("items", "enemies", "encounters"):
        for entity in _entities(cleaned, collection):
            _sanitize_fields(entity, ("name",))
    return cleaned
