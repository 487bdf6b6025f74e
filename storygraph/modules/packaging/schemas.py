from __future__ import annotations

from typing import Any

from jsonschema import Draft202012Validator
from pydantic import BaseModel, ConfigDict, Field

MANIFEST_REQUIRED_FIELDS = ("storyId", "version", "title", "author")

MANIFEST_SCHEMA: dict[str, Any] = {
    "type": "object",
    "required": list(MANIFEST_REQUIRED_FIELDS),
    "properties": {key: {"type": "string", "pattern": r"\S"} for key in MANIFEST_REQUIRED_FIELDS},
}

_MANIFEST_VALIDATOR = Draft202012Validator(MANIFEST_SCHEMA)


class StoryPackage(BaseModel):
    """Import body. Kept loose so shape problems surface as package diagnostics."""

    model_config = ConfigDict(extra="ignore")

    manifest: Any = None
    model: dict[str, Any] = Field(default_factory=dict)
    assets: list[Any] = Field(default_factory=list)


def manifest_problems(manifest: object) -> list[str]:
    return [error.message for error in _MANIFEST_VALIDATOR.iter_errors(manifest)]


def is_valid_manifest(manifest: object) -> bool:
    return _MANIFEST_VALIDATOR.is_valid(manifest)
