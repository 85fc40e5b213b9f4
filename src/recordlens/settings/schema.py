"""Schema helpers for the recordlens settings file."""

from __future__ import annotations

from copy import deepcopy
from typing import Any

from jsonschema import Draft202012Validator

from ..config import DEBOUNCE_WINDOW_MS, LISTING_DEBOUNCE_WINDOW_MS

SETTINGS_SCHEMA: dict[str, Any] = {
    "$id": "recordlens/settings.schema.json",
    "type": "object",
    "required": ["schema", "search", "listing"],
    "properties": {
        "schema": {"const": "recordlens/settings@1"},
        "search": {
            "type": "object",
            "properties": {
                "debounce_ms": {"type": "integer", "minimum": 0},
                "default_filter": {"type": ["string", "null"]},
                "enrich_records": {"type": "boolean"},
            },
            "additionalProperties": True,
        },
        "listing": {
            "type": "object",
            "properties": {
                "debounce_ms": {"type": "integer", "minimum": 0},
                "sort_key": {"type": "string", "enum": ["updated", "model", "tag"]},
                "sort_order": {"type": "string", "enum": ["asc", "desc"]},
            },
            "additionalProperties": True,
        },
    },
    "additionalProperties": True,
}

DEFAULT_SETTINGS: dict[str, Any] = {
    "schema": "recordlens/settings@1",
    "search": {
        "debounce_ms": DEBOUNCE_WINDOW_MS,
        "default_filter": None,
        "enrich_records": False,
    },
    "listing": {
        "debounce_ms": LISTING_DEBOUNCE_WINDOW_MS,
        "sort_key": "updated",
        "sort_order": "desc",
    },
}

_VALIDATOR = Draft202012Validator(SETTINGS_SCHEMA)


def _merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    merged = deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = deepcopy(value)
    return merged


def merge_with_defaults(payload: dict[str, Any] | None) -> dict[str, Any]:
    """Overlay *payload* on :data:`DEFAULT_SETTINGS` and validate the result.

    Raises ``jsonschema.ValidationError`` when the merged document is invalid.
    """

    merged = _merge(DEFAULT_SETTINGS, payload or {})
    _VALIDATOR.validate(merged)
    return merged


__all__ = ["DEFAULT_SETTINGS", "SETTINGS_SCHEMA", "merge_with_defaults"]
