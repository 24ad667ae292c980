"""Analyze response contract.

The analyze payload is what the upload page renders (summary table + raw JSON
panel). This module defines a JSON Schema for it and a validation helper.

Important:
- `summary.rows[].negative` comes from the title heuristic and
  `verifiedCount` from page verification. They are reported side by side and
  never merged.
"""

from __future__ import annotations

from typing import Any, Dict, List

from jsonschema import Draft202012Validator

from negcheck.rules.keyword_rules import CATEGORY_ORDER


_CATEGORY_NAMES = [c.value for c in CATEGORY_ORDER]

_COUNT_MAP: Dict[str, Any] = {
    "type": "object",
    "propertyNames": {"enum": _CATEGORY_NAMES},
    "additionalProperties": {"type": "integer", "minimum": 0},
}

ANALYZE_RESPONSE_SCHEMA: Dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "type": "object",
    "required": ["summary", "debugCount", "verifiedCount", "records", "sample", "partial", "degraded"],
    "properties": {
        "summary": {
            "type": "object",
            "required": ["rows", "totals"],
            "properties": {
                "rows": {
                    "type": "array",
                    "minItems": len(_CATEGORY_NAMES),
                    "maxItems": len(_CATEGORY_NAMES),
                    "items": {
                        "type": "object",
                        "required": ["category", "total", "negative"],
                        "properties": {
                            "category": {"enum": _CATEGORY_NAMES},
                            "total": {"type": "integer", "minimum": 0},
                            "negative": {"type": "integer", "minimum": 0},
                        },
                        "additionalProperties": False,
                    },
                },
                "totals": {
                    "type": "object",
                    "required": ["total", "negative"],
                    "properties": {
                        "total": {"type": "integer", "minimum": 0},
                        "negative": {"type": "integer", "minimum": 0},
                    },
                    "additionalProperties": False,
                },
            },
            "additionalProperties": False,
        },
        "debugCount": _COUNT_MAP,
        "verifiedCount": _COUNT_MAP,
        "records": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["category", "entity", "title", "url", "finding", "note"],
                "properties": {
                    "category": {"enum": _CATEGORY_NAMES},
                    "entity": {"type": "string", "minLength": 1},
                    "title": {"type": "string"},
                    "url": {"type": "string"},
                    "finding": {"enum": ["Yes", "No"]},
                    "note": {"type": "string"},
                },
                "anyOf": [
                    {"properties": {"title": {"minLength": 1}}},
                    {"properties": {"url": {"minLength": 1}}},
                ],
                "additionalProperties": False,
            },
        },
        "sample": {"type": "array", "items": {"type": "string"}, "maxItems": 120},
        "partial": {"type": "boolean"},
        "degraded": {"type": "integer", "minimum": 0},
    },
    "additionalProperties": True,
}


_VALIDATOR = Draft202012Validator(ANALYZE_RESPONSE_SCHEMA)


def validate_analyze_response(payload: Dict[str, Any]) -> List[str]:
    """Return a list of human-readable validation errors (empty means valid)."""
    errors = []
    for e in sorted(_VALIDATOR.iter_errors(payload), key=lambda x: [str(p) for p in x.path]):
        path = ".".join(str(p) for p in e.path) if e.path else "<root>"
        errors.append(f"{path}: {e.message}")
    return errors
