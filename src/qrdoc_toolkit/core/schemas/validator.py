"""
Schema Validation Utilities

Validates marker manifest JSON against `markers.schema.json`.

Two manifest shapes are accepted:
- list form: ``{"version": 1, "markers": [{"page", "link", "artifact", "label"?}]}``
- page-keyed form: ``{"1": [{"link", "artifact", "label"?}], ...}``

Validation fails fast with a ValidationError carrying every schema
violation found, so a broken manifest is reported in one pass.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import jsonschema


MANIFEST_SCHEMA_VERSION = 1

_SCHEMAS: dict[str, dict] = {}


def _load_schema(name: str) -> dict:
    """Load a schema from the schemas directory."""
    if name not in _SCHEMAS:
        schema_path = Path(__file__).parent / f"{name}.schema.json"
        if not schema_path.exists():
            raise FileNotFoundError(f"Schema not found: {schema_path}")
        with open(schema_path, "r", encoding="utf-8") as f:
            _SCHEMAS[name] = json.load(f)
    return _SCHEMAS[name]


class ValidationError(Exception):
    """Raised when data fails schema validation."""

    def __init__(self, message: str, path: str = "", errors: list[str] | None = None):
        super().__init__(message)
        self.path = path
        self.errors = errors or []


def is_list_form(data: Any) -> bool:
    """True when ``data`` uses the ``{"version", "markers"}`` shape."""
    return isinstance(data, dict) and "markers" in data


def validate_manifest(data: Any) -> None:
    """
    Validate a marker manifest.

    Args:
        data: Parsed JSON document

    Raises:
        ValidationError: If data does not match either manifest shape

    Example:
        >>> validate_manifest({"version": 1, "markers": []})
        >>> validate_manifest({"1": [{"link": "https://a.b/c", "artifact": "c.png"}]})
    """
    if not isinstance(data, dict):
        raise ValidationError(
            f"Manifest must be a JSON object, got {type(data).__name__}",
            path="",
        )

    if is_list_form(data) and data.get("version") != MANIFEST_SCHEMA_VERSION:
        raise ValidationError(
            f"Unsupported manifest version: {data.get('version')!r} (expected {MANIFEST_SCHEMA_VERSION})",
            path="version",
        )

    schema = _load_schema("markers")

    # oneOf errors are opaque; validate against the branch the data is aiming at
    branch = schema["oneOf"][0 if is_list_form(data) else 1]
    branch_schema = dict(branch, **{"$defs": schema["$defs"]})
    errors = sorted(
        jsonschema.Draft202012Validator(branch_schema).iter_errors(data),
        key=lambda e: [str(p) for p in e.absolute_path],
    )
    if errors:
        first = errors[0]
        raise ValidationError(
            f"Schema validation failed: {first.message}",
            path=".".join(str(p) for p in first.absolute_path),
            errors=[
                f"{'.'.join(str(p) for p in e.absolute_path) or '<root>'}: {e.message}"
                for e in errors
            ],
        )
