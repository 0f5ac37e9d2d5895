"""Validation utilities for exported spritesheet metadata."""

from __future__ import annotations

import json
from pathlib import Path

import jsonschema

_SCHEMA_PATH = Path(__file__).parent / "schemas" / "spritesheet.schema.json"


def validate_metadata(data: dict[str, object]) -> None:
    """Validate a metadata document against spritesheet.schema.json.

    Parameters
    ----------
    data:
        The metadata dictionary to validate.

    Raises
    ------
    jsonschema.ValidationError
        If the data does not conform to the schema.
    """
    schema = json.loads(_SCHEMA_PATH.read_text())
    jsonschema.validate(data, schema)
