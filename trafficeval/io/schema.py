"""Packaged JSON schema for flow snapshots and workspace documents."""

from __future__ import annotations

import json
from functools import lru_cache
from importlib import resources
from typing import Any, Dict

import jsonschema


@lru_cache(maxsize=1)
def load_schema() -> Dict[str, Any]:
    """Return the packaged workspace schema.

    Raises:
        RuntimeError: If the schema file is missing from the installation.
    """
    try:
        with (
            resources.files("trafficeval.schemas")
            .joinpath("workspace.json")
            .open("r", encoding="utf-8")
        ) as f:
            return json.load(f)
    except FileNotFoundError as exc:  # pragma: no cover
        raise RuntimeError(
            "Failed to locate packaged schema 'trafficeval/schemas/workspace.json'."
        ) from exc


def validate_workspace_document(data: Dict[str, Any]) -> None:
    """Validate a workspace document (``multiplier`` + ``flows``).

    Raises:
        jsonschema.ValidationError: On schema violations.
    """
    jsonschema.validate(data, load_schema())


def validate_flow_document(data: Dict[str, Any]) -> None:
    """Validate a single flow snapshot against the ``flow`` definition.

    Raises:
        jsonschema.ValidationError: On schema violations.
    """
    schema = load_schema()
    flow_schema = {
        "$schema": schema["$schema"],
        "$defs": schema["$defs"],
        "$ref": "#/$defs/flow",
    }
    jsonschema.validate(data, flow_schema)
