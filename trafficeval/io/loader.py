"""Workspace documents: several flows and a global multiplier in YAML or JSON.

Example::

    multiplier: 1.5
    flows:
      - name: checkout
        nodes:
          - {id: gw, microservice: api-gateway, dailyQPS: 1000,
             maxQPS: 5000, rateLimitQPS: 3000}
          - {id: auth, microservice: auth, maxQPS: 2000, rateLimitQPS: 1500}
        edges:
          - {source: gw, target: auth, multiplier: 2}
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Union

import yaml

from trafficeval.config import DEFAULTS
from trafficeval.io.schema import validate_workspace_document
from trafficeval.io.snapshot import flow_from_dict, flow_to_dict
from trafficeval.logging import get_logger
from trafficeval.model.workspace import Workspace

LOGGER = get_logger(__name__)


def load_workspace_yaml(yaml_str: str) -> Workspace:
    """Parse, validate and build a Workspace from a YAML (or JSON) string.

    Raises:
        ValueError: If the document is not a mapping at top level, or the
            ``active`` key names no flow.
        jsonschema.ValidationError: On schema violations.
    """
    data = yaml.safe_load(yaml_str)
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ValueError(
            "The workspace document must map to a dictionary at top-level."
        )
    return workspace_from_dict(data)


def workspace_from_dict(data: Dict[str, Any]) -> Workspace:
    validate_workspace_document(data)
    flows = [flow_from_dict(item) for item in data["flows"]]
    workspace = Workspace(
        flows=flows,
        multiplier=float(data.get("multiplier", DEFAULTS.default_global_multiplier)),
    )
    active = data.get("active")
    if active is not None:
        workspace.switch_to(workspace.by_name(active).id)
    LOGGER.debug(
        "Built workspace with %d flow(s), multiplier %s",
        len(workspace.flows),
        workspace.multiplier,
    )
    return workspace


def workspace_to_dict(workspace: Workspace) -> Dict[str, Any]:
    return {
        "multiplier": workspace.multiplier,
        "active": workspace.active.name,
        "flows": [flow_to_dict(f) for f in workspace.flows],
    }


def load_workspace(path: Union[str, Path]) -> Workspace:
    """Read a workspace document from a ``.yaml``/``.yml``/``.json`` file."""
    src = Path(path)
    workspace = load_workspace_yaml(src.read_text(encoding="utf-8"))
    LOGGER.info("Loaded workspace with %d flow(s) from %s", len(workspace.flows), src)
    return workspace


def save_workspace(workspace: Workspace, path: Union[str, Path]) -> Path:
    """Write a workspace document; JSON for ``.json`` paths, YAML otherwise."""
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    data = workspace_to_dict(workspace)
    if out.suffix.lower() == ".json":
        out.write_text(json.dumps(data, indent=2), encoding="utf-8")
    else:
        out.write_text(yaml.safe_dump(data, sort_keys=False), encoding="utf-8")
    LOGGER.info("Saved workspace with %d flow(s) to %s", len(workspace.flows), out)
    return out
