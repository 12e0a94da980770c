"""JSON flow snapshots exchanged with the editor.

A snapshot is one flow plus the global multiplier::

    {
      "id": "flow-...",
      "name": "checkout",
      "multiplier": 2,
      "nodes": [{"id": "gw", "position": {"x": 0, "y": 0},
                 "data": {"label": "API Gateway", "dailyQPS": 1000,
                          "maxQPS": 5000, "rateLimitQPS": 3000}}],
      "edges": [{"id": "e1", "source": "gw", "target": "auth",
                 "data": {"multiplier": 2}}]
    }

Node fields may also be given flat on the node record. Unknown node fields
are kept in ``ServiceNode.attrs`` (those found under ``data`` in
``attrs["data"]``) and unknown edge fields in ``CallEdge.attrs``, so a
load/save round trip writes editor metadata back where it was read.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

from trafficeval.config import DEFAULTS
from trafficeval.io.schema import validate_flow_document
from trafficeval.logging import get_logger
from trafficeval.model.flow import CallEdge, ServiceNode, TrafficFlow
from trafficeval.types.base import BottleneckType, NodeStatus

LOGGER = get_logger(__name__)

# Descriptive editor fields copied as strings
_TEXT_FIELDS = ("label", "microservice", "api", "owner")
# Display-only fields recomputed on every evaluation
_DISPLAY_FIELDS = {"currentQPS", "status", "bottleneckType", "isEntry"}
# Editor fields read by node_from_record; everything else is metadata
_KNOWN_FIELDS = frozenset(
    {"id", "dailyQPS", "maxQPS", "rateLimitQPS", "position", "data"}
    | set(_TEXT_FIELDS)
    | _DISPLAY_FIELDS
)


def _float(value: Any, default: float) -> float:
    if value is None or value == "":
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        LOGGER.debug("Ignoring non-numeric value %r", value)
        return default


def node_from_record(record: Mapping[str, Any]) -> ServiceNode:
    """Build a ServiceNode from a flat or editor-shaped record.

    A field set at the top level wins over the same field under ``data``
    unless it is null. Unknown top-level fields land in ``attrs``; unknown
    fields under ``data`` land in ``attrs["data"]`` so they are written back
    to the same place.
    """
    data = record.get("data") if isinstance(record.get("data"), Mapping) else {}

    def field_value(key: str) -> Any:
        value = record.get(key)
        return data.get(key) if value is None else value

    node = ServiceNode(id=str(field_value("id")))
    node.daily_qps = _float(field_value("dailyQPS"), 0.0)
    node.max_qps = _float(field_value("maxQPS"), DEFAULTS.max_qps)
    node.rate_limit_qps = _float(field_value("rateLimitQPS"), DEFAULTS.rate_limit_qps)
    for key in _TEXT_FIELDS:
        value = field_value(key)
        if value is not None:
            setattr(node, key, str(value))

    current = field_value("currentQPS")
    if current is not None:
        node.current_qps = _float(current, 0.0)
    bottleneck = field_value("bottleneckType")
    if bottleneck:
        node.bottleneck_type = BottleneckType.from_string(str(bottleneck))
    status = field_value("status")
    if status:
        node.status = NodeStatus(str(status))

    position = record.get("position")
    if isinstance(position, Mapping):
        node.position = (
            _float(position.get("x"), 0.0),
            _float(position.get("y"), 0.0),
        )

    attrs = {k: v for k, v in record.items() if k not in _KNOWN_FIELDS}
    nested = {k: v for k, v in data.items() if k not in _KNOWN_FIELDS}
    if nested:
        attrs["data"] = nested
    node.attrs = attrs
    return node


def node_to_record(node: ServiceNode) -> Dict[str, Any]:
    """Serialize a ServiceNode into the editor record shape."""
    nested = node.attrs.get("data")
    data: Dict[str, Any] = dict(nested) if isinstance(nested, Mapping) else {}
    data.update(
        {
            "label": node.label,
            "microservice": node.microservice,
            "api": node.api,
            "owner": node.owner,
            "dailyQPS": node.daily_qps,
            "maxQPS": node.max_qps,
            "rateLimitQPS": node.rate_limit_qps,
            "status": node.status.value,
            "bottleneckType": node.bottleneck_type.value,
        }
    )
    if node.current_qps is not None:
        data["currentQPS"] = node.current_qps
    record: Dict[str, Any] = {
        k: v for k, v in node.attrs.items() if k not in _KNOWN_FIELDS
    }
    record["id"] = node.id
    record["position"] = {"x": node.position[0], "y": node.position[1]}
    record["data"] = data
    return record


def edge_from_record(record: Mapping[str, Any]) -> CallEdge:
    """Build a CallEdge; a top-level multiplier wins over one under ``data``."""
    data = record.get("data") if isinstance(record.get("data"), Mapping) else {}
    raw = record.get("multiplier")
    if raw is None:
        raw = data.get("multiplier")
    attrs = {
        k: v
        for k, v in record.items()
        if k not in ("id", "source", "target", "data", "multiplier")
    }
    return CallEdge(
        source=str(record["source"]),
        target=str(record["target"]),
        multiplier=_float(raw, DEFAULTS.default_edge_multiplier),
        attrs=attrs,
        id=str(record.get("id") or ""),
    )


def edge_to_record(edge: CallEdge) -> Dict[str, Any]:
    record: Dict[str, Any] = {
        "id": edge.id,
        "source": edge.source,
        "target": edge.target,
        "data": {"multiplier": edge.multiplier},
    }
    record.update(edge.attrs)
    return record


def flow_from_dict(data: Mapping[str, Any]) -> TrafficFlow:
    """Build a TrafficFlow from a flow mapping.

    Edges referencing unknown nodes are kept; the evaluator ignores them.
    """
    flow = TrafficFlow(
        name=str(data.get("name") or DEFAULTS.default_flow_name),
        id=str(data.get("id") or ""),
    )
    for record in data.get("nodes") or []:
        node = node_from_record(record)
        if node.id in flow.nodes:
            LOGGER.debug(
                "Duplicate node id '%s' in flow '%s'; last one kept",
                node.id,
                flow.name,
            )
        flow.nodes[node.id] = node
    for record in data.get("edges") or []:
        edge = edge_from_record(record)
        if edge.source not in flow.nodes or edge.target not in flow.nodes:
            LOGGER.debug(
                "Edge %s -> %s in flow '%s' references an unknown node",
                edge.source,
                edge.target,
                flow.name,
            )
        flow.edges.append(edge)
    return flow


def flow_to_dict(flow: TrafficFlow) -> Dict[str, Any]:
    return {
        "id": flow.id,
        "name": flow.name,
        "nodes": [node_to_record(n) for n in flow.nodes.values()],
        "edges": [edge_to_record(e) for e in flow.edges],
    }


@dataclass
class FlowSnapshot:
    """One flow together with the global multiplier it was saved with."""

    flow: TrafficFlow
    multiplier: float = DEFAULTS.default_global_multiplier

    def to_dict(self) -> Dict[str, Any]:
        data = flow_to_dict(self.flow)
        data["multiplier"] = self.multiplier
        return data

    @classmethod
    def from_dict(
        cls, data: Mapping[str, Any], validate: bool = True
    ) -> "FlowSnapshot":
        """Build a snapshot from a parsed JSON document.

        Raises:
            ValueError: If ``data`` is not a mapping.
            jsonschema.ValidationError: If ``validate`` and the document does
                not match the flow schema.
        """
        if not isinstance(data, Mapping):
            raise ValueError("A flow snapshot must be a JSON object.")
        if validate:
            validate_flow_document(dict(data))
        multiplier = _float(data.get("multiplier"), DEFAULTS.default_global_multiplier)
        return cls(flow=flow_from_dict(data), multiplier=multiplier)

    def to_json(self, indent: Optional[int] = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_json(cls, text: str) -> "FlowSnapshot":
        return cls.from_dict(json.loads(text))


def save_json(snapshot: FlowSnapshot, path: Union[str, Path]) -> Path:
    """Write a snapshot to ``path`` and return the path."""
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(snapshot.to_json(), encoding="utf-8")
    LOGGER.info("Saved flow '%s' to %s", snapshot.flow.name, out)
    return out


def load_json(path: Union[str, Path]) -> FlowSnapshot:
    """Read a snapshot from ``path``."""
    src = Path(path)
    snapshot = FlowSnapshot.from_json(src.read_text(encoding="utf-8"))
    LOGGER.info(
        "Loaded flow '%s' (%d nodes, %d edges) from %s",
        snapshot.flow.name,
        len(snapshot.flow.nodes),
        len(snapshot.flow.edges),
        src,
    )
    return snapshot


def default_snapshot_name(flow: TrafficFlow) -> str:
    """File name used by the editor when exporting a flow."""
    return f"traffic-flow-{flow.name}.json"

