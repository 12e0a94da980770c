"""Spreadsheet import/export of a whole workspace.

The workbook has three sheets:

- ``Nodes``: one row per service node. Rows belong to a flow through the
  ``Tab Name`` column; ``ID`` is a 1-based row id unique within the flow.
- ``Edges``: one row per call. Endpoints are resolved by ``From ID``/``To ID``
  and, when ids are missing or unknown, by the (microservice, API) pair.
- ``Config``: a single ``Global Multiplier`` row.

Imported flows are auto-laid-out and evaluated.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

import pandas as pd

from trafficeval.analysis.evaluate import refresh_flow
from trafficeval.config import DEFAULTS
from trafficeval.layout import auto_layout
from trafficeval.logging import get_logger
from trafficeval.model.flow import CallEdge, ServiceNode, TrafficFlow
from trafficeval.model.workspace import Workspace, check_unique_names

LOGGER = get_logger(__name__)

NODES_SHEET = "Nodes"
EDGES_SHEET = "Edges"
CONFIG_SHEET = "Config"

NODE_COLUMNS = [
    "ID",
    "Tab Name",
    "Microservice",
    "API",
    "Baseline QPS",
    "Current Evaluated QPS",
    "Max QPS",
    "Rate Limit QPS",
    "Status",
    "Owner",
]
EDGE_COLUMNS = [
    "From ID",
    "To ID",
    "Tab Name",
    "From Microservice",
    "From API",
    "To Microservice",
    "To API",
    "Call Multiplier",
]


def _missing(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    return isinstance(value, str) and not value.strip()


def _cell(row: Mapping[str, Any], *keys: str) -> Any:
    """Return the first present, non-empty value among ``keys``."""
    for key in keys:
        value = row.get(key)
        if not _missing(value):
            return value
    return None


def _text(value: Any) -> str:
    return "" if _missing(value) else str(value).strip()


def _number(value: Any, default: float) -> float:
    if _missing(value):
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _row_key(value: Any) -> Optional[str]:
    """Normalize a row id cell; Excel may hand integers back as floats."""
    if _missing(value):
        return None
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value).strip()


@dataclass
class _FlowBuilder:
    """Per-flow state while reading the workbook."""

    flow: TrafficFlow
    lookup: Dict[str, str] = field(default_factory=dict)

    def register(self, node: ServiceNode, row_id: Optional[str]) -> None:
        if row_id is not None:
            self.lookup[f"id:{row_id}"] = node.id
        self.lookup.setdefault(f"name:{node.microservice}|{node.api}", node.id)

    def resolve(self, row_id: Optional[str], service: str, api: str) -> Optional[str]:
        if row_id is not None and f"id:{row_id}" in self.lookup:
            return self.lookup[f"id:{row_id}"]
        return self.lookup.get(f"name:{service}|{api}")


def _records(sheets: Mapping[str, pd.DataFrame], name: str) -> List[Dict[str, Any]]:
    frame = sheets.get(name)
    if frame is None:
        return []
    frame = frame.astype(object).where(pd.notna(frame), None)
    return frame.to_dict("records")


def read_workbook(sheets: Mapping[str, pd.DataFrame]) -> Workspace:
    """Build a Workspace from already-loaded sheets (name -> DataFrame).

    Raises:
        ValueError: If there is no ``Nodes`` sheet.
    """
    if NODES_SHEET not in sheets:
        raise ValueError(f'Workbook must have a "{NODES_SHEET}" sheet.')

    builders: Dict[str, _FlowBuilder] = {}
    for index, row in enumerate(_records(sheets, NODES_SHEET)):
        tab = _text(row.get("Tab Name")) or DEFAULTS.default_flow_name
        builder = builders.get(tab)
        if builder is None:
            builder = builders[tab] = _FlowBuilder(TrafficFlow(name=tab))

        microservice = _text(row.get("Microservice"))
        if not microservice:
            LOGGER.debug("Skipping node row %d in '%s': no microservice", index, tab)
            continue
        api = _text(row.get("API"))
        node = ServiceNode(
            id=f"node-{tab}-{index}",
            daily_qps=_number(_cell(row, "Baseline QPS", "Daily QPS", "QPS"), 0.0),
            max_qps=_number(row.get("Max QPS"), DEFAULTS.max_qps),
            rate_limit_qps=_number(row.get("Rate Limit QPS"), DEFAULTS.rate_limit_qps),
            label=microservice,
            microservice=microservice,
            api=api,
            owner=_text(row.get("Owner")),
        )
        builder.flow.add_node(node)
        builder.register(node, _row_key(_cell(row, "ID", "Id", "id")))

    for row in _records(sheets, EDGES_SHEET):
        tab = _text(row.get("Tab Name")) or DEFAULTS.default_flow_name
        builder = builders.get(tab)
        if builder is None:
            LOGGER.debug("Skipping edge row for unknown flow '%s'", tab)
            continue
        source = builder.resolve(
            _row_key(_cell(row, "From ID", "FromId")),
            _text(row.get("From Microservice")),
            _text(row.get("From API")),
        )
        target = builder.resolve(
            _row_key(_cell(row, "To ID", "ToId")),
            _text(row.get("To Microservice")),
            _text(row.get("To API")),
        )
        if source is None or target is None:
            LOGGER.debug("Skipping unresolved edge row in '%s': %s", tab, row)
            continue
        builder.flow.add_edge(
            CallEdge(
                source,
                target,
                multiplier=_number(
                    row.get("Call Multiplier"), DEFAULTS.default_edge_multiplier
                ),
            )
        )

    multiplier = DEFAULTS.default_global_multiplier
    config_rows = _records(sheets, CONFIG_SHEET)
    if config_rows:
        multiplier = _number(
            _cell(config_rows[0], "Global Multiplier", "Multiplier"), multiplier
        )

    flows = [b.flow for b in builders.values()]
    for flow in flows:
        auto_layout(flow)
        refresh_flow(flow, multiplier)
    return Workspace(flows=flows, multiplier=multiplier)


def import_workbook(path: Union[str, Path]) -> Workspace:
    """Read a workbook file into a Workspace."""
    src = Path(path)
    sheets = pd.read_excel(src, sheet_name=None)
    workspace = read_workbook(sheets)
    LOGGER.info("Imported %d flow(s) from %s", len(workspace.flows), src)
    return workspace


def build_tables(workspace: Workspace) -> Dict[str, pd.DataFrame]:
    """Evaluate every flow and return the three sheets as DataFrames.

    Row ids restart at 1 in each flow and rows are tied to their flow by
    ``Tab Name``. Edges with an unknown endpoint are left out.

    Raises:
        ValueError: If two flows share a name.
    """
    check_unique_names(workspace.flows)
    workspace.evaluate_all()
    node_rows: List[Dict[str, Any]] = []
    edge_rows: List[Dict[str, Any]] = []

    for flow in workspace.flows:
        row_ids: Dict[str, int] = {}
        for idx, node in enumerate(flow.nodes.values(), start=1):
            row_ids[node.id] = idx
            node_rows.append(
                {
                    "ID": idx,
                    "Tab Name": flow.name,
                    "Microservice": node.microservice or node.label,
                    "API": node.api,
                    "Baseline QPS": node.daily_qps,
                    "Current Evaluated QPS": node.current_qps,
                    "Max QPS": node.max_qps,
                    "Rate Limit QPS": node.rate_limit_qps,
                    "Status": node.status.value,
                    "Owner": node.owner,
                }
            )
        for edge in flow.valid_edges():
            src = flow.nodes[edge.source]
            dst = flow.nodes[edge.target]
            edge_rows.append(
                {
                    "From ID": row_ids[edge.source],
                    "To ID": row_ids[edge.target],
                    "Tab Name": flow.name,
                    "From Microservice": src.microservice or src.label,
                    "From API": src.api,
                    "To Microservice": dst.microservice or dst.label,
                    "To API": dst.api,
                    "Call Multiplier": edge.multiplier,
                }
            )

    return {
        NODES_SHEET: pd.DataFrame(node_rows, columns=NODE_COLUMNS),
        EDGES_SHEET: pd.DataFrame(edge_rows, columns=EDGE_COLUMNS),
        CONFIG_SHEET: pd.DataFrame([{"Global Multiplier": workspace.multiplier}]),
    }


def export_workbook(workspace: Workspace, path: Union[str, Path]) -> Path:
    """Evaluate all flows and write the workbook to ``path``."""
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    tables = build_tables(workspace)
    with pd.ExcelWriter(out, engine="openpyxl") as writer:
        for name, frame in tables.items():
            frame.to_excel(writer, sheet_name=name, index=False)
    LOGGER.info("Exported %d flow(s) to %s", len(workspace.flows), out)
    return out
