"""Command-line interface for trafficeval."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from time import perf_counter
from typing import Any, Dict, List, Optional

from trafficeval.analysis.evaluate import FlowEvaluation
from trafficeval.io.loader import load_workspace, save_workspace
from trafficeval.io.snapshot import FlowSnapshot, load_json, save_json
from trafficeval.io.workbook import export_workbook, import_workbook
from trafficeval.logging import configure_cli_logging, get_logger
from trafficeval.model.flow import TrafficFlow
from trafficeval.model.workspace import Workspace

logger = get_logger(__name__)

_WORKBOOK_SUFFIXES = {".xlsx", ".xlsm"}
_YAML_SUFFIXES = {".yaml", ".yml"}


def _format_table(
    headers: List[str],
    rows: List[List[str]],
    min_width: int = 8,
) -> str:
    """Format data as a simple ASCII table.

    Args:
        headers: Column headers
        rows: Data rows
        min_width: Minimum column width

    Returns:
        Formatted table string
    """
    if not rows:
        return ""

    all_data = [headers] + rows
    col_widths = []
    for col_idx in range(len(headers)):
        max_width = max(len(str(row[col_idx])) for row in all_data)
        col_widths.append(max(max_width, min_width))

    def format_row(row_data: List[str]) -> str:
        return "   " + " | ".join(
            f"{str(item):<{col_widths[i]}}" for i, item in enumerate(row_data)
        )

    lines = [format_row(headers)]
    lines.append("   " + "-+-".join("-" * width for width in col_widths))
    for row in rows:
        lines.append(format_row(row))
    return "\n".join(lines)


def _format_qps(value: Any) -> str:
    """Return a rate with thousands separators and up to two decimals.

    Examples:
        1000.0 -> "1,000"; 12.5 -> "12.5".
    """
    try:
        v = float(value)
    except (TypeError, ValueError):
        return str(value)
    s = f"{v:,.2f}"
    if "." in s:
        s = s.rstrip("0").rstrip(".")
    return s


def _format_duration(seconds: float) -> str:
    if seconds < 1.0:
        return f"{seconds * 1000.0:.1f} ms"
    return f"{seconds:.2f} s"


def _results_path(
    input_path: Path, output_dir: Optional[Path], override: Optional[Path]
) -> Path:
    """Where ``evaluate`` writes its results JSON.

    An explicit ``--results`` path wins; a relative one is placed under
    ``--output`` when that is given. Otherwise the file is named after the
    input, ``<stem>.results.json``, in ``--output`` or the working directory.
    """
    if override is not None:
        if output_dir is None or override.is_absolute():
            return override
        return output_dir / override
    name = f"{input_path.stem}.results.json"
    return Path(name) if output_dir is None else output_dir / name


def _load_workspace(path: Path) -> Workspace:
    """Load a workspace from a workbook, YAML document or JSON file.

    A JSON file holding a ``flows`` list is a workspace document; any other
    JSON object is read as a single-flow snapshot.
    """
    suffix = path.suffix.lower()
    if suffix in _WORKBOOK_SUFFIXES:
        return import_workbook(path)
    if suffix in _YAML_SUFFIXES:
        return load_workspace(path)
    if suffix == ".json":
        data = json.loads(path.read_text(encoding="utf-8"))
        if isinstance(data, dict) and "flows" in data:
            return load_workspace(path)
        snapshot = load_json(path)
        return Workspace(flows=[snapshot.flow], multiplier=snapshot.multiplier)
    raise ValueError(
        f"Unsupported input format '{path.suffix}'. "
        "Use .json, .yaml/.yml or .xlsx files."
    )


def _select_flows(workspace: Workspace, flow_name: Optional[str]) -> List[TrafficFlow]:
    if flow_name is None:
        return list(workspace.flows)
    return [workspace.by_name(flow_name)]


def _print_evaluation(flow: TrafficFlow, evaluation: FlowEvaluation) -> None:
    print(f"\n📊 Flow: {flow.name} (multiplier {_format_qps(evaluation.multiplier)})")
    rows = []
    for node in flow.nodes.values():
        res = evaluation.results[node.id]
        rows.append(
            [
                node.id,
                node.display_name,
                _format_qps(res.current_qps),
                _format_qps(node.rate_limit_qps),
                _format_qps(node.max_qps),
                evaluation.status_of(node.id).value,
            ]
        )
    table = _format_table(
        ["ID", "Service", "Current QPS", "Rate Limit", "Max QPS", "Status"], rows
    )
    if table:
        print(table)
    else:
        print("   (no nodes)")

    bottlenecks = evaluation.bottlenecks
    if bottlenecks:
        print(f"   ⚠️  Bottlenecks: {len(bottlenecks)}")
        for res in bottlenecks:
            print(f"      - {res.node_id}: {res.bottleneck_type.value}")
    if evaluation.unresolved:
        print(
            "   ⚠️  Nodes on or behind a call cycle (load not computed): "
            + ", ".join(evaluation.unresolved)
        )


def _evaluate(
    path: Path,
    multiplier: Optional[float],
    flow_name: Optional[str],
    results_override: Optional[Path],
    no_results: bool,
    stdout: bool,
    output_dir: Optional[Path],
) -> None:
    """Evaluate flows from an input file and export results as JSON by default."""
    logger.info(f"Loading flows from: {path}")
    _start_time = perf_counter()

    try:
        workspace = _load_workspace(path)
        if multiplier is not None:
            workspace.multiplier = multiplier

        payload: Dict[str, Any] = {"multiplier": workspace.multiplier, "flows": {}}
        for flow in _select_flows(workspace, flow_name):
            evaluation = workspace.evaluate(flow.id)
            payload["flows"][flow.name] = evaluation.to_dict()
            _print_evaluation(flow, evaluation)

        json_str = json.dumps(payload, indent=2, default=str)
        if not no_results:
            effective_output = _results_path(path, output_dir, results_override)
            effective_output.parent.mkdir(parents=True, exist_ok=True)
            logger.info(f"Writing results to: {effective_output}")
            effective_output.write_text(json_str)
            print(f"✅ Results written to: {effective_output}")
        if stdout:
            print(json_str)

        _elapsed = perf_counter() - _start_time
        logger.info(f"Evaluation completed in {_format_duration(_elapsed)}")

    except FileNotFoundError:
        logger.error(f"Input file not found: {path}")
        print(f"❌ ERROR: Input file not found: {path}")
        sys.exit(1)
    except Exception as e:
        logger.error(f"Failed to evaluate flows: {type(e).__name__}: {e}")
        print(f"❌ ERROR: Failed to evaluate flows: {type(e).__name__}: {e}")
        sys.exit(1)


def _inspect(path: Path, detail: bool) -> None:
    """Print a structural overview of every flow in the input file."""
    logger.info(f"Inspecting: {path}")
    try:
        workspace = _load_workspace(path)

        print("\n✅ Input loaded")
        print(f"   Flows: {len(workspace.flows)}")
        print(f"   Global Multiplier: {_format_qps(workspace.multiplier)}")
        print(f"   Active Flow: {workspace.active.name}")

        for flow in workspace.flows:
            evaluation = workspace.evaluate(flow.id)
            valid = sum(1 for _ in flow.valid_edges())
            dangling = len(flow.edges) - valid
            print(f"\n📁 {flow.name}")
            print(f"   Nodes: {len(flow.nodes):,}")
            print(f"   Edges: {len(flow.edges):,}")
            if dangling:
                print(f"   Edges with unknown endpoints (ignored): {dangling:,}")
            entries = ", ".join(evaluation.entry_nodes) or "none"
            print(f"   Entry Nodes: {entries}")
            if evaluation.unresolved:
                print("   Cyclic Nodes: " + ", ".join(evaluation.unresolved))
            if detail:
                rows = [
                    [
                        n.id,
                        n.microservice,
                        n.api,
                        n.owner,
                        _format_qps(n.daily_qps),
                        _format_qps(n.rate_limit_qps),
                        _format_qps(n.max_qps),
                    ]
                    for n in flow.nodes.values()
                ]
                headers = [
                    "ID",
                    "Service",
                    "API",
                    "Owner",
                    "Baseline",
                    "Rate Limit",
                    "Max QPS",
                ]
                table = _format_table(headers, rows)
                if table:
                    print(table)
                edge_rows = [
                    [e.source, e.target, _format_qps(e.multiplier)] for e in flow.edges
                ]
                table = _format_table(["Source", "Target", "Multiplier"], edge_rows)
                if table:
                    print(table)

    except FileNotFoundError:
        logger.error(f"Input file not found: {path}")
        print(f"❌ ERROR: Input file not found: {path}")
        sys.exit(1)
    except Exception as e:
        logger.error(f"Failed to inspect input: {type(e).__name__}: {e}")
        print(f"❌ ERROR: Failed to inspect input: {type(e).__name__}: {e}")
        sys.exit(1)


def _export(source: Path, target: Path, flow_name: Optional[str]) -> None:
    """Convert between formats; a JSON target receives one flow snapshot."""
    try:
        workspace = _load_workspace(source)
        suffix = target.suffix.lower()
        if suffix in _WORKBOOK_SUFFIXES:
            export_workbook(workspace, target)
        elif suffix in _YAML_SUFFIXES:
            workspace.evaluate_all()
            save_workspace(workspace, target)
        elif suffix == ".json":
            flow = (
                workspace.active if flow_name is None else workspace.by_name(flow_name)
            )
            workspace.evaluate(flow.id)
            save_json(FlowSnapshot(flow, workspace.multiplier), target)
        else:
            raise ValueError(
                f"Unsupported output format '{target.suffix}'. "
                "Use .json, .yaml/.yml or .xlsx files."
            )
        print(f"✅ Exported to: {target}")

    except FileNotFoundError:
        logger.error(f"Input file not found: {source}")
        print(f"❌ ERROR: Input file not found: {source}")
        sys.exit(1)
    except Exception as e:
        logger.error(f"Failed to export: {type(e).__name__}: {e}")
        print(f"❌ ERROR: Failed to export: {type(e).__name__}: {e}")
        sys.exit(1)


def main(argv: Optional[List[str]] = None) -> None:
    """Entry point for the ``trafficeval`` command.

    Args:
        argv: Optional list of command-line arguments. If ``None``, ``sys.argv``
            is used.
    """
    parser = argparse.ArgumentParser(
        prog="trafficeval",
        description=(
            "Propagate request load through service call graphs and flag bottlenecks."
        ),
    )

    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Enable debug logging"
    )
    parser.add_argument(
        "--quiet", action="store_true", help="Suppress informational logs"
    )

    subparsers = parser.add_subparsers(
        dest="command",
        required=True,
        title="Available commands",
        metavar="{evaluate,inspect,export}",
        help="Available commands",
    )

    evaluate_parser = subparsers.add_parser(
        "evaluate", help="Evaluate flows and report bottlenecks"
    )
    evaluate_parser.add_argument(
        "input",
        type=Path,
        help="Flow snapshot (.json), workspace (.yaml) or workbook (.xlsx)",
    )
    evaluate_parser.add_argument(
        "--multiplier",
        "-m",
        type=float,
        default=None,
        help="Override the global traffic multiplier",
    )
    evaluate_parser.add_argument(
        "--flow", "-f", default=None, help="Evaluate only the flow with this name"
    )
    evaluate_parser.add_argument(
        "--results",
        "-r",
        type=Path,
        default=None,
        help=(
            "Export results to JSON file (default: <input_name>.results.json;"
            " placed under --output when provided)"
        ),
    )
    evaluate_parser.add_argument(
        "--no-results",
        action="store_true",
        help="Disable results file generation",
    )
    evaluate_parser.add_argument(
        "--stdout",
        action="store_true",
        help="Print results to stdout",
    )
    evaluate_parser.add_argument(
        "--output",
        "-o",
        type=Path,
        default=None,
        help="Output directory for the results file",
    )

    inspect_parser = subparsers.add_parser(
        "inspect", help="Inspect the structure of flows"
    )
    inspect_parser.add_argument("input", type=Path, help="Input file")
    inspect_parser.add_argument(
        "--detail",
        "-d",
        action="store_true",
        help="Show complete node and edge tables",
    )

    export_parser = subparsers.add_parser(
        "export", help="Convert flows to another format"
    )
    export_parser.add_argument("input", type=Path, help="Input file")
    export_parser.add_argument(
        "target", type=Path, help="Output file (.json, .yaml/.yml or .xlsx)"
    )
    export_parser.add_argument(
        "--flow", "-f", default=None, help="Flow to write when exporting to JSON"
    )

    effective_args = sys.argv[1:] if argv is None else argv

    if not effective_args:
        parser.print_help()
        raise SystemExit(0)

    args = parser.parse_args(effective_args)

    if configure_cli_logging(args.verbose, args.quiet) == logging.DEBUG:
        logger.debug("Debug logging enabled")

    if args.command == "evaluate":
        _evaluate(
            path=args.input,
            multiplier=args.multiplier,
            flow_name=args.flow,
            results_override=args.results,
            no_results=args.no_results,
            stdout=args.stdout,
            output_dir=args.output,
        )
    elif args.command == "inspect":
        _inspect(args.input, args.detail)
    elif args.command == "export":
        _export(args.input, args.target, args.flow)


if __name__ == "__main__":
    main()
