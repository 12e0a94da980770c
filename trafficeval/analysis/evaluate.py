"""Flow-level evaluation: run the propagation and merge results into nodes."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from trafficeval.algorithms.propagation import propagate
from trafficeval.config import DEFAULTS
from trafficeval.logging import get_logger
from trafficeval.model.flow import TrafficFlow
from trafficeval.types.base import BottleneckType, NodeStatus
from trafficeval.types.dto import EvaluationResult

LOGGER = get_logger(__name__)


@dataclass(frozen=True)
class FlowEvaluation:
    """Evaluation of one flow under one multiplier.

    Attributes:
        flow_name: Name of the evaluated flow.
        multiplier: Global multiplier used.
        results: One EvaluationResult per node id.
        order: Topological order the propagation walked.
        entry_nodes: Ids of nodes without valid incoming edges.
        unresolved: Ids left out of the order (cycles and nodes fed only
            through them); these carry the zero-flow fallback.
    """

    flow_name: str
    multiplier: float
    results: Dict[str, EvaluationResult]
    order: List[str] = field(default_factory=list)
    entry_nodes: List[str] = field(default_factory=list)
    unresolved: List[str] = field(default_factory=list)

    @property
    def bottlenecks(self) -> List[EvaluationResult]:
        return [r for r in self.results.values() if r.is_bottleneck]

    @property
    def has_cycles(self) -> bool:
        return bool(self.unresolved)

    def status_of(self, node_id: str) -> NodeStatus:
        return NodeStatus.from_bottleneck(self.results[node_id].bottleneck_type)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "flow": self.flow_name,
            "multiplier": self.multiplier,
            "results": {nid: r.to_dict() for nid, r in self.results.items()},
            "order": list(self.order),
            "entry_nodes": list(self.entry_nodes),
            "unresolved": list(self.unresolved),
            "bottlenecks": [r.node_id for r in self.bottlenecks],
        }


def evaluate_flow(
    flow: TrafficFlow, multiplier: Optional[float] = None
) -> FlowEvaluation:
    """Evaluate a TrafficFlow without modifying it.

    Args:
        flow: Flow to evaluate.
        multiplier: Global multiplier; defaults to the configured default.

    Returns:
        FlowEvaluation with results, order and cycle information.
    """
    mult = DEFAULTS.default_global_multiplier if multiplier is None else multiplier
    results, order = propagate(flow.nodes.values(), flow.edges, mult)

    ordered = set(order)
    unresolved = [nid for nid in results if nid not in ordered]
    if unresolved:
        LOGGER.warning(
            "Flow '%s': %d node(s) are on or behind a call cycle and were "
            "assigned zero load: %s",
            flow.name,
            len(unresolved),
            ", ".join(unresolved),
        )

    return FlowEvaluation(
        flow_name=flow.name,
        multiplier=mult,
        results=results,
        order=order,
        entry_nodes=[n.id for n in flow.entry_nodes()],
        unresolved=unresolved,
    )


def apply_results(flow: TrafficFlow, results: Mapping[str, EvaluationResult]) -> None:
    """Write evaluated load, bottleneck type and status into the flow's nodes.

    Nodes without a result are reset to zero load and NORMAL status.
    """
    for node in flow.nodes.values():
        res = results.get(node.id)
        if res is None:
            node.current_qps = 0.0
            node.bottleneck_type = BottleneckType.NONE
            node.status = NodeStatus.NORMAL
            continue
        node.current_qps = res.current_qps
        node.bottleneck_type = res.bottleneck_type
        node.status = NodeStatus.from_bottleneck(res.bottleneck_type)


def refresh_flow(
    flow: TrafficFlow, multiplier: Optional[float] = None
) -> FlowEvaluation:
    """Evaluate a flow and merge the results into its nodes."""
    evaluation = evaluate_flow(flow, multiplier)
    apply_results(flow, evaluation.results)
    return evaluation
