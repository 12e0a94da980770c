"""trafficeval: request load propagation and bottleneck detection for service graphs.

Model microservice endpoints as nodes with a baseline rate, a rate limit and a
capacity, connect them with call edges carrying a fan-out multiplier, and
compute the load arriving at every node under a global traffic multiplier.

Primary API:
    evaluate_traffic() - Pure evaluator over node/edge objects or records
    evaluate_flow() - Evaluate a TrafficFlow and report cycles and bottlenecks
    TrafficFlow, ServiceNode, CallEdge - Flow model
    Workspace - Several flows sharing one multiplier

Example:
    from trafficeval import ServiceNode, TrafficFlow, evaluate_flow

    flow = TrafficFlow(name="checkout")
    flow.add_node(ServiceNode("gw", daily_qps=1000, max_qps=5000, rate_limit_qps=3000))
    flow.add_node(ServiceNode("auth", max_qps=800, rate_limit_qps=500))
    flow.connect("gw", "auth", multiplier=2)

    evaluation = evaluate_flow(flow, multiplier=1.0)
    evaluation.results["auth"].bottleneck_type  # BottleneckType.MAX_CAPACITY
"""

from __future__ import annotations

from trafficeval import cli, logging
from trafficeval._version import __version__
from trafficeval.algorithms.propagation import classify_flow, evaluate_traffic
from trafficeval.analysis.evaluate import (
    FlowEvaluation,
    apply_results,
    evaluate_flow,
    refresh_flow,
)
from trafficeval.layout import auto_layout
from trafficeval.model.flow import CallEdge, ServiceNode, TrafficFlow
from trafficeval.model.workspace import Workspace
from trafficeval.types.base import BottleneckType, NodeStatus
from trafficeval.types.dto import EvaluationResult

__all__ = [
    # Version
    "__version__",
    # Model
    "ServiceNode",
    "CallEdge",
    "TrafficFlow",
    "Workspace",
    # Evaluation (primary API)
    "evaluate_traffic",
    "classify_flow",
    "evaluate_flow",
    "refresh_flow",
    "apply_results",
    "FlowEvaluation",
    # Types
    "BottleneckType",
    "NodeStatus",
    "EvaluationResult",
    # Layout
    "auto_layout",
    # Utilities
    "cli",
    "logging",
]
