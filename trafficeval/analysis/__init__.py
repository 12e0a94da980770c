"""Flow-level evaluation built on the propagation algorithm."""

from trafficeval.analysis.evaluate import (
    FlowEvaluation,
    apply_results,
    evaluate_flow,
    refresh_flow,
)

__all__ = ["FlowEvaluation", "apply_results", "evaluate_flow", "refresh_flow"]
