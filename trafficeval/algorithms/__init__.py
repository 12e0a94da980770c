"""Graph algorithms for traffic propagation."""

from trafficeval.algorithms.propagation import (
    classify_flow,
    evaluate_traffic,
    propagate,
    topological_order,
)

__all__ = ["classify_flow", "evaluate_traffic", "propagate", "topological_order"]
