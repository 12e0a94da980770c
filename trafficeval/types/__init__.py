"""Enums and result containers shared across trafficeval."""

from trafficeval.types.base import BottleneckType, NodeStatus, QPS
from trafficeval.types.dto import EvaluationResult

__all__ = ["BottleneckType", "NodeStatus", "QPS", "EvaluationResult"]
