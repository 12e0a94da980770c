"""Immutable result containers produced by the traffic evaluator."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict

from trafficeval.types.base import BottleneckType


@dataclass(frozen=True)
class EvaluationResult:
    """Evaluated load and bottleneck classification for one node.

    Attributes:
        node_id: Id of the evaluated node.
        current_qps: Propagated request rate arriving at the node.
        is_bottleneck: True when ``bottleneck_type`` is not NONE.
        bottleneck_type: Threshold exceeded by ``current_qps``, if any.
    """

    node_id: str
    current_qps: float
    is_bottleneck: bool
    bottleneck_type: BottleneckType

    def to_dict(self) -> Dict[str, Any]:
        """Return the editor-facing record (camelCase keys)."""
        return {
            "nodeId": self.node_id,
            "currentQPS": self.current_qps,
            "isBottleneck": self.is_bottleneck,
            "bottleneckType": self.bottleneck_type.value,
        }
