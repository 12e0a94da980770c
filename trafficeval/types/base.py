"""Base enums for traffic evaluation."""

from __future__ import annotations

from enum import Enum
from typing import Union

#: Request rate in queries per second.
QPS = Union[int, float]


class BottleneckType(str, Enum):
    """Which threshold, if any, a node's evaluated load exceeds."""

    NONE = "none"
    RATE_LIMIT = "rate_limit"
    MAX_CAPACITY = "max_capacity"

    @classmethod
    def from_string(cls, value: str) -> "BottleneckType":
        """Parse a string into a BottleneckType.

        Args:
            value: Case-insensitive value or member name (e.g. "rate_limit",
                "MAX_CAPACITY").

        Returns:
            The corresponding BottleneckType member.

        Raises:
            ValueError: If the string doesn't match any member.
        """
        normalized = value.strip().lower()
        for member in cls:
            if member.value == normalized:
                return member
        valid = ", ".join(m.value for m in cls)
        raise ValueError(
            f"Invalid bottleneck type '{value}'. Valid values are: {valid}"
        )


class NodeStatus(str, Enum):
    """Display status derived from a node's bottleneck type."""

    NORMAL = "normal"
    WARNING = "warning"
    CRITICAL = "critical"

    @classmethod
    def from_bottleneck(cls, bottleneck_type: BottleneckType) -> "NodeStatus":
        if bottleneck_type is BottleneckType.MAX_CAPACITY:
            return cls.CRITICAL
        if bottleneck_type is BottleneckType.RATE_LIMIT:
            return cls.WARNING
        return cls.NORMAL
