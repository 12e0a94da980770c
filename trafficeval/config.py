"""Default values shared by the model, importers and layout."""

from dataclasses import dataclass


@dataclass
class TrafficDefaults:
    """Defaults applied when a value is not supplied by the caller or a file."""

    default_flow_name: str = "Flow"

    # Global traffic multiplier and per-edge call multiplier
    default_global_multiplier: float = 1.0
    default_edge_multiplier: float = 1.0

    # Values for a freshly added service node
    daily_qps: float = 100.0
    max_qps: float = 1000.0
    rate_limit_qps: float = 500.0

    # Auto-layout grid spacing
    layout_x_gap: float = 400.0
    layout_y_gap: float = 180.0

    def flow_name(self, index: int) -> str:
        """Name for the ``index``-th (1-based) flow created without a name."""
        if index <= 1:
            return self.default_flow_name
        return f"{self.default_flow_name} {index}"


# Global defaults instance
DEFAULTS = TrafficDefaults()
