from trafficeval.model.flow import CallEdge, ServiceNode, TrafficFlow
from trafficeval.model.workspace import Workspace

__all__ = ["CallEdge", "ServiceNode", "TrafficFlow", "Workspace"]
