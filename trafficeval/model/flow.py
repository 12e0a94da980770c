"""Service graph model: ServiceNode, CallEdge and TrafficFlow.

A TrafficFlow is one independent graph of microservice endpoints (nodes) and
the calls between them (edges). The evaluator only reads the id, baseline
and threshold fields; everything else is display metadata owned by the
caller.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Tuple

from trafficeval.config import DEFAULTS
from trafficeval.logging import get_logger
from trafficeval.types.base import BottleneckType, NodeStatus
from trafficeval.utils.ids import new_base64_uuid

LOGGER = get_logger(__name__)


@dataclass
class ServiceNode:
    """One service endpoint in a traffic flow.

    Attributes:
        id (str): Unique identifier within the flow.
        daily_qps (float): Baseline request rate, used only for entry nodes.
        max_qps (float): Hard capacity ceiling.
        rate_limit_qps (float): Soft warning ceiling.
        label (str): Display name shown by the editor.
        microservice (str): Owning service name.
        api (str): Endpoint path.
        owner (str): Owning team.
        position (Tuple[float, float]): Editor coordinates.
        attrs (Dict[str, Any]): Extension metadata never read by the evaluator.
        current_qps (Optional[float]): Last evaluated load (display only).
        bottleneck_type (BottleneckType): Last classification (display only).
        status (NodeStatus): Last display status (display only).
    """

    id: str
    daily_qps: float = DEFAULTS.daily_qps
    max_qps: float = DEFAULTS.max_qps
    rate_limit_qps: float = DEFAULTS.rate_limit_qps
    label: str = ""
    microservice: str = ""
    api: str = ""
    owner: str = ""
    position: Tuple[float, float] = (0.0, 0.0)
    attrs: Dict[str, Any] = field(default_factory=dict)
    current_qps: Optional[float] = None
    bottleneck_type: BottleneckType = BottleneckType.NONE
    status: NodeStatus = NodeStatus.NORMAL

    @property
    def display_name(self) -> str:
        return self.label or self.microservice or self.id


@dataclass
class CallEdge:
    """A call from ``source`` to ``target``.

    One request to ``source`` triggers ``multiplier`` requests to ``target``.

    Attributes:
        source (str): Id of the calling node.
        target (str): Id of the called node.
        multiplier (float): Per-edge fan-out (default 1.0).
        attrs (Dict[str, Any]): Extension metadata (handles, labels, styling).
        id (str): Edge identifier; generated as "{source}|{target}|<base64_uuid>"
            when not supplied.
    """

    source: str
    target: str
    multiplier: float = DEFAULTS.default_edge_multiplier
    attrs: Dict[str, Any] = field(default_factory=dict)
    id: str = ""

    def __post_init__(self) -> None:
        if not self.id:
            self.id = f"{self.source}|{self.target}|{new_base64_uuid()}"


@dataclass
class TrafficFlow:
    """A named, independent service graph.

    Nodes are keyed by id. Edges are kept in insertion order; edges whose
    endpoints are missing may exist (e.g. loaded from a file) and are ignored
    by the evaluator.

    Attributes:
        name (str): Flow name (shown as the tab title in the editor).
        nodes (Dict[str, ServiceNode]): Mapping from node id -> ServiceNode.
        edges (List[CallEdge]): Call edges.
        id (str): Flow identifier, generated when not supplied.
    """

    name: str = DEFAULTS.default_flow_name
    nodes: Dict[str, ServiceNode] = field(default_factory=dict)
    edges: List[CallEdge] = field(default_factory=list)
    id: str = ""

    def __post_init__(self) -> None:
        if not self.id:
            self.id = f"flow-{new_base64_uuid()}"

    def add_node(self, node: ServiceNode) -> None:
        """Add a node to the flow.

        Raises:
            ValueError: If a node with the same id already exists.
        """
        if node.id in self.nodes:
            raise ValueError(f"Node '{node.id}' already exists in flow '{self.name}'.")
        self.nodes[node.id] = node

    def add_edge(self, edge: CallEdge) -> None:
        """Add a call edge between two existing nodes.

        Raises:
            ValueError: If the edge's source or target node does not exist.
        """
        if edge.source not in self.nodes:
            raise ValueError(f"Source node '{edge.source}' not found in flow.")
        if edge.target not in self.nodes:
            raise ValueError(f"Target node '{edge.target}' not found in flow.")
        self.edges.append(edge)

    def connect(
        self,
        source: str,
        target: str,
        multiplier: float = DEFAULTS.default_edge_multiplier,
    ) -> CallEdge:
        """Create, add and return an edge from ``source`` to ``target``."""
        edge = CallEdge(source, target, multiplier=multiplier)
        self.add_edge(edge)
        return edge

    def remove_node(self, node_id: str) -> ServiceNode:
        """Remove a node and every edge attached to it.

        Raises:
            ValueError: If the node does not exist.
        """
        if node_id not in self.nodes:
            raise ValueError(f"Node '{node_id}' not found in flow '{self.name}'.")
        node = self.nodes.pop(node_id)
        before = len(self.edges)
        self.edges = [
            e for e in self.edges if e.source != node_id and e.target != node_id
        ]
        LOGGER.debug(
            "Removed node '%s' and %d attached edge(s)",
            node_id,
            before - len(self.edges),
        )
        return node

    def remove_edge(self, edge_id: str) -> CallEdge:
        """Remove an edge by id.

        Raises:
            ValueError: If no edge has that id.
        """
        for idx, edge in enumerate(self.edges):
            if edge.id == edge_id:
                return self.edges.pop(idx)
        raise ValueError(f"Edge '{edge_id}' not found in flow '{self.name}'.")

    def update_node(self, node_id: str, **changes: Any) -> ServiceNode:
        """Update attributes of an existing node in place.

        Raises:
            ValueError: If the node does not exist, or a change names an
                unknown attribute or tries to change the id.
        """
        node = self.nodes.get(node_id)
        if node is None:
            raise ValueError(f"Node '{node_id}' not found in flow '{self.name}'.")
        for key, value in changes.items():
            if key == "id" or not hasattr(node, key):
                raise ValueError(
                    f"Cannot update attribute '{key}' of node '{node_id}'."
                )
            setattr(node, key, value)
        return node

    def valid_edges(self) -> Iterator[CallEdge]:
        """Yield edges whose source and target both exist."""
        for edge in self.edges:
            if edge.source in self.nodes and edge.target in self.nodes:
                yield edge

    def entry_nodes(self) -> List[ServiceNode]:
        """Nodes without any valid incoming edge, in insertion order."""
        targets = {e.target for e in self.valid_edges()}
        return [n for n in self.nodes.values() if n.id not in targets]

    def find_node(self, microservice: str, api: str = "") -> Optional[ServiceNode]:
        """Return the first node matching a (microservice, api) pair."""
        for node in self.nodes.values():
            if node.microservice == microservice and node.api == api:
                return node
        return None
