"""NetworkX conversion utilities.

Example:
    >>> from trafficeval.lib.nx import to_networkx
    >>> G = to_networkx(flow)
    >>> import networkx as nx
    >>> nx.is_directed_acyclic_graph(G)
    True
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Optional

from trafficeval.config import DEFAULTS
from trafficeval.model.flow import CallEdge, ServiceNode, TrafficFlow

if TYPE_CHECKING:
    import networkx as nx

_NODE_ATTRS = (
    "daily_qps",
    "max_qps",
    "rate_limit_qps",
    "label",
    "microservice",
    "api",
    "owner",
)


def to_networkx(
    flow: TrafficFlow, *, include_dangling: bool = False
) -> "nx.MultiDiGraph":
    """Convert a TrafficFlow to a NetworkX MultiDiGraph.

    Node attributes carry ``attrs`` overlaid by the service fields, so a
    metadata key named like a service field never shadows it. Each edge carries
    ``multiplier`` and ``id``. Edges with an unknown endpoint are dropped
    unless ``include_dangling`` is set (NetworkX then creates bare nodes).
    """
    import networkx as nx

    G = nx.MultiDiGraph(name=flow.name)
    for node in flow.nodes.values():
        merged = dict(node.attrs)
        merged.update({name: getattr(node, name) for name in _NODE_ATTRS})
        G.add_node(node.id, **merged)

    edges = flow.edges if include_dangling else flow.valid_edges()
    for edge in edges:
        G.add_edge(
            edge.source,
            edge.target,
            key=edge.id,
            multiplier=edge.multiplier,
            id=edge.id,
        )
    return G


def from_networkx(
    G: Any,
    name: Optional[str] = None,
    *,
    multiplier_attr: str = "multiplier",
) -> TrafficFlow:
    """Build a TrafficFlow from any directed NetworkX graph.

    Recognized node attributes are those produced by ``to_networkx``; other
    node attributes go to ``ServiceNode.attrs``. Missing edge multipliers
    default to 1.

    Raises:
        TypeError: If ``G`` is not a directed NetworkX graph.
    """
    import networkx as nx

    if not isinstance(G, (nx.DiGraph, nx.MultiDiGraph)):
        raise TypeError(f"Expected a directed NetworkX graph, got {type(G).__name__}")

    flow = TrafficFlow(name=name or G.graph.get("name") or DEFAULTS.default_flow_name)
    for nid, data in G.nodes(data=True):
        known = {k: data[k] for k in _NODE_ATTRS if k in data}
        extra = {k: v for k, v in data.items() if k not in _NODE_ATTRS}
        flow.add_node(ServiceNode(id=str(nid), attrs=extra, **known))

    for u, v, data in G.edges(data=True):
        raw = data.get(multiplier_attr)
        if raw is None:
            raw = DEFAULTS.default_edge_multiplier
        flow.add_edge(
            CallEdge(
                str(u), str(v), multiplier=float(raw), id=str(data.get("id") or "")
            )
        )
    return flow
