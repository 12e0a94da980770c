"""Traffic propagation and bottleneck classification.

Given service nodes, call edges and a global multiplier, compute the
steady-state request rate arriving at every node and classify it against the
node's rate-limit and capacity thresholds.

Nodes and edges may be model objects (``ServiceNode``/``CallEdge``) or plain
mappings. Mapping nodes use the editor field names (``id``, ``dailyQPS``,
``maxQPS``, ``rateLimitQPS``), either flat or nested under ``data``. Mapping
edges read ``source``/``target`` and an optional ``multiplier`` at the top
level or under ``data``.

The computation is a single pass:

1. Build in-degrees and incoming lists from edges whose both endpoints exist.
2. Order nodes with Kahn's algorithm, seeded with zero in-degree (entry) nodes.
3. Walk the order: entry nodes emit ``dailyQPS * multiplier``; other nodes
   receive the sum of upstream flow times the edge multiplier.
4. Classify with strict comparisons: above ``maxQPS`` is MAX_CAPACITY,
   otherwise above ``rateLimitQPS`` is RATE_LIMIT.

Nodes the ordering cannot reach (members of a cycle and everything fed only
through one) get zero flow and no bottleneck. Nothing here raises for
malformed graphs.
"""

from __future__ import annotations

from collections import deque
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from trafficeval.logging import get_logger
from trafficeval.types.base import BottleneckType
from trafficeval.types.dto import EvaluationResult

LOGGER = get_logger(__name__)

_INF = float("inf")

# (source id, edge multiplier)
Incoming = Dict[str, List[Tuple[str, float]]]


def _get(record: Any, attr: str, key: str) -> Any:
    """Read ``attr`` from an object or ``key`` from a mapping (flat or ``data``).

    A top-level ``None`` falls through to the ``data`` sub-mapping.
    """
    if isinstance(record, Mapping):
        value = record.get(key)
        if value is not None:
            return value
        data = record.get("data")
        if isinstance(data, Mapping):
            return data.get(key)
        return None
    return getattr(record, attr, None)


def _number(value: Any, default: float) -> float:
    if value is None:
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def node_id(node: Any) -> str:
    """Return the id of a node object or record."""
    return str(_get(node, "id", "id"))


def node_thresholds(node: Any) -> Tuple[float, float, float]:
    """Return ``(daily_qps, max_qps, rate_limit_qps)`` for a node.

    A missing baseline reads as 0. A missing threshold reads as infinity, so
    it never triggers a bottleneck.
    """
    return (
        _number(_get(node, "daily_qps", "dailyQPS"), 0.0),
        _number(_get(node, "max_qps", "maxQPS"), _INF),
        _number(_get(node, "rate_limit_qps", "rateLimitQPS"), _INF),
    )


def edge_endpoints(edge: Any) -> Tuple[str, str]:
    """Return ``(source, target)`` ids of an edge object or record."""
    return str(_get(edge, "source", "source")), str(_get(edge, "target", "target"))


def edge_multiplier(edge: Any) -> float:
    """Return the edge's call multiplier, 1.0 when absent."""
    return _number(_get(edge, "multiplier", "multiplier"), 1.0)


def classify_flow(flow: float, max_qps: float, rate_limit_qps: float) -> BottleneckType:
    """Classify a flow against capacity and rate-limit thresholds.

    Both comparisons are strict: a flow equal to a threshold does not exceed it.
    """
    if flow > max_qps:
        return BottleneckType.MAX_CAPACITY
    if flow > rate_limit_qps:
        return BottleneckType.RATE_LIMIT
    return BottleneckType.NONE


def build_incoming(
    node_ids: Iterable[str], edges: Iterable[Any]
) -> Tuple[Dict[str, int], Incoming, Dict[str, List[str]]]:
    """Build in-degree, incoming and outgoing maps over valid edges.

    Edges with an unknown endpoint are skipped entirely.

    Returns:
        Tuple of (in_degree, incoming, outgoing). ``incoming`` maps a target to
        its ``(source, multiplier)`` pairs; ``outgoing`` maps a source to its
        targets, one entry per edge.
    """
    in_degree: Dict[str, int] = {nid: 0 for nid in node_ids}
    incoming: Incoming = {nid: [] for nid in in_degree}
    outgoing: Dict[str, List[str]] = {nid: [] for nid in in_degree}

    for edge in edges:
        source, target = edge_endpoints(edge)
        if source not in in_degree or target not in in_degree:
            continue
        in_degree[target] += 1
        incoming[target].append((source, edge_multiplier(edge)))
        outgoing[source].append(target)

    return in_degree, incoming, outgoing


def topological_order(
    in_degree: Mapping[str, int], outgoing: Mapping[str, List[str]]
) -> List[str]:
    """Order nodes with Kahn's algorithm.

    The queue is seeded with zero in-degree nodes in ``in_degree`` iteration
    order. Nodes on or behind a cycle never reach zero and are left out of
    the result.
    """
    remaining = dict(in_degree)
    queue = deque(nid for nid, degree in in_degree.items() if degree == 0)
    order: List[str] = []

    while queue:
        u = queue.popleft()
        order.append(u)
        for v in outgoing.get(u, ()):
            remaining[v] -= 1
            if remaining[v] == 0:
                queue.append(v)

    return order


def propagate(
    nodes: Iterable[Any], edges: Iterable[Any], multiplier: float
) -> Tuple[Dict[str, EvaluationResult], List[str]]:
    """Evaluate a graph and also return the topological order used.

    Args:
        nodes: Node objects or records. With duplicate ids the last one wins.
        edges: Edge objects or records; any multiset, cycles allowed.
        multiplier: Global traffic multiplier applied to entry baselines.

    Returns:
        Tuple of (results keyed by node id in input order, topological order).
    """
    by_id: Dict[str, Any] = {}
    for node in nodes:
        by_id[node_id(node)] = node

    edge_list = list(edges)
    in_degree, incoming, outgoing = build_incoming(by_id, edge_list)
    order = topological_order(in_degree, outgoing)

    flow_map: Dict[str, float] = {}
    for nid in order:
        sources = incoming[nid]
        if not sources:
            daily_qps, _, _ = node_thresholds(by_id[nid])
            flow = daily_qps * multiplier
        else:
            flow = 0.0
            for source, edge_mult in sources:
                flow += flow_map[source] * edge_mult
        flow_map[nid] = flow

    results: Dict[str, EvaluationResult] = {}
    for nid, node in by_id.items():
        flow = flow_map.get(nid)
        if flow is None:
            results[nid] = EvaluationResult(nid, 0.0, False, BottleneckType.NONE)
            continue
        _, max_qps, rate_limit_qps = node_thresholds(node)
        kind = classify_flow(flow, max_qps, rate_limit_qps)
        results[nid] = EvaluationResult(
            nid, flow, kind is not BottleneckType.NONE, kind
        )

    LOGGER.debug(
        "Evaluated %d node(s) over %d valid of %d edge(s); %d ordered",
        len(by_id),
        sum(len(v) for v in incoming.values()),
        len(edge_list),
        len(order),
    )
    return results, order


def evaluate_traffic(
    nodes: Iterable[Any], edges: Iterable[Any], multiplier: Optional[float] = 1.0
) -> Dict[str, EvaluationResult]:
    """Compute per-node load and bottleneck status.

    Returns exactly one EvaluationResult per distinct node id. See the module
    docstring for the accepted node and edge shapes.
    """
    results, _ = propagate(nodes, edges, 1.0 if multiplier is None else multiplier)
    return results
