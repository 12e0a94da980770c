"""Tests for level-based auto-layout."""

from trafficeval.config import TrafficDefaults
from trafficeval.layout import auto_layout, compute_levels
from trafficeval.model.flow import CallEdge, ServiceNode, TrafficFlow


def _flow(ids, pairs):
    flow = TrafficFlow()
    for nid in ids:
        flow.add_node(ServiceNode(nid))
    for s, t in pairs:
        flow.connect(s, t)
    return flow


def test_levels_use_longest_chain():
    flow = _flow("abcd", [("a", "b"), ("b", "c"), ("a", "c"), ("c", "d")])
    assert compute_levels(flow) == {"a": 0, "b": 1, "c": 2, "d": 3}


def test_positions_grid(checkout_flow):
    auto_layout(checkout_flow)
    positions = {nid: n.position for nid, n in checkout_flow.nodes.items()}
    assert positions == {
        "gw": (0.0, 0.0),
        "auth": (400.0, 0.0),
        "orders": (400.0, 180.0),
        "users": (800.0, 0.0),
    }


def test_custom_spacing():
    flow = _flow("ab", [("a", "b")])
    auto_layout(flow, TrafficDefaults(layout_x_gap=10, layout_y_gap=5))
    assert flow.nodes["b"].position == (10, 0)


def test_cycle_terminates_and_unreached_nodes_at_level_zero():
    flow = _flow("abcxy", [("a", "b"), ("b", "c"), ("c", "b"), ("x", "y"), ("y", "x")])
    levels = compute_levels(flow)
    assert levels["a"] == 0
    assert all(0 <= lvl <= 4 for lvl in levels.values())
    assert levels["x"] == 0 and levels["y"] == 0


def test_dangling_edges_ignored():
    flow = _flow("ab", [])
    flow.edges.append(CallEdge("ghost", "b"))
    assert compute_levels(flow) == {"a": 0, "b": 0}
    auto_layout(flow)
    assert flow.nodes["b"].position == (0.0, 180.0)
