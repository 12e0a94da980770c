"""Level-based automatic layout for the editor canvas."""

from __future__ import annotations

from collections import deque
from typing import Dict, List, Optional

from trafficeval.config import DEFAULTS, TrafficDefaults
from trafficeval.model.flow import TrafficFlow


def compute_levels(flow: TrafficFlow) -> Dict[str, int]:
    """Assign each node the length of the longest call chain reaching it.

    Entry nodes are level 0. Nodes that BFS never reaches (pure cycles) are
    also placed at level 0. Levels are capped at ``len(nodes) - 1`` so that
    cycles cannot grow them without bound.
    """
    adjacency: Dict[str, List[str]] = {nid: [] for nid in flow.nodes}
    in_degree: Dict[str, int] = {nid: 0 for nid in flow.nodes}
    for edge in flow.valid_edges():
        adjacency[edge.source].append(edge.target)
        in_degree[edge.target] += 1

    max_level = max(len(flow.nodes) - 1, 0)
    levels: Dict[str, int] = {}
    queue: deque[str] = deque()
    for nid, degree in in_degree.items():
        if degree == 0:
            levels[nid] = 0
            queue.append(nid)

    while queue:
        u = queue.popleft()
        next_level = levels[u] + 1
        if next_level > max_level:
            continue
        for v in adjacency[u]:
            if v not in levels or levels[v] < next_level:
                levels[v] = next_level
                queue.append(v)

    for nid in flow.nodes:
        levels.setdefault(nid, 0)
    return levels


def auto_layout(flow: TrafficFlow, defaults: Optional[TrafficDefaults] = None) -> None:
    """Place nodes on a grid: one column per level, stacked in insertion order."""
    cfg = defaults or DEFAULTS
    levels = compute_levels(flow)
    counts: Dict[int, int] = {}
    for node in flow.nodes.values():
        level = levels[node.id]
        row = counts.get(level, 0)
        counts[level] = row + 1
        node.position = (level * cfg.layout_x_gap, row * cfg.layout_y_gap)
