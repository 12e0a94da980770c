"""Workspace holding several independent traffic flows."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Dict, List, Optional, Set

from trafficeval.config import DEFAULTS
from trafficeval.logging import get_logger
from trafficeval.model.flow import TrafficFlow

if TYPE_CHECKING:
    from trafficeval.analysis.evaluate import FlowEvaluation

LOGGER = get_logger(__name__)


def check_unique_names(flows: List[TrafficFlow]) -> None:
    """Raise ValueError if two flows share a name."""
    seen: Set[str] = set()
    for flow in flows:
        if flow.name in seen:
            raise ValueError(f"Duplicate flow name '{flow.name}' in workspace.")
        seen.add(flow.name)


@dataclass
class Workspace:
    """Ordered collection of flows with one active flow and a global multiplier.

    Each flow is evaluated independently; the multiplier is shared. Flow names
    are unique within a workspace since workbooks and results key flows by
    name.

    Attributes:
        flows (List[TrafficFlow]): Flows in display order.
        multiplier (float): Global traffic multiplier.
        active_id (str): Id of the active flow; the first flow when empty.
    """

    flows: List[TrafficFlow] = field(default_factory=list)
    multiplier: float = DEFAULTS.default_global_multiplier
    active_id: str = ""

    def __post_init__(self) -> None:
        if not self.flows:
            self.flows.append(TrafficFlow(name=DEFAULTS.flow_name(1)))
        check_unique_names(self.flows)
        if not self.active_id or self._index_of(self.active_id) is None:
            self.active_id = self.flows[0].id

    def _index_of(self, flow_id: str) -> Optional[int]:
        for idx, flow in enumerate(self.flows):
            if flow.id == flow_id:
                return idx
        return None

    def _check_name_free(self, name: str, flow_id: Optional[str] = None) -> None:
        for flow in self.flows:
            if flow.name == name and flow.id != flow_id:
                raise ValueError(f"A flow named '{name}' already exists.")

    def _next_flow_name(self) -> str:
        names = {flow.name for flow in self.flows}
        index = len(self.flows) + 1
        while DEFAULTS.flow_name(index) in names:
            index += 1
        return DEFAULTS.flow_name(index)

    def get(self, flow_id: str) -> TrafficFlow:
        """Return a flow by id.

        Raises:
            ValueError: If no flow has that id.
        """
        idx = self._index_of(flow_id)
        if idx is None:
            raise ValueError(f"Flow '{flow_id}' not found in workspace.")
        return self.flows[idx]

    def by_name(self, name: str) -> TrafficFlow:
        """Return the first flow with the given name.

        Raises:
            ValueError: If no flow has that name.
        """
        for flow in self.flows:
            if flow.name == name:
                return flow
        raise ValueError(f"Flow named '{name}' not found in workspace.")

    @property
    def active(self) -> TrafficFlow:
        return self.get(self.active_id)

    @property
    def active_index(self) -> int:
        idx = self._index_of(self.active_id)
        return 0 if idx is None else idx

    def add_flow(
        self, flow: Optional[TrafficFlow] = None, activate: bool = True
    ) -> TrafficFlow:
        """Append a flow (a new empty one when None) and optionally activate it.

        Raises:
            ValueError: If the flow, or another flow with its name, is
                already in the workspace.
        """
        if flow is None:
            flow = TrafficFlow(name=self._next_flow_name())
        elif self._index_of(flow.id) is not None:
            raise ValueError(f"Flow '{flow.id}' is already in the workspace.")
        else:
            self._check_name_free(flow.name)
        self.flows.append(flow)
        if activate:
            self.active_id = flow.id
        LOGGER.debug("Added flow '%s' (%s)", flow.name, flow.id)
        return flow

    def close_flow(self, flow_id: str) -> TrafficFlow:
        """Remove a flow. The neighbour to its left becomes active if it was.

        Raises:
            ValueError: If the flow is unknown or is the last one remaining.
        """
        idx = self._index_of(flow_id)
        if idx is None:
            raise ValueError(f"Flow '{flow_id}' not found in workspace.")
        if len(self.flows) == 1:
            raise ValueError("Cannot close the last flow in the workspace.")
        flow = self.flows.pop(idx)
        if self.active_id == flow_id:
            self.active_id = self.flows[max(idx - 1, 0)].id
        return flow

    def rename_flow(self, flow_id: str, name: str) -> TrafficFlow:
        """Rename a flow; surrounding whitespace is stripped.

        Raises:
            ValueError: If the flow is unknown, the name is blank or another
                flow already uses it.
        """
        new_name = name.strip()
        if not new_name:
            raise ValueError("Flow name must not be empty.")
        flow = self.get(flow_id)
        self._check_name_free(new_name, flow_id)
        flow.name = new_name
        return flow

    def switch_to(self, flow_id: str) -> TrafficFlow:
        """Make a flow active and return it."""
        flow = self.get(flow_id)
        self.active_id = flow.id
        return flow

    def evaluate(self, flow_id: Optional[str] = None) -> "FlowEvaluation":
        """Evaluate one flow (the active one by default) and merge its results."""
        from trafficeval.analysis.evaluate import refresh_flow

        flow = self.active if flow_id is None else self.get(flow_id)
        return refresh_flow(flow, self.multiplier)

    def evaluate_all(self) -> Dict[str, "FlowEvaluation"]:
        """Evaluate every flow; results keyed by flow id."""
        return {flow.id: self.evaluate(flow.id) for flow in self.flows}
