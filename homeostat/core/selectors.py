"""
Read-only projections over a State.

Every query is total: no failure mode, no mutation.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from ..contracts.base import sort_key_for_iso
from ..contracts.entities import (
    Action, Episode, NodeRef, Proxy, ProxyReading, State, Variable,
)
from ..contracts.ontology import ActionStatus, EpisodeStatus, EpisodeType


def get_variables_by_node(state: State, node: NodeRef) -> List[Variable]:
    return [v for v in state.variables if v.node == node]


def get_active_episodes_by_node(state: State, node: NodeRef) -> List[Episode]:
    return [
        e for e in state.episodes
        if e.node == node and e.status == EpisodeStatus.ACTIVE
    ]


def is_baseline(state: State, node: NodeRef) -> bool:
    """A node is at baseline when it has zero Active episodes."""
    return len(get_active_episodes_by_node(state, node)) == 0


def get_pending_actions_for_active_episodes(state: State, node: NodeRef) -> List[Action]:
    active_ids = {e.id for e in get_active_episodes_by_node(state, node)}
    return [
        a for a in state.actions
        if a.status == ActionStatus.PENDING
        and a.episode_id is not None
        and a.episode_id in active_ids
    ]


def count_active_explores(state: State, node: NodeRef) -> int:
    return sum(
        1 for e in get_active_episodes_by_node(state, node)
        if e.type == EpisodeType.EXPLORE
    )


def count_active_stabilizes_for_variable(state: State, node: NodeRef, variable_id: str) -> int:
    return sum(
        1 for e in get_active_episodes_by_node(state, node)
        if e.type == EpisodeType.STABILIZE and e.variable_id == variable_id
    )


def get_proxies_for_variable(state: State, variable_id: str) -> List[Proxy]:
    return [p for p in state.proxies if p.variable_id == variable_id]


def get_recent_readings(
    state: State,
    proxy_id: str,
    limit: Optional[int] = None
) -> List[ProxyReading]:
    """A proxy's readings, newest first, optionally capped."""
    readings = sorted(
        (r for r in state.proxy_readings if r.proxy_id == proxy_id),
        key=lambda r: sort_key_for_iso(r.recorded_at),
        reverse=True
    )
    return readings if limit is None else readings[:max(limit, 0)]


# =============================================================================
# STATUS PROJECTION (read model for presentation collaborators)
# =============================================================================

@dataclass(frozen=True)
class StatusData:
    """
    'baseline' when the node has no Active episodes; otherwise 'active'
    with the node's variables, Active episodes and their Pending actions.
    """
    mode: str
    node: NodeRef
    variables: Tuple[Variable, ...] = field(default_factory=tuple)
    episodes: Tuple[Episode, ...] = field(default_factory=tuple)
    actions: Tuple[Action, ...] = field(default_factory=tuple)

    def to_dict(self) -> Dict[str, Any]:
        if self.mode == "baseline":
            return {"mode": self.mode, "node": self.node.to_dict()}
        return {
            "mode": self.mode,
            "node": self.node.to_dict(),
            "variables": [v.to_dict() for v in self.variables],
            "episodes": [e.to_dict() for e in self.episodes],
            "actions": [a.to_dict() for a in self.actions],
        }


def get_status_data(state: State, node: NodeRef) -> StatusData:
    if is_baseline(state, node):
        return StatusData(mode="baseline", node=node)
    return StatusData(
        mode="active",
        node=node,
        variables=tuple(get_variables_by_node(state, node)),
        episodes=tuple(get_active_episodes_by_node(state, node)),
        actions=tuple(get_pending_actions_for_active_episodes(state, node)),
    )
