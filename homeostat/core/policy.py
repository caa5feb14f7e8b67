"""
Regulator Policy

Configures boundaries (cardinality limits), not mechanisms.

Resolution order for a node: per-node override (keyed "<type>:<id>"),
then per-node-type override, then the global value.
"""

from __future__ import annotations
from dataclasses import dataclass, field
import math
from typing import Dict, Mapping

from ..contracts.entities import NodeRef
from ..contracts.ontology import (
    MAX_ACTIVE_EXPLORE_PER_NODE, MAX_ACTIVE_STABILIZE_PER_VARIABLE, NodeType,
)


@dataclass(frozen=True)
class RegulatorPolicy:
    max_active_explore_per_node: int = MAX_ACTIVE_EXPLORE_PER_NODE
    max_active_explore_per_node_by_type: Mapping[NodeType, int] = field(default_factory=dict)
    max_active_explore_per_node_by_node: Mapping[str, int] = field(default_factory=dict)

    max_active_stabilize_per_variable: int = MAX_ACTIVE_STABILIZE_PER_VARIABLE
    max_active_stabilize_per_variable_by_type: Mapping[NodeType, int] = field(default_factory=dict)
    max_active_stabilize_per_variable_by_node: Mapping[str, int] = field(default_factory=dict)


@dataclass(frozen=True)
class NodePolicy:
    """Limits resolved for one node; what the mutators consume."""
    max_active_explore_per_node: int = MAX_ACTIVE_EXPLORE_PER_NODE
    max_active_stabilize_per_variable: int = MAX_ACTIVE_STABILIZE_PER_VARIABLE


DEFAULT_REGULATOR_POLICY = RegulatorPolicy()
DEFAULT_NODE_POLICY = NodePolicy()


def _resolve(by_node: Mapping[str, int], by_type: Mapping[NodeType, int], default: int, node: NodeRef) -> int:
    if node.key in by_node:
        return by_node[node.key]
    if node.type in by_type:
        return by_type[node.type]
    return default


def get_policy_for_node(policy: RegulatorPolicy, node: NodeRef) -> NodePolicy:
    return NodePolicy(
        max_active_explore_per_node=_resolve(
            policy.max_active_explore_per_node_by_node,
            policy.max_active_explore_per_node_by_type,
            policy.max_active_explore_per_node,
            node,
        ),
        max_active_stabilize_per_variable=_resolve(
            policy.max_active_stabilize_per_variable_by_node,
            policy.max_active_stabilize_per_variable_by_type,
            policy.max_active_stabilize_per_variable,
            node,
        ),
    )


def _check_limit(name: str, value: object):
    if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
        raise ValueError(f"RegulatorPolicy.{name} must be finite")
    if value < 0:
        raise ValueError(f"RegulatorPolicy.{name} must be >= 0")


def validate_regulator_policy(policy: RegulatorPolicy) -> RegulatorPolicy:
    """
    Reject negative or non-finite limits.

    Raises:
        ValueError: naming the first offending field
    """
    _check_limit("max_active_explore_per_node", policy.max_active_explore_per_node)
    _check_limit("max_active_stabilize_per_variable", policy.max_active_stabilize_per_variable)

    overrides: Dict[str, Mapping] = {
        "max_active_explore_per_node_by_type": policy.max_active_explore_per_node_by_type,
        "max_active_explore_per_node_by_node": policy.max_active_explore_per_node_by_node,
        "max_active_stabilize_per_variable_by_type": policy.max_active_stabilize_per_variable_by_type,
        "max_active_stabilize_per_variable_by_node": policy.max_active_stabilize_per_variable_by_node,
    }
    for name, mapping in overrides.items():
        for key, value in mapping.items():
            label = key.value if isinstance(key, NodeType) else key
            _check_limit(f"{name}['{label}']", value)

    return policy
