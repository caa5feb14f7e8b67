"""
Membrane Constraint Check
=========================

Gate episode openings through Normative models.

RESPONSIBILITY: Decide allow / warn / block for an intended episode
ALLOWED INPUTS: State, NodeRef, EpisodeType
OUTPUTS: MembraneDecision

WHAT THIS MODULE MUST NOT DO:
=============================
- Open the episode (the caller does that after reading the decision)
- Record bypasses (log_exception does that)

Scope matching:
- personal -> Personal nodes only
- org      -> Org nodes only
- domain   -> every node
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from ..contracts.entities import Model, NodeRef, State
from ..contracts.ontology import (
    EnforcementLevel, EpisodeType, ModelScope, ModelType, NodeType,
)


class MembraneVerdict(Enum):
    ALLOW = "allow"
    WARN = "warn"
    BLOCK = "block"


@dataclass(frozen=True)
class MembraneWarning:
    model_id: str
    statement: str

    def to_dict(self) -> Dict[str, Any]:
        return {"modelId": self.model_id, "statement": self.statement}


@dataclass(frozen=True)
class MembraneDecision:
    """
    Outcome of a constraint check.

    warn carries every warning; block carries the first blocking
    model's statement as the reason.
    """
    decision: MembraneVerdict
    warnings: Tuple[MembraneWarning, ...] = field(default_factory=tuple)
    reason: Optional[str] = None
    model_id: Optional[str] = None

    @staticmethod
    def allow() -> MembraneDecision:
        return MembraneDecision(decision=MembraneVerdict.ALLOW)

    @staticmethod
    def warn(warnings: List[MembraneWarning]) -> MembraneDecision:
        return MembraneDecision(decision=MembraneVerdict.WARN, warnings=tuple(warnings))

    @staticmethod
    def block(reason: str, model_id: str) -> MembraneDecision:
        return MembraneDecision(decision=MembraneVerdict.BLOCK, reason=reason, model_id=model_id)

    def to_dict(self) -> Dict[str, Any]:
        if self.decision == MembraneVerdict.BLOCK:
            return {"decision": "block", "reason": self.reason, "modelId": self.model_id}
        if self.decision == MembraneVerdict.WARN:
            return {"decision": "warn", "warnings": [w.to_dict() for w in self.warnings]}
        return {"decision": "allow"}


def scope_matches_node(scope: ModelScope, node: NodeRef) -> bool:
    if scope == ModelScope.PERSONAL:
        return node.type == NodeType.PERSONAL
    if scope == ModelScope.ORG:
        return node.type == NodeType.ORG
    return scope == ModelScope.DOMAIN


def get_normative_models_for_node(state: State, node: NodeRef) -> List[Model]:
    return [
        m for m in state.models
        if m.type == ModelType.NORMATIVE
        and m.scope is not None
        and scope_matches_node(m.scope, node)
    ]


def check_episode_constraints(
    state: State,
    node: NodeRef,
    episode_type: EpisodeType
) -> MembraneDecision:
    """
    The first block model wins; warn models are all collected; models
    without enforcement are informational only.
    """
    warnings: List[MembraneWarning] = []
    for model in get_normative_models_for_node(state, node):
        enforcement = model.enforcement or EnforcementLevel.NONE
        if enforcement == EnforcementLevel.BLOCK:
            return MembraneDecision.block(reason=model.statement, model_id=model.id)
        if enforcement == EnforcementLevel.WARN:
            warnings.append(MembraneWarning(model_id=model.id, statement=model.statement))

    if warnings:
        return MembraneDecision.warn(warnings)
    return MembraneDecision.allow()
