"""
Intent Contracts

One immutable parameter record per transition-engine operation.
Intents carry what the caller wants; they never carry a State.

Enum-typed fields also accept the persisted string value. The
transition engine decodes them and reports unknown members as
validation failures instead of raising.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Optional, Tuple, Union

from .entities import NodeRef, ProxyThresholds, ProxyValue
from .ontology import (
    EnforcementLevel, EpisodeType, LinkRelation, MeasurementCadence,
    ModelScope, ModelType, MutationType, NoteTag, OverrideDecision,
    ProxyValueType, VariableStatus,
)


# =============================================================================
# SIGNALS AND VARIABLES
# =============================================================================

@dataclass(frozen=True)
class SignalParams:
    """
    Report a variable's new homeostatic status.

    note_id and recorded_at identify the audit note written when the
    status actually changes; both are derived when omitted.
    """
    node: NodeRef
    variable_id: str
    status: VariableStatus
    reason: Optional[str] = None
    note_id: Optional[str] = None
    recorded_at: Optional[str] = None


@dataclass(frozen=True)
class CreateVariableParams:
    variable_id: str
    node: NodeRef
    name: str
    status: VariableStatus
    description: Optional[str] = None
    preferred_range: Optional[str] = None
    measurement_cadence: Optional[MeasurementCadence] = None


# =============================================================================
# EPISODES
# =============================================================================

@dataclass(frozen=True)
class StabilizeEpisodeParams:
    """Open a Stabilize episode: scoped to fixing one variable."""
    episode_id: str
    node: NodeRef
    variable_id: str
    objective: str
    opened_at: str

    @property
    def type(self) -> EpisodeType:
        return EpisodeType.STABILIZE


@dataclass(frozen=True)
class ExploreEpisodeParams:
    """Open an Explore episode: learning across the node."""
    episode_id: str
    node: NodeRef
    objective: str
    opened_at: str

    @property
    def type(self) -> EpisodeType:
        return EpisodeType.EXPLORE


OpenEpisodeParams = Union[StabilizeEpisodeParams, ExploreEpisodeParams]


@dataclass(frozen=True)
class VariableUpdate:
    id: str
    status: VariableStatus


@dataclass(frozen=True)
class ClosureNote:
    id: str
    content: str


@dataclass(frozen=True)
class ModelUpdate:
    """Upsert applied on episode closure: update by id, else insert."""
    id: str
    type: ModelType
    statement: str
    confidence: Optional[float] = None
    scope: Optional[ModelScope] = None
    enforcement: Optional[EnforcementLevel] = None


@dataclass(frozen=True)
class CloseEpisodeParams:
    episode_id: str
    closed_at: str
    closure_note: ClosureNote
    variable_updates: Tuple[VariableUpdate, ...] = field(default_factory=tuple)
    model_updates: Tuple[ModelUpdate, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class UpdateEpisodeParams:
    """
    Edit an Active episode.

    timebox_days=None leaves the timebox untouched;
    clear_timebox_days=True removes it.
    """
    episode_id: str
    objective: Optional[str] = None
    timebox_days: Optional[int] = None
    clear_timebox_days: bool = False


# =============================================================================
# ACTIONS
# =============================================================================

@dataclass(frozen=True)
class CreateActionParams:
    action_id: str
    node: NodeRef
    description: str
    episode_id: Optional[str] = None


@dataclass(frozen=True)
class CompleteActionParams:
    action_id: str


# =============================================================================
# MODELS
# =============================================================================

@dataclass(frozen=True)
class CreateModelParams:
    model_id: str
    type: ModelType
    statement: str
    confidence: Optional[float] = None
    scope: Optional[ModelScope] = None
    enforcement: Optional[EnforcementLevel] = None
    exceptions_allowed: Optional[bool] = None


@dataclass(frozen=True)
class UpdateModelParams:
    """Only provided fields change."""
    model_id: str
    statement: Optional[str] = None
    confidence: Optional[float] = None
    scope: Optional[ModelScope] = None
    enforcement: Optional[EnforcementLevel] = None


# =============================================================================
# NOTES
# =============================================================================

@dataclass(frozen=True)
class CreateNoteParams:
    note_id: str
    content: str
    created_at: str
    tags: Tuple[NoteTag, ...] = field(default_factory=tuple)
    linked_objects: Optional[Tuple[str, ...]] = None


@dataclass(frozen=True)
class UpdateNoteParams:
    note_id: str
    content: str


@dataclass(frozen=True)
class NoteTagParams:
    """Used by both add_note_tag and remove_note_tag."""
    note_id: str
    tag: NoteTag


@dataclass(frozen=True)
class NoteLinkedObjectParams:
    note_id: str
    object_id: str


# =============================================================================
# LINKS
# =============================================================================

@dataclass(frozen=True)
class CreateLinkParams:
    link_id: str
    source_id: str
    target_id: str
    relation: LinkRelation
    weight: Optional[float] = None


@dataclass(frozen=True)
class DeleteLinkParams:
    link_id: str


# =============================================================================
# PROXIES
# =============================================================================

@dataclass(frozen=True)
class CreateProxyParams:
    proxy_id: str
    variable_id: str
    name: str
    value_type: ProxyValueType
    description: Optional[str] = None
    unit: Optional[str] = None
    categories: Optional[Tuple[str, ...]] = None
    thresholds: Optional[ProxyThresholds] = None


@dataclass(frozen=True)
class UpdateProxyParams:
    """Only provided fields change; value_type is fixed at creation."""
    proxy_id: str
    name: Optional[str] = None
    description: Optional[str] = None
    unit: Optional[str] = None
    categories: Optional[Tuple[str, ...]] = None
    thresholds: Optional[ProxyThresholds] = None


@dataclass(frozen=True)
class DeleteProxyParams:
    proxy_id: str


@dataclass(frozen=True)
class LogProxyReadingParams:
    reading_id: str
    proxy_id: str
    value: ProxyValue
    recorded_at: str
    source: Optional[str] = None


# =============================================================================
# MEMBRANE EXCEPTIONS
# =============================================================================

@dataclass(frozen=True)
class LogExceptionParams:
    exception_id: str
    model_id: str
    original_decision: OverrideDecision
    justification: str
    mutation_type: MutationType
    mutation_id: str
    created_at: str
