"""
Semantic Validation

RESPONSIBILITY: Field-level and cross-entity business-rule checks that
decide whether an intent may be applied to a State.
OUTPUTS: Result (value is None, or the decoded fields for enum-bearing
intents)

WHAT THIS MODULE MUST NOT DO:
=============================
- Build or modify State (that is transform's job)
- Raise for bad caller input; every rejection is a Result
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional, Tuple, Type

from ..contracts.base import OK, ErrorCode, Result, fail
from ..contracts.entities import NodeRef, Proxy, ProxyValue, State
from ..contracts.ontology import (
    EnforcementLevel, EpisodeStatus, EpisodeType, LinkRelation,
    MeasurementCadence, ModelScope, ModelType, MutationType, NoteTag,
    OverrideDecision, ProxyValueType, VariableStatus, parse_enum,
    MAX_ACTIVE_EXPLORE_PER_NODE, MAX_ACTIVE_STABILIZE_PER_VARIABLE,
)
from ..contracts.params import (
    ClosureNote, CreateProxyParams, CreateVariableParams, ExploreEpisodeParams,
    LogExceptionParams, OpenEpisodeParams, StabilizeEpisodeParams,
    UpdateEpisodeParams,
)
from .policy import NodePolicy
from .selectors import count_active_explores, count_active_stabilizes_for_variable


def is_blank(value: Optional[str]) -> bool:
    return not isinstance(value, str) or value.strip() == ""


def _label(value: object) -> object:
    return value.value if isinstance(value, Enum) else value


def _is_number(value: object) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def decode_enum(enum_cls: Type[Enum], value: object, what: str) -> Result:
    """Decode a member or wire string; failure names the offending value."""
    member = parse_enum(enum_cls, value)
    if member is None:
        return fail(ErrorCode.VALIDATION_FAILED, f"Invalid {what}: {_label(value)}")
    return Result.success(member)


def decode_optional_enum(enum_cls: Type[Enum], value: object, what: str) -> Result:
    if value is None:
        return Result.success(None)
    return decode_enum(enum_cls, value, what)


# =============================================================================
# EPISODE VALIDATION
# =============================================================================

def validate_episode_params(params: OpenEpisodeParams) -> Result:
    """Field checks only; the variant decides which fields are mandatory."""
    if isinstance(params, StabilizeEpisodeParams):
        if is_blank(params.variable_id):
            return fail(ErrorCode.VALIDATION_FAILED, "Stabilize episodes require variableId")
    elif not isinstance(params, ExploreEpisodeParams):
        return fail(ErrorCode.VALIDATION_FAILED, f"Invalid episode type: {type(params).__name__}")

    if is_blank(params.objective):
        return fail(ErrorCode.VALIDATION_FAILED, "Episode objective cannot be empty")
    return OK


def can_start_explore(state: State, node: NodeRef, policy: Optional[NodePolicy] = None) -> Result:
    active = count_active_explores(state, node)
    max_allowed = policy.max_active_explore_per_node if policy else MAX_ACTIVE_EXPLORE_PER_NODE
    if active >= max_allowed:
        return fail(
            ErrorCode.CARDINALITY_EXCEEDED,
            f"Cannot start Explore: node '{node.key}' already has {active} active "
            f"Explore episode(s). Max allowed: {max_allowed}",
            node=node.key
        )
    return OK


def can_start_stabilize(
    state: State,
    node: NodeRef,
    variable_id: str,
    policy: Optional[NodePolicy] = None
) -> Result:
    active = count_active_stabilizes_for_variable(state, node, variable_id)
    max_allowed = (
        policy.max_active_stabilize_per_variable if policy else MAX_ACTIVE_STABILIZE_PER_VARIABLE
    )
    if active >= max_allowed:
        return fail(
            ErrorCode.CARDINALITY_EXCEEDED,
            f"Cannot start Stabilize: node '{node.key}' already has {active} active "
            f"Stabilize episode(s) for variable '{variable_id}'. Max allowed: {max_allowed}",
            node=node.key, variable_id=variable_id
        )
    return OK


def validate_closure_note(note: ClosureNote) -> Result:
    if is_blank(note.content):
        return fail(ErrorCode.VALIDATION_FAILED, "Closure note content cannot be empty")
    return OK


def validate_episode_closure(state: State, episode_id: str, model_updates_count: int) -> Result:
    episode = next((e for e in state.episodes if e.id == episode_id), None)
    if episode is None:
        return fail(ErrorCode.NOT_FOUND, f"Episode with id '{episode_id}' not found")
    if episode.status == EpisodeStatus.CLOSED:
        return fail(ErrorCode.INVALID_STATE_TRANSITION, f"Episode '{episode_id}' is already closed")
    # Learning is mandatory for Explore
    if episode.type == EpisodeType.EXPLORE and model_updates_count == 0:
        return fail(
            ErrorCode.VALIDATION_FAILED,
            "Explore episodes must produce at least one Model update on closure"
        )
    return OK


def validate_episode_update(state: State, params: UpdateEpisodeParams) -> Result:
    episode = next((e for e in state.episodes if e.id == params.episode_id), None)
    if episode is None:
        return fail(ErrorCode.NOT_FOUND, f"Episode with id '{params.episode_id}' not found")
    if episode.status != EpisodeStatus.ACTIVE:
        return fail(
            ErrorCode.INVALID_STATE_TRANSITION,
            f"Episode '{params.episode_id}' cannot be edited: only Active episodes can be modified"
        )
    if params.objective is not None and is_blank(params.objective):
        return fail(ErrorCode.VALIDATION_FAILED, "Episode objective cannot be empty")
    if params.timebox_days is not None and not params.clear_timebox_days:
        days = params.timebox_days
        if not isinstance(days, int) or isinstance(days, bool) or days <= 0:
            return fail(ErrorCode.VALIDATION_FAILED,
                        "Episode timeboxDays must be positive if provided")
    return OK


# =============================================================================
# ACTION VALIDATION
# =============================================================================

def validate_action_creation(
    state: State,
    node: NodeRef,
    episode_id: Optional[str],
    description: Optional[str]
) -> Result:
    """Actions may be unscoped; a referenced episode must be this node's and Active."""
    if episode_id:
        episode = next((e for e in state.episodes if e.id == episode_id), None)
        if episode is None:
            return fail(ErrorCode.NOT_FOUND, f"Episode '{episode_id}' not found")
        if episode.node != node:
            return fail(ErrorCode.REFERENTIAL_INTEGRITY,
                        f"Episode '{episode_id}' does not belong to node {node.key}")
        if episode.status != EpisodeStatus.ACTIVE:
            return fail(ErrorCode.INVALID_STATE_TRANSITION,
                        f"Episode '{episode_id}' is not active")

    if is_blank(description):
        return fail(ErrorCode.VALIDATION_FAILED, "Action description cannot be empty")
    return OK


# =============================================================================
# MODEL VALIDATION
# =============================================================================

@dataclass(frozen=True)
class ModelFields:
    """Decoded, validated model attributes."""
    type: Optional[ModelType]
    confidence: Optional[float]
    scope: Optional[ModelScope]
    enforcement: Optional[EnforcementLevel]


def validate_model_fields(
    statement: Optional[str],
    model_type: object = None,
    confidence: Optional[float] = None,
    scope: object = None,
    enforcement: object = None,
    require_type: bool = True,
    require_statement: bool = True
) -> Result:
    if statement is not None or require_statement:
        if is_blank(statement):
            return fail(ErrorCode.VALIDATION_FAILED, "Model statement cannot be empty")

    decoded_type = None
    if model_type is not None or require_type:
        type_result = decode_enum(ModelType, model_type, "model type")
        if not type_result.ok:
            return type_result
        decoded_type = type_result.value

    if confidence is not None:
        if not _is_number(confidence) or not 0 <= confidence <= 1:
            return fail(ErrorCode.VALIDATION_FAILED, "Model confidence must be between 0.0 and 1.0")

    scope_result = decode_optional_enum(ModelScope, scope, "model scope")
    if not scope_result.ok:
        return scope_result
    enforcement_result = decode_optional_enum(EnforcementLevel, enforcement, "enforcement level")
    if not enforcement_result.ok:
        return enforcement_result

    return Result.success(ModelFields(
        type=decoded_type,
        confidence=confidence,
        scope=scope_result.value,
        enforcement=enforcement_result.value,
    ))


# =============================================================================
# NOTE VALIDATION
# =============================================================================

def validate_note_content(content: Optional[str]) -> Result:
    if is_blank(content):
        return fail(ErrorCode.VALIDATION_FAILED, "Note content cannot be empty")
    return OK


def validate_note_tags(tags: Iterable[object]) -> Result:
    """Decodes every tag; the value is the tuple of NoteTag members."""
    decoded = []
    for tag in tags:
        result = decode_enum(NoteTag, tag, "note tag")
        if not result.ok:
            return result
        decoded.append(result.value)
    return Result.success(tuple(decoded))


# =============================================================================
# LINK VALIDATION
# =============================================================================

def validate_link_weight(weight: Optional[float]) -> Result:
    if weight is not None and (not _is_number(weight) or not 0 <= weight <= 1):
        return fail(ErrorCode.VALIDATION_FAILED, "Link weight must be between 0.0 and 1.0")
    return OK


def validate_link_relation(relation: object) -> Result:
    return decode_enum(LinkRelation, relation, "link relation")


# =============================================================================
# VARIABLE VALIDATION
# =============================================================================

def validate_variable_creation(state: State, params: CreateVariableParams) -> Result:
    """Value is the decoded (status, cadence) pair."""
    if is_blank(params.name):
        return fail(ErrorCode.VALIDATION_FAILED, "Variable name cannot be empty")

    status = decode_enum(VariableStatus, params.status, "variable status")
    if not status.ok:
        return status
    cadence = decode_optional_enum(MeasurementCadence, params.measurement_cadence,
                                   "measurement cadence")
    if not cadence.ok:
        return cadence

    if any(v.id == params.variable_id for v in state.variables):
        return fail(ErrorCode.DUPLICATE_ID,
                    f"Variable with id '{params.variable_id}' already exists")

    wanted = params.name.strip().lower()
    for variable in state.variables:
        if variable.node == params.node and variable.name.strip().lower() == wanted:
            return fail(
                ErrorCode.DUPLICATE_NAME,
                f"Variable '{params.name.strip()}' already exists for node {params.node.key}"
            )

    return Result.success((status.value, cadence.value))


# =============================================================================
# PROXY VALIDATION
# =============================================================================

def validate_categories(value_type: ProxyValueType, categories: Optional[Tuple[str, ...]]) -> Result:
    if value_type == ProxyValueType.CATEGORICAL and not categories:
        return fail(ErrorCode.VALIDATION_FAILED,
                    "Categorical proxies require at least one category")
    if categories is not None and any(is_blank(c) for c in categories):
        return fail(ErrorCode.VALIDATION_FAILED, "Proxy categories cannot be empty")
    return OK


def validate_proxy_creation(params: CreateProxyParams) -> Result:
    """Value is the decoded ProxyValueType."""
    if is_blank(params.name):
        return fail(ErrorCode.VALIDATION_FAILED, "Proxy name cannot be empty")
    value_type = decode_enum(ProxyValueType, params.value_type, "proxy value type")
    if not value_type.ok:
        return value_type
    categories = validate_categories(value_type.value, params.categories)
    if not categories.ok:
        return categories
    return value_type


def validate_reading_value(proxy: Proxy, value: ProxyValue) -> Result:
    """The reading's tag and payload must agree with the proxy's declaration."""
    tag = parse_enum(ProxyValueType, value.type)
    if tag is None:
        return fail(ErrorCode.VALIDATION_FAILED, f"Invalid proxy value type: {_label(value.type)}")
    if tag != proxy.value_type:
        return fail(
            ErrorCode.TYPE_MISMATCH,
            f"Reading value type '{tag.value}' does not match proxy "
            f"'{proxy.id}' value type '{proxy.value_type.value}'"
        )
    if not ProxyValue(type=tag, value=value.value).matches_tag():
        return fail(ErrorCode.TYPE_MISMATCH,
                    f"Reading value does not match declared type '{tag.value}'")
    if tag == ProxyValueType.CATEGORICAL and value.value not in (proxy.categories or ()):
        return fail(ErrorCode.VALIDATION_FAILED,
                    f"Value '{value.value}' is not a valid category for proxy '{proxy.id}'")
    return Result.success(tag)


# =============================================================================
# EXCEPTION VALIDATION
# =============================================================================

def validate_exception_params(params: LogExceptionParams) -> Result:
    """Value is the decoded (original_decision, mutation_type) pair."""
    mutation_type = parse_enum(MutationType, params.mutation_type)
    if mutation_type is None:
        return fail(ErrorCode.VALIDATION_FAILED,
                    f"Invalid mutationType: '{_label(params.mutation_type)}'")
    decision = parse_enum(OverrideDecision, params.original_decision)
    if decision is None:
        return fail(ErrorCode.VALIDATION_FAILED,
                    f"Invalid originalDecision: '{_label(params.original_decision)}'")
    if is_blank(params.justification):
        return fail(ErrorCode.VALIDATION_FAILED, "Justification cannot be empty")
    return Result.success((decision, mutation_type))
