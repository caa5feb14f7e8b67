"""
Transition Logic
================

Pure mutators of the regulatory ontology.

Each mutator follows the same three steps:
    validate intent -> apply transform -> return Result(new State)

RESPONSIBILITY: Decide whether an intent may be applied and, if so,
produce the next State.
ALLOWED INPUTS: A current-shape State, one intent record, an optional
NodePolicy
OUTPUTS: Result whose value is the new State

WHAT THIS MODULE MUST NOT DO:
=============================
- Modify the input State (every collection is a tuple; transforms use
  dataclasses.replace)
- Raise for caller mistakes; every rejection is a failed Result
- Write partial results: a failure returns before any transform runs
- Log, persist, or read the clock except where an intent omits its
  own timestamp
"""

from __future__ import annotations
from dataclasses import replace
from typing import Optional

from ..contracts.base import ErrorCode, Result, Timestamp, derive_id, fail
from ..contracts.entities import Model, Note, State
from ..contracts.ontology import ActionStatus, LinkRelation, NoteTag, VariableStatus
from ..contracts.params import (
    CloseEpisodeParams, CompleteActionParams, CreateActionParams,
    CreateLinkParams, CreateModelParams, CreateNoteParams, CreateProxyParams,
    CreateVariableParams, DeleteLinkParams, DeleteProxyParams,
    LogExceptionParams, LogProxyReadingParams, NoteLinkedObjectParams,
    NoteTagParams, OpenEpisodeParams, SignalParams, StabilizeEpisodeParams,
    UpdateEpisodeParams, UpdateModelParams, UpdateNoteParams, UpdateProxyParams,
)
from . import transform
from .hierarchy import validate_part_of_link
from .integrity import (
    check_model_exists, check_no_duplicate_id, check_note_exists,
    check_object_exists, check_proxy_exists, check_variable_exists,
)
from .policy import NodePolicy
from .validation import (
    can_start_explore, can_start_stabilize, decode_enum, is_blank,
    validate_action_creation, validate_categories, validate_closure_note,
    validate_episode_closure, validate_episode_params, validate_episode_update,
    validate_exception_params, validate_link_relation, validate_link_weight,
    validate_model_fields, validate_note_content, validate_note_tags,
    validate_proxy_creation, validate_reading_value, validate_variable_creation,
)


# =============================================================================
# SIGNALS AND VARIABLES
# =============================================================================

def _audit_content(old: VariableStatus, new: VariableStatus, reason: Optional[str]) -> str:
    content = f"{old.value} → {new.value}"
    if reason and reason.strip():
        content += f": {reason.strip()}"
    return content


def apply_signal(state: State, params: SignalParams) -> Result:
    """
    Set a variable's status.

    A real status change appends an audit Note linked to the variable;
    re-signalling the current status returns the input State untouched.
    """
    status = decode_enum(VariableStatus, params.status, "variable status")
    if not status.ok:
        return status

    variable = next((v for v in state.variables if v.id == params.variable_id), None)
    if variable is None:
        return fail(ErrorCode.NOT_FOUND, f"Variable with id '{params.variable_id}' not found",
                    variable_id=params.variable_id)
    if variable.node != params.node:
        return fail(
            ErrorCode.REFERENTIAL_INTEGRITY,
            f"Variable '{params.variable_id}' does not belong to node {params.node.key}"
        )

    new_status = status.value
    if variable.status == new_status:
        return Result.success(state)

    recorded_at = params.recorded_at or Timestamp.now().to_iso()
    note_id = params.note_id or derive_id(
        "note", "audit", variable.id, variable.status.value, new_status.value,
        str(len(state.notes)), recorded_at
    )
    duplicate = check_no_duplicate_id(state.notes, note_id, "Note")
    if not duplicate.ok:
        return duplicate

    updated = transform.apply_variable_status(state, variable.id, new_status)
    updated = transform.apply_audit_note(
        updated,
        note_id=note_id,
        content=_audit_content(variable.status, new_status, params.reason),
        created_at=recorded_at,
        variable_id=variable.id,
    )
    return Result.success(updated)


def create_variable(state: State, params: CreateVariableParams) -> Result:
    decoded = validate_variable_creation(state, params)
    if not decoded.ok:
        return decoded
    status, cadence = decoded.value
    return Result.success(transform.apply_create_variable(state, params, status, cadence))


# =============================================================================
# EPISODES
# =============================================================================

def open_episode(
    state: State,
    params: OpenEpisodeParams,
    policy: Optional[NodePolicy] = None
) -> Result:
    """
    Open a Stabilize or Explore episode.

    Cardinality is checked against the node's resolved policy: Explore
    episodes per node, Stabilize episodes per (node, variable).
    """
    checked = validate_episode_params(params)
    if not checked.ok:
        return checked

    if isinstance(params, StabilizeEpisodeParams):
        allowed = can_start_stabilize(state, params.node, params.variable_id, policy)
    else:
        allowed = can_start_explore(state, params.node, policy)
    if not allowed.ok:
        return allowed

    return Result.success(transform.apply_open_episode(state, params))


def close_episode(state: State, params: CloseEpisodeParams) -> Result:
    note_check = validate_closure_note(params.closure_note)
    if not note_check.ok:
        return note_check

    closure = validate_episode_closure(state, params.episode_id, len(params.model_updates))
    if not closure.ok:
        return closure

    duplicate = check_no_duplicate_id(state.notes, params.closure_note.id, "Note")
    if not duplicate.ok:
        return duplicate

    for update in params.variable_updates:
        status = decode_enum(VariableStatus, update.status, "variable status")
        if not status.ok:
            return status

    for update in params.model_updates:
        if is_blank(update.id):
            return fail(ErrorCode.VALIDATION_FAILED, "Model id cannot be empty")
        fields = validate_model_fields(
            update.statement, update.type, update.confidence,
            update.scope, update.enforcement
        )
        if not fields.ok:
            return fields

    return Result.success(transform.apply_close_episode(
        state,
        episode_id=params.episode_id,
        closed_at=params.closed_at,
        closure_note_id=params.closure_note.id,
        closure_note_content=params.closure_note.content,
        variable_updates=params.variable_updates,
        model_updates=params.model_updates,
    ))


def update_episode(state: State, params: UpdateEpisodeParams) -> Result:
    checked = validate_episode_update(state, params)
    if not checked.ok:
        return checked
    return Result.success(transform.apply_update_episode(
        state,
        params.episode_id,
        objective=params.objective,
        timebox_days=params.timebox_days,
        clear_timebox_days=params.clear_timebox_days,
    ))


# =============================================================================
# ACTIONS
# =============================================================================

def create_action(state: State, params: CreateActionParams) -> Result:
    checked = validate_action_creation(state, params.node, params.episode_id, params.description)
    if not checked.ok:
        return checked
    return Result.success(transform.apply_create_action(state, params))


def complete_action(state: State, params: CompleteActionParams) -> Result:
    """Pending -> Done. Completing a Done action is a no-op success."""
    action = next((a for a in state.actions if a.id == params.action_id), None)
    if action is None:
        return fail(ErrorCode.NOT_FOUND, f"Action with id '{params.action_id}' not found",
                    action_id=params.action_id)
    if action.status == ActionStatus.DONE:
        return Result.success(state)
    return Result.success(transform.apply_complete_action(state, params.action_id))


# =============================================================================
# MODELS
# =============================================================================

def create_model(state: State, params: CreateModelParams) -> Result:
    duplicate = check_no_duplicate_id(state.models, params.model_id, "Model")
    if not duplicate.ok:
        return duplicate

    fields = validate_model_fields(
        params.statement, params.type, params.confidence, params.scope, params.enforcement
    )
    if not fields.ok:
        return fields
    if params.exceptions_allowed is not None and not isinstance(params.exceptions_allowed, bool):
        return fail(ErrorCode.VALIDATION_FAILED, "Model exceptionsAllowed must be a boolean")

    decoded = fields.value
    model = Model(
        id=params.model_id,
        type=decoded.type,
        statement=params.statement,
        confidence=decoded.confidence,
        scope=decoded.scope,
        enforcement=decoded.enforcement,
        exceptions_allowed=params.exceptions_allowed,
    )
    return Result.success(transform.apply_create_model(state, model))


def update_model(state: State, params: UpdateModelParams) -> Result:
    """Partial update: only fields that are provided change."""
    exists = check_model_exists(state, params.model_id)
    if not exists.ok:
        return exists

    fields = validate_model_fields(
        params.statement, None, params.confidence, params.scope, params.enforcement,
        require_type=False, require_statement=False
    )
    if not fields.ok:
        return fields

    decoded = fields.value
    current = next(m for m in state.models if m.id == params.model_id)
    model = Model(
        id=current.id,
        type=current.type,
        statement=params.statement if params.statement is not None else current.statement,
        confidence=decoded.confidence if decoded.confidence is not None else current.confidence,
        scope=decoded.scope or current.scope,
        enforcement=decoded.enforcement or current.enforcement,
        exceptions_allowed=current.exceptions_allowed,
    )
    return Result.success(transform.apply_replace_model(state, model))


# =============================================================================
# NOTES
# =============================================================================

def _find_note(state: State, note_id: str) -> Optional[Note]:
    return next((n for n in state.notes if n.id == note_id), None)


def create_note(state: State, params: CreateNoteParams) -> Result:
    content = validate_note_content(params.content)
    if not content.ok:
        return content

    duplicate = check_no_duplicate_id(state.notes, params.note_id, "Note")
    if not duplicate.ok:
        return duplicate

    tags = validate_note_tags(params.tags)
    if not tags.ok:
        return tags

    return Result.success(transform.apply_create_note(state, params, tags.value))


def update_note(state: State, params: UpdateNoteParams) -> Result:
    exists = check_note_exists(state, params.note_id)
    if not exists.ok:
        return exists
    content = validate_note_content(params.content)
    if not content.ok:
        return content

    note = _find_note(state, params.note_id)
    return Result.success(transform.apply_replace_note(state, replace(note, content=params.content)))


def add_note_tag(state: State, params: NoteTagParams) -> Result:
    """Idempotent: a tag the note already carries returns the input State."""
    exists = check_note_exists(state, params.note_id)
    if not exists.ok:
        return exists
    tag = decode_enum(NoteTag, params.tag, "note tag")
    if not tag.ok:
        return tag

    note = _find_note(state, params.note_id)
    if tag.value in note.tags:
        return Result.success(state)
    return Result.success(transform.apply_replace_note(
        state, replace(note, tags=note.tags + (tag.value,))
    ))


def remove_note_tag(state: State, params: NoteTagParams) -> Result:
    """Idempotent: removing an absent tag returns the input State."""
    exists = check_note_exists(state, params.note_id)
    if not exists.ok:
        return exists
    tag = decode_enum(NoteTag, params.tag, "note tag")
    if not tag.ok:
        return tag

    note = _find_note(state, params.note_id)
    if tag.value not in note.tags:
        return Result.success(state)
    return Result.success(transform.apply_replace_note(
        state, replace(note, tags=tuple(t for t in note.tags if t != tag.value))
    ))


def add_note_linked_object(state: State, params: NoteLinkedObjectParams) -> Result:
    """Idempotent: an object already linked returns the input State."""
    exists = check_note_exists(state, params.note_id)
    if not exists.ok:
        return exists
    if is_blank(params.object_id):
        return fail(ErrorCode.VALIDATION_FAILED, "Linked object id cannot be empty")

    note = _find_note(state, params.note_id)
    linked = note.linked_objects or ()
    if params.object_id in linked:
        return Result.success(state)
    return Result.success(transform.apply_replace_note(
        state, replace(note, linked_objects=linked + (params.object_id,))
    ))


# =============================================================================
# LINKS
# =============================================================================

def create_link(state: State, params: CreateLinkParams) -> Result:
    """
    Typed relation between any two existing objects.

    part_of links between two nodes must also keep the node hierarchy
    acyclic.
    """
    relation = validate_link_relation(params.relation)
    if not relation.ok:
        return relation
    weight = validate_link_weight(params.weight)
    if not weight.ok:
        return weight

    duplicate = check_no_duplicate_id(state.links, params.link_id, "Link")
    if not duplicate.ok:
        return duplicate

    for object_id, label in ((params.source_id, "Source"), (params.target_id, "Target")):
        exists = check_object_exists(state, object_id, label)
        if not exists.ok:
            return exists

    if relation.value == LinkRelation.PART_OF:
        node_ids = {n.id for n in state.nodes}
        if params.source_id in node_ids and params.target_id in node_ids:
            hierarchy = validate_part_of_link(state, params.source_id, params.target_id)
            if not hierarchy.ok:
                return hierarchy

    return Result.success(transform.apply_create_link(state, params, relation.value))


def delete_link(state: State, params: DeleteLinkParams) -> Result:
    """Links pointing at the deleted link are removed with it."""
    if not any(link.id == params.link_id for link in state.links):
        return fail(ErrorCode.NOT_FOUND, f"Link with id '{params.link_id}' not found",
                    link_id=params.link_id)
    return Result.success(transform.apply_delete_link(state, params.link_id))


# =============================================================================
# PROXIES
# =============================================================================

def create_proxy(state: State, params: CreateProxyParams) -> Result:
    exists = check_variable_exists(state, params.variable_id)
    if not exists.ok:
        return exists

    duplicate = check_no_duplicate_id(state.proxies, params.proxy_id, "Proxy")
    if not duplicate.ok:
        return duplicate

    value_type = validate_proxy_creation(params)
    if not value_type.ok:
        return value_type

    return Result.success(transform.apply_create_proxy(state, params, value_type.value))


def update_proxy(state: State, params: UpdateProxyParams) -> Result:
    """Only provided fields change; a categorical proxy keeps at least one category."""
    exists = check_proxy_exists(state, params.proxy_id)
    if not exists.ok:
        return exists
    if params.name is not None and is_blank(params.name):
        return fail(ErrorCode.VALIDATION_FAILED, "Proxy name cannot be empty")

    proxy = next(p for p in state.proxies if p.id == params.proxy_id)
    categories = params.categories if params.categories is not None else proxy.categories
    checked = validate_categories(proxy.value_type, categories)
    if not checked.ok:
        return checked

    return Result.success(transform.apply_update_proxy(state, params))


def delete_proxy(state: State, params: DeleteProxyParams) -> Result:
    """Removes the proxy, every reading logged against it, and links to either."""
    exists = check_proxy_exists(state, params.proxy_id)
    if not exists.ok:
        return exists
    return Result.success(transform.apply_delete_proxy(state, params.proxy_id))


def log_proxy_reading(state: State, params: LogProxyReadingParams) -> Result:
    exists = check_proxy_exists(state, params.proxy_id)
    if not exists.ok:
        return exists

    duplicate = check_no_duplicate_id(state.proxy_readings, params.reading_id, "Proxy reading")
    if not duplicate.ok:
        return duplicate

    proxy = next(p for p in state.proxies if p.id == params.proxy_id)
    value_type = validate_reading_value(proxy, params.value)
    if not value_type.ok:
        return value_type

    return Result.success(transform.apply_log_proxy_reading(state, params, value_type.value))


# =============================================================================
# MEMBRANE EXCEPTIONS
# =============================================================================

def log_exception(state: State, params: LogExceptionParams) -> Result:
    """Record that a Normative model's warn/block decision was knowingly bypassed."""
    exists = check_model_exists(state, params.model_id)
    if not exists.ok:
        return exists

    decoded = validate_exception_params(params)
    if not decoded.ok:
        return decoded

    duplicate = check_no_duplicate_id(state.exceptions, params.exception_id, "Exception")
    if not duplicate.ok:
        return duplicate

    decision, mutation_type = decoded.value
    return Result.success(transform.apply_log_exception(
        state,
        exception_id=params.exception_id,
        model_id=params.model_id,
        decision=decision,
        justification=params.justification,
        mutation_type=mutation_type,
        mutation_id=params.mutation_id,
        created_at=params.created_at,
    ))
