"""
Transform Helpers - Pure State Assembly

Build new State values from intents that already passed validation.
Unaffected collections are shared with the input State; nothing is
modified in place.
"""

from __future__ import annotations
from dataclasses import replace
from typing import Iterable, Optional, Tuple

from ..contracts.entities import (
    Action, Episode, Link, MembraneException, Model, Note, Proxy,
    ProxyReading, State, Variable,
)
from ..contracts.ontology import (
    ActionStatus, EnforcementLevel, EpisodeStatus, EpisodeType, LinkRelation,
    MeasurementCadence, ModelScope, ModelType, MutationType, NoteTag,
    OverrideDecision, ProxyValueType, VariableStatus, parse_enum,
)
from ..contracts.params import (
    CreateActionParams, CreateLinkParams, CreateNoteParams, CreateProxyParams,
    CreateVariableParams, LogProxyReadingParams, ModelUpdate, OpenEpisodeParams,
    StabilizeEpisodeParams, UpdateProxyParams, VariableUpdate,
)


def _strip(value: Optional[str]) -> Optional[str]:
    return value.strip() if value else None


# =============================================================================
# VARIABLE TRANSFORMS
# =============================================================================

def apply_variable_status(state: State, variable_id: str, status: VariableStatus) -> State:
    return replace(state, variables=tuple(
        replace(v, status=status) if v.id == variable_id else v
        for v in state.variables
    ))


def apply_variable_updates(
    variables: Tuple[Variable, ...],
    updates: Iterable[VariableUpdate]
) -> Tuple[Variable, ...]:
    """First update for an id wins; unknown ids are ignored."""
    by_id = {}
    for update in updates:
        by_id.setdefault(update.id, parse_enum(VariableStatus, update.status))
    if not by_id:
        return variables
    return tuple(
        replace(v, status=by_id[v.id]) if v.id in by_id else v
        for v in variables
    )


def apply_create_variable(
    state: State,
    params: CreateVariableParams,
    status: VariableStatus,
    cadence: Optional[MeasurementCadence]
) -> State:
    variable = Variable(
        id=params.variable_id,
        node=params.node,
        name=params.name.strip(),
        status=status,
        description=_strip(params.description),
        preferred_range=_strip(params.preferred_range),
        measurement_cadence=cadence,
    )
    return replace(state, variables=state.variables + (variable,))


# =============================================================================
# EPISODE TRANSFORMS
# =============================================================================

def apply_open_episode(state: State, params: OpenEpisodeParams) -> State:
    is_stabilize = isinstance(params, StabilizeEpisodeParams)
    episode = Episode(
        id=params.episode_id,
        node=params.node,
        type=EpisodeType.STABILIZE if is_stabilize else EpisodeType.EXPLORE,
        objective=params.objective,
        status=EpisodeStatus.ACTIVE,
        opened_at=params.opened_at,
        variable_id=params.variable_id if is_stabilize else None,
    )
    return replace(state, episodes=state.episodes + (episode,))


def apply_model_updates(
    models: Tuple[Model, ...],
    updates: Iterable[ModelUpdate]
) -> Tuple[Model, ...]:
    """Upsert by id: update fields of an existing model, otherwise append."""
    result = list(models)
    index = {m.id: i for i, m in enumerate(result)}
    for update in updates:
        confidence = update.confidence
        scope = parse_enum(ModelScope, update.scope) if update.scope is not None else None
        enforcement = (
            parse_enum(EnforcementLevel, update.enforcement)
            if update.enforcement is not None else None
        )
        if update.id in index:
            current = result[index[update.id]]
            result[index[update.id]] = replace(
                current,
                statement=update.statement,
                confidence=confidence if confidence is not None else current.confidence,
                scope=scope if scope is not None else current.scope,
                enforcement=enforcement if enforcement is not None else current.enforcement,
            )
        else:
            index[update.id] = len(result)
            result.append(Model(
                id=update.id,
                type=parse_enum(ModelType, update.type),
                statement=update.statement,
                confidence=confidence,
                scope=scope,
                enforcement=enforcement,
            ))
    return tuple(result)


def apply_close_episode(
    state: State,
    episode_id: str,
    closed_at: str,
    closure_note_id: str,
    closure_note_content: str,
    variable_updates: Iterable[VariableUpdate] = (),
    model_updates: Iterable[ModelUpdate] = ()
) -> State:
    note = Note(
        id=closure_note_id,
        content=closure_note_content,
        created_at=closed_at,
        tags=(NoteTag.CLOSURE_NOTE,),
    )
    episodes = tuple(
        replace(e, status=EpisodeStatus.CLOSED, closed_at=closed_at,
                closure_note_id=closure_note_id)
        if e.id == episode_id else e
        for e in state.episodes
    )
    return replace(
        state,
        episodes=episodes,
        variables=apply_variable_updates(state.variables, variable_updates),
        notes=state.notes + (note,),
        models=apply_model_updates(state.models, model_updates),
    )


def apply_update_episode(
    state: State,
    episode_id: str,
    objective: Optional[str] = None,
    timebox_days: Optional[int] = None,
    clear_timebox_days: bool = False
) -> State:
    def edit(episode: Episode) -> Episode:
        if objective is not None:
            episode = replace(episode, objective=objective)
        if clear_timebox_days:
            episode = replace(episode, timebox_days=None)
        elif timebox_days is not None:
            episode = replace(episode, timebox_days=timebox_days)
        return episode

    return replace(state, episodes=tuple(
        edit(e) if e.id == episode_id else e for e in state.episodes
    ))


# =============================================================================
# ACTION TRANSFORMS
# =============================================================================

def apply_create_action(state: State, params: CreateActionParams) -> State:
    action = Action(
        id=params.action_id,
        description=params.description,
        status=ActionStatus.PENDING,
        episode_id=params.episode_id or None,
    )
    return replace(state, actions=state.actions + (action,))


def apply_complete_action(state: State, action_id: str) -> State:
    return replace(state, actions=tuple(
        replace(a, status=ActionStatus.DONE) if a.id == action_id else a
        for a in state.actions
    ))


# =============================================================================
# MODEL TRANSFORMS
# =============================================================================

def apply_create_model(state: State, model: Model) -> State:
    return replace(state, models=state.models + (model,))


def apply_replace_model(state: State, model: Model) -> State:
    return replace(state, models=tuple(
        model if m.id == model.id else m for m in state.models
    ))


# =============================================================================
# NOTE TRANSFORMS
# =============================================================================

def apply_create_note(state: State, params: CreateNoteParams, tags: Tuple[NoteTag, ...]) -> State:
    note = Note(
        id=params.note_id,
        content=params.content,
        created_at=params.created_at,
        tags=tags,
        linked_objects=tuple(params.linked_objects) if params.linked_objects is not None else None,
    )
    return replace(state, notes=state.notes + (note,))


def apply_audit_note(
    state: State,
    note_id: str,
    content: str,
    created_at: str,
    variable_id: str
) -> State:
    note = Note(
        id=note_id,
        content=content,
        created_at=created_at,
        tags=(NoteTag.AUDIT,),
        linked_objects=(variable_id,),
    )
    return replace(state, notes=state.notes + (note,))


def apply_replace_note(state: State, note: Note) -> State:
    return replace(state, notes=tuple(
        note if n.id == note.id else n for n in state.notes
    ))


# =============================================================================
# LINK TRANSFORMS
# =============================================================================

def apply_create_link(state: State, params: CreateLinkParams, relation: LinkRelation) -> State:
    link = Link(
        id=params.link_id,
        source_id=params.source_id,
        target_id=params.target_id,
        relation=relation,
        weight=params.weight,
    )
    return replace(state, links=state.links + (link,))


def prune_dangling_links(state: State) -> State:
    """
    Drop links whose source or target no longer exists.

    Links may point at other links, so pruning repeats until stable.
    """
    others = {
        item.id
        for collection in (
            state.nodes, state.variables, state.episodes, state.actions,
            state.notes, state.models, state.exceptions,
            state.proxies, state.proxy_readings,
        )
        for item in collection
    }
    links = state.links
    while True:
        present = others | {link.id for link in links}
        kept = tuple(
            link for link in links
            if link.source_id in present and link.target_id in present
        )
        if len(kept) == len(links):
            break
        links = kept

    if len(links) == len(state.links):
        return state
    return replace(state, links=links)


def apply_delete_link(state: State, link_id: str) -> State:
    """Cascades to links that point at the deleted link."""
    remaining = tuple(link for link in state.links if link.id != link_id)
    return prune_dangling_links(replace(state, links=remaining))


# =============================================================================
# PROXY TRANSFORMS
# =============================================================================

def apply_create_proxy(state: State, params: CreateProxyParams, value_type: ProxyValueType) -> State:
    proxy = Proxy(
        id=params.proxy_id,
        variable_id=params.variable_id,
        name=params.name.strip(),
        value_type=value_type,
        description=_strip(params.description),
        unit=_strip(params.unit),
        categories=tuple(params.categories) if params.categories is not None else None,
        thresholds=params.thresholds,
    )
    return replace(state, proxies=state.proxies + (proxy,))


def apply_update_proxy(state: State, params: UpdateProxyParams) -> State:
    def edit(proxy: Proxy) -> Proxy:
        return replace(
            proxy,
            name=params.name.strip() if params.name is not None else proxy.name,
            description=params.description if params.description is not None else proxy.description,
            unit=params.unit if params.unit is not None else proxy.unit,
            categories=(
                tuple(params.categories) if params.categories is not None else proxy.categories
            ),
            thresholds=params.thresholds if params.thresholds is not None else proxy.thresholds,
        )

    return replace(state, proxies=tuple(
        edit(p) if p.id == params.proxy_id else p for p in state.proxies
    ))


def apply_delete_proxy(state: State, proxy_id: str) -> State:
    """Cascades to the proxy's readings and to links touching either."""
    return prune_dangling_links(replace(
        state,
        proxies=tuple(p for p in state.proxies if p.id != proxy_id),
        proxy_readings=tuple(r for r in state.proxy_readings if r.proxy_id != proxy_id),
    ))


def apply_log_proxy_reading(state: State, params: LogProxyReadingParams, value_type: ProxyValueType) -> State:
    reading = ProxyReading(
        id=params.reading_id,
        proxy_id=params.proxy_id,
        value=replace(params.value, type=value_type),
        recorded_at=params.recorded_at,
        source=params.source,
    )
    return replace(state, proxy_readings=state.proxy_readings + (reading,))


# =============================================================================
# EXCEPTION TRANSFORMS
# =============================================================================

def apply_log_exception(
    state: State,
    exception_id: str,
    model_id: str,
    decision: OverrideDecision,
    justification: str,
    mutation_type: MutationType,
    mutation_id: str,
    created_at: str
) -> State:
    record = MembraneException(
        id=exception_id,
        model_id=model_id,
        original_decision=decision,
        justification=justification,
        mutation_type=mutation_type,
        mutation_id=mutation_id,
        created_at=created_at,
    )
    return replace(state, exceptions=state.exceptions + (record,))
