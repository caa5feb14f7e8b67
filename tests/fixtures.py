"""
Regulator Test Fixtures

Explicit, deterministic States and intents shared by the test modules.
No random generation here; property tests build their own strategies.
"""

from dataclasses import replace

from homeostat.contracts.base import EPOCH_ISO
from homeostat.contracts.entities import (
    Action, Episode, Model, Node, NodeRef, Note, Proxy, ProxyReading,
    ProxyThresholds, ProxyValue, State, Variable,
)
from homeostat.contracts.ontology import (
    ActionStatus, EpisodeStatus, EpisodeType, ModelScope,
    ModelType, NodeKind, NodeType, NoteTag, ProxyValueType, VariableStatus,
)
from homeostat.contracts.params import (
    CloseEpisodeParams, ClosureNote, ExploreEpisodeParams, ModelUpdate,
    StabilizeEpisodeParams,
)
from homeostat.contracts.seeds import CANONICAL_NODES


# =============================================================================
# FIXED TIMESTAMPS (deterministic)
# =============================================================================

T0 = EPOCH_ISO
T1 = "2026-01-01T10:00:00.000Z"
T2 = "2026-01-01T10:05:00.000Z"
T3 = "2026-01-01T10:10:00.000Z"
T4 = "2026-01-01T10:15:00.000Z"


# =============================================================================
# NODE REFERENCES
# =============================================================================

PERSONAL = NodeRef(type=NodeType.PERSONAL, id="personal")
ORG = NodeRef(type=NodeType.ORG, id="org")
TEAM = NodeRef(type=NodeType.ORG, id="team-a")


# =============================================================================
# ENTITY BUILDERS
# =============================================================================

def make_variable(
    variable_id="v1",
    node=PERSONAL,
    name="Sleep",
    status=VariableStatus.IN_RANGE
) -> Variable:
    return Variable(id=variable_id, node=node, name=name, status=status)


def make_episode(
    episode_id="e1",
    node=PERSONAL,
    episode_type=EpisodeType.EXPLORE,
    status=EpisodeStatus.ACTIVE,
    variable_id=None
) -> Episode:
    return Episode(
        id=episode_id,
        node=node,
        type=episode_type,
        objective="Learn X",
        status=status,
        opened_at=T1,
        variable_id=variable_id,
        closed_at=T2 if status == EpisodeStatus.CLOSED else None,
    )


def make_model(
    model_id="m1",
    model_type=ModelType.DESCRIPTIVE,
    statement="X causes Y",
    scope=None,
    enforcement=None
) -> Model:
    return Model(
        id=model_id, type=model_type, statement=statement,
        scope=scope, enforcement=enforcement,
    )


def make_note(note_id="n1", tags=(), linked_objects=None) -> Note:
    return Note(
        id=note_id, content="Observed something", created_at=T1,
        tags=tuple(tags), linked_objects=linked_objects,
    )


def make_numeric_proxy(
    proxy_id="p1",
    variable_id="v1",
    low_below=6.0,
    high_above=9.0
) -> Proxy:
    return Proxy(
        id=proxy_id,
        variable_id=variable_id,
        name="Hours slept",
        value_type=ProxyValueType.NUMERIC,
        unit="hours",
        thresholds=ProxyThresholds(low_below=low_below, high_above=high_above),
    )


def make_reading(reading_id, value, proxy_id="p1", recorded_at=T1) -> ProxyReading:
    return ProxyReading(
        id=reading_id,
        proxy_id=proxy_id,
        value=ProxyValue(type=ProxyValueType.NUMERIC, value=value),
        recorded_at=recorded_at,
    )


# =============================================================================
# STATE FIXTURES
# =============================================================================

def empty_state() -> State:
    """Current version, every collection empty."""
    return State.empty()


def seeded_state() -> State:
    """Canonical nodes plus one Personal and one Org variable."""
    return State(
        nodes=CANONICAL_NODES,
        variables=(
            make_variable("v1", PERSONAL, "Sleep", VariableStatus.LOW),
            make_variable("v2", PERSONAL, "Focus", VariableStatus.IN_RANGE),
            make_variable("v3", ORG, "Runway", VariableStatus.IN_RANGE),
        ),
    )


def state_with_active_explore() -> State:
    return replace(seeded_state(), episodes=(make_episode("e1"),))


def state_with_proxy() -> State:
    return replace(seeded_state(), proxies=(make_numeric_proxy(),))


def state_with_notes() -> State:
    return replace(seeded_state(), notes=(make_note("n1", tags=(NoteTag.INBOX,)),))


def state_with_team_node() -> State:
    team = Node(id="team-a", kind=NodeKind.AGENT, name="Team A", created_at=T1)
    return replace(seeded_state(), nodes=CANONICAL_NODES + (team,))


def state_with_action(status=ActionStatus.PENDING) -> State:
    state = state_with_active_explore()
    return replace(state, actions=(
        Action(id="a1", description="Read the paper", status=status, episode_id="e1"),
    ))


def normative_model(model_id, enforcement, scope=ModelScope.DOMAIN, statement=None) -> Model:
    return make_model(
        model_id,
        ModelType.NORMATIVE,
        statement or f"Rule {model_id}",
        scope=scope,
        enforcement=enforcement,
    )


# =============================================================================
# INTENT FIXTURES
# =============================================================================

def explore_params(episode_id="e-new", node=PERSONAL, objective="Learn X") -> ExploreEpisodeParams:
    return ExploreEpisodeParams(
        episode_id=episode_id, node=node, objective=objective, opened_at=T2,
    )


def stabilize_params(episode_id="s-new", node=PERSONAL, variable_id="v1") -> StabilizeEpisodeParams:
    return StabilizeEpisodeParams(
        episode_id=episode_id, node=node, variable_id=variable_id,
        objective="Restore sleep", opened_at=T2,
    )


def close_params(episode_id="e1", note_id="cn1", model_updates=(), variable_updates=()) -> CloseEpisodeParams:
    return CloseEpisodeParams(
        episode_id=episode_id,
        closed_at=T3,
        closure_note=ClosureNote(id=note_id, content="Learned that X causes Y"),
        variable_updates=tuple(variable_updates),
        model_updates=tuple(model_updates),
    )


FIRST_MODEL_UPDATE = ModelUpdate(id="m1", type=ModelType.DESCRIPTIVE, statement="X causes Y")


# =============================================================================
# LEGACY DOCUMENT BUILDER
# =============================================================================

def legacy_doc(version):
    """A small document matching exactly one historical version."""
    if version < 2:
        personal, org = "Personal", "Org"
    else:
        personal = {"type": "Personal", "id": "personal"}
        org = {"type": "Org", "id": "org"}

    variable = {"id": "v1", "node": personal, "name": "Sleep", "status": "Low"}
    if version >= 10:
        variable["measurementCadence"] = "weekly"

    episode = {"id": "e1", "node": org, "type": "Explore", "objective": "Learn", "status": "Closed"}
    if version >= 4:
        episode["openedAt"] = T1
        episode["closedAt"] = T2

    note = {"id": "n1", "content": "Closed the loop"}
    if version >= 6:
        note["createdAt"] = T2
        note["tags"] = ["closure_note"]

    doc = {
        "variables": [variable],
        "episodes": [episode],
        "actions": [{"id": "a1", "description": "Read", "status": "Done", "episodeId": "e1"}],
        "notes": [note],
    }
    if version >= 1:
        doc["schemaVersion"] = version
    if version >= 5:
        doc["models"] = [{"id": "m1", "type": "Descriptive", "statement": "X causes Y"}]
    if version >= 7:
        doc["links"] = [{"id": "l1", "sourceId": "m1", "targetId": "e1", "relation": "derived_from"}]
    if version >= 8:
        doc["exceptions"] = []
    if version >= 11:
        doc["proxies"] = []
        doc["proxyReadings"] = []
    if version >= 12:
        doc["nodes"] = []
    return doc
