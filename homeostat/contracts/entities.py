"""
Entity Contracts

Immutable records for every entity of the regulatory ontology and the
State aggregate root that holds them.

BOUNDARY ENFORCEMENT:
=====================
- Every record is a frozen dataclass; collections are tuples
- A "mutation" is always a new State built with dataclasses.replace
- to_dict / from_dict are the ONLY bridge to the persisted document
  shape (camelCase keys, optional fields omitted when absent)
- from_dict trusts its input: callers pass documents that already
  passed the schema pipeline
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Union

from .ontology import (
    SCHEMA_VERSION, ActionStatus, EnforcementLevel, EpisodeStatus,
    EpisodeType, LinkRelation, MeasurementCadence, ModelScope, ModelType,
    MutationType, NodeKind, NodeType, NoteTag, OverrideDecision,
    ProxyValueType, VariableStatus,
)


def _compact(data: Dict[str, Any]) -> Dict[str, Any]:
    """Drop absent optional fields so they are omitted, not null."""
    return {k: v for k, v in data.items() if v is not None}


def _opt_tuple(values: Optional[List[Any]]) -> Optional[Tuple[Any, ...]]:
    return tuple(values) if values is not None else None


def _opt_list(values: Optional[Tuple[Any, ...]]) -> Optional[List[Any]]:
    return list(values) if values is not None else None


def _opt_enum(enum_cls, value):
    return enum_cls(value) if value is not None else None


def _opt_value(member):
    return member.value if member is not None else None


# =============================================================================
# NODES
# =============================================================================

@dataclass(frozen=True)
class NodeRef:
    """Reference to the regulatory scope that owns Variables and Episodes."""
    type: NodeType
    id: str

    def __post_init__(self):
        if not isinstance(self.id, str) or not self.id:
            raise ValueError("NodeRef id must be a non-empty string")

    @property
    def key(self) -> str:
        """Policy and display key, e.g. 'Personal:personal'."""
        return f"{self.type.value}:{self.id}"

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type.value, "id": self.id}

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> NodeRef:
        return NodeRef(type=NodeType(data["type"]), id=data["id"])


DEFAULT_PERSONAL_NODE = NodeRef(type=NodeType.PERSONAL, id="personal")
DEFAULT_ORG_NODE = NodeRef(type=NodeType.ORG, id="org")


@dataclass(frozen=True)
class Node:
    """First-class node entity (agent, system or domain)."""
    id: str
    kind: NodeKind
    name: str
    created_at: str
    description: Optional[str] = None
    tags: Optional[Tuple[str, ...]] = None

    def to_dict(self) -> Dict[str, Any]:
        return _compact({
            "id": self.id,
            "kind": self.kind.value,
            "name": self.name,
            "description": self.description,
            "tags": _opt_list(self.tags),
            "createdAt": self.created_at,
        })

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> Node:
        return Node(
            id=data["id"],
            kind=NodeKind(data["kind"]),
            name=data["name"],
            created_at=data["createdAt"],
            description=data.get("description"),
            tags=_opt_tuple(data.get("tags")),
        )


# =============================================================================
# VARIABLES, EPISODES, ACTIONS
# =============================================================================

@dataclass(frozen=True)
class Variable:
    """A tracked homeostatic quantity."""
    id: str
    node: NodeRef
    name: str
    status: VariableStatus
    description: Optional[str] = None
    preferred_range: Optional[str] = None
    measurement_cadence: Optional[MeasurementCadence] = None

    def to_dict(self) -> Dict[str, Any]:
        return _compact({
            "id": self.id,
            "node": self.node.to_dict(),
            "name": self.name,
            "status": self.status.value,
            "description": self.description,
            "preferredRange": self.preferred_range,
            "measurementCadence": _opt_value(self.measurement_cadence),
        })

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> Variable:
        return Variable(
            id=data["id"],
            node=NodeRef.from_dict(data["node"]),
            name=data["name"],
            status=VariableStatus(data["status"]),
            description=data.get("description"),
            preferred_range=data.get("preferredRange"),
            measurement_cadence=_opt_enum(MeasurementCadence, data.get("measurementCadence")),
        )


@dataclass(frozen=True)
class Episode:
    """
    A time-boxed intervention.

    Lifecycle: Active -> Closed. Closed episodes are immutable;
    only objective and timebox_days are editable while Active.
    """
    id: str
    node: NodeRef
    type: EpisodeType
    objective: str
    status: EpisodeStatus
    opened_at: str
    variable_id: Optional[str] = None
    closed_at: Optional[str] = None
    closure_note_id: Optional[str] = None
    timebox_days: Optional[int] = None

    @property
    def is_active(self) -> bool:
        return self.status == EpisodeStatus.ACTIVE

    def to_dict(self) -> Dict[str, Any]:
        return _compact({
            "id": self.id,
            "node": self.node.to_dict(),
            "type": self.type.value,
            "variableId": self.variable_id,
            "objective": self.objective,
            "status": self.status.value,
            "openedAt": self.opened_at,
            "closedAt": self.closed_at,
            "closureNoteId": self.closure_note_id,
            "timeboxDays": self.timebox_days,
        })

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> Episode:
        return Episode(
            id=data["id"],
            node=NodeRef.from_dict(data["node"]),
            type=EpisodeType(data["type"]),
            objective=data["objective"],
            status=EpisodeStatus(data["status"]),
            opened_at=data["openedAt"],
            variable_id=data.get("variableId"),
            closed_at=data.get("closedAt"),
            closure_note_id=data.get("closureNoteId"),
            timebox_days=data.get("timeboxDays"),
        )


@dataclass(frozen=True)
class Action:
    """A disposable unit of execution, optionally scoped to an episode."""
    id: str
    description: str
    status: ActionStatus
    episode_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return _compact({
            "id": self.id,
            "description": self.description,
            "status": self.status.value,
            "episodeId": self.episode_id,
        })

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> Action:
        return Action(
            id=data["id"],
            description=data["description"],
            status=ActionStatus(data["status"]),
            episode_id=data.get("episodeId"),
        )


# =============================================================================
# MODELS, NOTES, LINKS, EXCEPTIONS
# =============================================================================

@dataclass(frozen=True)
class Model:
    """A learned belief."""
    id: str
    type: ModelType
    statement: str
    confidence: Optional[float] = None
    scope: Optional[ModelScope] = None
    enforcement: Optional[EnforcementLevel] = None
    exceptions_allowed: Optional[bool] = None

    def to_dict(self) -> Dict[str, Any]:
        return _compact({
            "id": self.id,
            "type": self.type.value,
            "statement": self.statement,
            "confidence": self.confidence,
            "scope": _opt_value(self.scope),
            "enforcement": _opt_value(self.enforcement),
            "exceptionsAllowed": self.exceptions_allowed,
        })

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> Model:
        return Model(
            id=data["id"],
            type=ModelType(data["type"]),
            statement=data["statement"],
            confidence=data.get("confidence"),
            scope=_opt_enum(ModelScope, data.get("scope")),
            enforcement=_opt_enum(EnforcementLevel, data.get("enforcement")),
            exceptions_allowed=data.get("exceptionsAllowed"),
        )


@dataclass(frozen=True)
class Note:
    """Timestamped free text with semantic tags."""
    id: str
    content: str
    created_at: str
    tags: Tuple[NoteTag, ...] = field(default_factory=tuple)
    linked_objects: Optional[Tuple[str, ...]] = None

    def to_dict(self) -> Dict[str, Any]:
        return _compact({
            "id": self.id,
            "content": self.content,
            "createdAt": self.created_at,
            "tags": [tag.value for tag in self.tags],
            "linkedObjects": _opt_list(self.linked_objects),
        })

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> Note:
        return Note(
            id=data["id"],
            content=data["content"],
            created_at=data["createdAt"],
            tags=tuple(NoteTag(tag) for tag in data.get("tags", [])),
            linked_objects=_opt_tuple(data.get("linkedObjects")),
        )


@dataclass(frozen=True)
class Link:
    """Typed, optionally weighted relation between two existing objects."""
    id: str
    source_id: str
    target_id: str
    relation: LinkRelation
    weight: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return _compact({
            "id": self.id,
            "sourceId": self.source_id,
            "targetId": self.target_id,
            "relation": self.relation.value,
            "weight": self.weight,
        })

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> Link:
        return Link(
            id=data["id"],
            source_id=data["sourceId"],
            target_id=data["targetId"],
            relation=LinkRelation(data["relation"]),
            weight=data.get("weight"),
        )


@dataclass(frozen=True)
class MembraneException:
    """Audit record of a knowingly bypassed Normative Model."""
    id: str
    model_id: str
    original_decision: OverrideDecision
    justification: str
    mutation_type: MutationType
    mutation_id: str
    created_at: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "modelId": self.model_id,
            "originalDecision": self.original_decision.value,
            "justification": self.justification,
            "mutationType": self.mutation_type.value,
            "mutationId": self.mutation_id,
            "createdAt": self.created_at,
        }

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> MembraneException:
        return MembraneException(
            id=data["id"],
            model_id=data["modelId"],
            original_decision=OverrideDecision(data["originalDecision"]),
            justification=data["justification"],
            mutation_type=MutationType(data["mutationType"]),
            mutation_id=data["mutationId"],
            created_at=data["createdAt"],
        )


# =============================================================================
# PROXIES AND READINGS
# =============================================================================

@dataclass(frozen=True)
class ProxyThresholds:
    """Numeric boundaries used for status inference."""
    low_below: Optional[float] = None
    high_above: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return _compact({"lowBelow": self.low_below, "highAbove": self.high_above})

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> ProxyThresholds:
        return ProxyThresholds(
            low_below=data.get("lowBelow"),
            high_above=data.get("highAbove"),
        )


@dataclass(frozen=True)
class Proxy:
    """Typed measurement channel feeding a Variable."""
    id: str
    variable_id: str
    name: str
    value_type: ProxyValueType
    description: Optional[str] = None
    unit: Optional[str] = None
    categories: Optional[Tuple[str, ...]] = None
    thresholds: Optional[ProxyThresholds] = None

    def to_dict(self) -> Dict[str, Any]:
        return _compact({
            "id": self.id,
            "variableId": self.variable_id,
            "name": self.name,
            "description": self.description,
            "valueType": self.value_type.value,
            "unit": self.unit,
            "categories": _opt_list(self.categories),
            "thresholds": self.thresholds.to_dict() if self.thresholds is not None else None,
        })

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> Proxy:
        thresholds = data.get("thresholds")
        return Proxy(
            id=data["id"],
            variable_id=data["variableId"],
            name=data["name"],
            value_type=ProxyValueType(data["valueType"]),
            description=data.get("description"),
            unit=data.get("unit"),
            categories=_opt_tuple(data.get("categories")),
            thresholds=ProxyThresholds.from_dict(thresholds) if thresholds is not None else None,
        )


@dataclass(frozen=True)
class ProxyValue:
    """Reading value tagged by the proxy value type it claims to carry."""
    type: ProxyValueType
    value: Union[float, bool, str]

    def matches_tag(self) -> bool:
        """True when the payload's Python type agrees with the tag."""
        if self.type == ProxyValueType.NUMERIC:
            return isinstance(self.value, (int, float)) and not isinstance(self.value, bool)
        if self.type == ProxyValueType.BOOLEAN:
            return isinstance(self.value, bool)
        return isinstance(self.value, str)

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type.value, "value": self.value}

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> ProxyValue:
        return ProxyValue(type=ProxyValueType(data["type"]), value=data["value"])


@dataclass(frozen=True)
class ProxyReading:
    """Timestamped observation of a proxy."""
    id: str
    proxy_id: str
    value: ProxyValue
    recorded_at: str
    source: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return _compact({
            "id": self.id,
            "proxyId": self.proxy_id,
            "value": self.value.to_dict(),
            "recordedAt": self.recorded_at,
            "source": self.source,
        })

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> ProxyReading:
        return ProxyReading(
            id=data["id"],
            proxy_id=data["proxyId"],
            value=ProxyValue.from_dict(data["value"]),
            recorded_at=data["recordedAt"],
            source=data.get("source"),
        )


# =============================================================================
# STATE (Aggregate root)
# =============================================================================

@dataclass(frozen=True)
class State:
    """
    Immutable aggregate root of the regulatory ontology.

    Global invariants (checked by the schema layer, preserved by the
    transition engine):
    - every id is unique within its own collection
    - every cross-reference resolves
    """
    schema_version: int = SCHEMA_VERSION
    nodes: Tuple[Node, ...] = field(default_factory=tuple)
    variables: Tuple[Variable, ...] = field(default_factory=tuple)
    episodes: Tuple[Episode, ...] = field(default_factory=tuple)
    actions: Tuple[Action, ...] = field(default_factory=tuple)
    notes: Tuple[Note, ...] = field(default_factory=tuple)
    models: Tuple[Model, ...] = field(default_factory=tuple)
    links: Tuple[Link, ...] = field(default_factory=tuple)
    exceptions: Tuple[MembraneException, ...] = field(default_factory=tuple)
    proxies: Tuple[Proxy, ...] = field(default_factory=tuple)
    proxy_readings: Tuple[ProxyReading, ...] = field(default_factory=tuple)

    @staticmethod
    def empty() -> State:
        return State()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "schemaVersion": self.schema_version,
            "nodes": [n.to_dict() for n in self.nodes],
            "variables": [v.to_dict() for v in self.variables],
            "episodes": [e.to_dict() for e in self.episodes],
            "actions": [a.to_dict() for a in self.actions],
            "notes": [n.to_dict() for n in self.notes],
            "models": [m.to_dict() for m in self.models],
            "links": [link.to_dict() for link in self.links],
            "exceptions": [ex.to_dict() for ex in self.exceptions],
            "proxies": [p.to_dict() for p in self.proxies],
            "proxyReadings": [r.to_dict() for r in self.proxy_readings],
        }

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> State:
        return State(
            schema_version=data["schemaVersion"],
            nodes=tuple(Node.from_dict(n) for n in data["nodes"]),
            variables=tuple(Variable.from_dict(v) for v in data["variables"]),
            episodes=tuple(Episode.from_dict(e) for e in data["episodes"]),
            actions=tuple(Action.from_dict(a) for a in data["actions"]),
            notes=tuple(Note.from_dict(n) for n in data["notes"]),
            models=tuple(Model.from_dict(m) for m in data["models"]),
            links=tuple(Link.from_dict(link) for link in data["links"]),
            exceptions=tuple(MembraneException.from_dict(ex) for ex in data["exceptions"]),
            proxies=tuple(Proxy.from_dict(p) for p in data["proxies"]),
            proxy_readings=tuple(ProxyReading.from_dict(r) for r in data["proxyReadings"]),
        )
