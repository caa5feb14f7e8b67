"""
Ontology Constants

The closed enumerations and numeric regulatory limits every other
layer references. Loaded once, never modified.

Each enum's value is the exact string used in the persisted document,
so `Enum(value)` is the wire decoder and `.value` the encoder.
"""

from __future__ import annotations
from enum import Enum
from typing import FrozenSet, Optional, Type, TypeVar


SCHEMA_VERSION = 13

MAX_ACTIVE_EXPLORE_PER_NODE = 1
MAX_ACTIVE_STABILIZE_PER_VARIABLE = 1


# =============================================================================
# NODES
# =============================================================================

class NodeType(Enum):
    """Legacy node discriminator, still used by NodeRef."""
    PERSONAL = "Personal"
    ORG = "Org"


class NodeKind(Enum):
    """Kind of a first-class Node entity."""
    AGENT = "agent"
    SYSTEM = "system"
    DOMAIN = "domain"


DEFAULT_PERSONAL_NODE_ID = "personal"
DEFAULT_ORG_NODE_ID = "org"
ENGINE_NODE_ID = "system:becoming-engine"


# =============================================================================
# VARIABLES
# =============================================================================

class VariableStatus(Enum):
    LOW = "Low"
    IN_RANGE = "InRange"
    HIGH = "High"
    UNKNOWN = "Unknown"


class MeasurementCadence(Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    AS_NEEDED = "asNeeded"


# =============================================================================
# EPISODES AND ACTIONS
# =============================================================================

class EpisodeType(Enum):
    """
    Stabilize fixes one variable; Explore is learning-oriented
    and must produce at least one Model on closure.
    """
    STABILIZE = "Stabilize"
    EXPLORE = "Explore"


class EpisodeStatus(Enum):
    """Lifecycle is monotonic: ACTIVE -> CLOSED, never back."""
    ACTIVE = "Active"
    CLOSED = "Closed"


class ActionStatus(Enum):
    PENDING = "Pending"
    DONE = "Done"


# =============================================================================
# MODELS, NOTES, LINKS
# =============================================================================

class ModelType(Enum):
    DESCRIPTIVE = "Descriptive"
    PROCEDURAL = "Procedural"
    NORMATIVE = "Normative"


class ModelScope(Enum):
    PERSONAL = "personal"
    ORG = "org"
    DOMAIN = "domain"


class EnforcementLevel(Enum):
    NONE = "none"
    WARN = "warn"
    BLOCK = "block"


class NoteTag(Enum):
    INBOX = "inbox"
    PENDING_APPROVAL = "pending_approval"
    PROCESSED = "processed"
    CLOSURE_NOTE = "closure_note"
    AUDIT = "audit"


class LinkRelation(Enum):
    SUPPORTS = "supports"
    TESTS = "tests"
    BLOCKS = "blocks"
    RESPONDS_TO = "responds_to"
    DERIVED_FROM = "derived_from"
    PART_OF = "part_of"
    COORDINATES = "coordinates"


# =============================================================================
# MEMBRANE AND PROXIES
# =============================================================================

class MutationType(Enum):
    EPISODE = "episode"
    ACTION = "action"
    SIGNAL = "signal"


class OverrideDecision(Enum):
    WARN = "warn"
    BLOCK = "block"


class ProxyValueType(Enum):
    NUMERIC = "numeric"
    BOOLEAN = "boolean"
    CATEGORICAL = "categorical"


# =============================================================================
# MEMBERSHIP HELPERS
# =============================================================================

E = TypeVar("E", bound=Enum)


def wire_values(enum_cls: Type[Enum]) -> FrozenSet[str]:
    """The set of persisted string values of an enum."""
    return frozenset(member.value for member in enum_cls)


def parse_enum(enum_cls: Type[E], value: object) -> Optional[E]:
    """
    Accept either an enum member or its wire string.
    Returns None for anything that is not a member.
    """
    if isinstance(value, enum_cls):
        return value
    if isinstance(value, str):
        try:
            return enum_cls(value)
        except ValueError:
            return None
    return None


NODE_TYPES = wire_values(NodeType)
NODE_KINDS = wire_values(NodeKind)
VARIABLE_STATUSES = wire_values(VariableStatus)
MEASUREMENT_CADENCES = wire_values(MeasurementCadence)
EPISODE_TYPES = wire_values(EpisodeType)
EPISODE_STATUSES = wire_values(EpisodeStatus)
ACTION_STATUSES = wire_values(ActionStatus)
MODEL_TYPES = wire_values(ModelType)
MODEL_SCOPES = wire_values(ModelScope)
ENFORCEMENT_LEVELS = wire_values(EnforcementLevel)
NOTE_TAGS = wire_values(NoteTag)
LINK_RELATIONS = wire_values(LinkRelation)
MUTATION_TYPES = wire_values(MutationType)
OVERRIDE_DECISIONS = wire_values(OverrideDecision)
PROXY_VALUE_TYPES = wire_values(ProxyValueType)
