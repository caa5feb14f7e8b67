"""
Composable Structural Validators

RESPONSIBILITY: Decide whether an arbitrary, untrusted document matches
one schema version's shape, including cross-entity references.
ALLOWED INPUTS: Anything (decoded JSON, None, scalars, garbage)
OUTPUTS: bool

WHAT THIS MODULE MUST NOT DO:
=============================
- Raise on any input
- Mutate or normalize its input
- Import entity records (it works on the raw persisted shape)

Each historical version is described by a StateSchema record; one
generic routine (validate_state_against_schema) interprets it. An
absent key means "undefined"; a key present with null is a wrong type.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, FrozenSet, Iterable, Optional, Set

from ..contracts.ontology import (
    ACTION_STATUSES, ENFORCEMENT_LEVELS, EPISODE_STATUSES, EPISODE_TYPES,
    LINK_RELATIONS, MEASUREMENT_CADENCES, MODEL_SCOPES, MODEL_TYPES,
    MUTATION_TYPES, NODE_KINDS, NODE_TYPES, NOTE_TAGS, OVERRIDE_DECISIONS,
    PROXY_VALUE_TYPES, VARIABLE_STATUSES,
)


_MISSING = object()


# =============================================================================
# PRIMITIVE VALIDATORS
# =============================================================================

def is_object(value: Any) -> bool:
    return isinstance(value, dict)


def is_sequence(value: Any) -> bool:
    return isinstance(value, list)


def is_string(value: Any) -> bool:
    return isinstance(value, str)


def is_number(value: Any) -> bool:
    # bool is an int subclass in Python but never a number on the wire
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def is_member(allowed: FrozenSet[str], value: Any) -> bool:
    return isinstance(value, str) and value in allowed


def is_node_ref(value: Any) -> bool:
    """{type: Personal|Org, id: non-empty string}"""
    if not is_object(value):
        return False
    if not is_member(NODE_TYPES, value.get("type")):
        return False
    node_id = value.get("id")
    return is_string(node_id) and len(node_id) > 0


def _optional(obj: dict, key: str, predicate) -> bool:
    """True when the key is absent or its value satisfies the predicate."""
    value = obj.get(key, _MISSING)
    return value is _MISSING or predicate(value)


def _string_list(value: Any) -> bool:
    return is_sequence(value) and all(is_string(item) for item in value)


def _unit_interval(value: Any) -> bool:
    return is_number(value) and 0 <= value <= 1


# =============================================================================
# ENTITY VALIDATION OPTIONS
# =============================================================================

@dataclass(frozen=True)
class VariableOptions:
    node_format: str  # "legacy" (bare NodeType) or "ref" (NodeRef)
    allow_enrichments: bool = False


@dataclass(frozen=True)
class EpisodeOptions:
    node_format: str
    timestamps: str  # "none" or "required"
    allow_closure_note_id: bool = False
    allow_timebox_days: bool = False


@dataclass(frozen=True)
class ActionOptions:
    episode_id_required: bool


@dataclass(frozen=True)
class NoteOptions:
    require_metadata: bool
    allow_linked_objects: bool = False


@dataclass(frozen=True)
class ModelOptions:
    allow_exceptions_allowed: bool = False


def _valid_node_field(value: Any, node_format: str) -> bool:
    if node_format == "legacy":
        return is_member(NODE_TYPES, value)
    return is_node_ref(value)


# =============================================================================
# ENTITY VALIDATORS (one element each)
# =============================================================================

def validate_variable(v: Any, options: VariableOptions) -> bool:
    if not is_object(v):
        return False
    if not is_string(v.get("id")) or not is_string(v.get("name")):
        return False
    if not is_member(VARIABLE_STATUSES, v.get("status")):
        return False
    if not _valid_node_field(v.get("node"), options.node_format):
        return False

    if options.allow_enrichments:
        if not _optional(v, "description", is_string):
            return False
        if not _optional(v, "preferredRange", is_string):
            return False
        if not _optional(v, "measurementCadence",
                         lambda c: is_member(MEASUREMENT_CADENCES, c)):
            return False

    return True


def validate_episode(e: Any, options: EpisodeOptions) -> bool:
    if not is_object(e):
        return False
    if not is_string(e.get("id")) or not is_string(e.get("objective")):
        return False
    if not is_member(EPISODE_TYPES, e.get("type")):
        return False
    if not is_member(EPISODE_STATUSES, e.get("status")):
        return False
    if not _optional(e, "variableId", is_string):
        return False
    if not _valid_node_field(e.get("node"), options.node_format):
        return False

    if options.timestamps == "required":
        if not is_string(e.get("openedAt")):
            return False
        if not _optional(e, "closedAt", is_string):
            return False

    if options.allow_closure_note_id and not _optional(e, "closureNoteId", is_string):
        return False

    if options.allow_timebox_days and not _optional(e, "timeboxDays", is_number):
        return False

    return True


def validate_action(a: Any, options: ActionOptions) -> bool:
    if not is_object(a):
        return False
    if not is_string(a.get("id")) or not is_string(a.get("description")):
        return False
    if not is_member(ACTION_STATUSES, a.get("status")):
        return False

    if options.episode_id_required:
        return is_string(a.get("episodeId"))
    return _optional(a, "episodeId", is_string)


def validate_note(n: Any, options: NoteOptions) -> bool:
    if not is_object(n):
        return False
    if not is_string(n.get("id")) or not is_string(n.get("content")):
        return False

    if options.require_metadata:
        if not is_string(n.get("createdAt")):
            return False
        tags = n.get("tags")
        if not is_sequence(tags):
            return False
        if not all(is_member(NOTE_TAGS, tag) for tag in tags):
            return False

    if options.allow_linked_objects and not _optional(n, "linkedObjects", _string_list):
        return False

    return True


def validate_model(m: Any, options: Optional[ModelOptions] = None) -> bool:
    options = options or ModelOptions()
    if not is_object(m):
        return False
    if not is_string(m.get("id")) or not is_string(m.get("statement")):
        return False
    if not is_member(MODEL_TYPES, m.get("type")):
        return False
    if not _optional(m, "confidence", _unit_interval):
        return False
    if not _optional(m, "scope", lambda s: is_member(MODEL_SCOPES, s)):
        return False
    if not _optional(m, "enforcement", lambda s: is_member(ENFORCEMENT_LEVELS, s)):
        return False
    if options.allow_exceptions_allowed:
        if not _optional(m, "exceptionsAllowed", lambda b: isinstance(b, bool)):
            return False
    return True


def validate_link(link: Any, all_object_ids: Set[str]) -> bool:
    """Link shape plus referential integrity against the unified id index."""
    if not is_object(link):
        return False
    if not is_string(link.get("id")):
        return False
    source_id = link.get("sourceId")
    target_id = link.get("targetId")
    if not is_string(source_id) or not is_string(target_id):
        return False
    if not is_member(LINK_RELATIONS, link.get("relation")):
        return False
    if not _optional(link, "weight", _unit_interval):
        return False
    return source_id in all_object_ids and target_id in all_object_ids


def validate_exception(ex: Any, model_ids: Set[str]) -> bool:
    if not is_object(ex):
        return False
    for key in ("id", "modelId", "justification", "mutationId", "createdAt"):
        if not is_string(ex.get(key)):
            return False
    if not is_member(OVERRIDE_DECISIONS, ex.get("originalDecision")):
        return False
    if not is_member(MUTATION_TYPES, ex.get("mutationType")):
        return False
    return ex["modelId"] in model_ids


def _valid_thresholds(value: Any) -> bool:
    if not is_object(value):
        return False
    return _optional(value, "lowBelow", is_number) and _optional(value, "highAbove", is_number)


def validate_proxy(p: Any, variable_ids: Set[str]) -> bool:
    if not is_object(p):
        return False
    for key in ("id", "variableId", "name"):
        if not is_string(p.get(key)):
            return False
    if not is_member(PROXY_VALUE_TYPES, p.get("valueType")):
        return False
    if not _optional(p, "description", is_string):
        return False
    if not _optional(p, "unit", is_string):
        return False
    if not _optional(p, "categories", _string_list):
        return False
    if not _optional(p, "thresholds", _valid_thresholds):
        return False
    return p["variableId"] in variable_ids


def validate_node(n: Any) -> bool:
    if not is_object(n):
        return False
    if not is_string(n.get("id")) or not is_string(n.get("name")):
        return False
    if not is_member(NODE_KINDS, n.get("kind")):
        return False
    if not is_string(n.get("createdAt")):
        return False
    if not _optional(n, "description", is_string):
        return False
    return _optional(n, "tags", _string_list)


def is_valid_proxy_value(value: Any) -> bool:
    """The tagged reading payload: {type, value} with matching Python type."""
    if not is_object(value):
        return False
    tag = value.get("type")
    payload = value.get("value", _MISSING)
    if tag == "numeric":
        return is_number(payload)
    if tag == "boolean":
        return isinstance(payload, bool)
    if tag == "categorical":
        return is_string(payload)
    return False


def validate_proxy_reading(r: Any, proxy_ids: Set[str]) -> bool:
    if not is_object(r):
        return False
    for key in ("id", "proxyId", "recordedAt"):
        if not is_string(r.get(key)):
            return False
    if not is_valid_proxy_value(r.get("value")):
        return False
    if not _optional(r, "source", is_string):
        return False
    return r["proxyId"] in proxy_ids


# =============================================================================
# COLLECTION VALIDATORS
# =============================================================================

def has_unique_ids(items: Iterable[Any]) -> bool:
    """Every element is an object with a string id, and no id repeats."""
    seen: Set[str] = set()
    for item in items:
        if not is_object(item):
            return False
        item_id = item.get("id")
        if not is_string(item_id) or item_id in seen:
            return False
        seen.add(item_id)
    return True


def collect_ids(items: Iterable[Any]) -> Set[str]:
    return {
        item["id"] for item in items
        if is_object(item) and is_string(item.get("id"))
    }


def actions_refer_to_episodes(
    actions: Iterable[Any],
    episodes: Iterable[Any],
    episode_id_required: bool
) -> bool:
    episode_ids = collect_ids(episodes)
    for action in actions:
        if not is_object(action):
            return False
        episode_id = action.get("episodeId", _MISSING)
        if episode_id is _MISSING and not episode_id_required:
            continue
        if not is_string(episode_id) or episode_id not in episode_ids:
            return False
    return True


# =============================================================================
# STATE SCHEMA (What each version requires)
# =============================================================================

@dataclass(frozen=True)
class StateSchema:
    """
    Declarative description of one schema version.

    schema_version=None means the document must carry no
    schemaVersion key at all (the unversioned original format).
    """
    schema_version: Optional[int]
    variable: VariableOptions
    episode: EpisodeOptions
    action: ActionOptions
    note: NoteOptions
    model: Optional[ModelOptions] = None
    has_links: bool = False
    has_exceptions: bool = False
    has_proxies: bool = False
    has_proxy_readings: bool = False
    has_nodes: bool = False

    def optional_collections(self):
        """(key, present) pairs for the collections added after V4."""
        return (
            ("models", self.model is not None),
            ("links", self.has_links),
            ("exceptions", self.has_exceptions),
            ("proxies", self.has_proxies),
            ("proxyReadings", self.has_proxy_readings),
            ("nodes", self.has_nodes),
        )


_BASE_COLLECTIONS = ("variables", "episodes", "actions", "notes")


def _schema_version_matches(obj: dict, expected: Optional[int]) -> bool:
    actual = obj.get("schemaVersion", _MISSING)
    if expected is None:
        return actual is _MISSING
    # True == 1 in Python; a boolean is never a version number
    return is_number(actual) and actual == expected


def _all_object_ids(obj: dict, schema: StateSchema) -> Set[str]:
    """Unified id index spanning every collection the version carries."""
    ids: Set[str] = set()
    for key in _BASE_COLLECTIONS:
        ids |= collect_ids(obj[key])
    for key, present in schema.optional_collections():
        if present:
            ids |= collect_ids(obj[key])
    return ids


def validate_state_against_schema(data: Any, schema: StateSchema) -> bool:
    """Interpret one StateSchema against an untrusted document."""
    if not is_object(data):
        return False
    if not _schema_version_matches(data, schema.schema_version):
        return False

    # Required and version-specific collections
    for key in _BASE_COLLECTIONS:
        if not is_sequence(data.get(key)):
            return False
    for key, present in schema.optional_collections():
        if present and not is_sequence(data.get(key)):
            return False

    # Unique ids per collection
    for key in _BASE_COLLECTIONS:
        if not has_unique_ids(data[key]):
            return False
    for key, present in schema.optional_collections():
        if present and not has_unique_ids(data[key]):
            return False

    if not actions_refer_to_episodes(
        data["actions"], data["episodes"], schema.action.episode_id_required
    ):
        return False

    if not all(validate_variable(v, schema.variable) for v in data["variables"]):
        return False
    if not all(validate_episode(e, schema.episode) for e in data["episodes"]):
        return False
    if not all(validate_action(a, schema.action) for a in data["actions"]):
        return False
    if not all(validate_note(n, schema.note) for n in data["notes"]):
        return False
    if schema.model is not None:
        if not all(validate_model(m, schema.model) for m in data["models"]):
            return False

    if schema.has_links or schema.has_exceptions:
        all_ids = _all_object_ids(data, schema)
        if schema.has_links:
            if not all(validate_link(link, all_ids) for link in data["links"]):
                return False
        if schema.has_exceptions:
            model_ids = collect_ids(data["models"]) if schema.model is not None else set()
            if not all(validate_exception(ex, model_ids) for ex in data["exceptions"]):
                return False

    if schema.has_proxies:
        variable_ids = collect_ids(data["variables"])
        if not all(validate_proxy(p, variable_ids) for p in data["proxies"]):
            return False

    if schema.has_proxy_readings:
        proxy_ids = collect_ids(data["proxies"]) if schema.has_proxies else set()
        if not all(validate_proxy_reading(r, proxy_ids) for r in data["proxyReadings"]):
            return False

    if schema.has_nodes:
        if not all(validate_node(n) for n in data["nodes"]):
            return False

    return True

