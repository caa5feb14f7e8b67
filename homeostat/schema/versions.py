"""
Schema Version Table

One StateSchema per historical document version, oldest first, and a
predicate per version built from it.

VERSION HISTORY:
================
V0  unversioned; bare NodeType strings; every action needs an episode
V1  schemaVersion=1, otherwise identical to V0
V2  NodeRef {type, id} replaces bare NodeType strings
V3  action episodeId and episode variableId become optional
V4  episodes carry openedAt (required), closedAt, closureNoteId
V5  models collection
V6  notes carry createdAt and tags
V7  links collection
V8  exceptions collection; models may carry exceptionsAllowed
V9  notes may carry linkedObjects; episodes may carry timeboxDays
V10 variables may carry description, preferredRange, measurementCadence
V11 proxies and proxyReadings collections
V12 nodes collection
V13 current: V12 shape, canonical nodes guaranteed by migration
"""

from __future__ import annotations
from typing import Any, Callable, Dict

from ..contracts.ontology import SCHEMA_VERSION
from .validators import (
    ActionOptions, EpisodeOptions, ModelOptions, NoteOptions, StateSchema,
    VariableOptions, validate_state_against_schema,
)


_LEGACY_VARIABLE = VariableOptions(node_format="legacy")
_REF_VARIABLE = VariableOptions(node_format="ref")
_ENRICHED_VARIABLE = VariableOptions(node_format="ref", allow_enrichments=True)

_LEGACY_EPISODE = EpisodeOptions(node_format="legacy", timestamps="none")
_REF_EPISODE = EpisodeOptions(node_format="ref", timestamps="none")
_TIMED_EPISODE = EpisodeOptions(
    node_format="ref", timestamps="required", allow_closure_note_id=True
)
_TIMEBOXED_EPISODE = EpisodeOptions(
    node_format="ref", timestamps="required",
    allow_closure_note_id=True, allow_timebox_days=True
)

_SCOPED_ACTION = ActionOptions(episode_id_required=True)
_FREE_ACTION = ActionOptions(episode_id_required=False)

_BARE_NOTE = NoteOptions(require_metadata=False)
_TAGGED_NOTE = NoteOptions(require_metadata=True)
_LINKED_NOTE = NoteOptions(require_metadata=True, allow_linked_objects=True)

_BASE_MODEL = ModelOptions()
_EXCEPTION_MODEL = ModelOptions(allow_exceptions_allowed=True)


SCHEMAS: Dict[int, StateSchema] = {
    0: StateSchema(None, _LEGACY_VARIABLE, _LEGACY_EPISODE, _SCOPED_ACTION, _BARE_NOTE),
    1: StateSchema(1, _LEGACY_VARIABLE, _LEGACY_EPISODE, _SCOPED_ACTION, _BARE_NOTE),
    2: StateSchema(2, _REF_VARIABLE, _REF_EPISODE, _SCOPED_ACTION, _BARE_NOTE),
    3: StateSchema(3, _REF_VARIABLE, _REF_EPISODE, _FREE_ACTION, _BARE_NOTE),
    4: StateSchema(4, _REF_VARIABLE, _TIMED_EPISODE, _FREE_ACTION, _BARE_NOTE),
    5: StateSchema(5, _REF_VARIABLE, _TIMED_EPISODE, _FREE_ACTION, _BARE_NOTE,
                   model=_BASE_MODEL),
    6: StateSchema(6, _REF_VARIABLE, _TIMED_EPISODE, _FREE_ACTION, _TAGGED_NOTE,
                   model=_BASE_MODEL),
    7: StateSchema(7, _REF_VARIABLE, _TIMED_EPISODE, _FREE_ACTION, _TAGGED_NOTE,
                   model=_BASE_MODEL, has_links=True),
    8: StateSchema(8, _REF_VARIABLE, _TIMED_EPISODE, _FREE_ACTION, _TAGGED_NOTE,
                   model=_EXCEPTION_MODEL, has_links=True, has_exceptions=True),
    9: StateSchema(9, _REF_VARIABLE, _TIMEBOXED_EPISODE, _FREE_ACTION, _LINKED_NOTE,
                   model=_EXCEPTION_MODEL, has_links=True, has_exceptions=True),
    10: StateSchema(10, _ENRICHED_VARIABLE, _TIMEBOXED_EPISODE, _FREE_ACTION, _LINKED_NOTE,
                    model=_EXCEPTION_MODEL, has_links=True, has_exceptions=True),
    11: StateSchema(11, _ENRICHED_VARIABLE, _TIMEBOXED_EPISODE, _FREE_ACTION, _LINKED_NOTE,
                    model=_EXCEPTION_MODEL, has_links=True, has_exceptions=True,
                    has_proxies=True, has_proxy_readings=True),
    12: StateSchema(12, _ENRICHED_VARIABLE, _TIMEBOXED_EPISODE, _FREE_ACTION, _LINKED_NOTE,
                    model=_EXCEPTION_MODEL, has_links=True, has_exceptions=True,
                    has_proxies=True, has_proxy_readings=True, has_nodes=True),
    SCHEMA_VERSION: StateSchema(SCHEMA_VERSION, _ENRICHED_VARIABLE, _TIMEBOXED_EPISODE,
                                _FREE_ACTION, _LINKED_NOTE, model=_EXCEPTION_MODEL,
                                has_links=True, has_exceptions=True, has_proxies=True,
                                has_proxy_readings=True, has_nodes=True),
}


def _predicate(version: int) -> Callable[[Any], bool]:
    schema = SCHEMAS[version]

    def is_valid(data: Any) -> bool:
        return validate_state_against_schema(data, schema)

    is_valid.__name__ = f"is_valid_v{version}"
    is_valid.__doc__ = f"Does the document match schema version {version}?"
    return is_valid


is_valid_v0 = _predicate(0)
is_valid_v1 = _predicate(1)
is_valid_v2 = _predicate(2)
is_valid_v3 = _predicate(3)
is_valid_v4 = _predicate(4)
is_valid_v5 = _predicate(5)
is_valid_v6 = _predicate(6)
is_valid_v7 = _predicate(7)
is_valid_v8 = _predicate(8)
is_valid_v9 = _predicate(9)
is_valid_v10 = _predicate(10)
is_valid_v11 = _predicate(11)
is_valid_v12 = _predicate(12)

# Current version
is_valid_state = _predicate(SCHEMA_VERSION)

VALIDATORS: Dict[int, Callable[[Any], bool]] = {
    0: is_valid_v0,
    1: is_valid_v1,
    2: is_valid_v2,
    3: is_valid_v3,
    4: is_valid_v4,
    5: is_valid_v5,
    6: is_valid_v6,
    7: is_valid_v7,
    8: is_valid_v8,
    9: is_valid_v9,
    10: is_valid_v10,
    11: is_valid_v11,
    12: is_valid_v12,
    SCHEMA_VERSION: is_valid_state,
}
