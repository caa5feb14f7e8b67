"""
Referential integrity helpers.

Existence and uniqueness checks the mutators run before any transform.
All return a Result; none mutate.
"""

from __future__ import annotations
from typing import Iterable, Set

from ..contracts.base import OK, ErrorCode, Result, fail
from ..contracts.entities import State


def collect_all_object_ids(state: State) -> Set[str]:
    """Unified id index across every entity collection."""
    collections: Iterable = (
        state.nodes, state.variables, state.episodes, state.actions,
        state.notes, state.models, state.links, state.exceptions,
        state.proxies, state.proxy_readings,
    )
    return {item.id for collection in collections for item in collection}


def check_object_exists(state: State, object_id: str, object_type: str = "Object") -> Result:
    if object_id not in collect_all_object_ids(state):
        return fail(ErrorCode.REFERENTIAL_INTEGRITY, f"{object_type} '{object_id}' not found",
                    object_id=object_id)
    return OK


def check_variable_exists(state: State, variable_id: str) -> Result:
    if not any(v.id == variable_id for v in state.variables):
        return fail(ErrorCode.NOT_FOUND, f"Variable with id '{variable_id}' not found",
                    variable_id=variable_id)
    return OK


def check_model_exists(state: State, model_id: str) -> Result:
    if not any(m.id == model_id for m in state.models):
        return fail(ErrorCode.NOT_FOUND, f"Model with id '{model_id}' not found",
                    model_id=model_id)
    return OK


def check_proxy_exists(state: State, proxy_id: str) -> Result:
    if not any(p.id == proxy_id for p in state.proxies):
        return fail(ErrorCode.NOT_FOUND, f"Proxy with id '{proxy_id}' not found",
                    proxy_id=proxy_id)
    return OK


def check_note_exists(state: State, note_id: str) -> Result:
    if not any(n.id == note_id for n in state.notes):
        return fail(ErrorCode.NOT_FOUND, f"Note with id '{note_id}' not found",
                    note_id=note_id)
    return OK


def check_no_duplicate_id(collection: Iterable, item_id: str, entity_type: str) -> Result:
    if any(item.id == item_id for item in collection):
        return fail(ErrorCode.DUPLICATE_ID, f"{entity_type} with id '{item_id}' already exists",
                    entity_id=item_id)
    return OK
