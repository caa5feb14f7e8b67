"""
Regulatory Transition Engine

RESPONSIBILITY: Read-only queries and pure mutators over a current-shape
State, enforcing the ontology's cross-entity invariants
ALLOWED INPUTS: State (already through the schema pipeline), intent
records, NodePolicy
OUTPUTS: Projections, Result(State), suggestions

WHAT THIS LAYER MUST NOT DO:
============================
- Parse or migrate persisted documents (schema layer does that)
- Mutate a State in place
- Raise for caller mistakes; failures are Result values
- Log or persist (the Regulator facade and its callers do that)
"""

from .logic import (
    add_note_linked_object, add_note_tag, apply_signal, close_episode,
    complete_action, create_action, create_link, create_model, create_note,
    create_proxy, create_variable, delete_link, delete_proxy, log_exception,
    log_proxy_reading, open_episode, remove_note_tag, update_episode,
    update_model, update_note, update_proxy,
)
from .policy import (
    DEFAULT_NODE_POLICY, DEFAULT_REGULATOR_POLICY, NodePolicy, RegulatorPolicy,
    get_policy_for_node, validate_regulator_policy,
)
from .selectors import (
    StatusData, count_active_explores, count_active_stabilizes_for_variable,
    get_active_episodes_by_node, get_pending_actions_for_active_episodes,
    get_proxies_for_variable, get_recent_readings, get_status_data,
    get_variables_by_node, is_baseline,
)

__all__ = [
    'add_note_linked_object', 'add_note_tag', 'apply_signal', 'close_episode',
    'complete_action', 'create_action', 'create_link', 'create_model',
    'create_note', 'create_proxy', 'create_variable', 'delete_link',
    'delete_proxy', 'log_exception', 'log_proxy_reading', 'open_episode',
    'remove_note_tag', 'update_episode', 'update_model', 'update_note',
    'update_proxy',
    'DEFAULT_NODE_POLICY', 'DEFAULT_REGULATOR_POLICY', 'NodePolicy',
    'RegulatorPolicy', 'get_policy_for_node', 'validate_regulator_policy',
    'StatusData', 'count_active_explores', 'count_active_stabilizes_for_variable',
    'get_active_episodes_by_node', 'get_pending_actions_for_active_episodes',
    'get_proxies_for_variable', 'get_recent_readings', 'get_status_data',
    'get_variables_by_node', 'is_baseline',
]
