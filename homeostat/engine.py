"""
Regulator Orchestration Module

This module provides the unified interface over the schema pipeline
and the transition engine while maintaining strict boundary separation.

DESIGN PRINCIPLES:
==================
1. Layers communicate ONLY through contracts
2. The Regulator records every decision; it never changes one
3. Policy is resolved per node before a mutator sees it
4. No shared mutable state: every call takes and returns a State
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from .contracts.audit import AuditEventType
from .contracts.base import Result
from .contracts.entities import (
    Action, Episode, NodeRef, Proxy, ProxyReading, State, Variable,
)
from .contracts.ontology import EpisodeType
from .contracts.params import (
    CloseEpisodeParams, CompleteActionParams, CreateActionParams,
    CreateLinkParams, CreateModelParams, CreateNoteParams, CreateProxyParams,
    CreateVariableParams, DeleteLinkParams, DeleteProxyParams,
    LogExceptionParams, LogProxyReadingParams, NoteLinkedObjectParams,
    NoteTagParams, OpenEpisodeParams, SignalParams, UpdateEpisodeParams,
    UpdateModelParams, UpdateNoteParams, UpdateProxyParams,
)
from .core import logic, selectors
from .core.inference import StatusSuggestion, infer_status, infer_status_for_variable
from .core.membrane import MembraneDecision, check_episode_constraints
from .core.policy import (
    DEFAULT_REGULATOR_POLICY, RegulatorPolicy, get_policy_for_node,
    validate_regulator_policy,
)
from .core.validation import can_start_explore, can_start_stabilize
from .observability import ObservabilityConfig, ObservabilityEngine
from .schema.pipeline import MigrationResult, MigrationStatus, migrate_to_latest


@dataclass
class RegulatorConfig:
    """Configuration for the transition engine."""
    policy: RegulatorPolicy = None

    def __post_init__(self):
        self.policy = self.policy or DEFAULT_REGULATOR_POLICY


@dataclass
class HomeostatConfig:
    """Unified configuration for the regulator and its audit trail."""
    regulator: RegulatorConfig = None
    observability: ObservabilityConfig = None

    def __post_init__(self):
        self.regulator = self.regulator or RegulatorConfig()
        self.observability = self.observability or ObservabilityConfig()


class Regulator:
    """
    Unified facade over the homeostat layers.

    LAYER FLOW:
    ===========
    1. Schema: untrusted document -> MigrationResult (load)
    2. Core: State + intent -> Result(State)
    3. Observability: records every transition, rejection and migration

    Queries are passed straight through; mutators are audited as
    TRANSITION on success and REJECTION on failure.
    """

    def __init__(self, config: Optional[HomeostatConfig] = None):
        self._config = config or HomeostatConfig()
        self._observability = ObservabilityEngine(self._config.observability)
        self._policy = self._checked_policy(self._config.regulator.policy)

    def _checked_policy(self, policy: RegulatorPolicy) -> RegulatorPolicy:
        """Invalid limits fall back to the defaults with a recorded warning."""
        try:
            return validate_regulator_policy(policy)
        except ValueError as e:
            self._observability.log_audit(
                action="invalid_policy",
                event_type=AuditEventType.SYSTEM,
                layer="core",
                metadata={"level": "warn", "error": str(e)}
            )
            return DEFAULT_REGULATOR_POLICY

    @property
    def policy(self) -> RegulatorPolicy:
        return self._policy

    @property
    def observability(self) -> ObservabilityEngine:
        return self._observability

    # =========================================================================
    # SCHEMA INTERFACE
    # =========================================================================

    def load(self, document: Any) -> MigrationResult:
        """Run a document through the migration pipeline and record the outcome."""
        result = migrate_to_latest(document)

        if result.status == MigrationStatus.MIGRATED:
            self._observability.log_audit(
                action="migrate",
                event_type=AuditEventType.MIGRATION,
                layer="schema",
                metadata={"from_version": str(result.from_version)}
            )
            self._observability.collect_metric(
                "migrations_total", labels={"from_version": str(result.from_version)}
            )
        elif result.status == MigrationStatus.INVALID:
            self._observability.log_audit(
                action="load",
                event_type=AuditEventType.REJECTION,
                layer="schema",
                metadata={"error": "Document does not match any known schema version"}
            )

        return result

    # =========================================================================
    # QUERY INTERFACE (read-only, pass-through)
    # =========================================================================

    def get_variables(self, state: State, node: NodeRef) -> List[Variable]:
        return selectors.get_variables_by_node(state, node)

    def get_active_episodes(self, state: State, node: NodeRef) -> List[Episode]:
        return selectors.get_active_episodes_by_node(state, node)

    def is_baseline(self, state: State, node: NodeRef) -> bool:
        return selectors.is_baseline(state, node)

    def count_active_explores(self, state: State, node: NodeRef) -> int:
        return selectors.count_active_explores(state, node)

    def count_active_stabilizes(self, state: State, node: NodeRef, variable_id: str) -> int:
        return selectors.count_active_stabilizes_for_variable(state, node, variable_id)

    def get_pending_actions(self, state: State, node: NodeRef) -> List[Action]:
        return selectors.get_pending_actions_for_active_episodes(state, node)

    def get_proxies_for_variable(self, state: State, variable_id: str) -> List[Proxy]:
        return selectors.get_proxies_for_variable(state, variable_id)

    def get_recent_readings(
        self,
        state: State,
        proxy_id: str,
        limit: Optional[int] = None
    ) -> List[ProxyReading]:
        return selectors.get_recent_readings(state, proxy_id, limit)

    def get_status(self, state: State, node: NodeRef) -> selectors.StatusData:
        return selectors.get_status_data(state, node)

    def can_start_explore(self, state: State, node: NodeRef) -> Result:
        return can_start_explore(state, node, get_policy_for_node(self._policy, node))

    def can_start_stabilize(self, state: State, node: NodeRef, variable_id: str) -> Result:
        return can_start_stabilize(
            state, node, variable_id, get_policy_for_node(self._policy, node)
        )

    def check_episode_constraints(
        self,
        state: State,
        node: NodeRef,
        episode_type: EpisodeType
    ) -> MembraneDecision:
        return check_episode_constraints(state, node, episode_type)

    def infer_status(self, state: State, proxy_id: str, limit: Optional[int] = None) -> Optional[StatusSuggestion]:
        proxy = next((p for p in state.proxies if p.id == proxy_id), None)
        if proxy is None:
            return None
        return infer_status(proxy, selectors.get_recent_readings(state, proxy_id, limit))

    def infer_status_for_variable(
        self,
        state: State,
        variable_id: str,
        limit: Optional[int] = None
    ) -> Optional[StatusSuggestion]:
        proxies = selectors.get_proxies_for_variable(state, variable_id)
        readings: Dict[str, List[ProxyReading]] = {
            p.id: selectors.get_recent_readings(state, p.id, limit) for p in proxies
        }
        return infer_status_for_variable(proxies, readings)

    # =========================================================================
    # MUTATOR INTERFACE (audited)
    # =========================================================================

    def _audited(
        self,
        operation: str,
        entity_id: Optional[str],
        run: Callable[[], Result]
    ) -> Result:
        result = run()
        if result.ok:
            self._observability.log_audit(
                action=operation,
                entity_id=entity_id,
                event_type=AuditEventType.TRANSITION,
                layer="core",
                metadata={"level": "info"}
            )
            self._observability.collect_metric(
                "transitions_total", labels={"operation": operation}
            )
        else:
            self._observability.log_audit(
                action=operation,
                entity_id=entity_id,
                event_type=AuditEventType.REJECTION,
                layer="core",
                metadata={
                    "level": "warn",
                    "code": result.error.code.name,
                    "error": result.error.message,
                }
            )
            self._observability.collect_metric(
                "rejections_total",
                labels={"operation": operation, "code": result.error.code.name}
            )
        return result

    def signal(self, state: State, params: SignalParams) -> Result:
        return self._audited("signal", params.variable_id,
                             lambda: logic.apply_signal(state, params))

    def create_variable(self, state: State, params: CreateVariableParams) -> Result:
        return self._audited("create_variable", params.variable_id,
                             lambda: logic.create_variable(state, params))

    def open_episode(self, state: State, params: OpenEpisodeParams) -> Result:
        policy = get_policy_for_node(self._policy, params.node)
        return self._audited("open_episode", params.episode_id,
                             lambda: logic.open_episode(state, params, policy))

    def close_episode(self, state: State, params: CloseEpisodeParams) -> Result:
        return self._audited("close_episode", params.episode_id,
                             lambda: logic.close_episode(state, params))

    def update_episode(self, state: State, params: UpdateEpisodeParams) -> Result:
        return self._audited("update_episode", params.episode_id,
                             lambda: logic.update_episode(state, params))

    def create_action(self, state: State, params: CreateActionParams) -> Result:
        return self._audited("create_action", params.action_id,
                             lambda: logic.create_action(state, params))

    def complete_action(self, state: State, params: CompleteActionParams) -> Result:
        return self._audited("complete_action", params.action_id,
                             lambda: logic.complete_action(state, params))

    def create_model(self, state: State, params: CreateModelParams) -> Result:
        return self._audited("create_model", params.model_id,
                             lambda: logic.create_model(state, params))

    def update_model(self, state: State, params: UpdateModelParams) -> Result:
        return self._audited("update_model", params.model_id,
                             lambda: logic.update_model(state, params))

    def create_note(self, state: State, params: CreateNoteParams) -> Result:
        return self._audited("create_note", params.note_id,
                             lambda: logic.create_note(state, params))

    def update_note(self, state: State, params: UpdateNoteParams) -> Result:
        return self._audited("update_note", params.note_id,
                             lambda: logic.update_note(state, params))

    def add_note_tag(self, state: State, params: NoteTagParams) -> Result:
        return self._audited("add_note_tag", params.note_id,
                             lambda: logic.add_note_tag(state, params))

    def remove_note_tag(self, state: State, params: NoteTagParams) -> Result:
        return self._audited("remove_note_tag", params.note_id,
                             lambda: logic.remove_note_tag(state, params))

    def add_note_linked_object(self, state: State, params: NoteLinkedObjectParams) -> Result:
        return self._audited("add_note_linked_object", params.note_id,
                             lambda: logic.add_note_linked_object(state, params))

    def create_link(self, state: State, params: CreateLinkParams) -> Result:
        return self._audited("create_link", params.link_id,
                             lambda: logic.create_link(state, params))

    def delete_link(self, state: State, params: DeleteLinkParams) -> Result:
        return self._audited("delete_link", params.link_id,
                             lambda: logic.delete_link(state, params))

    def create_proxy(self, state: State, params: CreateProxyParams) -> Result:
        return self._audited("create_proxy", params.proxy_id,
                             lambda: logic.create_proxy(state, params))

    def update_proxy(self, state: State, params: UpdateProxyParams) -> Result:
        return self._audited("update_proxy", params.proxy_id,
                             lambda: logic.update_proxy(state, params))

    def delete_proxy(self, state: State, params: DeleteProxyParams) -> Result:
        return self._audited("delete_proxy", params.proxy_id,
                             lambda: logic.delete_proxy(state, params))

    def log_proxy_reading(self, state: State, params: LogProxyReadingParams) -> Result:
        return self._audited("log_proxy_reading", params.reading_id,
                             lambda: logic.log_proxy_reading(state, params))

    def log_exception(self, state: State, params: LogExceptionParams) -> Result:
        return self._audited("log_exception", params.exception_id,
                             lambda: logic.log_exception(state, params))
