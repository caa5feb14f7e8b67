"""
Action, Signal and Variable Tests
=================================

Signals are idempotent: re-signalling the current status is a no-op that
returns the very same State. Real changes leave an audit Note behind.
"""

from dataclasses import replace

from homeostat.contracts.base import ErrorCode
from homeostat.contracts.ontology import (
    ActionStatus, EpisodeStatus, MeasurementCadence, NoteTag, VariableStatus,
)
from homeostat.contracts.params import (
    CompleteActionParams, CreateActionParams, CreateVariableParams, SignalParams,
)
from homeostat.core.logic import apply_signal, complete_action, create_action, create_variable
from homeostat.schema.versions import is_valid_state

from .fixtures import (
    ORG, PERSONAL, T4, make_episode, seeded_state, state_with_action,
    state_with_active_explore,
)


# =============================================================================
# ACTIONS
# =============================================================================

class TestCreateAction:

    def test_unscoped_action(self):
        result = create_action(seeded_state(), CreateActionParams(
            action_id="a1", node=PERSONAL, description="Buy blackout curtains"
        ))
        action = result.value.actions[0]

        assert action.status == ActionStatus.PENDING
        assert action.episode_id is None
        assert is_valid_state(result.value.to_dict())

    def test_action_scoped_to_active_episode(self):
        result = create_action(state_with_active_explore(), CreateActionParams(
            action_id="a1", node=PERSONAL, description="Read", episode_id="e1"
        ))
        assert result.value.actions[0].episode_id == "e1"

    def test_missing_episode(self):
        result = create_action(seeded_state(), CreateActionParams(
            action_id="a1", node=PERSONAL, description="Read", episode_id="ghost"
        ))
        assert result.error.code == ErrorCode.NOT_FOUND

    def test_episode_of_another_node(self):
        result = create_action(state_with_active_explore(), CreateActionParams(
            action_id="a1", node=ORG, description="Read", episode_id="e1"
        ))
        assert result.error.code == ErrorCode.REFERENTIAL_INTEGRITY
        assert "does not belong to node Org:org" in result.error.message

    def test_closed_episode(self):
        state = replace(seeded_state(), episodes=(make_episode("e1", status=EpisodeStatus.CLOSED),))
        result = create_action(state, CreateActionParams(
            action_id="a1", node=PERSONAL, description="Read", episode_id="e1"
        ))
        assert result.error.code == ErrorCode.INVALID_STATE_TRANSITION
        assert "is not active" in result.error.message

    def test_blank_description(self):
        result = create_action(seeded_state(), CreateActionParams(
            action_id="a1", node=PERSONAL, description="  "
        ))
        assert result.error.code == ErrorCode.VALIDATION_FAILED


class TestCompleteAction:

    def test_pending_becomes_done(self):
        result = complete_action(state_with_action(), CompleteActionParams("a1"))
        assert result.value.actions[0].status == ActionStatus.DONE

    def test_completing_done_action_is_a_no_op(self):
        state = state_with_action(ActionStatus.DONE)
        result = complete_action(state, CompleteActionParams("a1"))

        assert result.ok
        assert result.value is state

    def test_missing_action(self):
        result = complete_action(seeded_state(), CompleteActionParams("ghost"))
        assert result.error.code == ErrorCode.NOT_FOUND
        assert result.error.message == "Action with id 'ghost' not found"


# =============================================================================
# SIGNALS
# =============================================================================

def signal(status, reason=None, note_id="sig-1", variable_id="v1", node=PERSONAL):
    return SignalParams(
        node=node, variable_id=variable_id, status=status,
        reason=reason, note_id=note_id, recorded_at=T4,
    )


class TestSignal:

    def test_status_change_writes_audit_note(self):
        result = apply_signal(seeded_state(), signal(VariableStatus.IN_RANGE, "slept 8h"))
        state = result.value

        assert state.variables[0].status == VariableStatus.IN_RANGE
        note = state.notes[-1]
        assert note.id == "sig-1"
        assert note.content == "Low → InRange: slept 8h"
        assert note.tags == (NoteTag.AUDIT,)
        assert note.linked_objects == ("v1",)
        assert note.created_at == T4
        assert is_valid_state(state.to_dict())

    def test_reason_is_optional(self):
        state = apply_signal(seeded_state(), signal("High")).value
        assert state.notes[-1].content == "Low → High"

    def test_same_status_returns_identical_state(self):
        state = seeded_state()
        result = apply_signal(state, signal(VariableStatus.LOW))

        assert result.ok
        assert result.value is state

    def test_signal_twice_writes_one_note(self):
        first = apply_signal(seeded_state(), signal(VariableStatus.HIGH)).value
        second = apply_signal(first, signal(VariableStatus.HIGH, note_id="sig-2")).value

        assert second is first
        assert len(second.notes) == 1

    def test_derived_note_ids_do_not_collide(self):
        state = seeded_state()
        for status in ("High", "Low", "High"):
            state = apply_signal(state, SignalParams(
                node=PERSONAL, variable_id="v1", status=status, recorded_at=T4
            )).value
        assert len({n.id for n in state.notes}) == 3

    def test_unknown_variable(self):
        result = apply_signal(seeded_state(), signal("High", variable_id="ghost"))
        assert result.error.code == ErrorCode.NOT_FOUND

    def test_variable_of_another_node(self):
        result = apply_signal(seeded_state(), signal("High", node=ORG))
        assert result.error.code == ErrorCode.REFERENTIAL_INTEGRITY

    def test_invalid_status(self):
        result = apply_signal(seeded_state(), signal("Critical"))
        assert result.error.code == ErrorCode.VALIDATION_FAILED
        assert result.error.message == "Invalid variable status: Critical"

    def test_duplicate_note_id(self):
        state = apply_signal(seeded_state(), signal("High")).value
        result = apply_signal(state, signal("Low"))
        assert result.error.code == ErrorCode.DUPLICATE_ID


# =============================================================================
# VARIABLES
# =============================================================================

class TestCreateVariable:

    def test_create_with_enrichments(self):
        result = create_variable(seeded_state(), CreateVariableParams(
            variable_id="v9",
            node=PERSONAL,
            name="  Energy ",
            status="Unknown",
            description=" Usable energy ",
            measurement_cadence="weekly",
        ))
        variable = result.value.variables[-1]

        assert variable.name == "Energy"
        assert variable.description == "Usable energy"
        assert variable.status == VariableStatus.UNKNOWN
        assert variable.measurement_cadence == MeasurementCadence.WEEKLY
        assert is_valid_state(result.value.to_dict())

    def test_duplicate_id(self):
        result = create_variable(seeded_state(), CreateVariableParams(
            variable_id="v1", node=PERSONAL, name="Other", status=VariableStatus.LOW
        ))
        assert result.error.code == ErrorCode.DUPLICATE_ID

    def test_duplicate_name_is_case_insensitive_per_node(self):
        result = create_variable(seeded_state(), CreateVariableParams(
            variable_id="v9", node=PERSONAL, name=" sleep", status=VariableStatus.LOW
        ))
        assert result.error.code == ErrorCode.DUPLICATE_NAME

    def test_same_name_on_other_node_is_fine(self):
        result = create_variable(seeded_state(), CreateVariableParams(
            variable_id="v9", node=ORG, name="Sleep", status=VariableStatus.LOW
        ))
        assert result.ok

    def test_blank_name(self):
        result = create_variable(seeded_state(), CreateVariableParams(
            variable_id="v9", node=PERSONAL, name=" ", status=VariableStatus.LOW
        ))
        assert result.error.message == "Variable name cannot be empty"

    def test_invalid_cadence(self):
        result = create_variable(seeded_state(), CreateVariableParams(
            variable_id="v9", node=PERSONAL, name="Energy", status=VariableStatus.LOW,
            measurement_cadence="hourly",
        ))
        assert result.error.code == ErrorCode.VALIDATION_FAILED
