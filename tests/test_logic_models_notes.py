"""
Model, Note and Membrane Exception Tests
"""

from dataclasses import replace

import pytest

from homeostat.contracts.base import ErrorCode
from homeostat.contracts.ontology import (
    EnforcementLevel, ModelScope, ModelType, MutationType, NoteTag,
    OverrideDecision,
)
from homeostat.contracts.params import (
    CreateModelParams, CreateNoteParams, LogExceptionParams,
    NoteLinkedObjectParams, NoteTagParams, UpdateModelParams, UpdateNoteParams,
)
from homeostat.core.logic import (
    add_note_linked_object, add_note_tag, create_model, create_note,
    log_exception, remove_note_tag, update_model, update_note,
)
from homeostat.schema.versions import is_valid_state

from .fixtures import T1, T4, make_model, normative_model, seeded_state, state_with_notes


# =============================================================================
# MODELS
# =============================================================================

class TestCreateModel:

    def test_create_normative_model(self):
        result = create_model(seeded_state(), CreateModelParams(
            model_id="m1",
            type="Normative",
            statement="No work after 10pm",
            confidence=0.9,
            scope="personal",
            enforcement="warn",
            exceptions_allowed=True,
        ))
        model = result.value.models[0]

        assert model.type == ModelType.NORMATIVE
        assert model.scope == ModelScope.PERSONAL
        assert model.enforcement == EnforcementLevel.WARN
        assert model.exceptions_allowed is True
        assert is_valid_state(result.value.to_dict())

    def test_duplicate_id(self):
        state = replace(seeded_state(), models=(make_model("m1"),))
        result = create_model(state, CreateModelParams(
            model_id="m1", type=ModelType.DESCRIPTIVE, statement="Again"
        ))
        assert result.error.code == ErrorCode.DUPLICATE_ID
        assert result.error.message == "Model with id 'm1' already exists"

    @pytest.mark.parametrize("confidence", [-0.1, 1.01, True])
    def test_confidence_outside_unit_interval(self, confidence):
        result = create_model(seeded_state(), CreateModelParams(
            model_id="m1", type=ModelType.DESCRIPTIVE, statement="s", confidence=confidence
        ))
        assert result.error.message == "Model confidence must be between 0.0 and 1.0"

    def test_invalid_type(self):
        result = create_model(seeded_state(), CreateModelParams(
            model_id="m1", type="Prescriptive", statement="s"
        ))
        assert result.error.code == ErrorCode.VALIDATION_FAILED

    def test_blank_statement(self):
        result = create_model(seeded_state(), CreateModelParams(
            model_id="m1", type=ModelType.DESCRIPTIVE, statement=""
        ))
        assert result.error.message == "Model statement cannot be empty"

    def test_exceptions_allowed_must_be_boolean(self):
        result = create_model(seeded_state(), CreateModelParams(
            model_id="m1", type=ModelType.NORMATIVE, statement="s", exceptions_allowed="yes"
        ))
        assert result.error.code == ErrorCode.VALIDATION_FAILED


class TestUpdateModel:

    def test_partial_update_keeps_other_fields(self):
        state = replace(seeded_state(), models=(
            normative_model("m1", EnforcementLevel.WARN, statement="Rest"),
        ))
        result = update_model(state, UpdateModelParams(model_id="m1", confidence=0.4))
        model = result.value.models[0]

        assert model.confidence == 0.4
        assert model.statement == "Rest"
        assert model.enforcement == EnforcementLevel.WARN
        assert model.type == ModelType.NORMATIVE

    def test_update_enforcement(self):
        state = replace(seeded_state(), models=(normative_model("m1", EnforcementLevel.WARN),))
        result = update_model(state, UpdateModelParams(model_id="m1", enforcement="block"))
        assert result.value.models[0].enforcement == EnforcementLevel.BLOCK

    def test_missing_model(self):
        result = update_model(seeded_state(), UpdateModelParams(model_id="ghost"))
        assert result.error.code == ErrorCode.NOT_FOUND

    def test_blank_statement_rejected(self):
        state = replace(seeded_state(), models=(make_model("m1"),))
        result = update_model(state, UpdateModelParams(model_id="m1", statement=" "))
        assert result.error.code == ErrorCode.VALIDATION_FAILED


# =============================================================================
# NOTES
# =============================================================================

class TestNotes:

    def test_create_note_with_tags(self):
        result = create_note(seeded_state(), CreateNoteParams(
            note_id="n1", content="Idea", created_at=T1,
            tags=("inbox", NoteTag.PENDING_APPROVAL), linked_objects=("v1",),
        ))
        note = result.value.notes[0]

        assert note.tags == (NoteTag.INBOX, NoteTag.PENDING_APPROVAL)
        assert note.linked_objects == ("v1",)
        assert is_valid_state(result.value.to_dict())

    def test_create_note_rejects_unknown_tag(self):
        result = create_note(seeded_state(), CreateNoteParams(
            note_id="n1", content="Idea", created_at=T1, tags=("urgent",)
        ))
        assert result.error.message == "Invalid note tag: urgent"

    def test_create_note_rejects_blank_and_duplicate(self):
        blank = create_note(seeded_state(), CreateNoteParams(note_id="n9", content="", created_at=T1))
        duplicate = create_note(state_with_notes(), CreateNoteParams(
            note_id="n1", content="Again", created_at=T4
        ))
        assert blank.error.code == ErrorCode.VALIDATION_FAILED
        assert duplicate.error.code == ErrorCode.DUPLICATE_ID

    def test_update_note_content(self):
        result = update_note(state_with_notes(), UpdateNoteParams(note_id="n1", content="Rewritten"))
        note = result.value.notes[0]
        assert note.content == "Rewritten"
        assert note.tags == (NoteTag.INBOX,)

    def test_update_missing_note(self):
        result = update_note(seeded_state(), UpdateNoteParams(note_id="ghost", content="x"))
        assert result.error.message == "Note with id 'ghost' not found"

    def test_add_tag(self):
        result = add_note_tag(state_with_notes(), NoteTagParams("n1", NoteTag.PROCESSED))
        assert result.value.notes[0].tags == (NoteTag.INBOX, NoteTag.PROCESSED)

    def test_add_existing_tag_returns_same_state(self):
        state = state_with_notes()
        result = add_note_tag(state, NoteTagParams("n1", "inbox"))
        assert result.value is state

    def test_remove_tag(self):
        result = remove_note_tag(state_with_notes(), NoteTagParams("n1", NoteTag.INBOX))
        assert result.value.notes[0].tags == ()

    def test_remove_absent_tag_returns_same_state(self):
        state = state_with_notes()
        result = remove_note_tag(state, NoteTagParams("n1", NoteTag.AUDIT))
        assert result.value is state

    def test_invalid_tag(self):
        result = add_note_tag(state_with_notes(), NoteTagParams("n1", "urgent"))
        assert result.error.code == ErrorCode.VALIDATION_FAILED

    def test_link_object_is_idempotent(self):
        once = add_note_linked_object(state_with_notes(), NoteLinkedObjectParams("n1", "v1")).value
        twice = add_note_linked_object(once, NoteLinkedObjectParams("n1", "v1"))

        assert once.notes[0].linked_objects == ("v1",)
        assert twice.value is once

    def test_link_blank_object(self):
        result = add_note_linked_object(state_with_notes(), NoteLinkedObjectParams("n1", " "))
        assert result.error.message == "Linked object id cannot be empty"


# =============================================================================
# MEMBRANE EXCEPTIONS
# =============================================================================

def exception_params(**overrides):
    params = LogExceptionParams(
        exception_id="x1",
        model_id="m1",
        original_decision=OverrideDecision.WARN,
        justification="Deadline for the grant",
        mutation_type=MutationType.EPISODE,
        mutation_id="e1",
        created_at=T4,
    )
    return replace(params, **overrides)


class TestLogException:

    def state(self):
        return replace(seeded_state(), models=(normative_model("m1", EnforcementLevel.WARN),))

    def test_records_bypass(self):
        result = log_exception(self.state(), exception_params())
        exception = result.value.exceptions[0]

        assert exception.model_id == "m1"
        assert exception.original_decision == OverrideDecision.WARN
        assert exception.mutation_type == MutationType.EPISODE
        assert is_valid_state(result.value.to_dict())

    def test_accepts_wire_strings(self):
        result = log_exception(self.state(), exception_params(
            original_decision="block", mutation_type="signal"
        ))
        assert result.value.exceptions[0].original_decision == OverrideDecision.BLOCK

    def test_missing_model(self):
        result = log_exception(seeded_state(), exception_params())
        assert result.error.code == ErrorCode.NOT_FOUND

    def test_invalid_mutation_type(self):
        result = log_exception(self.state(), exception_params(mutation_type="note"))
        assert result.error.message == "Invalid mutationType: 'note'"

    def test_invalid_decision(self):
        result = log_exception(self.state(), exception_params(original_decision="allow"))
        assert result.error.message == "Invalid originalDecision: 'allow'"

    def test_blank_justification(self):
        result = log_exception(self.state(), exception_params(justification="  "))
        assert result.error.message == "Justification cannot be empty"

    def test_duplicate_id(self):
        state = log_exception(self.state(), exception_params()).value
        result = log_exception(state, exception_params())
        assert result.error.code == ErrorCode.DUPLICATE_ID
