"""Tests for the booking waterfall state machine."""

import pytest

from tablebot.conversation.state_machine import BookingStateMachine, TransitionTrigger
from tablebot.errors import InvalidTransitionError
from tablebot.schemas.dialog_schema import BookingStep


class TestInitialState:
    def test_starts_in_gather(self, state_machine):
        assert state_machine.current_step == BookingStep.GATHER

    def test_can_resume_from_persisted_step(self):
        sm = BookingStateMachine(BookingStep.CONFIRM)
        assert sm.current_step == BookingStep.CONFIRM

    def test_not_terminal_at_start(self, state_machine):
        assert not state_machine.is_terminal()


class TestForwardPath:
    def test_gather_to_confirm(self, state_machine):
        new = state_machine.transition(TransitionTrigger.ALL_FIELDS_COLLECTED)
        assert new == BookingStep.CONFIRM

    def test_confirm_to_commit(self, state_machine):
        state_machine.transition(TransitionTrigger.ALL_FIELDS_COLLECTED)
        new = state_machine.transition(TransitionTrigger.USER_CONFIRMED)
        assert new == BookingStep.COMMIT

    def test_commit_success_is_terminal(self, state_machine):
        state_machine.transition(TransitionTrigger.ALL_FIELDS_COLLECTED)
        state_machine.transition(TransitionTrigger.USER_CONFIRMED)
        new = state_machine.transition(TransitionTrigger.BOOKING_SUCCESS)
        assert new == BookingStep.DONE
        assert state_machine.is_terminal()

    def test_commit_failure_is_terminal(self, state_machine):
        state_machine.transition(TransitionTrigger.ALL_FIELDS_COLLECTED)
        state_machine.transition(TransitionTrigger.USER_CONFIRMED)
        new = state_machine.transition(TransitionTrigger.BOOKING_FAILED)
        assert new == BookingStep.FAILED
        assert state_machine.is_terminal()

    def test_full_path_ends_in_done(self, state_machine):
        for trigger in (
            TransitionTrigger.ALL_FIELDS_COLLECTED,
            TransitionTrigger.USER_CONFIRMED,
            TransitionTrigger.BOOKING_SUCCESS,
        ):
            state_machine.transition(trigger)
        assert state_machine.current_step == BookingStep.DONE


class TestBackwardEdge:
    def test_edit_returns_to_gather(self, state_machine):
        state_machine.transition(TransitionTrigger.ALL_FIELDS_COLLECTED)
        new = state_machine.transition(TransitionTrigger.USER_REQUESTED_EDIT)
        assert new == BookingStep.GATHER

    def test_restart_from_confirm(self, state_machine):
        state_machine.transition(TransitionTrigger.ALL_FIELDS_COLLECTED)
        assert state_machine.transition(TransitionTrigger.RESTART) == BookingStep.GATHER

    def test_only_edit_and_restart_lead_back_to_gather(self):
        back = {
            t.trigger for t in BookingStateMachine.TRANSITIONS
            if t.from_step == BookingStep.CONFIRM and t.to_step == BookingStep.GATHER
        }
        assert back == {TransitionTrigger.USER_REQUESTED_EDIT, TransitionTrigger.RESTART}


class TestCancellation:
    def test_cancel_from_gather(self, state_machine):
        assert state_machine.transition(TransitionTrigger.USER_CANCELLED) == BookingStep.CANCELLED
        assert state_machine.is_terminal()

    def test_cancel_from_confirm(self, state_machine):
        state_machine.transition(TransitionTrigger.ALL_FIELDS_COLLECTED)
        assert state_machine.transition(TransitionTrigger.USER_CANCELLED) == BookingStep.CANCELLED


class TestInvalidTransitions:
    def test_cannot_skip_confirmation(self, state_machine):
        with pytest.raises(InvalidTransitionError, match="Valid triggers"):
            state_machine.transition(TransitionTrigger.USER_CONFIRMED)

    def test_cannot_commit_from_gather(self, state_machine):
        with pytest.raises(InvalidTransitionError):
            state_machine.transition(TransitionTrigger.BOOKING_SUCCESS)

    def test_no_transitions_out_of_terminal_step(self):
        sm = BookingStateMachine(BookingStep.DONE)
        assert sm.get_valid_triggers() == []
        with pytest.raises(InvalidTransitionError):
            sm.transition(TransitionTrigger.RESTART)

    def test_valid_triggers_from_confirm(self):
        sm = BookingStateMachine(BookingStep.CONFIRM)
        assert set(sm.get_valid_triggers()) == {
            TransitionTrigger.USER_CONFIRMED,
            TransitionTrigger.USER_REQUESTED_EDIT,
            TransitionTrigger.USER_CANCELLED,
            TransitionTrigger.RESTART,
        }
