"""
Finite state machine for the booking waterfall.

gather -> confirm -> commit, with one backward edge (confirm -> gather when
the user wants to change something) and cancellation from any active step.
Restart also lands in gather, but it is a reset rather than a step back:
the orchestrator throws away the record and dialog state along with it.
The current step is persisted in DialogState, so a machine is rebuilt from
it on every turn.

Usage:
    sm = BookingStateMachine(BookingStep.GATHER)
    sm.transition(TransitionTrigger.ALL_FIELDS_COLLECTED)
    assert sm.current_step == BookingStep.CONFIRM
"""

import logging
from dataclasses import dataclass
from enum import Enum

from tablebot.errors import InvalidTransitionError
from tablebot.schemas.dialog_schema import BookingStep

logger = logging.getLogger(__name__)


class TransitionTrigger(str, Enum):
    """Events that move the booking flow between steps."""
    ALL_FIELDS_COLLECTED = "all_fields_collected"
    USER_CONFIRMED = "user_confirmed"
    USER_REQUESTED_EDIT = "user_requested_edit"
    USER_CANCELLED = "user_cancelled"
    RESTART = "restart"
    BOOKING_SUCCESS = "booking_success"
    BOOKING_FAILED = "booking_failed"


@dataclass
class Transition:
    """A single valid step transition."""
    from_step: BookingStep
    to_step: BookingStep
    trigger: TransitionTrigger


class BookingStateMachine:
    """Strictly linear booking flow with a single confirm -> gather edge."""

    TRANSITIONS: list[Transition] = [
        # --- Gather ---
        Transition(BookingStep.GATHER, BookingStep.CONFIRM,
                   TransitionTrigger.ALL_FIELDS_COLLECTED),
        Transition(BookingStep.GATHER, BookingStep.CANCELLED,
                   TransitionTrigger.USER_CANCELLED),
        Transition(BookingStep.GATHER, BookingStep.GATHER,
                   TransitionTrigger.RESTART),

        # --- Confirm ---
        Transition(BookingStep.CONFIRM, BookingStep.COMMIT,
                   TransitionTrigger.USER_CONFIRMED),
        Transition(BookingStep.CONFIRM, BookingStep.GATHER,
                   TransitionTrigger.USER_REQUESTED_EDIT),
        Transition(BookingStep.CONFIRM, BookingStep.CANCELLED,
                   TransitionTrigger.USER_CANCELLED),
        Transition(BookingStep.CONFIRM, BookingStep.GATHER,
                   TransitionTrigger.RESTART),

        # --- Commit ---
        Transition(BookingStep.COMMIT, BookingStep.DONE,
                   TransitionTrigger.BOOKING_SUCCESS),
        Transition(BookingStep.COMMIT, BookingStep.FAILED,
                   TransitionTrigger.BOOKING_FAILED),
    ]

    TERMINAL_STEPS = frozenset({BookingStep.DONE, BookingStep.FAILED, BookingStep.CANCELLED})

    def __init__(self, initial: BookingStep = BookingStep.GATHER) -> None:
        self._current_step = initial

    @property
    def current_step(self) -> BookingStep:
        return self._current_step

    def transition(self, trigger: TransitionTrigger) -> BookingStep:
        """
        Execute a step transition.

        Raises:
            InvalidTransitionError: If no valid transition exists.
        """
        for t in self.TRANSITIONS:
            if t.from_step == self._current_step and t.trigger == trigger:
                old_step = self._current_step
                self._current_step = t.to_step
                logger.debug(
                    "Step transition: %s -> %s (trigger: %s)",
                    old_step.value, self._current_step.value, trigger.value,
                )
                return self._current_step

        valid = [t.value for t in self.get_valid_triggers()]
        raise InvalidTransitionError(
            f"No valid transition from '{self._current_step.value}' "
            f"with trigger '{trigger.value}'. Valid triggers: {valid}"
        )

    def get_valid_triggers(self) -> list[TransitionTrigger]:
        """Return all triggers valid from the current step."""
        return [t.trigger for t in self.TRANSITIONS if t.from_step == self._current_step]

    def is_terminal(self) -> bool:
        return self._current_step in self.TERMINAL_STEPS
