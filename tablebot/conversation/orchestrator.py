"""
Booking orchestrator: the gather -> confirm -> commit waterfall.

Each inbound turn is handled synchronously. The orchestrator loads the
conversation's reservation and dialog state from the state store, runs
the active step, and writes the result back (or clears it once the flow
has ended). ``step`` is the pure core: it never touches the store and
returns the new state, the new record and the outbound messages.

Usage:
    orchestrator = BookingOrchestrator(InMemoryStateStore(), MockBookingBackend())
    result = orchestrator.handle_turn(
        "conv-1", TurnInput.from_entities({"location": "Seattle"}, intent="Book_Table")
    )
    for message in result.messages:
        send(message)
"""

import datetime as dt
from typing import Callable, Optional

from tablebot.config import AppConfig, settings
from tablebot.conversation.confirmation import ConfirmationDecision, ConfirmationDialog
from tablebot.conversation.interrupts import Interrupt, InterruptRecognizer
from tablebot.conversation.slot_filling import SlotFillingPrompt
from tablebot.conversation.state_machine import BookingStateMachine, TransitionTrigger
from tablebot.errors import ConstructionError, InvalidTransitionError
from tablebot.logging_context import get_conversation_logger, set_conversation_id
from tablebot.prompts.prompt_templates import (
    CANCELLED_MESSAGE,
    EDIT_QUESTION,
    NOT_UNDERSTOOD,
    RESTART_MESSAGE,
    build_booking_failure,
    build_booking_success,
    build_confirmation_summary,
    build_field_question,
    build_help_text,
)
from tablebot.schemas.dialog_schema import BookingStep, DialogState, TurnResult
from tablebot.schemas.reservation_schema import (
    FIELD_ORDER,
    ReservationRecord,
    ReservationStatus,
    TurnInput,
)
from tablebot.storage.state_store import StateStore, create_state_store
from tablebot.tools.booking import BookingBackend, BookingResult

logger = get_conversation_logger(__name__)

RESERVATION_KEY = "reservation"
DIALOG_STATE_KEY = "booking_dialog"


class BookingOrchestrator:
    """Runs the table booking flow for any number of conversations."""

    def __init__(
        self,
        store: StateStore,
        backend: BookingBackend,
        config: AppConfig = settings,
        *,
        interrupts: Optional[InterruptRecognizer] = None,
        clock: Callable[[], dt.datetime] = dt.datetime.now,
    ) -> None:
        if config is None:
            raise ConstructionError("Need bot configuration")
        if store is None:
            raise ConstructionError("Need a state store for reservations and dialog state")
        if backend is None:
            raise ConstructionError("Need a booking backend")

        self._store = store
        self._backend = backend
        self._interrupts = interrupts or InterruptRecognizer()
        self.slot_filling = SlotFillingPrompt(rules=config.restaurant, clock=clock)
        self.confirmation = ConfirmationDialog(
            max_attempts=config.dialog.max_confirmation_attempts
        )

    # ------------------------------------------------------------------ #
    # Store-backed entry points
    # ------------------------------------------------------------------ #

    def start(self, conversation_id: str, turn: TurnInput) -> TurnResult:
        """Enter the flow, discarding any earlier state for the conversation."""
        set_conversation_id(conversation_id)
        logger.info("Booking flow started")
        self._store.clear(conversation_id)
        return self._run(conversation_id, DialogState(), ReservationRecord(), turn)

    def handle_turn(self, conversation_id: str, turn: TurnInput) -> TurnResult:
        """Resume the flow with one inbound turn, starting it if needed."""
        set_conversation_id(conversation_id)
        state = self.get_dialog_state(conversation_id)
        if state is None:
            return self.start(conversation_id, turn)
        record = self.get_reservation(conversation_id) or ReservationRecord()
        return self._run(conversation_id, state, record, turn)

    def get_reservation(self, conversation_id: str) -> Optional[ReservationRecord]:
        raw = self._store.get(conversation_id, RESERVATION_KEY)
        return ReservationRecord.model_validate(raw) if raw is not None else None

    def get_dialog_state(self, conversation_id: str) -> Optional[DialogState]:
        raw = self._store.get(conversation_id, DIALOG_STATE_KEY)
        return DialogState.model_validate(raw) if raw is not None else None

    def _run(
        self,
        conversation_id: str,
        state: DialogState,
        record: ReservationRecord,
        turn: TurnInput,
    ) -> TurnResult:
        new_state, new_record, result = self.step(state, record, turn)
        if result.done:
            self._store.clear(conversation_id)
            logger.info("Booking flow ended: %s", result.step.value)
        else:
            self._store.set(conversation_id, RESERVATION_KEY, new_record.model_dump(mode="json"))
            self._store.set(conversation_id, DIALOG_STATE_KEY, new_state.model_dump(mode="json"))
        return result

    # ------------------------------------------------------------------ #
    # Pure turn handling
    # ------------------------------------------------------------------ #

    def step(
        self, state: DialogState, record: ReservationRecord, turn: TurnInput
    ) -> tuple[DialogState, ReservationRecord, TurnResult]:
        """
        Advance the flow by one turn without touching the store.

        Returns:
            (new dialog state, new reservation record, turn result)
        """
        state = state.model_copy(deep=True)
        record = record.model_copy(deep=True)
        sm = BookingStateMachine(state.step)
        messages: list[str] = []
        reservation_ref: Optional[str] = None

        if sm.is_terminal():
            raise InvalidTransitionError(f"Dialog state is already finished: {state.step.value}")

        interrupt = self._interrupts.classify(turn)
        if interrupt is not None and interrupt.interrupt == Interrupt.CANCEL:
            sm.transition(TransitionTrigger.USER_CANCELLED)
            record.status = ReservationStatus.CANCELLED
            messages.append(CANCELLED_MESSAGE)
        elif interrupt is not None and interrupt.interrupt == Interrupt.RESTART:
            sm.transition(TransitionTrigger.RESTART)
            record = ReservationRecord()
            state = DialogState()
            question = build_field_question(FIELD_ORDER[0])
            state.record_prompt(question)
            messages.extend([RESTART_MESSAGE, question])
        elif interrupt is not None and interrupt.interrupt == Interrupt.HELP:
            messages.append(self._help(sm.current_step, record, state))
        elif sm.current_step == BookingStep.GATHER:
            record = self._gather(sm, state, record, turn, messages)
        elif sm.current_step == BookingStep.CONFIRM:
            record, reservation_ref = self._confirm(sm, state, record, turn, messages)

        state.step = sm.current_step
        result = TurnResult(
            step=sm.current_step,
            messages=messages,
            record=record,
            reservation_ref=reservation_ref,
        )
        return state, record, result

    def _help(self, step: BookingStep, record: ReservationRecord, state: DialogState) -> str:
        if step == BookingStep.CONFIRM:
            prompt = build_help_text([]) + " " + build_confirmation_summary(record)
            state.record_prompt(prompt)
            return prompt
        return self.slot_filling.help_prompt(record, state)

    def _gather(
        self,
        sm: BookingStateMachine,
        state: DialogState,
        record: ReservationRecord,
        turn: TurnInput,
        messages: list[str],
    ) -> ReservationRecord:
        if state.awaiting_edit and turn.nlu_available:
            if not turn.supplied_fields():
                prompt = f"{NOT_UNDERSTOOD} {EDIT_QUESTION}"
                state.record_prompt(prompt)
                messages.append(prompt)
                return record
            state.awaiting_edit = False

        if state.last_prompt is None:
            result = self.slot_filling.begin(record, turn, state)
        else:
            result = self.slot_filling.resume(record, turn, state)
        messages.extend(result.output)
        if result.done:
            sm.transition(TransitionTrigger.ALL_FIELDS_COLLECTED)
            messages.append(self.confirmation.present(result.record, state))
        return result.record

    def _confirm(
        self,
        sm: BookingStateMachine,
        state: DialogState,
        record: ReservationRecord,
        turn: TurnInput,
        messages: list[str],
    ) -> tuple[ReservationRecord, Optional[str]]:
        result = self.confirmation.resume(record, turn, state)
        messages.extend(result.output)

        if result.decision == ConfirmationDecision.CONFIRMED:
            sm.transition(TransitionTrigger.USER_CONFIRMED)
            return self._commit(sm, result.record, messages)

        if result.decision == ConfirmationDecision.CANCELLED:
            sm.transition(TransitionTrigger.USER_CANCELLED)
            if not result.output:
                messages.append(CANCELLED_MESSAGE)
            return result.record, None

        if result.decision == ConfirmationDecision.EDIT:
            sm.transition(TransitionTrigger.USER_REQUESTED_EDIT)
            if turn.supplied_fields():
                return self._gather(sm, state, result.record, turn, messages), None
            state.record_prompt(EDIT_QUESTION)
            messages.append(EDIT_QUESTION)

        return result.record, None

    def _commit(
        self, sm: BookingStateMachine, record: ReservationRecord, messages: list[str]
    ) -> tuple[ReservationRecord, Optional[str]]:
        try:
            outcome: BookingResult = self._backend.create_reservation(record)
        except Exception as exc:
            # Any backend fault ends the flow as a failed booking so state is cleared.
            logger.exception("Booking backend error")
            outcome = {"success": False, "message": str(exc)}

        if outcome.get("success"):
            ref = outcome.get("reservation_ref")
            sm.transition(TransitionTrigger.BOOKING_SUCCESS)
            messages.append(build_booking_success(record, ref))
            logger.info("Reservation committed: %s", ref)
            return record, ref

        sm.transition(TransitionTrigger.BOOKING_FAILED)
        messages.append(build_booking_failure(outcome.get("message")))
        logger.warning("Reservation commit failed: %s", outcome.get("message"))
        return record.model_copy(update={"status": ReservationStatus.INCOMPLETE}), None


def build_orchestrator(
    backend: BookingBackend,
    config: AppConfig = settings,
    clock: Callable[[], dt.datetime] = dt.datetime.now,
) -> BookingOrchestrator:
    """Create an orchestrator with the state store named by configuration."""
    store = create_state_store(config.storage.backend, config.storage.sqlite_path)
    return BookingOrchestrator(store, backend, config, clock=clock)
