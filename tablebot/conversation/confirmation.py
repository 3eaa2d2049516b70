"""
Confirmation dialog: reads back a completed reservation for explicit approval.

The user can confirm, ask to change something, or cancel. Unrecognized
answers re-prompt with the same summary, up to ``max_attempts`` times,
after which the request is cancelled.
"""

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from tablebot.config import settings
from tablebot.prompts.prompt_templates import (
    CONFIRM_RETRY_PREFIX,
    GAVE_UP_MESSAGE,
    build_confirmation_summary,
)
from tablebot.schemas.dialog_schema import DialogState
from tablebot.schemas.reservation_schema import (
    ReservationRecord,
    ReservationStatus,
    TurnInput,
)

logger = logging.getLogger(__name__)


class ConfirmationDecision(str, Enum):
    CONFIRMED = "confirmed"
    EDIT = "edit"
    CANCELLED = "cancelled"
    RETRY = "retry"


@dataclass
class ConfirmationResult:
    decision: ConfirmationDecision
    record: ReservationRecord
    output: list[str] = field(default_factory=list)


class ConfirmationDialog:
    """Presents the reservation summary and interprets the user's answer."""

    CONFIRM_INTENTS = frozenset({"confirm", "yes", "affirm"})
    REJECT_INTENTS = frozenset({"reject", "no", "deny", "change", "edit"})
    CANCEL_INTENTS = frozenset({"cancel"})

    CONFIRM_PHRASES = [
        "yes", "yeah", "yep", "sure", "ok", "okay", "confirm", "correct",
        "sounds good", "book it", "go ahead", "perfect", "no problem", "no worries",
    ]
    REJECT_PHRASES = [
        "no", "nope", "change", "edit", "wrong", "not quite", "actually", "instead",
        "not ok", "not okay", "not correct", "not right",
    ]

    def __init__(self, max_attempts: Optional[int] = None) -> None:
        self.max_attempts = max_attempts or settings.dialog.max_confirmation_attempts

    def present(self, record: ReservationRecord, state: DialogState) -> str:
        """Start (or restart) confirmation of a completed record."""
        state.confirmation_attempts = 0
        state.awaiting_edit = False
        summary = build_confirmation_summary(record)
        state.record_prompt(summary)
        return summary

    def classify(self, turn: TurnInput) -> Optional[ConfirmationDecision]:
        """Map a turn to confirm / edit / cancel, or None if unrecognized."""
        label = (turn.intent or "").strip().lower()
        if label in self.CANCEL_INTENTS:
            return ConfirmationDecision.CANCELLED
        # New values always go back through the merger, even after a "yes".
        if turn.supplied_fields():
            return ConfirmationDecision.EDIT
        if label in self.CONFIRM_INTENTS:
            return ConfirmationDecision.CONFIRMED
        if label in self.REJECT_INTENTS:
            return ConfirmationDecision.EDIT
        return self._match_phrases((turn.text or "").lower())

    def _match_phrases(self, text: str) -> Optional[ConfirmationDecision]:
        """Longest phrase first, so "no problem" is a yes and "not ok" a no.

        Each match is blanked out before shorter phrases are tried. Any
        reject phrase left standing wins over a confirm phrase.
        """
        phrases = [(p, ConfirmationDecision.CONFIRMED) for p in self.CONFIRM_PHRASES]
        phrases += [(p, ConfirmationDecision.EDIT) for p in self.REJECT_PHRASES]
        phrases.sort(key=lambda item: len(item[0]), reverse=True)

        found: set[ConfirmationDecision] = set()
        for phrase, decision in phrases:
            pattern = rf"\b{re.escape(phrase)}\b"
            if re.search(pattern, text):
                found.add(decision)
                text = re.sub(pattern, " ", text)
        if ConfirmationDecision.EDIT in found:
            return ConfirmationDecision.EDIT
        if ConfirmationDecision.CONFIRMED in found:
            return ConfirmationDecision.CONFIRMED
        return None

    def resume(
        self, record: ReservationRecord, turn: TurnInput, state: DialogState
    ) -> ConfirmationResult:
        if not turn.nlu_available:
            prompt = state.last_prompt or build_confirmation_summary(record)
            state.record_prompt(prompt)
            return ConfirmationResult(
                decision=ConfirmationDecision.RETRY, record=record, output=[prompt]
            )

        decision = self.classify(turn)

        if decision == ConfirmationDecision.CONFIRMED:
            confirmed = record.model_copy(update={"status": ReservationStatus.CONFIRMED})
            logger.info("Reservation confirmed by user")
            return ConfirmationResult(decision=decision, record=confirmed)

        if decision == ConfirmationDecision.CANCELLED:
            cancelled = record.model_copy(update={"status": ReservationStatus.CANCELLED})
            logger.info("Reservation cancelled at confirmation")
            return ConfirmationResult(decision=decision, record=cancelled)

        if decision == ConfirmationDecision.EDIT:
            state.awaiting_edit = True
            logger.info("User asked to change the reservation")
            return ConfirmationResult(decision=decision, record=record)

        state.confirmation_attempts += 1
        if state.confirmation_attempts >= self.max_attempts:
            logger.warning(
                "No recognizable confirmation after %d attempts, cancelling",
                state.confirmation_attempts,
            )
            cancelled = record.model_copy(update={"status": ReservationStatus.CANCELLED})
            return ConfirmationResult(
                decision=ConfirmationDecision.CANCELLED,
                record=cancelled,
                output=[GAVE_UP_MESSAGE],
            )

        prompt = f"{CONFIRM_RETRY_PREFIX} {build_confirmation_summary(record)}"
        state.record_prompt(prompt)
        return ConfirmationResult(decision=ConfirmationDecision.RETRY, record=record, output=[prompt])
