"""
Slot-filling prompt: asks for one missing or invalid field per turn.

Every inbound turn is merged into the reservation. Once all four fields
are present and valid the sub-flow is done and hands the finished record
back to the orchestrator. Otherwise it asks for exactly one field: the
first conflict if the turn had any, else the first unset field in
priority order (location, date, time, party size).

All state lives in the reservation record and the DialogState the caller
passes in, so the loop can resume after a process restart.
"""

import datetime as dt
import logging
from dataclasses import dataclass, field
from typing import Callable, Optional

from tablebot.config import RestaurantConfig, settings
from tablebot.conversation.property_merger import merge
from tablebot.prompts.prompt_templates import (
    build_acknowledgement,
    build_field_question,
    build_help_text,
)
from tablebot.schemas.dialog_schema import DialogState
from tablebot.schemas.reservation_schema import (
    Conflict,
    MergeOutcome,
    MergeStatus,
    ReservationRecord,
    TurnInput,
)

logger = logging.getLogger(__name__)


@dataclass
class SubFlowResult:
    """Outcome of resuming a sub-flow with one turn."""

    done: bool
    record: ReservationRecord
    output: list[str] = field(default_factory=list)
    conflicts: list[Conflict] = field(default_factory=list)


class SlotFillingPrompt:
    """Collects location, date, time and party size across turns."""

    def __init__(
        self,
        rules: Optional[RestaurantConfig] = None,
        clock: Callable[[], dt.datetime] = dt.datetime.now,
    ) -> None:
        self._rules = rules or settings.restaurant
        self._clock = clock

    def begin(
        self, record: ReservationRecord, turn: TurnInput, state: DialogState
    ) -> SubFlowResult:
        """Enter the sub-flow with the turn that triggered the booking.

        A trigger like "I'd like to book a table" carries no fields; that
        is not a misunderstanding, so just ask the first question.
        """
        if turn.nlu_available and not turn.supplied_fields():
            prompt = self.current_question(record)
            state.record_prompt(prompt)
            return SubFlowResult(done=False, record=record, output=[prompt])
        return self.resume(record, turn, state)

    def resume(
        self, record: ReservationRecord, turn: TurnInput, state: DialogState
    ) -> SubFlowResult:
        """Merge the turn and either finish or ask for the next field."""
        if not turn.nlu_available:
            prompt = state.last_prompt or self.current_question(record)
            logger.info("NLU unavailable, re-issuing last prompt")
            state.record_prompt(prompt)
            return SubFlowResult(done=False, record=record, output=[prompt])

        now = self._clock()
        outcome = merge(record, turn, today=now.date(), now=now, rules=self._rules)
        if outcome.status == MergeStatus.COMPLETE:
            # A rejected edit on a complete record keeps the old value; say why.
            output = [outcome.conflicts[0].message] if outcome.conflicts else []
            logger.debug("All reservation fields collected")
            return SubFlowResult(
                done=True,
                record=outcome.record,
                output=output,
                conflicts=outcome.conflicts,
            )

        prompt = self.build_prompt(outcome)
        state.record_prompt(prompt)
        return SubFlowResult(
            done=False,
            record=outcome.record,
            output=[prompt],
            conflicts=outcome.conflicts,
        )

    @staticmethod
    def next_field(outcome: MergeOutcome) -> Optional[str]:
        """The single field to ask for after this merge, or None when complete."""
        for conflict in outcome.conflicts[:1]:
            if conflict.field is not None:
                return conflict.field
        missing = outcome.record.missing_fields()
        return missing[0] if missing else None

    def build_prompt(self, outcome: MergeOutcome) -> str:
        """Corrective or follow-up prompt for an incomplete merge."""
        parts: list[str] = []
        if outcome.conflicts:
            parts.append(outcome.conflicts[0].message)
        else:
            ack = build_acknowledgement(outcome.record, outcome.accepted)
            if ack:
                parts.append(ack)
        next_field = self.next_field(outcome)
        if next_field is not None:
            parts.append(build_field_question(next_field))
        return " ".join(parts)

    def current_question(self, record: ReservationRecord) -> str:
        """Question for the first unset field of ``record``."""
        missing = record.missing_fields()
        if not missing:
            return build_help_text(missing)
        return build_field_question(missing[0])

    def help_prompt(self, record: ReservationRecord, state: DialogState) -> str:
        """Explain what is still needed, then repeat the current question."""
        missing = record.missing_fields()
        prompt = build_help_text(missing)
        if missing:
            prompt += " " + build_field_question(missing[0])
        state.record_prompt(prompt)
        return prompt
