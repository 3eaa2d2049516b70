"""Persisted dialog state and per-turn results for the booking flow."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from tablebot.schemas.reservation_schema import ReservationRecord


class BookingStep(str, Enum):
    """Waterfall steps of the booking flow."""
    GATHER = "gather"
    CONFIRM = "confirm"
    COMMIT = "commit"
    DONE = "done"
    FAILED = "failed"
    CANCELLED = "cancelled"


class DialogState(BaseModel):
    """
    Per-conversation state of the booking flow.

    Persisted between turns so the flow resumes where it suspended,
    including after a process restart.
    """
    step: BookingStep = BookingStep.GATHER
    last_prompt: Optional[str] = None
    prompt_history: list[str] = Field(default_factory=list)
    confirmation_attempts: int = 0
    awaiting_edit: bool = False

    def record_prompt(self, prompt: str) -> None:
        self.last_prompt = prompt
        self.prompt_history.append(prompt)


class TurnResult(BaseModel):
    """What the orchestrator hands back to the transport for one turn."""
    step: BookingStep
    messages: list[str] = Field(default_factory=list)
    record: Optional[ReservationRecord] = None
    reservation_ref: Optional[str] = None

    @property
    def done(self) -> bool:
        return self.step in (BookingStep.DONE, BookingStep.FAILED, BookingStep.CANCELLED)
