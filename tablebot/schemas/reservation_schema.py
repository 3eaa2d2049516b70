"""Reservation data models shared by the merger, dialogs and backend."""

import datetime as dt
from enum import Enum
from typing import Any, Mapping, Optional

from pydantic import BaseModel, Field

# Fixed priority order used for conflict reporting and next-question selection.
FIELD_ORDER: tuple[str, ...] = ("location", "date", "time", "party_size")

ENTITY_ALIASES: dict[str, str] = {
    "location": "location",
    "cafeLocation": "location",
    "date": "date",
    "time": "time",
    "partySize": "party_size",
    "party_size": "party_size",
}


class ReservationStatus(str, Enum):
    INCOMPLETE = "incomplete"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


class MergeStatus(str, Enum):
    COMPLETE = "complete"
    INCOMPLETE = "incomplete"


class ReservationRecord(BaseModel):
    """One in-progress or completed table reservation."""

    location: Optional[str] = None
    date: Optional[dt.date] = None
    time: Optional[dt.time] = None
    party_size: Optional[int] = None
    status: ReservationStatus = ReservationStatus.INCOMPLETE

    def missing_fields(self) -> list[str]:
        """Unset fields, in priority order."""
        return [name for name in FIELD_ORDER if getattr(self, name) is None]

    def is_filled(self) -> bool:
        return not self.missing_fields()

    def to_dict(self) -> dict[str, Any]:
        """Export the set fields as a flat JSON-compatible dict."""
        return self.model_dump(mode="json", exclude_none=True)


class TurnInput(BaseModel):
    """Entities extracted from a single user utterance.

    Values are kept raw; the merger is responsible for parsing and
    validating them. ``nlu_available`` is False when extraction failed
    for this turn.
    """

    location: Any = None
    date: Any = None
    time: Any = None
    party_size: Any = None
    intent: Optional[str] = None
    text: Optional[str] = None
    nlu_available: bool = True

    @classmethod
    def from_entities(
        cls,
        entities: Optional[Mapping[str, Any]] = None,
        intent: Optional[str] = None,
        text: Optional[str] = None,
    ) -> "TurnInput":
        """Build a turn from an NLU entity mapping, ignoring unknown names."""
        values: dict[str, Any] = {}
        for name, value in (entities or {}).items():
            field_name = ENTITY_ALIASES.get(name)
            if field_name is not None:
                values[field_name] = value
        return cls(intent=intent, text=text, **values)

    def supplied_fields(self) -> list[str]:
        """Fields carrying a value this turn, in priority order."""
        supplied = []
        for name in FIELD_ORDER:
            value = getattr(self, name)
            if value is None:
                continue
            if isinstance(value, str) and not value.strip():
                continue
            supplied.append(name)
        return supplied


class Conflict(BaseModel):
    """A supplied value that was rejected, or a turn that was not understood."""

    field: Optional[str] = None
    message: str


class MergeOutcome(BaseModel):
    """Result of merging one turn into a reservation."""

    status: MergeStatus
    record: ReservationRecord
    conflicts: list[Conflict] = Field(default_factory=list)
    accepted: list[str] = Field(default_factory=list)
