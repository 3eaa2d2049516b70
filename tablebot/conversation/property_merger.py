"""
Property merger: reconciles one turn of extracted entities into a reservation.

Each supplied field is parsed and validated on its own. Valid values
overwrite the field on a copy of the current record, invalid ones are
dropped and reported as conflicts in fixed field priority order
(location, date, time, party size). The merge never mutates its inputs
and never persists anything.

Usage:
    outcome = merge(record, TurnInput(location="Seattle", date="2024-06-01"),
                    today=date(2024, 5, 20))
    if outcome.status == MergeStatus.COMPLETE:
        ...
"""

import datetime as dt
import logging
from typing import Any, Callable, Optional

from tablebot.config import RestaurantConfig, settings
from tablebot.prompts.prompt_templates import NOT_UNDERSTOOD, format_time
from tablebot.schemas.reservation_schema import (
    FIELD_ORDER,
    Conflict,
    MergeOutcome,
    MergeStatus,
    ReservationRecord,
    ReservationStatus,
    TurnInput,
)
from tablebot.tools.locations import get_location_names, match_location

logger = logging.getLogger(__name__)

DATE_FORMAT = "%Y-%m-%d"
TIME_FORMATS = ("%H:%M", "%I:%M%p", "%I%p")

TIME_PASSED = "Sorry, that time has already passed today."

NUMBER_WORDS: dict[str, int] = {
    "one": 1, "two": 2, "three": 3, "four": 4, "five": 5, "six": 6,
    "seven": 7, "eight": 8, "nine": 9, "ten": 10, "eleven": 11, "twelve": 12,
}

# (parsed value, None) on success, (None, message) on rejection.
ParseResult = tuple[Any, Optional[str]]


class MergeContext:
    """Reference clock and business rules a merge is evaluated against."""

    def __init__(
        self,
        today: dt.date,
        now: Optional[dt.datetime] = None,
        rules: Optional[RestaurantConfig] = None,
    ) -> None:
        self.today = today
        self.now = now
        self.rules = rules or settings.restaurant


def _parse_location(raw: Any, ctx: MergeContext, working: ReservationRecord) -> ParseResult:
    matched = match_location(str(raw), ctx.rules.locations)
    if matched is None:
        known = ", ".join(get_location_names(ctx.rules.locations))
        return None, f"Sorry, we don't have a restaurant in {raw}. We have locations in {known}."
    return matched, None


def _parse_date(raw: Any, ctx: MergeContext, working: ReservationRecord) -> ParseResult:
    if isinstance(raw, dt.datetime):
        value = raw.date()
    elif isinstance(raw, dt.date):
        value = raw
    else:
        text = str(raw).strip().lower()
        if text == "today":
            value = ctx.today
        elif text == "tomorrow":
            value = ctx.today + dt.timedelta(days=1)
        else:
            try:
                value = dt.datetime.strptime(text, DATE_FORMAT).date()
            except ValueError:
                return None, f"Sorry, I couldn't understand the date '{raw}'."
    if value < ctx.today:
        return None, "Sorry, the date cannot be in the past."
    return value, None


def _parse_time(raw: Any, ctx: MergeContext, working: ReservationRecord) -> ParseResult:
    if isinstance(raw, dt.datetime):
        value: Optional[dt.time] = raw.time()
    elif isinstance(raw, dt.time):
        value = raw
    else:
        text = str(raw).strip().upper().replace(" ", "").replace(".", "")
        value = None
        for fmt in TIME_FORMATS:
            try:
                value = dt.datetime.strptime(text, fmt).time()
                break
            except ValueError:
                continue
        if value is None:
            return None, f"Sorry, I couldn't understand the time '{raw}'."
    value = value.replace(second=0, microsecond=0, tzinfo=None)

    opens = dt.time(ctx.rules.open_hour)
    last_seating = dt.time(ctx.rules.last_seating_hour)
    if not opens <= value <= last_seating:
        return None, (
            f"Sorry, we only seat guests between {format_time(opens)} "
            f"and {format_time(last_seating)}."
        )
    return value, None


def _parse_party_size(raw: Any, ctx: MergeContext, working: ReservationRecord) -> ParseResult:
    value: Optional[int] = None
    if isinstance(raw, bool):
        value = None
    elif isinstance(raw, int):
        value = raw
    elif isinstance(raw, float) and raw.is_integer():
        value = int(raw)
    elif isinstance(raw, str):
        text = raw.strip().lower()
        if text.isdigit():
            value = int(text)
        else:
            value = NUMBER_WORDS.get(text)
    if value is None:
        return None, f"Sorry, I couldn't understand the party size '{raw}'."

    low, high = ctx.rules.min_party_size, ctx.rules.max_party_size
    if not low <= value <= high:
        return None, (
            f"Sorry, {value} guests does not work. "
            f"I can book tables for {low} to {high} guests."
        )
    return value, None


def _time_already_passed(working: ReservationRecord, ctx: MergeContext) -> bool:
    """True when the record is for today at a time the clock has passed.

    Checked on the merged record, so the result does not depend on whether
    the date or the time arrived first.
    """
    if ctx.now is None or working.date is None or working.time is None:
        return False
    return working.date == ctx.now.date() and working.time <= ctx.now.time()


FIELD_PARSERS: dict[str, Callable[[Any, MergeContext, ReservationRecord], ParseResult]] = {
    "location": _parse_location,
    "date": _parse_date,
    "time": _parse_time,
    "party_size": _parse_party_size,
}


def merge(
    current: Optional[ReservationRecord],
    turn: TurnInput,
    *,
    today: Optional[dt.date] = None,
    now: Optional[dt.datetime] = None,
    rules: Optional[RestaurantConfig] = None,
) -> MergeOutcome:
    """
    Merge one turn's entities into a copy of ``current``.

    Args:
        current: The reservation so far, or None when the flow just started.
        turn: Entities extracted from the user's utterance.
        today: Reference date for the not-in-the-past rule. Defaults to the
            system date; pass it explicitly for reproducible results.
        now: Optional reference clock used to reject times already passed
            on the current day.
        rules: Business rules; defaults to ``settings.restaurant``.

    Returns:
        A MergeOutcome with the updated record and any conflicts.
    """
    ctx = MergeContext(today or dt.date.today(), now=now, rules=rules)
    working = current.model_copy(deep=True) if current is not None else ReservationRecord()

    conflicts: list[Conflict] = []
    accepted: list[str] = []
    supplied = turn.supplied_fields()

    for name in FIELD_ORDER:
        if name not in supplied:
            continue
        raw = getattr(turn, name)
        value, error = FIELD_PARSERS[name](raw, ctx, working)
        if error is not None:
            logger.warning("Field '%s' rejected: %r", name, raw)
            conflicts.append(Conflict(field=name, message=error))
            continue
        setattr(working, name, value)
        accepted.append(name)

    if _time_already_passed(working, ctx):
        logger.warning("Time %s has already passed today", working.time)
        working.time = None
        working.status = ReservationStatus.INCOMPLETE
        if "time" in accepted:
            accepted.remove("time")
        conflicts.append(Conflict(field="time", message=TIME_PASSED))
        conflicts.sort(key=lambda c: FIELD_ORDER.index(c.field))

    if accepted and working.status == ReservationStatus.CONFIRMED:
        working.status = ReservationStatus.INCOMPLETE

    status = MergeStatus.COMPLETE if working.is_filled() else MergeStatus.INCOMPLETE
    if not supplied and status == MergeStatus.INCOMPLETE:
        conflicts.append(Conflict(field=None, message=NOT_UNDERSTOOD))

    logger.debug(
        "Merged turn: accepted=%s conflicts=%s status=%s",
        accepted, [c.field for c in conflicts], status.value,
    )
    return MergeOutcome(status=status, record=working, conflicts=conflicts, accepted=accepted)
