"""User-facing text for the booking flow.

Every message the dialogs emit is built here so wording stays consistent
across the slot-filling prompt, the confirmation dialog and the commit step.
"""

import datetime as dt
from typing import Optional

from tablebot.schemas.reservation_schema import ReservationRecord

FIELD_QUESTIONS: dict[str, str] = {
    "location": "Which of our locations would you like to book?",
    "date": "What date would you like the table for?",
    "time": "What time would you like to come in?",
    "party_size": "How many guests will be joining?",
}

FIELD_DISPLAY_NAMES: dict[str, str] = {
    "location": "location",
    "date": "date",
    "time": "time",
    "party_size": "party size",
}

NOT_UNDERSTOOD = "Sorry, I didn't catch any reservation details in that."
EDIT_QUESTION = "Sure. What would you like to change?"
CANCELLED_MESSAGE = "Okay, I've cancelled your reservation request."
GAVE_UP_MESSAGE = (
    "Sorry, I still couldn't tell whether to book the table, so I've cancelled "
    "this request. Just ask again whenever you're ready."
)
RESTART_MESSAGE = "No problem, let's start your reservation over."
CONFIRM_RETRY_PREFIX = "Sorry, I need a yes or a no."


def format_date(value: dt.date) -> str:
    return value.strftime("%A, %B %d %Y")


def format_time(value: dt.time) -> str:
    return value.strftime("%I:%M %p").lstrip("0")


def format_field(name: str, record: ReservationRecord) -> str:
    """Render one reservation field for read-back."""
    value = getattr(record, name)
    if name == "date":
        return format_date(value)
    if name == "time":
        return format_time(value)
    if name == "party_size":
        return f"{value} {'guest' if value == 1 else 'guests'}"
    return str(value)


def build_field_question(field_name: str) -> str:
    return FIELD_QUESTIONS[field_name]


def build_acknowledgement(record: ReservationRecord, accepted: list[str]) -> str:
    """Short read-back of the fields accepted on this turn."""
    if not accepted:
        return ""
    parts = [format_field(name, record) for name in accepted]
    return "Okay, " + ", ".join(parts) + "."


def build_confirmation_summary(record: ReservationRecord) -> str:
    """Read-back of a completed reservation, ending with the confirmation question."""
    size = record.party_size
    return (
        f"I have a table for {size} at our {record.location} restaurant "
        f"on {format_date(record.date)} at {format_time(record.time)}. "
        "Should I go ahead and book it?"
    )


def build_help_text(missing: list[str]) -> str:
    """Explain what is still needed to complete the reservation."""
    if not missing:
        return "I have everything I need, I just need you to confirm the booking."
    names = [FIELD_DISPLAY_NAMES[name] for name in missing]
    if len(names) == 1:
        needed = names[0]
    else:
        needed = ", ".join(names[:-1]) + " and " + names[-1]
    return f"To book a table I still need the {needed}. You can say them in any order."


def build_booking_success(record: ReservationRecord, reservation_ref: Optional[str]) -> str:
    ref_text = f" Your reference number is {reservation_ref}." if reservation_ref else ""
    return (
        f"You're all set! Table for {record.party_size} at {record.location} "
        f"on {format_date(record.date)} at {format_time(record.time)}.{ref_text}"
    )


def build_booking_failure(reason: Optional[str] = None) -> str:
    detail = f" ({reason})" if reason else ""
    return (
        "Sorry, I wasn't able to complete your booking" + detail + ". "
        "Please try again later."
    )
