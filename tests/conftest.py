"""Shared test fixtures and helpers."""

from datetime import date, datetime, time
from typing import Any, Optional

import pytest

from tablebot.config import AppConfig, DialogConfig, RestaurantConfig
from tablebot.conversation.confirmation import ConfirmationDialog
from tablebot.conversation.orchestrator import BookingOrchestrator
from tablebot.conversation.slot_filling import SlotFillingPrompt
from tablebot.conversation.state_machine import BookingStateMachine
from tablebot.schemas.dialog_schema import DialogState
from tablebot.schemas.reservation_schema import ReservationRecord, TurnInput
from tablebot.storage.state_store import InMemoryStateStore
from tablebot.tools.booking import MockBookingBackend

# Fixed clock: every date in the tests is relative to this moment.
NOW = datetime(2024, 5, 20, 12, 0)
TODAY = NOW.date()

RULES = RestaurantConfig(
    name="Test Cafe",
    locations=("Seattle", "Bellevue", "Renton", "Kirkland", "Redmond"),
    open_hour=8,
    last_seating_hour=22,
    min_party_size=1,
    max_party_size=12,
)


def fixed_clock() -> datetime:
    return NOW


def make_turn(text: Optional[str] = None, intent: Optional[str] = None, **entities: Any) -> TurnInput:
    """Helper to create a TurnInput from keyword entities."""
    return TurnInput(text=text, intent=intent, **entities)


def make_complete_record(**overrides: Any) -> ReservationRecord:
    """A fully valid reservation: Seattle, 2024-06-01, 19:00, party of 4."""
    values = {
        "location": "Seattle",
        "date": date(2024, 6, 1),
        "time": time(19, 0),
        "party_size": 4,
    }
    values.update(overrides)
    return ReservationRecord(**values)


@pytest.fixture
def app_config():
    return AppConfig(restaurant=RULES, dialog=DialogConfig(max_confirmation_attempts=3))


@pytest.fixture
def state_store():
    return InMemoryStateStore()


@pytest.fixture
def backend():
    return MockBookingBackend()


@pytest.fixture
def orchestrator(state_store, backend, app_config):
    return BookingOrchestrator(state_store, backend, app_config, clock=fixed_clock)


@pytest.fixture
def slot_filling():
    return SlotFillingPrompt(rules=RULES, clock=fixed_clock)


@pytest.fixture
def confirmation_dialog():
    return ConfirmationDialog(max_attempts=3)


@pytest.fixture
def dialog_state():
    return DialogState()


@pytest.fixture
def state_machine():
    return BookingStateMachine()
