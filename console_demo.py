"""
Offline console demo: runs the table booking flow in the terminal.

Uses the real orchestrator, merger, dialogs, state store and mock booking
backend. A small regex extractor stands in for the NLU service so the demo
needs no model, no network and no API keys.

Usage:
    python console_demo.py
    python console_demo.py --scenario edit
    python console_demo.py --scenario failure
"""

import argparse
import re
import uuid
from typing import Any, Optional

from tablebot.config import settings
from tablebot.conversation.orchestrator import BookingOrchestrator
from tablebot.schemas.reservation_schema import TurnInput
from tablebot.storage.state_store import create_state_store
from tablebot.tools.booking import MockBookingBackend
from tablebot.tools.locations import match_location

BLUE = "\033[94m"
GREEN = "\033[92m"
RED = "\033[91m"
DIM = "\033[2m"
RESET = "\033[0m"
BOLD = "\033[1m"

_DATE_RE = re.compile(r"\b(\d{4}-\d{2}-\d{2}|today|tomorrow)\b")
_TIME_RE = re.compile(r"\b(\d{1,2}(?::\d{2})?\s*(?:am|pm)|\d{1,2}:\d{2})\b")
_PARTY_RE = re.compile(r"\b(?:for|party of|table of)\s+(\d{1,2})\b|\b(\d{1,2})\s+(?:people|guests)\b")


def extract_entities(text: str) -> dict[str, Any]:
    """Very small stand-in for the NLU entity extractor."""
    lower = text.lower()
    entities: dict[str, Any] = {}
    location = match_location(lower)
    if location:
        entities["location"] = location
    date = _DATE_RE.search(lower)
    if date:
        entities["date"] = date.group(1)
    time = _TIME_RE.search(_DATE_RE.sub(" ", lower))
    if time:
        entities["time"] = time.group(1)
    party = _PARTY_RE.search(lower)
    if party:
        entities["partySize"] = party.group(1) or party.group(2)
    return entities


class ConsoleSession:
    """Drives one conversation through the booking orchestrator."""

    SCENARIOS: dict[str, list[str]] = {
        "booking": [
            "I'd like to book a table in Seattle",
            "tomorrow at 7pm",
            "for 4",
            "yes",
        ],
        "edit": [
            "Book a table for 2 in Redmond tomorrow at 6:30pm",
            "no",
            "make it 8pm",
            "yes please",
        ],
        "cancel": [
            "Table for 3 in Kirkland please",
            "never mind, cancel",
        ],
        "failure": [
            "Book Bellevue tomorrow 19:00 for 6 people",
            "sounds good",
        ],
    }

    def __init__(self, fail_bookings: bool = False) -> None:
        store = create_state_store(settings.storage.backend, settings.storage.sqlite_path)
        backend = MockBookingBackend(
            fail_with="reservation service unavailable" if fail_bookings else None
        )
        self.orchestrator = BookingOrchestrator(store, backend, settings)
        self.conversation_id = f"console-{uuid.uuid4().hex[:8]}"
        self.finished = False

    def bot_say(self, text: str) -> None:
        print(f"{GREEN}{BOLD}[{settings.restaurant.name}]{RESET} {GREEN}{text}{RESET}")

    def system_log(self, text: str) -> None:
        print(f"{DIM}  >> {text}{RESET}")

    def process(self, text: str) -> None:
        entities = extract_entities(text)
        self.system_log(f"Entities: {entities or 'none'}")
        turn = TurnInput.from_entities(entities, text=text)
        result = self.orchestrator.handle_turn(self.conversation_id, turn)
        for message in result.messages:
            self.bot_say(message)
        self.system_log(f"Step: {result.step.value}")
        self.finished = result.done

    def run_scenario(self, scenario: str) -> None:
        """Auto-play a pre-scripted scenario for demo purposes."""
        steps = self.SCENARIOS.get(scenario)
        if not steps:
            print(f"{RED}Unknown scenario: {scenario}{RESET}")
            return
        print(f"\n{BOLD}{'=' * 60}\n  TABLE BOOKING - Scenario: {scenario}\n{'=' * 60}{RESET}\n")
        for step in steps:
            if self.finished:
                break
            print(f"\n{BLUE}[Guest] {RESET}{step}")
            self.process(step)

    def run(self) -> None:
        print(f"\n{BOLD}{'=' * 60}\n  TABLE BOOKING - Console Demo\n  Type 'quit' to exit\n{'=' * 60}{RESET}\n")
        self.bot_say("Hi! Where and when would you like to book a table?")
        while not self.finished:
            user_input = input(f"\n{BLUE}[Guest] {RESET}").strip()
            if not user_input:
                continue
            if user_input.lower() in ("quit", "exit", "q"):
                print(f"\n{DIM}Session ended.{RESET}")
                return
            self.process(user_input)


def main(argv: Optional[list[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Table booking console demo")
    parser.add_argument("--scenario", choices=sorted(ConsoleSession.SCENARIOS))
    args = parser.parse_args(argv)

    session = ConsoleSession(fail_bookings=args.scenario == "failure")
    if args.scenario:
        session.run_scenario(args.scenario)
    else:
        session.run()


if __name__ == "__main__":
    main()
