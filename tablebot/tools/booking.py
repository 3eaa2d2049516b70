"""
Mock table reservation backend.

In production, this would call a restaurant reservation platform
(OpenTable, Resy, SevenRooms, or a custom backend). The booking flow only
depends on the ``BookingBackend`` protocol.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Optional, Protocol, TypedDict

from tablebot.errors import BookingBackendError
from tablebot.schemas.reservation_schema import ReservationRecord, ReservationStatus

logger = logging.getLogger(__name__)


class StoredReservation(TypedDict):
    """Full reservation record held by the backend."""

    reservation_ref: str
    location: str
    date: str
    time: str
    party_size: int
    status: str
    created_at: str


class BookingResult(TypedDict, total=False):
    """Result from create_reservation or cancel_reservation."""

    success: bool
    message: str
    reservation_ref: str
    details: StoredReservation


class BookingBackend(Protocol):
    """Accepts a confirmed reservation and reports success or failure."""

    def create_reservation(self, record: ReservationRecord) -> BookingResult:
        ...


class MockBookingBackend:
    """In-process reservation table with per-location seat capacity."""

    def __init__(self, seats_per_slot: int = 40, fail_with: Optional[str] = None) -> None:
        self.seats_per_slot = seats_per_slot
        self.fail_with = fail_with
        self._reservations: dict[str, StoredReservation] = {}

    def _seats_taken(self, location: str, date: str, time: str) -> int:
        return sum(
            r["party_size"]
            for r in self._reservations.values()
            if r["status"] == "confirmed"
            and (r["location"], r["date"], r["time"]) == (location, date, time)
        )

    def create_reservation(self, record: ReservationRecord) -> BookingResult:
        """Book a table for a confirmed record."""
        if self.fail_with is not None:
            raise BookingBackendError(self.fail_with)
        if record.status != ReservationStatus.CONFIRMED:
            return {"success": False, "message": "Reservation has not been confirmed."}
        missing = record.missing_fields()
        if missing:
            return {
                "success": False,
                "message": f"Cannot book - missing required fields: {', '.join(missing)}.",
            }

        data = record.to_dict()
        taken = self._seats_taken(data["location"], data["date"], data["time"])
        if taken + record.party_size > self.seats_per_slot:
            logger.info("No capacity at %s on %s %s", data["location"], data["date"], data["time"])
            return {"success": False, "message": "No tables are free at that time."}

        ref = f"RES-{uuid.uuid4().hex[:6].upper()}"
        reservation: StoredReservation = {
            "reservation_ref": ref,
            "location": data["location"],
            "date": data["date"],
            "time": data["time"],
            "party_size": record.party_size,
            "status": "confirmed",
            "created_at": datetime.now(timezone.utc).isoformat(),
        }
        self._reservations[ref] = reservation
        logger.info(
            "Reservation created: %s for %d at %s on %s %s",
            ref, record.party_size, data["location"], data["date"], data["time"],
        )
        return {
            "success": True,
            "reservation_ref": ref,
            "message": f"Reservation confirmed. Reference number: {ref}.",
            "details": reservation,
        }

    def cancel_reservation(self, reservation_ref: str) -> BookingResult:
        """Cancel an existing reservation by reference number."""
        if reservation_ref not in self._reservations:
            return {"success": False, "message": f"Reservation {reservation_ref} not found."}
        self._reservations[reservation_ref]["status"] = "cancelled"
        logger.info("Reservation cancelled: %s", reservation_ref)
        return {"success": True, "message": f"Reservation {reservation_ref} has been cancelled."}

    def get_reservation(self, reservation_ref: str) -> Optional[StoredReservation]:
        return self._reservations.get(reservation_ref)

    def reset(self) -> None:
        """Clear all reservations. Used by test fixtures for isolation."""
        self._reservations.clear()
