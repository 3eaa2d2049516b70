"""Exception types raised by the table booking flow.

Per-turn validation problems are not exceptions: they travel as
``Conflict`` entries on a ``MergeOutcome`` and become corrective prompts.
"""


class TableBotError(Exception):
    """Base class for all table booking errors."""


class ConstructionError(TableBotError):
    """Raised when a dialog is built without a required collaborator."""


class InvalidTransitionError(TableBotError):
    """Raised when a transition is not valid from the current step."""


class BookingBackendError(TableBotError):
    """Raised by a booking backend that could not process a reservation."""
