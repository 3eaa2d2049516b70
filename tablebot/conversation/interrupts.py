"""
Interrupt recognition for global cancel, help and restart requests.

Runs ahead of the active booking step on every turn. An NLU intent label
takes precedence; otherwise the free text is scanned for keywords.
"""

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from tablebot.schemas.reservation_schema import TurnInput

logger = logging.getLogger(__name__)


class Interrupt(str, Enum):
    CANCEL = "cancel"
    HELP = "help"
    RESTART = "restart"


@dataclass
class InterruptResult:
    """A recognized interrupt and what triggered it."""
    interrupt: Interrupt
    source: str  # "intent" | "keyword"
    matched: str


class InterruptRecognizer:
    """Classifies a turn as a cancel, help or restart request, or none."""

    INTENT_LABELS: dict[str, Interrupt] = {
        "cancel": Interrupt.CANCEL,
        "help": Interrupt.HELP,
        "start_over": Interrupt.RESTART,
        "restart": Interrupt.RESTART,
    }

    # Checked in order; restart before cancel so "cancel and start over" restarts.
    KEYWORDS: list[tuple[Interrupt, list[str]]] = [
        (Interrupt.RESTART, ["start over", "start again", "restart", "begin again"]),
        (Interrupt.CANCEL, ["cancel", "never mind", "nevermind", "forget it", "stop"]),
        (Interrupt.HELP, ["help", "what do you need", "what can i say"]),
    ]

    def classify(self, turn: TurnInput) -> Optional[InterruptResult]:
        if turn.intent:
            label = turn.intent.strip().lower().replace(" ", "_")
            interrupt = self.INTENT_LABELS.get(label)
            if interrupt is not None:
                logger.info("Interrupt recognized from intent: %s", label)
                return InterruptResult(interrupt=interrupt, source="intent", matched=label)

        if not turn.text:
            return None
        lower = turn.text.lower()
        for interrupt, keywords in self.KEYWORDS:
            for keyword in keywords:
                if re.search(rf"\b{re.escape(keyword)}\b", lower):
                    logger.info("Interrupt keyword detected: '%s'", keyword)
                    return InterruptResult(interrupt=interrupt, source="keyword", matched=keyword)
        return None
