from tablebot.conversation.confirmation import ConfirmationDecision, ConfirmationDialog
from tablebot.conversation.interrupts import Interrupt, InterruptRecognizer
from tablebot.conversation.orchestrator import BookingOrchestrator, build_orchestrator
from tablebot.conversation.property_merger import merge
from tablebot.conversation.slot_filling import SlotFillingPrompt, SubFlowResult
from tablebot.conversation.state_machine import BookingStateMachine, TransitionTrigger

__all__ = [
    "BookingOrchestrator",
    "build_orchestrator",
    "BookingStateMachine",
    "TransitionTrigger",
    "SlotFillingPrompt",
    "SubFlowResult",
    "ConfirmationDialog",
    "ConfirmationDecision",
    "InterruptRecognizer",
    "Interrupt",
    "merge",
]
