"""Boundaries to the natural-language assistant and auto-fill services."""

from shiftplanner.assistant.autofill import (
    AssignmentProposal,
    AutofillOutcome,
    AutofillRequest,
    AutofillResponse,
    AutofillService,
    JsonTransportAutofill,
    apply_autofill,
    open_shifts_for_autofill,
    parse_autofill_response,
    run_autofill,
)
from shiftplanner.assistant.dispatcher import AssistantDispatcher, AssistantReply
from shiftplanner.assistant.intents import AssistantAction, Intent, parse_intent
from shiftplanner.assistant.service import (
    AssistantRequest,
    AssistantService,
    JsonTransportAssistant,
)

__all__ = [
    # Assistant
    "AssistantAction",
    "AssistantDispatcher",
    "AssistantReply",
    "AssistantRequest",
    "AssistantService",
    "Intent",
    "JsonTransportAssistant",
    "parse_intent",
    # Auto-fill
    "AssignmentProposal",
    "AutofillOutcome",
    "AutofillRequest",
    "AutofillResponse",
    "AutofillService",
    "JsonTransportAutofill",
    "apply_autofill",
    "open_shifts_for_autofill",
    "parse_autofill_response",
    "run_autofill",
]
