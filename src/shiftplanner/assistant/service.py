"""The assistant service boundary.

The assistant is an opaque collaborator: it receives a command and a compact
view of the schedule and answers with one structured intent. How it gets
there (prompting, models, retries) is its own business.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date
from typing import Callable, Union

from shiftplanner.assistant.intents import Intent, parse_intent
from shiftplanner.errors import ExternalServiceError, ShiftPlannerError
from shiftplanner.store.persistence import (
    event_to_dict,
    shift_to_dict,
    venue_to_dict,
)
from shiftplanner.store.state import ScheduleState

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AssistantRequest:
    """Everything the assistant sees for one command.

    Attributes:
        command: The user's natural-language command.
        state: Schedule snapshot the command refers to.
        today: Reference date for relative expressions.
        history: Earlier messages of the conversation, oldest first.
    """

    command: str
    state: ScheduleState
    today: date
    history: tuple[str, ...] = ()

    def to_payload(self) -> dict:
        """Compact JSON-compatible view sent to the service."""
        return {
            "command": self.command,
            "today": self.today.isoformat(),
            "history": list(self.history),
            "employees": [
                {
                    "id": e.id,
                    "name": e.name,
                    "type": e.type.value,
                    "allowedVenueIds": list(e.allowed_venue_ids),
                }
                for e in self.state.active_employees
            ],
            "venues": [venue_to_dict(v) for v in self.state.active_venues],
            "shifts": [shift_to_dict(s) for s in self.state.shifts],
            "events": [event_to_dict(e) for e in self.state.events],
        }


class AssistantService(ABC):
    """Interprets natural-language commands."""

    @abstractmethod
    def interpret(self, request: AssistantRequest) -> Intent:
        """Return the intent for a command.

        Raises:
            ExternalServiceError: If the service fails or its output is
                unusable.
        """


Transport = Callable[[dict], Union[str, bytes, dict]]


class JsonTransportAssistant(AssistantService):
    """Assistant backed by any request/response transport returning JSON.

    Example:
        >>> assistant = JsonTransportAssistant(lambda payload: http_post(url, payload))
        >>> intent = assistant.interpret(request)
    """

    def __init__(self, transport: Transport):
        self.transport = transport

    def interpret(self, request: AssistantRequest) -> Intent:
        try:
            raw = self.transport(request.to_payload())
        except ShiftPlannerError:
            raise
        except Exception as e:
            logger.warning("Assistant call failed: %s", e)
            raise ExternalServiceError(f"assistant call failed: {e}") from e
        return parse_intent(raw)
