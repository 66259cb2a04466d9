"""Structured intents returned by the natural-language assistant."""

import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Union

from shiftplanner.errors import ExternalServiceError

logger = logging.getLogger(__name__)


class AssistantAction(Enum):
    """Closed vocabulary of assistant actions."""

    QUERY = "query"
    CREATE_SHIFT = "create_shift"
    UPDATE_SHIFT = "update_shift"
    DELETE_SHIFTS = "delete_shifts"
    UNASSIGN_SHIFTS = "unassign_shifts"
    REPLACE_SHIFTS_FOR_EMPLOYEE = "replace_shifts_for_employee"
    UPDATE_EMPLOYEE_CONFIG = "update_employee_config"
    UPDATE_VENUE_CONFIG = "update_venue_config"
    CREATE_EVENT = "create_event"
    UPDATE_EVENT = "update_event"
    DELETE_EVENT = "delete_event"
    CANNOT_PERFORM = "cannot_perform"

    @property
    def is_read_only(self) -> bool:
        return self in (AssistantAction.QUERY, AssistantAction.CANNOT_PERFORM)


@dataclass(frozen=True)
class Intent:
    """One assistant action with its raw payload.

    Attributes:
        action: What to do.
        payload: Action-specific data as returned by the service (text for
            read-only actions, a dict or list of dicts otherwise).
    """

    action: AssistantAction
    payload: Any = field(default=None)


def parse_intent(raw: Union[str, bytes, dict]) -> Intent:
    """Turn raw service output into an Intent.

    Args:
        raw: JSON text or an already-decoded object with ``action`` and
            ``payload`` keys.

    Raises:
        ExternalServiceError: If the output is not valid JSON, has no
            action, or names an action outside the vocabulary.
    """
    if isinstance(raw, (str, bytes)):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.warning("Assistant returned invalid JSON: %s", e)
            raise ExternalServiceError("assistant returned invalid JSON") from e

    if not isinstance(raw, dict) or "action" not in raw:
        logger.warning("Assistant output has no action: %r", raw)
        raise ExternalServiceError("assistant output has no action")

    try:
        action = AssistantAction(raw["action"])
    except ValueError as e:
        logger.warning("Assistant returned unknown action %r", raw["action"])
        raise ExternalServiceError(f"unknown assistant action {raw['action']!r}") from e

    return Intent(action=action, payload=raw.get("payload"))
