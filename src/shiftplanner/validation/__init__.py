"""Validation of availability and shift assignments."""

from shiftplanner.validation.availability import AvailabilityModel
from shiftplanner.validation.conflicts import (
    ConflictDetector,
    ConflictResult,
    ConflictRule,
)

__all__ = [
    "AvailabilityModel",
    "ConflictDetector",
    "ConflictResult",
    "ConflictRule",
]
