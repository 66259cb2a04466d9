"""Output generation for schedules (summary reports, PDF rosters)."""

from shiftplanner.output.pdf_generator import RosterPDFGenerator
from shiftplanner.output.summary import SummaryReport, UpcomingAbsence, WeeklySummary

__all__ = [
    "RosterPDFGenerator",
    "SummaryReport",
    "UpcomingAbsence",
    "WeeklySummary",
]
