"""Command-line interface for the shiftplanner scheduling core."""

import argparse
import logging
import sys
from datetime import date
from typing import Optional

from shiftplanner.errors import ShiftPlannerError
from shiftplanner.output.pdf_generator import RosterPDFGenerator
from shiftplanner.output.summary import SummaryReport, WeeklySummary
from shiftplanner.store.persistence import load_state_file, save_state
from shiftplanner.store.sample_data import create_sample_state
from shiftplanner.store.store import ScheduleStore

logger = logging.getLogger(__name__)


def parse_week(value: str) -> date:
    """Parse a ``YYYY-MM-DD`` week argument."""
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid date (expected YYYY-MM-DD): {value}")


def print_summary(store: ScheduleStore) -> None:
    summary = WeeklySummary.calculate(store.state, store.active_week)
    print(f"\n{'=' * 60}")
    print(f"Week of {summary.week_start.isoformat()}")
    print(f"{'=' * 60}")
    print(f"  Employees: {len(store.state.active_employees)} active")
    print(f"  Venues: {len(store.state.active_venues)} active")
    print(f"  Total Hours: {summary.total_hours:.1f}")
    print(f"  Open Shifts: {summary.open_shifts}")
    print(f"  Employees Off Target: {summary.imbalanced_count}")

    print("\nHours per Venue:")
    for name, hours in summary.venue_hours():
        print(f"  {name}: {hours:.1f}")

    if summary.upcoming_absences:
        print("\nAbsences Starting This Week:")
        for upcoming in summary.upcoming_absences:
            absence = upcoming.absence
            print(f"  {upcoming.employee_name}: {absence.type.value} "
                  f"{absence.start_date} to {absence.end_date}")


def run_demo(
    week: Optional[date] = None,
    output_path: Optional[str] = None,
    save_path: Optional[str] = None,
) -> None:
    """Seed example data, reconcile the week and report on it."""
    week = week or date.today()
    print("Creating example venues, employees and events...")
    store = ScheduleStore(state=create_sample_state(week), active_week=week)
    print_summary(store)

    if save_path:
        save_state(store.state, save_path)
        print(f"\nState saved to {save_path}")

    if output_path:
        print(f"\nGenerating PDF: {output_path}")
        RosterPDFGenerator().generate(store.state, store.active_week, output_path)
        print("  PDF created successfully!")


def open_store(state_path: str, week: Optional[date]) -> ScheduleStore:
    return ScheduleStore(state=load_state_file(state_path), active_week=week or date.today())


def run_reconcile(state_path: str, week: Optional[date], output_path: Optional[str]) -> None:
    """Bring a state file's open shifts in line with staffing rules and events."""
    state = load_state_file(state_path)
    before = len(state.shifts)
    store = ScheduleStore(state=state, active_week=week or date.today())
    after = len(store.state.shifts)
    target = output_path or state_path
    save_state(store.state, target)
    print(f"Reconciled week of {store.active_week}: {before} -> {after} shifts")
    print(f"State written to {target}")


def run_summary(state_path: str, week: Optional[date], output_path: Optional[str]) -> None:
    store = open_store(state_path, week)
    report = SummaryReport()
    if output_path:
        report.generate(store.state, store.active_week, output_path)
        print(f"Summary written to {output_path}")
    else:
        print(report.generate_to_string(store.state, store.active_week))


def run_export_pdf(
    state_path: str,
    output_path: str,
    week: Optional[date],
    include_summary: bool,
) -> None:
    store = open_store(state_path, week)
    RosterPDFGenerator().generate(
        store.state, store.active_week, output_path, include_summary=include_summary
    )
    print(f"Roster written to {output_path}")


def run_publish(state_path: str, week: Optional[date]) -> None:
    """Record a published snapshot of a week in the state file."""
    store = open_store(state_path, week)
    published = store.publish_week()
    save_state(store.state, state_path)
    print(f"Published week {published.week_id} with {len(published.shifts)} shifts")


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point for CLI."""
    parser = argparse.ArgumentParser(
        description="shiftplanner - Multi-venue Staff Scheduling",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s demo                               Reconcile example data for this week
  %(prog)s demo --week 2024-06-10 -o w.pdf    Render the example week as a PDF
  %(prog)s demo --save state.json             Save the example state

  %(prog)s reconcile state.json               Regenerate open shifts in place
  %(prog)s summary state.json --week 2024-06-10
  %(prog)s export-pdf state.json roster.pdf
  %(prog)s publish state.json
        """,
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    week_help = "Any date in the week to work on, YYYY-MM-DD (default: today)"

    demo_parser = subparsers.add_parser("demo", help="Run on example data")
    demo_parser.add_argument("--week", "-w", type=parse_week, help=week_help)
    demo_parser.add_argument("--output", "-o", type=str, help="Output PDF file path")
    demo_parser.add_argument("--save", "-s", type=str, help="Save the state as JSON")

    reconcile_parser = subparsers.add_parser(
        "reconcile",
        help="Reconcile open shifts of a state file",
    )
    reconcile_parser.add_argument("state", help="State JSON file")
    reconcile_parser.add_argument("--week", "-w", type=parse_week, help=week_help)
    reconcile_parser.add_argument(
        "--output", "-o",
        type=str,
        help="Write the result here instead of overwriting the state file",
    )

    summary_parser = subparsers.add_parser("summary", help="Print a weekly summary")
    summary_parser.add_argument("state", help="State JSON file")
    summary_parser.add_argument("--week", "-w", type=parse_week, help=week_help)
    summary_parser.add_argument("--output", "-o", type=str, help="Output text file path")

    pdf_parser = subparsers.add_parser("export-pdf", help="Render a weekly roster PDF")
    pdf_parser.add_argument("state", help="State JSON file")
    pdf_parser.add_argument("output", help="Output PDF file path")
    pdf_parser.add_argument("--week", "-w", type=parse_week, help=week_help)
    pdf_parser.add_argument(
        "--no-summary",
        action="store_true",
        help="Leave out the summary page",
    )

    publish_parser = subparsers.add_parser("publish", help="Publish a week")
    publish_parser.add_argument("state", help="State JSON file")
    publish_parser.add_argument("--week", "-w", type=parse_week, help=week_help)

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        if args.command == "demo":
            run_demo(args.week, args.output, args.save)
        elif args.command == "reconcile":
            run_reconcile(args.state, args.week, args.output)
        elif args.command == "summary":
            run_summary(args.state, args.week, args.output)
        elif args.command == "export-pdf":
            run_export_pdf(args.state, args.output, args.week, not args.no_summary)
        elif args.command == "publish":
            run_publish(args.state, args.week)
        else:
            parser.print_help()
            return 1
    except (ShiftPlannerError, OSError) as e:
        logger.debug("Command %s failed", args.command, exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
