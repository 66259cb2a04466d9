"""PDF generation for weekly rosters.

This module creates printable PDF rosters showing:
- One row per active employee with their shifts for each day of the week
- A row of open shifts still waiting for staff
- Absences, shows and extra hours marked the way the settings say
- A summary page with the weekly figures
"""

import logging
from collections import defaultdict
from datetime import date
from io import BytesIO
from pathlib import Path
from typing import Optional, Union

from shiftplanner.domain.models import DayOfWeek, Employee, Shift
from shiftplanner.output.summary import WeeklySummary
from shiftplanner.scheduling.week import week_dates, week_start
from shiftplanner.store.state import ScheduleState

logger = logging.getLogger(__name__)

# RGB tuples, 0-1 scale
GRID_LINE = (0.75, 0.75, 0.75)
HEADER_FILL = (0.9, 0.9, 0.92)
FALLBACK = (0.5, 0.5, 0.5)

DAY_LABELS = {
    DayOfWeek.MONDAY: "Lun",
    DayOfWeek.TUESDAY: "Mar",
    DayOfWeek.WEDNESDAY: "Mié",
    DayOfWeek.THURSDAY: "Jue",
    DayOfWeek.FRIDAY: "Vie",
    DayOfWeek.SATURDAY: "Sáb",
    DayOfWeek.SUNDAY: "Dom",
}


def hex_to_rgb(value: Optional[str]) -> tuple[float, float, float]:
    """Convert ``#rrggbb`` (or ``#rgb``) to an RGB tuple on a 0-1 scale.

    Unparseable values fall back to grey.
    """
    if not value or not value.startswith("#"):
        return FALLBACK
    digits = value[1:]
    if len(digits) == 3:
        digits = "".join(ch * 2 for ch in digits)
    if len(digits) != 6:
        return FALLBACK
    try:
        return tuple(int(digits[i : i + 2], 16) / 255.0 for i in (0, 2, 4))
    except ValueError:
        return FALLBACK


def _lighten(rgb: tuple[float, float, float], amount: float = 0.6) -> tuple[float, float, float]:
    return tuple(channel + (1.0 - channel) * amount for channel in rgb)


class RosterPDFGenerator:
    """Generates printable weekly roster PDFs.

    Example:
        >>> generator = RosterPDFGenerator()
        >>> generator.generate(store.state, date(2024, 6, 10), "roster.pdf")
    """

    def __init__(
        self,
        page_width: float = 792,  # Letter landscape width (11")
        page_height: float = 612,  # Letter landscape height (8.5")
        margin: float = 36,  # 0.5 inch margins
        name_column_width: float = 110,
    ):
        self.page_width = page_width
        self.page_height = page_height
        self.margin = margin
        self.name_column_width = name_column_width

    def generate(
        self,
        state: ScheduleState,
        start: date,
        output_path: Union[str, Path],
        include_summary: bool = True,
    ) -> None:
        """Generate the roster of a week and save it to a file.

        Args:
            state: Schedule to render.
            start: Any date in the week to render.
            output_path: Path to save the PDF.
            include_summary: Whether to include the summary page.
        """
        try:
            from reportlab.lib.pagesizes import landscape, letter
            from reportlab.pdfgen import canvas
        except ImportError:
            raise ImportError(
                "reportlab is required for PDF generation. "
                "Install with: pip install reportlab"
            )

        c = canvas.Canvas(str(output_path), pagesize=landscape(letter))
        self._draw(c, state, start, include_summary)
        c.save()
        logger.info("Wrote roster for week of %s to %s", week_start(start), output_path)

    def generate_to_buffer(
        self,
        state: ScheduleState,
        start: date,
        include_summary: bool = True,
    ) -> BytesIO:
        """Generate the roster of a week and return it as a bytes buffer."""
        try:
            from reportlab.lib.pagesizes import landscape, letter
            from reportlab.pdfgen import canvas
        except ImportError:
            raise ImportError(
                "reportlab is required for PDF generation. "
                "Install with: pip install reportlab"
            )

        buffer = BytesIO()
        c = canvas.Canvas(buffer, pagesize=landscape(letter))
        self._draw(c, state, start, include_summary)
        c.save()
        buffer.seek(0)
        return buffer

    def _draw(self, c, state: ScheduleState, start: date, include_summary: bool) -> None:
        monday = week_start(start)
        dates = week_dates(monday)
        c.setTitle(f"Roster {monday.isoformat()}")
        self._draw_roster_pages(c, state, dates)
        if include_summary:
            self._draw_summary_page(c, state, monday)

    def _draw_roster_pages(self, c, state: ScheduleState, dates: list[date]) -> None:
        """Draw the roster grid, paginating by employee rows."""
        shifts = state.shifts_on(dates)
        by_cell: dict[tuple[Optional[str], date], list[Shift]] = defaultdict(list)
        for shift in shifts:
            by_cell[(shift.employee_id, shift.date)].append(shift)
        for cell in by_cell.values():
            cell.sort(key=lambda s: s.interval.start_minutes)

        employees = sorted(state.active_employees, key=lambda e: e.name.lower())
        rows: list[tuple[str, Optional[Employee]]] = [(e.name, e) for e in employees]
        rows.append(("Turnos abiertos", None))

        line_height = 11
        header_height = 60
        footer_height = 40
        grid_top = self.page_height - self.margin - header_height
        grid_bottom = self.margin + footer_height
        day_width = (
            self.page_width - 2 * self.margin - self.name_column_width
        ) / len(dates)

        pages: list[list[tuple[str, Optional[Employee], float]]] = [[]]
        y = grid_top - 18
        for name, employee in rows:
            employee_id = employee.id if employee else None
            most = max((len(by_cell[(employee_id, d)]) for d in dates), default=0)
            height = max(1, most) * line_height + 6
            if y - height < grid_bottom and pages[-1]:
                pages.append([])
                y = grid_top - 18
            pages[-1].append((name, employee, height))
            y -= height

        for page_num, page_rows in enumerate(pages, 1):
            self._draw_header(c, state, dates)
            self._draw_day_header(c, dates, grid_top, day_width)

            y = grid_top - 18
            for name, employee, height in page_rows:
                y -= height
                self._draw_row(c, state, name, employee, dates, by_cell, y, height, day_width)

            self._draw_legend(c, state, self.margin, self.margin + 10)

            c.setFont("Helvetica", 9)
            c.setFillColorRGB(0, 0, 0)
            c.drawCentredString(
                self.page_width / 2,
                self.margin - 10,
                f"Page {page_num} of {len(pages)}",
            )
            c.showPage()

    def _draw_header(self, c, state: ScheduleState, dates: list[date]) -> None:
        c.setFillColorRGB(0, 0, 0)
        c.setFont("Helvetica-Bold", 16)
        c.drawString(
            self.margin,
            self.page_height - self.margin - 20,
            f"Weekly Roster - {dates[0].strftime('%d/%m/%Y')} to {dates[-1].strftime('%d/%m/%Y')}",
        )

        week_shifts = state.shifts_on(dates)
        open_count = sum(1 for s in week_shifts if s.is_open)
        c.setFont("Helvetica", 10)
        c.drawString(
            self.margin,
            self.page_height - self.margin - 35,
            f"Shifts: {len(week_shifts)}   Open: {open_count}",
        )

    def _draw_day_header(self, c, dates: list[date], top: float, day_width: float) -> None:
        x = self.margin + self.name_column_width
        c.setFillColorRGB(*HEADER_FILL)
        c.rect(self.margin, top - 18, self.page_width - 2 * self.margin, 18, fill=1, stroke=0)
        c.setFillColorRGB(0, 0, 0)
        c.setFont("Helvetica-Bold", 9)
        c.drawString(self.margin + 4, top - 12, "Empleado")
        for i, d in enumerate(dates):
            label = f"{DAY_LABELS[DayOfWeek.from_date(d)]} {d.day:02d}/{d.month:02d}"
            c.drawCentredString(x + i * day_width + day_width / 2, top - 12, label)

    def _draw_row(
        self,
        c,
        state: ScheduleState,
        name: str,
        employee: Optional[Employee],
        dates: list[date],
        by_cell: dict,
        y: float,
        height: float,
        day_width: float,
    ) -> None:
        """Draw one employee (or the open shifts) across the week."""
        settings = state.settings
        c.setStrokeColorRGB(*GRID_LINE)
        c.setLineWidth(0.5)
        c.line(self.margin, y, self.page_width - self.margin, y)

        c.setFillColorRGB(0, 0, 0)
        c.setFont("Helvetica-Bold" if employee is None else "Helvetica", 9)
        c.drawString(self.margin + 4, y + height - 12, name[:20])

        employee_id = employee.id if employee else None
        x0 = self.margin + self.name_column_width
        for i, d in enumerate(dates):
            x = x0 + i * day_width

            absence = employee.absence_on(d) if employee else None
            if absence is not None:
                color = hex_to_rgb(settings.absence_colors.color_for(absence.type))
                c.setFillColorRGB(*_lighten(color, 0.7))
                c.rect(x + 1, y + 1, day_width - 2, height - 2, fill=1, stroke=0)
                c.setFillColorRGB(*color)
                c.setFont("Helvetica-Oblique", 7)
                c.drawString(x + 4, y + 4, absence.type.value.replace("_", " "))

            cell_y = y + height - 3
            for shift in by_cell.get((employee_id, d), []):
                cell_y -= 11
                self._draw_shift(c, state, shift, x + 2, cell_y, day_width - 4, 10)

    def _draw_shift(
        self,
        c,
        state: ScheduleState,
        shift: Shift,
        x: float,
        y: float,
        width: float,
        height: float,
    ) -> None:
        settings = state.settings
        venue = state.venue(shift.venue_id)
        if shift.is_open:
            fill = hex_to_rgb(settings.open_shift_color)
        else:
            fill = hex_to_rgb(venue.color if venue else None)

        c.setFillColorRGB(*_lighten(fill, 0.5))
        if shift.is_show:
            c.setStrokeColorRGB(*hex_to_rgb(settings.show_border_color))
            c.setLineWidth(1.5)
        elif shift.is_extra_hours:
            c.setStrokeColorRGB(*hex_to_rgb(settings.extra_hours_border_color))
            c.setLineWidth(1.5)
        else:
            c.setStrokeColorRGB(*fill)
            c.setLineWidth(0.5)
        c.rect(x, y, width, height, fill=1, stroke=1)

        label = str(shift.interval)
        if venue is not None:
            label = f"{label} {venue.name}"
        c.setFillColorRGB(0, 0, 0)
        c.setFont("Helvetica", 6)
        c.drawString(x + 2, y + 3, label[: int(width / 3)])

    def _draw_legend(self, c, state: ScheduleState, x: float, y: float) -> None:
        settings = state.settings
        c.setFillColorRGB(0, 0, 0)
        c.setFont("Helvetica-Bold", 8)
        c.drawString(x, y, "Legend:")

        items = [(hex_to_rgb(v.color), v.name) for v in state.active_venues]
        items.append((hex_to_rgb(settings.open_shift_color), "Open"))

        c.setFont("Helvetica", 7)
        current_x = x + 45
        for color, label in items:
            c.setFillColorRGB(*color)
            c.setStrokeColorRGB(0, 0, 0)
            c.setLineWidth(0.5)
            c.rect(current_x, y - 2, 12, 10, fill=1, stroke=1)
            c.setFillColorRGB(0, 0, 0)
            c.drawString(current_x + 15, y, label[:14])
            current_x += 80

        for color, label in (
            (settings.show_border_color, "Show"),
            (settings.extra_hours_border_color, "Extra hours"),
        ):
            c.setStrokeColorRGB(*hex_to_rgb(color))
            c.setLineWidth(1.5)
            c.rect(current_x, y - 2, 12, 10, fill=0, stroke=1)
            c.setFillColorRGB(0, 0, 0)
            c.drawString(current_x + 15, y, label)
            current_x += 80

    def _draw_summary_page(self, c, state: ScheduleState, monday: date) -> None:
        """Draw summary page with the weekly figures."""
        summary = WeeklySummary.calculate(state, monday)

        c.setFillColorRGB(0, 0, 0)
        c.setFont("Helvetica-Bold", 16)
        c.drawString(
            self.margin,
            self.page_height - self.margin - 20,
            f"Weekly Summary - {monday.strftime('%d/%m/%Y')}",
        )

        y = self.page_height - self.margin - 60
        c.setFont("Helvetica-Bold", 12)
        c.drawString(self.margin, y, "Overview")
        y -= 20

        c.setFont("Helvetica", 10)
        for stat in (
            f"Total Hours: {summary.total_hours:.1f}",
            f"Open Shifts: {summary.open_shifts}",
            f"Employees Off Target: {summary.imbalanced_count}",
        ):
            c.drawString(self.margin + 20, y, stat)
            y -= 15

        y -= 20
        c.setFont("Helvetica-Bold", 12)
        c.drawString(self.margin, y, "Hours per Venue")
        y -= 10
        self._draw_venue_chart(c, summary, self.margin, y - 150, 400, 140)

        y -= 180
        c.setFont("Helvetica-Bold", 12)
        c.drawString(self.margin, y, "Absences Starting This Week")
        y -= 15
        c.setFont("Helvetica", 9)
        if not summary.upcoming_absences:
            c.drawString(self.margin + 20, y, "None")
        for upcoming in summary.upcoming_absences:
            if y < self.margin:
                break
            absence = upcoming.absence
            c.setFillColorRGB(*hex_to_rgb(state.settings.absence_colors.color_for(absence.type)))
            c.rect(self.margin + 20, y - 2, 10, 10, fill=1, stroke=0)
            c.setFillColorRGB(0, 0, 0)
            c.drawString(
                self.margin + 35,
                y,
                f"{upcoming.employee_name}: {absence.type.value} "
                f"{absence.start_date.strftime('%d/%m')} - {absence.end_date.strftime('%d/%m')}",
            )
            y -= 15

        c.showPage()

    def _draw_venue_chart(
        self,
        c,
        summary: WeeklySummary,
        x: float,
        y: float,
        width: float,
        height: float,
    ) -> None:
        """Draw a simple bar chart of hours per venue."""
        if not summary.hours_per_venue:
            return

        max_hours = max(summary.hours_per_venue.values()) or 1.0
        bar_width = width / len(summary.hours_per_venue)

        c.setStrokeColorRGB(0, 0, 0)
        c.setLineWidth(1)
        c.line(x, y, x, y + height)
        c.line(x, y, x + width, y)

        c.setFont("Helvetica", 7)
        for i, (name, hours) in enumerate(summary.venue_hours()):
            bar_height = (hours / max_hours) * height
            bar_x = x + i * bar_width
            c.setFillColorRGB(0.4, 0.6, 0.8)
            c.rect(bar_x + 2, y, bar_width - 4, bar_height, fill=1, stroke=0)
            c.setFillColorRGB(0, 0, 0)
            c.drawCentredString(bar_x + bar_width / 2, y - 12, name[:16])
            c.drawCentredString(bar_x + bar_width / 2, y + bar_height + 3, f"{hours:.1f}")

        c.drawRightString(x - 5, y, "0")
        c.drawRightString(x - 5, y + height - 5, f"{max_hours:.0f}")
