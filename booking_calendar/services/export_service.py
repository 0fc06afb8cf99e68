# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""Printable PDF calendars and ZIP bundles."""

import logging
import zipfile
from collections.abc import Mapping, Sequence
from io import BytesIO
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4, landscape
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from booking_calendar.models.comment import DayComment
from booking_calendar.models.reservation import (
    ApartmentCalendar,
    CalendarDay,
    ReservationTouch,
)
from booking_calendar.services.color_service import BASE_COLORS, color_for
from booking_calendar.services.comment_service import parse_day_booking_id
from booking_calendar.services.property_directory import (
    calendar_filename,
    display_name,
    month_name,
)

logger = logging.getLogger(__name__)

WEEKDAY_HEADERS = ["Dom", "Lun", "Mar", "Mié", "Jue", "Vie", "Sáb"]
FONT_SIZE_POINTS = {"small": 6, "medium": 7, "large": 8}
PAGE_MARGIN = 0.3 * inch
OUTSIDE_MONTH_BACKGROUND = colors.HexColor("#F3F4F6")


def zip_filename(year: int, month: int) -> str:
    """Get the archive name for a month bundle."""
    return f"Calendarios_{month_name(month)}_{year}.zip"


def _touch_style(color: str, font_size: int = 7) -> ParagraphStyle:
    return ParagraphStyle(
        f"touch-{color}",
        fontName="Helvetica",
        fontSize=font_size,
        leading=font_size + 2,
        textColor=colors.white,
        backColor=colors.HexColor(color),
        borderPadding=1,
        spaceAfter=2,
        wordWrap="CJK",
    )


def _nights_label(nights: int) -> str:
    return "1 noche" if nights == 1 else f"{nights} noches"


def _touch_paragraphs(
    touch: ReservationTouch, comment: DayComment | None
) -> list[Paragraph]:
    """Render one reservation touch, with its booking comment on checkin."""
    reservation = touch.reservation
    color = color_for(reservation.source, reservation.id)
    name = escape(reservation.guest_name or reservation.id)

    if touch.is_checkin:
        text = (
            f"<b>Entrada: {name}</b><br/>"
            f"{_nights_label(reservation.nights)} - {escape(reservation.display_source)}"
        )
    elif touch.is_checkout:
        text = f"<b>Salida</b><br/>{name}"
    else:
        text = name

    paragraphs = [Paragraph(text, _touch_style(color))]
    if touch.is_checkin and comment is not None:
        size = FONT_SIZE_POINTS.get(comment.font_size, 7)
        note_style = ParagraphStyle(
            "booking-note",
            fontName="Helvetica-Oblique",
            fontSize=size,
            leading=size + 2,
            wordWrap="CJK",
        )
        paragraphs.append(Paragraph(escape(comment.text), note_style))
    return paragraphs


def _day_cell(
    day: CalendarDay,
    booking_comments: Mapping[str, DayComment],
    noted_days: frozenset,
) -> list:
    """Build the flowables shown in one grid cell."""
    number_style = ParagraphStyle(
        "day-number",
        fontName="Helvetica-Bold",
        fontSize=9,
        leading=11,
        textColor=colors.black if day.is_current_month else colors.grey,
    )
    marker = " *" if day.date in noted_days else ""
    cell: list = [Paragraph(f"{day.date.day}{marker}", number_style)]

    ordered = (
        [t for t in day.reservations if t.is_checkin]
        + [t for t in day.reservations if t.is_checkout]
        + [t for t in day.reservations if t.is_stay]
    )
    for touch in ordered:
        comment = booking_comments.get(touch.reservation.id)
        cell.extend(_touch_paragraphs(touch, comment))
    return cell


def _grid_table(
    calendar: ApartmentCalendar,
    booking_comments: Mapping[str, DayComment],
    noted_days: frozenset,
    width: float,
) -> Table:
    data: list[list] = [WEEKDAY_HEADERS]
    for week in calendar.weeks:
        data.append([_day_cell(d, booking_comments, noted_days) for d in week.days])

    col_width = width / len(WEEKDAY_HEADERS)
    table = Table(data, colWidths=[col_width] * len(WEEKDAY_HEADERS), repeatRows=1)
    style = [
        ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
        ("FONTSIZE", (0, 0), (-1, 0), 9),
        ("ALIGN", (0, 0), (-1, 0), "CENTER"),
        ("BACKGROUND", (0, 0), (-1, 0), colors.lightgrey),
        ("GRID", (0, 0), (-1, -1), 0.5, colors.grey),
        ("VALIGN", (0, 1), (-1, -1), "TOP"),
        ("LEFTPADDING", (0, 0), (-1, -1), 2),
        ("RIGHTPADDING", (0, 0), (-1, -1), 2),
        ("TOPPADDING", (0, 0), (-1, -1), 2),
        ("BOTTOMPADDING", (0, 0), (-1, -1), 2),
    ]
    for row, week in enumerate(calendar.weeks, start=1):
        for col, day in enumerate(week.days):
            if not day.is_current_month:
                style.append(
                    ("BACKGROUND", (col, row), (col, row), OUTSIDE_MONTH_BACKGROUND)
                )
    table.setStyle(TableStyle(style))
    return table


def _legend_table() -> Table:
    swatch_row = []
    style = [
        ("FONTNAME", (0, 0), (-1, -1), "Helvetica"),
        ("FONTSIZE", (0, 0), (-1, -1), 8),
        ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
    ]
    for index, (source, color) in enumerate(BASE_COLORS.items()):
        swatch_row.extend(["", source])
        style.append(
            ("BACKGROUND", (index * 2, 0), (index * 2, 0), colors.HexColor(color))
        )
    widths = []
    for _ in BASE_COLORS:
        widths.extend([0.2 * inch, 1.1 * inch])
    table = Table([swatch_row], colWidths=widths, hAlign="LEFT")
    table.setStyle(TableStyle(style))
    return table


def render_calendar_pdf(
    calendar: ApartmentCalendar,
    comments: Sequence[DayComment] = (),
) -> bytes:
    """Render one apartment's month as an A4 landscape PDF.

    Args:
        calendar: Built month grid.
        comments: Booking comments (shown on the checkin cell) and day
            comments (listed under month notes and starred in the grid).

    Returns:
        PDF document bytes.
    """
    booking_comments = {c.booking_id: c for c in comments if not c.is_day_comment}
    day_notes = []
    for comment in comments:
        day = parse_day_booking_id(comment.booking_id)
        if day is not None:
            day_notes.append((day, comment))
    day_notes.sort(key=lambda item: item[0])
    noted_days = frozenset(day for day, _ in day_notes)

    buffer = BytesIO()
    pagesize = landscape(A4)
    doc = SimpleDocTemplate(
        buffer,
        pagesize=pagesize,
        topMargin=PAGE_MARGIN,
        bottomMargin=PAGE_MARGIN,
        leftMargin=PAGE_MARGIN,
        rightMargin=PAGE_MARGIN,
        title=f"{display_name(calendar.apartment_name)} {month_name(calendar.month)} {calendar.year}",
    )

    styles = getSampleStyleSheet()
    title_style = ParagraphStyle(
        "CalendarTitle",
        parent=styles["Heading1"],
        fontSize=16,
        spaceAfter=6,
        alignment=1,
    )
    section_style = ParagraphStyle(
        "SectionHeader",
        parent=styles["Heading2"],
        fontSize=11,
        spaceBefore=6,
        spaceAfter=4,
    )

    story: list = [
        Paragraph(
            escape(
                f"{display_name(calendar.apartment_name)} - "
                f"{month_name(calendar.month)} {calendar.year}"
            ),
            title_style,
        ),
        Paragraph(
            f"Reservas del mes: {calendar.total_bookings}", styles["Normal"]
        ),
        Spacer(1, 6),
        _grid_table(
            calendar, booking_comments, noted_days, pagesize[0] - 2 * PAGE_MARGIN
        ),
        Spacer(1, 6),
        _legend_table(),
    ]

    if day_notes:
        story.append(Paragraph("Notas del mes", section_style))
        for day, comment in day_notes:
            size = FONT_SIZE_POINTS.get(comment.font_size, 7) + 1
            note_style = ParagraphStyle(
                "month-note", parent=styles["Normal"], fontSize=size, leading=size + 2
            )
            story.append(
                Paragraph(
                    f"<b>{day.strftime('%d/%m')}</b>: {escape(comment.text)}",
                    note_style,
                )
            )

    doc.build(story)
    logger.debug(
        "Rendered PDF for %s %d-%02d",
        calendar.apartment_name,
        calendar.year,
        calendar.month,
    )
    return buffer.getvalue()


def build_zip(
    calendars: Sequence[ApartmentCalendar],
    year: int,
    month: int,
    comments: Mapping[str, Sequence[DayComment]] | None = None,
) -> tuple[str, bytes]:
    """Bundle one PDF per apartment into a ZIP archive.

    Args:
        calendars: Month grids to render.
        year: Calendar year, used for the archive name.
        month: Month, 1-based, used for the archive name.
        comments: Comments per apartment name.

    Returns:
        Tuple of (archive filename, archive bytes).
    """
    comments = comments or {}
    buffer = BytesIO()
    with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as archive:
        for calendar in calendars:
            pdf = render_calendar_pdf(
                calendar, comments.get(calendar.apartment_name, ())
            )
            archive.writestr(
                calendar_filename(calendar.apartment_name, month, year), pdf
            )
    logger.info("Built ZIP with %d calendars for %d-%02d", len(calendars), year, month)
    return zip_filename(year, month), buffer.getvalue()
