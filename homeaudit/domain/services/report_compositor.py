"""
PDF report compositor.

Lays out the audit report on US Letter pages with the reportlab canvas API.
Positions are absolute points from the bottom-left corner; ``self.y`` is the
running cursor, moved down as blocks are drawn.
"""

from __future__ import annotations

import io
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal

from homeaudit.domain.errors import PreconditionError
from homeaudit.domain.reference_data import OFFICER_CREDENTIAL_LABEL
from reportlab.lib.colors import Color
from reportlab.lib.pagesizes import letter
from reportlab.pdfgen import canvas

PAGE_WIDTH, PAGE_HEIGHT = letter  # 612 x 792
MARGIN = 50
CONTENT_WIDTH = PAGE_WIDTH - 2 * MARGIN
CONTINUATION_TOP = 750
PAGE_BREAK_Y = 100
FOOTER_TOP = 95

BRAND_BLUE = Color(0.12, 0.23, 0.54)
TEXT_BLACK = Color(0, 0, 0)
MUTED_GRAY = Color(0.5, 0.5, 0.5)
BOX_FILL = Color(0.98, 0.98, 0.98)
BOX_STROKE = Color(0.8, 0.8, 0.8)
HEADER_FILL = Color(0.9, 0.9, 0.9)
ROW_SHADE = Color(0.98, 0.98, 0.98)

TABLE_COLUMNS: tuple[tuple[str, int], ...] = (
    ("Item Name", 150),
    ("Category", 100),
    ("Value", 80),
    ("Receipt", 60),
    ("Serial #", 120),
)
TABLE_HEADER_HEIGHT = 20
TABLE_ROW_HEIGHT = 18
ITEM_NAME_LIMIT = 20

LINE_SPACING = 15


def truncate_label(text: str, limit: int = ITEM_NAME_LIMIT) -> str:
    return text if len(text) <= limit else f"{text[:limit]}..."


def format_currency(value: Decimal) -> str:
    return f"${value.quantize(Decimal('0.01'))}"


def format_long_date(value: date) -> str:
    return f"{value:%A, %B} {value.day}, {value.year}"


@dataclass(slots=True)
class ReportLineItem:
    description: str
    category: str
    estimated_value: Decimal
    serial_number: str | None = None
    has_receipt: bool = False
    has_photo: bool = False


@dataclass(slots=True)
class ReportAggregates:
    total_items: int
    total_value: Decimal
    items_with_receipt: int
    items_with_photo: int


@dataclass(slots=True)
class ReportBranding:
    company_name: str = "SecureHome Audit"
    tagline: str = "Professional Home Security Documentation Report"
    support_email: str = "support@securehomeaudit.com"
    support_phone: str = "(555) 123-SECURE"


@dataclass(slots=True)
class ReportDocument:
    """Everything the compositor needs, already read from storage."""

    report_number: str
    generated_at: datetime
    appointment_id: str
    appointment_date: date
    appointment_time: str
    customer_name: str
    customer_email: str
    customer_address: str
    customer_id: str | None
    officer_name: str
    officer_id: str
    items: list[ReportLineItem]
    branding: ReportBranding = field(default_factory=ReportBranding)


def compute_aggregates(items: Sequence[ReportLineItem]) -> ReportAggregates:
    return ReportAggregates(
        total_items=len(items),
        total_value=sum((item.estimated_value for item in items), Decimal("0.00")),
        items_with_receipt=sum(1 for item in items if item.has_receipt),
        items_with_photo=sum(1 for item in items if item.has_photo),
    )


class _NumberedCanvas(canvas.Canvas):
    """Canvas that stamps "Page n of N" once the total page count is known."""

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._saved_page_states: list[dict] = []

    def showPage(self) -> None:
        self._saved_page_states.append(dict(self.__dict__))
        self._startPage()

    def save(self) -> None:
        total = len(self._saved_page_states)
        for state in self._saved_page_states:
            self.__dict__.update(state)
            self._draw_page_number(total)
            super().showPage()
        super().save()

    def _draw_page_number(self, total: int) -> None:
        self.saveState()
        self.setFont("Helvetica", 8)
        self.setFillColor(MUTED_GRAY)
        self.drawRightString(
            PAGE_WIDTH - MARGIN, 30, f"Page {self._pageNumber} of {total}"
        )
        self.restoreState()


class ReportCompositor:
    """Renders a ``ReportDocument`` to PDF bytes.

    Output is byte-for-byte reproducible for the same document
    (reportlab's ``invariant`` mode); pass ``compress=False`` to keep page
    streams readable.
    """

    def __init__(self, *, compress: bool = True) -> None:
        self.compress = compress
        self.c: _NumberedCanvas | None = None
        self.y = 0.0

    def render(self, document: ReportDocument) -> bytes:
        if not document.items:
            raise PreconditionError("Cannot generate a report without documented items")

        buffer = io.BytesIO()
        self.c = _NumberedCanvas(
            buffer,
            pagesize=letter,
            invariant=1,
            pageCompression=1 if self.compress else 0,
        )
        self.c.setTitle(f"{document.branding.company_name} Report {document.report_number}")
        self.c.setAuthor(document.branding.company_name)
        self.c.setSubject(f"Appointment {document.appointment_id}")
        self.y = PAGE_HEIGHT - MARGIN

        aggregates = compute_aggregates(document.items)

        self._draw_header(document)
        self._draw_info_box(document)
        self._draw_section(
            "Customer Information",
            [
                f"Name: {document.customer_name}",
                f"Email: {document.customer_email}",
                f"Address: {document.customer_address}",
                f"Customer ID: {document.customer_id or 'Guest booking'}",
            ],
        )
        self._draw_section(
            "Officer Information",
            [
                f"Name: {document.officer_name}",
                f"Officer ID: {document.officer_id}",
                f"Credentials: {OFFICER_CREDENTIAL_LABEL}",
                f"Audit Date: {format_long_date(document.generated_at.date())}",
            ],
        )
        self._draw_section(
            "Audit Summary",
            [
                f"Total Items Documented: {aggregates.total_items}",
                f"Total Estimated Value: {format_currency(aggregates.total_value)}",
                f"Items with Receipts: {aggregates.items_with_receipt}",
                f"Items with Photos: {aggregates.items_with_photo}",
            ],
        )
        self._draw_item_table(document.items)
        self._draw_footer(document)

        self.c.showPage()
        self.c.save()
        self.c = None
        return buffer.getvalue()

    # ─── drawing primitives ───

    def _text(
        self,
        text: str,
        x: float,
        y: float,
        *,
        font: str = "Helvetica",
        size: float = 10,
        color: Color = TEXT_BLACK,
    ) -> None:
        self.c.saveState()
        self.c.setFont(font, size)
        self.c.setFillColor(color)
        self.c.drawString(x, y, text)
        self.c.restoreState()

    def _rect(
        self,
        x: float,
        y: float,
        w: float,
        h: float,
        *,
        fill: Color,
        stroke: Color | None = None,
    ) -> None:
        self.c.saveState()
        self.c.setFillColor(fill)
        if stroke is not None:
            self.c.setStrokeColor(stroke)
        self.c.rect(x, y, w, h, fill=1, stroke=1 if stroke is not None else 0)
        self.c.restoreState()

    def _new_page(self) -> None:
        self.c.showPage()
        self.y = CONTINUATION_TOP

    def _ensure_space(self, needed: float) -> None:
        if self.y - needed < PAGE_BREAK_Y:
            self._new_page()

    # ─── blocks ───

    def _draw_header(self, document: ReportDocument) -> None:
        branding = document.branding
        self._text(
            branding.company_name, MARGIN, self.y, font="Helvetica-Bold", size=24, color=BRAND_BLUE
        )
        self.y -= 30
        self._text(branding.tagline, MARGIN, self.y, size=14)
        self.y -= 40

    def _draw_info_box(self, document: ReportDocument) -> None:
        box_height = 80
        self._rect(
            MARGIN, self.y - box_height, CONTENT_WIDTH, box_height, fill=BOX_FILL, stroke=BOX_STROKE
        )
        self._text(
            f"Report Number: {document.report_number}",
            MARGIN + 10,
            self.y - 20,
            font="Helvetica-Bold",
            size=12,
        )
        self._text(
            f"Generated: {document.generated_at:%Y-%m-%d %H:%M} UTC", MARGIN + 10, self.y - 40
        )
        self._text(
            f"Appointment Date: {format_long_date(document.appointment_date)} "
            f"at {document.appointment_time}",
            MARGIN + 10,
            self.y - 60,
        )
        self.y -= box_height + 20

    def _draw_section(self, title: str, lines: list[str]) -> None:
        self._ensure_space(20 + LINE_SPACING * len(lines))
        self._text(title, MARGIN, self.y, font="Helvetica-Bold", size=14)
        self.y -= 20
        for line in lines:
            self._text(line, MARGIN, self.y)
            self.y -= LINE_SPACING
        self.y -= 10

    def _draw_table_header(self) -> None:
        self._rect(
            MARGIN, self.y - TABLE_HEADER_HEIGHT + 5, CONTENT_WIDTH, TABLE_HEADER_HEIGHT,
            fill=HEADER_FILL,
        )
        x = MARGIN + 5
        for label, width in TABLE_COLUMNS:
            self._text(label, x, self.y - 10, font="Helvetica-Bold", size=9)
            x += width
        self.y -= TABLE_HEADER_HEIGHT + 5

    def _draw_item_table(self, items: list[ReportLineItem]) -> None:
        self._ensure_space(25 + TABLE_HEADER_HEIGHT + TABLE_ROW_HEIGHT)
        self._text("Documented Items", MARGIN, self.y, font="Helvetica-Bold", size=14)
        self.y -= 25
        self._draw_table_header()

        for index, item in enumerate(items):
            if self.y < PAGE_BREAK_Y:
                self._new_page()
                self._draw_table_header()

            if index % 2 == 0:
                self._rect(
                    MARGIN, self.y - 5, CONTENT_WIDTH, TABLE_ROW_HEIGHT - 3, fill=ROW_SHADE
                )
            cells = (
                truncate_label(item.description),
                item.category,
                format_currency(item.estimated_value),
                "Yes" if item.has_receipt else "No",
                item.serial_number or "N/A",
            )
            x = MARGIN + 5
            for value, (_, width) in zip(cells, TABLE_COLUMNS, strict=True):
                self._text(value, x, self.y, size=8)
                x += width
            self.y -= TABLE_ROW_HEIGHT

    def _draw_footer(self, document: ReportDocument) -> None:
        if self.y - 10 < FOOTER_TOP:
            self._new_page()

        branding = document.branding
        lines = (
            (80, f"This report was generated by {branding.company_name} professional services."),
            (
                65,
                "For insurance claims and verification: "
                f"{branding.support_email} | {branding.support_phone}",
            ),
            (
                50,
                f"Report ID: {document.report_number} | "
                f"Generated: {document.generated_at.isoformat()}",
            ),
        )
        for y, text in lines:
            self._text(text, MARGIN, y, size=8, color=MUTED_GRAY)
