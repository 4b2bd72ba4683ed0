from __future__ import annotations

from datetime import UTC, date, datetime
from decimal import Decimal

import pytest
from homeaudit.domain.errors import PreconditionError
from homeaudit.domain.services.report_compositor import (
    ReportCompositor,
    ReportDocument,
    ReportLineItem,
    compute_aggregates,
    format_currency,
    format_long_date,
    truncate_label,
)


def make_document(item_count: int = 3, **overrides) -> ReportDocument:
    values = [Decimal("100.00"), Decimal("200.00"), Decimal("300.50")]
    items = [
        ReportLineItem(
            description=f"Documented item number {index}",
            category="Electronics",
            estimated_value=values[index % 3],
            serial_number=f"SN-{index}" if index % 2 else None,
            has_receipt=index % 2 == 0,
            has_photo=index == 0,
        )
        for index in range(item_count)
    ]
    fields = {
        "report_number": "RPT-2026-123456",
        "generated_at": datetime(2026, 10, 20, 15, 30, tzinfo=UTC),
        "appointment_id": "appt-1",
        "appointment_date": date(2026, 10, 20),
        "appointment_time": "2:00 PM",
        "customer_name": "Jane Doe",
        "customer_email": "jane@example.com",
        "customer_address": "12 Elm Street",
        "customer_id": None,
        "officer_name": "Olga Officer",
        "officer_id": "officer-1",
        "items": items,
    }
    fields.update(overrides)
    return ReportDocument(**fields)


def test_truncate_label() -> None:
    assert truncate_label("Short name") == "Short name"
    assert truncate_label("A" * 20) == "A" * 20
    assert truncate_label("Samsung 65 inch QLED television") == "Samsung 65 inch QLED..."


def test_formatting_helpers() -> None:
    assert format_currency(Decimal("600.5")) == "$600.50"
    assert format_long_date(date(2026, 10, 20)) == "Tuesday, October 20, 2026"


def test_aggregates() -> None:
    aggregates = compute_aggregates(make_document().items)

    assert aggregates.total_items == 3
    assert aggregates.total_value == Decimal("600.50")
    assert aggregates.items_with_receipt == 2
    assert aggregates.items_with_photo == 1


def test_render_produces_pdf_with_report_content() -> None:
    pdf = ReportCompositor(compress=False).render(make_document())

    assert pdf.startswith(b"%PDF")
    assert b"RPT-2026-123456" in pdf
    assert b"Total Items Documented: 3" in pdf
    assert b"$600.50" in pdf
    assert b"Guest booking" in pdf
    assert b"Page 1 of 1" in pdf


def test_render_is_deterministic() -> None:
    document = make_document()

    assert ReportCompositor().render(document) == ReportCompositor().render(document)


def test_long_item_list_paginates_with_repeated_header() -> None:
    pdf = ReportCompositor(compress=False).render(make_document(item_count=60))

    assert b"Page 1 of 3" in pdf or b"Page 1 of 2" in pdf
    assert pdf.count(b"(Item Name)") >= 2


def test_render_requires_items() -> None:
    with pytest.raises(PreconditionError):
        ReportCompositor().render(make_document(item_count=0))
