"""Rendering tests: the files open and carry the composed content."""

import uuid
from datetime import date
from decimal import Decimal
from io import BytesIO
from types import SimpleNamespace

from openpyxl import load_workbook

from dojo.api.v1.fees.ledger import resolve_period
from dojo.api.v1.reports.composer import build_fee_export, build_invoice
from dojo.api.v1.reports.renderers import render_invoice_pdf, render_tabular_xlsx
from dojo.api.v1.reports.schemas import FeeExportFilters


def _student():
    return SimpleNamespace(
        id=uuid.uuid4(),
        name="Asha <Rao> & Co",
        registration_number="MTA-001",
        guardian_name="Ravi Rao",
        phone_number="9876543210",
        address=None,
        fee_structure="four_classes",
        instructor_name=None,
    )


def _fee(student, month, status="unpaid", partial="0"):
    return SimpleNamespace(
        id=uuid.uuid4(),
        student_id=student.id,
        month=month,
        year=2024,
        amount=Decimal("1000"),
        status=status,
        partial_amount_paid=Decimal(partial),
        paid_date=date(2024, month, 3) if status == "paid" else None,
        notes=None,
    )


def test_fee_export_workbook() -> None:
    student = _student()
    document = build_fee_export(
        [_fee(student, 4, status="partial", partial="400")],
        {student.id: student},
        FeeExportFilters(month=4, year=2024),
    )
    content = render_tabular_xlsx(document)

    ws = load_workbook(BytesIO(content)).active
    assert ws.title == "Fee Records"
    assert [c.value for c in ws[1]] == document.columns
    assert ws["A2"].value == "Asha <Rao> & Co"
    assert ws["E2"].value == 1000
    assert ws["F2"].value == 400
    assert ws["G2"].value == 600
    assert {ws[ref].data_type for ref in ("E2", "F2", "G2")} == {"n"}
    assert ws.column_dimensions["A"].width == 25


def test_invoice_pdf() -> None:
    student = _student()
    views = [resolve_period(student, m, 2024, _fee(student, m, status="paid")) for m in (1, 2)]
    pdf = render_invoice_pdf(build_invoice(student, views, issued_on=date(2024, 3, 1)))
    assert pdf.startswith(b"%PDF")
    assert len(pdf) > 1000


def test_invoice_pdf_with_unreadable_logo(tmp_path, caplog) -> None:
    """A broken logo is skipped with a warning; the invoice is still produced."""
    logo = tmp_path / "logo.png"
    logo.write_bytes(b"not an image")
    student = _student()
    views = [resolve_period(student, 1, 2024, _fee(student, 1))]

    pdf = render_invoice_pdf(build_invoice(student, views), logo_path=str(logo))
    assert pdf.startswith(b"%PDF")
    assert "could not be loaded" in caplog.text


def test_invoice_pdf_with_missing_logo() -> None:
    student = _student()
    views = [resolve_period(student, 1, 2024, _fee(student, 1))]
    pdf = render_invoice_pdf(build_invoice(student, views), logo_path="/nonexistent/logo.png")
    assert pdf.startswith(b"%PDF")


def test_fee_export_keeps_paise() -> None:
    student = _student()
    document = build_fee_export(
        [_fee(student, 4, status="partial", partial="333.33")],
        {student.id: student},
        FeeExportFilters(month=4, year=2024),
    )
    ws = load_workbook(BytesIO(render_tabular_xlsx(document))).active
    assert Decimal(str(ws["F2"].value)) == Decimal("333.33")
    assert Decimal(str(ws["G2"].value)) == Decimal("666.67")
