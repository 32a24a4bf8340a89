"""Unit tests for invoice and export composition."""

import uuid
from datetime import date
from decimal import Decimal
from types import SimpleNamespace

import pytest

from dojo.api.v1.fees.ledger import resolve_period
from dojo.api.v1.reports.composer import (
    ATTENDANCE_COLUMNS,
    FEE_COLUMNS,
    build_attendance_export,
    build_fee_export,
    build_invoice,
)
from dojo.api.v1.reports.schemas import AttendanceExportFilters, FeeExportFilters
from dojo.core.enums import FeeStatus
from dojo.core.exceptions import ValidationError


def _student(name="Asha Rao", registration_number="MTA-001", fee_structure="two_classes"):
    return SimpleNamespace(
        id=uuid.uuid4(),
        name=name,
        registration_number=registration_number,
        guardian_name="Ravi Rao",
        phone_number="9876543210",
        address="12 MG Road",
        fee_structure=fee_structure,
        instructor_name=None,
    )


def _fee(student, month, year, status="unpaid", partial="0", paid_date=None, notes=None):
    return SimpleNamespace(
        id=uuid.uuid4(),
        student_id=student.id,
        month=month,
        year=year,
        amount=Decimal("700"),
        status=status,
        partial_amount_paid=Decimal(partial),
        paid_date=paid_date,
        notes=notes,
    )


def _views(student, *fees):
    return [resolve_period(student, f.month, f.year, f) for f in fees]


def test_single_month_invoice() -> None:
    student = _student()
    views = _views(student, _fee(student, 1, 2024, status="partial", partial="300"))
    doc = build_invoice(student, views, issued_on=date(2024, 2, 1))

    assert doc.invoice_number == "INV-202401-MTA-001"
    assert doc.filename == "Invoice_Asha_Rao_January_2024.pdf"
    assert doc.period_label == "January 2024"
    assert doc.status == FeeStatus.partial
    assert doc.totals.total_balance == Decimal("400")
    assert doc.lines[0].description == "Monthly Training Fee - January 2024"
    assert doc.lines[0].fee_structure == "2 classes per week"
    assert doc.bill_to.guardian_name == "Ravi Rao"


def test_multi_month_invoice_is_sorted_and_deterministic() -> None:
    student = _student()
    fees = [
        _fee(student, 3, 2024),
        _fee(student, 1, 2024, status="paid", paid_date=date(2024, 1, 10)),
        _fee(student, 2, 2024, status="partial", partial="200"),
    ]
    doc = build_invoice(student, _views(student, *fees), issued_on=date(2024, 4, 1))
    again = build_invoice(student, _views(student, *reversed(fees)), issued_on=date(2024, 4, 1))

    assert [line.month for line in doc.lines] == [1, 2, 3]
    assert doc == again
    assert doc.invoice_number == "INV-202401-202403-MTA-001"
    assert doc.filename == "Invoice_Asha_Rao_January-March_2024.pdf"
    assert doc.totals.total_obligated == Decimal("2100")
    assert doc.totals.total_paid == Decimal("900")
    assert doc.totals.total_balance == Decimal("1200")
    assert doc.last_paid_date == date(2024, 1, 10)


def test_cross_year_invoice_filename() -> None:
    student = _student()
    doc = build_invoice(student, _views(student, _fee(student, 12, 2023), _fee(student, 1, 2024)))
    assert doc.filename == "Invoice_Asha_Rao_December_2023-January_2024.pdf"
    assert doc.period_label == "December 2023 - January 2024"


def test_invoice_status_banner() -> None:
    student = _student()
    paid = build_invoice(student, _views(student, _fee(student, 1, 2024, status="paid")))
    unpaid = build_invoice(student, _views(student, _fee(student, 1, 2024)))
    assert paid.status == FeeStatus.paid
    assert unpaid.status == FeeStatus.unpaid


def test_invoice_ref_without_registration_number() -> None:
    student = _student(registration_number=None)
    doc = build_invoice(student, _views(student, _fee(student, 5, 2024)))
    assert doc.invoice_number == f"INV-202405-{str(student.id)[:8].upper()}"


def test_invoice_requires_periods() -> None:
    with pytest.raises(ValidationError) as exc:
        build_invoice(_student(), [])
    assert exc.value.message == "No months selected"


def test_invoice_rejects_duplicate_months() -> None:
    student = _student()
    fee = _fee(student, 1, 2024)
    with pytest.raises(ValidationError):
        build_invoice(student, _views(student, fee, fee))


def test_invoice_rejects_other_students_periods() -> None:
    student, other = _student(), _student(name="Other")
    with pytest.raises(ValidationError):
        build_invoice(student, _views(other, _fee(other, 1, 2024)))


def _attendance(student, day, status="present", notes=None):
    return SimpleNamespace(student_id=student.id, date=day, status=status, notes=notes)


def test_attendance_export_filters_and_orders() -> None:
    asha, bala = _student(), _student(name="Bala Iyer")
    bala.instructor_name = "Master Kim"
    records = [
        _attendance(bala, date(2024, 3, 2)),
        _attendance(asha, date(2024, 3, 2), status="late", notes="Traffic"),
        _attendance(asha, date(2024, 3, 1), status="absent"),
        _attendance(asha, date(2024, 4, 1)),
    ]
    students = {asha.id: asha, bala.id: bala}
    doc = build_attendance_export(
        records,
        students,
        AttendanceExportFilters(from_date=date(2024, 3, 1), to_date=date(2024, 3, 31)),
    )

    assert doc.columns == ATTENDANCE_COLUMNS
    assert doc.filename == "Attendance_Report_2024-03-01_to_2024-03-31.xlsx"
    assert [(r["Student Name"], r["Date"]) for r in doc.rows] == [
        ("Asha Rao", "01/03/2024"),
        ("Asha Rao", "02/03/2024"),
        ("Bala Iyer", "02/03/2024"),
    ]
    assert doc.rows[1]["Attendance Status"] == "Late"
    assert doc.rows[1]["Remarks"] == "Traffic"
    assert doc.rows[0]["Instructor Name"] == "N/A"
    assert doc.rows[2]["Instructor Name"] == "Master Kim"


def test_attendance_export_status_filter() -> None:
    asha = _student()
    records = [_attendance(asha, date(2024, 3, 1)), _attendance(asha, date(2024, 3, 2), status="absent")]
    doc = build_attendance_export(
        records,
        {asha.id: asha},
        AttendanceExportFilters(from_date=date(2024, 3, 1), to_date=date(2024, 3, 2), status="absent"),
    )
    assert len(doc.rows) == 1
    assert doc.rows[0]["Attendance Status"] == "Absent"


def test_attendance_export_empty_is_not_an_error() -> None:
    doc = build_attendance_export(
        [], {}, AttendanceExportFilters(from_date=date(2024, 3, 1), to_date=date(2024, 3, 31))
    )
    assert doc.is_empty is True


def test_attendance_export_rejects_inverted_range() -> None:
    with pytest.raises(ValidationError):
        build_attendance_export(
            [], {}, AttendanceExportFilters(from_date=date(2024, 3, 31), to_date=date(2024, 3, 1))
        )


def test_fee_export_rows() -> None:
    asha, bala = _student(), _student(name="Bala Iyer", registration_number=None)
    fees = [
        _fee(bala, 3, 2024, status="paid", paid_date=date(2024, 3, 5)),
        _fee(asha, 3, 2024, status="partial", partial="250", notes="Rest next week"),
        _fee(asha, 2, 2024),
    ]
    doc = build_fee_export(fees, {asha.id: asha, bala.id: bala}, FeeExportFilters(month=3, year=2024))

    assert doc.columns == FEE_COLUMNS
    assert doc.filename == "Fee_Records_March_2024.xlsx"
    assert [r["Student Name"] for r in doc.rows] == ["Asha Rao", "Bala Iyer"]

    asha_row, bala_row = doc.rows
    assert asha_row["Partial Amount Paid"] == Decimal("250")
    assert asha_row["Remaining Balance"] == Decimal("450")
    assert asha_row["Payment Status"] == "Partial"
    assert asha_row["Notes"] == "Rest next week"
    assert bala_row["Partial Amount Paid"] == "-"
    assert bala_row["Remaining Balance"] == Decimal("0")
    assert bala_row["Registration Number"] == "N/A"
    assert bala_row["Paid Date"] == "05/03/2024"


def test_fee_export_empty() -> None:
    doc = build_fee_export([], {}, FeeExportFilters(month=3, year=2024))
    assert doc.is_empty is True
    assert doc.rows == []
