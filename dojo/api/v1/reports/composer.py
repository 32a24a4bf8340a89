"""
Invoice and export composition.

Turns resolved fee views, attendance rows and students into InvoiceDocument /
TabularDocument models. Pure: no database access and no file encoding.
"""

import re
from datetime import date
from typing import Dict, Iterable, List, Mapping, Optional, Sequence
from uuid import UUID

from dojo.api.v1.fees.ledger import aggregate, resolve_period
from dojo.api.v1.fees.schemas import FeeView
from dojo.core.enums import FeeStatus
from dojo.core.exceptions import ValidationError
from dojo.core.labels import (
    fee_structure_label,
    format_date,
    format_status_label,
    month_name,
)

from .schemas import (
    AttendanceExportFilters,
    BillTo,
    FeeExportFilters,
    InvoiceDocument,
    InvoiceLine,
    TabularDocument,
)

ATTENDANCE_COLUMNS = ["Student Name", "Date", "Attendance Status", "Instructor Name", "Remarks"]
ATTENDANCE_WIDTHS = {
    "Student Name": 25,
    "Date": 15,
    "Attendance Status": 18,
    "Instructor Name": 20,
    "Remarks": 30,
}

FEE_COLUMNS = [
    "Student Name",
    "Registration Number",
    "Month",
    "Year",
    "Fee Amount",
    "Partial Amount Paid",
    "Remaining Balance",
    "Payment Status",
    "Paid Date",
    "Notes",
]
FEE_WIDTHS = {
    "Student Name": 25,
    "Registration Number": 20,
    "Month": 12,
    "Year": 8,
    "Fee Amount": 12,
    "Partial Amount Paid": 18,
    "Remaining Balance": 18,
    "Payment Status": 15,
    "Paid Date": 12,
    "Notes": 30,
}


def _student_ref(student) -> str:
    """Registration number, or the first 8 characters of the id for unnumbered students."""
    if getattr(student, "registration_number", None):
        return student.registration_number
    return str(student.id)[:8].upper()


def _file_safe(name: str) -> str:
    return re.sub(r"\s+", "_", name.strip())


def _period_key(view: FeeView):
    return (view.year, view.month)


def _period_label(first: FeeView, last: FeeView) -> str:
    if _period_key(first) == _period_key(last):
        return f"{month_name(first.month)} {first.year}"
    if first.year == last.year:
        return f"{month_name(first.month)} - {month_name(last.month)} {first.year}"
    return f"{month_name(first.month)} {first.year} - {month_name(last.month)} {last.year}"


def invoice_number(student, first: FeeView, last: FeeView) -> str:
    number = f"INV-{first.year}{first.month:02d}"
    if _period_key(first) != _period_key(last):
        number += f"-{last.year}{last.month:02d}"
    return f"{number}-{_student_ref(student)}"


def invoice_filename(student, first: FeeView, last: FeeView) -> str:
    name = _file_safe(student.name)
    if first.year == last.year:
        months = month_name(first.month)
        if first.month != last.month:
            months += f"-{month_name(last.month)}"
        return f"Invoice_{name}_{months}_{first.year}.pdf"
    return (
        f"Invoice_{name}_{month_name(first.month)}_{first.year}"
        f"-{month_name(last.month)}_{last.year}.pdf"
    )


def invoice_status(total_paid, total_balance) -> FeeStatus:
    if total_balance == 0:
        return FeeStatus.paid
    if total_paid == 0:
        return FeeStatus.unpaid
    return FeeStatus.partial


def build_invoice(
    student,
    periods: Sequence[FeeView],
    issued_on: Optional[date] = None,
) -> InvoiceDocument:
    """
    Compose an invoice for one student over one or more months.

    Line items are ordered by (year, month) whatever the input order, so the same
    set of periods always produces the same invoice number, lines and totals.
    """
    if not periods:
        raise ValidationError("No months selected")
    ordered = sorted(periods, key=_period_key)
    seen = set()
    for view in ordered:
        if view.student_id != student.id:
            raise ValidationError("All invoice periods must belong to the same student")
        if _period_key(view) in seen:
            raise ValidationError(f"Duplicate month in selection: {month_name(view.month)} {view.year}")
        seen.add(_period_key(view))

    structure = fee_structure_label(student.fee_structure)
    lines = [
        InvoiceLine(
            month=view.month,
            year=view.year,
            description=f"Monthly Training Fee - {month_name(view.month)} {view.year}",
            fee_structure=structure,
            amount=view.obligated_amount,
            amount_paid=view.amount_paid,
            balance_due=view.balance_due,
            status=view.status,
            paid_date=view.paid_date,
        )
        for view in ordered
    ]
    totals = aggregate(ordered)
    first, last = ordered[0], ordered[-1]

    return InvoiceDocument(
        invoice_number=invoice_number(student, first, last),
        issued_on=issued_on or date.today(),
        period_label=_period_label(first, last),
        status=invoice_status(totals.total_paid, totals.total_balance),
        bill_to=BillTo(
            student_id=student.id,
            name=student.name,
            registration_number=getattr(student, "registration_number", None),
            guardian_name=student.guardian_name,
            phone_number=student.phone_number,
            address=student.address,
        ),
        lines=lines,
        totals=totals,
        filename=invoice_filename(student, first, last),
    )


def _status_value(status) -> str:
    return status.value if hasattr(status, "value") else str(status)


def build_attendance_export(
    records: Iterable,
    students: Mapping[UUID, object],
    filters: AttendanceExportFilters,
) -> TabularDocument:
    """Flatten attendance rows in [from_date, to_date]; an empty result is not an error."""
    if filters.from_date > filters.to_date:
        raise ValidationError("From date must be on or before to date")

    wanted_status = _status_value(filters.status) if filters.status is not None else None
    matched = []
    for record in records:
        if not filters.from_date <= record.date <= filters.to_date:
            continue
        if filters.student_id is not None and record.student_id != filters.student_id:
            continue
        if wanted_status is not None and _status_value(record.status) != wanted_status:
            continue
        matched.append((record, students.get(record.student_id)))

    matched.sort(key=lambda pair: (pair[0].date, pair[1].name if pair[1] is not None else ""))
    rows: List[Dict[str, object]] = [
        {
            "Student Name": student.name if student is not None else "N/A",
            "Date": format_date(record.date),
            "Attendance Status": format_status_label(record.status),
            "Instructor Name": (getattr(student, "instructor_name", None) or "N/A"),
            "Remarks": record.notes or "",
        }
        for record, student in matched
    ]
    return TabularDocument(
        title="Attendance Report",
        sheet_name="Attendance",
        columns=ATTENDANCE_COLUMNS,
        rows=rows,
        filename=f"Attendance_Report_{filters.from_date.isoformat()}_to_{filters.to_date.isoformat()}.xlsx",
        column_widths=ATTENDANCE_WIDTHS,
    )


def build_fee_export(
    fees: Iterable,
    students: Mapping[UUID, object],
    filters: FeeExportFilters,
) -> TabularDocument:
    """Flatten the month's fee rows with fee amount, paid and remaining per student."""
    month = month_name(filters.month)
    wanted_status = _status_value(filters.status) if filters.status is not None else None

    matched = []
    for fee in fees:
        if fee.month != filters.month or fee.year != filters.year:
            continue
        if filters.student_id is not None and fee.student_id != filters.student_id:
            continue
        if wanted_status is not None and _status_value(fee.status) != wanted_status:
            continue
        student = students.get(fee.student_id)
        matched.append((resolve_period(student, fee.month, fee.year, fee), student))

    matched.sort(key=lambda pair: pair[1].name if pair[1] is not None else "")
    rows: List[Dict[str, object]] = []
    for view, student in matched:
        rows.append(
            {
                "Student Name": student.name if student is not None else "N/A",
                "Registration Number": (getattr(student, "registration_number", None) or "N/A"),
                "Month": month,
                "Year": filters.year,
                "Fee Amount": view.obligated_amount,
                "Partial Amount Paid": (
                    view.partial_amount_paid if view.status == FeeStatus.partial else "-"
                ),
                "Remaining Balance": view.balance_due,
                "Payment Status": format_status_label(view.status),
                "Paid Date": format_date(view.paid_date),
                "Notes": view.notes or "-",
            }
        )
    return TabularDocument(
        title=f"Fee Records - {month} {filters.year}",
        sheet_name="Fee Records",
        columns=FEE_COLUMNS,
        rows=rows,
        filename=f"Fee_Records_{month}_{filters.year}.xlsx",
        column_widths=FEE_WIDTHS,
    )
