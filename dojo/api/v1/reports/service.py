import logging
from typing import Dict
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from dojo.api.v1.fees.ledger import resolve_period
from dojo.core.config import settings
from dojo.core.models import AttendanceRecord, MonthlyFee, Student
from dojo.db.gateway import Repository

from .composer import build_attendance_export, build_fee_export, build_invoice
from .renderers import render_invoice_pdf, render_tabular_xlsx
from .schemas import (
    AttendanceExportFilters,
    FeeExportFilters,
    InvoiceDocument,
    InvoiceRequest,
    TabularDocument,
    TabularDocumentResponse,
)

logger = logging.getLogger(__name__)

students = Repository(Student)
fees = Repository(MonthlyFee)
attendance = Repository(AttendanceRecord)

EMPTY_EXPORT_MESSAGE = "No records found for the selected filters"


async def _students_by_id(db: AsyncSession) -> Dict[UUID, Student]:
    return {s.id: s for s in await students.list(db)}


async def compose_invoice(db: AsyncSession, payload: InvoiceRequest) -> InvoiceDocument:
    """
    Invoice for the requested months. A month with no stored fee row is billed
    as unpaid at the student's current tier.
    """
    student = await students.get_or_404(db, payload.student_id, "Student")
    rows = await fees.list(db, filters={"student_id": student.id})
    by_period = {(r.year, r.month): r for r in rows}
    periods = [
        resolve_period(student, p.month, p.year, by_period.get((p.year, p.month)))
        for p in payload.periods
    ]
    return build_invoice(student, periods)


async def render_invoice(db: AsyncSession, payload: InvoiceRequest):
    document = await compose_invoice(db, payload)
    pdf = render_invoice_pdf(document, logo_path=settings.invoice_logo_path)
    logger.info("Rendered invoice %s (%d bytes)", document.invoice_number, len(pdf))
    return document, pdf


async def attendance_export(db: AsyncSession, filters: AttendanceExportFilters) -> TabularDocument:
    # Range check happens in the composer; the query only narrows what is loaded
    records = await attendance.list(
        db,
        filters={"student_id": filters.student_id},
        ranges={"date": (filters.from_date, filters.to_date)},
    )
    return build_attendance_export(records, await _students_by_id(db), filters)


async def fee_export(db: AsyncSession, filters: FeeExportFilters) -> TabularDocument:
    rows = await fees.list(
        db,
        filters={
            "month": filters.month,
            "year": filters.year,
            "student_id": filters.student_id,
        },
    )
    return build_fee_export(rows, await _students_by_id(db), filters)


def render_xlsx(document: TabularDocument) -> bytes:
    content = render_tabular_xlsx(document)
    logger.info("Rendered %s with %d rows", document.filename, len(document.rows))
    return content


def to_response(document: TabularDocument) -> TabularDocumentResponse:
    return TabularDocumentResponse(
        title=document.title,
        columns=document.columns,
        rows=document.rows,
        filename=document.filename,
        is_empty=document.is_empty,
        message=EMPTY_EXPORT_MESSAGE if document.is_empty else None,
    )
