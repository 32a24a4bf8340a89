import logging
from datetime import date
from typing import List, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from dojo.core.enums import FeeStatus
from dojo.core.exceptions import NotFoundError, ValidationError
from dojo.core.models import MonthlyFee, Student
from dojo.db.gateway import Repository, insert_missing_fees

from .ledger import aggregate, apply_status_change, obligated_amount, resolve_period, update_partial_amount
from .schemas import (
    FeeLedgerItem,
    FeeNotesUpdate,
    FeeStatusPatch,
    FeeStatusUpdate,
    FeeView,
    MonthlyLedgerResponse,
    PartialAmountUpdate,
    StudentFeeHistoryResponse,
)

logger = logging.getLogger(__name__)

students = Repository(Student)
fees = Repository(MonthlyFee)


def _ledger_item(student: Student, view: FeeView) -> FeeLedgerItem:
    return FeeLedgerItem(
        **view.model_dump(),
        student_name=student.name,
        registration_number=student.registration_number,
        fee_structure=student.fee_structure,
    )


def _check_period(month: int, year: int) -> None:
    if not 1 <= month <= 12:
        raise ValidationError(f"Invalid month: {month}")
    if year < 2000 or year > 2100:
        raise ValidationError(f"Invalid year: {year}")


async def list_monthly_ledger(
    db: AsyncSession,
    month: int,
    year: int,
    backfill: bool = False,
) -> MonthlyLedgerResponse:
    """
    Fee status of every active student for one month.

    With backfill, a row is stored for each student that has none, with the
    amount fixed from the student's tier at that moment. Without it, such
    students are reported as virtual unpaid periods.
    """
    _check_period(month, year)
    active = await students.list(db, filters={"is_active": True}, order_by=("name",))

    backfilled = 0
    if backfill and active:
        backfilled = await insert_missing_fees(
            db,
            [
                {
                    "student_id": s.id,
                    "month": month,
                    "year": year,
                    "amount": obligated_amount(s.fee_structure),
                    "status": FeeStatus.unpaid.value,
                    "partial_amount_paid": 0,
                }
                for s in active
            ],
        )
        if backfilled:
            logger.info("Created %d fee rows for %02d/%d", backfilled, month, year)

    rows = await fees.list(db, filters={"month": month, "year": year})
    by_student = {r.student_id: r for r in rows}

    items: List[FeeLedgerItem] = []
    for s in active:
        view = resolve_period(s, month, year, by_student.get(s.id))
        items.append(_ledger_item(s, view))

    return MonthlyLedgerResponse(
        month=month,
        year=year,
        backfilled=backfilled,
        items=items,
        totals=aggregate(items),
    )


async def _load(db: AsyncSession, fee_id: UUID):
    row = await fees.get_or_404(db, fee_id, "Fee record")
    student = await students.get(db, row.student_id)
    if student is None:
        raise NotFoundError("Student not found")
    return row, student


async def _store(db: AsyncSession, student: Student, row: MonthlyFee, patch: FeeStatusPatch) -> MonthlyFee:
    values = patch.model_dump()
    values["status"] = patch.status.value
    if row.amount is None:
        # Rows stored before amounts were recorded get the amount they were judged against
        values["amount"] = resolve_period(student, row.month, row.year, row).obligated_amount
    return await fees.update(db, row.id, values)


async def change_fee_status(
    db: AsyncSession,
    fee_id: UUID,
    payload: FeeStatusUpdate,
    today: Optional[date] = None,
) -> FeeLedgerItem:
    row, student = await _load(db, fee_id)
    view = resolve_period(student, row.month, row.year, row)
    patch = apply_status_change(view, payload.status, payload.partial_amount, today=today)
    row = await _store(db, student, row, patch)
    logger.info("Fee %s status %s -> %s", fee_id, view.status.value, patch.status.value)
    return _ledger_item(student, resolve_period(student, row.month, row.year, row))


async def change_partial_amount(
    db: AsyncSession,
    fee_id: UUID,
    payload: PartialAmountUpdate,
) -> FeeLedgerItem:
    row, student = await _load(db, fee_id)
    view = resolve_period(student, row.month, row.year, row)
    patch = update_partial_amount(view, payload.partial_amount)
    row = await _store(db, student, row, patch)
    logger.info("Fee %s partial amount set to %s", fee_id, patch.partial_amount_paid)
    return _ledger_item(student, resolve_period(student, row.month, row.year, row))


async def update_fee_notes(
    db: AsyncSession,
    fee_id: UUID,
    payload: FeeNotesUpdate,
) -> FeeLedgerItem:
    row, student = await _load(db, fee_id)
    notes = payload.notes.strip() if payload.notes else None
    row = await fees.update(db, row.id, {"notes": notes or None})
    return _ledger_item(student, resolve_period(student, row.month, row.year, row))


async def get_student_fee_history(db: AsyncSession, student_id: UUID) -> StudentFeeHistoryResponse:
    student = await students.get_or_404(db, student_id, "Student")
    rows = await fees.list(db, filters={"student_id": student_id}, order_by=("-year", "-month"))
    views = [resolve_period(student, r.month, r.year, r) for r in rows]
    return StudentFeeHistoryResponse(
        student_id=student.id,
        fee_structure=student.fee_structure,
        monthly_fee=obligated_amount(student.fee_structure),
        items=views,
        totals=aggregate(views),
    )
