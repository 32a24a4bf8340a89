import logging
from datetime import date
from typing import Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from dojo.core.enums import AttendanceStatus
from dojo.core.exceptions import NotFoundError, ValidationError
from dojo.core.labels import classify_attendance_stats
from dojo.core.models import AttendanceRecord, Student
from dojo.db.gateway import Repository, insert_missing_attendance, upsert_attendance

from .schemas import (
    AttendanceRecordResponse,
    DayAttendanceItem,
    DayAttendanceResponse,
    MarkAllPresentRequest,
    MarkAllPresentResponse,
    MarkAttendanceRequest,
    StudentAttendanceResponse,
)

logger = logging.getLogger(__name__)

students = Repository(Student)
attendance = Repository(AttendanceRecord)


async def mark_attendance(
    db: AsyncSession,
    payload: MarkAttendanceRequest,
    marked_by: Optional[UUID] = None,
) -> AttendanceRecordResponse:
    """Record a student's status for a day, replacing any earlier mark for that day."""
    student = await students.get(db, payload.student_id)
    if student is None:
        raise NotFoundError("Student not found")
    record = await upsert_attendance(
        db,
        student_id=payload.student_id,
        att_date=payload.date,
        status=payload.status.value,
        notes=payload.notes,
        marked_by=marked_by,
    )
    logger.info(
        "Marked %s %s on %s", payload.student_id, payload.status.value, payload.date.isoformat()
    )
    return AttendanceRecordResponse.model_validate(record)


async def mark_all_present(
    db: AsyncSession,
    payload: MarkAllPresentRequest,
    marked_by: Optional[UUID] = None,
) -> MarkAllPresentResponse:
    """Mark every active student present who has no record for the day yet."""
    active = await students.list(db, filters={"is_active": True})
    rows = [
        {
            "student_id": s.id,
            "date": payload.date,
            "status": AttendanceStatus.present.value,
            "marked_by": marked_by,
        }
        for s in active
    ]
    inserted = await insert_missing_attendance(db, rows)
    logger.info("Marked %d students present on %s", inserted, payload.date.isoformat())
    return MarkAllPresentResponse(
        date=payload.date,
        inserted=inserted,
        already_marked=len(rows) - inserted,
    )


async def get_day(db: AsyncSession, day: date) -> DayAttendanceResponse:
    active = await students.list(db, filters={"is_active": True}, order_by=("name",))
    records = await attendance.list(db, filters={"date": day})
    by_student = {r.student_id: r for r in records}

    items = [
        DayAttendanceItem(
            student_id=s.id,
            student_name=s.name,
            record=(
                AttendanceRecordResponse.model_validate(by_student[s.id])
                if s.id in by_student
                else None
            ),
        )
        for s in active
    ]
    return DayAttendanceResponse(
        date=day,
        items=items,
        stats=classify_attendance_stats(records),
        unmarked=sum(1 for item in items if item.record is None),
    )


async def get_student_attendance(
    db: AsyncSession,
    student_id: UUID,
    from_date: Optional[date] = None,
    to_date: Optional[date] = None,
) -> StudentAttendanceResponse:
    if from_date and to_date and from_date > to_date:
        raise ValidationError("From date must be on or before to date")
    await students.get_or_404(db, student_id, "Student")
    records = await attendance.list(
        db,
        filters={"student_id": student_id},
        ranges={"date": (from_date, to_date)},
        order_by=("-date",),
    )
    return StudentAttendanceResponse(
        student_id=student_id,
        from_date=from_date,
        to_date=to_date,
        records=[AttendanceRecordResponse.model_validate(r) for r in records],
        stats=classify_attendance_stats(records),
    )
