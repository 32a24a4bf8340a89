import logging
from datetime import date
from typing import List, Optional
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from dojo.core.exceptions import ConflictError, ValidationError
from dojo.core.labels import belt_rank, fee_structure_label, format_belt_label, next_belt
from dojo.core.models import Student
from dojo.db.gateway import Repository

from .schemas import PromoteRequest, StudentCreate, StudentResponse, StudentUpdate

logger = logging.getLogger(__name__)

students = Repository(Student)


def _to_uuid(val):
    if val is None:
        return None
    return val if isinstance(val, UUID) else UUID(str(val))


def _clean_optional(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def _student_to_response(s: Student) -> StudentResponse:
    return StudentResponse(
        id=_to_uuid(s.id),
        name=s.name,
        registration_number=s.registration_number,
        date_of_birth=s.date_of_birth,
        age=s.age,
        gender=s.gender,
        guardian_name=s.guardian_name,
        phone_number=s.phone_number,
        address=s.address,
        state=s.state,
        admission_date=s.admission_date,
        current_belt=s.current_belt,
        current_belt_label=format_belt_label(s.current_belt),
        fee_structure=s.fee_structure,
        fee_structure_label=fee_structure_label(s.fee_structure),
        is_active=s.is_active,
        instructor_name=s.instructor_name,
        certification_number=s.certification_number,
        created_at=s.created_at,
        updated_at=s.updated_at,
    )


async def list_students(
    db: AsyncSession,
    active_only: bool = False,
    search: Optional[str] = None,
) -> List[StudentResponse]:
    rows = await students.list(
        db,
        filters={"is_active": True if active_only else None},
        order_by=("name",),
        search={"name": search},
    )
    return [_student_to_response(s) for s in rows]


async def get_student(db: AsyncSession, student_id: UUID) -> StudentResponse:
    return _student_to_response(await students.get_or_404(db, student_id, "Student"))


async def create_student(db: AsyncSession, payload: StudentCreate) -> StudentResponse:
    if payload.date_of_birth > date.today():
        raise ValidationError("Date of birth cannot be in the future")
    values = payload.model_dump()
    values["name"] = payload.name.strip()
    values["registration_number"] = _clean_optional(payload.registration_number)
    values["admission_date"] = payload.admission_date or date.today()
    for key in ("gender", "current_belt", "fee_structure"):
        values[key] = values[key].value
    try:
        obj = await students.insert(db, values)
    except IntegrityError:
        await db.rollback()
        raise ConflictError("Registration number already exists")
    logger.info("Created student %s (%s)", obj.id, obj.name)
    return _student_to_response(obj)


async def update_student(
    db: AsyncSession,
    student_id: UUID,
    payload: StudentUpdate,
) -> StudentResponse:
    await students.get_or_404(db, student_id, "Student")
    patch = payload.model_dump(exclude_unset=True)
    if "registration_number" in patch:
        patch["registration_number"] = _clean_optional(patch["registration_number"])
    if patch.get("date_of_birth") and patch["date_of_birth"] > date.today():
        raise ValidationError("Date of birth cannot be in the future")
    for key in ("gender", "current_belt", "fee_structure"):
        if patch.get(key) is not None:
            patch[key] = patch[key].value
    try:
        obj = await students.update(db, student_id, patch)
    except IntegrityError:
        await db.rollback()
        raise ConflictError("Registration number already exists")
    logger.info("Updated student %s fields=%s", student_id, sorted(patch))
    return _student_to_response(obj)


async def delete_student(db: AsyncSession, student_id: UUID) -> None:
    """Delete a student; attendance, fee and belt-test rows go with it."""
    await students.get_or_404(db, student_id, "Student")
    await students.delete(db, student_id)
    logger.info("Deleted student %s", student_id)


async def promote_student(
    db: AsyncSession,
    student_id: UUID,
    payload: PromoteRequest,
) -> StudentResponse:
    """
    Move a student to a higher belt. Promotion is never implied by a passed test;
    it happens only through this call (or the belt-test result endpoint's promote flag).
    """
    student = await students.get_or_404(db, student_id, "Student")
    target = payload.to_belt or next_belt(student.current_belt)
    if target is None:
        raise ValidationError("Student already holds the highest belt")
    if belt_rank(target) <= belt_rank(student.current_belt):
        raise ValidationError(
            f"Cannot promote from {format_belt_label(student.current_belt)} to {format_belt_label(target)}"
        )
    patch = {"current_belt": target.value}
    if payload.certification_number is not None:
        patch["certification_number"] = _clean_optional(payload.certification_number)
    obj = await students.update(db, student_id, patch)
    logger.info("Promoted student %s to %s", student_id, target.value)
    return _student_to_response(obj)
