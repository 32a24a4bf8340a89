import logging
from datetime import date
from typing import Dict, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from dojo.api.v1.students.schemas import PromoteRequest
from dojo.api.v1.students.service import promote_student
from dojo.core.config import settings
from dojo.core.enums import TestResult
from dojo.core.exceptions import NotFoundError, ValidationError
from dojo.core.labels import belt_rank, format_belt_label, is_upcoming_test, partition_tests
from dojo.core.models import BeltTest, Student
from dojo.db.gateway import Repository

from .schemas import (
    BeltTestCreate,
    BeltTestListResponse,
    BeltTestResponse,
    BeltTestUpdate,
    RecordResultRequest,
)

logger = logging.getLogger(__name__)

students = Repository(Student)
belt_tests = Repository(BeltTest)


def _test_to_response(t: BeltTest, student_name: str, today: date) -> BeltTestResponse:
    return BeltTestResponse(
        id=t.id,
        student_id=t.student_id,
        student_name=student_name,
        test_date=t.test_date,
        tested_for_belt=t.tested_for_belt,
        tested_for_belt_label=format_belt_label(t.tested_for_belt),
        test_fee=t.test_fee,
        result=t.result,
        certification_number=t.certification_number,
        notes=t.notes,
        is_upcoming=is_upcoming_test(t, today),
        created_at=t.created_at,
        updated_at=t.updated_at,
    )


async def _student_names(db: AsyncSession) -> Dict[UUID, str]:
    return {s.id: s.name for s in await students.list(db)}


async def list_belt_tests(
    db: AsyncSession,
    student_id: Optional[UUID] = None,
    today: Optional[date] = None,
) -> BeltTestListResponse:
    """All tests, newest first, split into upcoming (pending, not yet past) and past."""
    today = today or date.today()
    rows = await belt_tests.list(db, filters={"student_id": student_id}, order_by=("-test_date",))
    names = await _student_names(db)
    upcoming, past = partition_tests(rows, today)
    return BeltTestListResponse(
        upcoming=[_test_to_response(t, names.get(t.student_id, "N/A"), today) for t in upcoming],
        past=[_test_to_response(t, names.get(t.student_id, "N/A"), today) for t in past],
        passed_count=sum(1 for t in rows if t.result == TestResult.passed.value),
    )


async def create_belt_test(db: AsyncSession, payload: BeltTestCreate) -> BeltTestResponse:
    student = await students.get(db, payload.student_id)
    if student is None:
        raise NotFoundError("Student not found")
    obj = await belt_tests.insert(
        db,
        {
            "student_id": student.id,
            "test_date": payload.test_date,
            "tested_for_belt": payload.tested_for_belt.value,
            "test_fee": payload.test_fee if payload.test_fee is not None else settings.default_test_fee,
            "result": TestResult.pending.value,
            "certification_number": payload.certification_number,
            "notes": payload.notes,
        },
    )
    logger.info("Scheduled %s test for student %s on %s", obj.tested_for_belt, student.id, obj.test_date)
    return _test_to_response(obj, student.name, date.today())


async def update_belt_test(
    db: AsyncSession,
    test_id: UUID,
    payload: BeltTestUpdate,
) -> BeltTestResponse:
    await belt_tests.get_or_404(db, test_id, "Belt test")
    patch = payload.model_dump(exclude_unset=True)
    for key in ("tested_for_belt", "result"):
        if patch.get(key) is not None:
            patch[key] = patch[key].value
    for key in ("test_date", "tested_for_belt", "test_fee", "result"):
        if key in patch and patch[key] is None:
            raise ValidationError(f"{key} cannot be cleared")
    obj = await belt_tests.update(db, test_id, patch)
    student = await students.get(db, obj.student_id)
    logger.info("Updated belt test %s fields=%s", test_id, sorted(patch))
    return _test_to_response(obj, student.name if student else "N/A", date.today())


async def record_result(
    db: AsyncSession,
    test_id: UUID,
    payload: RecordResultRequest,
) -> BeltTestResponse:
    """
    Store a test outcome. The student's belt changes only when promote is set
    on a passed result; a passed test alone never promotes.
    """
    test = await belt_tests.get_or_404(db, test_id, "Belt test")
    if payload.promote and payload.result != TestResult.passed:
        raise ValidationError("Only a passed test can promote the student")

    patch = {"result": payload.result.value}
    if payload.certification_number is not None:
        patch["certification_number"] = payload.certification_number.strip() or None
    if payload.notes is not None:
        patch["notes"] = payload.notes
    obj = await belt_tests.update(db, test.id, patch)
    logger.info("Recorded %s for belt test %s", payload.result.value, test_id)

    student = await students.get(db, obj.student_id)
    if payload.promote and student is not None:
        if belt_rank(obj.tested_for_belt) > belt_rank(student.current_belt):
            await promote_student(
                db,
                student.id,
                PromoteRequest(
                    to_belt=obj.tested_for_belt,
                    certification_number=obj.certification_number,
                ),
            )
    return _test_to_response(obj, student.name if student else "N/A", date.today())


async def delete_belt_test(db: AsyncSession, test_id: UUID) -> None:
    deleted = await belt_tests.delete(db, test_id)
    if not deleted:
        raise NotFoundError("Belt test not found")
    logger.info("Deleted belt test %s", test_id)
