from datetime import date
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from dojo.auth.dependencies import get_current_user
from dojo.auth.rbac import require_admin
from dojo.auth.schemas import CurrentUser
from dojo.core.exceptions import ServiceError
from dojo.db.session import get_db

from .schemas import (
    AttendanceRecordResponse,
    DayAttendanceResponse,
    MarkAllPresentRequest,
    MarkAllPresentResponse,
    MarkAttendanceRequest,
    StudentAttendanceResponse,
)
from . import service

router = APIRouter(prefix="/api/v1/attendance", tags=["attendance"])


@router.put("/mark", response_model=AttendanceRecordResponse)
async def mark_attendance(
    payload: MarkAttendanceRequest,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_admin),
) -> AttendanceRecordResponse:
    try:
        return await service.mark_attendance(db, payload, marked_by=current_user.id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post("/mark-all-present", response_model=MarkAllPresentResponse)
async def mark_all_present(
    payload: MarkAllPresentRequest,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_admin),
) -> MarkAllPresentResponse:
    try:
        return await service.mark_all_present(db, payload, marked_by=current_user.id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("/day", response_model=DayAttendanceResponse)
async def get_day(
    day: date = Query(..., alias="date", description="Day to show (YYYY-MM-DD)"),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> DayAttendanceResponse:
    return await service.get_day(db, day)


@router.get("/students/{student_id}", response_model=StudentAttendanceResponse)
async def get_student_attendance(
    student_id: UUID,
    from_date: Optional[date] = Query(None),
    to_date: Optional[date] = Query(None),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> StudentAttendanceResponse:
    try:
        return await service.get_student_attendance(db, student_id, from_date, to_date)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
