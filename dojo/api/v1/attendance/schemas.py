from datetime import date, datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from dojo.core.enums import AttendanceStatus
from dojo.core.labels import AttendanceStats


class MarkAttendanceRequest(BaseModel):
    student_id: UUID
    date: date
    status: AttendanceStatus
    notes: Optional[str] = None


class MarkAllPresentRequest(BaseModel):
    date: date


class AttendanceRecordResponse(BaseModel):
    id: UUID
    student_id: UUID
    date: date
    status: AttendanceStatus
    notes: Optional[str] = None
    marked_by: Optional[UUID] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class MarkAllPresentResponse(BaseModel):
    date: date
    inserted: int = Field(..., description="Students newly marked present")
    already_marked: int = Field(..., description="Active students that already had a record")


class DayAttendanceItem(BaseModel):
    """One active student and their record for the day, if any."""

    student_id: UUID
    student_name: str
    record: Optional[AttendanceRecordResponse] = None


class DayAttendanceResponse(BaseModel):
    date: date
    items: List[DayAttendanceItem]
    stats: AttendanceStats
    unmarked: int


class StudentAttendanceResponse(BaseModel):
    student_id: UUID
    from_date: Optional[date] = None
    to_date: Optional[date] = None
    records: List[AttendanceRecordResponse]
    stats: AttendanceStats
