from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from dojo.core.enums import BeltLevel, TestResult


class BeltTestCreate(BaseModel):
    student_id: UUID
    test_date: date
    tested_for_belt: BeltLevel
    test_fee: Optional[Decimal] = Field(None, ge=0, description="Defaults to the configured test fee")
    certification_number: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = None


class BeltTestUpdate(BaseModel):
    test_date: Optional[date] = None
    tested_for_belt: Optional[BeltLevel] = None
    test_fee: Optional[Decimal] = Field(None, ge=0)
    result: Optional[TestResult] = None
    certification_number: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = None


class RecordResultRequest(BaseModel):
    result: TestResult
    certification_number: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = None
    promote: bool = Field(False, description="Also move the student to the tested belt")


class BeltTestResponse(BaseModel):
    id: UUID
    student_id: UUID
    student_name: str
    test_date: date
    tested_for_belt: BeltLevel
    tested_for_belt_label: str
    test_fee: Decimal
    result: TestResult
    certification_number: Optional[str] = None
    notes: Optional[str] = None
    is_upcoming: bool
    created_at: datetime
    updated_at: datetime


class BeltTestListResponse(BaseModel):
    upcoming: List[BeltTestResponse]
    past: List[BeltTestResponse]
    passed_count: int
