from datetime import date, datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

from dojo.core.enums import BeltLevel, FeeStructure, Gender


class StudentCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    registration_number: Optional[str] = Field(None, max_length=50)
    date_of_birth: date
    gender: Gender
    guardian_name: str = Field(..., min_length=1, max_length=255)
    phone_number: str = Field(..., min_length=1, max_length=20)
    address: Optional[str] = None
    state: Optional[str] = Field(None, max_length=100)
    admission_date: Optional[date] = None
    current_belt: BeltLevel = BeltLevel.white
    fee_structure: FeeStructure = FeeStructure.two_classes
    is_active: bool = True
    instructor_name: Optional[str] = Field(None, max_length=255)
    certification_number: Optional[str] = Field(None, max_length=100)


class StudentUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    registration_number: Optional[str] = Field(None, max_length=50)
    date_of_birth: Optional[date] = None
    gender: Optional[Gender] = None
    guardian_name: Optional[str] = Field(None, min_length=1, max_length=255)
    phone_number: Optional[str] = Field(None, min_length=1, max_length=20)
    address: Optional[str] = None
    state: Optional[str] = Field(None, max_length=100)
    admission_date: Optional[date] = None
    current_belt: Optional[BeltLevel] = None
    fee_structure: Optional[FeeStructure] = None
    is_active: Optional[bool] = None
    instructor_name: Optional[str] = Field(None, max_length=255)
    certification_number: Optional[str] = Field(None, max_length=100)


class PromoteRequest(BaseModel):
    """Explicit promotion; with no belt the student moves to the next rank."""

    to_belt: Optional[BeltLevel] = None
    certification_number: Optional[str] = Field(None, max_length=100)


class StudentResponse(BaseModel):
    id: UUID
    name: str
    registration_number: Optional[str] = None
    date_of_birth: date
    age: int
    gender: Gender
    guardian_name: str
    phone_number: str
    address: Optional[str] = None
    state: Optional[str] = None
    admission_date: date
    current_belt: BeltLevel
    current_belt_label: str
    fee_structure: FeeStructure
    fee_structure_label: str
    is_active: bool
    instructor_name: Optional[str] = None
    certification_number: Optional[str] = None
    created_at: datetime
    updated_at: datetime
