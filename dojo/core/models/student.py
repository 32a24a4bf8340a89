"""Student roster entry. Attendance, fees and belt tests reference it by student_id."""

import uuid
from datetime import date, datetime

from sqlalchemy import Boolean, CheckConstraint, Column, Date, DateTime, String, Text, Uuid
from sqlalchemy.orm import relationship

from dojo.core.enums import BeltLevel, FeeStructure
from dojo.db.session import Base


class Student(Base):
    __tablename__ = "students"
    __table_args__ = (
        CheckConstraint(
            "fee_structure IN ('two_classes','four_classes')",
            name="chk_student_fee_structure",
        ),
        CheckConstraint(
            "gender IN ('male','female','other')",
            name="chk_student_gender",
        ),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    # Printed on invoices; optional for students admitted before numbering began
    registration_number = Column(String(50), nullable=True, unique=True)
    date_of_birth = Column(Date, nullable=False)
    gender = Column(String(10), nullable=False)
    guardian_name = Column(String(255), nullable=False)
    phone_number = Column(String(20), nullable=False)
    address = Column(Text, nullable=True)
    state = Column(String(100), nullable=True)
    admission_date = Column(Date, nullable=False, default=date.today)
    current_belt = Column(String(20), nullable=False, default=BeltLevel.white.value)
    fee_structure = Column(String(20), nullable=False, default=FeeStructure.two_classes.value)
    is_active = Column(Boolean, nullable=False, default=True)
    instructor_name = Column(String(255), nullable=True)
    certification_number = Column(String(100), nullable=True)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    attendance_records = relationship(
        "AttendanceRecord", back_populates="student", cascade="all, delete-orphan", passive_deletes=True
    )
    monthly_fees = relationship(
        "MonthlyFee", back_populates="student", cascade="all, delete-orphan", passive_deletes=True
    )
    belt_tests = relationship(
        "BeltTest", back_populates="student", cascade="all, delete-orphan", passive_deletes=True
    )

    @property
    def age(self) -> int:
        """Whole years since date_of_birth, as of today."""
        today = date.today()
        born = self.date_of_birth
        return today.year - born.year - ((today.month, today.day) < (born.month, born.day))
