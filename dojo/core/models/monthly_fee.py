"""Monthly fee: one row per student per (month, year). amount is snapshotted at creation."""

import uuid
from datetime import datetime

from sqlalchemy import CheckConstraint, Column, Date, DateTime, ForeignKey, Integer, Numeric, String, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship

from dojo.core.enums import FeeStatus
from dojo.db.session import Base


class MonthlyFee(Base):
    """
    Fee obligation for a single month.
    amount is copied from the student's fee structure when the row is created and is not
    recomputed if the structure changes later.
    """

    __tablename__ = "monthly_fees"
    __table_args__ = (
        UniqueConstraint("student_id", "month", "year", name="uq_monthly_fee_student_period"),
        CheckConstraint("month BETWEEN 1 AND 12", name="chk_monthly_fee_month"),
        CheckConstraint(
            "status IN ('unpaid','partial','paid')",
            name="chk_monthly_fee_status",
        ),
        CheckConstraint("partial_amount_paid >= 0", name="chk_monthly_fee_partial_non_negative"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    student_id = Column(Uuid, ForeignKey("students.id", ondelete="CASCADE"), nullable=False, index=True)
    month = Column(Integer, nullable=False)
    year = Column(Integer, nullable=False)
    amount = Column(Numeric(10, 2), nullable=True)
    status = Column(String(10), nullable=False, default=FeeStatus.unpaid.value)  # unpaid, partial, paid
    partial_amount_paid = Column(Numeric(10, 2), nullable=False, default=0)
    paid_date = Column(Date, nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    student = relationship("Student", back_populates="monthly_fees")
