"""Fees schemas."""

from datetime import date
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from dojo.core.enums import FeeStatus, FeeStructure


class FeeView(BaseModel):
    """Read-time view of a monthly fee period with the derived payment figures."""

    id: Optional[UUID] = None  # None for a period that has no stored row yet
    student_id: UUID
    month: int
    year: int
    status: FeeStatus
    obligated_amount: Decimal
    partial_amount_paid: Decimal = Decimal("0")
    paid_date: Optional[date] = None
    notes: Optional[str] = None
    amount_paid: Decimal
    balance_due: Decimal
    persisted: bool = True


class FeeStatusPatch(BaseModel):
    """Column changes produced by a ledger transition."""

    status: FeeStatus
    partial_amount_paid: Decimal
    paid_date: Optional[date] = None


class FeeTotals(BaseModel):
    total_obligated: Decimal = Decimal("0")
    total_paid: Decimal = Decimal("0")
    total_balance: Decimal = Decimal("0")
    count: int = 0
    unpaid_count: int = 0

    def __add__(self, other: "FeeTotals") -> "FeeTotals":
        return FeeTotals(
            total_obligated=self.total_obligated + other.total_obligated,
            total_paid=self.total_paid + other.total_paid,
            total_balance=self.total_balance + other.total_balance,
            count=self.count + other.count,
            unpaid_count=self.unpaid_count + other.unpaid_count,
        )


# --- Requests ---
class FeeStatusUpdate(BaseModel):
    status: FeeStatus
    partial_amount: Optional[Decimal] = Field(None, description="Required context for status=partial")


class PartialAmountUpdate(BaseModel):
    partial_amount: Decimal


class FeeNotesUpdate(BaseModel):
    notes: Optional[str] = None


# --- Responses ---
class FeeLedgerItem(FeeView):
    student_name: str
    registration_number: Optional[str] = None
    fee_structure: FeeStructure


class MonthlyLedgerResponse(BaseModel):
    month: int
    year: int
    backfilled: int = 0
    items: List[FeeLedgerItem]
    totals: FeeTotals


class StudentFeeHistoryResponse(BaseModel):
    student_id: UUID
    fee_structure: FeeStructure
    monthly_fee: Decimal
    items: List[FeeView]
    totals: FeeTotals

