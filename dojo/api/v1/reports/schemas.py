"""Report document models. Renderer-agnostic: renderers.py turns them into xlsx / pdf bytes."""

from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from dojo.core.enums import AttendanceStatus, FeeStatus

from dojo.api.v1.fees.schemas import FeeTotals


# --- Invoice ---
class BillTo(BaseModel):
    student_id: UUID
    name: str
    registration_number: Optional[str] = None
    guardian_name: str
    phone_number: str
    address: Optional[str] = None


class InvoiceLine(BaseModel):
    month: int
    year: int
    description: str
    fee_structure: str
    amount: Decimal
    amount_paid: Decimal
    balance_due: Decimal
    status: FeeStatus
    paid_date: Optional[date] = None


class InvoiceDocument(BaseModel):
    invoice_number: str
    issued_on: date
    period_label: str
    status: FeeStatus
    bill_to: BillTo
    lines: List[InvoiceLine]
    totals: FeeTotals
    filename: str

    @property
    def last_paid_date(self) -> Optional[date]:
        dates = [line.paid_date for line in self.lines if line.paid_date is not None]
        return max(dates) if dates else None


# --- Tabular exports ---
class TabularDocument(BaseModel):
    title: str
    sheet_name: str
    columns: List[str]
    rows: List[Dict[str, Any]] = Field(default_factory=list)
    filename: str
    column_widths: Dict[str, int] = Field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return not self.rows


class AttendanceExportFilters(BaseModel):
    from_date: date
    to_date: date
    student_id: Optional[UUID] = None
    status: Optional[AttendanceStatus] = None


class FeeExportFilters(BaseModel):
    month: int = Field(..., ge=1, le=12)
    year: int
    student_id: Optional[UUID] = None
    status: Optional[FeeStatus] = None


# --- Requests ---
class InvoicePeriod(BaseModel):
    month: int = Field(..., ge=1, le=12)
    year: int


class InvoiceRequest(BaseModel):
    student_id: UUID
    periods: List[InvoicePeriod] = Field(default_factory=list)


class TabularDocumentResponse(BaseModel):
    title: str
    columns: List[str]
    rows: List[Dict[str, Any]]
    filename: str
    is_empty: bool
    message: Optional[str] = None
