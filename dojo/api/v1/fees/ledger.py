"""
Fee ledger: obligated amounts, payment status transitions and balances for monthly fee periods.

Everything here is synchronous and side-effect free. Callers load rows, call these
functions, and persist the returned patches themselves.

    unpaid  <->  partial  <->  paid      (any state may move to any other)
"""

from datetime import date
from decimal import Decimal
from typing import Iterable, Optional, Union

from dojo.core.config import settings
from dojo.core.enums import FeeStatus, FeeStructure
from dojo.core.exceptions import ConfigurationError, ValidationError

from .schemas import FeeStatusPatch, FeeTotals, FeeView

ZERO = Decimal("0")

FEE_STRUCTURE_AMOUNTS = {
    FeeStructure.two_classes: settings.two_classes_fee,
    FeeStructure.four_classes: settings.four_classes_fee,
}


def _to_decimal(val) -> Decimal:
    if val is None:
        return ZERO
    return val if isinstance(val, Decimal) else Decimal(str(val))


def obligated_amount(fee_structure: Union[FeeStructure, str]) -> Decimal:
    """Monthly amount due for a fee-structure tier."""
    try:
        tier = FeeStructure(fee_structure)
    except ValueError:
        raise ConfigurationError(f"Unknown fee structure: {fee_structure}") from None
    return FEE_STRUCTURE_AMOUNTS[tier]


def _coerce_status(status) -> FeeStatus:
    try:
        return FeeStatus(status)
    except ValueError:
        raise ValidationError(f"Invalid fee status: {status}") from None


def _amount_paid(status: FeeStatus, partial: Decimal, obligated: Decimal) -> Decimal:
    if status == FeeStatus.paid:
        return obligated
    if status == FeeStatus.partial:
        return partial
    return ZERO


def _build_view(
    *,
    fee_id,
    student_id,
    month: int,
    year: int,
    status: FeeStatus,
    obligated: Decimal,
    partial: Decimal,
    paid_date: Optional[date],
    notes: Optional[str],
    persisted: bool,
) -> FeeView:
    # amount_paid is kept within [0, obligated] so amount_paid + balance_due == obligated
    paid = min(max(_amount_paid(status, partial, obligated), ZERO), obligated)
    return FeeView(
        id=fee_id,
        student_id=student_id,
        month=month,
        year=year,
        status=status,
        obligated_amount=obligated,
        partial_amount_paid=partial,
        paid_date=paid_date,
        notes=notes,
        amount_paid=paid,
        balance_due=max(obligated - paid, ZERO),
        persisted=persisted,
    )


def resolve_period(student, month: int, year: int, row=None) -> FeeView:
    """
    Derive the fee view for one student and period.

    With no stored row the period is reported as a virtual unpaid view
    (persisted=False); the caller must store it before changing its status.
    A stored row's snapshotted amount wins over the student's current tier.
    """
    if not 1 <= int(month) <= 12:
        raise ValidationError(f"Invalid month: {month}")
    if row is None:
        return _build_view(
            fee_id=None,
            student_id=student.id,
            month=int(month),
            year=int(year),
            status=FeeStatus.unpaid,
            obligated=obligated_amount(student.fee_structure),
            partial=ZERO,
            paid_date=None,
            notes=None,
            persisted=False,
        )

    if row.amount is not None:
        obligated = _to_decimal(row.amount)
    elif student is not None:
        obligated = obligated_amount(student.fee_structure)
    else:
        raise ConfigurationError(f"Fee {row.id} has no amount and no student to derive it from")
    return _build_view(
        fee_id=row.id,
        student_id=row.student_id,
        month=row.month,
        year=row.year,
        status=_coerce_status(row.status),
        obligated=obligated,
        partial=_to_decimal(row.partial_amount_paid),
        paid_date=row.paid_date,
        notes=row.notes,
        persisted=True,
    )


def _check_partial(amount, obligated: Decimal) -> Decimal:
    if amount is None:
        raise ValidationError("Partial amount is required")
    value = _to_decimal(amount)
    # An amount equal to the full fee means "paid", not "partial".
    if value < ZERO or value >= obligated:
        raise ValidationError(
            f"Partial amount must be at least 0 and less than the fee amount ({obligated})"
        )
    return value


def apply_status_change(
    view: FeeView,
    new_status,
    partial_amount=None,
    today: Optional[date] = None,
) -> FeeStatusPatch:
    """
    Compute the column changes for moving a period to new_status.

    For partial, partial_amount defaults to the amount already recorded on the period.
    """
    status = _coerce_status(new_status)
    if status == FeeStatus.paid:
        return FeeStatusPatch(
            status=status,
            partial_amount_paid=ZERO,
            paid_date=today or date.today(),
        )
    if status == FeeStatus.partial:
        if partial_amount is None:
            partial_amount = view.partial_amount_paid
        return FeeStatusPatch(
            status=status,
            partial_amount_paid=_check_partial(partial_amount, view.obligated_amount),
            paid_date=None,
        )
    return FeeStatusPatch(status=status, partial_amount_paid=ZERO, paid_date=None)


def update_partial_amount(view: FeeView, amount) -> FeeStatusPatch:
    """Change the recorded partial payment, keeping the period in the partial state."""
    return FeeStatusPatch(
        status=FeeStatus.partial,
        partial_amount_paid=_check_partial(amount, view.obligated_amount),
        paid_date=None,
    )


def apply_patch(view: FeeView, patch: FeeStatusPatch) -> FeeView:
    """The view as it reads after patch has been stored."""
    return _build_view(
        fee_id=view.id,
        student_id=view.student_id,
        month=view.month,
        year=view.year,
        status=patch.status,
        obligated=view.obligated_amount,
        partial=patch.partial_amount_paid,
        paid_date=patch.paid_date,
        notes=view.notes,
        persisted=view.persisted,
    )


def aggregate(periods: Iterable[FeeView]) -> FeeTotals:
    """Sum obligated, paid and balance over any set of periods; order does not matter."""
    totals = FeeTotals()
    for view in periods:
        totals = totals + FeeTotals(
            total_obligated=view.obligated_amount,
            total_paid=view.amount_paid,
            total_balance=view.balance_due,
            count=1,
            unpaid_count=1 if view.status == FeeStatus.unpaid else 0,
        )
    return totals
