"""
Display labels and small status helpers shared by the fee ledger, the report
composer and the list/profile endpoints, so every consumer formats belts,
statuses and months the same way.
"""

from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, List, Optional, Tuple, Union

from pydantic import BaseModel

from dojo.core.enums import AttendanceStatus, BeltLevel, FeeStructure, TestResult
from dojo.core.exceptions import ValidationError

MONTH_NAMES = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)

BELT_ORDER: Tuple[BeltLevel, ...] = tuple(BeltLevel)

BELT_LABELS = {
    BeltLevel.white: "White",
    BeltLevel.yellow_stripe: "Yellow Stripe",
    BeltLevel.yellow: "Yellow",
    BeltLevel.green_stripe: "Green Stripe",
    BeltLevel.green: "Green",
    BeltLevel.blue_stripe: "Blue Stripe",
    BeltLevel.blue: "Blue",
    BeltLevel.red_stripe: "Red Stripe",
    BeltLevel.red: "Red",
    BeltLevel.red_black: "Red Black",
    BeltLevel.black_1st_dan: "Black 1st Dan",
    BeltLevel.black_2nd_dan: "Black 2nd Dan",
    BeltLevel.black_3rd_dan: "Black 3rd Dan",
    BeltLevel.black_4th_dan: "Black 4th Dan",
    BeltLevel.black_5th_dan: "Black 5th Dan",
}

FEE_STRUCTURE_LABELS = {
    FeeStructure.two_classes: "2 classes per week",
    FeeStructure.four_classes: "4 classes per week",
}


def _value(code) -> str:
    return code.value if hasattr(code, "value") else str(code)


def _title_words(raw: str) -> str:
    # Upper-case only the first letter of each word: "2nd" must stay "2nd".
    words = raw.replace("_", " ").split(" ")
    return " ".join(w[:1].upper() + w[1:] for w in words)


def format_belt_label(code: Union[BeltLevel, str]) -> str:
    """Canonical label for a belt code; unknown codes are title-cased word by word."""
    raw = _value(code)
    try:
        return BELT_LABELS[BeltLevel(raw)]
    except ValueError:
        return _title_words(raw)


def belt_rank(code: Union[BeltLevel, str]) -> int:
    """Zero-based position in the belt progression."""
    try:
        return BELT_ORDER.index(BeltLevel(_value(code)))
    except ValueError:
        raise ValidationError(f"Unknown belt level: {_value(code)}") from None


def next_belt(code: Union[BeltLevel, str]) -> Optional[BeltLevel]:
    """Belt after code, or None at the top of the progression."""
    rank = belt_rank(code)
    if rank + 1 >= len(BELT_ORDER):
        return None
    return BELT_ORDER[rank + 1]


def format_status_label(status) -> str:
    raw = _value(status)
    return raw[:1].upper() + raw[1:]


def fee_structure_label(fee_structure) -> str:
    raw = _value(fee_structure)
    try:
        return FEE_STRUCTURE_LABELS[FeeStructure(raw)]
    except ValueError:
        return _title_words(raw)


def month_name(month: int) -> str:
    if not 1 <= int(month) <= 12:
        raise ValidationError(f"Invalid month: {month}")
    return MONTH_NAMES[int(month) - 1]


def format_date(value: Optional[date]) -> str:
    """dd/mm/yyyy, the format used on invoices and exports."""
    if value is None:
        return "-"
    return value.strftime("%d/%m/%Y")


class AttendanceStats(BaseModel):
    present: int
    absent: int
    late: int
    total: int
    percentage_present: Decimal


def classify_attendance_stats(records: Iterable) -> AttendanceStats:
    """Count statuses; percentage_present is 0 for an empty list."""
    present = absent = late = total = 0
    for record in records:
        status = _value(record.status)
        total += 1
        if status == AttendanceStatus.present.value:
            present += 1
        elif status == AttendanceStatus.absent.value:
            absent += 1
        elif status == AttendanceStatus.late.value:
            late += 1
    if total == 0:
        percentage = Decimal("0")
    else:
        percentage = (Decimal(present) * 100 / Decimal(total)).quantize(
            Decimal("0.01"), rounding=ROUND_HALF_UP
        )
    return AttendanceStats(
        present=present,
        absent=absent,
        late=late,
        total=total,
        percentage_present=percentage,
    )


def is_upcoming_test(test, today: date) -> bool:
    """A test is upcoming while its date has not passed and no result is recorded."""
    return test.test_date >= today and _value(test.result) == TestResult.pending.value


def partition_tests(tests: Iterable, today: date) -> Tuple[List, List]:
    """Split tests into (upcoming, past), keeping input order within each list."""
    upcoming: List = []
    past: List = []
    for test in tests:
        (upcoming if is_upcoming_test(test, today) else past).append(test)
    return upcoming, past
