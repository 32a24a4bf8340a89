from dojo.core.models.student import Student
from dojo.core.models.attendance_record import AttendanceRecord
from dojo.core.models.monthly_fee import MonthlyFee
from dojo.core.models.belt_test import BeltTest

__all__ = [
    "Student",
    "AttendanceRecord",
    "MonthlyFee",
    "BeltTest",
]
