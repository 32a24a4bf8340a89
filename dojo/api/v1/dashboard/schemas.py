from datetime import date

from pydantic import BaseModel


class DashboardStats(BaseModel):
    as_of: date
    total_students: int
    active_students: int
    unpaid_fees_this_month: int
    present_today: int
    upcoming_tests: int
