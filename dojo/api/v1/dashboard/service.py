from datetime import date, timedelta
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from dojo.core.enums import AttendanceStatus, FeeStatus, TestResult
from dojo.core.models import AttendanceRecord, BeltTest, MonthlyFee, Student

from .schemas import DashboardStats

UPCOMING_TEST_WINDOW_DAYS = 30


async def _count(db: AsyncSession, stmt) -> int:
    return (await db.execute(stmt)).scalar_one()


async def get_dashboard_stats(db: AsyncSession, today: Optional[date] = None) -> DashboardStats:
    """Headline counts for the landing page. Unpaid counts stored rows only."""
    today = today or date.today()

    total = await _count(db, select(func.count()).select_from(Student))
    active = await _count(
        db, select(func.count()).select_from(Student).where(Student.is_active.is_(True))
    )
    unpaid = await _count(
        db,
        select(func.count())
        .select_from(MonthlyFee)
        .where(
            MonthlyFee.month == today.month,
            MonthlyFee.year == today.year,
            MonthlyFee.status == FeeStatus.unpaid.value,
        ),
    )
    present = await _count(
        db,
        select(func.count())
        .select_from(AttendanceRecord)
        .where(
            AttendanceRecord.date == today,
            AttendanceRecord.status == AttendanceStatus.present.value,
        ),
    )
    tests = await _count(
        db,
        select(func.count())
        .select_from(BeltTest)
        .where(
            BeltTest.test_date >= today,
            BeltTest.test_date <= today + timedelta(days=UPCOMING_TEST_WINDOW_DAYS),
            BeltTest.result == TestResult.pending.value,
        ),
    )

    return DashboardStats(
        as_of=today,
        total_students=total,
        active_students=active,
        unpaid_fees_this_month=unpaid,
        present_today=present,
        upcoming_tests=tests,
    )
