"""
Persistence gateway: row-level CRUD and filtered queries over the dojo tables.

Single-row operations commit individually. Multi-row writes (attendance batch,
fee backfill) go out as one INSERT ... ON CONFLICT statement so the unique
keys decide what is written, with no read-then-write window.
"""

from datetime import date
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Type
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from dojo.auth.models import UserRole
from dojo.core.exceptions import NotFoundError
from dojo.core.models import AttendanceRecord, MonthlyFee
from dojo.db.session import Base


def _insert_for(db: AsyncSession, model: Type[Base]):
    """Dialect-specific INSERT that supports ON CONFLICT."""
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        return postgresql.insert(model)
    if dialect == "sqlite":
        return sqlite.insert(model)
    raise NotImplementedError(f"Upsert is not supported on dialect {dialect}")


class Repository:
    """Generic CRUD over one mapped model."""

    def __init__(self, model: Type[Base]) -> None:
        self.model = model

    def _column(self, name: str):
        try:
            return getattr(self.model, name)
        except AttributeError:
            raise ValueError(f"{self.model.__tablename__} has no column {name!r}") from None

    async def list(
        self,
        db: AsyncSession,
        filters: Optional[Dict[str, Any]] = None,
        ranges: Optional[Dict[str, Tuple[Any, Any]]] = None,
        order_by: Sequence[str] = (),
        search: Optional[Dict[str, Optional[str]]] = None,
    ) -> List[Any]:
        """
        Rows matching every equality filter, every inclusive range and every
        search term (case-insensitive substring, ilike %term%).
        A None value in filters is skipped; either bound of a range may be None;
        blank search terms are ignored.
        """
        stmt = select(self.model)
        for name, value in (filters or {}).items():
            if value is None:
                continue
            stmt = stmt.where(self._column(name) == value)
        for name, (lower, upper) in (ranges or {}).items():
            col = self._column(name)
            if lower is not None:
                stmt = stmt.where(col >= lower)
            if upper is not None:
                stmt = stmt.where(col <= upper)
        for name, term in (search or {}).items():
            term = (term or "").strip()
            if term:
                stmt = stmt.where(self._column(name).ilike(f"%{term}%"))
        for name in order_by:
            if name.startswith("-"):
                stmt = stmt.order_by(self._column(name[1:]).desc())
            else:
                stmt = stmt.order_by(self._column(name))
        result = await db.execute(stmt)
        return list(result.scalars().all())

    async def get(self, db: AsyncSession, row_id: UUID) -> Optional[Any]:
        return await db.get(self.model, row_id)

    async def get_or_404(self, db: AsyncSession, row_id: UUID, label: str) -> Any:
        row = await self.get(db, row_id)
        if row is None:
            raise NotFoundError(f"{label} not found")
        return row

    async def insert(self, db: AsyncSession, values: Dict[str, Any]) -> Any:
        row = self.model(**values)
        db.add(row)
        await db.commit()
        await db.refresh(row)
        return row

    async def update(self, db: AsyncSession, row_id: UUID, patch: Dict[str, Any]) -> Optional[Any]:
        row = await self.get(db, row_id)
        if row is None:
            return None
        for key, value in patch.items():
            self._column(key)
            setattr(row, key, value)
        await db.commit()
        await db.refresh(row)
        return row

    async def delete(self, db: AsyncSession, row_id: UUID) -> bool:
        row = await self.get(db, row_id)
        if row is None:
            return False
        await db.delete(row)
        await db.commit()
        return True


async def upsert_attendance(
    db: AsyncSession,
    student_id: UUID,
    att_date: date,
    status: str,
    notes: Optional[str] = None,
    marked_by: Optional[UUID] = None,
) -> AttendanceRecord:
    """Insert or overwrite the (student_id, date) record in a single statement."""
    stmt = _insert_for(db, AttendanceRecord).values(
        student_id=student_id,
        date=att_date,
        status=status,
        notes=notes,
        marked_by=marked_by,
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=[AttendanceRecord.student_id, AttendanceRecord.date],
        set_={
            "status": stmt.excluded.status,
            "notes": stmt.excluded.notes,
            "marked_by": stmt.excluded.marked_by,
            "updated_at": stmt.excluded.updated_at,
        },
    )
    await db.execute(stmt)
    await db.commit()
    result = await db.execute(
        select(AttendanceRecord)
        .where(AttendanceRecord.student_id == student_id, AttendanceRecord.date == att_date)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one()


async def insert_missing_attendance(db: AsyncSession, rows: Iterable[Dict[str, Any]]) -> int:
    """Batch-insert attendance rows, skipping any (student_id, date) that already exists."""
    return await _insert_ignoring_conflicts(
        db, AttendanceRecord, list(rows), [AttendanceRecord.student_id, AttendanceRecord.date]
    )


async def insert_missing_fees(db: AsyncSession, rows: Iterable[Dict[str, Any]]) -> int:
    """Batch-insert monthly fee rows, skipping periods that already have a row."""
    return await _insert_ignoring_conflicts(
        db, MonthlyFee, list(rows), [MonthlyFee.student_id, MonthlyFee.month, MonthlyFee.year]
    )


async def _insert_ignoring_conflicts(
    db: AsyncSession,
    model: Type[Base],
    rows: List[Dict[str, Any]],
    index_elements: List[Any],
) -> int:
    if not rows:
        return 0
    stmt = _insert_for(db, model).values(rows).on_conflict_do_nothing(index_elements=index_elements)
    result = await db.execute(stmt)
    await db.commit()
    # rowcount counts only rows actually inserted
    return max(result.rowcount or 0, 0)


async def has_role(db: AsyncSession, user_id: UUID, role: str) -> bool:
    result = await db.execute(
        select(UserRole.id).where(UserRole.user_id == user_id, UserRole.role == role)
    )
    return result.scalar_one_or_none() is not None
