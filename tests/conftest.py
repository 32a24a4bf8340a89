import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")

from datetime import date
from decimal import Decimal
from typing import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from dojo.auth.models import User, UserRole
from dojo.auth.security import create_access_token, hash_password
from dojo.core.models import MonthlyFee, Student
from dojo.db.session import Base, get_db
from dojo.main import app


TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture()
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Fresh in-memory database per test; the FastAPI dependency shares the session."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        future=True,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    @event.listens_for(engine.sync_engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async_session = async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session() as session:

        async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
            yield session

        app.dependency_overrides[get_db] = override_get_db
        yield session

    app.dependency_overrides.pop(get_db, None)
    await engine.dispose()


@pytest.fixture()
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client bound to the FastAPI app."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


async def _create_user(db: AsyncSession, email: str, role: str) -> User:
    user = User(
        email=email,
        full_name=email.split("@")[0].title(),
        password_hash=hash_password("password123"),
        is_active=True,
    )
    db.add(user)
    await db.flush()
    db.add(UserRole(user_id=user.id, role=role))
    await db.commit()
    return user


def _headers_for(user: User) -> dict:
    token = create_access_token(subject={"sub": str(user.id), "user_id": str(user.id)})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
async def admin_user(db_session: AsyncSession) -> User:
    return await _create_user(db_session, "admin@example.com", "admin")


@pytest.fixture()
async def admin_headers(admin_user: User) -> dict:
    return _headers_for(admin_user)


@pytest.fixture()
async def viewer_headers(db_session: AsyncSession) -> dict:
    viewer = await _create_user(db_session, "viewer@example.com", "viewer")
    return _headers_for(viewer)


@pytest.fixture()
def make_student(db_session: AsyncSession):
    """Factory that stores a student with sensible defaults."""

    async def _make(**overrides) -> Student:
        values = {
            "name": "Asha Rao",
            "date_of_birth": date(2012, 5, 14),
            "gender": "female",
            "guardian_name": "Ravi Rao",
            "phone_number": "9876543210",
            "address": "12 MG Road, Bengaluru",
            "admission_date": date(2023, 6, 1),
            "current_belt": "white",
            "fee_structure": "two_classes",
            "is_active": True,
        }
        values.update(overrides)
        student = Student(**values)
        db_session.add(student)
        await db_session.commit()
        await db_session.refresh(student)
        return student

    return _make


@pytest.fixture()
def make_fee(db_session: AsyncSession):
    async def _make(student: Student, month: int, year: int, **overrides) -> MonthlyFee:
        values = {
            "student_id": student.id,
            "month": month,
            "year": year,
            "amount": Decimal("700"),
            "status": "unpaid",
            "partial_amount_paid": Decimal("0"),
        }
        values.update(overrides)
        fee = MonthlyFee(**values)
        db_session.add(fee)
        await db_session.commit()
        await db_session.refresh(fee)
        return fee

    return _make
