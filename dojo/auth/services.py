import logging
from datetime import datetime, timezone
from typing import List, Optional

from fastapi import status
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from dojo.auth.models import User, UserRole
from dojo.auth.schemas import (
    LoginRequest,
    LoginResponse,
    RegisterRequest,
    RegisterResponse,
    UserInfo,
)
from dojo.auth.security import create_access_token, hash_password, verify_password
from dojo.core.enums import AppRole
from dojo.core.exceptions import ConflictError, ServiceError

logger = logging.getLogger(__name__)


async def _roles_for(db: AsyncSession, user_id) -> List[str]:
    result = await db.execute(select(UserRole.role).where(UserRole.user_id == user_id))
    return [row[0] for row in result.all()]


async def _user_count(db: AsyncSession) -> int:
    return (await db.execute(select(func.count()).select_from(User))).scalar_one()


async def _create_account(
    db: AsyncSession,
    payload: RegisterRequest,
    password_hash: str,
    role: AppRole,
) -> User:
    """
    Insert the user and its role grant in one transaction. The admin grant
    also sets the unique is_founder flag, so only one registration can win it.
    """
    user = User(
        email=payload.email,
        full_name=payload.full_name.strip(),
        password_hash=password_hash,
        is_active=True,
        is_founder=True if role == AppRole.admin else None,
    )
    db.add(user)
    await db.flush()
    db.add(UserRole(user_id=user.id, role=role.value))
    await db.commit()
    return user


async def register_user(db: AsyncSession, payload: RegisterRequest) -> RegisterResponse:
    """Create a staff account. The very first account becomes the school's admin."""
    existing = (
        await db.execute(select(User).where(func.lower(User.email) == func.lower(payload.email)))
    ).scalar_one_or_none()
    if existing:
        raise ConflictError("Email is already in use")

    role = AppRole.admin if await _user_count(db) == 0 else AppRole.viewer
    password_hash = hash_password(payload.password)

    try:
        user = await _create_account(db, payload, password_hash, role)
    except IntegrityError as e:
        await db.rollback()
        if role != AppRole.admin:
            raise ConflictError("Conflict while creating user") from e
        # A concurrent registration claimed the founder slot first
        logger.warning("Founder slot already taken; registering %s as viewer", payload.email)
        role = AppRole.viewer
        try:
            user = await _create_account(db, payload, password_hash, role)
        except IntegrityError as e2:
            await db.rollback()
            raise ConflictError("Conflict while creating user") from e2

    logger.info("Registered user %s with role %s", user.id, role.value)
    return RegisterResponse(
        success=True,
        message="Account created successfully",
        user_id=user.id,
        roles=[role],
    )


async def login_user(db: AsyncSession, payload: LoginRequest) -> LoginResponse:
    user_stmt = select(User).where(func.lower(User.email) == func.lower(payload.email))
    user: Optional[User] = (await db.execute(user_stmt)).scalar_one_or_none()
    if not user or not verify_password(payload.password, user.password_hash):
        raise ServiceError("Invalid credentials", status.HTTP_401_UNAUTHORIZED)
    if not user.is_active:
        raise ServiceError("User is inactive", status.HTTP_403_FORBIDDEN)

    roles = await _roles_for(db, user.id)
    issued_at = datetime.now(timezone.utc)
    access_token = create_access_token(
        subject={
            "sub": str(user.id),
            "user_id": str(user.id),
            "roles": roles,
            "iat": int(issued_at.timestamp()),
        }
    )

    return LoginResponse(
        access_token=access_token,
        user=UserInfo(
            id=user.id,
            name=user.full_name,
            email=user.email,
            roles=roles,
            is_admin=AppRole.admin.value in roles,
        ),
        issued_at=issued_at,
    )


async def get_user_info(db: AsyncSession, user_id) -> UserInfo:
    user = await db.get(User, user_id)
    if not user:
        raise ServiceError("User not found", status.HTTP_404_NOT_FOUND)
    roles = await _roles_for(db, user.id)
    return UserInfo(
        id=user.id,
        name=user.full_name,
        email=user.email,
        roles=roles,
        is_admin=AppRole.admin.value in roles,
    )
