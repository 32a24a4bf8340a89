from fastapi import Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from dojo.auth.dependencies import get_current_user
from dojo.auth.schemas import CurrentUser
from dojo.core.enums import AppRole
from dojo.db.gateway import has_role
from dojo.db.session import get_db


async def require_admin(
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> CurrentUser:
    """Only administrators may create, edit or delete records."""
    if not await has_role(db, current_user.id, AppRole.admin.value):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only administrators can perform this action",
        )
    return current_user
