from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from dojo.auth.dependencies import get_current_user
from dojo.auth.rbac import require_admin
from dojo.auth.schemas import CurrentUser
from dojo.core.exceptions import ServiceError
from dojo.db.session import get_db

from .schemas import (
    BeltTestCreate,
    BeltTestListResponse,
    BeltTestResponse,
    BeltTestUpdate,
    RecordResultRequest,
)
from . import service

router = APIRouter(prefix="/api/v1/belt-tests", tags=["belt-tests"])


@router.get("", response_model=BeltTestListResponse)
async def list_belt_tests(
    student_id: Optional[UUID] = Query(None),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> BeltTestListResponse:
    return await service.list_belt_tests(db, student_id=student_id)


@router.post("", response_model=BeltTestResponse, status_code=status.HTTP_201_CREATED)
async def create_belt_test(
    payload: BeltTestCreate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_admin),
) -> BeltTestResponse:
    try:
        return await service.create_belt_test(db, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.patch("/{test_id}", response_model=BeltTestResponse)
async def update_belt_test(
    test_id: UUID,
    payload: BeltTestUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_admin),
) -> BeltTestResponse:
    try:
        return await service.update_belt_test(db, test_id, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post("/{test_id}/result", response_model=BeltTestResponse)
async def record_result(
    test_id: UUID,
    payload: RecordResultRequest,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_admin),
) -> BeltTestResponse:
    try:
        return await service.record_result(db, test_id, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.delete("/{test_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_belt_test(
    test_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_admin),
) -> None:
    try:
        await service.delete_belt_test(db, test_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
