from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from dojo.auth.dependencies import get_current_user
from dojo.auth.rbac import require_admin
from dojo.auth.schemas import CurrentUser
from dojo.core.exceptions import ServiceError
from dojo.db.session import get_db

from .schemas import (
    FeeLedgerItem,
    FeeNotesUpdate,
    FeeStatusUpdate,
    MonthlyLedgerResponse,
    PartialAmountUpdate,
    StudentFeeHistoryResponse,
)
from . import service

router = APIRouter(prefix="/api/v1/fees", tags=["fees"])


@router.get("", response_model=MonthlyLedgerResponse)
async def list_monthly_ledger(
    month: int = Query(..., ge=1, le=12),
    year: int = Query(..., ge=2000, le=2100),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> MonthlyLedgerResponse:
    """Fee status of all active students for a month. Missing rows are created for admins only."""
    try:
        return await service.list_monthly_ledger(db, month, year, backfill=current_user.is_admin)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("/student/{student_id}", response_model=StudentFeeHistoryResponse)
async def get_student_fee_history(
    student_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> StudentFeeHistoryResponse:
    try:
        return await service.get_student_fee_history(db, student_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.patch("/{fee_id}/status", response_model=FeeLedgerItem)
async def change_fee_status(
    fee_id: UUID,
    payload: FeeStatusUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_admin),
) -> FeeLedgerItem:
    try:
        return await service.change_fee_status(db, fee_id, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.patch("/{fee_id}/partial", response_model=FeeLedgerItem)
async def change_partial_amount(
    fee_id: UUID,
    payload: PartialAmountUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_admin),
) -> FeeLedgerItem:
    try:
        return await service.change_partial_amount(db, fee_id, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.patch("/{fee_id}/notes", response_model=FeeLedgerItem)
async def update_fee_notes(
    fee_id: UUID,
    payload: FeeNotesUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_admin),
) -> FeeLedgerItem:
    try:
        return await service.update_fee_notes(db, fee_id, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
