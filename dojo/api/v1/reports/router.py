from datetime import date
from typing import Optional
from urllib.parse import quote
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from dojo.auth.dependencies import get_current_user
from dojo.auth.schemas import CurrentUser
from dojo.core.enums import AttendanceStatus, FeeStatus
from dojo.core.exceptions import ServiceError
from dojo.db.session import get_db

from .renderers import PDF_MEDIA_TYPE, XLSX_MEDIA_TYPE
from .schemas import (
    AttendanceExportFilters,
    FeeExportFilters,
    InvoiceDocument,
    InvoiceRequest,
    TabularDocumentResponse,
)
from . import service

router = APIRouter(prefix="/api/v1/reports", tags=["reports"])


def _attachment(content: bytes, media_type: str, filename: str) -> Response:
    fallback = filename.encode("ascii", "ignore").decode("ascii") or "download"
    return Response(
        content=content,
        media_type=media_type,
        headers={
            "Content-Disposition": f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quote(filename)}"
        },
    )


def attendance_filters(
    from_date: date = Query(...),
    to_date: date = Query(...),
    student_id: Optional[UUID] = Query(None),
    status: Optional[AttendanceStatus] = Query(None),
) -> AttendanceExportFilters:
    return AttendanceExportFilters(
        from_date=from_date, to_date=to_date, student_id=student_id, status=status
    )


def fee_filters(
    month: int = Query(..., ge=1, le=12),
    year: int = Query(..., ge=2000, le=2100),
    student_id: Optional[UUID] = Query(None),
    status: Optional[FeeStatus] = Query(None),
) -> FeeExportFilters:
    return FeeExportFilters(month=month, year=year, student_id=student_id, status=status)


@router.post("/invoice", response_model=InvoiceDocument)
async def compose_invoice(
    payload: InvoiceRequest,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> InvoiceDocument:
    try:
        return await service.compose_invoice(db, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post("/invoice.pdf", response_class=Response)
async def download_invoice(
    payload: InvoiceRequest,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> Response:
    try:
        document, pdf = await service.render_invoice(db, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return _attachment(pdf, PDF_MEDIA_TYPE, document.filename)


@router.get("/attendance", response_model=TabularDocumentResponse)
async def attendance_report(
    filters: AttendanceExportFilters = Depends(attendance_filters),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> TabularDocumentResponse:
    try:
        return service.to_response(await service.attendance_export(db, filters))
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("/attendance.xlsx", response_class=Response)
async def download_attendance_report(
    filters: AttendanceExportFilters = Depends(attendance_filters),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> Response:
    try:
        document = await service.attendance_export(db, filters)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    if document.is_empty:
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    return _attachment(service.render_xlsx(document), XLSX_MEDIA_TYPE, document.filename)


@router.get("/fees", response_model=TabularDocumentResponse)
async def fee_report(
    filters: FeeExportFilters = Depends(fee_filters),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> TabularDocumentResponse:
    try:
        return service.to_response(await service.fee_export(db, filters))
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("/fees.xlsx", response_class=Response)
async def download_fee_report(
    filters: FeeExportFilters = Depends(fee_filters),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> Response:
    try:
        document = await service.fee_export(db, filters)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    if document.is_empty:
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    return _attachment(service.render_xlsx(document), XLSX_MEDIA_TYPE, document.filename)
