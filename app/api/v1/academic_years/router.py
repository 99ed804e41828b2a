from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.rbac import require_school_role
from app.auth.schemas import CurrentUser
from app.core.exceptions import ServiceError
from app.db.session import get_db

from .schemas import AcademicYearCreate, AcademicYearResponse
from . import service

router = APIRouter(prefix="/api/v1/schools/{school_id}/academic-years", tags=["academic-years"])


@router.post(
    "",
    response_model=AcademicYearResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_academic_year(
    school_id: UUID,
    payload: AcademicYearCreate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_school_role()),
) -> AcademicYearResponse:
    """Register an academic year on the school (planned unless status=active)."""
    try:
        return await service.create_academic_year(db, school_id, payload, created_by=current_user.id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get(
    "",
    response_model=List[AcademicYearResponse],
)
async def list_academic_years(
    school_id: UUID,
    status_filter: Optional[str] = Query(None, alias="status", description="Filter by status: active, planned, archived"),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_school_role()),
) -> List[AcademicYearResponse]:
    """List academic years registered on the school."""
    try:
        return await service.list_academic_years(db, school_id, status_filter=status_filter)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
