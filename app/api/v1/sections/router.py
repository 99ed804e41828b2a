from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Path, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.rbac import require_school_role
from app.auth.schemas import CurrentUser
from app.core.exceptions import ServiceError
from app.db.session import get_db

from .schemas import SectionDeactivateRequest, SectionDeactivateResponse, SectionResponse
from . import service

router = APIRouter(prefix="/api/v1/schools/{school_id}/sections", tags=["sections"])


@router.get(
    "",
    response_model=List[SectionResponse],
)
async def list_sections(
    school_id: UUID,
    active_only: bool = Query(False, description="Return only is_active=true sections"),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_school_role()),
) -> List[SectionResponse]:
    try:
        return await service.list_sections(db, school_id, active_only=active_only)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post(
    "/{section_name}/deactivate",
    response_model=SectionDeactivateResponse,
)
async def deactivate_section(
    school_id: UUID,
    payload: SectionDeactivateRequest,
    section_name: str = Path(..., pattern=r"^[A-Z]$"),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_school_role()),
) -> SectionDeactivateResponse:
    """Deactivate a section. Its classes are archived and their students return to pending, atomically."""
    try:
        return await service.deactivate_section(db, school_id, section_name, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
