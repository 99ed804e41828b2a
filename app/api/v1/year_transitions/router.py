from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.rbac import require_school_role
from app.auth.schemas import CurrentUser
from app.core.exceptions import ServiceError
from app.db.session import get_db

from .schemas import (
    TransitionExecuteRequest,
    TransitionExecuteResponse,
    TransitionPreviewResponse,
)
from . import service

router = APIRouter(prefix="/api/v1/schools/{school_id}", tags=["year-transitions"])


@router.get(
    "/transition-preview",
    response_model=TransitionPreviewResponse,
)
async def get_transition_preview(
    school_id: UUID,
    from_year: Optional[str] = Query(None, alias="fromYear", description="Source academic year, YYYY/YYYY"),
    to_year: Optional[str] = Query(None, alias="toYear", description="Destination academic year, YYYY/YYYY"),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_school_role()),
) -> TransitionPreviewResponse:
    """Preview a year transition: destination classes to create, promotions, graduations and warnings. Read-only."""
    try:
        preview = await service.preview_transition(db, school_id, from_year, to_year)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return TransitionPreviewResponse(data=preview)


@router.post(
    "/year-transition",
    response_model=TransitionExecuteResponse,
)
async def execute_year_transition(
    school_id: UUID,
    payload: TransitionExecuteRequest,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_school_role()),
) -> TransitionExecuteResponse:
    """Execute a year transition atomically. Students without a destination class are listed in data.unresolved."""
    try:
        result = await service.execute_transition(db, school_id, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return TransitionExecuteResponse(
        message="Academic year transition completed successfully",
        data=result,
    )
