from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.rbac import require_school_role
from app.auth.schemas import CurrentUser
from app.core.exceptions import ServiceError
from app.db.session import get_db

from .schemas import ClassResponse, ClassStudentAdd
from . import service

router = APIRouter(prefix="/api/v1/schools/{school_id}/classes", tags=["classes"])


@router.get(
    "",
    response_model=List[ClassResponse],
)
async def list_classes(
    school_id: UUID,
    academic_year: Optional[str] = Query(None, alias="academicYear", description="e.g. 2025/2026"),
    active_only: bool = Query(True, description="Return only is_active=true by default"),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_school_role()),
) -> List[ClassResponse]:
    return await service.list_classes(db, school_id, academic_year=academic_year, active_only=active_only)


@router.post(
    "/{class_id}/students",
    response_model=ClassResponse,
)
async def add_student_to_class(
    school_id: UUID,
    class_id: UUID,
    payload: ClassStudentAdd,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_school_role()),
) -> ClassResponse:
    """Place a student in a class; roster, student record and history are updated together."""
    try:
        return await service.add_student(db, school_id, class_id, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.delete(
    "/{class_id}/students/{student_id}",
    response_model=ClassResponse,
)
async def remove_student_from_class(
    school_id: UUID,
    class_id: UUID,
    student_id: UUID,
    reason: Optional[str] = Query(None, max_length=255),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_school_role()),
) -> ClassResponse:
    try:
        return await service.remove_student(db, school_id, class_id, student_id, reason=reason)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
