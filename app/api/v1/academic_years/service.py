from typing import List, Optional
from uuid import UUID

from fastapi import status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundError, ServiceError, ValidationError
from app.core.models import School, SchoolAcademicYear

from .schemas import AcademicYearCreate, AcademicYearResponse


def _to_response(ay: SchoolAcademicYear) -> AcademicYearResponse:
    return AcademicYearResponse(
        id=ay.id,
        school_id=ay.school_id,
        year=ay.year,
        status=ay.status,
        start_date=ay.start_date,
        end_date=ay.end_date,
        created_at=ay.created_at,
        created_by=ay.created_by,
    )


def _validate_year(payload: AcademicYearCreate) -> None:
    first, second = (int(part) for part in payload.year.split("/"))
    if second != first + 1:
        raise ValidationError("Academic year must span two consecutive years, e.g. 2025/2026")
    if payload.start_date and payload.end_date and payload.end_date <= payload.start_date:
        raise ValidationError("end_date must be after start_date")


async def _get_school(db: AsyncSession, school_id: UUID) -> School:
    school = await db.get(School, school_id)
    if not school:
        raise NotFoundError("School not found")
    return school


async def list_academic_years(
    db: AsyncSession,
    school_id: UUID,
    status_filter: Optional[str] = None,
) -> List[AcademicYearResponse]:
    """List academic years registered on a school, optionally filtered by status."""
    await _get_school(db, school_id)
    stmt = select(SchoolAcademicYear).where(SchoolAcademicYear.school_id == school_id)
    if status_filter:
        stmt = stmt.where(SchoolAcademicYear.status == status_filter)
    stmt = stmt.order_by(SchoolAcademicYear.year.desc())
    result = await db.execute(stmt)
    return [_to_response(ay) for ay in result.scalars().all()]


async def create_academic_year(
    db: AsyncSession,
    school_id: UUID,
    payload: AcademicYearCreate,
    created_by: Optional[UUID] = None,
) -> AcademicYearResponse:
    """Register an academic year. At most one year per school may be active."""
    _validate_year(payload)
    school = await _get_school(db, school_id)
    existing = await db.execute(
        select(SchoolAcademicYear).where(
            SchoolAcademicYear.school_id == school_id,
            SchoolAcademicYear.year == payload.year,
        )
    )
    if existing.scalar_one_or_none():
        raise ServiceError(
            f"Academic year '{payload.year}' already exists for this school",
            status.HTTP_409_CONFLICT,
        )
    if payload.status == "active":
        active = await db.execute(
            select(SchoolAcademicYear.id).where(
                SchoolAcademicYear.school_id == school_id,
                SchoolAcademicYear.status == "active",
            )
        )
        if active.first():
            raise ServiceError(
                "Another academic year is already active; use a year transition to switch",
                status.HTTP_409_CONFLICT,
            )
    ay = SchoolAcademicYear(
        year=payload.year,
        status=payload.status,
        start_date=payload.start_date,
        end_date=payload.end_date,
        created_by=created_by,
    )
    school.academic_years.append(ay)
    try:
        await db.commit()
        await db.refresh(ay)
        return _to_response(ay)
    except IntegrityError:
        await db.rollback()
        raise ServiceError(
            f"Academic year '{payload.year}' already exists for this school",
            status.HTTP_409_CONFLICT,
        )
