"""Academic year validation for year transitions: format check, school lookup, registered years."""

import re
from dataclasses import dataclass
from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundError, ValidationError
from app.core.models import School, SchoolAcademicYear

YEAR_FORMAT = re.compile(r"^\d{4}/\d{4}$")


@dataclass(frozen=True)
class YearValidation:
    school: School
    from_academic_year: SchoolAcademicYear
    to_academic_year: SchoolAcademicYear


def validate_year_format(from_year: Optional[str], to_year: Optional[str]) -> None:
    """Both years must be present and formatted 'YYYY/YYYY'. Pure; touches no storage."""
    if not from_year or not to_year:
        raise ValidationError("Missing required parameters: schoolId, fromYear, toYear")
    if not YEAR_FORMAT.match(from_year) or not YEAR_FORMAT.match(to_year):
        raise ValidationError("Invalid academic year format, expected YYYY/YYYY")
    if from_year == to_year:
        raise ValidationError("fromYear and toYear must differ")


async def load_school(db: AsyncSession, school_id: UUID, for_update: bool = False) -> School:
    stmt = select(School).where(School.id == school_id).execution_options(populate_existing=True)
    if for_update:
        # Lock the row where the backend supports it
        stmt = stmt.with_for_update()
    result = await db.execute(stmt)
    school = result.scalar_one_or_none()
    if not school:
        raise NotFoundError("School not found")
    return school


async def validate_transition_years(
    db: AsyncSession,
    school_id: UUID,
    from_year: Optional[str],
    to_year: Optional[str],
    for_update: bool = False,
) -> YearValidation:
    """
    Validate a transition request and return the school with both registered academic years.
    Raises ValidationError (format, unregistered year) or NotFoundError (school).
    """
    validate_year_format(from_year, to_year)
    school = await load_school(db, school_id, for_update=for_update)
    if for_update:
        await db.refresh(school, attribute_names=["academic_years"])
    from_ay = school.find_academic_year(from_year)
    to_ay = school.find_academic_year(to_year)
    if not from_ay or not to_ay:
        raise ValidationError("One or both academic years are not registered for this school")
    return YearValidation(school=school, from_academic_year=from_ay, to_academic_year=to_ay)
