import logging
import uuid
from datetime import datetime, timezone
from typing import List
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundError, ValidationError
from app.core.models import School, SchoolClass, SchoolSection, Student, StudentClassChange
from app.db.transaction import TransactionContext

from .schemas import SectionAcademicYearResponse, SectionDeactivateRequest, SectionDeactivateResponse, SectionResponse

logger = logging.getLogger(__name__)


def _section_to_response(s: SchoolSection) -> SectionResponse:
    return SectionResponse(
        id=s.id,
        school_id=s.school_id,
        name=s.name,
        is_active=s.is_active,
        deactivated_at=s.deactivated_at,
        academic_years=[SectionAcademicYearResponse.model_validate(ay) for ay in s.academic_years],
    )


async def list_sections(db: AsyncSession, school_id: UUID, active_only: bool = False) -> List[SectionResponse]:
    school = await db.get(School, school_id)
    if not school:
        raise NotFoundError("School not found")
    stmt = select(SchoolSection).where(SchoolSection.school_id == school_id)
    if active_only:
        stmt = stmt.where(SchoolSection.is_active.is_(True))
    result = await db.execute(stmt.order_by(SchoolSection.name))
    return [_section_to_response(s) for s in result.scalars().all()]


async def deactivate_section(
    db: AsyncSession,
    school_id: UUID,
    section_name: str,
    payload: SectionDeactivateRequest,
) -> SectionDeactivateResponse:
    """
    Deactivate a section in one transaction:
    archive its active classes (teachers cleared, roster marked transferred) and move their
    active students back to 'pending' with a history entry and needs_class_assignment set.
    """
    now = datetime.now(timezone.utc)
    async with TransactionContext(db):
        result = await db.execute(
            select(SchoolSection).where(
                SchoolSection.school_id == school_id,
                SchoolSection.name == section_name,
                SchoolSection.is_active.is_(True),
            )
        )
        section = result.scalar_one_or_none()
        if not section:
            raise NotFoundError(f"Section {section_name} not found or already deactivated")

        academic_year = payload.academic_year
        if academic_year is None:
            school = await db.get(School, school_id)
            active = next((ay for ay in school.academic_years if ay.status == "active"), None)
            if active is None:
                raise ValidationError("No active academic year; pass academic_year explicitly")
            academic_year = active.year

        section.is_active = False
        section.deactivated_at = now

        classes_result = await db.execute(
            select(SchoolClass).where(
                SchoolClass.school_id == school_id,
                SchoolClass.section == section_name,
                SchoolClass.is_active.is_(True),
            )
        )
        classes = list(classes_result.scalars().all())
        for cls in classes:
            cls.is_active = False
            cls.status = "archived"
            cls.main_teacher = None
            cls.main_teacher_id = None
            cls.teachers = []
            for entry in cls.students:
                entry.status = "transferred"
                entry.left_at = now

        students: List[Student] = []
        if classes:
            students_result = await db.execute(
                select(Student).where(
                    Student.school_id == school_id,
                    Student.class_id.in_([c.id for c in classes]),
                    Student.status == "active",
                )
            )
            students = list(students_result.scalars().all())
        for student in students:
            student.class_change_history.append(
                StudentClassChange(
                    id=uuid.uuid4(),
                    from_class_id=student.class_id,
                    to_class_id=None,
                    from_year=student.current_year,
                    from_section=section_name,
                    date=now,
                    reason=payload.reason or "Sezione disattivata",
                    academic_year=academic_year,
                )
            )
            student.status = "pending"
            student.class_id = None
            student.section = None
            student.needs_class_assignment = True
            student.main_teacher_id = None
            student.teachers = []
            student.last_class_change_date = now

    logger.info(
        "Section %s deactivated for school %s: %d classes, %d students",
        section_name,
        school_id,
        len(classes),
        len(students),
    )
    return SectionDeactivateResponse(
        deactivated_section=section_name,
        updated_classes=len(classes),
        updated_students=len(students),
        timestamp=now,
    )
