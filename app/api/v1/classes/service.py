import uuid
from datetime import datetime, timezone
from typing import List, Optional
from uuid import UUID

from fastapi import status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundError, ServiceError
from app.core.models import ClassStudent, SchoolClass, Student, StudentClassChange

from .schemas import ClassResponse, ClassStudentAdd, ClassStudentResponse


def _class_to_response(c: SchoolClass) -> ClassResponse:
    return ClassResponse(
        id=c.id,
        school_id=c.school_id,
        year=c.year,
        section=c.section,
        academic_year=c.academic_year,
        status=c.status,
        is_active=c.is_active,
        main_teacher_id=c.main_teacher_id,
        main_teacher_is_temporary=c.main_teacher_is_temporary,
        capacity=c.capacity,
        teacher_ids=[t.id for t in c.teachers],
        students=[ClassStudentResponse.model_validate(e) for e in c.students],
        created_at=c.created_at,
        updated_at=c.updated_at,
    )


async def get_class_for_school(db: AsyncSession, school_id: UUID, class_id: UUID) -> SchoolClass:
    result = await db.execute(
        select(SchoolClass).where(SchoolClass.id == class_id, SchoolClass.school_id == school_id)
    )
    obj = result.scalar_one_or_none()
    if not obj:
        raise NotFoundError("Class not found")
    return obj


async def _get_student_for_school(db: AsyncSession, school_id: UUID, student_id: UUID) -> Student:
    result = await db.execute(
        select(Student).where(Student.id == student_id, Student.school_id == school_id)
    )
    student = result.scalar_one_or_none()
    if not student:
        raise NotFoundError("Student not found")
    return student


async def list_classes(
    db: AsyncSession,
    school_id: UUID,
    academic_year: Optional[str] = None,
    active_only: bool = True,
) -> List[ClassResponse]:
    stmt = select(SchoolClass).where(SchoolClass.school_id == school_id)
    if academic_year:
        stmt = stmt.where(SchoolClass.academic_year == academic_year)
    if active_only:
        stmt = stmt.where(SchoolClass.is_active.is_(True))
    stmt = stmt.order_by(SchoolClass.academic_year, SchoolClass.year, SchoolClass.section)
    result = await db.execute(stmt)
    return [_class_to_response(c) for c in result.scalars().all()]


async def add_student(
    db: AsyncSession,
    school_id: UUID,
    class_id: UUID,
    payload: ClassStudentAdd,
) -> ClassResponse:
    """
    Place a student in a class. The roster entry and students.class_id are updated together,
    the previous roster entry (if any) is closed and one history entry is appended.
    """
    school_class = await get_class_for_school(db, school_id, class_id)
    if school_class.status == "archived":
        raise ServiceError("Cannot add students to an archived class", status.HTTP_400_BAD_REQUEST)
    student = await _get_student_for_school(db, school_id, payload.student_id)
    if student.class_id == class_id:
        raise ServiceError("Student is already in this class", status.HTTP_409_CONFLICT)
    active_count = sum(1 for e in school_class.students if e.status == "active")
    if active_count >= school_class.capacity:
        raise ServiceError("Class is full", status.HTTP_409_CONFLICT)

    now = datetime.now(timezone.utc)
    previous_class: Optional[SchoolClass] = None
    if student.class_id is not None:
        previous_class = await db.get(SchoolClass, student.class_id)
        if previous_class:
            for entry in previous_class.students:
                if entry.student_id == student.id and entry.status == "active":
                    entry.status = "transferred"
                    entry.left_at = now

    student.class_change_history.append(
        StudentClassChange(
            id=uuid.uuid4(),
            from_class_id=previous_class.id if previous_class else None,
            to_class_id=school_class.id,
            from_year=previous_class.year if previous_class else None,
            to_year=school_class.year,
            from_section=previous_class.section if previous_class else None,
            to_section=school_class.section,
            date=now,
            reason=payload.reason or "Assegnazione classe",
            academic_year=school_class.academic_year,
        )
    )
    student.class_id = school_class.id
    student.current_year = school_class.year
    student.section = school_class.section
    student.status = "active"
    student.needs_class_assignment = False
    student.main_teacher_id = school_class.main_teacher_id
    student.last_class_change_date = now
    school_class.students.append(
        ClassStudent(id=uuid.uuid4(), student_id=student.id, joined_at=now, status="active")
    )
    await db.commit()
    return _class_to_response(school_class)


async def remove_student(
    db: AsyncSession,
    school_id: UUID,
    class_id: UUID,
    student_id: UUID,
    reason: Optional[str] = None,
) -> ClassResponse:
    """Take a student out of a class; the student waits for a new class assignment."""
    school_class = await get_class_for_school(db, school_id, class_id)
    student = await _get_student_for_school(db, school_id, student_id)
    entry = next(
        (e for e in school_class.students if e.student_id == student_id and e.status == "active"),
        None,
    )
    if entry is None or student.class_id != class_id:
        raise NotFoundError("Student is not in this class")

    now = datetime.now(timezone.utc)
    entry.status = "transferred"
    entry.left_at = now
    student.class_change_history.append(
        StudentClassChange(
            id=uuid.uuid4(),
            from_class_id=school_class.id,
            to_class_id=None,
            from_year=school_class.year,
            to_year=None,
            from_section=school_class.section,
            to_section=None,
            date=now,
            reason=reason or "Rimozione dalla classe",
            academic_year=school_class.academic_year,
        )
    )
    student.class_id = None
    student.section = None
    student.status = "pending"
    student.needs_class_assignment = True
    student.main_teacher_id = None
    student.last_class_change_date = now
    await db.commit()
    return _class_to_response(school_class)
