"""Creates the destination classes requested for a year transition, inside the caller's transaction."""

import logging
import uuid
from typing import Dict, Iterable, Mapping, Sequence
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.models import User
from app.core.exceptions import NotFoundError, ValidationError
from app.core.models import School, SchoolClass

from .directory import class_key
from .schemas import NewClassRequest

logger = logging.getLogger(__name__)


async def load_teachers(db: AsyncSession, school_id: UUID, teacher_ids: Iterable[UUID]) -> Dict[UUID, User]:
    """Active teachers of the school by id. Raises NotFoundError if any id is unknown or not a teacher."""
    ids = set(teacher_ids)
    if not ids:
        return {}
    result = await db.execute(
        select(User).where(
            User.id.in_(ids),
            User.school_id == school_id,
            User.role == "teacher",
            User.status == "ACTIVE",
        )
    )
    teachers = {u.id: u for u in result.scalars().all()}
    missing = ids - set(teachers)
    if missing:
        raise NotFoundError(f"Teacher not found: {', '.join(sorted(str(m) for m in missing))}")
    return teachers


async def materialize_classes(
    db: AsyncSession,
    school: School,
    to_year: str,
    requests: Sequence[NewClassRequest],
    existing: Mapping[str, SchoolClass],
    max_year: int,
) -> Dict[str, SchoolClass]:
    """
    Create a 'pending' class in to_year for every request marked is_new.
    Requests for a (year, section) that already exists are skipped. Returns the created classes by key.
    """
    wanted = [r for r in requests if r.is_new]
    for req in wanted:
        if req.year > max_year:
            raise ValidationError(
                f"Year {req.year} is not valid for a {school.school_type} school (max {max_year})"
            )
    teachers = await load_teachers(db, school.id, (r.main_teacher_id for r in wanted if r.main_teacher_id))

    created: Dict[str, SchoolClass] = {}
    for req in wanted:
        key = class_key(req.year, req.section)
        if key in existing or key in created:
            logger.warning(
                "Skipping creation of class %s in %s: already present",
                key,
                to_year,
                extra={"school_id": str(school.id), "class_key": key},
            )
            continue
        teacher = teachers.get(req.main_teacher_id) if req.main_teacher_id else None
        obj = SchoolClass(
            id=uuid.uuid4(),
            school_id=school.id,
            year=req.year,
            section=req.section,
            academic_year=to_year,
            status="pending",
            is_active=True,
            main_teacher_id=teacher.id if teacher else None,
            main_teacher=teacher,
            main_teacher_is_temporary=False,
            capacity=school.default_max_students_per_class,
            students=[],
            teachers=[teacher] if teacher else [],
        )
        db.add(obj)
        created[key] = obj

    if created:
        # Destination rows must exist before students and rosters reference them
        await db.flush()
        logger.info(
            "Created %d classes for %s",
            len(created),
            to_year,
            extra={"school_id": str(school.id), "class_keys": sorted(created)},
        )
    return created
