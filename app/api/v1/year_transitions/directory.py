"""
Class directory for a year transition: the active classes of the source and destination
academic years, keyed by "{year}-{section}". Preview and execution both build their lookups
here so they agree on keys and tie-breaks.
"""

from dataclasses import dataclass
from typing import Dict, Iterable, List, Sequence
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.enums import max_year_for
from app.core.models import School, SchoolClass, Student


def class_key(year: int, section: str) -> str:
    return f"{year}-{section}"


@dataclass(frozen=True)
class ClassDirectory:
    current_classes: List[SchoolClass]
    existing_new_classes: List[SchoolClass]
    sections: List[str]
    max_year: int


def index_by_key(classes: Iterable[SchoolClass]) -> Dict[str, SchoolClass]:
    """Map "{year}-{section}" to class. On duplicate keys the first class in directory order wins."""
    index: Dict[str, SchoolClass] = {}
    for cls in classes:
        index.setdefault(class_key(cls.year, cls.section), cls)
    return index


async def _active_classes(db: AsyncSession, school_id: UUID, academic_year: str) -> List[SchoolClass]:
    result = await db.execute(
        select(SchoolClass)
        .where(
            SchoolClass.school_id == school_id,
            SchoolClass.academic_year == academic_year,
            SchoolClass.is_active.is_(True),
        )
        .order_by(SchoolClass.year, SchoolClass.section, SchoolClass.created_at, SchoolClass.id)
    )
    return list(result.scalars().all())


async def build_class_directory(
    db: AsyncSession,
    school: School,
    from_year: str,
    to_year: str,
) -> ClassDirectory:
    """Load current (from_year) and already existing destination (to_year) classes with their main teacher."""
    current = await _active_classes(db, school.id, from_year)
    existing_new = await _active_classes(db, school.id, to_year)
    sections = sorted({c.section for c in current} | {c.section for c in existing_new})
    return ClassDirectory(
        current_classes=current,
        existing_new_classes=existing_new,
        sections=sections,
        max_year=max_year_for(school.school_type),
    )


async def load_transition_students(
    db: AsyncSession,
    school_id: UUID,
    class_ids: Sequence[UUID],
) -> List[Student]:
    """Active students of the given (source year) classes, in a stable order."""
    if not class_ids:
        return []
    result = await db.execute(
        select(Student)
        .where(
            Student.school_id == school_id,
            Student.class_id.in_(list(class_ids)),
            Student.status == "active",
        )
        .order_by(Student.last_name, Student.first_name, Student.id)
    )
    return list(result.scalars().all())
