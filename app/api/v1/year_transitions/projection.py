"""
Preview projection of a year transition. Pure: works on already loaded classes and students
and performs no writes.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence
from uuid import UUID

from app.core.models import SchoolClass, Student

from .directory import ClassDirectory, class_key, index_by_key
from .schemas import (
    CurrentClassResponse,
    GraduatingStudentResponse,
    NewClassResponse,
    PromotedStudentResponse,
    RosterEntryResponse,
    TransitionPreview,
    TransitionWarning,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProjectedClass:
    """A destination class that does not exist yet and would be created by the transition."""

    year: int
    section: str
    type: str  # new_enrollment | promotion
    source_class_id: Optional[UUID] = None
    main_teacher_id: Optional[UUID] = None

    @property
    def key(self) -> str:
        return class_key(self.year, self.section)


def project_missing_classes(directory: ClassDirectory) -> List[ProjectedClass]:
    """
    Destination classes the transition needs but which are not in the destination year yet:
    year 1 of every section in use (new enrollment) and year Y+1 of every current class below max_year.
    """
    existing = index_by_key(directory.existing_new_classes)
    projected: Dict[str, ProjectedClass] = {}

    for section in directory.sections:
        key = class_key(1, section)
        if key not in existing:
            projected[key] = ProjectedClass(year=1, section=section, type="new_enrollment")

    for cls in directory.current_classes:
        if cls.year >= directory.max_year:
            continue
        key = class_key(cls.year + 1, cls.section)
        if key in existing or key in projected:
            continue
        projected[key] = ProjectedClass(
            year=cls.year + 1,
            section=cls.section,
            type="promotion",
            source_class_id=cls.id,
            main_teacher_id=cls.main_teacher_id,
        )

    return sorted(projected.values(), key=lambda p: (p.year, p.section))


def _teacher_name(cls: SchoolClass) -> Optional[str]:
    if not cls.main_teacher:
        return None
    return cls.main_teacher.full_name


def _current_class_response(cls: SchoolClass) -> CurrentClassResponse:
    return CurrentClassResponse(
        id=cls.id,
        year=cls.year,
        section=cls.section,
        students=[
            RosterEntryResponse(student_id=e.student_id, joined_at=e.joined_at, status=e.status)
            for e in cls.students
        ],
        main_teacher=cls.main_teacher_id,
        main_teacher_name=_teacher_name(cls),
        main_teacher_email=cls.main_teacher.email if cls.main_teacher else None,
        status=cls.status,
    )


def _existing_new_class_response(cls: SchoolClass) -> NewClassResponse:
    return NewClassResponse(
        id=cls.id,
        year=cls.year,
        section=cls.section,
        is_new=False,
        student_count=0,
        main_teacher=cls.main_teacher_id,
        main_teacher_name=_teacher_name(cls),
        status=cls.status,
    )


def _placeholder_response(projected: ProjectedClass) -> NewClassResponse:
    return NewClassResponse(
        id=None,
        year=projected.year,
        section=projected.section,
        is_new=True,
        student_count=0,
        main_teacher=projected.main_teacher_id,
        status="planned",
        type=projected.type,
        source_class_id=projected.source_class_id,
    )


def calculate_projection(directory: ClassDirectory, students: Sequence[Student]) -> TransitionPreview:
    """Project default promotions and graduations onto existing and placeholder destination classes."""
    current_by_id = {cls.id: cls for cls in directory.current_classes}

    all_new_classes: Dict[str, NewClassResponse] = {}
    for key, cls in index_by_key(directory.existing_new_classes).items():
        all_new_classes[key] = _existing_new_class_response(cls)
    for projected in project_missing_classes(directory):
        all_new_classes.setdefault(projected.key, _placeholder_response(projected))

    promoted: List[PromotedStudentResponse] = []
    graduating: List[GraduatingStudentResponse] = []
    warnings: List[TransitionWarning] = []

    for student in students:
        current = current_by_id.get(student.class_id)
        if current is None:
            warnings.append(
                TransitionWarning(
                    message=f"Student {student.full_name} has no valid class",
                    details=f"Class id not found: {student.class_id}",
                    student_id=student.id,
                )
            )
            continue

        if current.year >= directory.max_year:
            graduating.append(
                GraduatingStudentResponse(
                    id=student.id,
                    first_name=student.first_name,
                    last_name=student.last_name,
                    current_year=current.year,
                    current_section=current.section,
                    class_id=current.id,
                )
            )
            continue

        new_year = current.year + 1
        new_section = current.section
        destination = all_new_classes.get(class_key(new_year, new_section))
        if destination is None:
            warnings.append(
                TransitionWarning(
                    message=f"Cannot promote student {student.full_name}",
                    details=f"Destination class {new_year}{new_section} not found",
                    student_id=student.id,
                )
            )
            continue

        destination.student_count += 1
        promoted.append(
            PromotedStudentResponse(
                id=student.id,
                first_name=student.first_name,
                last_name=student.last_name,
                current_year=current.year,
                current_section=current.section,
                new_year=new_year,
                new_section=new_section,
                class_id=current.id,
                new_class_id=destination.id,
            )
        )

    if warnings:
        logger.warning("Year transition preview produced %d warnings", len(warnings))

    return TransitionPreview(
        current_classes=[_current_class_response(c) for c in directory.current_classes],
        new_classes=sorted(all_new_classes.values(), key=lambda c: (c.year, c.section)),
        promoted_students=promoted,
        graduating_students=graduating,
        warnings=warnings,
    )
