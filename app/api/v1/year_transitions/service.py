"""
Academic year transition: preview and execution.

Preview is read-only. Execution runs validator -> directory -> materializer -> resolver over all
students -> teacher reassignment -> roster replacement -> archive, inside one TransactionContext,
and commits or rolls back as a unit.
"""

import logging
from collections import Counter
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Callable, Dict, List, Mapping, Optional, Sequence, Tuple
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from app.core.exceptions import ConflictError, NotFoundError, ServiceError, TransactionFailure, ValidationError
from app.core.models import ClassStudent, SchoolClass
from app.db.transaction import TransactionContext

from .directory import build_class_directory, index_by_key, load_transition_students
from .locks import TransitionLockRegistry, transition_locks
from .materializer import load_teachers, materialize_classes
from .projection import calculate_projection
from .resolver import apply_resolution, resolve_student
from .schemas import (
    TransitionException,
    TransitionExecuteRequest,
    TransitionPreview,
    TransitionResult,
    UnresolvedStudent,
)
from .validator import YearValidation, validate_transition_years

logger = logging.getLogger(__name__)


async def preview_transition(
    db: AsyncSession,
    school_id: UUID,
    from_year: Optional[str],
    to_year: Optional[str],
) -> TransitionPreview:
    """Project what a transition from from_year to to_year would do. No writes, no locking."""
    logger.debug(
        "Starting year transition preview",
        extra={"school_id": str(school_id), "from_year": from_year, "to_year": to_year},
    )
    validation = await validate_transition_years(db, school_id, from_year, to_year)
    directory = await build_class_directory(db, validation.school, from_year, to_year)
    students = await load_transition_students(db, school_id, [c.id for c in directory.current_classes])
    preview = calculate_projection(directory, students)
    logger.info(
        "Year transition preview for school %s: %d promoted, %d graduating, %d new classes",
        school_id,
        len(preview.promoted_students),
        len(preview.graduating_students),
        sum(1 for c in preview.new_classes if c.is_new),
    )
    return preview


def _index_exceptions(exceptions: Sequence[TransitionException]) -> Dict[UUID, TransitionException]:
    indexed: Dict[UUID, TransitionException] = {}
    for exc in exceptions:
        if exc.student_id in indexed:
            raise ValidationError(f"Multiple exceptions given for student {exc.student_id}")
        indexed[exc.student_id] = exc
    return indexed


def _retire_source_year(validation: YearValidation, now: datetime) -> None:
    """The source year is archived and the destination becomes the active one."""
    if validation.from_academic_year.status == "active":
        validation.from_academic_year.status = "archived"
    validation.to_academic_year.status = "active"
    # Touching the school bumps its version; a concurrent transition commit then fails
    validation.school.updated_at = now


async def _apply_teacher_assignments(
    db: AsyncSession,
    school_id: UUID,
    assignments: Mapping[UUID, UUID],
    destinations: Mapping[str, SchoolClass],
) -> int:
    if not assignments:
        return 0
    by_id = {cls.id: cls for cls in destinations.values()}
    unknown = [str(cid) for cid in assignments if cid not in by_id]
    if unknown:
        raise NotFoundError(f"Destination class not found: {', '.join(unknown)}")
    teachers = await load_teachers(db, school_id, assignments.values())
    for class_id, teacher_id in assignments.items():
        cls = by_id[class_id]
        teacher = teachers[teacher_id]
        cls.main_teacher_id = teacher.id
        cls.main_teacher = teacher
        cls.main_teacher_is_temporary = False
        if teacher not in cls.teachers:
            cls.teachers.append(teacher)
    return len(assignments)


def _replace_rosters(additions: Dict[UUID, Tuple[SchoolClass, List[ClassStudent]]]) -> None:
    # Replaces the destination roster with this run's additions (see DESIGN.md, roster open question)
    for cls, entries in additions.values():
        cls.students = entries


def _archive_source_classes(classes: Sequence[SchoolClass], now: datetime) -> None:
    for cls in classes:
        cls.status = "archived"
        for entry in cls.students:
            entry.status = "transferred"
            if entry.left_at is None:
                entry.left_at = now


async def _run_transition(
    db: AsyncSession,
    school_id: UUID,
    payload: TransitionExecuteRequest,
    exceptions: Dict[UUID, TransitionException],
) -> TransitionResult:
    now = datetime.now(timezone.utc)
    from_year, to_year = payload.from_year, payload.to_year

    validation = await validate_transition_years(db, school_id, from_year, to_year, for_update=True)
    school = validation.school
    directory = await build_class_directory(db, school, from_year, to_year)

    _retire_source_year(validation, now)

    existing = index_by_key(directory.existing_new_classes)
    created = await materialize_classes(db, school, to_year, payload.new_classes, existing, directory.max_year)
    destinations = MappingProxyType({**existing, **created})

    current_by_id = {cls.id: cls for cls in directory.current_classes}
    students = await load_transition_students(db, school.id, list(current_by_id))

    unknown = set(exceptions) - {s.id for s in students}
    if unknown:
        raise NotFoundError(
            f"Exception refers to students not active in {from_year}: {', '.join(sorted(str(u) for u in unknown))}"
        )

    outcomes: Counter = Counter()
    unresolved: List[UnresolvedStudent] = []
    roster_additions: Dict[UUID, Tuple[SchoolClass, List[ClassStudent]]] = {}

    for student in students:
        current_class = current_by_id[student.class_id]
        resolution = resolve_student(
            student,
            current_class,
            exceptions.get(student.id),
            destinations,
            directory.max_year,
            from_year,
            to_year,
        )
        outcomes[resolution.outcome.value] += 1
        if not resolution.resolved:
            unresolved.append(
                UnresolvedStudent(
                    student_id=student.id,
                    destination_key=resolution.plan.destination_key,
                    requested_outcome=resolution.plan.outcome.value,
                    message=f"Destination class {resolution.plan.destination_key} not found in {to_year}",
                )
            )
            continue
        entry = apply_resolution(student, resolution, now)
        if entry is not None:
            dest = resolution.destination
            roster_additions.setdefault(dest.id, (dest, []))[1].append(entry)

    await _apply_teacher_assignments(db, school.id, payload.teacher_assignments, destinations)
    _replace_rosters(roster_additions)
    _archive_source_classes(directory.current_classes, now)
    await db.flush()

    return TransitionResult(
        from_year=from_year,
        to_year=to_year,
        students_processed=len(students),
        exceptions_applied=len(payload.exceptions),
        new_classes_created=len(created),
        outcomes=dict(outcomes),
        unresolved=unresolved,
    )


async def execute_transition(
    db: AsyncSession,
    school_id: UUID,
    payload: TransitionExecuteRequest,
    transaction_factory: Callable[[AsyncSession], TransactionContext] = TransactionContext,
    locks: TransitionLockRegistry = transition_locks,
) -> TransitionResult:
    """
    Execute a year transition atomically.
    Validation and not-found errors on the request are raised before the transaction begins;
    any later failure rolls everything back and is re-raised.
    """
    logger.debug(
        "Starting year transition execution",
        extra={"school_id": str(school_id), "from_year": payload.from_year, "to_year": payload.to_year},
    )
    await validate_transition_years(db, school_id, payload.from_year, payload.to_year)
    exceptions = _index_exceptions(payload.exceptions)

    async with locks.hold(school_id):
        tx = transaction_factory(db)
        try:
            async with tx:
                result = await _run_transition(tx.session, school_id, payload, exceptions)
        except ServiceError as e:
            logger.warning("Year transition for school %s rolled back: %s", school_id, e.message)
            raise
        except StaleDataError as e:
            logger.warning("Year transition for school %s lost a concurrent update", school_id)
            raise ConflictError("The school was modified by a concurrent year transition") from e
        except Exception as e:
            logger.exception("Error in year transition execution for school %s", school_id)
            raise TransactionFailure(str(e) or "Year transition failed") from e

    if result.unresolved:
        logger.error(
            "Year transition for school %s left %d students unresolved",
            school_id,
            len(result.unresolved),
            extra={"student_ids": [str(u.student_id) for u in result.unresolved]},
        )
    logger.info(
        "Year transition %s -> %s completed for school %s: %d students, %d classes created",
        result.from_year,
        result.to_year,
        school_id,
        result.students_processed,
        result.new_classes_created,
    )
    return result
