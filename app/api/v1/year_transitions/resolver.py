"""
Per-student decision logic of a year transition.

Decision order (first match wins):
    1. an exception for the student (retained, section_change, custom, transferred)
    2. automatic graduation when the current grade is at or above max_year
    3. standard promotion to (year + 1, same section)

Resolvers only read the destination map and return plans; apply_resolution mutates the
in-memory student. Nothing here talks to the database.
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Dict, Mapping, Optional

from app.core.enums import StudentStatus, TransitionOutcome
from app.core.models import ClassStudent, SchoolClass, Student, StudentClassChange

from .directory import class_key
from .schemas import (
    CustomException,
    RetainedException,
    SectionChangeException,
    TransferredException,
    TransitionException,
)

logger = logging.getLogger(__name__)

GRADUATION_REASON = "Diplomato"
PROMOTION_REASON = "Promozione standard"


@dataclass(frozen=True)
class HistoryFields:
    to_year: Optional[int]
    to_section: Optional[str]
    reason: str
    academic_year: str


@dataclass(frozen=True)
class TransitionPlan:
    """What one rule wants for a student: a destination key (None when leaving the school) and its history fields."""

    outcome: TransitionOutcome
    destination_key: Optional[str]
    history: HistoryFields
    leaving_status: Optional[str] = None


@dataclass(frozen=True)
class StudentResolution:
    student_id: uuid.UUID
    outcome: TransitionOutcome
    from_class: SchoolClass
    plan: TransitionPlan
    destination: Optional[SchoolClass] = None

    @property
    def resolved(self) -> bool:
        return self.outcome is not TransitionOutcome.UNRESOLVED

    @property
    def leaves_school(self) -> bool:
        return self.resolved and self.plan.destination_key is None


@dataclass(frozen=True)
class _Context:
    current_year: int
    current_section: str
    from_year: str
    to_year: str


def _resolve_retained(exc: RetainedException, ctx: _Context) -> TransitionPlan:
    return TransitionPlan(
        outcome=TransitionOutcome.RETAINED,
        destination_key=class_key(ctx.current_year, ctx.current_section),
        history=HistoryFields(
            to_year=ctx.current_year,
            to_section=ctx.current_section,
            reason=exc.reason or "Bocciatura",
            academic_year=ctx.to_year,
        ),
    )


def _resolve_section_change(exc: SectionChangeException, ctx: _Context) -> TransitionPlan:
    return TransitionPlan(
        outcome=TransitionOutcome.SECTION_CHANGED,
        destination_key=class_key(ctx.current_year, exc.destination_section),
        history=HistoryFields(
            to_year=ctx.current_year,
            to_section=exc.destination_section,
            reason=exc.reason or "Cambio sezione",
            academic_year=ctx.to_year,
        ),
    )


def _resolve_custom(exc: CustomException, ctx: _Context) -> TransitionPlan:
    return TransitionPlan(
        outcome=TransitionOutcome.CUSTOM,
        destination_key=class_key(exc.destination_year, exc.destination_section),
        history=HistoryFields(
            to_year=exc.destination_year,
            to_section=exc.destination_section,
            reason=exc.reason or "Destinazione personalizzata",
            academic_year=ctx.to_year,
        ),
    )


def _resolve_transferred(exc: TransferredException, ctx: _Context) -> TransitionPlan:
    # The transfer happens before the new year starts, so it is recorded in the old one
    return TransitionPlan(
        outcome=TransitionOutcome.TRANSFERRED,
        destination_key=None,
        history=HistoryFields(
            to_year=None,
            to_section=None,
            reason=exc.reason or "Trasferito",
            academic_year=ctx.from_year,
        ),
        leaving_status=StudentStatus.transferred.value,
    )


def _graduation(ctx: _Context) -> TransitionPlan:
    return TransitionPlan(
        outcome=TransitionOutcome.GRADUATED,
        destination_key=None,
        history=HistoryFields(
            to_year=None,
            to_section=None,
            reason=GRADUATION_REASON,
            academic_year=ctx.from_year,
        ),
        leaving_status=StudentStatus.graduated.value,
    )


def _standard_promotion(ctx: _Context) -> TransitionPlan:
    return TransitionPlan(
        outcome=TransitionOutcome.PROMOTED,
        destination_key=class_key(ctx.current_year + 1, ctx.current_section),
        history=HistoryFields(
            to_year=ctx.current_year + 1,
            to_section=ctx.current_section,
            reason=PROMOTION_REASON,
            academic_year=ctx.to_year,
        ),
    )


EXCEPTION_RESOLVERS: Dict[type, Callable[..., TransitionPlan]] = {
    RetainedException: _resolve_retained,
    SectionChangeException: _resolve_section_change,
    CustomException: _resolve_custom,
    TransferredException: _resolve_transferred,
}


def plan_student(
    current_class: SchoolClass,
    exception: Optional[TransitionException],
    max_year: int,
    from_year: str,
    to_year: str,
) -> TransitionPlan:
    ctx = _Context(
        current_year=current_class.year,
        current_section=current_class.section,
        from_year=from_year,
        to_year=to_year,
    )
    if exception is not None:
        return EXCEPTION_RESOLVERS[type(exception)](exception, ctx)
    if ctx.current_year >= max_year:
        return _graduation(ctx)
    return _standard_promotion(ctx)


def resolve_student(
    student: Student,
    current_class: SchoolClass,
    exception: Optional[TransitionException],
    destinations: Mapping[str, SchoolClass],
    max_year: int,
    from_year: str,
    to_year: str,
) -> StudentResolution:
    """Decide where a student goes. Missing destination classes yield an UNRESOLVED resolution."""
    plan = plan_student(current_class, exception, max_year, from_year, to_year)

    if plan.destination_key is None:
        return StudentResolution(
            student_id=student.id,
            outcome=plan.outcome,
            from_class=current_class,
            plan=plan,
        )

    destination = destinations.get(plan.destination_key)
    if destination is None:
        logger.error(
            "Destination class not found for student %s (%s -> %s)",
            student.id,
            plan.outcome.value,
            plan.destination_key,
            extra={
                "student_id": str(student.id),
                "outcome": plan.outcome.value,
                "destination_key": plan.destination_key,
            },
        )
        return StudentResolution(
            student_id=student.id,
            outcome=TransitionOutcome.UNRESOLVED,
            from_class=current_class,
            plan=plan,
        )

    return StudentResolution(
        student_id=student.id,
        outcome=plan.outcome,
        from_class=current_class,
        plan=plan,
        destination=destination,
    )


def apply_resolution(
    student: Student,
    resolution: StudentResolution,
    now: datetime,
) -> Optional[ClassStudent]:
    """
    Apply a resolution to the in-memory student and append exactly one history entry.
    Returns the roster entry to add to the destination class, or None (left school / unresolved).
    """
    if not resolution.resolved:
        return None

    history = resolution.plan.history
    destination = resolution.destination
    student.class_change_history.append(
        StudentClassChange(
            id=uuid.uuid4(),
            from_class_id=resolution.from_class.id,
            to_class_id=destination.id if destination else None,
            from_year=resolution.from_class.year,
            to_year=history.to_year,
            from_section=resolution.from_class.section,
            to_section=history.to_section,
            date=now,
            reason=history.reason,
            academic_year=history.academic_year,
        )
    )
    student.last_class_change_date = now

    if destination is None:
        student.class_id = None
        student.section = None
        student.status = resolution.plan.leaving_status
        return None

    student.class_id = destination.id
    student.section = history.to_section
    student.current_year = history.to_year
    return ClassStudent(
        id=uuid.uuid4(),
        student_id=student.id,
        joined_at=now,
        status="active",
    )
