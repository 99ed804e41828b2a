"""Per-student decisions of a year transition. Pure: works on transient model instances."""

import uuid
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Dict

import pytest
from pydantic import ValidationError as PydanticValidationError

from app.api.v1.year_transitions.resolver import apply_resolution, resolve_student
from app.api.v1.year_transitions.schemas import (
    CustomException,
    RetainedException,
    SectionChangeException,
    TransferredException,
    TransitionExecuteRequest,
)
from app.core.enums import TransitionOutcome
from app.core.models import SchoolClass, Student

FROM_YEAR = "2024/2025"
TO_YEAR = "2025/2026"
NOW = datetime(2025, 9, 1, tzinfo=timezone.utc)


def _class(year: int, section: str, academic_year: str = FROM_YEAR) -> SchoolClass:
    return SchoolClass(id=uuid.uuid4(), year=year, section=section, academic_year=academic_year, status="active")


def _student(cls: SchoolClass) -> Student:
    return Student(
        id=uuid.uuid4(),
        class_id=cls.id,
        first_name="Marco",
        last_name="Bianchi",
        current_year=cls.year,
        section=cls.section,
        status="active",
    )


def _destinations(*keys: str) -> MappingProxyType:
    built: Dict[str, SchoolClass] = {}
    for key in keys:
        year, section = key.split("-")
        built[key] = _class(int(year), section, TO_YEAR)
    return MappingProxyType(built)


def _resolve(student: Student, current: SchoolClass, exception=None, destinations=None, max_year: int = 3):
    return resolve_student(
        student,
        current,
        exception,
        destinations if destinations is not None else _destinations("1-A", "2-A", "3-A", "1-B", "2-B", "3-B"),
        max_year,
        FROM_YEAR,
        TO_YEAR,
    )


def test_standard_promotion() -> None:
    current = _class(1, "A")
    student = _student(current)
    destinations = _destinations("2-A")

    resolution = _resolve(student, current, destinations=destinations)
    assert resolution.outcome is TransitionOutcome.PROMOTED
    assert resolution.destination is destinations["2-A"]

    entry = apply_resolution(student, resolution, NOW)
    assert entry is not None
    assert entry.student_id == student.id
    assert entry.status == "active"
    assert student.class_id == destinations["2-A"].id
    assert student.current_year == 2
    assert student.section == "A"
    assert student.status == "active"

    assert len(student.class_change_history) == 1
    history = student.class_change_history[0]
    assert (history.from_year, history.to_year) == (1, 2)
    assert history.from_class_id == current.id
    assert history.to_class_id == destinations["2-A"].id
    assert history.reason == "Promozione standard"
    assert history.academic_year == TO_YEAR


@pytest.mark.parametrize(
    "school_max_year, grade, expected",
    [
        (3, 3, TransitionOutcome.GRADUATED),
        (3, 2, TransitionOutcome.PROMOTED),
        (5, 3, TransitionOutcome.PROMOTED),
        (5, 5, TransitionOutcome.GRADUATED),
    ],
)
def test_graduation_boundary(school_max_year: int, grade: int, expected: TransitionOutcome) -> None:
    current = _class(grade, "A")
    destinations = _destinations("3-A", "4-A", "5-A")
    resolution = _resolve(_student(current), current, destinations=destinations, max_year=school_max_year)
    assert resolution.outcome is expected


def test_graduation_leaves_school() -> None:
    current = _class(3, "A")
    student = _student(current)
    resolution = _resolve(student, current)

    assert resolution.leaves_school
    assert apply_resolution(student, resolution, NOW) is None
    assert student.status == "graduated"
    assert student.class_id is None
    assert student.section is None
    history = student.class_change_history[0]
    assert history.reason == "Diplomato"
    assert history.to_class_id is None
    assert history.academic_year == FROM_YEAR


def test_retained_stays_in_same_grade() -> None:
    current = _class(1, "A")
    student = _student(current)
    destinations = _destinations("1-A", "2-A")
    exc = RetainedException(type="retained", student_id=student.id, reason="Non ammesso")

    resolution = _resolve(student, current, exc, destinations)
    assert resolution.outcome is TransitionOutcome.RETAINED
    apply_resolution(student, resolution, NOW)

    assert student.class_id == destinations["1-A"].id
    assert student.current_year == 1
    history = student.class_change_history[0]
    assert history.from_year == history.to_year == 1
    assert history.reason == "Non ammesso"
    assert history.academic_year == TO_YEAR


def test_retained_default_reason() -> None:
    current = _class(2, "A")
    student = _student(current)
    resolution = _resolve(student, current, RetainedException(type="retained", student_id=student.id))
    apply_resolution(student, resolution, NOW)
    assert student.class_change_history[0].reason == "Bocciatura"


def test_section_change_keeps_grade() -> None:
    current = _class(2, "A")
    student = _student(current)
    destinations = _destinations("2-B", "3-A")
    exc = SectionChangeException(type="section_change", student_id=student.id, destination_section="B")

    resolution = _resolve(student, current, exc, destinations)
    assert resolution.outcome is TransitionOutcome.SECTION_CHANGED
    apply_resolution(student, resolution, NOW)

    assert student.class_id == destinations["2-B"].id
    assert student.current_year == 2
    assert student.section == "B"
    assert student.class_change_history[0].reason == "Cambio sezione"


def test_custom_destination() -> None:
    current = _class(1, "A")
    student = _student(current)
    destinations = _destinations("3-B")
    exc = CustomException(type="custom", student_id=student.id, destination_year=3, destination_section="B")

    resolution = _resolve(student, current, exc, destinations)
    assert resolution.outcome is TransitionOutcome.CUSTOM
    apply_resolution(student, resolution, NOW)

    assert student.class_id == destinations["3-B"].id
    assert (student.current_year, student.section) == (3, "B")
    assert student.class_change_history[0].reason == "Destinazione personalizzata"


def test_transferred_takes_precedence_over_graduation() -> None:
    current = _class(3, "A")
    student = _student(current)
    exc = TransferredException(type="transferred", student_id=student.id)

    resolution = _resolve(student, current, exc)
    assert resolution.outcome is TransitionOutcome.TRANSFERRED
    assert apply_resolution(student, resolution, NOW) is None

    assert student.status == "transferred"
    assert student.class_id is None
    history = student.class_change_history[0]
    assert history.reason == "Trasferito"
    assert history.academic_year == FROM_YEAR


def test_missing_destination_is_unresolved() -> None:
    """No destination class: the student is left untouched and no history is written."""
    current = _class(1, "A")
    student = _student(current)
    original_class_id = student.class_id

    resolution = _resolve(student, current, destinations=_destinations())
    assert resolution.outcome is TransitionOutcome.UNRESOLVED
    assert not resolution.resolved
    assert resolution.plan.outcome is TransitionOutcome.PROMOTED
    assert resolution.plan.destination_key == "2-A"

    assert apply_resolution(student, resolution, NOW) is None
    assert student.class_id == original_class_id
    assert student.status == "active"
    assert student.current_year == 1
    assert len(student.class_change_history) == 0


def test_exceptions_parsed_by_type_tag() -> None:
    student_id = uuid.uuid4()
    payload = TransitionExecuteRequest.model_validate(
        {
            "fromYear": FROM_YEAR,
            "toYear": TO_YEAR,
            "exceptions": [
                {"studentId": str(student_id), "type": "retained", "reason": "Non ammesso"},
                {"studentId": str(student_id), "type": "section_change", "destinationSection": "B"},
                {"studentId": str(student_id), "type": "custom", "destinationYear": 2, "destinationSection": "C"},
                {"studentId": str(student_id), "type": "transferred"},
            ],
        }
    )
    assert [type(e) for e in payload.exceptions] == [
        RetainedException,
        SectionChangeException,
        CustomException,
        TransferredException,
    ]
    assert payload.exceptions[2].destination_year == 2


@pytest.mark.parametrize(
    "exception",
    [
        {"type": "expelled"},
        {"type": "section_change"},
        {"type": "section_change", "destinationSection": "ab"},
        {"type": "custom", "destinationYear": 6, "destinationSection": "A"},
    ],
)
def test_malformed_exceptions_rejected(exception: dict) -> None:
    with pytest.raises(PydanticValidationError):
        TransitionExecuteRequest.model_validate(
            {"fromYear": FROM_YEAR, "toYear": TO_YEAR, "exceptions": [{"studentId": str(uuid.uuid4()), **exception}]}
        )
