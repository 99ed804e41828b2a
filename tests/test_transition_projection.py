"""Preview projection: destination classes, promotions, graduations and warnings."""

import uuid
from typing import List, Sequence

from app.api.v1.year_transitions.directory import ClassDirectory, index_by_key
from app.api.v1.year_transitions.projection import calculate_projection, project_missing_classes
from app.auth.models import User
from app.core.models import SchoolClass, Student


def _class(year: int, section: str, academic_year: str = "2024/2025", teacher: User = None) -> SchoolClass:
    return SchoolClass(
        id=uuid.uuid4(),
        year=year,
        section=section,
        academic_year=academic_year,
        status="active",
        main_teacher_id=teacher.id if teacher else None,
        main_teacher=teacher,
    )


def _student(cls: SchoolClass, first_name: str) -> Student:
    return Student(
        id=uuid.uuid4(),
        class_id=cls.id,
        first_name=first_name,
        last_name="Bianchi",
        current_year=cls.year,
        section=cls.section,
        status="active",
    )


def _directory(current: List[SchoolClass], existing: Sequence[SchoolClass] = (), max_year: int = 3) -> ClassDirectory:
    return ClassDirectory(
        current_classes=current,
        existing_new_classes=list(existing),
        sections=sorted({c.section for c in current} | {c.section for c in existing}),
        max_year=max_year,
    )


def test_middle_school_single_section() -> None:
    """Classes 1A/2A/3A with one student each, nothing created in the new year yet."""
    teacher = User(id=uuid.uuid4(), first_name="Carla", last_name="Conti", email="carla@example.com", role="teacher")
    c1, c2, c3 = _class(1, "A", teacher=teacher), _class(2, "A"), _class(3, "A")
    s1, s2, s3 = _student(c1, "Uno"), _student(c2, "Due"), _student(c3, "Tre")

    preview = calculate_projection(_directory([c1, c2, c3]), [s1, s2, s3])

    assert [(c.year, c.section) for c in preview.new_classes] == [(1, "A"), (2, "A"), (3, "A")]
    assert all(c.is_new and c.id is None and c.status == "planned" for c in preview.new_classes)
    assert [c.type for c in preview.new_classes] == ["new_enrollment", "promotion", "promotion"]
    assert preview.new_classes[1].source_class_id == c1.id
    assert preview.new_classes[1].main_teacher == teacher.id
    assert preview.new_classes[2].source_class_id == c2.id

    assert [g.id for g in preview.graduating_students] == [s3.id]
    promoted = {p.id: p for p in preview.promoted_students}
    assert set(promoted) == {s1.id, s2.id}
    assert (promoted[s1.id].new_year, promoted[s1.id].new_section) == (2, "A")
    assert promoted[s2.id].new_year == 3
    assert promoted[s1.id].new_class_id is None

    counts = {c.year: c.student_count for c in preview.new_classes}
    assert counts == {1: 0, 2: 1, 3: 1}
    assert preview.warnings == []
    assert preview.current_classes[0].main_teacher_name == "Carla Conti"


def test_existing_destination_classes_are_used() -> None:
    c1 = _class(1, "A")
    existing_2a = _class(2, "A", academic_year="2025/2026")
    s1 = _student(c1, "Uno")

    preview = calculate_projection(_directory([c1], [existing_2a]), [s1])

    by_key = {(c.year, c.section): c for c in preview.new_classes}
    assert by_key[(2, "A")].id == existing_2a.id
    assert by_key[(2, "A")].is_new is False
    assert by_key[(2, "A")].student_count == 1
    assert by_key[(1, "A")].is_new is True
    assert preview.promoted_students[0].new_class_id == existing_2a.id


def test_no_promotion_target_above_max_year() -> None:
    current = [_class(2, "B"), _class(3, "B")]
    projected = project_missing_classes(_directory(current))
    assert [(p.year, p.section, p.type) for p in projected] == [
        (1, "B", "new_enrollment"),
        (3, "B", "promotion"),
    ]


def test_high_school_promotes_to_fourth_year() -> None:
    c3 = _class(3, "A")
    s3 = _student(c3, "Tre")
    preview = calculate_projection(_directory([c3], max_year=5), [s3])
    assert preview.graduating_students == []
    assert preview.promoted_students[0].new_year == 4


def test_student_without_valid_class_warns() -> None:
    c1 = _class(1, "A")
    orphan = _student(_class(1, "Z"), "Orfano")

    preview = calculate_projection(_directory([c1]), [orphan])

    assert preview.promoted_students == []
    assert len(preview.warnings) == 1
    warning = preview.warnings[0]
    assert warning.student_id == orphan.id
    assert warning.message == "Student Orfano Bianchi has no valid class"


def test_duplicate_destination_first_in_order_wins() -> None:
    first = _class(2, "A", academic_year="2025/2026")
    second = _class(2, "A", academic_year="2025/2026")
    assert index_by_key([first, second])["2-A"] is first


def test_preview_serializes_camel_case() -> None:
    c1 = _class(1, "A")
    preview = calculate_projection(_directory([c1]), [_student(c1, "Uno")])
    dumped = preview.model_dump(by_alias=True)
    assert set(dumped) == {"currentClasses", "newClasses", "promotedStudents", "graduatingStudents", "warnings"}
    assert "isNew" in dumped["newClasses"][0]
    assert "newYear" in dumped["promotedStudents"][0]
