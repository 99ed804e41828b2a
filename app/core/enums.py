from enum import Enum


class SchoolType(str, Enum):
    MIDDLE_SCHOOL = "middle_school"
    HIGH_SCHOOL = "high_school"


class StudentStatus(str, Enum):
    pending = "pending"
    active = "active"
    inactive = "inactive"
    transferred = "transferred"
    graduated = "graduated"


class TransitionOutcome(str, Enum):
    PROMOTED = "promoted"
    RETAINED = "retained"
    SECTION_CHANGED = "section_changed"
    CUSTOM = "custom"
    TRANSFERRED = "transferred"
    GRADUATED = "graduated"
    UNRESOLVED = "unresolved"


def max_year_for(school_type: str) -> int:
    """Highest grade level for a school type; students above it graduate."""
    return 3 if school_type == SchoolType.MIDDLE_SCHOOL.value else 5
