from datetime import datetime
from typing import Annotated, Dict, List, Literal, Optional, Union
from uuid import UUID

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel


SECTION_PATTERN = r"^[A-Z]$"


class CamelModel(BaseModel):
    """Year-transition payloads are exchanged with camelCase keys (fromYear, newClassId, ...)."""

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True


# ---- preview ----


class RosterEntryResponse(CamelModel):
    student_id: UUID
    joined_at: Optional[datetime] = None
    status: str


class CurrentClassResponse(CamelModel):
    id: UUID
    year: int
    section: str
    students: List[RosterEntryResponse] = Field(default_factory=list)
    main_teacher: Optional[UUID] = None
    main_teacher_name: Optional[str] = None
    main_teacher_email: Optional[str] = None
    status: str


class NewClassResponse(CamelModel):
    """Destination class: an existing class of the new year, or a placeholder (is_new) to be created."""

    id: Optional[UUID] = Field(None, description="Null for placeholders that do not exist yet")
    year: int
    section: str
    is_new: bool = False
    student_count: int = 0
    main_teacher: Optional[UUID] = None
    main_teacher_name: Optional[str] = None
    status: str
    type: Optional[Literal["new_enrollment", "promotion"]] = None
    source_class_id: Optional[UUID] = None


class PromotedStudentResponse(CamelModel):
    id: UUID
    first_name: str
    last_name: str
    current_year: int
    current_section: str
    new_year: int
    new_section: str
    class_id: UUID
    new_class_id: Optional[UUID] = None


class GraduatingStudentResponse(CamelModel):
    id: UUID
    first_name: str
    last_name: str
    current_year: int
    current_section: str
    status: str = "graduated"
    class_id: UUID


class TransitionWarning(CamelModel):
    """Non-fatal preview finding; the preview still succeeds."""

    message: str
    details: str
    student_id: UUID


class TransitionPreview(CamelModel):
    current_classes: List[CurrentClassResponse] = Field(default_factory=list)
    new_classes: List[NewClassResponse] = Field(default_factory=list)
    promoted_students: List[PromotedStudentResponse] = Field(default_factory=list)
    graduating_students: List[GraduatingStudentResponse] = Field(default_factory=list)
    warnings: List[TransitionWarning] = Field(default_factory=list)


class TransitionPreviewResponse(CamelModel):
    status: str = "success"
    data: TransitionPreview


# ---- execution ----


class _ExceptionBase(CamelModel):
    student_id: UUID
    reason: Optional[str] = Field(None, max_length=255)


class RetainedException(_ExceptionBase):
    """Student repeats the same grade and section in the new academic year."""

    type: Literal["retained"]


class SectionChangeException(_ExceptionBase):
    """Student stays in the same grade but moves to another section."""

    type: Literal["section_change"]
    destination_section: str = Field(..., pattern=SECTION_PATTERN)


class CustomException(_ExceptionBase):
    """Student is placed in an explicit (year, section) of the new academic year."""

    type: Literal["custom"]
    destination_year: int = Field(..., ge=1, le=5)
    destination_section: str = Field(..., pattern=SECTION_PATTERN)


class TransferredException(_ExceptionBase):
    """Student leaves the school before the new academic year starts."""

    type: Literal["transferred"]


TransitionException = Annotated[
    Union[RetainedException, SectionChangeException, CustomException, TransferredException],
    Field(discriminator="type"),
]


class NewClassRequest(CamelModel):
    year: int = Field(..., ge=1, le=5)
    section: str = Field(..., pattern=SECTION_PATTERN)
    main_teacher_id: Optional[UUID] = None
    is_new: bool = True


class TransitionExecuteRequest(CamelModel):
    # Year strings are checked by the transition validator so malformed values surface as 400, not 422
    from_year: Optional[str] = None
    to_year: Optional[str] = None
    exceptions: List[TransitionException] = Field(default_factory=list)
    teacher_assignments: Dict[UUID, UUID] = Field(
        default_factory=dict,
        description="Destination class id -> teacher user id",
    )
    new_classes: List[NewClassRequest] = Field(default_factory=list)


class UnresolvedStudent(CamelModel):
    """Student left unchanged because no destination class matched; must be reconciled manually."""

    student_id: UUID
    destination_key: Optional[str] = None
    requested_outcome: str
    message: str


class TransitionResult(CamelModel):
    from_year: str
    to_year: str
    students_processed: int
    exceptions_applied: int
    new_classes_created: int
    outcomes: Dict[str, int] = Field(default_factory=dict)
    unresolved: List[UnresolvedStudent] = Field(default_factory=list)


class TransitionExecuteResponse(CamelModel):
    status: str = "success"
    message: str
    data: TransitionResult
