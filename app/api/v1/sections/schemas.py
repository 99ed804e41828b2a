from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field


class SectionAcademicYearResponse(BaseModel):
    year: str
    status: str
    max_students: Optional[int] = None

    class Config:
        from_attributes = True


class SectionResponse(BaseModel):
    id: UUID
    school_id: UUID
    name: str
    is_active: bool
    deactivated_at: Optional[datetime] = None
    academic_years: List[SectionAcademicYearResponse] = Field(default_factory=list)

    class Config:
        from_attributes = True


class SectionDeactivateRequest(BaseModel):
    """Deactivate a section: its active classes are archived and their students wait for a new class."""

    reason: Optional[str] = Field(None, max_length=255)
    academic_year: Optional[str] = Field(
        None,
        pattern=r"^\d{4}/\d{4}$",
        description="Academic year recorded in the students' history; defaults to the school's active year",
    )


class SectionDeactivateResponse(BaseModel):
    deactivated_section: str
    updated_classes: int
    updated_students: int
    timestamp: datetime
