from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field


class ClassStudentResponse(BaseModel):
    student_id: UUID
    joined_at: datetime
    left_at: Optional[datetime] = None
    status: str

    class Config:
        from_attributes = True


class ClassResponse(BaseModel):
    id: UUID
    school_id: UUID
    year: int
    section: str
    academic_year: str
    status: str
    is_active: bool
    main_teacher_id: Optional[UUID] = None
    main_teacher_is_temporary: bool = False
    capacity: int
    teacher_ids: List[UUID] = Field(default_factory=list)
    students: List[ClassStudentResponse] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime


class ClassStudentAdd(BaseModel):
    student_id: UUID
    reason: Optional[str] = Field(None, max_length=255, description="Recorded in the student's class change history")


class ClassStudentRemove(BaseModel):
    reason: Optional[str] = Field(None, max_length=255)
