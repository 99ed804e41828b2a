from datetime import date, datetime
from typing import Literal, Optional
from uuid import UUID

from pydantic import BaseModel, Field


class AcademicYearCreate(BaseModel):
    """Register an academic year on a school. year must be unique per school."""

    year: str = Field(..., pattern=r"^\d{4}/\d{4}$", description="e.g. 2025/2026")
    status: Literal["planned", "active"] = Field("planned", description="New years are planned unless opened directly")
    start_date: Optional[date] = Field(None, description="Academic year start date")
    end_date: Optional[date] = Field(None, description="Academic year end date (must be after start_date)")


class AcademicYearResponse(BaseModel):
    id: UUID
    school_id: UUID
    year: str
    status: str
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    created_at: datetime
    created_by: Optional[UUID] = None

    class Config:
        from_attributes = True
