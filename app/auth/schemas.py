from typing import Optional
from uuid import UUID

from pydantic import BaseModel


class CurrentUser(BaseModel):
    """Lightweight representation of the authenticated user for role checks.
    school_id scopes every school-level operation; platform users have none.
    """

    id: UUID
    school_id: Optional[UUID] = None
    role: str
    email: Optional[str] = None
