import uuid
from datetime import datetime

from sqlalchemy import Column, Date, DateTime, ForeignKey, String, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship

from app.db.session import Base


class SchoolAcademicYear(Base):
    """
    Academic year registered on a school, identified by a 'YYYY/YYYY' string.
    A year transition always references two registered years; the source year is archived by it.
    """

    __tablename__ = "school_academic_years"
    __table_args__ = (
        UniqueConstraint("school_id", "year", name="uq_school_academic_year"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    school_id = Column(Uuid, ForeignKey("schools.id", ondelete="CASCADE"), nullable=False)
    year = Column(String(9), nullable=False)  # e.g. "2024/2025"
    status = Column(String(20), nullable=False, default="planned")  # active | planned | archived
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    created_by = Column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    school = relationship("School", back_populates="academic_years")
