"""School-scoped sections (single uppercase letter: A, B, C). Per-year capacity lives in section_academic_years."""
import uuid
from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship

from app.db.session import Base


class SchoolSection(Base):
    """Section of a school. Deactivation archives its classes; it is never deleted."""

    __tablename__ = "school_sections"
    __table_args__ = (
        UniqueConstraint("school_id", "name", name="uq_school_section_name"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    school_id = Column(Uuid, ForeignKey("schools.id", ondelete="CASCADE"), nullable=False)
    name = Column(String(1), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    deactivated_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)

    school = relationship("School", back_populates="sections")
    academic_years = relationship(
        "SectionAcademicYear",
        back_populates="section",
        cascade="all, delete-orphan",
        lazy="selectin",
    )


class SectionAcademicYear(Base):
    """Capacity and lifecycle of a section within one academic year."""

    __tablename__ = "section_academic_years"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    section_id = Column(Uuid, ForeignKey("school_sections.id", ondelete="CASCADE"), nullable=False)
    year = Column(String(9), nullable=False)
    status = Column(String(20), nullable=False, default="planned")
    max_students = Column(Integer, nullable=True)  # 1..40
    activated_at = Column(DateTime(timezone=True), nullable=True)
    deactivated_at = Column(DateTime(timezone=True), nullable=True)
    notes = Column(Text, nullable=True)

    section = relationship("SchoolSection", back_populates="academic_years")
