"""School classes per academic year. Model named SchoolClass to avoid Python 'class' keyword."""
import uuid
from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Table, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship

from app.db.session import Base


class_teachers = Table(
    "class_teachers",
    Base.metadata,
    Column("class_id", Uuid, ForeignKey("classes.id", ondelete="CASCADE"), primary_key=True),
    Column("teacher_id", Uuid, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
)


class SchoolClass(Base):
    """
    One (year, section) class of a school in one academic year, e.g. 2A in 2025/2026.
    Created for a destination year by a year transition; archived, never deleted, when its year is superseded.
    """

    __tablename__ = "classes"
    __table_args__ = (
        UniqueConstraint("school_id", "year", "section", "academic_year", name="uq_class_school_year_section_ay"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    school_id = Column(Uuid, ForeignKey("schools.id", ondelete="CASCADE"), nullable=False)
    year = Column(Integer, nullable=False)  # grade level 1..5
    section = Column(String(1), nullable=False)
    academic_year = Column(String(9), nullable=False)
    status = Column(String(20), nullable=False, default="active")  # active | planned | pending | archived
    is_active = Column(Boolean, nullable=False, default=True)
    main_teacher_id = Column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    main_teacher_is_temporary = Column(Boolean, nullable=False, default=False)
    capacity = Column(Integer, nullable=False, default=25)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    main_teacher = relationship("User", foreign_keys=[main_teacher_id], lazy="selectin")
    teachers = relationship("User", secondary=class_teachers, lazy="selectin")
    students = relationship(
        "ClassStudent",
        back_populates="school_class",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="ClassStudent.joined_at",
    )

    @property
    def key(self) -> str:
        return f"{self.year}-{self.section}"


class ClassStudent(Base):
    """Roster entry of a class. Mirrors students.class_id; both are changed together."""

    __tablename__ = "class_students"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    class_id = Column(Uuid, ForeignKey("classes.id", ondelete="CASCADE"), nullable=False)
    student_id = Column(Uuid, ForeignKey("students.id", ondelete="CASCADE"), nullable=False)
    joined_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    left_at = Column(DateTime(timezone=True), nullable=True)
    status = Column(String(20), nullable=False, default="active")  # active | transferred | graduated

    school_class = relationship("SchoolClass", back_populates="students")
