import uuid
from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Table, Uuid
from sqlalchemy.orm import relationship

from app.db.session import Base


student_teachers = Table(
    "student_teachers",
    Base.metadata,
    Column("student_id", Uuid, ForeignKey("students.id", ondelete="CASCADE"), primary_key=True),
    Column("teacher_id", Uuid, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
)


class Student(Base):
    """
    Student of a school, optionally placed in one class.
    Every change of class_id appends exactly one StudentClassChange row.
    """

    __tablename__ = "students"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    school_id = Column(Uuid, ForeignKey("schools.id", ondelete="CASCADE"), nullable=False)
    class_id = Column(Uuid, ForeignKey("classes.id", ondelete="SET NULL"), nullable=True, index=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=True, unique=True)
    current_year = Column(Integer, nullable=True, index=True)
    section = Column(String(1), nullable=True)
    # pending | active | inactive | transferred | graduated
    status = Column(String(20), nullable=False, default="pending")
    main_teacher_id = Column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    needs_class_assignment = Column(Boolean, nullable=False, default=False)
    last_class_change_date = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    teachers = relationship("User", secondary=student_teachers, lazy="selectin")
    class_change_history = relationship(
        "StudentClassChange",
        back_populates="student",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="StudentClassChange.date",
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


class StudentClassChange(Base):
    """Append-only log entry of a student's class change and its cause."""

    __tablename__ = "student_class_changes"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    student_id = Column(Uuid, ForeignKey("students.id", ondelete="CASCADE"), nullable=False)
    from_class_id = Column(Uuid, ForeignKey("classes.id", ondelete="SET NULL"), nullable=True)
    to_class_id = Column(Uuid, ForeignKey("classes.id", ondelete="SET NULL"), nullable=True)
    from_year = Column(Integer, nullable=True)
    to_year = Column(Integer, nullable=True)
    from_section = Column(String(1), nullable=True)
    to_section = Column(String(1), nullable=True)
    date = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    reason = Column(String(255), nullable=False)
    academic_year = Column(String(9), nullable=False)

    student = relationship("Student", back_populates="class_change_history")
