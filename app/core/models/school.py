import uuid
from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, Integer, String, Uuid
from sqlalchemy.orm import relationship

from app.db.session import Base


class School(Base):
    """
    A school owns its academic years and sections.
    school_type bounds the grade levels of its classes (middle_school: 1-3, high_school: 1-5).
    version is bumped on every year transition so two concurrent transitions cannot both commit.
    """

    __tablename__ = "schools"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False, unique=True)
    school_type = Column(String(30), nullable=False)  # middle_school | high_school
    institution_type = Column(String(30), nullable=False, default="none")
    region = Column(String(100), nullable=False)
    province = Column(String(100), nullable=False)
    address = Column(String(255), nullable=False)
    default_max_students_per_class = Column(Integer, nullable=False, default=25)
    is_active = Column(Boolean, nullable=False, default=True)
    version = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    academic_years = relationship(
        "SchoolAcademicYear",
        back_populates="school",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="SchoolAcademicYear.year",
    )
    sections = relationship(
        "SchoolSection",
        back_populates="school",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="SchoolSection.name",
    )

    __mapper_args__ = {"version_id_col": version}

    def find_academic_year(self, year: str):
        """Registered academic year record for a 'YYYY/YYYY' string, or None."""
        for ay in self.academic_years:
            if ay.year == year:
                return ay
        return None
