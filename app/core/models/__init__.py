from app.auth.models import User  # registers users table for foreign keys and relationships
from app.core.models.academic_year import SchoolAcademicYear
from app.core.models.class_model import ClassStudent, SchoolClass, class_teachers
from app.core.models.school import School
from app.core.models.section_model import SchoolSection, SectionAcademicYear
from app.core.models.student import Student, StudentClassChange, student_teachers

__all__ = [
    "User",
    "ClassStudent",
    "School",
    "SchoolAcademicYear",
    "SchoolClass",
    "SchoolSection",
    "SectionAcademicYear",
    "Student",
    "StudentClassChange",
    "class_teachers",
    "student_teachers",
]
