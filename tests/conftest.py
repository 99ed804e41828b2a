import os
import uuid
from dataclasses import dataclass, field
from typing import AsyncGenerator, Dict, Iterable, Optional, Sequence, Tuple
from uuid import UUID

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.auth.models import User
from app.auth.security import create_access_token
from app.core.models import ClassStudent, School, SchoolAcademicYear, SchoolClass, SchoolSection, Student
from app.db.session import Base, get_db
from app.main import app


TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

FROM_YEAR = "2024/2025"
TO_YEAR = "2025/2026"

FIRST_NAMES = {1: "Marco", 2: "Giulia", 3: "Luca", 4: "Sara", 5: "Paolo"}
LAST_NAMES = {1: "Bianchi", 2: "Rossi", 3: "Verdi", 4: "Neri", 5: "Gallo"}


@dataclass
class SeededSchool:
    """Ids of a seeded school. Plain values so they stay usable after a rollback expires the ORM objects."""

    school_id: UUID
    admin_id: UUID
    teacher_id: UUID
    class_ids: Dict[str, UUID] = field(default_factory=dict)
    student_ids: Dict[str, UUID] = field(default_factory=dict)
    destination_class_ids: Dict[str, UUID] = field(default_factory=dict)

    @property
    def headers(self) -> Dict[str, str]:
        return auth_headers(self.admin_id, self.school_id, "admin")


def auth_headers(user_id: UUID, school_id: Optional[UUID], role: str) -> Dict[str, str]:
    subject = {"sub": str(user_id), "role": role}
    if school_id is not None:
        subject["school_id"] = str(school_id)
    token = create_access_token(subject=subject)
    return {"Authorization": f"Bearer {token}"}


async def seed_school(
    session: AsyncSession,
    *,
    school_type: str = "middle_school",
    sections: Sequence[str] = ("A",),
    grades: Iterable[int] = (1, 2, 3),
    destination_classes: Sequence[Tuple[int, str]] = (),
    capacity: int = 25,
) -> SeededSchool:
    """
    A school with FROM_YEAR (active) and TO_YEAR (planned), one class per (grade, section) in FROM_YEAR
    holding one active student each, an admin and a teacher.
    Student and class ids are keyed "{grade}-{section}".
    """
    suffix = uuid.uuid4().hex[:8]
    school = School(
        id=uuid.uuid4(),
        name=f"Istituto {suffix}",
        school_type=school_type,
        institution_type="none",
        region="Lazio",
        province="RM",
        address="Via Roma 1",
        default_max_students_per_class=capacity,
    )
    school.academic_years = [
        SchoolAcademicYear(id=uuid.uuid4(), year=FROM_YEAR, status="active"),
        SchoolAcademicYear(id=uuid.uuid4(), year=TO_YEAR, status="planned"),
    ]
    school.sections = [SchoolSection(id=uuid.uuid4(), name=s) for s in sections]
    session.add(school)

    admin = User(
        id=uuid.uuid4(),
        school_id=school.id,
        first_name="Anna",
        last_name="Ferri",
        email=f"admin-{suffix}@example.com",
        role="admin",
    )
    teacher = User(
        id=uuid.uuid4(),
        school_id=school.id,
        first_name="Carla",
        last_name="Conti",
        email=f"teacher-{suffix}@example.com",
        role="teacher",
    )
    session.add_all([admin, teacher])

    seeded = SeededSchool(school_id=school.id, admin_id=admin.id, teacher_id=teacher.id)
    for section in sections:
        for grade in grades:
            key = f"{grade}-{section}"
            school_class = SchoolClass(
                id=uuid.uuid4(),
                school_id=school.id,
                year=grade,
                section=section,
                academic_year=FROM_YEAR,
                status="active",
                main_teacher_id=teacher.id,
                capacity=capacity,
            )
            student = Student(
                id=uuid.uuid4(),
                school_id=school.id,
                class_id=school_class.id,
                first_name=FIRST_NAMES[grade],
                last_name=f"{LAST_NAMES[grade]} {section}",
                current_year=grade,
                section=section,
                status="active",
            )
            school_class.students.append(ClassStudent(id=uuid.uuid4(), student_id=student.id, status="active"))
            session.add_all([school_class, student])
            seeded.class_ids[key] = school_class.id
            seeded.student_ids[key] = student.id

    for grade, section in destination_classes:
        dest = SchoolClass(
            id=uuid.uuid4(),
            school_id=school.id,
            year=grade,
            section=section,
            academic_year=TO_YEAR,
            status="planned",
            capacity=capacity,
        )
        session.add(dest)
        seeded.destination_class_ids[f"{grade}-{section}"] = dest.id

    await session.commit()
    return seeded


async def reload(session: AsyncSession, model, obj_id: UUID):
    """Fresh copy of a row, overwriting whatever the shared session still holds in memory."""
    result = await session.execute(
        select(model).where(model.id == obj_id).execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def classes_in_year(session: AsyncSession, school_id: UUID, academic_year: str) -> Dict[str, SchoolClass]:
    result = await session.execute(
        select(SchoolClass)
        .where(SchoolClass.school_id == school_id, SchoolClass.academic_year == academic_year)
        .execution_options(populate_existing=True)
    )
    return {c.key: c for c in result.scalars().all()}


@pytest.fixture()
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Fresh in-memory database per test; the FastAPI app shares the same session."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        future=True,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async_session = async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session() as session:

        async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
            yield session

        app.dependency_overrides[get_db] = override_get_db
        yield session

    app.dependency_overrides.pop(get_db, None)
    await engine.dispose()


@pytest.fixture()
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client bound to the FastAPI app."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture()
async def seeded(db_session: AsyncSession) -> SeededSchool:
    """Middle school, section A, classes 1A/2A/3A in FROM_YEAR with one student each."""
    return await seed_school(db_session)
