import uuid
from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, String, UniqueConstraint, Uuid

from app.db.session import Base


class User(Base):
    """Staff user of a school: admin, manager or teacher. Teachers are referenced by classes and students."""

    __tablename__ = "users"
    __table_args__ = (
        UniqueConstraint("email", name="uq_user_email"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    # Owning school; null for platform-level users
    school_id = Column(Uuid, ForeignKey("schools.id", ondelete="CASCADE"), nullable=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=False)
    # admin | manager | teacher
    role = Column(String(50), nullable=False)
    status = Column(String(20), nullable=False, default="ACTIVE")
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)

    @property
    def full_name(self) -> str:
        return f"{self.first_name or ''} {self.last_name or ''}"
