"""
Users Module

Local user rows mirroring identity-provider accounts. The row id is the
identity provider's user id; the role drives every authorization check.
"""

from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import String, DateTime, Uuid, func
from database.engine import Base, utcnow
from datetime import datetime
from enum import Enum as PyEnum
from typing import TYPE_CHECKING
import uuid

if TYPE_CHECKING:
    from database.models.applications import Application
    from database.models.jobs import Job
    from database.models.notifications import Notification


# ==================== User Role ===================== #
class UserRole(str, PyEnum):
    CANDIDATE = "candidate"  # job applicant
    RECRUITER = "recruiter"  # posts jobs and reviews applications
    ADMIN = "admin"  # platform admin, read-only statistics


class User(Base):
    """Identity record with a single role."""

    __tablename__: str = "users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    email: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    role: Mapped[str] = mapped_column(String(50), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now()
    )

    # Relationships
    jobs: Mapped[list["Job"]] = relationship("Job", back_populates="poster")
    applications: Mapped[list["Application"]] = relationship(
        "Application", back_populates="candidate"
    )
    notifications: Mapped[list["Notification"]] = relationship(
        "Notification", back_populates="user", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<User {self.id} role={self.role}>"
