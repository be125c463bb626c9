"""
Jobs Module

Job postings owned by a single recruiter. Listed publicly on the job board.
"""

from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import ForeignKey, DateTime, Text, JSON, Uuid, func
from database.engine import Base, utcnow
from datetime import datetime
from typing import Any, TYPE_CHECKING
import uuid

if TYPE_CHECKING:
    from database.models.applications import Application
    from database.models.users import User


# ==================== Job Model ===================== #
class Job(Base):
    """Job posting with free-form requirements."""

    __tablename__ = "jobs"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    # Basic info
    title: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    requirements: Mapped[dict[str, Any] | None] = mapped_column(JSON)
    location: Mapped[str | None] = mapped_column(Text)

    # Ownership
    posted_by: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id"), index=True
    )

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now()
    )

    # Relationships
    poster: Mapped["User | None"] = relationship("User", back_populates="jobs")
    applications: Mapped[list["Application"]] = relationship(
        "Application", back_populates="job"
    )

    def __repr__(self) -> str:
        return f"<Job {self.id} {self.title!r}>"
