"""
Application Models

Job applications moving through the hiring workflow, the append-only
activity log kept for each of them, and scheduled interviews.
"""

from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import (
    String,
    ForeignKey,
    DateTime,
    Integer,
    func,
    Text,
    JSON,
    Uuid,
    Index,
    UniqueConstraint,
)
from database.engine import Base, utcnow
from datetime import datetime
from enum import Enum as PyEnum
from typing import Any, TYPE_CHECKING
import uuid

if TYPE_CHECKING:
    from database.models.jobs import Job
    from database.models.users import User


# ==================== Application Enums ===================== #
class ApplicationStatus(str, PyEnum):
    """Workflow status of an application, in pipeline order."""

    SUBMITTED = "submitted"
    RESUME_UPLOADED = "resume_uploaded"
    SCREENING_PASSED = "screening_passed"
    SCREENING_FAILED = "screening_failed"
    SHORTLISTED = "shortlisted"
    REJECTED = "rejected"
    INTERVIEW_SCHEDULED = "interview_scheduled"
    OFFER_SENT = "offer_sent"
    HIRED = "hired"


SCREENING_VERDICTS = (ApplicationStatus.SCREENING_PASSED, ApplicationStatus.SCREENING_FAILED)


class ApplicationLogAction(str, PyEnum):
    """Actions recorded in the application log."""

    SUBMITTED = "submitted"
    RESUME_UPLOAD = "resume_upload"
    SCREENING = "screening"
    SHORTLIST = "shortlist"
    SCHEDULE = "schedule"
    OFFER = "offer"
    COMPLIANCE = "compliance"


# ==================== Application ===================== #
class Application(Base):
    """
    One candidate's application to one job.

    Status transitions are guarded in the service layer; the database only
    enforces one application per (job, user).
    """

    __tablename__ = "applications"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    job_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("jobs.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    status: Mapped[str | None] = mapped_column(
        String(50), default=ApplicationStatus.SUBMITTED.value
    )

    # AI backend correlation and screening
    ai_application_id: Mapped[str | None] = mapped_column(Text)
    screening_score: Mapped[int | None] = mapped_column(Integer)  # 0-100
    screening_report: Mapped[dict[str, Any] | None] = mapped_column(JSON)

    # Resume
    resume_text: Mapped[str | None] = mapped_column(Text)
    resume_file_url: Mapped[str | None] = mapped_column(Text)

    # Interview
    interview_scheduled_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    interview_link: Mapped[str | None] = mapped_column(Text)

    # Offer and hiring
    offer_sent_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    offer_details: Mapped[dict[str, Any] | None] = mapped_column(JSON)
    compliance_checked_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    hired_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        default=utcnow,
        onupdate=utcnow,
    )

    # Relationships
    job: Mapped["Job"] = relationship("Job", back_populates="applications")
    candidate: Mapped["User"] = relationship("User", back_populates="applications")
    logs: Mapped[list["ApplicationLog"]] = relationship(
        "ApplicationLog", back_populates="application", cascade="all, delete-orphan"
    )
    schedules: Mapped[list["Schedule"]] = relationship(
        "Schedule", back_populates="application", cascade="all, delete-orphan"
    )

    __table_args__ = (
        UniqueConstraint("job_id", "user_id", name="uq_applications_job_user"),
        Index("idx_applications_status", "status"),
    )

    def __repr__(self) -> str:
        return f"<Application {self.id} status={self.status}>"


# ==================== Application Log ===================== #
class ApplicationLog(Base):
    """Append-only audit entry for an application."""

    __tablename__ = "application_logs"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    application_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("applications.id", ondelete="CASCADE"), nullable=False, index=True
    )
    action: Mapped[str] = mapped_column(String(50), nullable=False)
    performed_by: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id"), nullable=False
    )
    details: Mapped[dict[str, Any] | None] = mapped_column(JSON)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now()
    )

    # Relationships
    application: Mapped["Application"] = relationship("Application", back_populates="logs")
    actor: Mapped["User"] = relationship("User")


# ==================== Interview Schedule ===================== #
class Schedule(Base):
    """Interview slot booked for an application."""

    __tablename__ = "schedules"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    application_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("applications.id", ondelete="CASCADE"), nullable=False, index=True
    )
    scheduled_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now()
    )

    application: Mapped["Application"] = relationship("Application", back_populates="schedules")
