import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from voltbuild.common.enums import VerificationStatus, VerificationType
from voltbuild.db.base import BaseModel, PhaseScopedMixin, ProjectScopedMixin


class TaskVerification(ProjectScopedMixin, PhaseScopedMixin, BaseModel):
    """Evidence submitted to prove a task was done, and its review."""

    __tablename__ = "task_verifications"

    task_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("tasks.id"), nullable=False, index=True
    )
    verification_type: Mapped[VerificationType] = mapped_column(
        String(20), nullable=False, default=VerificationType.PHOTO
    )
    file_url: Mapped[str] = mapped_column(String(1000), nullable=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    submitted_by: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id"), nullable=False
    )
    status: Mapped[VerificationStatus] = mapped_column(
        String(20), nullable=False, default=VerificationStatus.PENDING
    )
    reviewed_by: Mapped[str | None] = mapped_column(String(255), nullable=True)
    reviewed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    review_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
