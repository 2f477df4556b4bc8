import uuid

from sqlalchemy import ForeignKey, String, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from voltbuild.db.base import BaseModel, ProjectScopedMixin


class TaskDocument(ProjectScopedMixin, BaseModel):
    """Reference from a task to a file held by SecureShare."""

    __tablename__ = "task_documents"
    __table_args__ = (UniqueConstraint("task_id", "secure_share_id", name="uq_task_document"),)

    task_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("tasks.id"), nullable=False, index=True
    )
    secure_share_id: Mapped[str] = mapped_column(String(255), nullable=False)
    filename: Mapped[str] = mapped_column(String(500), nullable=False)
    attached_by: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id"), nullable=False
    )
