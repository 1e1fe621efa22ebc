"""Task and task note model module."""

from __future__ import annotations

from datetime import date, datetime

from sqlalchemy import Date, DateTime, Enum, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import AuditMixin, Base, utcnow
from app.models.enums import TaskStatus
from app.utils.ids import new_entity_id


class Task(Base, AuditMixin):
    __tablename__ = "tasks"
    __table_args__ = (
        Index("idx_tasks_status_due", "status", "due_date"),
        Index("idx_tasks_client", "client_id"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_entity_id)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    assigned_to: Mapped[str | None] = mapped_column(String(255))
    due_date: Mapped[date | None] = mapped_column(Date)
    status: Mapped[TaskStatus] = mapped_column(
        Enum(TaskStatus, values_callable=lambda members: [m.value for m in members], native_enum=False),
        default=TaskStatus.OPEN,
        nullable=False,
    )
    notes: Mapped[str | None] = mapped_column(Text)
    client_id: Mapped[str | None] = mapped_column(ForeignKey("clients.id", ondelete="SET NULL"))

    client = relationship("Client")
    task_notes = relationship("TaskNote", back_populates="task", cascade="all, delete-orphan")


class TaskNote(Base):
    __tablename__ = "task_notes"
    __table_args__ = (Index("idx_task_notes_task_created", "task_id", "created_at"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_entity_id)
    task_id: Mapped[str] = mapped_column(ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False)
    body: Mapped[str] = mapped_column(Text, nullable=False)
    created_by: Mapped[str | None] = mapped_column(String(36))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)

    task = relationship("Task", back_populates="task_notes")
