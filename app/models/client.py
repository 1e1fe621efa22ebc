"""Client model module."""

from __future__ import annotations

from datetime import date, datetime

from sqlalchemy import Boolean, Date, DateTime, Index, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import AuditMixin, Base
from app.utils.ids import new_entity_id


class Client(Base, AuditMixin):
    __tablename__ = "clients"
    __table_args__ = (
        Index("idx_clients_stage", "stage"),
        Index("idx_clients_archived", "is_archived"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_entity_id)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[str | None] = mapped_column(String(64))
    email: Mapped[str | None] = mapped_column(String(320))
    file_type: Mapped[str] = mapped_column(String(60), default="Residential", nullable=False)
    stage: Mapped[str] = mapped_column(String(100), default="Lead", nullable=False)
    assigned_to: Mapped[str | None] = mapped_column(String(255))
    banker_name: Mapped[str | None] = mapped_column(String(255))
    banker_email: Mapped[str | None] = mapped_column(String(320))
    bank: Mapped[str | None] = mapped_column(String(255))
    lender: Mapped[str | None] = mapped_column(String(255))
    next_follow_up: Mapped[date | None] = mapped_column(Date)
    last_contact: Mapped[date | None] = mapped_column(Date)
    notes: Mapped[str | None] = mapped_column(Text)
    retainer_received: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    retainer_amount: Mapped[float | None] = mapped_column(Numeric(12, 2))
    subject_removal_date: Mapped[date | None] = mapped_column(Date)
    closing_date: Mapped[date | None] = mapped_column(Date)
    notes_file_link: Mapped[str | None] = mapped_column(String(1000))
    is_archived: Mapped[bool | None] = mapped_column(Boolean, default=False)
    archived_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    archived_by: Mapped[str | None] = mapped_column(String(36))

    history = relationship(
        "StageHistoryEntry",
        back_populates="client",
        cascade="all, delete-orphan",
        order_by="StageHistoryEntry.changed_at",
    )
