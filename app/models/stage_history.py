"""Stage history model module.

Rows are append-only: one per successful transition plus the initial entry
written when a client is created (the only row with a NULL ``from_stage``).
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base, utcnow


class StageHistoryEntry(Base):
    __tablename__ = "client_stage_history"
    __table_args__ = (Index("idx_stage_history_client_changed", "client_id", "changed_at"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    client_id: Mapped[str] = mapped_column(ForeignKey("clients.id", ondelete="CASCADE"), nullable=False)
    from_stage: Mapped[str | None] = mapped_column(String(100))
    to_stage: Mapped[str] = mapped_column(String(100), nullable=False)
    changed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    changed_by: Mapped[str | None] = mapped_column(String(36))

    client = relationship("Client", back_populates="history")
