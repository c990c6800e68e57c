"""Status history - append-only audit trail of every committed transition."""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Uuid, event
from sqlalchemy.orm import Mapped, mapped_column

from crm.database import Base, utcnow


class StatusHistory(Base):
    __tablename__ = "status_history"
    __table_args__ = (
        Index("ix_status_history_contact_changed_at", "contact_id", "changed_at"),
    )

    # Integer key gives a total insert order per contact
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    contact_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("contacts.id"), nullable=False)

    old_status: Mapped[str] = mapped_column(String(20), nullable=False)
    new_status: Mapped[str] = mapped_column(String(20), nullable=False)
    changed_by: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)  # None = system
    changed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)


@event.listens_for(StatusHistory, "before_update")
def _history_no_update(mapper, connection, target):
    raise PermissionError("status_history is append-only")


@event.listens_for(StatusHistory, "before_delete")
def _history_no_delete(mapper, connection, target):
    raise PermissionError("status_history is append-only")
