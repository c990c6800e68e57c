"""Logged interaction with a contact (call, meeting, demo...)."""

import uuid
from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from crm.database import Base, utcnow
from crm.lifecycle.states import ContactMode, SessionStatus


class ContactSession(Base):
    __tablename__ = "sessions"
    __table_args__ = (
        CheckConstraint("rating IS NULL OR (rating BETWEEN 1 AND 10)", name="ck_sessions_rating"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    contact_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("contacts.id"), nullable=False, index=True)
    employee_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)

    # Snapshot of the contact's status when logged, not a live reference
    stage: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    rating: Mapped[int | None] = mapped_column(Integer, nullable=True)
    session_status: Mapped[str] = mapped_column(String(20), nullable=False, default=SessionStatus.CONNECTED.value)
    mode_of_contact: Mapped[str] = mapped_column(String(20), nullable=False, default=ContactMode.CALL.value)
    remarks: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)
