"""Permanently failed side-effect jobs, kept for operational visibility."""

import uuid
from datetime import datetime

from sqlalchemy import JSON, DateTime, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from crm.database import Base, utcnow


class DispatchFailure(Base):
    __tablename__ = "dispatch_failures"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    kind: Mapped[str] = mapped_column(String(30), nullable=False, index=True)  # notification, lead_email
    contact_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True, index=True)
    job_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    attempts: Mapped[int] = mapped_column(Integer, default=1)
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    payload: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    failed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
