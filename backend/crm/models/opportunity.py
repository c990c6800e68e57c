"""Opportunity model - a tracked potential sale, OPEN until WON or LOST."""

import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import DateTime, ForeignKey, Index, Numeric, String, Text, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column

from crm.database import Base, utcnow
from crm.lifecycle.states import OpportunityStatus


class Opportunity(Base):
    __tablename__ = "opportunities"
    __table_args__ = (
        # At most one OPEN opportunity per contact
        Index(
            "uq_opportunities_open_per_contact",
            "contact_id",
            unique=True,
            postgresql_where=text("status = 'OPEN'"),
            sqlite_where=text("status = 'OPEN'"),
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    contact_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("contacts.id"), nullable=False, index=True)
    created_by: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)

    expected_value: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    status: Mapped[str] = mapped_column(String(10), nullable=False, default=OpportunityStatus.OPEN.value)
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)  # set on LOST

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    closed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
