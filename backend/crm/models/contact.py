"""Contact model - a lead/customer moving through the sales pipeline."""

import uuid
from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, Integer, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from crm.database import Base, utcnow
from crm.lifecycle.states import ContactStatus, Temperature

_STATUS_CHECK = "status IN (" + ", ".join(f"'{s.value}'" for s in ContactStatus) + ")"
_TEMPERATURE_CHECK = "temperature IN (" + ", ".join(f"'{t.value}'" for t in Temperature) + ")"


class Contact(Base):
    __tablename__ = "contacts"
    __table_args__ = (
        CheckConstraint(_STATUS_CHECK, name="ck_contacts_status"),
        CheckConstraint(_TEMPERATURE_CHECK, name="ck_contacts_temperature"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    company_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)
    assigned_employee_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True, index=True)

    # Contact info
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)

    # Pipeline - mutated only by the transition authority
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=ContactStatus.LEAD.value, index=True)

    # Derived from session ratings, never set by a transition
    temperature: Mapped[str] = mapped_column(String(10), nullable=False, default=Temperature.COLD.value)

    # Marketing signal, only ever incremented
    interest_score: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    tracking_token: Mapped[str | None] = mapped_column(String(64), nullable=True)

    # Compare-and-swap counter for every write to the row
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    __mapper_args__ = {"version_id_col": version}

    def __repr__(self) -> str:
        return f"<Contact {self.id} {self.status}>"
