"""Deal model - the immutable financial record of a won opportunity."""

import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import DateTime, ForeignKey, Numeric, Uuid, event
from sqlalchemy.orm import Mapped, mapped_column

from crm.database import Base, utcnow


class Deal(Base):
    __tablename__ = "deals"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    opportunity_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("opportunities.id"), nullable=False, unique=True
    )
    contact_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("contacts.id"), nullable=False, index=True)

    deal_value: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    closed_by: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)
    closed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)


@event.listens_for(Deal, "before_update")
def _deal_is_locked(mapper, connection, target):
    raise PermissionError(f"Deal {target.id} is locked and cannot be modified")
