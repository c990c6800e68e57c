"""Deal repository - insert and read only, deals are never modified."""
import uuid
from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from crm.models import Deal


def get_by_opportunity_id(session: Session, opportunity_id: uuid.UUID) -> Optional[Deal]:
    result = session.execute(select(Deal).where(Deal.opportunity_id == opportunity_id))
    return result.scalar_one_or_none()


def list_by_contact(session: Session, contact_id: uuid.UUID) -> list[Deal]:
    result = session.execute(
        select(Deal).where(Deal.contact_id == contact_id).order_by(Deal.closed_at)
    )
    return list(result.scalars().all())


def create(
    session: Session,
    opportunity_id: uuid.UUID,
    contact_id: uuid.UUID,
    deal_value: Decimal,
    closed_by: Optional[uuid.UUID],
    closed_at: datetime,
) -> Deal:
    deal = Deal(
        opportunity_id=opportunity_id,
        contact_id=contact_id,
        deal_value=deal_value,
        closed_by=closed_by,
        closed_at=closed_at,
    )
    session.add(deal)
    session.flush()
    return deal
