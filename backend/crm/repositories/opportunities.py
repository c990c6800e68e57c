"""Opportunity repository."""
import uuid
from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from crm.lifecycle.states import OpportunityStatus
from crm.models import Opportunity


def get_by_id(session: Session, opportunity_id: uuid.UUID, for_update: bool = False) -> Optional[Opportunity]:
    stmt = select(Opportunity).where(Opportunity.id == opportunity_id)
    if for_update:
        stmt = stmt.with_for_update().execution_options(populate_existing=True)
    return session.execute(stmt).scalar_one_or_none()


def get_open_by_contact(session: Session, contact_id: uuid.UUID, for_update: bool = False) -> Optional[Opportunity]:
    """Return the contact's OPEN opportunity, or None. There is never more than one."""
    stmt = select(Opportunity).where(
        Opportunity.contact_id == contact_id,
        Opportunity.status == OpportunityStatus.OPEN.value,
    )
    if for_update:
        stmt = stmt.with_for_update().execution_options(populate_existing=True)
    return session.execute(stmt).scalar_one_or_none()


def get_latest_by_contact(session: Session, contact_id: uuid.UUID) -> Optional[Opportunity]:
    result = session.execute(
        select(Opportunity)
        .where(Opportunity.contact_id == contact_id)
        .order_by(Opportunity.created_at.desc())
        .limit(1)
    )
    return result.scalar_one_or_none()


def list_by_contact(session: Session, contact_id: uuid.UUID) -> list[Opportunity]:
    result = session.execute(
        select(Opportunity).where(Opportunity.contact_id == contact_id).order_by(Opportunity.created_at)
    )
    return list(result.scalars().all())


def create(
    session: Session,
    contact_id: uuid.UUID,
    expected_value: Decimal,
    created_by: Optional[uuid.UUID] = None,
) -> Opportunity:
    opportunity = Opportunity(
        contact_id=contact_id,
        expected_value=expected_value,
        created_by=created_by,
        status=OpportunityStatus.OPEN.value,
    )
    session.add(opportunity)
    session.flush()
    return opportunity


def mark_won(opportunity: Opportunity, closed_at: datetime) -> Opportunity:
    opportunity.status = OpportunityStatus.WON.value
    opportunity.closed_at = closed_at
    return opportunity


def mark_lost(opportunity: Opportunity, closed_at: datetime, reason: Optional[str] = None) -> Opportunity:
    opportunity.status = OpportunityStatus.LOST.value
    opportunity.reason = reason
    opportunity.closed_at = closed_at
    return opportunity
