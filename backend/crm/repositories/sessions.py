"""Contact session repository - interaction log plus rating aggregates."""
import uuid
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from crm.models import ContactSession


def create(
    session: Session,
    contact_id: uuid.UUID,
    stage: str,
    session_status: str,
    mode_of_contact: str,
    rating: Optional[int] = None,
    employee_id: Optional[uuid.UUID] = None,
    remarks: Optional[str] = None,
) -> ContactSession:
    row = ContactSession(
        contact_id=contact_id,
        employee_id=employee_id,
        stage=stage,
        rating=rating,
        session_status=session_status,
        mode_of_contact=mode_of_contact,
        remarks=remarks,
    )
    session.add(row)
    session.flush()
    return row


def get_by_id(session: Session, session_id: uuid.UUID) -> Optional[ContactSession]:
    return session.get(ContactSession, session_id)


def update(session: Session, row: ContactSession, changes: dict) -> ContactSession:
    """Apply a correction; keys are ContactSession column names."""
    for key, value in changes.items():
        setattr(row, key, value)
    session.flush()
    return row


def delete(session: Session, row: ContactSession) -> None:
    session.delete(row)
    session.flush()


def list_by_contact(session: Session, contact_id: uuid.UUID, stage: Optional[str] = None) -> list[ContactSession]:
    stmt = select(ContactSession).where(ContactSession.contact_id == contact_id)
    if stage:
        stmt = stmt.where(ContactSession.stage == stage)
    result = session.execute(stmt.order_by(ContactSession.created_at))
    return list(result.scalars().all())


def average_rating(session: Session, contact_id: uuid.UUID, stage: Optional[str] = None) -> float:
    """Average of non-null ratings, optionally restricted to one stage. 0.0 when there are none."""
    stmt = select(func.avg(ContactSession.rating)).where(
        ContactSession.contact_id == contact_id,
        ContactSession.rating.is_not(None),
    )
    if stage:
        stmt = stmt.where(ContactSession.stage == stage)
    value = session.execute(stmt).scalar_one_or_none()
    return float(value) if value is not None else 0.0
