"""Feedback repository."""
import uuid
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from crm.models import Feedback


def create(session: Session, contact_id: uuid.UUID, rating: int, comment: Optional[str] = None) -> Feedback:
    row = Feedback(contact_id=contact_id, rating=rating, comment=comment)
    session.add(row)
    session.flush()
    return row


def average_rating(session: Session, contact_id: uuid.UUID) -> float:
    value = session.execute(
        select(func.avg(Feedback.rating)).where(Feedback.contact_id == contact_id)
    ).scalar_one_or_none()
    return float(value) if value is not None else 0.0


def count(session: Session, contact_id: uuid.UUID) -> int:
    return session.execute(
        select(func.count(Feedback.id)).where(Feedback.contact_id == contact_id)
    ).scalar_one()
