"""Notification repository - in-app notification inbox."""
import uuid
from typing import Optional

from sqlalchemy import func, or_, select, update
from sqlalchemy.orm import Session

from crm.models import Notification


def create(
    session: Session,
    type: str,
    title: str,
    message: str,
    company_id: Optional[uuid.UUID] = None,
    employee_id: Optional[uuid.UUID] = None,
    entity_type: str = "CONTACT",
    entity_id: Optional[uuid.UUID] = None,
    priority: int = 5,
    payload: Optional[dict] = None,
) -> Notification:
    row = Notification(
        type=type,
        title=title,
        message=message,
        company_id=company_id,
        employee_id=employee_id,
        entity_type=entity_type,
        entity_id=entity_id,
        priority=priority,
        payload=payload,
    )
    session.add(row)
    session.flush()
    return row


def _visible_to(company_id: uuid.UUID, employee_id: uuid.UUID):
    # Personal notifications plus company-wide ones
    return (
        Notification.company_id == company_id,
        or_(Notification.employee_id == employee_id, Notification.employee_id.is_(None)),
    )


def list_for_employee(
    session: Session,
    company_id: uuid.UUID,
    employee_id: uuid.UUID,
    unread_only: bool = False,
    limit: int = 50,
) -> list[Notification]:
    stmt = select(Notification).where(*_visible_to(company_id, employee_id))
    if unread_only:
        stmt = stmt.where(Notification.is_read == False)  # noqa: E712
    result = session.execute(stmt.order_by(Notification.created_at.desc()).limit(limit))
    return list(result.scalars().all())


def unread_count(session: Session, company_id: uuid.UUID, employee_id: uuid.UUID) -> int:
    return session.execute(
        select(func.count(Notification.id))
        .where(*_visible_to(company_id, employee_id))
        .where(Notification.is_read == False)  # noqa: E712
    ).scalar_one()


def mark_as_read(session: Session, notification_id: uuid.UUID, employee_id: uuid.UUID) -> bool:
    result = session.execute(
        update(Notification)
        .where(Notification.id == notification_id)
        .where(or_(Notification.employee_id == employee_id, Notification.employee_id.is_(None)))
        .values(is_read=True)
    )
    return result.rowcount > 0
