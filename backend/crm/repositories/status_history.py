"""Status history repository - append-only, no update or delete."""
import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from crm.lifecycle.states import ContactStatus, is_legal_edge
from crm.models import StatusHistory


def _aware(value: datetime) -> datetime:
    # SQLite hands back naive datetimes
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def last_for_contact(session: Session, contact_id: uuid.UUID) -> Optional[StatusHistory]:
    result = session.execute(
        select(StatusHistory)
        .where(StatusHistory.contact_id == contact_id)
        .order_by(StatusHistory.id.desc())
        .limit(1)
    )
    return result.scalar_one_or_none()


def append(
    session: Session,
    contact_id: uuid.UUID,
    old_status: ContactStatus,
    new_status: ContactStatus,
    changed_by: Optional[uuid.UUID],
    changed_at: datetime,
) -> StatusHistory:
    """Append one row for a committed transition.

    changed_at never goes backwards for a contact, even if the caller's
    clock does.
    """
    if not is_legal_edge(old_status, new_status):
        raise ValueError(f"Illegal status history edge: {old_status} -> {new_status}")

    previous = last_for_contact(session, contact_id)
    if previous is not None and _aware(previous.changed_at) > _aware(changed_at):
        changed_at = _aware(previous.changed_at)

    row = StatusHistory(
        contact_id=contact_id,
        old_status=ContactStatus(old_status).value,
        new_status=ContactStatus(new_status).value,
        changed_by=changed_by,
        changed_at=changed_at,
    )
    session.add(row)
    session.flush()
    return row


def list_for_contact(session: Session, contact_id: uuid.UUID) -> list[StatusHistory]:
    result = session.execute(
        select(StatusHistory)
        .where(StatusHistory.contact_id == contact_id)
        .order_by(StatusHistory.changed_at, StatusHistory.id)
    )
    return list(result.scalars().all())
