"""Contact repository."""
import uuid
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from crm.lifecycle.states import INITIAL_STATUS, Temperature
from crm.models import Contact


def get_by_id(session: Session, contact_id: uuid.UUID) -> Optional[Contact]:
    return session.get(Contact, contact_id)


def get_for_update(session: Session, contact_id: uuid.UUID) -> Optional[Contact]:
    """Load the contact with a row lock held until the transaction ends."""
    result = session.execute(
        select(Contact)
        .where(Contact.id == contact_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


def create(
    session: Session,
    name: str,
    email: str,
    company_id: uuid.UUID,
    tracking_token: str,
    phone: Optional[str] = None,
    assigned_employee_id: Optional[uuid.UUID] = None,
) -> Contact:
    contact = Contact(
        name=name,
        email=email.lower().strip(),
        phone=phone,
        company_id=company_id,
        assigned_employee_id=assigned_employee_id,
        status=INITIAL_STATUS.value,
        temperature=Temperature.COLD.value,
        interest_score=0,
        tracking_token=tracking_token,
    )
    session.add(contact)
    session.flush()
    return contact
