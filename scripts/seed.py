#!/usr/bin/env python3
"""Seed the database with a demo contact walked part-way up the funnel."""

import sys
import os
import uuid
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "backend"))

from crm.database import Base, get_engine
from crm.lifecycle.states import SessionStatus
from crm.log import configure_logging
from crm.models import Contact
from crm.schemas.transitions import CreateContactRequest, PromoteToMQLRequest, RecordSessionRequest
from crm.services.transitions import TransitionAuthority

DEMO_EMAIL = "jane.smith@example.com"
DEMO_COMPANY_ID = uuid.UUID("00000000-0000-0000-0000-000000000001")
DEMO_EMPLOYEE_ID = uuid.UUID("00000000-0000-0000-0000-000000000002")


def seed():
    configure_logging()
    Base.metadata.create_all(get_engine())
    authority = TransitionAuthority()

    # Check if the demo contact already exists
    with authority.session_factory() as session:
        existing = session.query(Contact).filter_by(email=DEMO_EMAIL).first()
        if existing:
            print(f"Demo contact already exists: {existing.id} ({existing.status})")
            return

    created = authority.create_contact(CreateContactRequest(
        name="Jane Smith",
        email=DEMO_EMAIL,
        company_id=DEMO_COMPANY_ID,
        assigned_employee_id=DEMO_EMPLOYEE_ID,
        actor_id=DEMO_EMPLOYEE_ID,
    ))
    authority.promote_to_mql(PromoteToMQLRequest(contact_id=created.contact_id, actor_id=DEMO_EMPLOYEE_ID))
    for rating in (7, 8):
        authority.record_session(RecordSessionRequest(
            contact_id=created.contact_id,
            actor_id=DEMO_EMPLOYEE_ID,
            rating=rating,
            session_status=SessionStatus.CONNECTED,
            remarks="Seeded discovery call",
        ))

    contact = authority.get_contact(created.contact_id)
    print(f"Created demo contact: {contact.id} (status: {contact.status}, temperature: {contact.temperature})")


if __name__ == "__main__":
    seed()
