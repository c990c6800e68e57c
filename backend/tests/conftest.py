"""Shared fixtures: a throwaway SQLite database per test and a mocked RQ queue."""

import uuid
from unittest.mock import MagicMock

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker

import crm.models  # noqa: F401  (registers every table on Base.metadata)
from crm.config import Settings
from crm.database import Base
from crm.lifecycle.states import ContactStatus, SessionStatus
from crm.schemas.transitions import (
    CloseDealRequest,
    ConvertToOpportunityRequest,
    CreateContactRequest,
    PromoteToMQLRequest,
    PromoteToSQLRequest,
    RecordSessionRequest,
)
from crm.services.dispatcher import SideEffectDispatcher
from crm.services.transitions import TransitionAuthority


@pytest.fixture
def engine(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'crm.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )

    @event.listens_for(engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, expire_on_commit=False)


@pytest.fixture
def test_settings():
    return Settings(evangelist_auto_promote=True, transition_max_attempts=5)


@pytest.fixture
def queue():
    queue = MagicMock()
    queue.count = 0
    queue.enqueue.return_value = MagicMock(id="job-1")
    return queue


@pytest.fixture
def dispatcher(queue, test_settings):
    return SideEffectDispatcher(queue=queue, settings=test_settings)


@pytest.fixture
def authority(session_factory, dispatcher, test_settings):
    return TransitionAuthority(session_factory=session_factory, dispatcher=dispatcher, settings=test_settings)


class PipelineDriver:
    """Walks a fresh contact up the funnel through the public operations."""

    def __init__(self, authority: TransitionAuthority):
        self.authority = authority
        self.company_id = uuid.uuid4()
        self.employee_id = uuid.uuid4()

    def create(self, name: str = "Jane Smith") -> uuid.UUID:
        created = self.authority.create_contact(CreateContactRequest(
            name=name,
            email=f"{uuid.uuid4().hex[:8]}@example.com",
            company_id=self.company_id,
            assigned_employee_id=self.employee_id,
            actor_id=self.employee_id,
        ))
        return created.contact_id

    def log_session(self, contact_id: uuid.UUID, rating: int | None, stage: ContactStatus | None = None):
        return self.authority.record_session(RecordSessionRequest(
            contact_id=contact_id,
            actor_id=self.employee_id,
            rating=rating,
            session_status=SessionStatus.CONNECTED,
            stage=stage,
        ))

    def contact_at(self, status: ContactStatus) -> uuid.UUID:
        order = [ContactStatus.LEAD, ContactStatus.MQL, ContactStatus.SQL, ContactStatus.OPPORTUNITY, ContactStatus.CUSTOMER]
        contact_id = self.create()
        for step in order[1:order.index(status) + 1]:
            if step == ContactStatus.MQL:
                self.authority.promote_to_mql(PromoteToMQLRequest(contact_id=contact_id, actor_id=self.employee_id))
            elif step == ContactStatus.SQL:
                self.log_session(contact_id, 8)
                self.authority.promote_to_sql(PromoteToSQLRequest(contact_id=contact_id, actor_id=self.employee_id))
            elif step == ContactStatus.OPPORTUNITY:
                self.authority.convert_to_opportunity(ConvertToOpportunityRequest(
                    contact_id=contact_id, actor_id=self.employee_id, expected_value=1000,
                ))
            elif step == ContactStatus.CUSTOMER:
                self.authority.close_deal(CloseDealRequest(
                    contact_id=contact_id, actor_id=self.employee_id, deal_value=900,
                ))
        return contact_id


@pytest.fixture
def pipeline(authority):
    return PipelineDriver(authority)
