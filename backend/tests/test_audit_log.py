"""Tests for the append-only status history."""

import uuid
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import select

from crm.errors import GateUnsatisfiedError
from crm.lifecycle.states import ContactStatus, is_legal_edge
from crm.models import StatusHistory
from crm.repositories import status_history as history_repo
from crm.schemas.transitions import MarkLostRequest, PromoteToMQLRequest, PromoteToSQLRequest
from crm.services.transitions import TransitionAuthority


class TestHistoryWalk:
    def test_history_is_a_connected_walk(self, authority, pipeline):
        contact_id = pipeline.contact_at(ContactStatus.CUSTOMER)
        history = authority.get_status_history(contact_id)

        assert history[0].old_status == "LEAD"
        assert history[-1].new_status == authority.get_contact(contact_id).status
        for prev, row in zip(history, history[1:]):
            assert row.old_status == prev.new_status
            assert row.changed_at >= prev.changed_at
        for row in history:
            assert is_legal_edge(row.old_status, row.new_status)

    def test_rejection_writes_no_history(self, authority, pipeline):
        contact_id = pipeline.contact_at(ContactStatus.MQL)
        with pytest.raises(GateUnsatisfiedError):
            authority.promote_to_sql(PromoteToSQLRequest(contact_id=contact_id, actor_id=pipeline.employee_id))
        assert len(authority.get_status_history(contact_id)) == 1

    def test_lost_ends_walk_in_dormant(self, authority, pipeline):
        contact_id = pipeline.contact_at(ContactStatus.OPPORTUNITY)
        authority.mark_lost(MarkLostRequest(contact_id=contact_id, actor_id=pipeline.employee_id))
        assert authority.get_status_history(contact_id)[-1].new_status == "DORMANT"

    def test_clock_going_backwards_keeps_order(self, session_factory, pipeline):
        contact_id = pipeline.create()
        past = datetime(2020, 1, 1, tzinfo=timezone.utc)
        with session_factory() as session:
            history_repo.append(session, contact_id, "LEAD", "DORMANT", None, datetime.now(timezone.utc))
            row = history_repo.append(session, contact_id, "LEAD", "MQL", None, past)
            assert row.changed_at > past
            session.rollback()

    def test_clocked_authority_stamps_history(self, session_factory, dispatcher, test_settings, pipeline):
        stamp = datetime(2031, 5, 1, 12, 0, tzinfo=timezone.utc)
        authority = TransitionAuthority(
            session_factory=session_factory, dispatcher=dispatcher, settings=test_settings, clock=lambda: stamp,
        )
        contact_id = pipeline.create()
        authority.promote_to_mql(PromoteToMQLRequest(contact_id=contact_id, actor_id=pipeline.employee_id))
        changed_at = authority.get_status_history(contact_id)[0].changed_at
        assert changed_at.replace(tzinfo=timezone.utc) == stamp


class TestAppendGuard:
    def test_illegal_edge_rejected(self, session_factory, pipeline):
        contact_id = pipeline.create()
        with session_factory() as session:
            with pytest.raises(ValueError):
                history_repo.append(session, contact_id, "LEAD", "CUSTOMER", None, datetime.now(timezone.utc))

    def test_dormant_is_reachable_from_any_live_status(self, session_factory, pipeline):
        contact_id = pipeline.create()
        with session_factory() as session:
            row = history_repo.append(
                session, contact_id, ContactStatus.SQL, ContactStatus.DORMANT, uuid.uuid4(),
                datetime.now(timezone.utc) + timedelta(seconds=1),
            )
            assert row.id is not None
            session.rollback()


class TestImmutability:
    def test_update_is_refused(self, authority, pipeline, session_factory):
        contact_id = pipeline.contact_at(ContactStatus.MQL)
        with session_factory() as session:
            row = session.scalar(select(StatusHistory).where(StatusHistory.contact_id == contact_id))
            row.new_status = "SQL"
            with pytest.raises(PermissionError):
                session.flush()
            session.rollback()
        assert authority.get_status_history(contact_id)[0].new_status == "MQL"

    def test_delete_is_refused(self, authority, pipeline, session_factory):
        contact_id = pipeline.contact_at(ContactStatus.MQL)
        with session_factory() as session:
            row = session.scalar(select(StatusHistory).where(StatusHistory.contact_id == contact_id))
            session.delete(row)
            with pytest.raises(PermissionError):
                session.flush()
            session.rollback()
        assert len(authority.get_status_history(contact_id)) == 1
