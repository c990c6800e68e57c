"""Tests for the lifecycle graph and the derived temperature signal."""

from unittest.mock import MagicMock, patch

import pytest

from crm.config import Settings
from crm.lifecycle.states import (
    INITIAL_STATUS,
    TRANSITIONS,
    ContactStatus,
    Temperature,
    Transition,
    is_legal_edge,
    required_status,
    target_status,
)
from crm.services.signals import SignalAggregator


class TestLifecycleGraph:
    def test_initial_status_is_lead(self):
        assert INITIAL_STATUS == ContactStatus.LEAD

    def test_no_pipeline_edge_leaves_evangelist_or_dormant(self):
        sources = {old_status for old_status, _ in TRANSITIONS.values()}
        assert ContactStatus.EVANGELIST not in sources
        assert ContactStatus.DORMANT not in sources

    @pytest.mark.parametrize("old,new", [
        ("LEAD", "MQL"),
        ("MQL", "SQL"),
        ("SQL", "OPPORTUNITY"),
        ("OPPORTUNITY", "CUSTOMER"),
        ("OPPORTUNITY", "DORMANT"),
        ("CUSTOMER", "EVANGELIST"),
    ])
    def test_pipeline_edges_are_legal(self, old, new):
        assert is_legal_edge(old, new)

    @pytest.mark.parametrize("old,new", [
        ("LEAD", "SQL"),
        ("MQL", "OPPORTUNITY"),
        ("SQL", "CUSTOMER"),
        ("CUSTOMER", "OPPORTUNITY"),
        ("EVANGELIST", "CUSTOMER"),
        ("DORMANT", "LEAD"),
        ("DORMANT", "DORMANT"),
    ])
    def test_skips_and_backwards_moves_are_illegal(self, old, new):
        assert not is_legal_edge(old, new)

    def test_any_live_status_can_be_parked(self):
        for status in ContactStatus:
            if status != ContactStatus.DORMANT:
                assert is_legal_edge(status, ContactStatus.DORMANT)

    def test_unknown_status_rejected(self):
        with pytest.raises(ValueError):
            is_legal_edge("PROSPECT", "MQL")

    def test_required_and_target_status(self):
        assert required_status(Transition.PROMOTE_TO_SQL) == ContactStatus.MQL
        assert target_status(Transition.PROMOTE_TO_SQL) == ContactStatus.SQL
        assert required_status(Transition.TRACKED_ENGAGEMENT) == ContactStatus.LEAD

    def test_mark_dormant_has_no_required_status(self):
        assert required_status(Transition.MARK_DORMANT) is None
        assert target_status(Transition.MARK_DORMANT) == ContactStatus.DORMANT


class TestTemperature:
    def setup_method(self):
        self.signals = SignalAggregator(Settings())

    @pytest.mark.parametrize("avg,expected", [
        (0.0, Temperature.COLD),
        (5.99, Temperature.COLD),
        (6.0, Temperature.WARM),
        (7.99, Temperature.WARM),
        (8.0, Temperature.HOT),
        (10.0, Temperature.HOT),
    ])
    def test_bands(self, avg, expected):
        assert self.signals.temperature_for(avg) == expected

    def test_thresholds_come_from_settings(self):
        signals = SignalAggregator(Settings(temperature_hot_min=9.0, temperature_warm_min=4.0))
        assert signals.temperature_for(8.5) == Temperature.WARM
        assert signals.temperature_for(4.0) == Temperature.WARM
        assert signals.temperature_for(3.9) == Temperature.COLD

    def test_refresh_writes_temperature_on_contact(self):
        contact = MagicMock(temperature="COLD")
        session = MagicMock()
        with patch("crm.services.signals.sessions_repo.average_rating", return_value=8.5) as avg:
            result = self.signals.refresh_temperature(session, contact)

        avg.assert_called_once_with(session, contact.id)
        assert result == (8.5, Temperature.HOT)
        assert contact.temperature == "HOT"

    def test_no_ratings_cools_contact(self):
        contact = MagicMock(temperature="HOT")
        with patch("crm.services.signals.sessions_repo.average_rating", return_value=0.0):
            avg, temperature = self.signals.refresh_temperature(MagicMock(), contact)
        assert avg == 0.0
        assert temperature == Temperature.COLD
        assert contact.temperature == "COLD"


class TestSessionSignals:
    def test_session_log_moves_temperature(self, authority, pipeline):
        contact_id = pipeline.create()
        assert pipeline.log_session(contact_id, 6).temperature == "WARM"
        assert pipeline.log_session(contact_id, 10).temperature == "HOT"
        assert authority.get_contact(contact_id).temperature == "HOT"

    def test_unrated_session_keeps_average(self, pipeline):
        contact_id = pipeline.create()
        pipeline.log_session(contact_id, 7)
        recorded = pipeline.log_session(contact_id, None)
        assert recorded.average_rating == 7.0

    def test_temperature_change_writes_no_history(self, authority, pipeline):
        contact_id = pipeline.create()
        pipeline.log_session(contact_id, 9)
        assert authority.get_status_history(contact_id) == []

    def test_session_summary(self, authority, pipeline):
        contact_id = pipeline.create()
        pipeline.log_session(contact_id, 4)
        pipeline.log_session(contact_id, 8)
        summary = authority.get_session_summary(contact_id)
        assert summary.session_count == 2
        assert summary.average_rating == 6.0
        assert [s.stage for s in summary.sessions] == ["LEAD", "LEAD"]
