"""Tests for post-commit side-effect dispatch."""

import uuid
from unittest.mock import MagicMock, patch

import pytest
from rq import Retry

from crm.config import Settings
from crm.errors import GateUnsatisfiedError, NotFoundError
from crm.lifecycle.states import ContactStatus
from crm.schemas.transitions import (
    ConvertToOpportunityRequest,
    MarkLostRequest,
    PromoteToMQLRequest,
    PromoteToSQLRequest,
    TrackingEventRequest,
)
from crm.services.dispatcher import (
    DispatchStatus,
    SideEffect,
    SideEffectDispatcher,
    SideEffectKind,
    get_redis,
)


class TestSideEffect:
    def test_notification_kwargs(self):
        contact_id = uuid.uuid4()
        employee_id = uuid.uuid4()
        effect = SideEffect.notification("DEAL_WON", contact_id, employee_id, {"deal_value": "10"})
        assert effect.kind == SideEffectKind.NOTIFICATION
        assert effect.job_kwargs() == {
            "contact_id": str(contact_id),
            "notification_type": "DEAL_WON",
            "employee_id": str(employee_id),
            "payload": {"deal_value": "10"},
        }

    def test_lead_email_kwargs(self):
        contact_id = uuid.uuid4()
        effect = SideEffect.lead_email(contact_id, "tok")
        assert effect.job_kwargs() == {"contact_id": str(contact_id), "tracking_token": "tok"}


class TestSideEffectDispatcher:
    def setup_method(self):
        self.queue = MagicMock()
        self.queue.count = 0
        self.queue.enqueue.return_value = MagicMock(id="job-42")
        self.settings = Settings(
            side_effect_max_retries=2,
            side_effect_retry_intervals=[1, 2],
            side_effect_job_timeout=30,
            side_effect_max_queue_depth=5,
        )
        self.dispatcher = SideEffectDispatcher(queue=self.queue, settings=self.settings)

    def test_enqueue_uses_retry_policy(self):
        effect = SideEffect.lead_email(uuid.uuid4(), "tok")
        outcomes = self.dispatcher.dispatch([effect])

        assert outcomes[0].status == DispatchStatus.QUEUED
        assert outcomes[0].job_id == "job-42"
        args, kwargs = self.queue.enqueue.call_args
        assert args[0] == "crm.workers.side_effects.deliver_lead_email"
        assert kwargs["job_timeout"] == 30
        assert isinstance(kwargs["retry"], Retry)
        assert kwargs["retry"].max == 2
        assert kwargs["retry"].intervals == [1, 2]

    def test_queue_full_is_not_enqueued(self):
        self.queue.count = 5
        outcomes = self.dispatcher.dispatch([SideEffect.lead_email(uuid.uuid4(), "tok")])
        assert outcomes[0].status == DispatchStatus.QUEUE_FULL
        self.queue.enqueue.assert_not_called()

    def test_enqueue_failure_is_swallowed(self):
        self.queue.enqueue.side_effect = ConnectionError("redis down")
        outcomes = self.dispatcher.dispatch([
            SideEffect.lead_email(uuid.uuid4(), "tok"),
            SideEffect.notification("DEAL_WON", uuid.uuid4(), None),
        ])
        assert [o.status for o in outcomes] == [DispatchStatus.ENQUEUE_FAILED] * 2
        assert "redis down" in outcomes[0].error

    def test_lazy_queue_uses_configured_name(self):
        dispatcher = SideEffectDispatcher(settings=Settings(side_effect_queue="crm-effects"))
        with patch("crm.services.dispatcher.get_redis") as get_redis, \
             patch("crm.services.dispatcher.Queue") as queue_cls:
            assert dispatcher.queue is queue_cls.return_value
        queue_cls.assert_called_once_with("crm-effects", connection=get_redis.return_value)

    def test_lazy_queue_uses_own_redis_url(self):
        settings = Settings(redis_url="redis://effects-host:6380/2")
        dispatcher = SideEffectDispatcher(settings=settings)
        with patch.dict("crm.services.dispatcher._redis_clients", clear=True), \
             patch("crm.services.dispatcher.redis_lib.from_url") as from_url, \
             patch("crm.services.dispatcher.Queue") as queue_cls:
            dispatcher.queue
        from_url.assert_called_once_with("redis://effects-host:6380/2")
        assert queue_cls.call_args.kwargs["connection"] is from_url.return_value

    def test_redis_client_shared_per_url(self):
        with patch.dict("crm.services.dispatcher._redis_clients", clear=True), \
             patch("crm.services.dispatcher.redis_lib.from_url", side_effect=lambda url: MagicMock(url=url)):
            first = get_redis("redis://a:6379/9")
            assert get_redis("redis://a:6379/9") is first
            assert get_redis("redis://b:6379/9") is not first


class TestDispatchAfterCommit:
    def _job_names(self, queue):
        return [c.args[0].rsplit(".", 1)[-1] for c in queue.enqueue.call_args_list]

    def test_transition_notifies_after_commit(self, authority, pipeline, queue):
        contact_id = pipeline.contact_at(ContactStatus.SQL)
        queue.enqueue.reset_mock()

        authority.convert_to_opportunity(ConvertToOpportunityRequest(
            contact_id=contact_id, actor_id=pipeline.employee_id, expected_value=500,
        ))

        assert self._job_names(queue) == ["deliver_notification"]
        kwargs = queue.enqueue.call_args.kwargs["kwargs"]
        assert kwargs["notification_type"] == "OPPORTUNITY_CREATED"
        assert kwargs["employee_id"] == str(pipeline.employee_id)

    def test_rejection_dispatches_nothing(self, authority, pipeline, queue):
        contact_id = pipeline.contact_at(ContactStatus.MQL)
        queue.enqueue.reset_mock()

        with pytest.raises(GateUnsatisfiedError):
            authority.promote_to_sql(PromoteToSQLRequest(contact_id=contact_id, actor_id=pipeline.employee_id))
        with pytest.raises(NotFoundError):
            authority.mark_lost(MarkLostRequest(contact_id=contact_id))
        queue.enqueue.assert_not_called()

    def test_ignored_tracking_event_dispatches_nothing(self, authority, pipeline, queue):
        contact_id = pipeline.create()
        queue.enqueue.reset_mock()
        authority.record_tracking_event(TrackingEventRequest(contact_id=contact_id, token="nope"))
        queue.enqueue.assert_not_called()

    def test_manual_mql_has_no_side_effect(self, authority, pipeline, queue):
        contact_id = pipeline.create()
        queue.enqueue.reset_mock()
        authority.promote_to_mql(PromoteToMQLRequest(contact_id=contact_id, actor_id=pipeline.employee_id))
        queue.enqueue.assert_not_called()

    def test_dispatch_failure_does_not_undo_transition(self, authority, pipeline, queue):
        contact_id = pipeline.contact_at(ContactStatus.SQL)
        queue.enqueue.side_effect = ConnectionError("redis down")

        result = authority.convert_to_opportunity(ConvertToOpportunityRequest(
            contact_id=contact_id, actor_id=pipeline.employee_id, expected_value=500,
        ))

        assert result.new_status == ContactStatus.OPPORTUNITY
        assert authority.get_contact(contact_id).status == "OPPORTUNITY"
