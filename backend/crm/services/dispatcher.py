"""Side-effect dispatcher - fire-and-forget jobs scheduled after a commit.

Jobs go to a bounded RQ queue with their own retry/backoff and timeout.
Nothing here raises back into the transition path: every effect ends in a
DispatchOutcome that is logged and counted.
"""

import uuid
from dataclasses import dataclass, field
from enum import Enum

import redis as redis_lib
import structlog
from rq import Queue, Retry

from crm.config import Settings, settings as default_settings
from crm.metrics import SIDE_EFFECTS

logger = structlog.get_logger()

_redis_clients: dict[str, redis_lib.Redis] = {}


def get_redis(url: str | None = None) -> redis_lib.Redis:
    """Shared client per Redis URL; defaults to the configured one."""
    url = url or default_settings.redis_url
    if url not in _redis_clients:
        _redis_clients[url] = redis_lib.from_url(url)
    return _redis_clients[url]


class SideEffectKind(str, Enum):
    NOTIFICATION = "notification"
    LEAD_EMAIL = "lead_email"


JOB_FUNCTIONS = {
    SideEffectKind.NOTIFICATION: "crm.workers.side_effects.deliver_notification",
    SideEffectKind.LEAD_EMAIL: "crm.workers.side_effects.deliver_lead_email",
}


@dataclass(frozen=True)
class SideEffect:
    kind: SideEffectKind
    contact_id: uuid.UUID
    params: dict = field(default_factory=dict)

    @classmethod
    def notification(
        cls,
        notification_type: str,
        contact_id: uuid.UUID,
        employee_id: uuid.UUID | None,
        payload: dict | None = None,
    ) -> "SideEffect":
        return cls(
            SideEffectKind.NOTIFICATION,
            contact_id,
            {
                "notification_type": notification_type,
                "employee_id": str(employee_id) if employee_id else None,
                "payload": payload or {},
            },
        )

    @classmethod
    def lead_email(cls, contact_id: uuid.UUID, tracking_token: str) -> "SideEffect":
        return cls(SideEffectKind.LEAD_EMAIL, contact_id, {"tracking_token": tracking_token})

    def job_kwargs(self) -> dict:
        return {"contact_id": str(self.contact_id), **self.params}


class DispatchStatus(str, Enum):
    QUEUED = "queued"
    QUEUE_FULL = "queue_full"
    ENQUEUE_FAILED = "enqueue_failed"


@dataclass(frozen=True)
class DispatchOutcome:
    effect: SideEffect
    status: DispatchStatus
    job_id: str | None = None
    error: str | None = None


class SideEffectDispatcher:
    """Enqueues side effects onto an RQ queue."""

    def __init__(self, queue: Queue | None = None, settings: Settings = default_settings):
        self._queue = queue
        self.settings = settings

    @property
    def queue(self) -> Queue:
        if self._queue is None:
            self._queue = Queue(self.settings.side_effect_queue, connection=get_redis(self.settings.redis_url))
        return self._queue

    def dispatch(self, effects: list[SideEffect]) -> list[DispatchOutcome]:
        return [self._dispatch_one(effect) for effect in effects]

    def _dispatch_one(self, effect: SideEffect) -> DispatchOutcome:
        kind = effect.kind.value
        try:
            queue = self.queue
            if queue.count >= self.settings.side_effect_max_queue_depth:
                logger.warning("side_effect_queue_full", kind=kind, contact_id=str(effect.contact_id))
                SIDE_EFFECTS.labels(kind=kind, outcome=DispatchStatus.QUEUE_FULL.value).inc()
                return DispatchOutcome(effect, DispatchStatus.QUEUE_FULL)

            job = queue.enqueue(
                JOB_FUNCTIONS[effect.kind],
                kwargs=effect.job_kwargs(),
                retry=Retry(
                    max=self.settings.side_effect_max_retries,
                    interval=self.settings.side_effect_retry_intervals,
                ),
                job_timeout=self.settings.side_effect_job_timeout,
                description=f"{kind}:{effect.contact_id}",
            )
        except Exception as e:
            logger.error("side_effect_enqueue_failed", kind=kind, contact_id=str(effect.contact_id), error=str(e))
            SIDE_EFFECTS.labels(kind=kind, outcome=DispatchStatus.ENQUEUE_FAILED.value).inc()
            return DispatchOutcome(effect, DispatchStatus.ENQUEUE_FAILED, error=str(e))

        logger.info("side_effect_queued", kind=kind, contact_id=str(effect.contact_id), job_id=job.id)
        SIDE_EFFECTS.labels(kind=kind, outcome=DispatchStatus.QUEUED.value).inc()
        return DispatchOutcome(effect, DispatchStatus.QUEUED, job_id=job.id)
