"""Base worker utilities for RQ side-effect jobs."""

import asyncio
import uuid

import structlog
from rq import get_current_job
from sqlalchemy.orm import Session

from crm.config import settings
from crm.database import get_session_factory
from crm.errors import SideEffectFailure
from crm.log import configure_logging
from crm.metrics import SIDE_EFFECTS
from crm.models import Contact, DispatchFailure

configure_logging()
logger = structlog.get_logger()


def run_async(coro):
    """Run an async coroutine from sync RQ worker context."""
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


def get_sync_session() -> Session:
    return get_session_factory()()


def load_contact(session: Session, contact_id: str) -> Contact:
    contact = session.get(Contact, uuid.UUID(contact_id))
    if not contact:
        raise SideEffectFailure("contact", f"Contact {contact_id} not found")
    return contact


def is_final_attempt() -> bool:
    """True when RQ will not retry the current job again (or outside a worker)."""
    job = get_current_job()
    if job is None:
        return True
    return not job.retries_left


def record_dispatch_failure(
    kind: str,
    contact_id: str | None,
    error: str,
    payload: dict | None = None,
) -> None:
    """Persist a permanently failed side effect. Never raises."""
    job = get_current_job()
    session = get_sync_session()
    try:
        session.add(DispatchFailure(
            kind=kind,
            contact_id=uuid.UUID(contact_id) if contact_id else None,
            job_id=job.id if job is not None else None,
            attempts=settings.side_effect_max_retries + 1 if job is not None else 1,
            error_message=error[:1000],
            payload=payload,
        ))
        session.commit()
    except Exception as e:
        session.rollback()
        logger.error("dispatch_failure_record_failed", kind=kind, contact_id=contact_id, error=str(e))
    finally:
        session.close()


def handle_job_failure(kind: str, contact_id: str | None, error: Exception, payload: dict | None = None) -> None:
    """Log and count a failed attempt; record it when no retries are left."""
    if is_final_attempt():
        logger.error("side_effect_failed", kind=kind, contact_id=contact_id, error=str(error))
        SIDE_EFFECTS.labels(kind=kind, outcome="failed").inc()
        record_dispatch_failure(kind, contact_id, str(error), payload)
    else:
        logger.warning("side_effect_retrying", kind=kind, contact_id=contact_id, error=str(error))
        SIDE_EFFECTS.labels(kind=kind, outcome="retrying").inc()
