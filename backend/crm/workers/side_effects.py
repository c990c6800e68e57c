"""RQ jobs for post-commit side effects.
Each job re-raises on failure so RQ applies the retry policy it was
enqueued with; the final failure is recorded in dispatch_failures.
"""

import uuid

from crm.adapters.email import SmtpCredentials, render_lead_email, send_email, tracking_url
from crm.config import settings
from crm.errors import SideEffectFailure
from crm.metrics import SIDE_EFFECTS
from crm.services import notifications
from crm.workers.base import get_sync_session, handle_job_failure, load_contact, logger, run_async


def deliver_notification(
    contact_id: str,
    notification_type: str,
    employee_id: str | None = None,
    payload: dict | None = None,
):
    """Store an in-app notification and mirror it to Slack when configured."""
    payload = payload or {}
    session = get_sync_session()
    try:
        contact = load_contact(session, contact_id)
        row = notifications.notify(
            session,
            notification_type,
            contact,
            uuid.UUID(employee_id) if employee_id else None,
            payload,
        )
        session.commit()

        if settings.slack_webhook_url:
            run_async(notifications.send_slack_notification(settings.slack_webhook_url, row))

        SIDE_EFFECTS.labels(kind="notification", outcome="delivered").inc()
        return str(row.id)
    except Exception as e:
        session.rollback()
        handle_job_failure("notification", contact_id, e, {"notification_type": notification_type, **payload})
        raise
    finally:
        session.close()


def deliver_lead_email(contact_id: str, tracking_token: str, credentials: SmtpCredentials | None = None):
    """Send the personalised lead email with its tracking link."""
    credentials = credentials or SmtpCredentials.from_settings(settings)
    session = get_sync_session()
    try:
        contact = load_contact(session, contact_id)
        link = tracking_url(settings.tracking_base_url, contact_id, tracking_token)
        subject, body = render_lead_email(contact.name, link)

        if not credentials.is_configured:
            logger.info("lead_email_skipped_smtp_not_configured", contact_id=contact_id)
            SIDE_EFFECTS.labels(kind="lead_email", outcome="skipped").inc()
            return False

        sent = run_async(send_email(contact.email, subject, body, credentials))
        if not sent:
            raise SideEffectFailure("lead_email", "SMTP send returned no confirmation")

        SIDE_EFFECTS.labels(kind="lead_email", outcome="delivered").inc()
        return True
    except Exception as e:
        handle_job_failure("lead_email", contact_id, e)
        raise
    finally:
        session.close()
