"""Notification sink and employee inbox, with an optional Slack mirror."""

import uuid
from typing import Optional

import httpx
import structlog
from sqlalchemy.orm import Session, sessionmaker

from crm.database import get_session_factory
from crm.models import Contact, Notification
from crm.repositories import notifications as notifications_repo
from crm.schemas.common import NotificationInboxResponse, NotificationResponse

logger = structlog.get_logger()

# type -> (title, message template, priority)
NOTIFICATION_TEMPLATES = {
    "LEAD_ENGAGED": ("Lead Engaged", "{contact_name} engaged with outreach and is now an MQL.", 6),
    "OPPORTUNITY_CREATED": ("Opportunity Created", "New opportunity for {contact_name} worth {expected_value}.", 7),
    "DEAL_WON": ("Deal Won", "Deal closed with {contact_name} for {deal_value}.", 8),
    "OPPORTUNITY_LOST": ("Opportunity Lost", "Opportunity with {contact_name} was lost.", 6),
    "CONTACT_EVANGELIST": ("New Evangelist", "{contact_name} is now an evangelist.", 5),
}


def format_notification(notification_type: str, payload: dict) -> tuple[str, str, int]:
    """Return (title, message, priority) for a notification type."""
    title, template, priority = NOTIFICATION_TEMPLATES.get(
        notification_type, (notification_type.replace("_", " ").title(), "{contact_name}", 5)
    )
    fields = {"contact_name": "A contact", **{k: v for k, v in payload.items() if v is not None}}
    try:
        message = template.format(**fields)
    except KeyError:
        message = template.split("{")[0].strip() or title
    return title, message, priority


def notify(
    session: Session,
    notification_type: str,
    contact: Contact,
    employee_id: uuid.UUID | None,
    payload: dict,
) -> Notification:
    """Persist an in-app notification for an employee (or the whole company)."""
    title, message, priority = format_notification(notification_type, payload)
    row = notifications_repo.create(
        session,
        type=notification_type,
        title=title,
        message=message,
        company_id=contact.company_id,
        employee_id=employee_id,
        entity_type="CONTACT",
        entity_id=contact.id,
        priority=priority,
        payload=payload,
    )
    logger.info("notification_created", type=notification_type, contact_id=str(contact.id))
    return row


def format_slack_blocks(notification: Notification) -> tuple[str, list]:
    """Format a notification for a Slack incoming webhook."""
    text = f"{notification.title}: {notification.message}"
    blocks = [
        {"type": "header", "text": {"type": "plain_text", "text": notification.title}},
        {"type": "section", "text": {"type": "mrkdwn", "text": notification.message}},
        {
            "type": "context",
            "elements": [{"type": "mrkdwn", "text": f"*Contact:* {notification.entity_id}"}],
        },
    ]
    return text, blocks


async def send_slack_notification(webhook_url: str, notification: Notification) -> bool:
    """Mirror a notification to Slack. Raises on HTTP failure so the job can retry."""
    if not webhook_url:
        logger.debug("slack_skipped_no_url")
        return False

    text, blocks = format_slack_blocks(notification)
    async with httpx.AsyncClient(timeout=10.0) as client:
        resp = await client.post(webhook_url, json={"text": text, "blocks": blocks})
        resp.raise_for_status()
    logger.info("slack_notification_sent", type=notification.type)
    return True


class NotificationInbox:
    """Employee-facing reads over the in-app notifications.

    An employee sees their own notifications plus the company-wide ones.
    """

    def __init__(self, session_factory: Optional[sessionmaker] = None):
        self.session_factory = session_factory or get_session_factory()

    def list_for_employee(
        self,
        company_id: uuid.UUID,
        employee_id: uuid.UUID,
        unread_only: bool = False,
        limit: int = 50,
    ) -> NotificationInboxResponse:
        with self.session_factory() as session:
            rows = notifications_repo.list_for_employee(
                session, company_id, employee_id, unread_only=unread_only, limit=limit
            )
            return NotificationInboxResponse(
                notifications=[NotificationResponse.model_validate(row) for row in rows],
                unread_count=notifications_repo.unread_count(session, company_id, employee_id),
            )

    def unread_count(self, company_id: uuid.UUID, employee_id: uuid.UUID) -> int:
        with self.session_factory() as session:
            return notifications_repo.unread_count(session, company_id, employee_id)

    def mark_as_read(self, notification_id: uuid.UUID, employee_id: uuid.UUID) -> bool:
        """False when the notification is missing or belongs to someone else."""
        with self.session_factory() as session:
            updated = notifications_repo.mark_as_read(session, notification_id, employee_id)
            session.commit()
        if updated:
            logger.info("notification_read", notification_id=str(notification_id))
        return updated
