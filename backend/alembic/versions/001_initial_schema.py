"""Initial schema with all core tables.

Revision ID: 001
Revises: None
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID, JSONB

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Contacts
    op.create_table(
        "contacts",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("company_id", UUID(as_uuid=True), nullable=False),
        sa.Column("assigned_employee_id", UUID(as_uuid=True), nullable=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("phone", sa.String(50), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="LEAD"),
        sa.Column("temperature", sa.String(10), nullable=False, server_default="COLD"),
        sa.Column("interest_score", sa.Integer, nullable=False, server_default="0"),
        sa.Column("tracking_token", sa.String(64), nullable=True),
        sa.Column("version", sa.Integer, nullable=False, server_default="1"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.CheckConstraint(
            "status IN ('LEAD', 'MQL', 'SQL', 'OPPORTUNITY', 'CUSTOMER', 'EVANGELIST', 'DORMANT')",
            name="ck_contacts_status",
        ),
        sa.CheckConstraint("temperature IN ('COLD', 'WARM', 'HOT')", name="ck_contacts_temperature"),
    )
    op.create_index("ix_contacts_company_id", "contacts", ["company_id"])
    op.create_index("ix_contacts_assigned_employee_id", "contacts", ["assigned_employee_id"])
    op.create_index("ix_contacts_email", "contacts", ["email"])
    op.create_index("ix_contacts_status", "contacts", ["status"])

    # Opportunities
    op.create_table(
        "opportunities",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("contact_id", UUID(as_uuid=True), sa.ForeignKey("contacts.id"), nullable=False),
        sa.Column("created_by", UUID(as_uuid=True), nullable=True),
        sa.Column("expected_value", sa.Numeric(14, 2), nullable=False),
        sa.Column("status", sa.String(10), nullable=False, server_default="OPEN"),
        sa.Column("reason", sa.Text, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("closed_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_opportunities_contact_id", "opportunities", ["contact_id"])
    op.create_index(
        "uq_opportunities_open_per_contact",
        "opportunities",
        ["contact_id"],
        unique=True,
        postgresql_where=sa.text("status = 'OPEN'"),
    )

    # Deals - one per won opportunity
    op.create_table(
        "deals",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("opportunity_id", UUID(as_uuid=True), sa.ForeignKey("opportunities.id"), nullable=False, unique=True),
        sa.Column("contact_id", UUID(as_uuid=True), sa.ForeignKey("contacts.id"), nullable=False),
        sa.Column("deal_value", sa.Numeric(14, 2), nullable=False),
        sa.Column("closed_by", UUID(as_uuid=True), nullable=True),
        sa.Column("closed_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_deals_contact_id", "deals", ["contact_id"])

    # Sessions
    op.create_table(
        "sessions",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("contact_id", UUID(as_uuid=True), sa.ForeignKey("contacts.id"), nullable=False),
        sa.Column("employee_id", UUID(as_uuid=True), nullable=True),
        sa.Column("stage", sa.String(20), nullable=False),
        sa.Column("rating", sa.Integer, nullable=True),
        sa.Column("session_status", sa.String(20), nullable=False, server_default="CONNECTED"),
        sa.Column("mode_of_contact", sa.String(20), nullable=False, server_default="CALL"),
        sa.Column("remarks", sa.Text, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.CheckConstraint("rating IS NULL OR (rating BETWEEN 1 AND 10)", name="ck_sessions_rating"),
    )
    op.create_index("ix_sessions_contact_id", "sessions", ["contact_id"])
    op.create_index("ix_sessions_stage", "sessions", ["stage"])

    # Feedback
    op.create_table(
        "feedback",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("contact_id", UUID(as_uuid=True), sa.ForeignKey("contacts.id"), nullable=False),
        sa.Column("rating", sa.Integer, nullable=False),
        sa.Column("comment", sa.Text, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.CheckConstraint("rating BETWEEN 1 AND 10", name="ck_feedback_rating"),
    )
    op.create_index("ix_feedback_contact_id", "feedback", ["contact_id"])

    # Status history (append-only)
    op.create_table(
        "status_history",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("contact_id", UUID(as_uuid=True), sa.ForeignKey("contacts.id"), nullable=False),
        sa.Column("old_status", sa.String(20), nullable=False),
        sa.Column("new_status", sa.String(20), nullable=False),
        sa.Column("changed_by", UUID(as_uuid=True), nullable=True),
        sa.Column("changed_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_status_history_contact_changed_at", "status_history", ["contact_id", "changed_at"])

    # Notifications
    op.create_table(
        "notifications",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("company_id", UUID(as_uuid=True), nullable=True),
        sa.Column("employee_id", UUID(as_uuid=True), nullable=True),
        sa.Column("type", sa.String(50), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("message", sa.Text, nullable=False),
        sa.Column("entity_type", sa.String(30), server_default="CONTACT"),
        sa.Column("entity_id", UUID(as_uuid=True), nullable=True),
        sa.Column("priority", sa.Integer, server_default="5"),
        sa.Column("payload", JSONB, nullable=True),
        sa.Column("is_read", sa.Boolean, server_default="false"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_notifications_company_id", "notifications", ["company_id"])
    op.create_index("ix_notifications_employee_id", "notifications", ["employee_id"])

    # Side effects that exhausted their retries
    op.create_table(
        "dispatch_failures",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("kind", sa.String(30), nullable=False),
        sa.Column("contact_id", UUID(as_uuid=True), nullable=True),
        sa.Column("job_id", sa.String(100), nullable=True),
        sa.Column("attempts", sa.Integer, server_default="1"),
        sa.Column("error_message", sa.Text, nullable=True),
        sa.Column("payload", JSONB, nullable=True),
        sa.Column("failed_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_dispatch_failures_kind", "dispatch_failures", ["kind"])
    op.create_index("ix_dispatch_failures_contact_id", "dispatch_failures", ["contact_id"])


def downgrade() -> None:
    op.drop_table("dispatch_failures")
    op.drop_table("notifications")
    op.drop_table("status_history")
    op.drop_table("feedback")
    op.drop_table("sessions")
    op.drop_table("deals")
    op.drop_table("opportunities")
    op.drop_table("contacts")
