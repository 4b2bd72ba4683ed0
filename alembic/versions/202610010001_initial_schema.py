"""Initial schema for users, appointments, audit items and reports

Revision ID: 202610010001
Revises:
Create Date: 2026-10-01 00:01:00
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

revision = "202610010001"
down_revision = None
branch_labels = None
depends_on = None

user_role_enum = sa.Enum("homeowner", "officer", "admin", name="user_role")
time_slot_enum = sa.Enum(
    "9:00 AM",
    "10:00 AM",
    "11:00 AM",
    "12:00 PM",
    "1:00 PM",
    "2:00 PM",
    "3:00 PM",
    "4:00 PM",
    "5:00 PM",
    name="time_slot",
)
appointment_status_enum = sa.Enum(
    "scheduled", "in_progress", "completed", "cancelled", name="appointment_status"
)
item_category_enum = sa.Enum(
    "Electronics",
    "Jewelry",
    "Furniture",
    "Artwork",
    "Appliances",
    "Other",
    name="item_category",
)
report_status_enum = sa.Enum("generating", "completed", "failed", name="report_status")
payment_status_enum = sa.Enum(
    "pending", "completed", "failed", "refunded", name="payment_status"
)
billable_service_enum = sa.Enum("audit", "title_protection", name="billable_service")
agreement_status_enum = sa.Enum(
    "sent", "signed", "declined", "expired", name="agreement_status"
)
subscription_status_enum = sa.Enum(
    "pending", "active", "cancelled", name="subscription_status"
)
billing_frequency_enum = sa.Enum("monthly", "yearly", name="billing_frequency")
alert_type_enum = sa.Enum(
    "title_change", "lien_filed", "ownership_transfer", "court_action", name="alert_type"
)
alert_severity_enum = sa.Enum("low", "medium", "high", "critical", name="alert_severity")


def _created_at() -> sa.Column:
    return sa.Column(
        "created_at",
        sa.DateTime(timezone=True),
        nullable=False,
        server_default=sa.func.now(),
    )


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("email", sa.String(length=255), nullable=False, unique=True),
        sa.Column("hashed_password", sa.String(length=255), nullable=False),
        sa.Column("full_name", sa.String(length=128), nullable=False),
        sa.Column("phone", sa.String(length=32), nullable=True),
        sa.Column("role", user_role_enum, nullable=False, server_default="homeowner"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        _created_at(),
    )
    op.create_index("ix_users_email", "users", ["email"])

    op.create_table(
        "appointments",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column(
            "customer_id",
            sa.String(length=36),
            sa.ForeignKey("users.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column(
            "officer_id",
            sa.String(length=36),
            sa.ForeignKey("users.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("full_name", sa.String(length=128), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("phone", sa.String(length=32), nullable=False),
        sa.Column("address", sa.Text(), nullable=False),
        sa.Column("preferred_date", sa.Date(), nullable=False),
        sa.Column("preferred_time", time_slot_enum, nullable=False),
        sa.Column(
            "status", appointment_status_enum, nullable=False, server_default="scheduled"
        ),
        sa.Column(
            "has_receipts_ready", sa.Boolean(), nullable=False, server_default=sa.text("false")
        ),
        sa.Column("notes", sa.Text(), nullable=True),
        _created_at(),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("reminder_sent_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("day_of_reminder_sent_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_appointments_customer_id", "appointments", ["customer_id"])
    op.create_index("ix_appointments_officer_id", "appointments", ["officer_id"])
    op.create_index(
        "ix_appointments_status_preferred_date", "appointments", ["status", "preferred_date"]
    )

    op.create_table(
        "audit_items",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column(
            "appointment_id",
            sa.String(length=36),
            sa.ForeignKey("appointments.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("category", item_category_enum, nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column(
            "estimated_value", sa.Numeric(10, 2), nullable=False, server_default="0.00"
        ),
        sa.Column("serial_number", sa.String(length=128), nullable=True),
        sa.Column("model", sa.String(length=128), nullable=True),
        sa.Column("photo_url", sa.String(length=512), nullable=True),
        sa.Column("receipt_url", sa.String(length=512), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("sequence", sa.Integer(), nullable=False, server_default="1"),
        _created_at(),
        sa.UniqueConstraint(
            "appointment_id", "sequence", name="uq_audit_items_appointment_sequence"
        ),
    )
    op.create_index("ix_audit_items_appointment_id", "audit_items", ["appointment_id"])

    op.create_table(
        "reports",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column(
            "appointment_id",
            sa.String(length=36),
            sa.ForeignKey("appointments.id", ondelete="CASCADE"),
            nullable=False,
            unique=True,
        ),
        sa.Column(
            "customer_id",
            sa.String(length=36),
            sa.ForeignKey("users.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column(
            "officer_id", sa.String(length=36), sa.ForeignKey("users.id"), nullable=False
        ),
        sa.Column("report_number", sa.String(length=32), nullable=False, unique=True),
        sa.Column("pdf_url", sa.String(length=512), nullable=True),
        sa.Column("status", report_status_enum, nullable=False, server_default="generating"),
        sa.Column(
            "total_items_documented", sa.Integer(), nullable=False, server_default="0"
        ),
        sa.Column(
            "total_estimated_value", sa.Numeric(12, 2), nullable=False, server_default="0.00"
        ),
        sa.Column("customer_signature", sa.Text(), nullable=True),
        sa.Column("officer_signature", sa.Text(), nullable=True),
        sa.Column("metadata", sa.JSON(), nullable=True),
        _created_at(),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_reports_appointment_id", "reports", ["appointment_id"])
    op.create_index("ix_reports_status", "reports", ["status"])

    op.create_table(
        "payments",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column(
            "appointment_id",
            sa.String(length=36),
            sa.ForeignKey("appointments.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column(
            "customer_id", sa.String(length=36), sa.ForeignKey("users.id"), nullable=False
        ),
        sa.Column("provider_payment_id", sa.String(length=128), nullable=True),
        sa.Column("amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("currency", sa.String(length=3), nullable=False, server_default="USD"),
        sa.Column("service", billable_service_enum, nullable=False),
        sa.Column("status", payment_status_enum, nullable=False, server_default="pending"),
        sa.Column("payment_method", sa.String(length=32), nullable=True),
        sa.Column("failure_reason", sa.Text(), nullable=True),
        _created_at(),
        sa.Column("processed_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_payments_appointment_id", "payments", ["appointment_id"])
    op.create_index("ix_payments_customer_id", "payments", ["customer_id"])
    op.create_index("ix_payments_status", "payments", ["status"])

    op.create_table(
        "docusign_agreements",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column(
            "appointment_id",
            sa.String(length=36),
            sa.ForeignKey("appointments.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "customer_id",
            sa.String(length=36),
            sa.ForeignKey("users.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("envelope_id", sa.String(length=64), nullable=False, unique=True),
        sa.Column("status", agreement_status_enum, nullable=False, server_default="sent"),
        sa.Column("signing_url", sa.String(length=1024), nullable=True),
        sa.Column("signed_at", sa.DateTime(timezone=True), nullable=True),
        _created_at(),
    )
    op.create_index(
        "ix_docusign_agreements_appointment_id", "docusign_agreements", ["appointment_id"]
    )

    op.create_table(
        "title_monitoring",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column(
            "customer_id", sa.String(length=36), sa.ForeignKey("users.id"), nullable=False
        ),
        sa.Column("property_address", sa.Text(), nullable=False),
        sa.Column("alert_email", sa.String(length=255), nullable=False),
        sa.Column("frequency", billing_frequency_enum, nullable=False),
        sa.Column("amount", sa.Numeric(6, 2), nullable=False),
        sa.Column("billing_subscription_id", sa.String(length=128), nullable=True),
        sa.Column(
            "status", subscription_status_enum, nullable=False, server_default="pending"
        ),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("next_billing_date", sa.Date(), nullable=False),
        sa.Column("last_checked_at", sa.DateTime(timezone=True), nullable=True),
        _created_at(),
    )
    op.create_index("ix_title_monitoring_customer_id", "title_monitoring", ["customer_id"])

    op.create_table(
        "title_alerts",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column(
            "subscription_id",
            sa.String(length=36),
            sa.ForeignKey("title_monitoring.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("alert_type", alert_type_enum, nullable=False),
        sa.Column("severity", alert_severity_enum, nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column(
            "action_required", sa.Boolean(), nullable=False, server_default=sa.text("false")
        ),
        sa.Column("document_url", sa.String(length=512), nullable=True),
        sa.Column("resolved", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("resolved_at", sa.DateTime(timezone=True), nullable=True),
        _created_at(),
    )
    op.create_index("ix_title_alerts_subscription_id", "title_alerts", ["subscription_id"])


def downgrade() -> None:
    op.drop_index("ix_title_alerts_subscription_id", table_name="title_alerts")
    op.drop_table("title_alerts")
    op.drop_index("ix_title_monitoring_customer_id", table_name="title_monitoring")
    op.drop_table("title_monitoring")
    op.drop_index("ix_docusign_agreements_appointment_id", table_name="docusign_agreements")
    op.drop_table("docusign_agreements")
    op.drop_index("ix_payments_status", table_name="payments")
    op.drop_index("ix_payments_customer_id", table_name="payments")
    op.drop_index("ix_payments_appointment_id", table_name="payments")
    op.drop_table("payments")
    op.drop_index("ix_reports_status", table_name="reports")
    op.drop_index("ix_reports_appointment_id", table_name="reports")
    op.drop_table("reports")
    op.drop_index("ix_audit_items_appointment_id", table_name="audit_items")
    op.drop_table("audit_items")
    op.drop_index("ix_appointments_status_preferred_date", table_name="appointments")
    op.drop_index("ix_appointments_officer_id", table_name="appointments")
    op.drop_index("ix_appointments_customer_id", table_name="appointments")
    op.drop_table("appointments")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")

    bind = op.get_bind()
    for enum in (
        alert_severity_enum,
        alert_type_enum,
        billing_frequency_enum,
        subscription_status_enum,
        agreement_status_enum,
        billable_service_enum,
        payment_status_enum,
        report_status_enum,
        item_category_enum,
        appointment_status_enum,
        time_slot_enum,
        user_role_enum,
    ):
        enum.drop(bind, checkfirst=True)
