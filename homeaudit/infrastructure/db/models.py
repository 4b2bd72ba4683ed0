from __future__ import annotations

import enum
import uuid
from datetime import UTC, date, datetime
from decimal import Decimal

from sqlalchemy import (
    JSON,
    Boolean,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base


def _uuid() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _enum_column(enum_cls: type[enum.Enum], name: str) -> Enum:
    return Enum(enum_cls, name=name, values_callable=lambda e: [x.value for x in e])


class UserRole(str, enum.Enum):
    """User role enum matching auth.Role."""

    HOMEOWNER = "homeowner"
    OFFICER = "officer"
    ADMIN = "admin"


class AppointmentStatus(str, enum.Enum):
    SCHEDULED = "scheduled"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    @classmethod
    def terminal_statuses(cls) -> tuple[AppointmentStatus, ...]:
        return (cls.COMPLETED, cls.CANCELLED)

    @property
    def is_terminal(self) -> bool:
        return self in self.terminal_statuses()

    def can_transition_to(self, target: AppointmentStatus) -> bool:
        return target in _APPOINTMENT_TRANSITIONS[self]


_APPOINTMENT_TRANSITIONS: dict[AppointmentStatus, frozenset[AppointmentStatus]] = {
    AppointmentStatus.SCHEDULED: frozenset(
        {AppointmentStatus.IN_PROGRESS, AppointmentStatus.CANCELLED}
    ),
    AppointmentStatus.IN_PROGRESS: frozenset(
        {AppointmentStatus.COMPLETED, AppointmentStatus.CANCELLED}
    ),
    AppointmentStatus.COMPLETED: frozenset(),
    AppointmentStatus.CANCELLED: frozenset(),
}


class TimeSlot(str, enum.Enum):
    """Bookable visit start times."""

    NINE_AM = "9:00 AM"
    TEN_AM = "10:00 AM"
    ELEVEN_AM = "11:00 AM"
    NOON = "12:00 PM"
    ONE_PM = "1:00 PM"
    TWO_PM = "2:00 PM"
    THREE_PM = "3:00 PM"
    FOUR_PM = "4:00 PM"
    FIVE_PM = "5:00 PM"

    @classmethod
    def parse(cls, value: str) -> TimeSlot | None:
        """Accept "2:00 PM", "2PM", "2 pm" or "14:00"."""
        raw = value.strip().upper().replace(" ", "")
        if not raw:
            return None
        if raw.endswith(("AM", "PM")):
            clock, meridiem = raw[:-2], raw[-2:]
            hour_text, _, minute_text = clock.partition(":")
            if not hour_text.isdigit() or minute_text not in ("", "00"):
                return None
            hour = int(hour_text) % 12 + (12 if meridiem == "PM" else 0)
        else:
            hour_text, sep, minute_text = raw.partition(":")
            if not sep or not hour_text.isdigit() or minute_text != "00":
                return None
            hour = int(hour_text)
        for slot in cls:
            if slot.hour == hour:
                return slot
        return None

    @property
    def hour(self) -> int:
        clock, meridiem = self.value.split(" ")
        hour = int(clock.split(":")[0]) % 12
        return hour + 12 if meridiem == "PM" else hour


class ItemCategory(str, enum.Enum):
    ELECTRONICS = "Electronics"
    JEWELRY = "Jewelry"
    FURNITURE = "Furniture"
    ARTWORK = "Artwork"
    APPLIANCES = "Appliances"
    OTHER = "Other"

    @classmethod
    def parse(cls, value: str) -> ItemCategory | None:
        normalized = value.strip().lower()
        for category in cls:
            if category.value.lower() == normalized:
                return category
        return None


class ReportStatus(str, enum.Enum):
    GENERATING = "generating"
    COMPLETED = "completed"
    FAILED = "failed"


class PaymentStatus(str, enum.Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"


class BillableService(str, enum.Enum):
    AUDIT = "audit"
    TITLE_PROTECTION = "title_protection"


class AgreementStatus(str, enum.Enum):
    SENT = "sent"
    SIGNED = "signed"
    DECLINED = "declined"
    EXPIRED = "expired"


class SubscriptionStatus(str, enum.Enum):
    PENDING = "pending"
    ACTIVE = "active"
    CANCELLED = "cancelled"


class BillingFrequency(str, enum.Enum):
    MONTHLY = "monthly"
    YEARLY = "yearly"


class AlertSeverity(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class AlertType(str, enum.Enum):
    TITLE_CHANGE = "title_change"
    LIEN_FILED = "lien_filed"
    OWNERSHIP_TRANSFER = "ownership_transfer"
    COURT_ACTION = "court_action"


class UserModel(Base):
    """SQLAlchemy model for users table."""

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    hashed_password: Mapped[str] = mapped_column(String(255), nullable=False)
    full_name: Mapped[str] = mapped_column(String(128), nullable=False)
    phone: Mapped[str | None] = mapped_column(String(32), nullable=True)
    role: Mapped[UserRole] = mapped_column(
        _enum_column(UserRole, "user_role"),
        default=UserRole.HOMEOWNER,
        nullable=False,
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, server_default=func.now(), nullable=False
    )

    def __repr__(self) -> str:
        return f"<UserModel(id={self.id}, email={self.email}, role={self.role.value})>"


class Appointment(Base):
    __tablename__ = "appointments"
    __table_args__ = (
        Index("ix_appointments_status_preferred_date", "status", "preferred_date"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    customer_id: Mapped[str | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True
    )
    officer_id: Mapped[str | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True
    )
    full_name: Mapped[str] = mapped_column(String(128), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[str] = mapped_column(String(32), nullable=False)
    address: Mapped[str] = mapped_column(Text, nullable=False)
    preferred_date: Mapped[date] = mapped_column(Date, nullable=False)
    preferred_time: Mapped[TimeSlot] = mapped_column(
        _enum_column(TimeSlot, "time_slot"), nullable=False
    )
    status: Mapped[AppointmentStatus] = mapped_column(
        _enum_column(AppointmentStatus, "appointment_status"),
        default=AppointmentStatus.SCHEDULED,
        nullable=False,
    )
    has_receipts_ready: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, server_default=func.now(), nullable=False
    )
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    reminder_sent_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    day_of_reminder_sent_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    customer: Mapped[UserModel | None] = relationship(foreign_keys=[customer_id])
    officer: Mapped[UserModel | None] = relationship(foreign_keys=[officer_id])
    items: Mapped[list[AuditItem]] = relationship(
        back_populates="appointment",
        cascade="all,delete-orphan",
        order_by="AuditItem.created_at.desc()",
    )
    report: Mapped[Report | None] = relationship(
        back_populates="appointment", cascade="all,delete-orphan", uselist=False
    )


class AuditItem(Base):
    """One documented valuable."""

    __tablename__ = "audit_items"
    __table_args__ = (
        UniqueConstraint("appointment_id", "sequence", name="uq_audit_items_appointment_sequence"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    appointment_id: Mapped[str] = mapped_column(
        ForeignKey("appointments.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    category: Mapped[ItemCategory] = mapped_column(
        _enum_column(ItemCategory, "item_category"), nullable=False
    )
    description: Mapped[str] = mapped_column(Text, nullable=False)
    estimated_value: Mapped[Decimal] = mapped_column(
        Numeric(10, 2), nullable=False, default=Decimal("0.00")
    )
    serial_number: Mapped[str | None] = mapped_column(String(128), nullable=True)
    model: Mapped[str | None] = mapped_column(String(128), nullable=True)
    photo_url: Mapped[str | None] = mapped_column(String(512), nullable=True)
    receipt_url: Mapped[str | None] = mapped_column(String(512), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    # 1-based insertion order within the appointment.
    sequence: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, server_default=func.now(), nullable=False
    )

    appointment: Mapped[Appointment] = relationship(back_populates="items")


class Report(Base):
    """Generated audit report; one row per appointment."""

    __tablename__ = "reports"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    appointment_id: Mapped[str] = mapped_column(
        ForeignKey("appointments.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
        index=True,
    )
    customer_id: Mapped[str | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    officer_id: Mapped[str] = mapped_column(ForeignKey("users.id"), nullable=False)
    report_number: Mapped[str] = mapped_column(String(32), unique=True, nullable=False)
    pdf_url: Mapped[str | None] = mapped_column(String(512), nullable=True)
    status: Mapped[ReportStatus] = mapped_column(
        _enum_column(ReportStatus, "report_status"),
        default=ReportStatus.GENERATING,
        nullable=False,
        index=True,
    )
    total_items_documented: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    total_estimated_value: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), default=Decimal("0.00"), nullable=False
    )
    customer_signature: Mapped[str | None] = mapped_column(Text, nullable=True)
    officer_signature: Mapped[str | None] = mapped_column(Text, nullable=True)
    metadata_: Mapped[dict | None] = mapped_column("metadata", JSON, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, server_default=func.now(), nullable=False
    )
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    appointment: Mapped[Appointment] = relationship(back_populates="report")


class Payment(Base):
    __tablename__ = "payments"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    appointment_id: Mapped[str | None] = mapped_column(
        ForeignKey("appointments.id", ondelete="SET NULL"), nullable=True, index=True
    )
    customer_id: Mapped[str] = mapped_column(
        ForeignKey("users.id"), nullable=False, index=True
    )
    provider_payment_id: Mapped[str | None] = mapped_column(String(128), nullable=True)
    amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), default="USD", nullable=False)
    service: Mapped[BillableService] = mapped_column(
        _enum_column(BillableService, "billable_service"), nullable=False
    )
    status: Mapped[PaymentStatus] = mapped_column(
        _enum_column(PaymentStatus, "payment_status"),
        default=PaymentStatus.PENDING,
        nullable=False,
        index=True,
    )
    payment_method: Mapped[str | None] = mapped_column(String(32), nullable=True)
    failure_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, server_default=func.now(), nullable=False
    )
    processed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))


class SignatureAgreement(Base):
    """Service agreement envelope sent to a customer for e-signature."""

    __tablename__ = "docusign_agreements"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    appointment_id: Mapped[str] = mapped_column(
        ForeignKey("appointments.id", ondelete="CASCADE"), nullable=False, index=True
    )
    customer_id: Mapped[str | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    envelope_id: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    status: Mapped[AgreementStatus] = mapped_column(
        _enum_column(AgreementStatus, "agreement_status"),
        default=AgreementStatus.SENT,
        nullable=False,
    )
    signing_url: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    signed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, server_default=func.now(), nullable=False
    )


class TitleMonitoringSubscription(Base):
    __tablename__ = "title_monitoring"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    customer_id: Mapped[str] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    property_address: Mapped[str] = mapped_column(Text, nullable=False)
    alert_email: Mapped[str] = mapped_column(String(255), nullable=False)
    frequency: Mapped[BillingFrequency] = mapped_column(
        _enum_column(BillingFrequency, "billing_frequency"), nullable=False
    )
    amount: Mapped[Decimal] = mapped_column(Numeric(6, 2), nullable=False)
    billing_subscription_id: Mapped[str | None] = mapped_column(String(128), nullable=True)
    status: Mapped[SubscriptionStatus] = mapped_column(
        _enum_column(SubscriptionStatus, "subscription_status"),
        default=SubscriptionStatus.PENDING,
        nullable=False,
    )
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    next_billing_date: Mapped[date] = mapped_column(Date, nullable=False)
    last_checked_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, server_default=func.now(), nullable=False
    )

    alerts: Mapped[list[TitleAlert]] = relationship(
        back_populates="subscription",
        cascade="all,delete-orphan",
        order_by="TitleAlert.created_at.desc()",
    )


class TitleAlert(Base):
    __tablename__ = "title_alerts"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    subscription_id: Mapped[str] = mapped_column(
        ForeignKey("title_monitoring.id", ondelete="CASCADE"), nullable=False, index=True
    )
    alert_type: Mapped[AlertType] = mapped_column(
        _enum_column(AlertType, "alert_type"), nullable=False
    )
    severity: Mapped[AlertSeverity] = mapped_column(
        _enum_column(AlertSeverity, "alert_severity"), nullable=False
    )
    description: Mapped[str] = mapped_column(Text, nullable=False)
    action_required: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    document_url: Mapped[str | None] = mapped_column(String(512), nullable=True)
    resolved: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    resolved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, server_default=func.now(), nullable=False
    )

    subscription: Mapped[TitleMonitoringSubscription] = relationship(back_populates="alerts")


__all__ = [
    "AgreementStatus",
    "AlertSeverity",
    "AlertType",
    "Appointment",
    "AppointmentStatus",
    "AuditItem",
    "BillableService",
    "BillingFrequency",
    "ItemCategory",
    "Payment",
    "PaymentStatus",
    "Report",
    "ReportStatus",
    "SignatureAgreement",
    "SubscriptionStatus",
    "TimeSlot",
    "TitleAlert",
    "TitleMonitoringSubscription",
    "UserModel",
    "UserRole",
]
