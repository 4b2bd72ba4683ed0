"""Domain services."""

from homeaudit.domain.services.appointments import AppointmentService, BookingRequest
from homeaudit.domain.services.ledger import AuditLedgerService, LedgerProgress, LedgerTotals
from homeaudit.domain.services.notifications import (
    EmailMessage,
    NotificationDispatcher,
    NotificationSender,
    ResendNotificationSender,
)
from homeaudit.domain.services.report_compositor import ReportCompositor, ReportDocument
from homeaudit.domain.services.reports import GeneratedReport, ReportArchive, ReportService

__all__ = [
    "AppointmentService",
    "AuditLedgerService",
    "BookingRequest",
    "EmailMessage",
    "GeneratedReport",
    "LedgerProgress",
    "LedgerTotals",
    "NotificationDispatcher",
    "NotificationSender",
    "ReportArchive",
    "ReportCompositor",
    "ReportDocument",
    "ReportService",
    "ResendNotificationSender",
]
