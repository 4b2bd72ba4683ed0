"""Static copy and pricing used by notifications and title monitoring."""

from __future__ import annotations

from decimal import Decimal

PREPARATION_CHECKLIST: tuple[str, ...] = (
    "Gather receipts for valuables (electronics, jewelry, furniture, artwork, etc.)",
    "Collect items to photograph and document",
    "Warranty papers and appraisals for high-value items",
    "Officer will arrive in uniform and show proper identification",
)

FINAL_PREPARATION_CHECKLIST: tuple[str, ...] = (
    "Have all receipts organized and ready",
    "Gather all valuable items in accessible locations",
    "Ensure warranty papers and appraisals are available",
    "Be ready to provide access to all areas being audited",
)

NEXT_STEPS: tuple[str, ...] = (
    "Service Agreement: You'll receive an e-signature email to complete the service agreement",
    "24-Hour Reminder: We'll send you a reminder email with officer details",
    "Officer Visit: Professional documentation of your valuables and receipt verification",
    "PDF Report: Receive your comprehensive documentation report via email",
)

AGREEMENT_TERMS: tuple[str, ...] = (
    "Scope of service and item documentation limits",
    "Liability terms and insurance coverage",
    "Consent for officer to document items and take photos",
    "Billing terms and payment schedules",
    "Privacy and data protection policies",
)

REPORT_CONTENTS: tuple[str, ...] = (
    "Complete inventory of documented items",
    "Receipt verification and documentation",
    "Timestamp and report ID for insurance purposes",
    "Secure evidence package for claims",
)

# Title monitoring plans: billing frequency -> price per period (USD)
TITLE_MONITORING_PLANS: dict[str, Decimal] = {
    "monthly": Decimal("5.00"),
    "yearly": Decimal("50.00"),
}

OFFICER_CREDENTIAL_LABEL = "Licensed Security Professional"
DEFAULT_OFFICER_NAME = "Licensed Security Officer"
