"""Audit item ledger: the valuables an officer documents during one visit."""

from __future__ import annotations

import math
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

import structlog
from homeaudit.core.config import Settings, get_settings
from homeaudit.domain import User
from homeaudit.domain.errors import (
    NotFoundError,
    PermissionDeniedError,
    PreconditionError,
    ValidationError,
)
from homeaudit.domain.services.appointments import can_view_appointment, ensure_assigned_officer
from homeaudit.infrastructure.db.models import (
    Appointment,
    AppointmentStatus,
    AuditItem,
    ItemCategory,
)
from homeaudit.infrastructure.repositories import UnitOfWork
from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()

CENTS = Decimal("0.01")

UPDATABLE_FIELDS = frozenset(
    {
        "category",
        "description",
        "estimated_value",
        "serial_number",
        "model",
        "photo_url",
        "receipt_url",
        "notes",
    }
)


def parse_estimated_value(raw: Any) -> Decimal:
    """Lenient money parsing: junk becomes 0, negatives are rejected."""
    if raw is None:
        return Decimal("0.00")
    if isinstance(raw, float) and not math.isfinite(raw):
        return Decimal("0.00")
    text = str(raw).strip().replace(",", "").lstrip("$")
    try:
        value = Decimal(text)
    except (InvalidOperation, ValueError):
        return Decimal("0.00")
    if not value.is_finite():
        return Decimal("0.00")
    if value < 0:
        raise ValidationError("Estimated value cannot be negative")
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


def parse_category(raw: Any) -> ItemCategory:
    if isinstance(raw, ItemCategory):
        return raw
    category = ItemCategory.parse(str(raw or ""))
    if category is None:
        allowed = ", ".join(c.value for c in ItemCategory)
        raise ValidationError(f"Invalid category '{raw}'. Expected one of: {allowed}")
    return category


@dataclass(slots=True)
class LedgerProgress:
    documented: int
    target: int

    @property
    def percent(self) -> int:
        """Completion for display, capped at 100."""
        if self.target <= 0:
            return 100
        return min(100, (self.documented * 100) // self.target)


@dataclass(slots=True)
class LedgerTotals:
    item_count: int
    total_value: Decimal


class AuditLedgerService:
    def __init__(self, session: AsyncSession, settings: Settings | None = None) -> None:
        self.session = session
        self.uow = UnitOfWork(session)
        self.settings = settings or get_settings()

    async def add_item(
        self,
        *,
        appointment_id: str,
        category: ItemCategory | str,
        description: str,
        estimated_value: Any = None,
        serial_number: str | None = None,
        model: str | None = None,
        photo_url: str | None = None,
        receipt_url: str | None = None,
        notes: str | None = None,
        actor: User,
    ) -> AuditItem:
        if not actor.is_officer:
            raise PermissionDeniedError("Only officers can document items")

        appointment = await self._get_appointment(appointment_id, for_update=True)
        self._ensure_mutable(appointment, actor)

        if not (description or "").strip():
            raise ValidationError("Item description is required")

        item = AuditItem(
            appointment_id=appointment.id,
            category=parse_category(category),
            description=description.strip(),
            estimated_value=parse_estimated_value(estimated_value),
            serial_number=serial_number or None,
            model=model or None,
            photo_url=photo_url or None,
            receipt_url=receipt_url or None,
            notes=notes or None,
            sequence=await self.uow.audit_items.next_sequence(appointment.id),
        )
        await self.uow.audit_items.add(item)

        started = appointment.status == AppointmentStatus.SCHEDULED
        if started:
            appointment.status = AppointmentStatus.IN_PROGRESS

        await self.uow.commit()
        await self.uow.refresh(item)

        await logger.ainfo(
            "audit_item_added",
            appointment_id=appointment.id,
            item_id=item.id,
            category=item.category.value,
            estimated_value=str(item.estimated_value),
            audit_started=started,
        )
        return item

    async def list_items(self, *, appointment_id: str, actor: User) -> list[AuditItem]:
        appointment = await self._get_appointment(appointment_id)
        if not can_view_appointment(appointment, actor):
            raise PermissionDeniedError("Not allowed to view items for this appointment")
        return await self.uow.audit_items.list_for_appointment(appointment.id)

    async def update_item(
        self, *, item_id: str, changes: dict[str, Any], actor: User
    ) -> AuditItem:
        item = await self._get_item(item_id)
        appointment = await self._get_appointment(item.appointment_id, for_update=True)
        self._ensure_mutable(appointment, actor)

        unknown = set(changes) - UPDATABLE_FIELDS
        if unknown:
            raise ValidationError(f"Fields cannot be updated: {', '.join(sorted(unknown))}")

        for name, value in changes.items():
            if name == "category":
                value = parse_category(value)
            elif name == "estimated_value":
                value = parse_estimated_value(value)
            elif name == "description":
                if not (value or "").strip():
                    raise ValidationError("Item description is required")
                value = value.strip()
            setattr(item, name, value)

        await self.uow.commit()
        await self.uow.refresh(item)
        await logger.ainfo("audit_item_updated", item_id=item.id, fields=sorted(changes))
        return item

    async def delete_item(self, *, item_id: str, actor: User) -> None:
        item = await self._get_item(item_id)
        appointment = await self._get_appointment(item.appointment_id, for_update=True)
        self._ensure_mutable(appointment, actor)

        await self.uow.audit_items.delete(item)
        await self.uow.commit()
        await logger.ainfo("audit_item_deleted", item_id=item_id, appointment_id=appointment.id)

    async def progress(self, appointment_id: str) -> LedgerProgress:
        documented = await self.uow.audit_items.count_for_appointment(appointment_id)
        return LedgerProgress(documented=documented, target=self.settings.target_item_count)

    async def totals(self, appointment_id: str) -> LedgerTotals:
        return LedgerTotals(
            item_count=await self.uow.audit_items.count_for_appointment(appointment_id),
            total_value=await self.uow.audit_items.total_value_for_appointment(appointment_id),
        )

    def _ensure_mutable(self, appointment: Appointment, actor: User) -> None:
        ensure_assigned_officer(appointment, actor)
        if appointment.status.is_terminal:
            raise PreconditionError(
                f"Items cannot change on a {appointment.status.value} appointment"
            )

    async def _get_appointment(self, appointment_id: str, *, for_update: bool = False) -> Appointment:
        appointment = await self.uow.appointments.get(appointment_id, for_update=for_update)
        if appointment is None:
            raise NotFoundError(f"Appointment {appointment_id} not found")
        return appointment

    async def _get_item(self, item_id: str) -> AuditItem:
        item = await self.uow.audit_items.get(item_id)
        if item is None:
            raise NotFoundError(f"Audit item {item_id} not found")
        return item
