from __future__ import annotations

from fastapi import APIRouter, Depends, status
from homeaudit.api.deps import get_current_user, get_db_session, http_error, require_roles
from homeaudit.api.schemas.title_monitoring import (
    AlertCreate,
    AlertResponse,
    SubscribeRequest,
    SubscriptionResponse,
    TitleMonitoringStatsResponse,
)
from homeaudit.core.auth import Role
from homeaudit.domain import User
from homeaudit.domain.errors import DomainError
from homeaudit.domain.services.title_monitoring import TitleMonitoringService
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/title-monitoring", tags=["title-monitoring"])


@router.post(
    "/subscribe", response_model=SubscriptionResponse, status_code=status.HTTP_201_CREATED
)
async def subscribe(
    payload: SubscribeRequest,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
) -> SubscriptionResponse:
    try:
        subscription = await TitleMonitoringService(session).subscribe(
            property_address=payload.property_address,
            alert_email=payload.alert_email,
            frequency=payload.frequency,
            billing_subscription_id=payload.billing_subscription_id,
            actor=user,
        )
    except DomainError as exc:
        raise http_error(exc) from exc
    return SubscriptionResponse.model_validate(subscription)


@router.get("/subscriptions", response_model=list[SubscriptionResponse])
async def list_subscriptions(
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
) -> list[SubscriptionResponse]:
    subscriptions = await TitleMonitoringService(session).list_subscriptions(actor=user)
    return [SubscriptionResponse.model_validate(sub) for sub in subscriptions]


@router.get("/stats", response_model=TitleMonitoringStatsResponse)
async def stats(
    user: User = Depends(require_roles([Role.ADMIN])),
    session: AsyncSession = Depends(get_db_session),
) -> TitleMonitoringStatsResponse:
    try:
        result = await TitleMonitoringService(session).get_stats(actor=user)
    except DomainError as exc:
        raise http_error(exc) from exc
    return TitleMonitoringStatsResponse(
        total_subscriptions=result.total_subscriptions,
        active_subscriptions=result.active_subscriptions,
        monthly_revenue=result.monthly_revenue,
        yearly_revenue=result.yearly_revenue,
        total_alerts=result.total_alerts,
        unresolved_critical_alerts=result.unresolved_critical_alerts,
    )


@router.post("/{subscription_id}/cancel", response_model=SubscriptionResponse)
async def cancel(
    subscription_id: str,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
) -> SubscriptionResponse:
    try:
        subscription = await TitleMonitoringService(session).cancel(
            subscription_id=subscription_id, actor=user
        )
    except DomainError as exc:
        raise http_error(exc) from exc
    return SubscriptionResponse.model_validate(subscription)


@router.get("/{subscription_id}/alerts", response_model=list[AlertResponse])
async def list_alerts(
    subscription_id: str,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
) -> list[AlertResponse]:
    try:
        alerts = await TitleMonitoringService(session).list_alerts(
            subscription_id=subscription_id, actor=user
        )
    except DomainError as exc:
        raise http_error(exc) from exc
    return [AlertResponse.model_validate(alert) for alert in alerts]


@router.post(
    "/{subscription_id}/alerts",
    response_model=AlertResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Record an alert from the title-records feed",
)
async def record_alert(
    subscription_id: str,
    payload: AlertCreate,
    user: User = Depends(require_roles([Role.ADMIN])),
    session: AsyncSession = Depends(get_db_session),
) -> AlertResponse:
    try:
        alert = await TitleMonitoringService(session).record_alert(
            subscription_id=subscription_id, **payload.model_dump()
        )
    except DomainError as exc:
        raise http_error(exc) from exc
    return AlertResponse.model_validate(alert)


@router.post("/{subscription_id}/alerts/{alert_id}/resolve", response_model=AlertResponse)
async def resolve_alert(
    subscription_id: str,
    alert_id: str,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
) -> AlertResponse:
    try:
        alert = await TitleMonitoringService(session).resolve_alert(
            subscription_id=subscription_id, alert_id=alert_id, actor=user
        )
    except DomainError as exc:
        raise http_error(exc) from exc
    return AlertResponse.model_validate(alert)
