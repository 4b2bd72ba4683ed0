from fastapi import APIRouter, FastAPI

from . import (
    agreements,
    appointments,
    audit_items,
    auth,
    dashboard,
    health,
    officers,
    payments,
    reports,
    title_monitoring,
)


def register_routes(app: FastAPI) -> None:
    """Attach all API routers to the FastAPI application."""
    app.include_router(health.router)

    api = APIRouter(prefix="/api")
    api.include_router(auth.router)
    api.include_router(appointments.router)
    api.include_router(audit_items.router)
    api.include_router(officers.router)
    api.include_router(dashboard.router)
    api.include_router(reports.router)
    api.include_router(payments.router)
    api.include_router(agreements.router)
    api.include_router(title_monitoring.router)
    app.include_router(api)
