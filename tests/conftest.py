from __future__ import annotations

from collections.abc import AsyncIterator
from decimal import Decimal
from pathlib import Path

import pytest
from homeaudit.api.deps import (
    get_db_session,
    get_notification_sender,
    get_payment_processor,
    get_report_archive,
    get_signature_provider,
)
from homeaudit.api.main import app
from homeaudit.domain.errors import DependencyError
from homeaudit.domain.services.agreements import Envelope, EnvelopeRequest
from homeaudit.domain.services.notifications import EmailMessage, NotificationDispatcher
from homeaudit.domain.services.payments import CaptureResult
from homeaudit.infrastructure.db.base import Base
from homeaudit.infrastructure.storage import LocalReportArchive
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool


class RecordingSender:
    """NotificationSender that keeps messages in memory; optionally fails every send."""

    def __init__(self, *, fail: bool = False) -> None:
        self.fail = fail
        self.messages: list[EmailMessage] = []

    async def send(self, message: EmailMessage) -> str:
        if self.fail:
            raise DependencyError("smtp relay unavailable")
        self.messages.append(message)
        return f"msg-{len(self.messages)}"

    def subjects_for(self, email: str) -> list[str]:
        return [message.subject for message in self.messages if message.to == email]


class FakePaymentProcessor:
    def __init__(self, *, decline: bool = False, status: str = "COMPLETED") -> None:
        self.decline = decline
        self.status = status
        self.captures: list[dict] = []

    async def capture(
        self,
        *,
        source_id: str,
        amount: Decimal,
        currency: str,
        idempotency_key: str,
        customer_reference: str | None = None,
    ) -> CaptureResult:
        if self.decline:
            raise DependencyError("CARD_DECLINED")
        self.captures.append(
            {"source_id": source_id, "amount": amount, "idempotency_key": idempotency_key}
        )
        return CaptureResult(
            provider_payment_id=f"sq-{len(self.captures)}", status=self.status, payment_method="card"
        )


class FakeSignatureProvider:
    def __init__(self) -> None:
        self.requests: list[EnvelopeRequest] = []
        self.statuses: dict[str, str] = {}

    async def create_envelope(self, request: EnvelopeRequest) -> Envelope:
        self.requests.append(request)
        envelope_id = f"env-{len(self.requests)}"
        self.statuses[envelope_id] = "sent"
        return Envelope(envelope_id=envelope_id, signing_url=f"https://sign.test/{envelope_id}")

    async def get_status(self, envelope_id: str) -> str:
        return self.statuses[envelope_id]


@pytest.fixture()
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture()
def session_factory(engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest.fixture()
async def session(session_factory) -> AsyncIterator[AsyncSession]:
    async with session_factory() as session:
        yield session


@pytest.fixture()
def sender() -> RecordingSender:
    return RecordingSender()


@pytest.fixture()
def notifier(sender: RecordingSender) -> NotificationDispatcher:
    return NotificationDispatcher(sender)


@pytest.fixture()
def archive(tmp_path: Path) -> LocalReportArchive:
    return LocalReportArchive(base_dir=tmp_path / "reports")


@pytest.fixture()
def payment_processor() -> FakePaymentProcessor:
    return FakePaymentProcessor()


@pytest.fixture()
def signature_provider() -> FakeSignatureProvider:
    return FakeSignatureProvider()


@pytest.fixture()
async def async_client(
    session_factory,
    sender: RecordingSender,
    archive: LocalReportArchive,
    payment_processor: FakePaymentProcessor,
    signature_provider: FakeSignatureProvider,
) -> AsyncIterator[AsyncClient]:
    """HTTP client against the app with storage and collaborators swapped for fakes."""

    async def override_db_session() -> AsyncIterator[AsyncSession]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db_session] = override_db_session
    app.dependency_overrides[get_notification_sender] = lambda: sender
    app.dependency_overrides[get_report_archive] = lambda: archive
    app.dependency_overrides[get_payment_processor] = lambda: payment_processor
    app.dependency_overrides[get_signature_provider] = lambda: signature_provider

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()
