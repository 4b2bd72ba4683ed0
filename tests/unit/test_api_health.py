from fastapi.testclient import TestClient
from homeaudit.api.main import app
from homeaudit.api.routes import health


async def _ok() -> dict:
    return {"status": "ok"}


def test_health_endpoint_returns_service_metadata(monkeypatch) -> None:
    async def redis_down() -> dict:
        return {"status": "error", "message": "connection refused"}

    monkeypatch.setattr(health, "check_database", _ok)
    monkeypatch.setattr(health, "check_redis", redis_down)
    monkeypatch.setattr(health, "check_report_archive", _ok)
    client = TestClient(app)

    response = client.get("/health")

    assert response.status_code == 200
    payload = response.json()
    assert payload["service"]
    assert payload["status"] == "degraded"
    assert payload["datastores"]["database"] == {"status": "ok"}
    assert payload["datastores"]["redis"]["status"] == "error"
    assert response.headers["X-Request-ID"]


def test_health_is_ok_when_every_check_passes(monkeypatch) -> None:
    for name in ("check_database", "check_redis", "check_report_archive"):
        monkeypatch.setattr(health, name, _ok)

    payload = TestClient(app).get("/health").json()

    assert payload["status"] == "ok"
    assert set(payload["datastores"]) == {"database", "redis", "report_archive"}


async def test_report_archive_check_creates_directory(tmp_path, monkeypatch) -> None:
    target = tmp_path / "reports"
    monkeypatch.setenv("REPORT_ARCHIVE_DIR", str(target))
    health.get_settings.cache_clear()
    try:
        result = await health.check_report_archive()
    finally:
        health.get_settings.cache_clear()

    assert result == {"status": "ok"}
    assert target.is_dir()
