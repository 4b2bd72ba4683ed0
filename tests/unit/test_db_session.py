from __future__ import annotations

from homeaudit.core.config import Settings
from homeaudit.infrastructure.db import session as db_session


def test_postgres_urls_get_pool_sizing() -> None:
    settings = Settings(
        DATABASE_URL="postgres://audit:secret@db:5432/homeaudit", DATABASE_POOL_SIZE=3
    )

    options = db_session.engine_options(settings)

    assert settings.async_database_url.startswith("postgresql+asyncpg://")
    assert options["pool_size"] == 3
    assert options["pool_pre_ping"] is True


def test_sqlite_urls_skip_pool_sizing() -> None:
    options = db_session.engine_options(Settings(DATABASE_URL="sqlite+aiosqlite://"))

    assert "pool_size" not in options
    assert options["connect_args"] == {"check_same_thread": False}


async def test_dispose_engine_without_engine_is_noop() -> None:
    await db_session.dispose_engine()

    assert db_session._engine is None
