"""
Integration tests for application startup and shutdown.

These tests verify that the lifespan creates the decision engine's tables
only when configured to, and disposes of the engine on shutdown.
"""

import pytest
from sqlalchemy import inspect
from structlog.testing import capture_logs

from loan_decision_engine import main
from loan_decision_engine.core.config import settings
from loan_decision_engine.infrastructure.database import db_manager


@pytest.fixture
def sqlite_settings(monkeypatch):
    monkeypatch.setattr(settings, "database_url", "sqlite+aiosqlite:///:memory:")
    monkeypatch.setattr(main, "setup_logging", lambda: None)
    return settings


async def table_names() -> set[str]:
    async with db_manager.engine.connect() as conn:
        return set(await conn.run_sync(lambda sync_conn: inspect(sync_conn).get_table_names()))


class TestLifespan:
    """Startup and shutdown of the database engine."""

    @pytest.mark.asyncio
    async def test_creates_tables_when_configured(self, sqlite_settings, monkeypatch):
        monkeypatch.setattr(sqlite_settings, "db_create_tables", True)

        with capture_logs() as logs:
            async with main.lifespan(main.app):
                tables = await table_names()

        assert {"loan", "loan_decision", "decisioning_rule", "loan_application_workflow"} <= tables
        started = next(entry for entry in logs if entry["event"] == "application_started")
        assert started["version"] == main.__version__
        assert started["metrics_enabled"] is sqlite_settings.metrics_enabled

    @pytest.mark.asyncio
    async def test_leaves_schema_alone_by_default(self, sqlite_settings, monkeypatch):
        monkeypatch.setattr(sqlite_settings, "db_create_tables", False)

        async with main.lifespan(main.app):
            tables = await table_names()

        assert tables == set()

    @pytest.mark.asyncio
    async def test_engine_is_disposed_on_shutdown(self, sqlite_settings):
        async with main.lifespan(main.app):
            pass

        with pytest.raises(RuntimeError):
            db_manager.engine
