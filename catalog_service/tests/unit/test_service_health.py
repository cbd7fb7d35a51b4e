import pytest
from sqlalchemy.pool import StaticPool

from catalog_service.app.core.database import engine_options
from catalog_service.app.utils.service_health import CatalogServiceHealthChecker


@pytest.fixture
def checker():
    return CatalogServiceHealthChecker("catalog-service", "2.0.0")


class TestCatalogServiceHealthChecker:
    @pytest.mark.asyncio
    async def test_sync_and_async_checks(self, checker):
        # Arrange
        async def database():
            return {"status": "healthy"}

        checker.add_check("database", database)
        checker.add_check("path_cache", lambda: {"status": "healthy", "entries": 3})

        # Act
        report = await checker.run_checks()

        # Assert
        assert report["status"] == "healthy"
        assert report["version"] == "2.0.0"
        assert report["checks"]["path_cache"]["entries"] == 3
        assert "duration_ms" in report["checks"]["database"]

    @pytest.mark.asyncio
    async def test_degraded_component_degrades_service(self, checker):
        checker.add_check("database", lambda: {"status": "healthy"})
        checker.add_check("events", lambda: {"status": "degraded", "connected": False})

        report = await checker.run_checks()

        assert report["status"] == "degraded"

    @pytest.mark.asyncio
    async def test_failing_check_is_unhealthy(self, checker):
        async def database():
            raise ConnectionError("database is down")

        checker.add_check("database", database)
        checker.add_check("events", lambda: {"status": "degraded"})

        report = await checker.run_checks()

        assert report["status"] == "unhealthy"
        assert report["checks"]["database"]["error"] == "database is down"

    @pytest.mark.asyncio
    async def test_no_checks(self, checker):
        report = await checker.run_checks()

        assert report["status"] == "healthy"
        assert report["checks"] == {}


class TestEngineOptions:
    def test_in_memory_sqlite_shares_one_connection(self):
        options = engine_options("sqlite+aiosqlite:///:memory:")

        assert options["poolclass"] is StaticPool
        assert options["connect_args"]["check_same_thread"] is False

    def test_file_sqlite_is_pooled(self):
        options = engine_options("sqlite+aiosqlite:///./catalog.db")

        assert "poolclass" not in options

    def test_postgres_pool(self):
        options = engine_options(
            "postgresql+asyncpg://catalog:secret@db:5432/catalog", echo=True
        )

        assert options["echo"] is True
        assert options["pool_pre_ping"] is True
        assert options["connect_args"]["prepared_statement_cache_size"] == 0
