from typing import Any, AsyncGenerator, Dict

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

# Importing the package registers every model on the metadata
from ..models import CatalogServiceBase
from ..utils.logging import setup_catalog_logging as setup_logging
from .setting import get_settings

logger = setup_logging("catalog_service.database", log_level=get_settings().LOG_LEVEL)

POSTGRES_POOL: Dict[str, Any] = {
    "pool_size": 20,
    "max_overflow": 40,
    "pool_timeout": 45,
    "pool_recycle": 3600,
    "pool_pre_ping": True,
    "pool_reset_on_return": "commit",
}


def engine_options(database_url: str, echo: bool = False) -> Dict[str, Any]:
    """Engine keyword arguments for the backend named in ``database_url``"""
    url = make_url(database_url)
    options: Dict[str, Any] = {"echo": echo}

    if url.get_backend_name() == "sqlite":
        options["connect_args"] = {"timeout": 60, "check_same_thread": False}
        if url.database in (None, "", ":memory:"):
            # One shared connection, otherwise every checkout sees an empty db
            options["poolclass"] = StaticPool
        return options

    options.update(POSTGRES_POOL)
    # Prepared statements break behind pgbouncer in transaction mode
    options["connect_args"] = {
        "command_timeout": 30,
        "prepared_statement_cache_size": 0,
    }
    return options


class CatalogServiceDatabaseManager:
    """Owns the async engine and session factory of the catalog database."""

    def __init__(self, database_url: str, echo: bool = False) -> None:
        options = engine_options(database_url, echo)
        logger.info(
            "Initializing catalog database",
            extra={
                "operation": "database_manager_init",
                "database_url": make_url(database_url).render_as_string(
                    hide_password=True
                ),
                "backend": make_url(database_url).get_backend_name(),
                "pooled": "poolclass" not in options,
            },
        )

        self.async_engine = create_async_engine(database_url, **options)
        self.async_session_maker = async_sessionmaker(
            bind=self.async_engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

    async def create_tables(self) -> None:
        """Create missing catalog tables; alembic remains the source of truth in production."""
        try:
            async with self.async_engine.begin() as conn:
                await conn.run_sync(
                    CatalogServiceBase.metadata.create_all, checkfirst=True
                )
        except Exception as e:
            # Another instance may have created them concurrently
            logger.warning(
                "Catalog table creation failed",
                extra={"operation": "create_tables", "error": str(e)},
            )
            return
        logger.info(
            "Catalog tables ready",
            extra={
                "operation": "create_tables",
                "tables": len(CatalogServiceBase.metadata.tables),
            },
        )

    async def get_async_session(self) -> AsyncGenerator[AsyncSession, None]:
        async with self.async_session_maker() as session:
            yield session

    async def close(self) -> None:
        await self.async_engine.dispose()
        logger.info("Catalog database connections closed", extra={"operation": "database_close"})


settings = get_settings()
if not settings.CATALOG_DATABASE_URL:
    error_msg = "CATALOG_DATABASE_URL is required for Catalog Service but not configured"
    logger.error(error_msg, extra={"operation": "global_database_init"})
    raise ValueError(error_msg)

database_manager = CatalogServiceDatabaseManager(
    database_url=settings.CATALOG_DATABASE_URL, echo=settings.DEBUG
)


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency yielding one session per request."""
    async for session in database_manager.get_async_session():
        yield session
