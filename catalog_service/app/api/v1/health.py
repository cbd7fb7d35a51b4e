from typing import Any, Dict

from fastapi import APIRouter, Request
from sqlalchemy import text

from ...core.database import database_manager
from ...core.event_management import health_check_events
from ...core.setting import get_settings
from ...utils.service_health import CatalogServiceHealthChecker

router = APIRouter()


async def _database_check() -> Dict[str, Any]:
    async with database_manager.async_session_maker() as session:
        await session.execute(text("SELECT 1"))
    return {"status": "healthy"}


async def _events_check() -> Dict[str, Any]:
    connected = await health_check_events()
    # Events fall back to logging, so a lost broker only degrades the service
    return {"status": "healthy" if connected else "degraded", "connected": connected}


def _stats_check(component) -> Any:
    return lambda: {"status": "healthy", **component.get_stats()}


@router.get("/health")
async def health_check(request: Request) -> Dict[str, Any]:
    """Database, path cache, tree maintenance and (when enabled) Kafka state"""
    settings = get_settings()
    checker = CatalogServiceHealthChecker(settings.SERVICE_NAME, settings.APP_VERSION)
    checker.add_check("database", _database_check)

    for name, attribute in (("path_cache", "path_cache"), ("tree_maintenance", "tree_scheduler")):
        component = getattr(request.app.state, attribute, None)
        if component is not None:
            checker.add_check(name, _stats_check(component))

    if settings.EVENTS_ENABLED:
        checker.add_check("events", _events_check)

    return await checker.run_checks()
