"""
FastAPI dependency injection for Catalog Service

Provides database sessions, services, the process-wide path cache and tree
maintenance scheduler, and correlation ID management. Event publishing is
handled by the core.event_management module.
"""

from typing import AsyncGenerator, Optional

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_db_session
from ..core.event_management import get_event_producer
from ..events.event_producers import CatalogEventProducer
from ..services.action_service import ActionService
from ..services.attribute_service import AttributeService
from ..services.cache import CategoryPathCache
from ..services.category_service import CategoryService
from ..services.maintenance import TreeMaintenanceScheduler
from ..services.resolution_service import ResolutionService

# =====================================================
# DATABASE DEPENDENCIES
# =====================================================


async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    """Provide async database session"""
    async for session in get_db_session():
        yield session


# =====================================================
# PROCESS-WIDE COLLABORATORS
# =====================================================


def get_catalog_event_producer() -> Optional[CatalogEventProducer]:
    """Provide CatalogEventProducer instance, None when events are off"""
    return get_event_producer()


def get_path_cache(request: Request) -> CategoryPathCache:
    return request.app.state.path_cache


def get_tree_scheduler(request: Request) -> TreeMaintenanceScheduler:
    return request.app.state.tree_scheduler


# =====================================================
# SERVICE DEPENDENCIES
# =====================================================


def get_category_service(
    session: AsyncSession = Depends(get_async_session),
    event_producer: Optional[CatalogEventProducer] = Depends(
        get_catalog_event_producer
    ),
    scheduler: TreeMaintenanceScheduler = Depends(get_tree_scheduler),
) -> CategoryService:
    """Provide CategoryService with event publishing and tree maintenance"""
    return CategoryService(session, event_producer, scheduler)


def get_attribute_service(
    session: AsyncSession = Depends(get_async_session),
) -> AttributeService:
    return AttributeService(session)


def get_action_service(
    session: AsyncSession = Depends(get_async_session),
) -> ActionService:
    return ActionService(session)


def get_resolution_service(
    session: AsyncSession = Depends(get_async_session),
) -> ResolutionService:
    """One resolver per request: memoization never outlives the request"""
    return ResolutionService(session)


# =====================================================
# REQUEST CONTEXT DEPENDENCIES
# =====================================================


def get_correlation_id(request: Request) -> Optional[str]:
    """Extract correlation ID from request headers or state"""
    correlation_id = (
        request.headers.get("X-Correlation-ID")
        or request.headers.get("correlation-id")
        or request.headers.get("x-request-id")
    )
    if not correlation_id:
        correlation_id = getattr(request.state, "correlation_id", None)
    return correlation_id


# =====================================================
# COMMON DEPENDENCY ALIASES
# =====================================================

CorrelationIdDep = Depends(get_correlation_id)
PathCacheDep = Depends(get_path_cache)

CategoryServiceDep = Depends(get_category_service)
AttributeServiceDep = Depends(get_attribute_service)
ActionServiceDep = Depends(get_action_service)
ResolutionServiceDep = Depends(get_resolution_service)
