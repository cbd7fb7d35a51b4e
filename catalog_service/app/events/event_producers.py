"""
Catalog Service Event Producers
===============================

Publishes category tree changes to other microservices (search indexing,
listing caches). Consumers live outside this service.
"""

from datetime import datetime, timezone
from typing import List, Optional

from ..core.setting import get_settings
from ..utils.logging import setup_catalog_logging as setup_logging
from .base import BaseEvent, EventPublisher
from .base.kafka_client import CATEGORY_TOPIC
from .schemas import (
    CATEGORY_CREATED,
    CATEGORY_DELETED,
    CATEGORY_TREE_REBUILT,
    CATEGORY_UPDATED,
    CategoryCreatedEventData,
    CategoryDeletedEventData,
    CategoryTreeRebuiltEventData,
    CategoryUpdatedEventData,
)

settings = get_settings()
logger = setup_logging("catalog_service.events.producers", log_level=settings.LOG_LEVEL)


class CatalogEventProducer:
    """Catalog service event producer"""

    def __init__(self, publisher: EventPublisher):
        self.publisher = publisher

    async def _publish(self, event: BaseEvent) -> None:
        await self.publisher.publish(event, topic=CATEGORY_TOPIC)

    async def publish_category_created(
        self,
        category_id: int,
        name: str,
        slug: str,
        parent_id: Optional[int] = None,
        correlation_id: Optional[str] = None,
    ) -> None:
        """Publish category created event"""
        try:
            event_data = CategoryCreatedEventData(
                category_id=category_id,
                name=name,
                slug=slug,
                parent_id=parent_id,
                created_at=datetime.now(timezone.utc),
            )
            await self._publish(
                BaseEvent(
                    event_type=CATEGORY_CREATED,
                    data=event_data.to_dict(),
                    correlation_id=correlation_id,
                )
            )
            logger.info(
                "Published category created event",
                extra={"category_id": category_id, "correlation_id": correlation_id},
            )
        except Exception as e:
            logger.error(f"Failed to publish category created event: {e}")
            raise

    async def publish_category_updated(
        self,
        category_id: int,
        updated_fields: List[str],
        parent_id: Optional[int] = None,
        previous_parent_id: Optional[int] = None,
        moved: bool = False,
        correlation_id: Optional[str] = None,
    ) -> None:
        """Publish category updated event"""
        try:
            event_data = CategoryUpdatedEventData(
                category_id=category_id,
                updated_fields=updated_fields,
                parent_id=parent_id,
                previous_parent_id=previous_parent_id,
                moved=moved,
                updated_at=datetime.now(timezone.utc),
            )
            await self._publish(
                BaseEvent(
                    event_type=CATEGORY_UPDATED,
                    data=event_data.to_dict(),
                    correlation_id=correlation_id,
                )
            )
            logger.info(
                "Published category updated event",
                extra={
                    "category_id": category_id,
                    "updated_fields": updated_fields,
                    "moved": moved,
                    "correlation_id": correlation_id,
                },
            )
        except Exception as e:
            logger.error(f"Failed to publish category updated event: {e}")
            raise

    async def publish_category_deleted(
        self,
        category_id: int,
        name: str,
        parent_id: Optional[int] = None,
        correlation_id: Optional[str] = None,
    ) -> None:
        """Publish category deleted event"""
        try:
            event_data = CategoryDeletedEventData(
                category_id=category_id,
                name=name,
                parent_id=parent_id,
                deleted_at=datetime.now(timezone.utc),
            )
            await self._publish(
                BaseEvent(
                    event_type=CATEGORY_DELETED,
                    data=event_data.to_dict(),
                    correlation_id=correlation_id,
                )
            )
            logger.info(
                "Published category deleted event",
                extra={"category_id": category_id, "correlation_id": correlation_id},
            )
        except Exception as e:
            logger.error(f"Failed to publish category deleted event: {e}")
            raise

    async def publish_tree_rebuilt(self, categories: int, repaired: bool) -> None:
        """Publish tree rebuilt event once paths were recomputed"""
        try:
            event_data = CategoryTreeRebuiltEventData(
                categories=categories,
                repaired=repaired,
                rebuilt_at=datetime.now(timezone.utc),
            )
            await self._publish(
                BaseEvent(event_type=CATEGORY_TREE_REBUILT, data=event_data.to_dict())
            )
            logger.info(
                "Published category tree rebuilt event",
                extra={"categories": categories, "repaired": repaired},
            )
        except Exception as e:
            logger.error(f"Failed to publish category tree rebuilt event: {e}")
            raise
