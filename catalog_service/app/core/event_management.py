"""
Catalog Service Event Management

Holds the process-wide Kafka publisher and the category event producer built
on it. ``get_event_producer()`` returns None while events are disabled, and
callers skip publishing in that case.
"""

from typing import Optional

from ..events.base.kafka_client import KafkaEventPublisher
from ..events.event_producers import CatalogEventProducer
from ..utils.logging import setup_catalog_logging as setup_logging
from .setting import get_settings

logger = setup_logging("catalog_service.events", log_level=get_settings().LOG_LEVEL)


class _EventRegistry:
    publisher: Optional[KafkaEventPublisher] = None
    producer: Optional[CatalogEventProducer] = None

    def clear(self) -> None:
        self.publisher = None
        self.producer = None


_registry = _EventRegistry()


async def init_events() -> None:
    settings = get_settings()
    if not settings.EVENTS_ENABLED:
        logger.info("Event publishing disabled", extra={"operation": "init_events"})
        return

    publisher = KafkaEventPublisher(
        bootstrap_servers=settings.KAFKA_BOOTSTRAP_SERVERS,
        client_id=f"{settings.SERVICE_NAME}-producer",
        enable_graceful_degradation=True,
    )
    try:
        await publisher.start(timeout=30.0)
    except Exception as e:
        # Producer construction itself failed; the catalog runs without events
        logger.warning(
            "Event publishing unavailable",
            extra={"operation": "init_events", "error": str(e)},
        )
        return

    _registry.publisher = publisher
    _registry.producer = CatalogEventProducer(publisher)
    logger.info(
        "Event publishing ready",
        extra={
            "operation": "init_events",
            "kafka_servers": settings.KAFKA_BOOTSTRAP_SERVERS,
            "kafka_connected": publisher.is_connected,
        },
    )


async def close_events() -> None:
    publisher = _registry.publisher
    _registry.clear()
    if publisher is None:
        return
    try:
        await publisher.stop()
    except Exception as e:
        logger.error(
            "Error closing event publisher",
            extra={"operation": "close_events", "error": str(e)},
        )


def get_event_producer() -> Optional[CatalogEventProducer]:
    return _registry.producer


async def health_check_events() -> bool:
    if _registry.publisher is None:
        return False
    return await _registry.publisher.health_check()
