import asyncio
import json
from typing import Dict, Optional

from aiokafka import AIOKafkaProducer  # type: ignore
from aiokafka.errors import KafkaConnectionError, KafkaError  # type: ignore

from ...core.setting import get_settings
from ...utils.logging import setup_catalog_logging as setup_logging
from . import BaseEvent, EventPublisher

logger = setup_logging(
    "catalog_service.events.kafka", log_level=get_settings().LOG_LEVEL
)

CATEGORY_TOPIC = "catalog.category.events"
DEFAULT_TOPIC = "catalog.events"

TOPICS: Dict[str, str] = {
    "category.created": CATEGORY_TOPIC,
    "category.updated": CATEGORY_TOPIC,
    "category.deleted": CATEGORY_TOPIC,
    "category.tree_rebuilt": CATEGORY_TOPIC,
}


def _encode(value) -> Optional[bytes]:
    return value.encode("utf-8") if value else None


class KafkaEventPublisher(EventPublisher):
    """
    Publishes catalog events to Kafka.

    Messages are keyed by ``category_id`` when the event carries one, so the
    history of a single category stays ordered within its partition. While
    Kafka is unreachable and degradation is enabled, events are written to the
    log instead and catalog writes carry on.
    """

    def __init__(
        self,
        bootstrap_servers: str,
        client_id: str,
        max_retries: int = 5,
        retry_delay: float = 2.0,
        enable_graceful_degradation: bool = True,
    ):
        self.bootstrap_servers = bootstrap_servers
        self.client_id = client_id
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.enable_graceful_degradation = enable_graceful_degradation
        self.producer: Optional[AIOKafkaProducer] = None
        self.is_connected = False
        self._connection_lock = asyncio.Lock()

    def _build_producer(self) -> AIOKafkaProducer:
        return AIOKafkaProducer(
            bootstrap_servers=self.bootstrap_servers,
            client_id=self.client_id,
            value_serializer=lambda value: json.dumps(value, default=str).encode("utf-8"),  # type: ignore
            key_serializer=_encode,  # type: ignore
            retry_backoff_ms=1000,
            request_timeout_ms=30000,
        )

    async def start(self, timeout: float = 30.0) -> None:
        """Connect, retrying with exponential backoff before falling back to degraded mode"""
        async with self._connection_lock:
            if self.producer and self.is_connected:
                return

            self.producer = self._build_producer()
            for attempt in range(1, self.max_retries + 1):
                try:
                    await asyncio.wait_for(self.producer.start(), timeout=timeout)  # type: ignore
                except (KafkaConnectionError, asyncio.TimeoutError) as e:
                    delay = self.retry_delay * 2 ** (attempt - 1)
                    logger.warning(
                        "Kafka connection attempt failed",
                        extra={
                            "attempt": attempt,
                            "max_retries": self.max_retries,
                            "retry_in": delay,
                            "error": str(e),
                            "operation": "kafka_connect",
                        },
                    )
                    if attempt < self.max_retries:
                        await asyncio.sleep(delay)
                    continue

                self.is_connected = True
                logger.info(
                    "Connected to Kafka",
                    extra={"attempt": attempt, "operation": "kafka_connect"},
                )
                return

            self.is_connected = False
            logger.error(
                "Kafka unreachable, catalog events will only be logged",
                extra={"max_retries": self.max_retries, "operation": "kafka_connect"},
            )

    async def stop(self) -> None:
        async with self._connection_lock:
            if not self.producer:
                return
            try:
                await self.producer.stop()  # type: ignore
                logger.info("Kafka producer stopped")
            except Exception as e:
                logger.warning(
                    "Error stopping Kafka producer",
                    extra={"error": str(e), "operation": "stop_producer"},
                )
            finally:
                self.producer = None
                self.is_connected = False

    def _log_instead(self, event: BaseEvent, reason: str) -> None:
        logger.warning(
            "Catalog event not published, logging it instead",
            extra={
                "reason": reason,
                "event_id": event.event_id,
                "event_type": event.event_type,
                "event_data": event.model_dump(mode="json"),
            },
        )

    @staticmethod
    def _partition_key(event: BaseEvent) -> Optional[str]:
        category_id = event.data.get("category_id")
        if category_id is not None:
            return str(category_id)
        return event.correlation_id

    async def publish(self, event: BaseEvent, topic: Optional[str] = None) -> None:
        if not self.is_connected or not self.producer:
            if not self.enable_graceful_degradation:
                raise KafkaConnectionError("Kafka producer not connected")
            self._log_instead(event, "not connected")
            return

        topic = topic or self._get_topic_for_event(event.event_type)
        try:
            await self.producer.send_and_wait(  # type: ignore
                topic=topic,
                value=event.model_dump(mode="json"),
                key=self._partition_key(event),
            )
        except KafkaError as e:
            if not self.enable_graceful_degradation:
                logger.error(
                    "Failed to publish catalog event",
                    extra={
                        "event_id": event.event_id,
                        "event_type": event.event_type,
                        "error": str(e),
                        "operation": "publish_event_failed",
                    },
                )
                raise
            self._log_instead(event, f"send failed: {e}")
            return

        logger.info(
            "Published catalog event",
            extra={
                "event_id": event.event_id,
                "event_type": event.event_type,
                "topic": topic,
                "correlation_id": event.correlation_id,
                "operation": "publish_event",
            },
        )

    def _get_topic_for_event(self, event_type: str) -> str:
        return TOPICS.get(event_type, DEFAULT_TOPIC)

    async def health_check(self) -> bool:
        """True while connected and the cluster reports at least one broker"""
        if not self.producer or not self.is_connected:
            return False
        try:
            metadata = await self.producer.client.fetch_all_metadata()  # type: ignore
        except Exception as e:
            logger.warning(
                "Kafka health check failed",
                extra={"error": str(e), "operation": "health_check"},
            )
            return False
        return len(metadata.brokers()) > 0  # type: ignore
