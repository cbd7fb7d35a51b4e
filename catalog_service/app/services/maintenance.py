"""
Background tree maintenance for Catalog Service

Structural mutations commit their rows (bounds included) and return; the
scheduler then repairs drifted bounds and refreshes the path cache outside the
request. Requests arriving while a run is in flight are coalesced into one
follow-up run.
"""

import asyncio
import time
from typing import Any, Dict, Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..events.event_producers import CatalogEventProducer
from ..utils.logging import setup_catalog_logging as setup_logging
from .cache import CategoryPathCache, PathLoader
from .consistency_guard import ConsistencyGuard

logger = setup_logging("catalog_service.tree_maintenance")


def database_path_loader(session_maker: async_sessionmaker[AsyncSession]) -> PathLoader:
    """Path cache loader reading the tree in its own session"""

    async def load():
        async with session_maker() as session:
            return await ConsistencyGuard(session).build_category_paths()

    return load


class TreeMaintenanceScheduler:
    """Runs fix_tree followed by a path cache rebuild in the background"""

    def __init__(
        self,
        session_maker: async_sessionmaker[AsyncSession],
        path_cache: CategoryPathCache,
        max_retries: int = 3,
        retry_delay: float = 1.0,
        event_producer: Optional[CatalogEventProducer] = None,
    ):
        self.session_maker = session_maker
        self.path_cache = path_cache
        self.max_retries = max(1, max_retries)
        self.retry_delay = retry_delay
        self.event_producer = event_producer
        self.runs = 0
        self.failures = 0
        self.last_run_at: Optional[float] = None
        self._pending = False
        self._task: Optional[asyncio.Task[None]] = None
        self._lock = asyncio.Lock()

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def schedule(self, reason: str = "structural_change") -> None:
        """Invalidate the path cache now and queue one maintenance run"""
        self.path_cache.invalidate_all()
        self._pending = True
        coalesced = self.is_running
        if not coalesced:
            self._task = asyncio.get_running_loop().create_task(self._run())
        logger.debug(
            "Tree maintenance scheduled",
            extra={"reason": reason, "coalesced": coalesced},
        )

    async def _run(self) -> None:
        async with self._lock:
            while self._pending:
                self._pending = False
                await self._run_with_retries()

    async def _run_with_retries(self) -> None:
        for attempt in range(self.max_retries):
            try:
                await self.run_once()
                return
            except Exception as e:
                self.failures += 1
                delay = self.retry_delay * (2**attempt)
                if attempt < self.max_retries - 1:
                    logger.warning(
                        f"Tree maintenance attempt {attempt + 1} failed: {e}. "
                        f"Retrying in {delay} seconds...",
                        extra={"attempt": attempt + 1, "operation": "tree_maintenance"},
                    )
                    await asyncio.sleep(delay)
                else:
                    # The cache stays invalidated and reloads on the next read
                    logger.error(
                        f"Tree maintenance failed after {self.max_retries} attempts",
                        extra={"error": str(e), "operation": "tree_maintenance"},
                        exc_info=True,
                    )

    async def run_once(self) -> bool:
        """One maintenance pass. Returns True when bounds had to be repaired."""
        async with self.session_maker() as session:
            repaired = await ConsistencyGuard(session).fix_tree()
        entries = await self.path_cache.rebuild_all()

        self.runs += 1
        self.last_run_at = time.time()
        logger.info(
            "Tree maintenance completed",
            extra={
                "repaired": repaired,
                "paths": entries,
                "operation": "tree_maintenance",
            },
        )

        if self.event_producer:
            await self.event_producer.publish_tree_rebuilt(
                categories=entries, repaired=repaired
            )
        return repaired

    async def drain(self) -> None:
        """Wait until no maintenance run is queued or in flight"""
        while self.is_running:
            await asyncio.shield(self._task)

    async def stop(self) -> None:
        await self.drain()
        self._task = None

    def get_stats(self) -> Dict[str, Any]:
        return {
            "running": self.is_running,
            "pending": self._pending,
            "runs": self.runs,
            "failures": self.failures,
            "last_run_at": self.last_run_at,
        }
