"""
In-memory category path cache for Catalog Service
"""

import asyncio
import time
from typing import Any, Awaitable, Callable, Dict, Optional

from ...utils.logging import setup_catalog_logging
from ..consistency_guard import CategoryPath

logger = setup_catalog_logging("catalog_service.path_cache")

PathLoader = Callable[[], Awaitable[Dict[int, CategoryPath]]]


class CategoryPathCache:
    """All-or-nothing cache of category paths keyed by category id.

    The whole map is swapped on rebuild and dropped on invalidation; there are
    no per-entry updates. A read on an empty cache rebuilds it on demand, so a
    missing cache is never an error.
    """

    def __init__(self, loader: PathLoader, max_size: int = 50000):
        self.loader = loader
        self.max_size = max_size
        self.paths: Optional[Dict[int, CategoryPath]] = None
        self.built_at: Optional[float] = None
        self.hits = 0
        self.misses = 0
        self.rebuilds = 0
        self._lock = asyncio.Lock()

    @property
    def is_loaded(self) -> bool:
        return self.paths is not None

    async def get(self, category_id: int) -> Optional[CategoryPath]:
        """Path of one category, None when the category does not exist"""
        paths = self.paths
        if paths is None:
            self.misses += 1
            paths = await self._load()
        else:
            self.hits += 1
        return paths.get(category_id)

    async def get_all(self) -> Dict[int, CategoryPath]:
        paths = self.paths
        if paths is None:
            self.misses += 1
            paths = await self._load()
        else:
            self.hits += 1
        return dict(paths)

    async def rebuild_all(self) -> int:
        """Reload every path and swap the map in one step"""
        async with self._lock:
            paths = await self.loader()
            self._store(paths)
            return len(paths)

    def invalidate_all(self) -> None:
        self.paths = None
        self.built_at = None
        logger.debug("Category path cache invalidated")

    async def _load(self) -> Dict[int, CategoryPath]:
        async with self._lock:
            # Another reader may have rebuilt it while we waited
            if self.paths is not None:
                return self.paths
            paths = await self.loader()
            self._store(paths)
            return paths

    def _store(self, paths: Dict[int, CategoryPath]) -> None:
        self.rebuilds += 1
        if len(paths) > self.max_size:
            logger.warning(
                "Category path map exceeds cache size, serving uncached",
                extra={"entries": len(paths), "max_size": self.max_size},
            )
            self.paths = None
            self.built_at = None
            return
        self.paths = paths
        self.built_at = time.time()
        logger.info(
            "Category path cache rebuilt",
            extra={"entries": len(paths), "rebuilds": self.rebuilds},
        )

    def get_stats(self) -> Dict[str, Any]:
        """Get cache statistics"""
        return {
            "loaded": self.is_loaded,
            "entries": len(self.paths) if self.paths is not None else 0,
            "max_size": self.max_size,
            "hits": self.hits,
            "misses": self.misses,
            "rebuilds": self.rebuilds,
            "built_at": self.built_at,
        }


__all__ = ["CategoryPathCache", "PathLoader"]
