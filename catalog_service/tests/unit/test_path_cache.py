"""Tests for the in-memory category path cache"""

import asyncio
from unittest.mock import AsyncMock

import pytest

from catalog_service.app.services.cache import CategoryPathCache
from catalog_service.app.services.consistency_guard import CategoryPath

PATHS = {
    1: CategoryPath("electronics", 0),
    2: CategoryPath("electronics/phones", 1),
}


@pytest.fixture
def loader():
    return AsyncMock(return_value=dict(PATHS))


class TestCategoryPathCache:
    @pytest.mark.asyncio
    async def test_missing_cache_is_loaded_on_demand(self, loader):
        # Arrange
        cache = CategoryPathCache(loader)
        assert not cache.is_loaded

        # Act
        path = await cache.get(2)

        # Assert
        assert path == CategoryPath("electronics/phones", 1)
        assert cache.is_loaded
        loader.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_loaded_cache_serves_without_loader(self, loader):
        cache = CategoryPathCache(loader)
        await cache.rebuild_all()

        await cache.get(1)
        await cache.get(2)

        loader.assert_awaited_once()
        assert cache.get_stats()["hits"] == 2
        assert cache.get_stats()["misses"] == 0

    @pytest.mark.asyncio
    async def test_unknown_category_is_none(self, loader):
        cache = CategoryPathCache(loader)

        assert await cache.get(99) is None

    @pytest.mark.asyncio
    async def test_invalidate_drops_everything(self, loader):
        # Arrange
        cache = CategoryPathCache(loader)
        await cache.rebuild_all()

        # Act
        cache.invalidate_all()

        # Assert
        assert not cache.is_loaded
        assert cache.get_stats()["entries"] == 0
        await cache.get(1)
        assert loader.await_count == 2

    @pytest.mark.asyncio
    async def test_rebuild_swaps_whole_map(self, loader):
        # Arrange
        cache = CategoryPathCache(loader)
        await cache.rebuild_all()
        loader.return_value = {3: CategoryPath("vehicles", 0)}

        # Act
        entries = await cache.rebuild_all()

        # Assert
        assert entries == 1
        assert await cache.get(1) is None
        assert await cache.get(3) == CategoryPath("vehicles", 0)

    @pytest.mark.asyncio
    async def test_get_all_returns_copy(self, loader):
        cache = CategoryPathCache(loader)

        paths = await cache.get_all()
        paths.clear()

        assert await cache.get_all() == PATHS

    @pytest.mark.asyncio
    async def test_concurrent_misses_load_once(self):
        # Arrange
        async def slow_load():
            await asyncio.sleep(0.01)
            return dict(PATHS)

        loader = AsyncMock(side_effect=slow_load)
        cache = CategoryPathCache(loader)

        # Act
        results = await asyncio.gather(*(cache.get(1) for _ in range(5)))

        # Assert
        assert all(result == PATHS[1] for result in results)
        loader.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_oversized_map_is_served_uncached(self, loader):
        # Arrange
        cache = CategoryPathCache(loader, max_size=1)

        # Act
        path = await cache.get(1)

        # Assert
        assert path == PATHS[1]
        assert not cache.is_loaded
        await cache.get(1)
        assert loader.await_count == 2

    @pytest.mark.asyncio
    async def test_loader_failure_propagates_and_cache_stays_empty(self):
        loader = AsyncMock(side_effect=RuntimeError("database unavailable"))
        cache = CategoryPathCache(loader)

        with pytest.raises(RuntimeError):
            await cache.get(1)

        assert not cache.is_loaded

    def test_stats_before_first_load(self, loader):
        stats = CategoryPathCache(loader, max_size=10).get_stats()

        assert stats == {
            "loaded": False,
            "entries": 0,
            "max_size": 10,
            "hits": 0,
            "misses": 0,
            "rebuilds": 0,
            "built_at": None,
        }
