"""
Tree consistency guard
======================

Validates the stored nested-set bounds against the parent pointers, rebuilds
them from scratch when they drift, and builds the category path listing that
feeds the path cache. Every operation recomputes from the full tree, so all of
them are idempotent and safe to retry.
"""

from typing import Dict, List, NamedTuple

from sqlalchemy.ext.asyncio import AsyncSession

from ..core.exceptions import ConsistencyDrift
from ..models.category import Category
from ..repository.category_repository import CategoryRepository
from ..utils.logging import setup_catalog_logging as setup_logging
from .tree import Bounds, CategoryTree

logger = setup_logging("catalog_service.consistency_guard")


class CategoryPath(NamedTuple):
    path: str
    depth: int


class ConsistencyGuard:
    """Validates and repairs the nested-set index of the category tree"""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.repository = CategoryRepository(db)

    async def load_tree(self) -> CategoryTree:
        return CategoryTree.from_categories(await self.repository.get_all(refresh=True))

    async def find_drift(self) -> List[int]:
        """Ids whose stored (lft, rgt, depth) differ from the recomputed ones"""
        tree = await self.load_tree()
        expected = tree.compute_bounds()
        stored = await self.repository.get_bounds()
        return sorted(
            category_id
            for category_id, bounds in expected.items()
            if stored.get(category_id) != (bounds.lft, bounds.rgt, bounds.depth)
        )

    async def is_consistent(self) -> bool:
        return not await self.find_drift()

    async def rebuild(self, commit: bool = True) -> int:
        """Recompute bounds from parent/sort pointers and store the changed ones.

        With ``commit=False`` the caller owns the transaction; structural
        mutations use this to write the new bounds together with the row
        change, so readers never see a torn tree.

        Returns the number of categories whose bounds changed.
        """
        categories = await self.repository.get_all(refresh=True)
        tree = CategoryTree.from_categories(categories)
        bounds = tree.compute_bounds()

        changed = 0
        for category in categories:
            new = bounds[category.id]
            if (category.lft, category.rgt, category.depth) != (
                new.lft,
                new.rgt,
                new.depth,
            ):
                self._apply(category, new)
                changed += 1

        if tree.detached:
            logger.warning(
                "Detached categories placed at root level",
                extra={"category_ids": tree.detached, "operation": "tree_rebuild"},
            )

        if changed:
            await self.db.flush()
        if commit:
            await self.db.commit()

        logger.info(
            "Category tree bounds rebuilt",
            extra={
                "categories": len(categories),
                "changed": changed,
                "operation": "tree_rebuild",
            },
        )
        return changed

    @staticmethod
    def _apply(category: Category, bounds: Bounds) -> None:
        category.lft = bounds.lft
        category.rgt = bounds.rgt
        category.depth = bounds.depth

    async def fix_tree(self) -> bool:
        """Rebuild only when the stored bounds drifted. Returns True if repaired."""
        drift = await self.find_drift()
        if not drift:
            return False

        error = ConsistencyDrift(
            "Stored category bounds disagree with parent pointers",
            details={"category_ids": drift[:50], "count": len(drift)},
        )
        logger.warning(
            error.message,
            extra={**error.details, "operation": "fix_tree"},
        )
        await self.rebuild(commit=True)
        return True

    async def build_category_paths(self) -> Dict[int, CategoryPath]:
        """id -> slug path and display depth, computed from parent pointers"""
        tree = await self.load_tree()
        return {
            category_id: CategoryPath(tree.path(category_id), depth)
            for category_id, depth in tree.flat_tree()
        }
