"""Category repository: the tree store"""

import re
from typing import Dict, List, Optional, Sequence

from sqlalchemy import delete, exists, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.advert import Advert
from ..models.attribute import Attribute
from ..models.category import Category


def slugify(value: str) -> str:
    slug = re.sub(r"[^\w\s-]", "", value.lower(), flags=re.UNICODE).strip()
    return re.sub(r"[-\s_]+", "-", slug) or "category"


class CategoryRepository:
    """Repository for category database operations

    Ancestor/descendant queries go through the nested-set bounds, so they cost
    one indexed query regardless of depth.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_category_by_id(self, category_id: int) -> Optional[Category]:
        query = select(Category).where(Category.id == category_id)
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def get_categories_by_ids(self, category_ids: Sequence[int]) -> List[Category]:
        if not category_ids:
            return []
        query = select(Category).where(Category.id.in_(category_ids)).order_by(Category.lft)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def get_all(self, refresh: bool = False) -> List[Category]:
        """All categories in stored bounds order.

        ``refresh`` overwrites already loaded instances with the stored row, so
        bounds written outside this session are seen.
        """
        query = select(Category).order_by(Category.lft, Category.sort, Category.name)
        if refresh:
            query = query.execution_options(populate_existing=True)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def get_ancestors(self, category: Category) -> List[Category]:
        """Root-to-parent order"""
        query = (
            select(Category)
            .where(Category.lft < category.lft, Category.rgt > category.rgt)
            .order_by(Category.lft)
        )
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def get_descendants(self, category: Category) -> List[Category]:
        query = (
            select(Category)
            .where(Category.lft > category.lft, Category.rgt < category.rgt)
            .order_by(Category.lft)
        )
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def get_children(self, category_id: Optional[int]) -> List[Category]:
        if category_id is None:
            condition = Category.parent_id.is_(None)
        else:
            condition = Category.parent_id == category_id
        query = select(Category).where(condition).order_by(Category.sort, Category.name)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def has_children(self, category_id: int) -> bool:
        query = select(exists().where(Category.parent_id == category_id))
        return bool(await self.db.scalar(query))

    async def has_adverts(self, category_id: int) -> bool:
        query = select(exists().where(Advert.category_id == category_id))
        return bool(await self.db.scalar(query))

    async def has_attributes(self, category_id: int) -> bool:
        query = select(exists().where(Attribute.category_id == category_id))
        return bool(await self.db.scalar(query))

    async def get_bounds(self) -> Dict[int, tuple]:
        """id -> (lft, rgt, depth) as stored"""
        query = select(Category.id, Category.lft, Category.rgt, Category.depth)
        result = await self.db.execute(query)
        return {row.id: (row.lft, row.rgt, row.depth) for row in result}

    async def make_unique_slug(
        self, name: str, parent_id: Optional[int], exclude_id: Optional[int] = None
    ) -> str:
        """Slug unique among the parent's children: ``name``, ``name-1``, ..."""
        slug = slugify(name)
        parent_condition = (
            Category.parent_id.is_(None)
            if parent_id is None
            else Category.parent_id == parent_id
        )
        query = select(Category.slug).where(parent_condition)
        if exclude_id is not None:
            query = query.where(Category.id != exclude_id)
        result = await self.db.execute(query)
        taken = set(result.scalars().all())
        if slug not in taken:
            return slug
        suffix = 1
        while f"{slug}-{suffix}" in taken:
            suffix += 1
        return f"{slug}-{suffix}"

    async def add(self, category: Category) -> Category:
        self.db.add(category)
        await self.db.flush()
        return category

    async def delete(self, category_id: int) -> None:
        await self.db.execute(delete(Category).where(Category.id == category_id))

    async def count(self) -> int:
        return int(await self.db.scalar(select(func.count(Category.id))) or 0)
