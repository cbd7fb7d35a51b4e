"""Attribute catalog: attributes and inherited-attribute exclusions"""

from typing import List, Optional, Sequence

from sqlalchemy import delete, exists, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.action import ActionAttributeSetting
from ..models.advert import AdvertAttributeValue
from ..models.attribute import Attribute, CategoryInheritedAttributeExclusion
from ..schemas.attribute import AttributeCreate


class AttributeRepository:
    """Repository for attribute database operations"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_attribute_by_id(self, attribute_id: int) -> Optional[Attribute]:
        query = select(Attribute).where(Attribute.id == attribute_id)
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def get_by_categories(self, category_ids: Sequence[int]) -> List[Attribute]:
        """Attributes owned by any of the categories"""
        if not category_ids:
            return []
        query = (
            select(Attribute)
            .where(Attribute.category_id.in_(category_ids))
            .order_by(Attribute.sort, Attribute.name, Attribute.id)
        )
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def get_excluded_by_categories(
        self, category_ids: Sequence[int]
    ) -> List[Attribute]:
        """Attributes named by exclusion rows attached to any of the categories"""
        if not category_ids:
            return []
        query = (
            select(Attribute)
            .join(
                CategoryInheritedAttributeExclusion,
                CategoryInheritedAttributeExclusion.attribute_id == Attribute.id,
            )
            .where(CategoryInheritedAttributeExclusion.category_id.in_(category_ids))
            .order_by(Attribute.sort, Attribute.name, Attribute.id)
        )
        result = await self.db.execute(query)
        return list(result.unique().scalars().all())

    async def get_exclusion_ids(self, category_id: int) -> List[int]:
        query = select(CategoryInheritedAttributeExclusion.attribute_id).where(
            CategoryInheritedAttributeExclusion.category_id == category_id
        )
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def replace_exclusions(
        self, category_id: int, attribute_ids: Sequence[int]
    ) -> None:
        await self.db.execute(
            delete(CategoryInheritedAttributeExclusion).where(
                CategoryInheritedAttributeExclusion.category_id == category_id
            )
        )
        for attribute_id in dict.fromkeys(attribute_ids):
            self.db.add(
                CategoryInheritedAttributeExclusion(
                    category_id=category_id, attribute_id=attribute_id
                )
            )
        await self.db.flush()

    async def create_attribute(
        self, category_id: int, attribute_data: AttributeCreate
    ) -> Attribute:
        attribute = Attribute(
            category_id=category_id,
            name=attribute_data.name,
            type=attribute_data.type.value,
            sort=attribute_data.sort,
            options=attribute_data.options,
        )
        self.db.add(attribute)
        await self.db.flush()
        return attribute

    async def has_advert_values(self, attribute_id: int) -> bool:
        query = select(
            exists().where(AdvertAttributeValue.attribute_id == attribute_id)
        )
        return bool(await self.db.scalar(query))

    async def delete_attribute(self, attribute_id: int) -> None:
        """Delete the attribute with its settings and exclusion rows"""
        await self.db.execute(
            delete(ActionAttributeSetting).where(
                ActionAttributeSetting.attribute_id == attribute_id
            )
        )
        await self.db.execute(
            delete(CategoryInheritedAttributeExclusion).where(
                CategoryInheritedAttributeExclusion.attribute_id == attribute_id
            )
        )
        await self.db.execute(delete(Attribute).where(Attribute.id == attribute_id))
