"""Settings table storage: ActionAttributeSetting rows"""

from typing import Iterable, List, Optional, Sequence

from sqlalchemy import delete, exists, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.action import ActionAttributeSetting
from ..models.attribute import Attribute


class SettingRepository:
    """Repository for action/attribute settings"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_for_attributes(
        self, attribute_ids: Sequence[int], action_id: Optional[int]
    ) -> List[ActionAttributeSetting]:
        """Rows of the given attributes for one action (or the action-less rows)"""
        if not attribute_ids:
            return []
        query = select(ActionAttributeSetting).where(
            ActionAttributeSetting.attribute_id.in_(attribute_ids)
        )
        if action_id is None:
            query = query.where(ActionAttributeSetting.action_id.is_(None))
        else:
            query = query.where(ActionAttributeSetting.action_id == action_id)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def get_all_for_attributes(
        self, attribute_ids: Sequence[int]
    ) -> List[ActionAttributeSetting]:
        if not attribute_ids:
            return []
        query = (
            select(ActionAttributeSetting)
            .where(ActionAttributeSetting.attribute_id.in_(attribute_ids))
            .order_by(ActionAttributeSetting.attribute_id, ActionAttributeSetting.id)
        )
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def get_for_categories(
        self, category_ids: Sequence[int]
    ) -> List[ActionAttributeSetting]:
        """Rows of every attribute owned by the categories"""
        if not category_ids:
            return []
        query = (
            select(ActionAttributeSetting)
            .join(Attribute, Attribute.id == ActionAttributeSetting.attribute_id)
            .where(Attribute.category_id.in_(category_ids))
        )
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def exists_without_action(self, category_ids: Sequence[int]) -> bool:
        """Whether attributes of the categories carry action-less rows"""
        if not category_ids:
            return False
        query = select(
            exists()
            .where(ActionAttributeSetting.attribute_id == Attribute.id)
            .where(Attribute.category_id.in_(category_ids))
            .where(ActionAttributeSetting.action_id.is_(None))
        )
        return bool(await self.db.scalar(query))

    async def delete_by_ids(self, setting_ids: Iterable[int]) -> int:
        ids = list(setting_ids)
        if not ids:
            return 0
        await self.db.execute(
            delete(ActionAttributeSetting).where(ActionAttributeSetting.id.in_(ids))
        )
        return len(ids)

    async def delete_for_attribute(
        self, attribute_id: int, action_ids: Optional[Sequence[int]] = None
    ) -> None:
        """Delete an attribute's action rows, all of them or only the given actions"""
        query = delete(ActionAttributeSetting).where(
            ActionAttributeSetting.attribute_id == attribute_id,
            ActionAttributeSetting.action_id.is_not(None),
        )
        if action_ids is not None:
            query = query.where(ActionAttributeSetting.action_id.in_(list(action_ids)))
        await self.db.execute(query)

    async def delete_without_action(self, attribute_ids: Sequence[int]) -> None:
        if not attribute_ids:
            return
        await self.db.execute(
            delete(ActionAttributeSetting).where(
                ActionAttributeSetting.attribute_id.in_(list(attribute_ids)),
                ActionAttributeSetting.action_id.is_(None),
            )
        )

    async def add_settings(self, settings: Iterable[ActionAttributeSetting]) -> None:
        self.db.add_all(list(settings))
        await self.db.flush()
