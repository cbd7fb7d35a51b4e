"""Action catalog: actions and their category assignments"""

from dataclasses import dataclass
from typing import List, Optional, Sequence

from sqlalchemy import delete, exists, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.action import Action, ActionAttributeSetting, ActionCategory
from ..models.advert import Advert


@dataclass(frozen=True)
class ActionAssignment:
    """An action together with the assignment row that brought it in"""

    action: Action
    category_id: int
    sort: int
    excluded: bool

    @property
    def action_id(self) -> int:
        return self.action.id


class ActionRepository:
    """Repository for action database operations"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_action_by_id(self, action_id: int) -> Optional[Action]:
        query = select(Action).where(Action.id == action_id)
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def get_action_by_slug(self, slug: str) -> Optional[Action]:
        query = select(Action).where(Action.slug == slug)
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def get_all(self) -> List[Action]:
        result = await self.db.execute(select(Action).order_by(Action.name))
        return list(result.scalars().all())

    async def get_assignments(
        self, category_ids: Sequence[int], excluded: Optional[bool] = None
    ) -> List[ActionAssignment]:
        """Assignment rows of the categories, optionally filtered by ``excluded``"""
        if not category_ids:
            return []
        query = (
            select(Action, ActionCategory)
            .join(ActionCategory, ActionCategory.action_id == Action.id)
            .where(ActionCategory.category_id.in_(category_ids))
        )
        if excluded is not None:
            query = query.where(ActionCategory.excluded.is_(excluded))
        result = await self.db.execute(query)
        return [
            ActionAssignment(
                action=action,
                category_id=link.category_id,
                sort=link.sort,
                excluded=link.excluded,
            )
            for action, link in result.all()
        ]

    async def add_action(self, action: Action) -> Action:
        self.db.add(action)
        await self.db.flush()
        return action

    async def replace_assigned(
        self, category_id: int, assignments: Sequence[tuple]
    ) -> None:
        """Replace the non-excluded rows of a category with (action_id, sort) pairs"""
        await self.db.execute(
            delete(ActionCategory).where(
                ActionCategory.category_id == category_id,
                ActionCategory.excluded.is_(False),
            )
        )
        wanted = {action_id: sort for action_id, sort in assignments}
        if wanted:
            # A negative assignment for the same action turns into a positive one
            await self.db.execute(
                delete(ActionCategory).where(
                    ActionCategory.category_id == category_id,
                    ActionCategory.action_id.in_(list(wanted)),
                )
            )
        for action_id, sort in wanted.items():
            self.db.add(
                ActionCategory(
                    action_id=action_id,
                    category_id=category_id,
                    sort=sort,
                    excluded=False,
                )
            )
        await self.db.flush()

    async def replace_excluded(
        self, category_id: int, action_ids: Sequence[int]
    ) -> None:
        """Replace the negative assignments of a category"""
        await self.db.execute(
            delete(ActionCategory).where(
                ActionCategory.category_id == category_id,
                ActionCategory.excluded.is_(True),
            )
        )
        for action_id in dict.fromkeys(action_ids):
            self.db.add(
                ActionCategory(
                    action_id=action_id,
                    category_id=category_id,
                    sort=0,
                    excluded=True,
                )
            )
        await self.db.flush()

    async def has_adverts(self, action_id: int) -> bool:
        query = select(exists().where(Advert.action_id == action_id))
        return bool(await self.db.scalar(query))

    async def delete_action(self, action_id: int) -> None:
        """Delete the action with its assignments and settings"""
        await self.db.execute(
            delete(ActionAttributeSetting).where(
                ActionAttributeSetting.action_id == action_id
            )
        )
        await self.db.execute(
            delete(ActionCategory).where(ActionCategory.action_id == action_id)
        )
        await self.db.execute(delete(Action).where(Action.id == action_id))

    async def delete_category_assignments(self, category_id: int) -> None:
        await self.db.execute(
            delete(ActionCategory).where(ActionCategory.category_id == category_id)
        )
