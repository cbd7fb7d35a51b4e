"""Read-side resolution for controllers: attributes, actions and settings mode"""

from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from ..schemas.action import ActionResponse, CategoryActionsResponse
from ..schemas.attribute import AttributeResponse, ResolvedAttributesResponse
from ..schemas.category import SettingsModeResponse
from .inheritance_resolver import InheritanceResolver


class ResolutionService:
    """Wraps one InheritanceResolver, i.e. one request's worth of memoization"""

    def __init__(self, db: AsyncSession):
        self.resolver = InheritanceResolver(db)

    async def resolve_attributes(
        self, category_id: int, action_id: Optional[int] = None
    ) -> Optional[ResolvedAttributesResponse]:
        """Available attributes with their required/column subsets.

        Returns None when the category (or the given action) does not exist.
        Without an action the action-less settings apply.
        """
        category = await self.resolver.categories.get_category_by_id(category_id)
        if not category:
            return None
        action = None
        if action_id is not None:
            action = await self.resolver.actions.get_action_by_id(action_id)
            if not action:
                return None

        attributes = await self.resolver.available_attributes(category, action)
        required = await self.resolver.required_attributes(attributes, action)
        column = await self.resolver.column_attributes(attributes, action)
        price = next((a for a in attributes if a.is_price()), None)

        return ResolvedAttributesResponse(
            category_id=category.id,
            action_id=action_id,
            attributes=[AttributeResponse.model_validate(a) for a in attributes],
            required_attribute_ids=[a.id for a in required],
            column_attribute_ids=[a.id for a in column],
            price_attribute_id=price.id if price else None,
        )

    async def resolve_actions(
        self, category_id: int
    ) -> Optional[CategoryActionsResponse]:
        category = await self.resolver.categories.get_category_by_id(category_id)
        if not category:
            return None
        chain = await self.resolver.ancestors_and_self(category)
        assigned = await self.resolver.assigned_actions(chain)
        excluded = await self.resolver.excluded_actions(chain)
        adjusted = await self.resolver.adjusted_actions(chain)
        return CategoryActionsResponse(
            category_id=category.id,
            assigned=[ActionResponse.model_validate(a) for a in assigned],
            excluded=[ActionResponse.model_validate(a) for a in excluded],
            adjusted=[ActionResponse.model_validate(a) for a in adjusted],
        )

    async def settings_mode(self, category_id: int) -> Optional[SettingsModeResponse]:
        category = await self.resolver.categories.get_category_by_id(category_id)
        if not category:
            return None
        return SettingsModeResponse(
            category_id=category.id,
            has_settings_without_actions=await self.resolver.has_settings_without_actions(
                category
            ),
            all_ancestor_actions_excluded=await self.resolver.all_ancestor_actions_excluded(
                category
            ),
        )
