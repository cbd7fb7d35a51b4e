"""
Category / attribute / action inheritance resolution
====================================================

Computes, for a category and an optional action, which attributes apply and
which actions a category can offer. Attributes and actions are defined at any
level of the category tree and inherited downwards; descendants can exclude
inherited ones. Every layer is resolved with flat set operations over the
ancestor-and-self chain:

    available(C)         = attributes(chain) - excluded_inherited(chain)
    available(C, action) = available(C) - {a : setting(a, action).excluded}
    adjusted(categories) = assigned(categories) - excluded(categories)

An exclusion anywhere in the chain wins over every inclusion, whatever the
depth: there is no re-inclusion.

A resolver instance memoizes its tree and attribute lookups, so create one per
request (or per unit of work) and drop it afterwards. Nothing is cached across
instances because exclusions and settings change independently of the tree.
"""

from typing import Dict, Iterable, List, Optional, Sequence, Tuple, Union

from sqlalchemy.ext.asyncio import AsyncSession

from ..models.action import Action
from ..models.attribute import Attribute
from ..models.category import Category
from ..repository.action_repository import ActionAssignment, ActionRepository
from ..repository.attribute_repository import AttributeRepository
from ..repository.category_repository import CategoryRepository
from ..repository.setting_repository import SettingRepository
from .settings_table import SettingFlag, SettingsTable

CategoryOrCategories = Union[Category, Sequence[Category]]


def subtract(items: Iterable, removed: Iterable) -> list:
    """Order-preserving difference by primary key"""
    removed_ids = {item.id for item in removed}
    return [item for item in items if item.id not in removed_ids]


def _unique_by_id(items: Iterable) -> list:
    seen = set()
    unique = []
    for item in items:
        if item.id not in seen:
            seen.add(item.id)
            unique.append(item)
    return unique


class InheritanceResolver:
    """Read-only resolution over the category tree; never mutates storage."""

    def __init__(self, db: AsyncSession):
        self.categories = CategoryRepository(db)
        self.attributes = AttributeRepository(db)
        self.actions = ActionRepository(db)
        self.settings = SettingsTable(db)
        self._setting_rows = SettingRepository(db)
        self._ancestors_and_self: Dict[int, List[Category]] = {}
        self._descendants: Dict[int, List[Category]] = {}
        self._chain_attributes: Dict[int, List[Attribute]] = {}

    # ------------------------------------------------------------------
    # Tree
    # ------------------------------------------------------------------

    async def ancestors_and_self(self, category: Category) -> List[Category]:
        """Root-to-self order, the category itself appended last."""
        if category.id not in self._ancestors_and_self:
            ancestors = await self.categories.get_ancestors(category)
            self._ancestors_and_self[category.id] = ancestors + [category]
        return self._ancestors_and_self[category.id]

    async def ancestors(self, category: Category) -> List[Category]:
        return (await self.ancestors_and_self(category))[:-1]

    async def descendants(self, category: Category) -> List[Category]:
        if category.id not in self._descendants:
            self._descendants[category.id] = await self.categories.get_descendants(
                category
            )
        return self._descendants[category.id]

    # ------------------------------------------------------------------
    # Attributes
    # ------------------------------------------------------------------

    async def _attributes_of(self, categories: Sequence[Category]) -> List[Attribute]:
        """Own attributes of the chain: sort, then chain depth, then name"""
        attributes = await self.attributes.get_by_categories([c.id for c in categories])
        position = {c.id: index for index, c in enumerate(categories)}
        return sorted(
            attributes,
            key=lambda a: (a.sort, position.get(a.category_id, 0), a.name, a.id),
        )

    async def _excluded_of(self, categories: Sequence[Category]) -> List[Attribute]:
        excluded = await self.attributes.get_excluded_by_categories(
            [c.id for c in categories]
        )
        return _unique_by_id(excluded)

    async def attributes_of_ancestors_and_self(
        self, category: Category
    ) -> List[Attribute]:
        if category.id not in self._chain_attributes:
            chain = await self.ancestors_and_self(category)
            self._chain_attributes[category.id] = await self._attributes_of(chain)
        return list(self._chain_attributes[category.id])

    async def attributes_of_ancestors(self, category: Category) -> List[Attribute]:
        return [
            a
            for a in await self.attributes_of_ancestors_and_self(category)
            if a.category_id != category.id
        ]

    async def parent_attributes(self, category: Category) -> List[Attribute]:
        if category.parent_id is None:
            return []
        return [
            a
            for a in await self.attributes_of_ancestors_and_self(category)
            if a.category_id == category.parent_id
        ]

    async def excluded_inherited_attributes(
        self, category: Category
    ) -> List[Attribute]:
        """Exclusions recorded anywhere on the ancestor-and-self chain"""
        return await self._excluded_of(await self.ancestors_and_self(category))

    async def excluded_ancestor_attributes(self, category: Category) -> List[Attribute]:
        """Exclusions recorded on the ancestors only"""
        return await self._excluded_of(await self.ancestors(category))

    async def available_ancestor_attributes(
        self, category: Category
    ) -> List[Attribute]:
        """Inherited attributes the category could still exclude itself"""
        return subtract(
            await self.attributes_of_ancestors(category),
            await self.excluded_ancestor_attributes(category),
        )

    async def available_attributes(
        self, category: Category, action: Optional[Action] = None
    ) -> List[Attribute]:
        available = subtract(
            await self.attributes_of_ancestors_and_self(category),
            await self.excluded_inherited_attributes(category),
        )
        if action is not None:
            available = subtract(
                available,
                await self.settings.filter_by_flag(
                    available, SettingFlag.EXCLUDED, action
                ),
            )
        return available

    async def excluded_attributes(
        self, category: Category, action: Optional[Action] = None
    ) -> List[Attribute]:
        """Chain attributes that end up unavailable"""
        return subtract(
            await self.attributes_of_ancestors_and_self(category),
            await self.available_attributes(category, action),
        )

    async def required_attributes(
        self, attributes: Sequence[Attribute], action: Optional[Action] = None
    ) -> List[Attribute]:
        return await self.settings.filter_by_flag(
            attributes, SettingFlag.REQUIRED, action
        )

    async def column_attributes(
        self, attributes: Sequence[Attribute], action: Optional[Action] = None
    ) -> List[Attribute]:
        return await self.settings.filter_by_flag(
            attributes, SettingFlag.COLUMN, action
        )

    async def excluded_attributes_for_action(
        self, attributes: Sequence[Attribute], action: Optional[Action] = None
    ) -> List[Attribute]:
        return await self.settings.filter_by_flag(
            attributes, SettingFlag.EXCLUDED, action
        )

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    @staticmethod
    def _as_list(categories: CategoryOrCategories) -> List[Category]:
        if isinstance(categories, Category):
            return [categories]
        return list(categories)

    @staticmethod
    def _ordered_actions(assignments: Iterable[ActionAssignment]) -> List[Action]:
        ordered = sorted(
            assignments, key=lambda a: (a.sort, a.action.name, a.action.slug, a.action_id)
        )
        return _unique_by_id(a.action for a in ordered)

    async def _split_actions(
        self, categories: CategoryOrCategories
    ) -> Tuple[List[Action], List[Action]]:
        assignments = await self.actions.get_assignments(
            [c.id for c in self._as_list(categories)]
        )
        assigned = self._ordered_actions(a for a in assignments if not a.excluded)
        excluded = self._ordered_actions(a for a in assignments if a.excluded)
        return assigned, excluded

    async def assigned_actions(self, categories: CategoryOrCategories) -> List[Action]:
        """Actions with a non-excluded assignment, by assignment sort then name"""
        return (await self._split_actions(categories))[0]

    async def excluded_actions(self, categories: CategoryOrCategories) -> List[Action]:
        return (await self._split_actions(categories))[1]

    async def adjusted_actions(self, categories: CategoryOrCategories) -> List[Action]:
        """What the categories can actually offer: assigned minus excluded"""
        assigned, excluded = await self._split_actions(categories)
        return subtract(assigned, excluded)

    async def category_actions(self, category: Category) -> List[Action]:
        """Adjusted actions over the category's ancestor-and-self chain"""
        return await self.adjusted_actions(await self.ancestors_and_self(category))

    # ------------------------------------------------------------------
    # Predicates for the admin/validation layer
    # ------------------------------------------------------------------

    async def has_settings_without_actions(
        self, category: Category, include_descendants: bool = False
    ) -> bool:
        """Whether the category's own attributes carry action-less settings"""
        category_ids = [category.id]
        if include_descendants:
            category_ids += [c.id for c in await self.descendants(category)]
        return await self._setting_rows.exists_without_action(category_ids)

    async def ancestors_or_self_have_settings_without_actions(
        self, category: Category
    ) -> bool:
        chain = await self.ancestors_and_self(category)
        return await self._setting_rows.exists_without_action([c.id for c in chain])

    async def all_ancestor_actions_excluded(self, category: Category) -> bool:
        """True when no action survives over the ancestor-and-self chain"""
        return not await self.category_actions(category)

    async def ancestors_have_actions(self, category: Category) -> bool:
        return bool(await self.assigned_actions(await self.ancestors(category)))

    async def descendants_or_self_have_actions(self, category: Category) -> bool:
        categories = [category] + await self.descendants(category)
        return bool(await self.assigned_actions(categories))

    async def ancestors_or_descendants_or_self_have_actions(
        self, category: Category
    ) -> bool:
        categories = await self.ancestors_and_self(category) + await self.descendants(
            category
        )
        return bool(await self.assigned_actions(categories))

    def reset(self) -> None:
        """Forget memoized lookups, e.g. after the caller changed storage"""
        self._ancestors_and_self.clear()
        self._descendants.clear()
        self._chain_attributes.clear()
        self.settings.clear()
