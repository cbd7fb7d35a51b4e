"""Action service: the action catalog and category action assignments"""

from typing import List, Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from ..core.exceptions import ConfigurationConflict, StructuralViolation
from ..models.action import Action
from ..models.category import Category
from ..repository.action_repository import ActionRepository
from ..repository.attribute_repository import AttributeRepository
from ..repository.category_repository import CategoryRepository, slugify
from ..repository.setting_repository import SettingRepository
from ..schemas.action import (
    ActionCreate,
    ActionResponse,
    CategoryActionsResponse,
    CategoryActionsUpdate,
    ExcludedActionsUpdate,
)
from ..utils.logging import setup_catalog_logging as setup_logging
from .inheritance_resolver import InheritanceResolver
from .resolution_service import ResolutionService

logger = setup_logging("catalog_service.action_service")


class ActionService:
    """Service class for action business logic"""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.repository = ActionRepository(db)
        self.category_repository = CategoryRepository(db)
        self.attribute_repository = AttributeRepository(db)
        self.setting_repository = SettingRepository(db)

    async def create_action(self, action_data: ActionCreate) -> ActionResponse:
        try:
            slug = slugify(action_data.name)
            if await self.repository.get_action_by_slug(slug):
                raise ValueError(f"Action with slug '{slug}' already exists")
            action = await self.repository.add_action(
                Action(name=action_data.name, slug=slug)
            )
            await self.db.commit()
            logger.info(
                "Action created successfully",
                extra={"action_id": action.id, "action_slug": slug},
            )
            return ActionResponse.model_validate(action)
        except Exception as e:
            await self.db.rollback()
            logger.error(
                f"Failed to create action: {str(e)}",
                extra={"action_name": action_data.name, "error": str(e)},
                exc_info=True,
            )
            raise

    async def list_actions(self) -> List[ActionResponse]:
        return [ActionResponse.model_validate(a) for a in await self.repository.get_all()]

    async def delete_action(self, action_id: int) -> bool:
        """Delete an action without adverts, cascading assignments and settings"""
        try:
            action = await self.repository.get_action_by_id(action_id)
            if not action:
                return False
            if await self.repository.has_adverts(action_id):
                raise StructuralViolation(
                    f"Action {action_id} still has adverts",
                    details={"action_id": action_id, "dependents": ["adverts"]},
                )
            await self.repository.delete_action(action_id)
            await self.db.commit()
            logger.info("Action deleted successfully", extra={"action_id": action_id})
            return True
        except Exception as e:
            await self.db.rollback()
            logger.error(
                f"Failed to delete action: {str(e)}",
                extra={"action_id": action_id, "error": str(e)},
                exc_info=True,
            )
            raise

    async def _ensure_actions_exist(self, action_ids: Sequence[int]) -> None:
        missing = [
            action_id
            for action_id in dict.fromkeys(action_ids)
            if not await self.repository.get_action_by_id(action_id)
        ]
        if missing:
            raise ValueError(f"Actions not found: {missing}")

    async def _prune_settings(
        self, resolver: InheritanceResolver, category: Category
    ) -> int:
        """Drop settings no longer backed by an assigned action in the chain.

        Covers the attributes of the ancestors, the category and its
        descendants. When the chain has no assigned action left every row
        goes, otherwise every row whose action is not assigned, action-less
        rows included.
        """
        chain = await resolver.ancestors_and_self(category) + await resolver.descendants(
            category
        )
        attributes = await self.attribute_repository.get_by_categories(
            [c.id for c in chain]
        )
        settings = await self.setting_repository.get_all_for_attributes(
            [a.id for a in attributes]
        )
        assigned_ids = {a.id for a in await resolver.assigned_actions(chain)}
        stale = [
            s.id
            for s in settings
            if not assigned_ids or s.action_id not in assigned_ids
        ]
        return await self.setting_repository.delete_by_ids(stale)

    async def assign_actions(
        self, category_id: int, actions_data: CategoryActionsUpdate
    ) -> Optional[CategoryActionsResponse]:
        """Replace the category's own (non-excluded) action assignments"""
        try:
            category = await self.category_repository.get_category_by_id(category_id)
            if not category:
                return None

            requested = {item.action_id: item.sort for item in actions_data.actions}
            await self._ensure_actions_exist(list(requested))

            resolver = InheritanceResolver(self.db)
            related = await resolver.ancestors(category) + await resolver.descendants(
                category
            )
            taken = {a.id for a in await resolver.assigned_actions(related)}
            clashing = sorted(set(requested) & taken)
            if clashing:
                raise StructuralViolation(
                    "Actions already assigned to an ancestor or descendant category",
                    details={"category_id": category_id, "action_ids": clashing},
                )

            await self.repository.replace_assigned(category_id, list(requested.items()))
            resolver.reset()
            pruned = await self._prune_settings(resolver, category)
            await self.db.commit()

            logger.info(
                "Category actions assigned",
                extra={
                    "category_id": category_id,
                    "action_ids": list(requested),
                    "pruned_settings": pruned,
                },
            )
        except Exception as e:
            await self.db.rollback()
            logger.error(
                f"Failed to assign actions: {str(e)}",
                extra={"category_id": category_id, "error": str(e)},
                exc_info=True,
            )
            raise

        return await ResolutionService(self.db).resolve_actions(category_id)

    async def set_excluded_actions(
        self, category_id: int, excluded_data: ExcludedActionsUpdate
    ) -> Optional[CategoryActionsResponse]:
        """Replace the category's negative assignments of inherited actions"""
        try:
            category = await self.category_repository.get_category_by_id(category_id)
            if not category:
                return None

            resolver = InheritanceResolver(self.db)
            if await resolver.has_settings_without_actions(
                category, include_descendants=True
            ):
                raise ConfigurationConflict(
                    "Remove the attribute settings of this category and its "
                    "descendants before excluding actions",
                    details={"category_id": category_id},
                )

            inherited = {
                a.id
                for a in await resolver.assigned_actions(
                    await resolver.ancestors(category)
                )
            }
            not_inherited = sorted(set(excluded_data.action_ids) - inherited)
            if not_inherited:
                raise ConfigurationConflict(
                    "Only actions assigned to an ancestor category can be excluded",
                    details={"category_id": category_id, "action_ids": not_inherited},
                )

            await self.repository.replace_excluded(category_id, excluded_data.action_ids)
            await self.db.commit()

            logger.info(
                "Category excluded actions stored",
                extra={
                    "category_id": category_id,
                    "action_ids": excluded_data.action_ids,
                },
            )
        except Exception as e:
            await self.db.rollback()
            logger.error(
                f"Failed to store excluded actions: {str(e)}",
                extra={"category_id": category_id, "error": str(e)},
                exc_info=True,
            )
            raise

        return await ResolutionService(self.db).resolve_actions(category_id)
