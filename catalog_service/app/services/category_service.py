"""Category service: tree mutations and reads"""

from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from ..core.exceptions import CategoryNotFound, StructuralViolation
from ..events.event_producers import CatalogEventProducer
from ..models.category import Category
from ..repository.action_repository import ActionRepository
from ..repository.attribute_repository import AttributeRepository
from ..repository.category_repository import CategoryRepository
from ..schemas.category import CategoryCreate, CategoryResponse, CategoryUpdate
from ..utils.logging import setup_catalog_logging as setup_logging
from .consistency_guard import ConsistencyGuard
from .maintenance import TreeMaintenanceScheduler

logger = setup_logging("catalog_service.category_service")


class CategoryService:
    """Service class for category business logic

    Every structural mutation writes the new nested-set bounds in the same
    transaction as the row change; the path cache refresh and the drift check
    are left to the maintenance scheduler.
    """

    def __init__(
        self,
        db: AsyncSession,
        event_producer: Optional[CatalogEventProducer] = None,
        scheduler: Optional[TreeMaintenanceScheduler] = None,
    ):
        self.db = db
        self.repository = CategoryRepository(db)
        self.attribute_repository = AttributeRepository(db)
        self.action_repository = ActionRepository(db)
        self.guard = ConsistencyGuard(db)
        self.event_producer = event_producer
        self.scheduler = scheduler

    def _schedule_maintenance(self, reason: str) -> None:
        if self.scheduler:
            self.scheduler.schedule(reason)

    async def create_category(
        self, category_data: CategoryCreate, correlation_id: Optional[str] = None
    ) -> CategoryResponse:
        """Create a category under ``parent_id`` (or at root level)"""
        try:
            if category_data.parent_id is not None:
                parent = await self.repository.get_category_by_id(
                    category_data.parent_id
                )
                if not parent:
                    raise CategoryNotFound(
                        f"Parent category {category_data.parent_id} not found",
                        details={"parent_id": category_data.parent_id},
                    )

            slug = await self.repository.make_unique_slug(
                category_data.name, category_data.parent_id
            )
            category = await self.repository.add(
                Category(
                    name=category_data.name,
                    slug=slug,
                    parent_id=category_data.parent_id,
                    sort=category_data.sort,
                )
            )
            await self.guard.rebuild(commit=False)
            await self.db.commit()

            logger.info(
                "Category created successfully",
                extra={
                    "category_id": category.id,
                    "category_name": category.name,
                    "parent_id": category.parent_id,
                    "correlation_id": correlation_id,
                },
            )
        except Exception as e:
            await self.db.rollback()
            logger.error(
                f"Failed to create category: {str(e)}",
                extra={
                    "category_name": category_data.name,
                    "parent_id": category_data.parent_id,
                    "correlation_id": correlation_id,
                    "error": str(e),
                },
                exc_info=True,
            )
            raise

        self._schedule_maintenance("category_created")
        if self.event_producer:
            await self.event_producer.publish_category_created(
                category_id=category.id,
                name=category.name,
                slug=category.slug,
                parent_id=category.parent_id,
                correlation_id=correlation_id,
            )
        return CategoryResponse.model_validate(category)

    async def get_category(self, category_id: int) -> Optional[CategoryResponse]:
        category = await self.repository.get_category_by_id(category_id)
        if not category:
            return None
        return CategoryResponse.model_validate(category)

    async def list_categories(
        self, parent_id: Optional[int] = None, children_only: bool = False
    ) -> List[CategoryResponse]:
        """The whole tree in display order, or the children of ``parent_id``"""
        if children_only:
            categories = await self.repository.get_children(parent_id)
        else:
            categories = await self.repository.get_all()
        return [CategoryResponse.model_validate(c) for c in categories]

    async def update_category(
        self,
        category_id: int,
        category_data: CategoryUpdate,
        correlation_id: Optional[str] = None,
    ) -> Optional[CategoryResponse]:
        """Rename, re-slug, re-sort or move a category"""
        updated_fields = list(category_data.model_dump(exclude_unset=True))
        try:
            category = await self.repository.get_category_by_id(category_id)
            if not category:
                return None

            previous_parent_id = category.parent_id
            structural = False
            paths_changed = False

            if "parent_id" in updated_fields:
                # 0 means root level
                new_parent_id = category_data.parent_id or None
                if new_parent_id != category.parent_id:
                    tree = await self.guard.load_tree()
                    tree.ensure_can_move(category.id, new_parent_id)
                    category.parent_id = new_parent_id
                    structural = True

            if category_data.name is not None and category_data.name != category.name:
                category.name = category_data.name
                structural = True

            if category_data.sort is not None and category_data.sort != category.sort:
                category.sort = category_data.sort
                structural = True

            if category_data.slug is not None or category.parent_id != previous_parent_id:
                slug = await self.repository.make_unique_slug(
                    category_data.slug or category.slug,
                    category.parent_id,
                    exclude_id=category.id,
                )
                if slug != category.slug:
                    category.slug = slug
                    paths_changed = True

            await self.db.flush()
            if structural:
                await self.guard.rebuild(commit=False)
            await self.db.commit()

            logger.info(
                "Category updated successfully",
                extra={
                    "category_id": category_id,
                    "updated_fields": updated_fields,
                    "moved": category.parent_id != previous_parent_id,
                    "correlation_id": correlation_id,
                },
            )
        except Exception as e:
            await self.db.rollback()
            logger.error(
                f"Failed to update category: {str(e)}",
                extra={
                    "category_id": category_id,
                    "correlation_id": correlation_id,
                    "error": str(e),
                },
                exc_info=True,
            )
            raise

        moved = category.parent_id != previous_parent_id
        if structural or paths_changed:
            self._schedule_maintenance("category_moved" if moved else "category_updated")
        if self.event_producer:
            await self.event_producer.publish_category_updated(
                category_id=category.id,
                updated_fields=updated_fields,
                parent_id=category.parent_id,
                previous_parent_id=previous_parent_id if moved else None,
                moved=moved,
                correlation_id=correlation_id,
            )
        return CategoryResponse.model_validate(category)

    async def _ensure_deletable(self, category_id: int) -> None:
        dependents = []
        if await self.repository.has_children(category_id):
            dependents.append("child categories")
        if await self.repository.has_adverts(category_id):
            dependents.append("adverts")
        if await self.repository.has_attributes(category_id):
            dependents.append("attributes")
        if dependents:
            raise StructuralViolation(
                f"Category {category_id} still has {', '.join(dependents)}",
                details={"category_id": category_id, "dependents": dependents},
            )

    async def delete_category(
        self, category_id: int, correlation_id: Optional[str] = None
    ) -> bool:
        """Delete a leaf category without adverts or attributes"""
        try:
            category = await self.repository.get_category_by_id(category_id)
            if not category:
                return False
            name, parent_id = category.name, category.parent_id

            await self._ensure_deletable(category_id)

            await self.action_repository.delete_category_assignments(category_id)
            await self.attribute_repository.replace_exclusions(category_id, [])
            await self.repository.delete(category_id)
            await self.guard.rebuild(commit=False)
            await self.db.commit()

            logger.info(
                "Category deleted successfully",
                extra={"category_id": category_id, "correlation_id": correlation_id},
            )
        except Exception as e:
            await self.db.rollback()
            logger.error(
                f"Failed to delete category: {str(e)}",
                extra={
                    "category_id": category_id,
                    "correlation_id": correlation_id,
                    "error": str(e),
                },
                exc_info=True,
            )
            raise

        self._schedule_maintenance("category_deleted")
        if self.event_producer:
            await self.event_producer.publish_category_deleted(
                category_id=category_id,
                name=name,
                parent_id=parent_id,
                correlation_id=correlation_id,
            )
        return True
