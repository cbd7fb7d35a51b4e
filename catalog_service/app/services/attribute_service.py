"""Attribute service: attributes, inherited exclusions and the settings table"""

from typing import Dict, Iterable, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from ..core.exceptions import ConfigurationConflict, StructuralViolation
from ..models.action import ActionAttributeSetting
from ..repository.attribute_repository import AttributeRepository
from ..repository.category_repository import CategoryRepository
from ..repository.setting_repository import SettingRepository
from ..schemas.attribute import (
    ActionSettingsUpdate,
    AttributeCreate,
    AttributeResponse,
    AttributeSettingsUpdate,
    AttributeUpdate,
    ExcludedAttributesUpdate,
    SettingResponse,
    SettingsMatrixUpdate,
)
from ..utils.logging import setup_catalog_logging as setup_logging
from .inheritance_resolver import InheritanceResolver
from .settings_table import SettingFlag

logger = setup_logging("catalog_service.attribute_service")


def _build_setting(
    attribute_id: int, action_id: Optional[int], flags: Iterable[SettingFlag]
) -> ActionAttributeSetting:
    flags = set(flags)
    return ActionAttributeSetting(
        attribute_id=attribute_id,
        action_id=action_id,
        required=SettingFlag.REQUIRED in flags,
        column=SettingFlag.COLUMN in flags,
        excluded=SettingFlag.EXCLUDED in flags,
    )


def _flags_by_id(**lists: List[int]) -> Dict[int, List[SettingFlag]]:
    """{'required': [1, 2], 'column': [2]} -> {1: [REQUIRED], 2: [REQUIRED, COLUMN]}"""
    flags: Dict[int, List[SettingFlag]] = {}
    for name, ids in lists.items():
        for item_id in ids:
            flags.setdefault(item_id, []).append(SettingFlag(name))
    return flags


class AttributeService:
    """Service class for attribute business logic"""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.repository = AttributeRepository(db)
        self.category_repository = CategoryRepository(db)
        self.setting_repository = SettingRepository(db)

    async def _fail(self, message: str, **extra) -> None:
        await self.db.rollback()
        logger.error(message, extra=extra, exc_info=True)

    # ------------------------------------------------------------------
    # Attributes
    # ------------------------------------------------------------------

    async def create_attribute(
        self, category_id: int, attribute_data: AttributeCreate
    ) -> Optional[AttributeResponse]:
        try:
            category = await self.category_repository.get_category_by_id(category_id)
            if not category:
                return None
            attribute = await self.repository.create_attribute(category_id, attribute_data)
            await self.db.commit()
            logger.info(
                "Attribute created successfully",
                extra={
                    "attribute_id": attribute.id,
                    "category_id": category_id,
                    "attribute_name": attribute.name,
                },
            )
            return AttributeResponse.model_validate(attribute)
        except Exception as e:
            await self._fail(
                f"Failed to create attribute: {str(e)}",
                category_id=category_id,
                error=str(e),
            )
            raise

    async def get_attribute(self, attribute_id: int) -> Optional[AttributeResponse]:
        attribute = await self.repository.get_attribute_by_id(attribute_id)
        return AttributeResponse.model_validate(attribute) if attribute else None

    async def update_attribute(
        self, attribute_id: int, attribute_data: AttributeUpdate
    ) -> Optional[AttributeResponse]:
        try:
            attribute = await self.repository.get_attribute_by_id(attribute_id)
            if not attribute:
                return None
            changes = attribute_data.model_dump(exclude_unset=True)
            for field, value in changes.items():
                if field == "type" and value is not None:
                    value = value.value if hasattr(value, "value") else value
                if value is None and field != "options":
                    continue
                setattr(attribute, field, value)
            await self.db.commit()
            logger.info(
                "Attribute updated successfully",
                extra={"attribute_id": attribute_id, "updated_fields": list(changes)},
            )
            return AttributeResponse.model_validate(attribute)
        except Exception as e:
            await self._fail(
                f"Failed to update attribute: {str(e)}",
                attribute_id=attribute_id,
                error=str(e),
            )
            raise

    async def delete_attribute(self, attribute_id: int) -> bool:
        """Delete an attribute without advert values, cascading its settings"""
        try:
            attribute = await self.repository.get_attribute_by_id(attribute_id)
            if not attribute:
                return False
            if await self.repository.has_advert_values(attribute_id):
                raise StructuralViolation(
                    f"Attribute {attribute_id} still has advert values",
                    details={"attribute_id": attribute_id, "dependents": ["adverts"]},
                )
            await self.repository.delete_attribute(attribute_id)
            await self.db.commit()
            logger.info(
                "Attribute deleted successfully", extra={"attribute_id": attribute_id}
            )
            return True
        except Exception as e:
            await self._fail(
                f"Failed to delete attribute: {str(e)}",
                attribute_id=attribute_id,
                error=str(e),
            )
            raise

    # ------------------------------------------------------------------
    # Inherited attribute exclusions
    # ------------------------------------------------------------------

    async def set_excluded_attributes(
        self, category_id: int, excluded_data: ExcludedAttributesUpdate
    ) -> Optional[List[AttributeResponse]]:
        """Replace the inherited attributes a category excludes"""
        try:
            category = await self.category_repository.get_category_by_id(category_id)
            if not category:
                return None

            requested = list(dict.fromkeys(excluded_data.attribute_ids))
            resolver = InheritanceResolver(self.db)
            own = {
                a.id
                for a in await self.repository.get_by_categories([category_id])
            }
            if own & set(requested):
                raise ConfigurationConflict(
                    "A category can not exclude its own attributes",
                    details={
                        "category_id": category_id,
                        "attribute_ids": sorted(own & set(requested)),
                    },
                )
            excludable = {
                a.id: a for a in await resolver.available_ancestor_attributes(category)
            }
            not_inherited = sorted(set(requested) - set(excludable))
            if not_inherited:
                raise ConfigurationConflict(
                    "Only attributes inherited from an ancestor can be excluded",
                    details={"category_id": category_id, "attribute_ids": not_inherited},
                )

            await self.repository.replace_exclusions(category_id, requested)
            await self.db.commit()
            logger.info(
                "Category excluded attributes stored",
                extra={"category_id": category_id, "attribute_ids": requested},
            )
            return [AttributeResponse.model_validate(excludable[i]) for i in requested]
        except Exception as e:
            await self._fail(
                f"Failed to store excluded attributes: {str(e)}",
                category_id=category_id,
                error=str(e),
            )
            raise

    # ------------------------------------------------------------------
    # Settings table
    # ------------------------------------------------------------------

    async def store_action_settings(
        self, attribute_id: int, settings_data: ActionSettingsUpdate
    ) -> Optional[List[SettingResponse]]:
        """Replace one attribute's per-action flags"""
        try:
            attribute = await self.repository.get_attribute_by_id(attribute_id)
            if not attribute:
                return None
            category = await self.category_repository.get_category_by_id(
                attribute.category_id
            )

            resolver = InheritanceResolver(self.db)
            adjusted = {a.id for a in await resolver.category_actions(category)}
            if not adjusted:
                raise ConfigurationConflict(
                    "The category has no actions; use attribute settings instead",
                    details={"attribute_id": attribute_id, "category_id": category.id},
                )

            flags = _flags_by_id(
                required=settings_data.required,
                column=settings_data.column,
                excluded=settings_data.excluded,
            )
            unknown = sorted(set(flags) - adjusted)
            if unknown:
                raise ConfigurationConflict(
                    "Settings can only be stored for the actions of the category",
                    details={"attribute_id": attribute_id, "action_ids": unknown},
                )

            await self.setting_repository.delete_for_attribute(attribute_id)
            settings = [
                _build_setting(attribute_id, action_id, action_flags)
                for action_id, action_flags in sorted(flags.items())
            ]
            await self.setting_repository.add_settings(settings)
            await self.db.commit()

            logger.info(
                "Attribute action settings stored",
                extra={"attribute_id": attribute_id, "action_ids": sorted(flags)},
            )
            return [SettingResponse.model_validate(s) for s in settings]
        except Exception as e:
            await self._fail(
                f"Failed to store action settings: {str(e)}",
                attribute_id=attribute_id,
                error=str(e),
            )
            raise

    async def store_attribute_settings(
        self, category_id: int, settings_data: AttributeSettingsUpdate
    ) -> Optional[List[SettingResponse]]:
        """Replace the action-less flags of the category's own attributes"""
        try:
            category = await self.category_repository.get_category_by_id(category_id)
            if not category:
                return None

            resolver = InheritanceResolver(self.db)
            if await resolver.category_actions(category):
                raise ConfigurationConflict(
                    "The category has actions; use per-action settings instead",
                    details={"category_id": category_id},
                )

            own = [a.id for a in await self.repository.get_by_categories([category_id])]
            flags = _flags_by_id(
                required=settings_data.required, column=settings_data.column
            )
            foreign = sorted(set(flags) - set(own))
            if foreign:
                raise ConfigurationConflict(
                    "Attribute settings can only be stored for the category's own attributes",
                    details={"category_id": category_id, "attribute_ids": foreign},
                )

            await self.setting_repository.delete_without_action(own)
            settings = [
                _build_setting(attribute_id, None, attribute_flags)
                for attribute_id, attribute_flags in sorted(flags.items())
            ]
            await self.setting_repository.add_settings(settings)
            await self.db.commit()

            logger.info(
                "Attribute settings stored",
                extra={"category_id": category_id, "attribute_ids": sorted(flags)},
            )
            return [SettingResponse.model_validate(s) for s in settings]
        except Exception as e:
            await self._fail(
                f"Failed to store attribute settings: {str(e)}",
                category_id=category_id,
                error=str(e),
            )
            raise

    async def store_settings_matrix(
        self, category_id: int, matrix_data: SettingsMatrixUpdate
    ) -> Optional[List[SettingResponse]]:
        """Bulk replace the per-action flags of every available attribute.

        Own attributes are reset for every adjusted action of the chain,
        inherited ones only for the actions this category itself adds; rows an
        ancestor owns for its own actions stay untouched.
        """
        try:
            category = await self.category_repository.get_category_by_id(category_id)
            if not category:
                return None

            resolver = InheritanceResolver(self.db)
            available = await resolver.available_attributes(category)
            chain_actions = [a.id for a in await resolver.category_actions(category)]
            own_actions = [a.id for a in await resolver.adjusted_actions(category)]
            editable = {
                a.id: chain_actions if a.category_id == category_id else own_actions
                for a in available
            }

            settings = []
            for attribute_id, by_action in sorted(matrix_data.settings.items()):
                if attribute_id not in editable:
                    raise ConfigurationConflict(
                        f"Attribute {attribute_id} is not available in this category",
                        details={"category_id": category_id, "attribute_id": attribute_id},
                    )
                for action_id, names in sorted(by_action.items()):
                    if action_id not in editable[attribute_id]:
                        raise ConfigurationConflict(
                            f"Action {action_id} can not be configured for attribute "
                            f"{attribute_id} in this category",
                            details={
                                "category_id": category_id,
                                "attribute_id": attribute_id,
                                "action_id": action_id,
                            },
                        )
                    flags = [SettingFlag(name) for name in names]
                    settings.append(_build_setting(attribute_id, action_id, flags))

            for attribute_id, action_ids in editable.items():
                await self.setting_repository.delete_for_attribute(
                    attribute_id, action_ids
                )
            await self.setting_repository.add_settings(settings)
            await self.db.commit()

            logger.info(
                "Settings matrix stored",
                extra={"category_id": category_id, "settings": len(settings)},
            )
            return [SettingResponse.model_validate(s) for s in settings]
        except Exception as e:
            await self._fail(
                f"Failed to store settings matrix: {str(e)}",
                category_id=category_id,
                error=str(e),
            )
            raise
