"""Tests for ActionService: action catalog and category assignments"""

import pytest
from sqlalchemy import func, select

from catalog_service.app.core.exceptions import (
    ConfigurationConflict,
    StructuralViolation,
)
from catalog_service.app.models.action import ActionAttributeSetting, ActionCategory
from catalog_service.app.schemas.action import (
    ActionAssignmentItem,
    ActionCreate,
    CategoryActionsUpdate,
    ExcludedActionsUpdate,
)
from catalog_service.app.services.action_service import ActionService


def slugs(actions):
    return [action.slug for action in actions]


async def count(session, model):
    return await session.scalar(select(func.count()).select_from(model))


@pytest.fixture
def service(db_session):
    return ActionService(db_session)


class TestActionCatalog:
    @pytest.mark.asyncio
    async def test_create_action(self, service):
        result = await service.create_action(ActionCreate(name="For Rent"))

        assert result.slug == "for-rent"
        assert slugs(await service.list_actions()) == ["for-rent"]

    @pytest.mark.asyncio
    async def test_duplicate_slug_rejected(self, service):
        await service.create_action(ActionCreate(name="Sell"))

        with pytest.raises(ValueError, match="already exists"):
            await service.create_action(ActionCreate(name="sell"))

    @pytest.mark.asyncio
    async def test_delete_cascades_assignments_and_settings(
        self, service, factory, db_session, chain
    ):
        # Arrange
        root, _, _ = chain
        sell = await factory.action("Sell")
        attribute = await factory.attribute(root, "Price")
        await factory.assign(root, sell)
        await factory.setting(attribute, action=sell, required=True)

        # Act
        deleted = await service.delete_action(sell.id)

        # Assert
        assert deleted is True
        assert await count(db_session, ActionCategory) == 0
        assert await count(db_session, ActionAttributeSetting) == 0

    @pytest.mark.asyncio
    async def test_delete_with_adverts_rejected(self, service, factory, chain):
        # Arrange
        root, _, _ = chain
        sell = await factory.action("Sell")
        sell_id = sell.id
        await factory.advert(root, sell)

        # Act
        with pytest.raises(StructuralViolation) as exc_info:
            await service.delete_action(sell_id)

        # Assert
        assert exc_info.value.details == {"action_id": sell_id, "dependents": ["adverts"]}

    @pytest.mark.asyncio
    async def test_delete_missing_action(self, service):
        assert await service.delete_action(404) is False


class TestAssignActions:
    @pytest.mark.asyncio
    async def test_assign_replaces_own_assignments(self, service, factory, chain):
        # Arrange
        _, mid, _ = chain
        sell = await factory.action("Sell")
        rent = await factory.action("Rent")
        await service.assign_actions(
            mid.id, CategoryActionsUpdate(actions=[ActionAssignmentItem(action_id=sell.id)])
        )

        # Act
        result = await service.assign_actions(
            mid.id,
            CategoryActionsUpdate(
                actions=[ActionAssignmentItem(action_id=rent.id, sort=1)]
            ),
        )

        # Assert
        assert slugs(result.assigned) == ["rent"]
        assert slugs(result.adjusted) == ["rent"]

    @pytest.mark.asyncio
    async def test_action_already_on_ancestor_rejected(
        self, service, factory, db_session, chain
    ):
        # Arrange
        root, _, leaf = chain
        leaf_id = leaf.id
        sell = await factory.action("Sell")
        sell_id = sell.id
        await factory.assign(root, sell)

        # Act
        with pytest.raises(StructuralViolation) as exc_info:
            await service.assign_actions(
                leaf_id,
                CategoryActionsUpdate(actions=[ActionAssignmentItem(action_id=sell_id)]),
            )

        # Assert
        assert exc_info.value.details["action_ids"] == [sell_id]
        assert await count(db_session, ActionCategory) == 1

    @pytest.mark.asyncio
    async def test_action_already_on_descendant_rejected(
        self, service, factory, chain
    ):
        root, _, leaf = chain
        root_id = root.id
        sell = await factory.action("Sell")
        sell_id = sell.id
        await factory.assign(leaf, sell)

        with pytest.raises(StructuralViolation):
            await service.assign_actions(
                root_id,
                CategoryActionsUpdate(actions=[ActionAssignmentItem(action_id=sell_id)]),
            )

    @pytest.mark.asyncio
    async def test_unknown_action_rejected(self, service, chain):
        root_id = chain[0].id

        with pytest.raises(ValueError, match="Actions not found"):
            await service.assign_actions(
                root_id,
                CategoryActionsUpdate(actions=[ActionAssignmentItem(action_id=77)]),
            )

    @pytest.mark.asyncio
    async def test_missing_category(self, service):
        assert await service.assign_actions(404, CategoryActionsUpdate()) is None

    @pytest.mark.asyncio
    async def test_prunes_settings_of_unassigned_actions(
        self, service, factory, db_session, chain
    ):
        # Arrange
        root, mid, leaf = chain
        sell = await factory.action("Sell")
        rent = await factory.action("Rent")
        await factory.assign(mid, sell)
        await factory.assign(mid, rent)
        attribute = await factory.attribute(leaf, "Deposit")
        await factory.setting(attribute, action=sell, required=True)
        await factory.setting(attribute, action=rent, required=True)
        rent_id = rent.id

        # Act
        await service.assign_actions(
            mid.id,
            CategoryActionsUpdate(actions=[ActionAssignmentItem(action_id=rent_id)]),
        )

        # Assert
        remaining = (
            await db_session.execute(select(ActionAttributeSetting.action_id))
        ).scalars().all()
        assert remaining == [rent_id]

    @pytest.mark.asyncio
    async def test_removing_all_actions_drops_every_setting(
        self, service, factory, db_session, chain
    ):
        # Arrange
        root, _, _ = chain
        sell = await factory.action("Sell")
        await factory.assign(root, sell)
        attribute = await factory.attribute(root, "Price")
        await factory.setting(attribute, action=sell, column=True)
        await factory.setting(attribute, required=True)

        # Act
        result = await service.assign_actions(root.id, CategoryActionsUpdate())

        # Assert
        assert result.assigned == []
        assert await count(db_session, ActionAttributeSetting) == 0


class TestExcludedActions:
    @pytest.mark.asyncio
    async def test_exclude_inherited_action(self, service, factory, chain):
        # Arrange
        root, mid, _ = chain
        sell = await factory.action("Sell")
        rent = await factory.action("Rent")
        await factory.assign(root, sell)
        await factory.assign(root, rent)

        # Act
        result = await service.set_excluded_actions(
            mid.id, ExcludedActionsUpdate(action_ids=[sell.id])
        )

        # Assert
        assert slugs(result.excluded) == ["sell"]
        assert slugs(result.adjusted) == ["rent"]

    @pytest.mark.asyncio
    async def test_only_inherited_actions_can_be_excluded(
        self, service, factory, chain
    ):
        # Arrange
        root, _, _ = chain
        root_id = root.id
        sell = await factory.action("Sell")
        sell_id = sell.id
        await factory.assign(root, sell)

        # Act
        with pytest.raises(ConfigurationConflict) as exc_info:
            await service.set_excluded_actions(
                root_id, ExcludedActionsUpdate(action_ids=[sell_id])
            )

        # Assert
        assert exc_info.value.details["action_ids"] == [sell_id]

    @pytest.mark.asyncio
    async def test_rejected_while_descendant_has_action_less_settings(
        self, service, factory, db_session, chain
    ):
        # Arrange
        root, mid, leaf = chain
        mid_id = mid.id
        sell = await factory.action("Sell")
        sell_id = sell.id
        await factory.assign(root, sell)
        attribute = await factory.attribute(leaf, "Color")
        await factory.setting(attribute, required=True)

        # Act
        with pytest.raises(ConfigurationConflict):
            await service.set_excluded_actions(
                mid_id, ExcludedActionsUpdate(action_ids=[sell_id])
            )

        # Assert
        excluded_rows = await db_session.scalar(
            select(func.count())
            .select_from(ActionCategory)
            .where(ActionCategory.excluded.is_(True))
        )
        assert excluded_rows == 0

    @pytest.mark.asyncio
    async def test_clearing_exclusions(self, service, factory, chain):
        root, mid, _ = chain
        sell = await factory.action("Sell")
        await factory.assign(root, sell)
        await factory.assign(mid, sell, excluded=True)

        result = await service.set_excluded_actions(mid.id, ExcludedActionsUpdate())

        assert result.excluded == []
        assert slugs(result.adjusted) == ["sell"]
