import pytest

from catalog_service.app.services.inheritance_resolver import (
    InheritanceResolver,
    subtract,
)


def ids(items):
    return [item.id for item in items]


@pytest.fixture
def resolver(db_session):
    return InheritanceResolver(db_session)


class TestSubtract:
    def test_keeps_order_of_left_side(self):
        class Row:
            def __init__(self, id):
                self.id = id

        rows = [Row(3), Row(1), Row(2)]

        assert ids(subtract(rows, [Row(1)])) == [3, 2]


class TestTreeQueries:
    @pytest.mark.asyncio
    async def test_ancestors_and_self_root_first(self, resolver, chain):
        root, mid, leaf = chain

        assert ids(await resolver.ancestors_and_self(leaf)) == [root.id, mid.id, leaf.id]
        assert ids(await resolver.ancestors(leaf)) == [root.id, mid.id]
        assert await resolver.ancestors(root) == []

    @pytest.mark.asyncio
    async def test_ancestors_memoized_per_resolver(self, resolver, chain):
        _, _, leaf = chain

        first = await resolver.ancestors_and_self(leaf)
        second = await resolver.ancestors_and_self(leaf)

        assert first is second

    @pytest.mark.asyncio
    async def test_descendants(self, resolver, chain):
        root, mid, leaf = chain

        assert ids(await resolver.descendants(root)) == [mid.id, leaf.id]
        assert await resolver.descendants(leaf) == []


class TestAttributeResolution:
    @pytest.mark.asyncio
    async def test_exclusion_propagates_down_the_chain(self, resolver, factory, chain):
        # Arrange
        root, mid, leaf = chain
        x = await factory.attribute(root, "X")
        await factory.exclude_attribute(mid, x)

        # Act
        leaf_available = await resolver.available_attributes(leaf)
        mid_available = await resolver.available_attributes(mid)
        root_available = await resolver.available_attributes(root)

        # Assert
        assert x.id not in ids(leaf_available)
        assert x.id not in ids(mid_available)
        assert x.id in ids(root_available)

    @pytest.mark.asyncio
    async def test_available_is_subset_and_disjoint_from_exclusions(
        self, resolver, factory, chain
    ):
        # Arrange
        root, mid, leaf = chain
        kept = await factory.attribute(root, "Kept")
        dropped = await factory.attribute(root, "Dropped")
        await factory.attribute(mid, "Mid own")
        await factory.attribute(leaf, "Leaf own")
        await factory.exclude_attribute(leaf, dropped)

        for category in chain:
            # Act
            available = set(ids(await resolver.available_attributes(category)))
            chain_attributes = set(
                ids(await resolver.attributes_of_ancestors_and_self(category))
            )
            excluded = set(
                ids(await resolver.excluded_inherited_attributes(category))
            )

            # Assert
            assert available <= chain_attributes
            assert not available & excluded
        assert kept.id in ids(await resolver.available_attributes(leaf))

    @pytest.mark.asyncio
    async def test_no_reinclusion_below_an_exclusion(self, resolver, factory, chain):
        # Arrange
        root, mid, leaf = chain
        x = await factory.attribute(root, "X")
        await factory.exclude_attribute(mid, x)
        await factory.exclude_attribute(leaf, x)

        # Act
        available = await resolver.available_attributes(leaf)
        excluded = await resolver.excluded_inherited_attributes(leaf)

        # Assert
        assert available == []
        assert ids(excluded) == [x.id]

    @pytest.mark.asyncio
    async def test_ordered_by_sort_then_depth_then_name(
        self, resolver, factory, chain
    ):
        # Arrange
        root, mid, leaf = chain
        leaf_first = await factory.attribute(leaf, "A leaf", sort=0)
        root_b = await factory.attribute(root, "B root", sort=0)
        root_a = await factory.attribute(root, "A root", sort=0)
        mid_late = await factory.attribute(mid, "A mid", sort=5)

        # Act
        attributes = await resolver.attributes_of_ancestors_and_self(leaf)

        # Assert
        assert ids(attributes) == [root_a.id, root_b.id, leaf_first.id, mid_late.id]

    @pytest.mark.asyncio
    async def test_inherited_views(self, resolver, factory, chain):
        # Arrange
        root, mid, leaf = chain
        root_attr = await factory.attribute(root, "Root attr")
        mid_attr = await factory.attribute(mid, "Mid attr")
        leaf_attr = await factory.attribute(leaf, "Leaf attr")
        await factory.exclude_attribute(mid, root_attr)

        # Act / Assert
        assert ids(await resolver.attributes_of_ancestors(leaf)) == [
            root_attr.id,
            mid_attr.id,
        ]
        assert ids(await resolver.parent_attributes(leaf)) == [mid_attr.id]
        assert await resolver.parent_attributes(root) == []
        assert ids(await resolver.excluded_ancestor_attributes(leaf)) == [root_attr.id]
        assert ids(await resolver.excluded_ancestor_attributes(mid)) == []
        assert ids(await resolver.available_ancestor_attributes(leaf)) == [mid_attr.id]
        assert leaf_attr.id not in ids(await resolver.available_ancestor_attributes(leaf))

    @pytest.mark.asyncio
    async def test_action_scoped_exclusion(self, resolver, factory, chain):
        # Arrange
        root, _, leaf = chain
        sell = await factory.action("Sell")
        rent = await factory.action("Rent")
        await factory.assign(root, sell)
        await factory.assign(root, rent)
        deposit = await factory.attribute(root, "Deposit")
        color = await factory.attribute(root, "Color")
        await factory.setting(deposit, action=sell, excluded=True)

        # Act
        for_sell = await resolver.available_attributes(leaf, sell)
        for_rent = await resolver.available_attributes(leaf, rent)

        # Assert
        assert ids(for_sell) == [color.id]
        assert set(ids(for_rent)) == {deposit.id, color.id}
        assert ids(await resolver.excluded_attributes(leaf, sell)) == [deposit.id]
        assert await resolver.excluded_attributes(leaf) == []

    @pytest.mark.asyncio
    async def test_required_and_column_for_action(self, resolver, factory, chain):
        # Arrange
        root, _, leaf = chain
        sell = await factory.action("Sell")
        await factory.assign(root, sell)
        price = await factory.attribute(root, "Price")
        color = await factory.attribute(root, "Color")
        await factory.setting(price, action=sell, required=True, column=True)
        await factory.setting(color, action=sell, column=True)

        # Act
        available = await resolver.available_attributes(leaf, sell)
        required = await resolver.required_attributes(available, sell)
        columns = await resolver.column_attributes(available, sell)

        # Assert
        assert ids(required) == [price.id]
        assert set(ids(columns)) == {price.id, color.id}
        assert await resolver.required_attributes(available) == []

    @pytest.mark.asyncio
    async def test_action_less_required_setting_without_actions(
        self, resolver, factory, chain
    ):
        # Arrange
        root, _, _ = chain
        y = await factory.attribute(root, "Y")
        await factory.setting(y, required=True)

        # Act
        assert await resolver.category_actions(root) == []
        required = await resolver.required_attributes(
            await resolver.available_attributes(root), None
        )

        # Assert
        assert ids(required) == [y.id]

    @pytest.mark.asyncio
    async def test_excluded_attributes_for_action(self, resolver, factory, chain):
        root, _, _ = chain
        sell = await factory.action("Sell")
        attribute = await factory.attribute(root, "Deposit")
        await factory.setting(attribute, action=sell, excluded=True)

        result = await resolver.excluded_attributes_for_action([attribute], sell)

        assert ids(result) == [attribute.id]

    @pytest.mark.asyncio
    async def test_empty_category_resolves_to_empty_lists(self, resolver, chain):
        _, _, leaf = chain

        assert await resolver.available_attributes(leaf) == []
        assert await resolver.required_attributes([]) == []
        assert await resolver.category_actions(leaf) == []


class TestActionResolution:
    @pytest.mark.asyncio
    async def test_exclusion_at_mid_hides_action_below(self, resolver, factory, chain):
        # Arrange
        root, mid, leaf = chain
        a = await factory.action("A")
        await factory.assign(root, a)
        await factory.assign(mid, a, excluded=True)

        # Act
        leaf_actions = await resolver.adjusted_actions(
            await resolver.ancestors_and_self(leaf)
        )
        root_actions = await resolver.adjusted_actions(root)

        # Assert
        assert a.id not in ids(leaf_actions)
        assert a.id not in ids(await resolver.category_actions(leaf))
        assert ids(root_actions) == [a.id]

    @pytest.mark.asyncio
    async def test_adjusted_is_assigned_minus_excluded(self, resolver, factory, chain):
        # Arrange
        root, mid, leaf = chain
        a = await factory.action("A")
        b = await factory.action("B")
        await factory.assign(root, a)
        await factory.assign(root, b)
        await factory.assign(leaf, b, excluded=True)
        categories = await resolver.ancestors_and_self(leaf)

        # Act
        assigned = await resolver.assigned_actions(categories)
        excluded = await resolver.excluded_actions(categories)
        adjusted = await resolver.adjusted_actions(categories)

        # Assert
        assert ids(adjusted) == [a.id]
        assert not set(ids(adjusted)) & set(ids(excluded))
        assert set(ids(adjusted)) <= set(ids(assigned))

    @pytest.mark.asyncio
    async def test_actions_ordered_by_assignment_sort_then_name(
        self, resolver, factory, chain
    ):
        # Arrange
        root, _, _ = chain
        zulu = await factory.action("Zulu")
        alpha = await factory.action("Alpha")
        bravo = await factory.action("Bravo")
        await factory.assign(root, zulu, sort=0)
        await factory.assign(root, bravo, sort=1)
        await factory.assign(root, alpha, sort=1)

        # Act
        actions = await resolver.assigned_actions(root)

        # Assert
        assert ids(actions) == [zulu.id, alpha.id, bravo.id]

    @pytest.mark.asyncio
    async def test_action_assigned_twice_listed_once(self, resolver, factory, chain):
        root, mid, _ = chain
        a = await factory.action("A")
        await factory.assign(root, a)
        await factory.assign(mid, a, sort=3)

        assert ids(await resolver.assigned_actions([root, mid])) == [a.id]


class TestPredicates:
    @pytest.mark.asyncio
    async def test_settings_without_actions(self, resolver, factory, chain):
        # Arrange
        root, mid, leaf = chain
        attribute = await factory.attribute(leaf, "Y")
        await factory.setting(attribute, required=True)

        # Act / Assert
        assert await resolver.has_settings_without_actions(leaf)
        assert not await resolver.has_settings_without_actions(mid)
        assert await resolver.has_settings_without_actions(mid, include_descendants=True)
        assert await resolver.ancestors_or_self_have_settings_without_actions(leaf)
        assert not await resolver.ancestors_or_self_have_settings_without_actions(mid)

    @pytest.mark.asyncio
    async def test_all_ancestor_actions_excluded(self, resolver, factory, chain):
        # Arrange
        root, mid, leaf = chain
        a = await factory.action("A")
        await factory.assign(root, a)
        await factory.assign(mid, a, excluded=True)

        # Act / Assert
        assert not await resolver.all_ancestor_actions_excluded(root)
        assert await resolver.all_ancestor_actions_excluded(leaf)

    @pytest.mark.asyncio
    async def test_action_presence_predicates(self, resolver, factory, chain):
        # Arrange
        root, mid, leaf = chain
        a = await factory.action("A")
        await factory.assign(mid, a)

        # Act / Assert
        assert await resolver.ancestors_have_actions(leaf)
        assert not await resolver.ancestors_have_actions(mid)
        assert await resolver.descendants_or_self_have_actions(root)
        assert not await resolver.descendants_or_self_have_actions(leaf)
        assert await resolver.ancestors_or_descendants_or_self_have_actions(leaf)

    @pytest.mark.asyncio
    async def test_reset_forgets_memoized_lookups(self, resolver, factory, chain):
        # Arrange
        root, _, leaf = chain
        assert await resolver.available_attributes(leaf) == []
        attribute = await factory.attribute(root, "Late")

        # Act
        resolver.reset()

        # Assert
        assert ids(await resolver.available_attributes(leaf)) == [attribute.id]
