"""
Pytest configuration and fixtures for catalog service tests.
"""

import os
from typing import AsyncGenerator, Optional

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

# Set up test environment variables before importing anything else
os.environ.setdefault("APP_NAME", "Catalog Service Test")
os.environ.setdefault("APP_VERSION", "1.0.0")
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("LOG_LEVEL", "INFO")
os.environ.setdefault("SERVICE_NAME", "catalog-service")
os.environ.setdefault("CATALOG_DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("KAFKA_BOOTSTRAP_SERVERS", "localhost:9092")
os.environ.setdefault("EVENTS_ENABLED", "false")
os.environ.setdefault(
    "CORS_ORIGINS", '["http://localhost:3000", "http://localhost:8080"]'
)
os.environ.setdefault("CORS_CREDENTIALS", "true")
os.environ.setdefault("CORS_METHODS", '["GET", "POST", "PUT", "DELETE", "OPTIONS"]')
os.environ.setdefault("CORS_HEADERS", '["*"]')

from catalog_service.app.core.database import CatalogServiceDatabaseManager  # noqa: E402
from catalog_service.app.models import (  # noqa: E402
    Action,
    ActionAttributeSetting,
    ActionCategory,
    Advert,
    AdvertAttributeValue,
    Attribute,
    AttributeType,
    Category,
    CategoryInheritedAttributeExclusion,
)
from catalog_service.app.repository.category_repository import (  # noqa: E402
    CategoryRepository,
)
from catalog_service.app.schemas.category import CategoryCreate  # noqa: E402
from catalog_service.app.services.category_service import (  # noqa: E402
    CategoryService,
)


@pytest.fixture
async def database_manager() -> AsyncGenerator[CatalogServiceDatabaseManager, None]:
    """Fresh in-memory database per test."""
    manager = CatalogServiceDatabaseManager("sqlite+aiosqlite:///:memory:")
    await manager.create_tables()
    yield manager
    await manager.close()


@pytest.fixture
async def db_session(
    database_manager: CatalogServiceDatabaseManager,
) -> AsyncGenerator[AsyncSession, None]:
    async with database_manager.async_session_maker() as session:
        yield session


class CatalogFactory:
    """Builds catalog rows for tests.

    Categories go through CategoryService so their bounds are real; the other
    rows are inserted directly so tests can set up any state, including ones
    the admin services would refuse.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def _save(self, row):
        self.session.add(row)
        await self.session.commit()
        return row

    async def category(
        self, name: str, parent: Optional[Category] = None, sort: int = 0
    ) -> Category:
        created = await CategoryService(self.session).create_category(
            CategoryCreate(name=name, parent_id=parent.id if parent else None, sort=sort)
        )
        return await CategoryRepository(self.session).get_category_by_id(created.id)

    async def attribute(
        self,
        category: Category,
        name: str,
        sort: int = 0,
        type: AttributeType = AttributeType.STRING,
        options: Optional[list] = None,
    ) -> Attribute:
        return await self._save(
            Attribute(
                category_id=category.id,
                name=name,
                sort=sort,
                type=type.value,
                options=options,
            )
        )

    async def action(self, name: str) -> Action:
        return await self._save(Action(name=name, slug=name.lower().replace(" ", "-")))

    async def assign(
        self, category: Category, action: Action, sort: int = 0, excluded: bool = False
    ) -> ActionCategory:
        return await self._save(
            ActionCategory(
                category_id=category.id,
                action_id=action.id,
                sort=sort,
                excluded=excluded,
            )
        )

    async def exclude_attribute(
        self, category: Category, attribute: Attribute
    ) -> CategoryInheritedAttributeExclusion:
        return await self._save(
            CategoryInheritedAttributeExclusion(
                category_id=category.id, attribute_id=attribute.id
            )
        )

    async def setting(
        self,
        attribute: Attribute,
        action: Optional[Action] = None,
        required: bool = False,
        column: bool = False,
        excluded: bool = False,
    ) -> ActionAttributeSetting:
        return await self._save(
            ActionAttributeSetting(
                attribute_id=attribute.id,
                action_id=action.id if action else None,
                required=required,
                column=column,
                excluded=excluded,
            )
        )

    async def advert(self, category: Category, action: Optional[Action] = None) -> Advert:
        return await self._save(
            Advert(
                category_id=category.id,
                action_id=action.id if action else None,
                title="Test advert",
            )
        )

    async def advert_value(
        self, advert: Advert, attribute: Attribute, value: str = "1"
    ) -> AdvertAttributeValue:
        return await self._save(
            AdvertAttributeValue(
                advert_id=advert.id, attribute_id=attribute.id, value=value
            )
        )


@pytest.fixture
def factory(db_session: AsyncSession) -> CatalogFactory:
    return CatalogFactory(db_session)


@pytest.fixture
async def chain(factory: CatalogFactory):
    """Root -> Mid -> Leaf"""
    root = await factory.category("Root")
    mid = await factory.category("Mid", parent=root)
    leaf = await factory.category("Leaf", parent=mid)
    return root, mid, leaf
