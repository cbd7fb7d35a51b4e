from enum import Enum
from typing import Any

from sqlalchemy import JSON, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from .base import CatalogServiceBaseModel

# The one attribute rendered and filtered as the advert price
PRICE_ATTRIBUTE_NAME = "Price"


class AttributeType(str, Enum):
    STRING = "string"
    INTEGER = "integer"
    FLOAT = "float"
    JSON = "json"
    BOOLEAN = "boolean"


class Attribute(CatalogServiceBaseModel):
    __tablename__ = "attributes"

    category_id: Mapped[int] = mapped_column(
        ForeignKey("categories.id"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    type: Mapped[str] = mapped_column(
        String(20), default=AttributeType.STRING.value, nullable=False
    )
    sort: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    options: Mapped[list[Any] | None] = mapped_column(JSON, nullable=True)

    def is_select(self) -> bool:
        """Enumerated attribute: several options and a scalar, non-boolean type."""
        if self.type in (AttributeType.BOOLEAN.value, AttributeType.JSON.value):
            return False
        return len(self.options or []) > 1

    def is_price(self) -> bool:
        return self.name == PRICE_ATTRIBUTE_NAME

    def __repr__(self) -> str:
        return f"<Attribute id={self.id} name={self.name!r} category={self.category_id}>"


class CategoryInheritedAttributeExclusion(CatalogServiceBaseModel):
    """An ancestor attribute the category (and its subtree) must not inherit."""

    __tablename__ = "category_inherited_attribute_exclusions"

    category_id: Mapped[int] = mapped_column(
        ForeignKey("categories.id"), nullable=False, index=True
    )
    attribute_id: Mapped[int] = mapped_column(
        ForeignKey("attributes.id"), nullable=False
    )

    __table_args__ = (
        UniqueConstraint(
            "category_id", "attribute_id", name="uq_inherited_attribute_exclusion"
        ),
    )
