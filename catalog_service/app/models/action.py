from sqlalchemy import Boolean, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from .base import CatalogServiceBaseModel


class Action(CatalogServiceBaseModel):
    """A listing sub-type, e.g. "for sale" or "for rent"."""

    __tablename__ = "actions"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    slug: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)

    def __repr__(self) -> str:
        return f"<Action id={self.id} slug={self.slug!r}>"


class ActionCategory(CatalogServiceBaseModel):
    """Assignment of an action to a category.

    ``excluded=True`` is a negative assignment: the action stays inherited by
    the ancestors but is blocked for this category and its descendants.
    """

    __tablename__ = "action_category"

    action_id: Mapped[int] = mapped_column(ForeignKey("actions.id"), nullable=False)
    category_id: Mapped[int] = mapped_column(
        ForeignKey("categories.id"), nullable=False, index=True
    )
    sort: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    excluded: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    __table_args__ = (
        UniqueConstraint("action_id", "category_id", name="uq_action_category"),
    )


class ActionAttributeSetting(CatalogServiceBaseModel):
    """required/column/excluded flags of an attribute for one action.

    ``action_id`` is NULL for the attribute-level row used by categories that
    have no actions at all.
    """

    __tablename__ = "action_attribute_settings"

    attribute_id: Mapped[int] = mapped_column(
        ForeignKey("attributes.id"), nullable=False, index=True
    )
    action_id: Mapped[int | None] = mapped_column(
        ForeignKey("actions.id"), nullable=True
    )
    required: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    column: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    excluded: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # NULL action_id rows are kept unique by the settings services
    __table_args__ = (
        UniqueConstraint("attribute_id", "action_id", name="uq_attribute_action"),
    )
