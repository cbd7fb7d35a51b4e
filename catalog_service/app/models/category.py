from sqlalchemy import ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from .base import CatalogServiceBaseModel


class Category(CatalogServiceBaseModel):
    __tablename__ = "categories"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    # Unique among siblings only
    slug: Mapped[str] = mapped_column(String(255), nullable=False)
    parent_id: Mapped[int | None] = mapped_column(
        ForeignKey("categories.id"), nullable=True
    )
    sort: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    # Nested-set index derived from parent_id/sort, see ConsistencyGuard
    lft: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    rgt: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    depth: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    __table_args__ = (Index("ix_categories_bounds", "lft", "rgt"),)

    def is_root(self) -> bool:
        return self.parent_id is None

    def __repr__(self) -> str:
        return f"<Category id={self.id} name={self.name!r} [{self.lft}, {self.rgt}]>"
