from sqlalchemy import TEXT, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from .base import CatalogServiceBaseModel


class Advert(CatalogServiceBaseModel):
    """Advert row as seen by the catalog: only the references it holds.

    The advert lifecycle lives elsewhere; the catalog reads these rows to
    refuse deleting categories, attributes and actions still in use.
    """

    __tablename__ = "adverts"

    category_id: Mapped[int] = mapped_column(
        ForeignKey("categories.id"), nullable=False, index=True
    )
    action_id: Mapped[int | None] = mapped_column(
        ForeignKey("actions.id"), nullable=True
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    status: Mapped[str] = mapped_column(String(32), default="draft", nullable=False)


class AdvertAttributeValue(CatalogServiceBaseModel):
    __tablename__ = "advert_attribute_values"

    advert_id: Mapped[int] = mapped_column(ForeignKey("adverts.id"), nullable=False)
    attribute_id: Mapped[int] = mapped_column(
        ForeignKey("attributes.id"), nullable=False, index=True
    )
    value: Mapped[str | None] = mapped_column(TEXT, nullable=True)
