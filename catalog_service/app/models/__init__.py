"""Catalog Service Models"""

from .action import Action, ActionAttributeSetting, ActionCategory
from .advert import Advert, AdvertAttributeValue
from .attribute import (
    PRICE_ATTRIBUTE_NAME,
    Attribute,
    AttributeType,
    CategoryInheritedAttributeExclusion,
)
from .base import CatalogServiceBase, CatalogServiceBaseModel
from .category import Category

__all__ = [
    "CatalogServiceBase",
    "CatalogServiceBaseModel",
    "Category",
    "Attribute",
    "AttributeType",
    "PRICE_ATTRIBUTE_NAME",
    "CategoryInheritedAttributeExclusion",
    "Action",
    "ActionCategory",
    "ActionAttributeSetting",
    "Advert",
    "AdvertAttributeValue",
]
