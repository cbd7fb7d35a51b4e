"""
Catalog Service Event Schemas
=============================

Event data schemas for the catalog service domain.
"""

from .event_schemas import (
    CATEGORY_CREATED,
    CATEGORY_DELETED,
    CATEGORY_TREE_REBUILT,
    CATEGORY_UPDATED,
    CategoryCreatedEventData,
    CategoryDeletedEventData,
    CategoryEventData,
    CategoryTreeRebuiltEventData,
    CategoryUpdatedEventData,
)

__all__ = [
    "CategoryEventData",
    "CategoryCreatedEventData",
    "CategoryUpdatedEventData",
    "CategoryDeletedEventData",
    "CategoryTreeRebuiltEventData",
    "CATEGORY_CREATED",
    "CATEGORY_UPDATED",
    "CATEGORY_DELETED",
    "CATEGORY_TREE_REBUILT",
]
