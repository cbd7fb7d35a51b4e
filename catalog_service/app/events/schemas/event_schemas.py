"""
Catalog Service Event Schemas
=============================

Event data schemas for category tree changes.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel

CATEGORY_CREATED = "category.created"
CATEGORY_UPDATED = "category.updated"
CATEGORY_DELETED = "category.deleted"
CATEGORY_TREE_REBUILT = "category.tree_rebuilt"


class CategoryEventData(BaseModel):
    """Base category event data structure"""

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json")


class CategoryCreatedEventData(CategoryEventData):
    category_id: int
    name: str
    slug: str
    parent_id: Optional[int] = None
    created_at: datetime


class CategoryUpdatedEventData(CategoryEventData):
    category_id: int
    updated_fields: List[str]
    parent_id: Optional[int] = None
    # Set when the category changed parent
    previous_parent_id: Optional[int] = None
    moved: bool = False
    updated_at: datetime


class CategoryDeletedEventData(CategoryEventData):
    category_id: int
    name: str
    parent_id: Optional[int] = None
    deleted_at: datetime


class CategoryTreeRebuiltEventData(CategoryEventData):
    """Paths were recomputed; ``repaired`` tells whether bounds had drifted"""

    categories: int
    repaired: bool
    rebuilt_at: datetime
