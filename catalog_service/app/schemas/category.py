from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class CategoryBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    parent_id: Optional[int] = None
    sort: int = Field(default=0, ge=0)


class CategoryCreate(CategoryBase):
    pass


class CategoryUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    slug: Optional[str] = Field(default=None, min_length=1, max_length=255)
    sort: Optional[int] = Field(default=None, ge=0)
    # 0 moves the category to the root level
    parent_id: Optional[int] = None


class CategoryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    slug: str
    parent_id: Optional[int] = None
    sort: int
    lft: int
    rgt: int
    depth: int
    created_at: datetime
    updated_at: datetime


class CategoryPathResponse(BaseModel):
    id: int
    path: str
    depth: int


class CategoryPathsResponse(BaseModel):
    total: int
    paths: List[CategoryPathResponse]


class SettingsModeResponse(BaseModel):
    """Which kind of attribute settings an admin may edit for a category"""

    category_id: int
    has_settings_without_actions: bool
    all_ancestor_actions_excluded: bool
