from typing import List

from pydantic import BaseModel, ConfigDict, Field


class ActionCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)


class ActionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    slug: str


class ActionAssignmentItem(BaseModel):
    action_id: int
    sort: int = Field(default=0, ge=0, le=255)


class CategoryActionsUpdate(BaseModel):
    actions: List[ActionAssignmentItem] = []


class ExcludedActionsUpdate(BaseModel):
    action_ids: List[int] = []


class CategoryActionsResponse(BaseModel):
    category_id: int
    assigned: List[ActionResponse]
    excluded: List[ActionResponse]
    adjusted: List[ActionResponse]
