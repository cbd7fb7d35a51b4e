from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..models.attribute import AttributeType


class AttributeBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    type: AttributeType = AttributeType.STRING
    sort: int = Field(default=0, ge=0)
    options: Optional[List[Any]] = None


class AttributeCreate(AttributeBase):
    pass


class AttributeUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    type: Optional[AttributeType] = None
    sort: Optional[int] = Field(default=None, ge=0)
    options: Optional[List[Any]] = None


class AttributeResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    category_id: int
    name: str
    type: str
    sort: int
    options: Optional[List[Any]] = None
    # Render as a drop-down of options in advert forms
    is_select: bool = False

    @field_validator("is_select", mode="before")
    @classmethod
    def call_model_predicate(cls, value: Any) -> Any:
        # Read from the ORM model, where it is a method
        return value() if callable(value) else value


class ActionSettingsUpdate(BaseModel):
    """Per-action flags of one attribute, as lists of action ids"""

    required: List[int] = []
    column: List[int] = []
    excluded: List[int] = []


class AttributeSettingsUpdate(BaseModel):
    """Action-less flags for the attributes a category owns"""

    required: List[int] = []
    column: List[int] = []


class SettingsMatrixUpdate(BaseModel):
    """attribute id -> action id -> flag names (required/column/excluded)"""

    settings: Dict[int, Dict[int, List[str]]] = {}


class ExcludedAttributesUpdate(BaseModel):
    attribute_ids: List[int] = []


class SettingResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    attribute_id: int
    action_id: Optional[int]
    required: bool
    column: bool
    excluded: bool


class ResolvedAttributesResponse(BaseModel):
    category_id: int
    action_id: Optional[int] = None
    attributes: List[AttributeResponse]
    required_attribute_ids: List[int]
    column_attribute_ids: List[int]
    price_attribute_id: Optional[int] = None
