"""Attribute API endpoints"""

from typing import List

from fastapi import APIRouter, HTTPException, status

from ...schemas.attribute import (
    ActionSettingsUpdate,
    AttributeResponse,
    AttributeUpdate,
    SettingResponse,
)
from ...services.attribute_service import AttributeService
from ..dependencies import AttributeServiceDep

router = APIRouter(prefix="/attributes", tags=["attributes"])


@router.get("/{attribute_id}", response_model=AttributeResponse)
async def get_attribute(
    attribute_id: int, service: AttributeService = AttributeServiceDep
):
    attribute = await service.get_attribute(attribute_id)
    if not attribute:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Attribute not found"
        )
    return attribute


@router.put("/{attribute_id}", response_model=AttributeResponse)
async def update_attribute(
    attribute_id: int,
    attribute_data: AttributeUpdate,
    service: AttributeService = AttributeServiceDep,
):
    attribute = await service.update_attribute(attribute_id, attribute_data)
    if not attribute:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Attribute not found"
        )
    return attribute


@router.delete("/{attribute_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_attribute(
    attribute_id: int, service: AttributeService = AttributeServiceDep
):
    """Delete an attribute; 409 while adverts still carry values for it"""
    if not await service.delete_attribute(attribute_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Attribute not found"
        )


@router.put("/{attribute_id}/action-settings", response_model=List[SettingResponse])
async def store_action_settings(
    attribute_id: int,
    settings_data: ActionSettingsUpdate,
    service: AttributeService = AttributeServiceDep,
):
    settings = await service.store_action_settings(attribute_id, settings_data)
    if settings is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Attribute not found"
        )
    return settings
