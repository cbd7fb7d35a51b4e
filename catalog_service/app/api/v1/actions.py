"""Action API endpoints"""

from typing import List

from fastapi import APIRouter, HTTPException, status

from ...schemas.action import ActionCreate, ActionResponse
from ...services.action_service import ActionService
from ..dependencies import ActionServiceDep

router = APIRouter(prefix="/actions", tags=["actions"])


@router.get("", response_model=List[ActionResponse])
async def list_actions(service: ActionService = ActionServiceDep):
    return await service.list_actions()


@router.post("", response_model=ActionResponse, status_code=status.HTTP_201_CREATED)
async def create_action(
    action_data: ActionCreate, service: ActionService = ActionServiceDep
):
    return await service.create_action(action_data)


@router.delete("/{action_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_action(action_id: int, service: ActionService = ActionServiceDep):
    """Delete an action; 409 while adverts still use it"""
    if not await service.delete_action(action_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Action not found"
        )
