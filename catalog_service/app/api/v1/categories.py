"""Category API endpoints"""

from typing import List, Optional

from fastapi import APIRouter, HTTPException, Query, status

from ...schemas.action import (
    CategoryActionsResponse,
    CategoryActionsUpdate,
    ExcludedActionsUpdate,
)
from ...schemas.attribute import (
    AttributeCreate,
    AttributeResponse,
    AttributeSettingsUpdate,
    ExcludedAttributesUpdate,
    ResolvedAttributesResponse,
    SettingResponse,
    SettingsMatrixUpdate,
)
from ...schemas.category import (
    CategoryCreate,
    CategoryPathResponse,
    CategoryPathsResponse,
    CategoryResponse,
    CategoryUpdate,
    SettingsModeResponse,
)
from ...services.action_service import ActionService
from ...services.attribute_service import AttributeService
from ...services.cache import CategoryPathCache
from ...services.category_service import CategoryService
from ...services.resolution_service import ResolutionService
from ..dependencies import (
    ActionServiceDep,
    AttributeServiceDep,
    CategoryServiceDep,
    CorrelationIdDep,
    PathCacheDep,
    ResolutionServiceDep,
)

router = APIRouter(prefix="/categories", tags=["categories"])


def _not_found(what: str = "Category") -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"{what} not found")


# =====================================================
# TREE
# =====================================================


@router.get("", response_model=List[CategoryResponse])
async def list_categories(
    parent_id: Optional[int] = Query(default=None),
    children_only: bool = Query(default=False),
    service: CategoryService = CategoryServiceDep,
):
    """The whole tree in display order, or one level with ``children_only``"""
    return await service.list_categories(parent_id, children_only)


@router.post("", response_model=CategoryResponse, status_code=status.HTTP_201_CREATED)
async def create_category(
    category_data: CategoryCreate,
    correlation_id: Optional[str] = CorrelationIdDep,
    service: CategoryService = CategoryServiceDep,
):
    return await service.create_category(category_data, correlation_id)


@router.get("/paths", response_model=CategoryPathsResponse)
async def list_category_paths(path_cache: CategoryPathCache = PathCacheDep):
    """Every category path in tree order (siblings by sort, then name)"""
    paths = await path_cache.get_all()
    return CategoryPathsResponse(
        total=len(paths),
        paths=[
            CategoryPathResponse(id=category_id, path=p.path, depth=p.depth)
            for category_id, p in paths.items()
        ],
    )


@router.get("/{category_id}", response_model=CategoryResponse)
async def get_category(
    category_id: int, service: CategoryService = CategoryServiceDep
):
    category = await service.get_category(category_id)
    if not category:
        raise _not_found()
    return category


@router.put("/{category_id}", response_model=CategoryResponse)
async def update_category(
    category_id: int,
    category_data: CategoryUpdate,
    correlation_id: Optional[str] = CorrelationIdDep,
    service: CategoryService = CategoryServiceDep,
):
    """Rename, re-sort or move a category; moves that create cycles get 409"""
    category = await service.update_category(category_id, category_data, correlation_id)
    if not category:
        raise _not_found()
    return category


@router.delete("/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_category(
    category_id: int,
    correlation_id: Optional[str] = CorrelationIdDep,
    service: CategoryService = CategoryServiceDep,
):
    if not await service.delete_category(category_id, correlation_id):
        raise _not_found()


@router.get("/{category_id}/path", response_model=CategoryPathResponse)
async def get_category_path(
    category_id: int, path_cache: CategoryPathCache = PathCacheDep
):
    path = await path_cache.get(category_id)
    if path is None:
        raise _not_found()
    return CategoryPathResponse(id=category_id, path=path.path, depth=path.depth)


# =====================================================
# RESOLUTION
# =====================================================


@router.get("/{category_id}/attributes", response_model=ResolvedAttributesResponse)
async def get_available_attributes(
    category_id: int,
    action_id: Optional[int] = Query(default=None),
    service: ResolutionService = ResolutionServiceDep,
):
    resolved = await service.resolve_attributes(category_id, action_id)
    if not resolved:
        raise _not_found("Category or action")
    return resolved


@router.get("/{category_id}/actions", response_model=CategoryActionsResponse)
async def get_category_actions(
    category_id: int, service: ResolutionService = ResolutionServiceDep
):
    resolved = await service.resolve_actions(category_id)
    if not resolved:
        raise _not_found()
    return resolved


@router.get("/{category_id}/settings-mode", response_model=SettingsModeResponse)
async def get_settings_mode(
    category_id: int, service: ResolutionService = ResolutionServiceDep
):
    mode = await service.settings_mode(category_id)
    if not mode:
        raise _not_found()
    return mode


# =====================================================
# ADMINISTRATION
# =====================================================


@router.post(
    "/{category_id}/attributes",
    response_model=AttributeResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_attribute(
    category_id: int,
    attribute_data: AttributeCreate,
    service: AttributeService = AttributeServiceDep,
):
    attribute = await service.create_attribute(category_id, attribute_data)
    if not attribute:
        raise _not_found()
    return attribute


@router.put("/{category_id}/actions", response_model=CategoryActionsResponse)
async def assign_category_actions(
    category_id: int,
    actions_data: CategoryActionsUpdate,
    service: ActionService = ActionServiceDep,
):
    resolved = await service.assign_actions(category_id, actions_data)
    if not resolved:
        raise _not_found()
    return resolved


@router.put("/{category_id}/excluded-actions", response_model=CategoryActionsResponse)
async def set_excluded_actions(
    category_id: int,
    excluded_data: ExcludedActionsUpdate,
    service: ActionService = ActionServiceDep,
):
    resolved = await service.set_excluded_actions(category_id, excluded_data)
    if not resolved:
        raise _not_found()
    return resolved


@router.put(
    "/{category_id}/excluded-attributes", response_model=List[AttributeResponse]
)
async def set_excluded_attributes(
    category_id: int,
    excluded_data: ExcludedAttributesUpdate,
    service: AttributeService = AttributeServiceDep,
):
    excluded = await service.set_excluded_attributes(category_id, excluded_data)
    if excluded is None:
        raise _not_found()
    return excluded


@router.put("/{category_id}/attribute-settings", response_model=List[SettingResponse])
async def store_attribute_settings(
    category_id: int,
    settings_data: AttributeSettingsUpdate,
    service: AttributeService = AttributeServiceDep,
):
    settings = await service.store_attribute_settings(category_id, settings_data)
    if settings is None:
        raise _not_found()
    return settings


@router.put("/{category_id}/settings-matrix", response_model=List[SettingResponse])
async def store_settings_matrix(
    category_id: int,
    matrix_data: SettingsMatrixUpdate,
    service: AttributeService = AttributeServiceDep,
):
    settings = await service.store_settings_matrix(category_id, matrix_data)
    if settings is None:
        raise _not_found()
    return settings
