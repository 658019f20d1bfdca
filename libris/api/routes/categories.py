"""
Category API Routes
"""

from fastapi import APIRouter, Depends, status
from loguru import logger

from libris.api.dependencies import get_category_service, get_current_user_id
from libris.api.schemas import (
    CategoryCreate,
    CategoryUpdate,
    CategoryResponse,
    ErrorResponse,
)


router = APIRouter(
    prefix="/categories",
    tags=["categories"],
    dependencies=[Depends(get_current_user_id)],
)


@router.get("", response_model=list[CategoryResponse])
def list_categories(service=Depends(get_category_service)):
    """All categories with their book counts."""
    return service.list_categories()


@router.post("", response_model=CategoryResponse, status_code=status.HTTP_201_CREATED)
def create_category(
    category: CategoryCreate,
    service=Depends(get_category_service),
):
    return service.create_category(category.name, category.description)


@router.get(
    "/{category_id}",
    response_model=CategoryResponse,
    responses={404: {"model": ErrorResponse, "description": "Category not found"}},
)
def get_category(category_id: str, service=Depends(get_category_service)):
    return service.get_category(category_id)


@router.put(
    "/{category_id}",
    response_model=CategoryResponse,
    responses={404: {"model": ErrorResponse, "description": "Category not found"}},
)
def update_category(
    category_id: str,
    category: CategoryUpdate,
    service=Depends(get_category_service),
):
    logger.info(f"Updating category: {category_id}")
    return service.update_category(category_id, **category.model_dump(exclude_unset=True))


@router.delete(
    "/{category_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={
        404: {"model": ErrorResponse, "description": "Category not found"},
        409: {"model": ErrorResponse, "description": "Category still has books"},
    },
)
def delete_category(category_id: str, service=Depends(get_category_service)):
    """
    Delete a category.

    Refused with CATEGORY_IN_USE while any book is assigned to it.
    """
    service.delete_category(category_id)
    return None
