from typing import List

from fastapi import APIRouter, Depends

from app.api.deps import get_category_service
from app.schemas.category import CategoryResponse
from services.categories import CategoryService

router = APIRouter()


@router.get("", response_model=List[CategoryResponse])
def list_categories(categories: CategoryService = Depends(get_category_service)):
    """All event categories, alphabetically"""
    return categories.list_all()
