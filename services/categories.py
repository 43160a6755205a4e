from typing import Any, Dict, List

from app.schemas.category import CategoryResponse
from models.category import Category
from services.base import CachedService

CATEGORIES_KEY = "categories:all"
CATEGORIES_TTL = 60 * 60  # categories rarely change


class CategoryService(CachedService):
    """Read-only access to event categories"""

    def list_all(self) -> List[Dict[str, Any]]:
        return self._cached(CATEGORIES_KEY, CATEGORIES_TTL, self._load)

    def _load(self) -> List[Dict[str, Any]]:
        categories = self.db.query(Category).order_by(Category.category_name.asc(), Category.category_id.asc()).all()
        return [CategoryResponse.model_validate(c).model_dump(mode="json") for c in categories]

