# fluxcart/services/catalog_service.py
from typing import List, Tuple

from sqlalchemy.orm import Session

from fluxcart.data.models.product import ProductModel
from fluxcart.domain.errors import NotFoundError
from fluxcart.repos.product_repo import ProductRepo
from fluxcart.services.search_client import SearchClient
from fluxcart.utils.logging import get_logger

logger = get_logger(__name__)


class CatalogService:
    def __init__(self, db: Session, search_client: SearchClient | None = None):
        self.repo = ProductRepo(db)
        self.search_client = search_client

    def search(
        self,
        q: str = "",
        category: str | None = None,
        limit: int = 24,
        offset: int = 0,
    ) -> Tuple[List[ProductModel], int]:
        q = (q or "").strip()
        category = (category or "").strip() or None

        if self.search_client is not None and q:
            try:
                ids, total = self.search_client.search(q, limit, offset, category)
            except Exception as e:
                # wyszukiwarka nie jest krytyczna, wracamy do bazy
                logger.warning(f"Search unavailable, falling back to database: {e}")
            else:
                if not ids:
                    return [], 0
                items = self.repo.get_many(ids, category)
                return items, total

        return self.repo.search(q, category, limit, offset)

    def get_by_slug(self, slug: str) -> ProductModel:
        product = self.repo.get_by_slug(slug)
        if not product:
            raise NotFoundError()
        return product

    def categories(self) -> List[str]:
        return self.repo.categories()
