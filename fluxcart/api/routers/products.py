# fluxcart/api/routers/products.py
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from fluxcart.api.deps import get_search
from fluxcart.data.database import get_db
from fluxcart.domain.errors import NotFoundError
from fluxcart.domain.schemas import ProductOut, ProductPage
from fluxcart.services.catalog_service import CatalogService
from fluxcart.services.search_client import SearchClient

router = APIRouter(prefix="/products", tags=["products"])


@router.get("", response_model=ProductPage)
def list_products(
    q: str = "",
    category: str | None = None,
    limit: int = Query(24, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    search: SearchClient | None = Depends(get_search),
):
    items, total = CatalogService(db, search).search(q, category, limit, offset)
    return {"items": items, "total": total}


@router.get("/categories", response_model=List[str])
def categories(db: Session = Depends(get_db)):
    return CatalogService(db).categories()


@router.get("/{slug}", response_model=ProductOut)
def get_product(slug: str, db: Session = Depends(get_db)):
    try:
        return CatalogService(db).get_by_slug(slug)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
