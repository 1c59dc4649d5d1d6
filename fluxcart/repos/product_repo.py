# fluxcart/repos/product_repo.py
from typing import List, Tuple

from sqlalchemy import select, func, or_
from sqlalchemy.orm import Session

from fluxcart.data.models.product import ProductModel


class ProductRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_product(self, product_id: int) -> ProductModel | None:
        return self.db.get(ProductModel, product_id)

    def get_by_slug(self, slug: str) -> ProductModel | None:
        return self.db.execute(
            select(ProductModel).where(ProductModel.slug == slug)
        ).scalar_one_or_none()

    def get_many(self, ids: List[int], category: str | None = None) -> List[ProductModel]:
        if not ids:
            return []
        stmt = select(ProductModel).where(ProductModel.id.in_(ids))
        if category:
            stmt = stmt.where(ProductModel.category == category)
        rows = self.db.execute(stmt).scalars().all()
        #kolejnosc rankingu z wyszukiwarki
        by_id = {p.id: p for p in rows}
        return [by_id[i] for i in ids if i in by_id]

    def search(
        self,
        q: str,
        category: str | None,
        limit: int,
        offset: int,
    ) -> Tuple[List[ProductModel], int]:
        conditions = []
        if q:
            pattern = f"%{q}%"
            conditions.append(
                or_(ProductModel.title.ilike(pattern), ProductModel.description.ilike(pattern))
            )
        if category:
            conditions.append(ProductModel.category == category)

        stmt = select(ProductModel).where(*conditions)
        total = self.db.execute(
            select(func.count()).select_from(stmt.subquery())
        ).scalar_one()
        items = self.db.execute(
            stmt.order_by(ProductModel.created_at.desc(), ProductModel.id.desc())
            .limit(limit)
            .offset(offset)
        ).scalars().all()
        return list(items), total

    def categories(self) -> List[str]:
        rows = self.db.execute(
            select(ProductModel.category)
            .where(ProductModel.category.is_not(None))
            .distinct()
            .order_by(ProductModel.category.asc())
        ).scalars().all()
        return [c for c in rows if c]
