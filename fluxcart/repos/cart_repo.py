# fluxcart/repos/cart_repo.py
from typing import Iterable, List

from sqlalchemy import select, delete
from sqlalchemy.orm import Session

from fluxcart.data.models.cart_item import CartItemModel


class CartRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_cart_item(self, item_id: int) -> CartItemModel | None:
        return self.db.get(CartItemModel, item_id)

    def get_cart_items(self, user_id: int) -> List[CartItemModel]:
        return list(
            self.db.execute(
                select(CartItemModel)
                .where(CartItemModel.user_id == user_id)
                .order_by(CartItemModel.created_at.asc(), CartItemModel.id.asc())
            ).scalars().all()
        )

    def add_cart_item(self, item: CartItemModel) -> CartItemModel:
        self.db.add(item)
        self.db.flush()
        return item

    def delete_cart_item(self, item: CartItemModel):
        self.db.delete(item)
        self.db.flush()

    def delete_items(self, user_id: int, item_ids: Iterable[int]) -> int:
        ids = list(item_ids)
        if not ids:
            return 0
        res = self.db.execute(
            delete(CartItemModel)
            .where(CartItemModel.user_id == user_id, CartItemModel.id.in_(ids))
            .execution_options(synchronize_session=False)
        )
        return res.rowcount

    def clear(self, user_id: int) -> int:
        res = self.db.execute(
            delete(CartItemModel)
            .where(CartItemModel.user_id == user_id)
            .execution_options(synchronize_session=False)
        )
        return res.rowcount

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()
