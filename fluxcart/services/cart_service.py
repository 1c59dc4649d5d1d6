import secrets
from datetime import datetime
from typing import List

from sqlalchemy.orm import Session

from fluxcart.data.models.cart_item import CartItemModel
from fluxcart.domain.context import RequestContext
from fluxcart.domain.enums import CartKind
from fluxcart.domain.errors import NotFoundError, ValidationError
from fluxcart.repos.cart_repo import CartRepo
from fluxcart.repos.product_repo import ProductRepo
from fluxcart.utils.clock import ensure_utc
from fluxcart.utils.logging import get_logger

logger = get_logger(__name__)


def new_hold_id(prefix: str = "hold") -> str:
    return f"{prefix}_{secrets.token_hex(6)}"


class CartService:
    """
    Prosta implementacja cqrs dla koszyka uzytkownika
    commands (add, set_qty, remove, clear) modyfikuja stan
    query (list) tylko odczyt
    """

    def __init__(self, db: Session):
        self.repo = CartRepo(db)
        self.products = ProductRepo(db)

    #query - odczyt
    def list_items(self, ctx: RequestContext) -> List[CartItemModel]:
        return self.repo.get_cart_items(ctx.user_id)

    #commands
    def add_item(
        self,
        ctx: RequestContext,
        product_id: int,
        qty: int = 1,
        kind: CartKind = CartKind.BUY,
        start_date: datetime | None = None,
        end_date: datetime | None = None,
    ) -> CartItemModel:
        # Walidacje
        if qty < 1:
            raise ValidationError("Quantity must be at least 1")

        product = self.products.get_product(product_id)
        if not product:
            raise NotFoundError("Product not found")

        kind = CartKind(kind)
        start_date = ensure_utc(start_date)
        end_date = ensure_utc(end_date)
        self._check_rental_window(product, kind, start_date, end_date)

        # zawsze nowa linia, nie scalamy z istniejaca pozycja tego produktu
        item = self.repo.add_cart_item(
            CartItemModel(
                user_id=ctx.user_id,
                product_id=product.id,
                qty=qty,
                kind=kind.value,
                start_date=start_date,
                end_date=end_date,
                hold_id=new_hold_id(),
            )
        )
        self.repo.commit()

        logger.info(f"Dodano produkt {product_id} ({kind.value} x{qty}) do koszyka uzytkownika {ctx.user_id}")
        return item

    def set_qty(self, ctx: RequestContext, item_id: int, qty: int) -> CartItemModel | None:
        if qty < 0:
            raise ValidationError("Quantity cannot be negative")

        item = self._owned_item(ctx, item_id)

        if qty == 0:
            self.repo.delete_cart_item(item)
            self.repo.commit()
            logger.info(f"Pozycja {item_id} usunieta (qty=0)")
            return None

        item.qty = qty
        self.repo.commit()
        return item

    def remove_item(self, ctx: RequestContext, item_id: int):
        item = self._owned_item(ctx, item_id)
        self.repo.delete_cart_item(item)
        self.repo.commit()
        logger.info(f"Pozycja {item_id} usunieta z koszyka uzytkownika {ctx.user_id}")

    def clear(self, user_id: int) -> int:
        """Bez commita - wywolywane w transakcji tworzenia zamowienia."""
        return self.repo.clear(user_id)

    def _owned_item(self, ctx: RequestContext, item_id: int) -> CartItemModel:
        item = self.repo.get_cart_item(item_id)
        # cudza pozycja wyglada tak samo jak brakujaca
        if not item or item.user_id != ctx.user_id:
            raise NotFoundError()
        return item

    @staticmethod
    def _check_rental_window(product, kind: CartKind, start_date, end_date):
        if start_date and end_date and end_date < start_date:
            raise ValidationError("end_date must not be before start_date")

        if kind is not CartKind.RENT or not (start_date and end_date):
            return

        policy = product.rental_policy
        if policy is None:
            return
        days = max((end_date - start_date).days, 1)
        if days < policy.min_days or days > policy.max_days:
            raise ValidationError(
                f"Rental must last between {policy.min_days} and {policy.max_days} days"
            )
