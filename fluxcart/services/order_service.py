# fluxcart/services/order_service.py
from typing import Iterable, List

from sqlalchemy.orm import Session

from fluxcart.data.models.cart_item import CartItemModel
from fluxcart.data.models.order import OrderModel, OrderItemModel
from fluxcart.domain.checkout import CheckoutLine
from fluxcart.domain.context import RequestContext
from fluxcart.domain.enums import CartKind, OrderStatus
from fluxcart.domain.errors import NotFoundError, ValidationError
from fluxcart.repos.cart_repo import CartRepo
from fluxcart.repos.order_repo import OrderRepo
from fluxcart.services.cart_service import new_hold_id
from fluxcart.services.notification_service import NotificationService
from fluxcart.utils.logging import get_logger

logger = get_logger(__name__)


class OrderService:
    """
    Serwis odpowiedzialny za domene zamowien.
    Separacja od CartService i CheckoutService.
    """

    def __init__(self, db: Session, notifier: NotificationService | None = None):
        self.db = db
        self.repo = OrderRepo(db)
        self.carts = CartRepo(db)
        self.notifier = notifier or NotificationService()

    def create_paid_order(
        self,
        user_id: int,
        lines: Iterable[CheckoutLine],
        discount_cents: int,
        currency: str,
        payment_ref: str | None,
    ) -> OrderModel:
        """
        Tworzy zamowienie PAID ze snapshotem cen pozycji.
        Tylko flush - commit robi wywolujacy razem z czyszczeniem koszyka.
        """
        lines = list(lines)
        if not lines:
            raise ValidationError("Cannot create an order without items")

        subtotal = sum(line.unit_price_cents * line.qty for line in lines)
        if discount_cents < 0 or discount_cents > subtotal:
            raise ValidationError("Discount out of range")

        order = OrderModel(
            user_id=user_id,
            status=OrderStatus.PAID.value,
            total_cents=subtotal - discount_cents,
            discount_cents=discount_cents,
            currency=currency,
            payment_ref=payment_ref,
            items=[
                OrderItemModel(
                    product_id=line.product_id,
                    qty=line.qty,
                    kind=line.kind,
                    price_cents=line.unit_price_cents,
                )
                for line in lines
            ],
        )
        return self.repo.add_order(order)

    def list_orders(self, ctx: RequestContext) -> List[OrderModel]:
        return self.repo.list_user_orders(ctx.user_id)

    def get_order(self, ctx: RequestContext, order_id: int) -> OrderModel:
        """
        Use Case: Pobranie zamowienia (Query).
        Cudze zamowienie to 404, nie 403.
        """
        order = self.repo.get_user_order(order_id, ctx.user_id)
        if not order:
            raise NotFoundError()
        return order

    def reorder(self, ctx: RequestContext, order_id: int) -> int:
        order = self.get_order(ctx, order_id)

        added = 0
        for item in order.items:
            # wynajem i wymiana zaleza od kontekstu, nie kopiujemy ich
            if item.kind != CartKind.BUY.value:
                continue
            self.carts.add_cart_item(
                CartItemModel(
                    user_id=ctx.user_id,
                    product_id=item.product_id,
                    qty=item.qty,
                    kind=item.kind,
                    hold_id=new_hold_id("re"),
                )
            )
            added += 1

        self.carts.commit()
        logger.info(f"Reorder zamowienia {order_id}: dodano {added} pozycji")
        return added

    def resend_receipt(self, ctx: RequestContext, order_id: int):
        order = self.get_order(ctx, order_id)
        self.notifier.send_order_receipt(order.id)
