#import wszystkich modeli zeby SQLAlchemy je zarejestrowal w base metadata

from fluxcart.data.models.user import UserModel
from fluxcart.data.models.product import ProductModel, RentalPolicyModel
from fluxcart.data.models.cart_item import CartItemModel
from fluxcart.data.models.order import OrderModel, OrderItemModel
from fluxcart.data.models.checkout_session import CheckoutSessionModel
from fluxcart.data.models.group_buy import GroupBuyModel, GroupBuyParticipantModel

__all__ = [
    "UserModel",
    "ProductModel",
    "RentalPolicyModel",
    "CartItemModel",
    "OrderModel",
    "OrderItemModel",
    "CheckoutSessionModel",
    "GroupBuyModel",
    "GroupBuyParticipantModel",
]
