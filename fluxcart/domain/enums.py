# fluxcart/domain/enums.py
from enum import Enum


class CartKind(str, Enum):
    BUY = "BUY"
    RENT = "RENT"
    SWAP = "SWAP"


class OrderStatus(str, Enum):
    # tylko PAID jest obecnie ustawiany, reszta czeka na obsluge wysylki/zwrotow
    PENDING = "PENDING"
    PAID = "PAID"
    PACKED = "PACKED"
    SHIPPED = "SHIPPED"
    ACTIVE_RENT = "ACTIVE_RENT"
    RETURNED = "RETURNED"
    REFUNDED = "REFUNDED"
    CANCELED = "CANCELED"


class CheckoutStatus(str, Enum):
    OPEN = "OPEN"
    FULFILLED = "FULFILLED"


class GroupBuyStatus(str, Enum):
    OPEN = "OPEN"
    SETTLING = "SETTLING"
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"
