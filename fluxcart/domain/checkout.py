# fluxcart/domain/checkout.py
from dataclasses import dataclass, field, asdict
from datetime import datetime
from typing import Any, Dict

from fluxcart.utils.clock import ensure_utc


@dataclass(frozen=True)
class CheckoutLine:
    """Pozycja koszyka z cena odczytana w chwili checkoutu."""

    cart_item_id: int | None
    product_id: int
    title: str
    kind: str
    qty: int
    unit_price_cents: int
    currency: str
    image: str | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["start_date"] = self.start_date.isoformat() if self.start_date else None
        data["end_date"] = self.end_date.isoformat() if self.end_date else None
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CheckoutLine":
        def _dt(value):
            return ensure_utc(datetime.fromisoformat(value)) if value else None

        return cls(
            cart_item_id=data.get("cart_item_id"),
            product_id=int(data["product_id"]),
            title=data.get("title", ""),
            kind=data.get("kind", "BUY"),
            qty=int(data["qty"]),
            unit_price_cents=int(data["unit_price_cents"]),
            currency=data.get("currency", "INR"),
            image=data.get("image"),
            start_date=_dt(data.get("start_date")),
            end_date=_dt(data.get("end_date")),
        )


@dataclass(frozen=True)
class PaymentSession:
    reference: str
    url: str


@dataclass(frozen=True)
class PaymentSessionStatus:
    reference: str
    paid: bool
    payment_status: str = ""
    metadata: Dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class CheckoutResult:
    url: str
    reference: str
    order_id: int | None = None
    simulated: bool = False


@dataclass(frozen=True)
class ConfirmResult:
    order_id: int | None
    created: bool
