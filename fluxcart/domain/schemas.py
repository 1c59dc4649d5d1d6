# fluxcart/domain/schemas.py
from datetime import datetime
from typing import List

from pydantic import BaseModel, ConfigDict, Field

from fluxcart.domain.enums import CartKind


class ProductOut(BaseModel):
    """Schema produktu (response)."""

    id: int
    slug: str
    title: str
    description: str
    price_cents: int
    currency: str
    rating: float
    images: List[str]
    stock: int
    category: str | None = None

    model_config = ConfigDict(from_attributes=True)


class ProductPage(BaseModel):
    items: List[ProductOut]
    total: int


class CartItemIn(BaseModel):
    """Schema dla dodawania produktu do koszyka."""

    product_id: int = Field(..., gt=0)
    qty: int = Field(1, gt=0, description="Ilosc (musi byc > 0)")
    kind: CartKind = CartKind.BUY
    start_date: datetime | None = None
    end_date: datetime | None = None


class CartQtyIn(BaseModel):
    """Zmiana ilosci, 0 usuwa pozycje."""

    qty: int = Field(..., ge=0)


class CartItemOut(BaseModel):
    id: int
    product_id: int
    qty: int
    kind: CartKind
    start_date: datetime | None = None
    end_date: datetime | None = None
    hold_id: str
    created_at: datetime
    product: ProductOut

    model_config = ConfigDict(from_attributes=True)


class CartQtyOut(BaseModel):
    ok: bool = True
    deleted: bool = False
    item: CartItemOut | None = None


class CheckoutOut(BaseModel):
    url: str
    reference: str
    order_id: int | None = None
    simulated: bool = False


class ConfirmOut(BaseModel):
    ok: bool = True
    order_id: int | None = None
    created: bool = False


class OrderItemOut(BaseModel):
    id: int
    product_id: int
    qty: int
    kind: CartKind
    price_cents: int
    product: ProductOut

    model_config = ConfigDict(from_attributes=True)


class OrderOut(BaseModel):
    """Schema dla zamowienia (response)."""

    id: int
    user_id: int
    status: str
    total_cents: int
    discount_cents: int
    currency: str
    created_at: datetime
    items: List[OrderItemOut]

    model_config = ConfigDict(from_attributes=True)


class ReorderOut(BaseModel):
    ok: bool = True
    added: int


class GroupBuyIn(BaseModel):
    product_id: int = Field(..., gt=0)
    min_participants: int = Field(..., gt=0)
    deadline: datetime


class GroupBuyOut(BaseModel):
    id: int
    product_id: int
    creator_id: int
    min_participants: int
    deadline: datetime
    status: str
    settled_at: datetime | None = None
    created_at: datetime
    participant_count: int = 0


class JoinOut(BaseModel):
    ok: bool = True
    joined: bool
    participant_count: int


class ProfileIn(BaseModel):
    """Zmiana profilu, pominiete pola zostaja bez zmian."""

    name: str | None = Field(None, min_length=1, max_length=120)
    phone: str | None = Field(None, max_length=32)


class UserRead(BaseModel):
    """Schema dla uzytkownika (response)."""

    id: int
    email: str | None = None
    phone: str | None = None
    name: str | None = None

    model_config = ConfigDict(from_attributes=True)
