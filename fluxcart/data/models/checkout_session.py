from datetime import datetime, timezone

from sqlalchemy import Column, Integer, ForeignKey, String, DateTime, JSON

from fluxcart.data.database import Base


class CheckoutSessionModel(Base):
    """Snapshot koszyka zapisany przy tworzeniu sesji platnosci."""

    __tablename__ = "checkout_sessions"

    id = Column(Integer, primary_key=True)
    reference = Column(String(255), unique=True, nullable=False)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    status = Column(String(16), nullable=False, default="OPEN")
    subtotal_cents = Column(Integer, nullable=False)
    discount_cents = Column(Integer, nullable=False, default=0)
    total_cents = Column(Integer, nullable=False)
    currency = Column(String(8), nullable=False, default="INR")
    lines = Column(JSON, nullable=False, default=list)

    order_id = Column(Integer, ForeignKey("orders.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
