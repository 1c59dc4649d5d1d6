from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, Text, Float, DateTime, JSON, ForeignKey
from sqlalchemy.orm import relationship

from fluxcart.data.database import Base


class ProductModel(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True)
    slug = Column(String(191), unique=True, nullable=False)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False, default="")

    price_cents = Column(Integer, nullable=False)
    currency = Column(String(8), nullable=False, default="INR")
    rating = Column(Float, nullable=False, default=0.0)
    images = Column(JSON, nullable=False, default=list)
    stock = Column(Integer, nullable=False, default=0)
    category = Column(String(96), nullable=True, index=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    rental_policy = relationship(
        "RentalPolicyModel",
        back_populates="product",
        uselist=False,
        cascade="all, delete-orphan",
    )


class RentalPolicyModel(Base):
    __tablename__ = "rental_policies"

    id = Column(Integer, primary_key=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), unique=True, nullable=False)

    min_days = Column(Integer, nullable=False, default=1)
    max_days = Column(Integer, nullable=False, default=30)
    daily_price_cents = Column(Integer, nullable=False)
    deposit_cents = Column(Integer, nullable=False, default=0)

    product = relationship("ProductModel", back_populates="rental_policy")
