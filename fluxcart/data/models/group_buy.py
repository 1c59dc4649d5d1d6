from datetime import datetime, timezone

from sqlalchemy import Column, Integer, ForeignKey, String, DateTime, Boolean, UniqueConstraint
from sqlalchemy.orm import relationship

from fluxcart.data.database import Base


class GroupBuyModel(Base):
    __tablename__ = "group_buys"

    id = Column(Integer, primary_key=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    creator_id = Column(Integer, ForeignKey("users.id"), nullable=False)

    min_participants = Column(Integer, nullable=False)
    deadline = Column(DateTime(timezone=True), nullable=False, index=True)
    status = Column(String(16), nullable=False, default="OPEN")  # OPEN, SETTLING, SUCCESS, FAILED
    settled_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    participants = relationship(
        "GroupBuyParticipantModel",
        back_populates="group_buy",
        cascade="all, delete-orphan",
    )


class GroupBuyParticipantModel(Base):
    __tablename__ = "group_buy_participants"

    id = Column(Integer, primary_key=True)
    group_buy_id = Column(Integer, ForeignKey("group_buys.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    intent = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    group_buy = relationship("GroupBuyModel", back_populates="participants")

    __table_args__ = (UniqueConstraint("group_buy_id", "user_id", name="u_group_buy_user"),)
