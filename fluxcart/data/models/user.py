from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, DateTime
from fluxcart.data.database import Base

class UserModel(Base):
    __tablename__ = "users"
    id = Column(Integer, primary_key=True)
    email = Column(String(191), unique=True, nullable=True)
    phone = Column(String(32), unique=True, nullable=True)
    name = Column(String(120), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
