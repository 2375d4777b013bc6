"""Deal between a buyer and a seller. Writes here drive deal_update notifications."""
from typing import Any

from sqlalchemy import Column, DateTime, Float, Integer, String
from sqlalchemy.sql import func

from mandi_notify.db.base import Base


class Deal(Base):
    __tablename__ = "deals"

    id = Column(Integer, primary_key=True, autoincrement=True)
    buyer_id = Column(String(128), nullable=False, index=True)
    seller_id = Column(String(128), nullable=False, index=True)
    commodity = Column(String(128), nullable=False)
    agreed_price = Column(Float, nullable=False)
    quantity = Column(Float, nullable=True)
    unit = Column(String(32), nullable=True)
    status = Column(String(32), nullable=False, default="confirmed", server_default="confirmed")
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def to_snapshot(self) -> dict[str, Any]:
        """Plain-dict copy of the row, taken before and after a write."""
        return {
            "buyerId": self.buyer_id,
            "sellerId": self.seller_id,
            "commodity": self.commodity,
            "agreedPrice": self.agreed_price,
            "quantity": self.quantity,
            "unit": self.unit,
            "status": self.status,
        }
