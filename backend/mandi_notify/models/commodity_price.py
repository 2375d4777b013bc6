"""Commodity price observation (one row per reported price). Latest row per commodity/location is the current price."""
from sqlalchemy import Column, DateTime, Float, Index, Integer, String
from sqlalchemy.sql import func

from mandi_notify.db.base import Base


class CommodityPrice(Base):
    __tablename__ = "commodity_prices"
    __table_args__ = (Index("ix_commodity_prices_commodity_recorded", "commodity", "recorded_at"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    commodity = Column(String(128), nullable=False)
    location = Column(String(128), nullable=True)
    price = Column(Float, nullable=False)
    recorded_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
