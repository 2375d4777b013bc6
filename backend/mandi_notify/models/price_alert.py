"""Price alert subscription: notify a user when a commodity price crosses a threshold.

condition: 'above' | 'below' | 'change'.
one_time: deactivate after the first trigger; otherwise the alert keeps firing on every evaluation.
"""
from sqlalchemy import Boolean, Column, DateTime, Float, Integer, String, false, true
from sqlalchemy.sql import func

from mandi_notify.db.base import Base


class PriceAlert(Base):
    __tablename__ = "price_alerts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(128), nullable=False, index=True)
    commodity = Column(String(128), nullable=False)
    condition = Column(String(16), nullable=False)
    threshold = Column(Float, nullable=False)
    location = Column(String(128), nullable=True)
    active = Column(Boolean, nullable=False, default=True, server_default=true(), index=True)
    one_time = Column(Boolean, nullable=False, default=False, server_default=false())
    last_triggered_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
