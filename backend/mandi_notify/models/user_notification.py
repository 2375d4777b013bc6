"""User notification: persisted history of every notification the engine decided to send.

type: notification kind ('price_alert', 'deal_update', ...) for filtering, stats and expiry.
read / read_at: read is the flag the UI shows; read_at records when it flipped.
expires_at: records past this are purged by the daily cleanup job.
data: JSON for type-specific payload (dealId, alertId, currentPrice, ...).
"""
from sqlalchemy import Boolean, Column, DateTime, Index, Integer, String, Text, false
from sqlalchemy.sql import func

from mandi_notify.db.base import Base, JSONType


class UserNotification(Base):
    __tablename__ = "user_notifications"
    __table_args__ = (Index("ix_user_notifications_user_created", "user_id", "created_at"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(128), nullable=False, index=True)
    type = Column(String(32), nullable=False, default="general", index=True)
    title = Column(String(256), nullable=False)
    message = Column(Text, nullable=False)
    data = Column(JSONType, nullable=False, default=dict)
    read = Column(Boolean, nullable=False, default=False, server_default=false())
    read_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False, index=True)
