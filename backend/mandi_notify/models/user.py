"""User record: device push token and notification preferences.

fcm_token: the one push destination for this user (NULL = none registered, a valid silent state).
notification_preferences: JSON with the five topic flags and a channels map; NULL = never set (send everything).
"""
from sqlalchemy import Boolean, Column, DateTime, String, false
from sqlalchemy.sql import func

from mandi_notify.db.base import Base, JSONType


class User(Base):
    __tablename__ = "users"

    id = Column(String(128), primary_key=True)
    fcm_token = Column(String(512), nullable=True)
    platform = Column(String(16), nullable=True)  # 'android' | 'ios' | 'web'
    notification_preferences = Column(JSONType, nullable=True)
    notifications_disabled = Column(Boolean, nullable=False, default=False, server_default=false())
    token_updated_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
