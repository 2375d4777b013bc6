from mandi_notify.models.commodity_price import CommodityPrice
from mandi_notify.models.deal import Deal
from mandi_notify.models.price_alert import PriceAlert
from mandi_notify.models.user import User
from mandi_notify.models.user_notification import UserNotification

__all__ = [
    "CommodityPrice",
    "Deal",
    "PriceAlert",
    "User",
    "UserNotification",
]
