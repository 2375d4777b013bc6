"""Tests for price alert subscriptions and evaluation."""
import pytest

from mandi_notify.core.errors import ValidationError
from mandi_notify.models import PriceAlert, UserNotification
from mandi_notify.services import price_alerts
from mandi_notify.services.price_alerts import evaluate_price_alerts, should_trigger


class TestShouldTrigger:
    def test_above_and_below(self):
        assert should_trigger(2600, "above", 2500) is True
        assert should_trigger(2500, "above", 2500) is False
        assert should_trigger(2400, "below", 2500) is True
        assert should_trigger(2500, "below", 2500) is False

    def test_change_band_is_five_percent_of_threshold(self):
        assert should_trigger(2626, "change", 2500) is True
        assert should_trigger(2624, "change", 2500) is False
        assert should_trigger(2374, "change", 2500) is True

    def test_unknown_condition(self):
        assert should_trigger(9999, "sideways", 1) is False


class TestEvaluatePriceAlerts:
    def test_alert_above_threshold_fires(self, db, dispatcher, gateway, make_user):
        make_user("U", token="tu")
        price_alerts.create_alert(db, "U", "Wheat", "above", 2500)
        price_alerts.record_price(db, "Wheat", 2600)
        result = evaluate_price_alerts(db, dispatcher)
        assert result["triggered_count"] == 1
        msg = gateway.sent[0]
        assert msg.title == "Price Alert: Wheat"
        assert msg.body == "Current price ₹2600 above your threshold of ₹2500"
        assert msg.data["type"] == "price_alert"
        assert msg.data["currentPrice"] == "2600.0"
        assert db.query(UserNotification).filter_by(user_id="U", type="price_alert").count() == 1

    def test_blocked_alert_still_counts_as_triggered(self, db, dispatcher, gateway, make_user):
        make_user("U", token="tu", preferences={"price_alerts": False})
        price_alerts.create_alert(db, "U", "Wheat", "above", 2500)
        price_alerts.record_price(db, "Wheat", 2600)
        result = evaluate_price_alerts(db, dispatcher)
        assert result["triggered_count"] == 1
        assert gateway.sent == []
        assert db.query(UserNotification).count() == 0

    def test_alert_without_price_is_skipped(self, db, dispatcher, gateway, make_user):
        make_user("U", token="tu")
        price_alerts.create_alert(db, "U", "Tur Dal", "below", 5000)
        result = evaluate_price_alerts(db, dispatcher)
        assert result == {"triggered_count": 0, "checked_count": 1, "error_count": 0}
        assert gateway.sent == []

    def test_one_failing_alert_does_not_abort_the_run(self, db, dispatcher, gateway, make_user):
        # first alert's user does not exist -> send raises NotFoundError
        price_alerts.create_alert(db, "ghost", "Wheat", "above", 2000)
        make_user("U", token="tu")
        price_alerts.create_alert(db, "U", "Wheat", "above", 2000)
        price_alerts.record_price(db, "Wheat", 2100)
        result = evaluate_price_alerts(db, dispatcher)
        assert result["triggered_count"] == 1
        assert result["error_count"] == 1
        assert gateway.tokens() == ["tu"]

    def test_one_time_alert_deactivates(self, db, dispatcher, make_user):
        make_user("U", token="tu")
        alert = price_alerts.create_alert(db, "U", "Onion", "below", 1500, one_time=True)
        price_alerts.record_price(db, "Onion", 1200)
        evaluate_price_alerts(db, dispatcher)
        row = db.get(PriceAlert, alert.id)
        assert row.active is False
        assert row.last_triggered_at is not None
        assert evaluate_price_alerts(db, dispatcher)["checked_count"] == 0

    def test_recurring_alert_fires_every_run(self, db, dispatcher, gateway, make_user):
        make_user("U", token="tu")
        price_alerts.create_alert(db, "U", "Onion", "below", 1500)
        price_alerts.record_price(db, "Onion", 1200)
        evaluate_price_alerts(db, dispatcher)
        evaluate_price_alerts(db, dispatcher)
        assert len(gateway.sent) == 2

    def test_uses_latest_price_for_location(self, db, dispatcher, gateway, make_user):
        make_user("U", token="tu")
        price_alerts.create_alert(db, "U", "Wheat", "above", 2500, location="Indore")
        price_alerts.record_price(db, "Wheat", 2600, location="Indore")
        price_alerts.record_price(db, "Wheat", 2400, location="Indore")
        price_alerts.record_price(db, "Wheat", 2900, location="Kota")
        assert evaluate_price_alerts(db, dispatcher)["triggered_count"] == 0

    def test_no_active_alerts(self, db, dispatcher):
        assert evaluate_price_alerts(db, dispatcher) == {"triggered_count": 0, "checked_count": 0, "error_count": 0}


class TestAlertSubscriptions:
    def test_invalid_condition(self, db):
        with pytest.raises(ValidationError):
            price_alerts.create_alert(db, "U", "Wheat", "sideways", 2500)

    def test_non_positive_threshold(self, db):
        with pytest.raises(ValidationError):
            price_alerts.create_alert(db, "U", "Wheat", "above", 0)

    def test_list_and_deactivate(self, db):
        a = price_alerts.create_alert(db, "U", "Wheat", "above", 2500)
        price_alerts.create_alert(db, "U", "Onion", "below", 1500)
        price_alerts.deactivate_alert(db, a.id, "U")
        assert len(price_alerts.list_alerts(db, "U")) == 2
        active = price_alerts.list_alerts(db, "U", active_only=True)
        assert [r.commodity for r in active] == ["Onion"]
