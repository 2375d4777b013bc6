"""Tests for deal lifecycle notifications."""
import pytest

from mandi_notify.core.errors import ValidationError
from mandi_notify.models import Deal, UserNotification
from mandi_notify.services import deals
from mandi_notify.services.deal_events import on_deal_created, on_deal_updated, status_message


def _deal(**overrides):
    deal = {
        "buyerId": "B",
        "sellerId": "S",
        "commodity": "Wheat",
        "agreedPrice": 2450,
        "quantity": 10,
        "unit": "quintal",
        "status": "confirmed",
    }
    deal.update(overrides)
    return deal


class TestDealCreated:
    def test_notifies_buyer_and_seller(self, db, dispatcher, gateway, make_user):
        make_user("B", token="tb")
        make_user("S", token="ts")
        outcomes = on_deal_created(db, dispatcher, "d1", _deal())
        assert outcomes["B"].success and outcomes["S"].success
        assert sorted(gateway.tokens()) == ["tb", "ts"]
        msg = gateway.sent[0]
        assert msg.title == "Deal Confirmed"
        assert msg.body == "Your deal for Wheat at ₹2450 has been confirmed"
        assert msg.data["dealId"] == "d1"
        assert msg.data["action"] == "confirmed"
        assert msg.data["type"] == "deal_update"

    def test_one_party_failing_does_not_stop_the_other(self, db, dispatcher, gateway, make_user):
        make_user("S", token="ts")
        outcomes = on_deal_created(db, dispatcher, "d1", _deal())
        assert outcomes["B"] is None
        assert outcomes["S"].success is True
        assert gateway.tokens() == ["ts"]

    def test_float_price_rendered_without_trailing_zero(self, db, dispatcher, gateway, make_user):
        make_user("B", token="tb")
        make_user("S", token="ts")
        on_deal_created(db, dispatcher, "d1", _deal(agreedPrice=2450.0))
        assert "₹2450 " in gateway.sent[0].body

    def test_empty_snapshot_is_ignored(self, db, dispatcher, gateway):
        assert on_deal_created(db, dispatcher, "d1", None) == {}
        assert gateway.sent == []


class TestDealUpdated:
    def test_status_change_notifies_both(self, db, dispatcher, gateway, make_user):
        make_user("B", token="tb")
        make_user("S", token="ts")
        on_deal_updated(db, dispatcher, "d1", _deal(), _deal(status="paid"))
        assert len(gateway.sent) == 2
        msg = gateway.sent[0]
        assert msg.title == "Deal Update"
        assert msg.body == "Wheat deal: Payment confirmed"
        assert msg.data["status"] == "paid"
        assert msg.data["action"] == "status_updated"

    def test_same_status_sends_nothing(self, db, dispatcher, gateway, make_user):
        make_user("B", token="tb")
        make_user("S", token="ts")
        outcomes = on_deal_updated(db, dispatcher, "d1", _deal(), _deal(agreedPrice=2500))
        assert outcomes == {}
        assert gateway.sent == []
        assert db.query(UserNotification).count() == 0

    def test_preference_blocks_one_party(self, db, dispatcher, gateway, make_user):
        make_user("B", token="tb", preferences={"deal_updates": False})
        make_user("S", token="ts")
        outcomes = on_deal_updated(db, dispatcher, "d1", _deal(), _deal(status="delivered"))
        assert outcomes["B"].success is False
        assert gateway.tokens() == ["ts"]

    def test_status_messages(self):
        assert status_message("paid") == "Payment confirmed"
        assert status_message("delivered") == "Order delivered"
        assert status_message("completed") == "Deal completed successfully"
        assert status_message("disputed") == "Deal disputed - please review"
        assert status_message("cancelled") == "Deal cancelled"
        assert status_message("in_transit") == "Deal status updated to in_transit"


class TestDealsService:
    def test_create_then_update_status(self, db, dispatcher, gateway, make_user):
        make_user("B", token="tb")
        make_user("S", token="ts")
        row = deals.create_deal(db, dispatcher, "B", "S", "Onion", 1800.0, quantity=5, unit="quintal")
        assert row.status == "confirmed"
        assert len(gateway.sent) == 2

        deals.update_deal(db, dispatcher, row.id, {"status": "completed"})
        assert db.get(Deal, row.id).status == "completed"
        assert len(gateway.sent) == 4
        assert gateway.sent[-1].body == "Onion deal: Deal completed successfully"

    def test_update_without_status_change_is_silent(self, db, dispatcher, gateway, make_user):
        make_user("B", token="tb")
        make_user("S", token="ts")
        row = deals.create_deal(db, dispatcher, "B", "S", "Onion", 1800.0)
        deals.update_deal(db, dispatcher, row.id, {"quantity": 12})
        assert len(gateway.sent) == 2

    @pytest.mark.parametrize(
        "changes", [{"status": None}, {"status": ""}, {"agreed_price": None}, {"agreed_price": 0}, {"agreed_price": -10.0}]
    )
    def test_update_rejects_invalid_values_before_writing(self, db, dispatcher, gateway, make_user, changes):
        make_user("B", token="tb")
        make_user("S", token="ts")
        row = deals.create_deal(db, dispatcher, "B", "S", "Onion", 1800.0)
        with pytest.raises(ValidationError):
            deals.update_deal(db, dispatcher, row.id, changes)
        stored = db.get(Deal, row.id)
        assert stored.status == "confirmed"
        assert stored.agreed_price == 1800.0
        assert len(gateway.sent) == 2

    def test_created_deal_writes_one_history_record_per_party(self, db, dispatcher, make_user):
        make_user("B", token="tb")
        make_user("S", token="ts")
        row = deals.create_deal(db, dispatcher, "B", "S", "Wheat", 2450.0)
        records = db.query(UserNotification).order_by(UserNotification.user_id).all()
        assert [r.user_id for r in records] == ["B", "S"]
        for record in records:
            assert record.type == "deal_update"
            assert record.data["action"] == "confirmed"
            assert record.data["dealId"] == str(row.id)
