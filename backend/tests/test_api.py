"""Route tests through TestClient with the database, dispatcher and translation backend overridden."""
from mandi_notify.models import User, UserNotification

from conftest import FakeTranslationBackend


class TestHealth:
    def test_health(self, client):
        assert client.get("/health").json() == {"status": "ok"}


class TestSendRoutes:
    def test_send_one(self, client, make_user, gateway):
        make_user("u1", token="tok-1")
        resp = client.post("/notifications/send", json={"userId": "u1", "title": "Hi", "body": "There", "type": "system_update"})
        assert resp.status_code == 200
        assert resp.json() == {"success": True, "messageId": "msg-1"}
        assert gateway.tokens() == ["tok-1"]

    def test_send_one_blocked(self, client, make_user):
        make_user("u1", token="tok-1", preferences={"system_updates": False})
        resp = client.post("/notifications/send", json={"userId": "u1", "title": "Hi", "body": "There", "type": "system_update"})
        assert resp.json() == {"success": False, "reason": "Blocked by user preferences"}

    def test_send_one_unknown_user(self, client):
        resp = client.post("/notifications/send", json={"userId": "ghost", "title": "Hi", "body": "There"})
        assert resp.status_code == 404

    def test_send_one_gateway_failure(self, client, make_user, gateway):
        make_user("u1", token="tok-1")
        gateway.fail("tok-1", "UNAVAILABLE", 503)
        resp = client.post("/notifications/send", json={"userId": "u1", "title": "Hi", "body": "There"})
        assert resp.status_code == 502

    def test_send_bulk_over_limit(self, client, db):
        resp = client.post(
            "/notifications/send-bulk",
            json={"userIds": [f"u{i}" for i in range(1001)], "title": "Hi", "body": "There"},
        )
        assert resp.status_code == 400
        assert "maximum 1000" in resp.json()["detail"]
        assert db.query(UserNotification).count() == 0

    def test_send_bulk(self, client, make_user):
        make_user("u1", token="tok-1")
        make_user("u2", token="tok-2")
        resp = client.post("/notifications/send-bulk", json={"userIds": ["u1", "u2"], "title": "Hi", "body": "There"})
        data = resp.json()
        assert data["success"] is True
        assert data["successCount"] == 2
        assert len(data["responses"]) == 2


class TestHistoryRoutes:
    def test_requires_user_id(self, client):
        assert client.get("/notifications").status_code == 400

    def test_list_read_and_delete(self, client, make_user):
        make_user("u1", token="tok-1")
        client.post("/notifications/send", json={"userId": "u1", "title": "One", "body": "First"})
        client.post("/notifications/send", json={"userId": "u1", "title": "Two", "body": "Second"})
        headers = {"X-User-Id": "u1"}

        listing = client.get("/notifications", headers=headers).json()
        assert [n["title"] for n in listing["notifications"]] == ["Two", "One"]
        assert listing["unreadCount"] == 2

        newest = listing["notifications"][0]["id"]
        assert client.patch(f"/notifications/{newest}/read", headers=headers).status_code == 200
        assert client.get("/notifications?user_id=u1&unread_only=true").json()["unreadCount"] == 1

        assert client.post("/notifications/mark-all-read", headers=headers).json()["markedCount"] == 1
        assert client.get("/notifications/stats", headers=headers).json()["unread"] == 0

        assert client.delete(f"/notifications/{newest}", headers=headers).status_code == 200
        assert client.delete(f"/notifications/{newest}", headers=headers).status_code == 404
        assert client.delete("/notifications", headers=headers).json()["deletedCount"] == 1

    def test_mark_read_unknown(self, client):
        assert client.patch("/notifications/999/read", headers={"X-User-Id": "u1"}).status_code == 404

    def test_export(self, client, make_user):
        make_user("u1", token="tok-1")
        client.post("/notifications/send", json={"userId": "u1", "title": "One", "body": "First"})
        data = client.get("/notifications/export", headers={"X-User-Id": "u1"}).json()
        assert data["userId"] == "u1"
        assert len(data["notifications"]) == 1


class TestPushAndPreferenceRoutes:
    def test_register_token(self, client, db):
        resp = client.post("/push/register", json={"userId": "u1", "deviceToken": "tok-1", "platform": "web"})
        assert resp.json() == {"ok": True, "message": "Token registered"}
        resp = client.post("/push/register", json={"userId": "u1", "deviceToken": "tok-1", "platform": "web"})
        assert resp.json()["message"] == "Token already registered"
        assert db.get(User, "u1").fcm_token == "tok-1"

    def test_register_rejects_unknown_platform(self, client):
        resp = client.post("/push/register", json={"userId": "u1", "deviceToken": "tok-1", "platform": "pager"})
        assert resp.status_code == 422

    def test_preferences_round_trip(self, client, make_user):
        make_user("u1", token="tok-1")
        assert client.get("/users/u1/notification-preferences").json()["preferences"] is None

        resp = client.put("/users/u1/notification-preferences", json={"priceAlerts": False})
        prefs = resp.json()["preferences"]
        assert prefs["priceAlerts"] is False
        assert prefs["dealUpdates"] is True

        resp = client.post("/users/u1/notification-preferences/opt-out", json={"type": "marketing"})
        assert resp.json()["preferences"]["marketingMessages"] is False
        assert client.get("/users/u1/notification-preferences/opted-out/marketing").json()["optedOut"] is True

    def test_camel_case_opt_out_blocks_price_alerts(self, client, make_user, db, gateway):
        make_user("u1", token="tok-1")
        resp = client.put("/users/u1/notification-preferences", json={"priceAlerts": False})
        assert resp.json()["preferences"]["priceAlerts"] is False
        assert db.get(User, "u1").notification_preferences["price_alerts"] is False

        resp = client.post(
            "/notifications/send", json={"userId": "u1", "title": "Price Alert: Wheat", "body": "2600", "type": "price_alert"}
        )
        assert resp.json() == {"success": False, "reason": "Blocked by user preferences"}
        assert gateway.sent == []
        assert db.query(UserNotification).count() == 0

    def test_snake_case_body_still_accepted(self, client, make_user):
        make_user("u1", token="tok-1")
        resp = client.put("/users/u1/notification-preferences", json={"deal_updates": False})
        assert resp.json()["preferences"]["dealUpdates"] is False

    def test_opt_out_unknown_type(self, client, make_user):
        make_user("u1")
        resp = client.post("/users/u1/notification-preferences/opt-out", json={"type": "weather"})
        assert resp.status_code == 400

    def test_opt_out_all_and_privacy_delete(self, client, make_user, db):
        make_user("u1", token="tok-1")
        client.post("/notifications/send", json={"userId": "u1", "title": "One", "body": "First"})
        client.post("/users/u1/notification-preferences/opt-out-all")
        assert db.get(User, "u1").fcm_token is None

        resp = client.delete("/users/u1/notification-data")
        assert resp.json() == {"ok": True, "userId": "u1", "deletedCount": 1}
        assert client.get("/users/u1/notification-preferences").json()["preferences"] is None

    def test_preferences_unknown_user(self, client):
        assert client.get("/users/ghost/notification-preferences").status_code == 404


class TestDealAndAlertRoutes:
    def test_deal_lifecycle(self, client, make_user, gateway):
        make_user("B", token="tb")
        make_user("S", token="ts")
        resp = client.post("/deals", json={"buyerId": "B", "sellerId": "S", "commodity": "Wheat", "agreedPrice": 2450})
        assert resp.status_code == 200
        deal = resp.json()
        assert deal["status"] == "confirmed"
        assert len(gateway.sent) == 2

        resp = client.patch(f"/deals/{deal['id']}", json={"status": "paid"})
        assert resp.json()["status"] == "paid"
        assert len(gateway.sent) == 4
        assert gateway.sent[-1].body == "Wheat deal: Payment confirmed"

    def test_creation_records_one_confirmed_entry_per_party(self, client, make_user, db):
        make_user("B", token="tb")
        make_user("S", token="ts")
        deal = client.post("/deals", json={"buyerId": "B", "sellerId": "S", "commodity": "Wheat", "agreedPrice": 2450}).json()
        rows = db.query(UserNotification).order_by(UserNotification.user_id).all()
        assert [r.user_id for r in rows] == ["B", "S"]
        assert all(r.type == "deal_update" for r in rows)
        assert all(r.data == {"dealId": str(deal["id"]), "action": "confirmed"} for r in rows)

    def test_patch_rejects_null_and_non_positive_fields(self, client, make_user, db, gateway):
        make_user("B", token="tb")
        make_user("S", token="ts")
        deal = client.post("/deals", json={"buyerId": "B", "sellerId": "S", "commodity": "Wheat", "agreedPrice": 2450}).json()
        for body in ({"status": None}, {"status": "  "}, {"agreedPrice": None}, {"agreedPrice": 0}, {"agreedPrice": -5}):
            assert client.patch(f"/deals/{deal['id']}", json=body).status_code == 400
        row = client.patch(f"/deals/{deal['id']}", json={"quantity": 3}).json()
        assert row["status"] == "confirmed"
        assert row["agreedPrice"] == 2450
        assert len(gateway.sent) == 2

    def test_unknown_deal(self, client):
        assert client.patch("/deals/999", json={"status": "paid"}).status_code == 404

    def test_alerts_and_check(self, client, make_user, gateway):
        make_user("U", token="tu")
        headers = {"X-User-Id": "U"}
        resp = client.post("/alerts", json={"commodity": "Wheat", "condition": "above", "threshold": 2500}, headers=headers)
        alert = resp.json()
        assert alert["active"] is True

        assert client.post("/prices", json={"commodity": "Wheat", "price": 2600}).status_code == 200
        resp = client.post("/alerts/check")
        assert resp.json()["success"] is True
        assert resp.json()["triggeredCount"] == 1
        assert gateway.sent[0].title == "Price Alert: Wheat"

        client.post(f"/alerts/{alert['id']}/deactivate", headers=headers)
        assert client.get("/alerts?active_only=true", headers=headers).json()["alerts"] == []

    def test_alert_invalid_condition(self, client):
        resp = client.post(
            "/alerts", json={"commodity": "Wheat", "condition": "sideways", "threshold": 1}, headers={"X-User-Id": "U"}
        )
        assert resp.status_code == 422


class TestTranslateRoute:
    def test_translate(self, client):
        resp = client.post("/translate", json={"text": "Hello world", "fromLang": "en", "toLang": "hi"})
        assert resp.status_code == 200
        data = resp.json()
        assert data["translatedText"] == "नमस्ते दुनिया"
        assert 0.3 <= data["confidence"] <= 0.95

    def test_quota_error_maps_to_503(self, client):
        from mandi_notify.api.deps import get_translation_backend
        from mandi_notify.main import app

        app.dependency_overrides[get_translation_backend] = lambda: FakeTranslationBackend(
            error=RuntimeError("429 insufficient_quota")
        )
        resp = client.post("/translate", json={"text": "Hello world", "fromLang": "en", "toLang": "hi"})
        assert resp.status_code == 503
        assert "quota" in resp.json()["detail"]

    def test_validation_error(self, client):
        resp = client.post("/translate", json={"text": "   ", "fromLang": "en", "toLang": "hi"})
        assert resp.status_code == 400
