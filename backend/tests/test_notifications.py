"""
Push notification tests: subscriptions, owner fan-out and delivery failures.
"""

import json

import pytest
from pywebpush import WebPushException

from conftest import MORNING_NOW
from homebake.models import PushSubscription
from homebake.services import activity_service, push_service, sales_service


SUBSCRIPTION = {
    "endpoint": "https://push.example.test/send/abc123",
    "keys": {"p256dh": "BNcRdreALRFXTkOOUHK1EtK2wtaz5Ry4YfYCA_0QTpQtUbVlUls0VJXg7A8u-Ts1XbjhazAkj7I99e8QcYP7DkM", "auth": "tBHItJI5svbpez7KI4CCXg"},
}


class FakeResponse:
    def __init__(self, status_code):
        self.status_code = status_code
        self.text = ""


@pytest.fixture
def push_enabled(app, monkeypatch):
    monkeypatch.setitem(app.config, "VAPID_PUBLIC_KEY", "test-public-key")
    monkeypatch.setitem(app.config, "VAPID_PRIVATE_KEY", "test-private-key")


@pytest.fixture
def deliveries(monkeypatch):
    sent = []

    def fake_deliver(subscription_info, data):
        sent.append((subscription_info, json.loads(data)))

    monkeypatch.setattr(push_service, "_deliver", fake_deliver)
    return sent


class TestSubscriptions:

    def test_subscribe_and_preferences(self, client, owner_headers):
        response = client.get('/api/notifications/preferences', headers=owner_headers)
        assert response.json["data"]["enabled"] is False

        response = client.post('/api/notifications/subscribe', headers=owner_headers, json={'subscription': SUBSCRIPTION})
        assert response.status_code == 200
        assert response.json["data"]["enabled"] is True
        assert response.json["data"]["has_subscription"] is True

        response = client.put('/api/notifications/preferences', headers=owner_headers, json={'enabled': False})
        assert response.json["data"]["enabled"] is False
        assert response.json["data"]["has_subscription"] is True

    def test_subscription_requires_keys(self, client, owner_headers):
        response = client.post('/api/notifications/subscribe', headers=owner_headers, json={
            'subscription': {'endpoint': SUBSCRIPTION["endpoint"]},
        })
        assert response.status_code == 400

    def test_preferences_require_boolean(self, client, owner_headers):
        response = client.put('/api/notifications/preferences', headers=owner_headers, json={'enabled': 'yes'})
        assert response.status_code == 400

    def test_unsubscribe_clears_endpoint(self, client, owner_headers, owner, db_session):
        client.post('/api/notifications/subscribe', headers=owner_headers, json={'subscription': SUBSCRIPTION})
        client.post('/api/notifications/unsubscribe', headers=owner_headers)

        sub = db_session.query(PushSubscription).filter_by(user_id=owner.id).one()
        assert sub.enabled is False
        assert sub.endpoint is None


class TestFanOut:

    def test_staff_activity_notifies_owners(self, db_session, owner, sales_rep, bread_type, push_enabled, deliveries):
        push_service.subscribe(owner, SUBSCRIPTION)

        sales_service.record_sale(user=sales_rep, bread_type_id=bread_type.id, quantity=2, now=MORNING_NOW)

        assert len(deliveries) == 1
        info, payload = deliveries[0]
        assert info["endpoint"] == SUBSCRIPTION["endpoint"]
        assert payload["title"] == "HomeBake New Sale"
        assert payload["body"] == "Recorded sale: 2x Agege Loaf"
        assert payload["data"]["user_name"] == "Sam Sales"
        assert payload["data"]["url"] == "/dashboard/owner"

    def test_owner_activity_is_not_pushed(self, db_session, owner, bread_type, push_enabled, deliveries):
        push_service.subscribe(owner, SUBSCRIPTION)

        sales_service.record_sale(user=owner, bread_type_id=bread_type.id, quantity=1, now=MORNING_NOW)

        assert deliveries == []

    def test_only_owners_receive(self, db_session, manager, sales_rep, push_enabled, deliveries):
        push_service.subscribe(manager, SUBSCRIPTION)

        activity_service.log_activity(sales_rep, "end_shift", "Sam Sales ended morning shift")

        assert deliveries == []

    def test_disabled_preference_is_skipped(self, db_session, owner, sales_rep, push_enabled, deliveries):
        push_service.subscribe(owner, SUBSCRIPTION)
        push_service.set_enabled(owner, False)

        activity_service.log_activity(sales_rep, "login", "Sam Sales logged in")

        assert deliveries == []

    def test_no_delivery_without_vapid_keys(self, db_session, owner, sales_rep, deliveries):
        push_service.subscribe(owner, SUBSCRIPTION)

        result = push_service.notify_owners(owner.bakery_id, push_service.build_payload("login", "Sam", "hi"))

        assert result["skipped"] is True
        assert deliveries == []


class TestDeliveryFailures:

    def test_gone_endpoint_disables_subscription(self, db_session, owner, push_enabled, monkeypatch):
        push_service.subscribe(owner, SUBSCRIPTION)

        def gone(subscription_info, data):
            raise WebPushException("Push failed: 410 Gone", response=FakeResponse(410))

        monkeypatch.setattr(push_service, "_deliver", gone)

        result = push_service.notify_owners(owner.bakery_id, push_service.build_payload("sale", "Sam", "sold"))

        assert result == {"sent": 0, "failed": 1, "total": 1, "skipped": False}
        sub = db_session.query(PushSubscription).filter_by(user_id=owner.id).one()
        assert sub.enabled is False
        assert sub.endpoint is None

    def test_transient_failure_is_retried(self, db_session, owner, push_enabled, monkeypatch):
        push_service.subscribe(owner, SUBSCRIPTION)
        attempts = []

        def flaky(subscription_info, data):
            attempts.append(1)
            if len(attempts) == 1:
                raise ConnectionError("503 Service Unavailable")

        monkeypatch.setattr(push_service, "_deliver", flaky)

        result = push_service.notify_owners(owner.bakery_id, push_service.build_payload("sale", "Sam", "sold"))

        assert len(attempts) == 2
        assert result["sent"] == 1

    def test_push_retries_back_off_exponentially(self, db_session, owner, push_enabled, deliveries, monkeypatch):
        push_service.subscribe(owner, SUBSCRIPTION)
        calls = []
        real_with_retry = push_service.with_retry

        def recording_with_retry(operation, **kwargs):
            calls.append(kwargs)
            return real_with_retry(operation, **kwargs)

        monkeypatch.setattr(push_service, "with_retry", recording_with_retry)

        push_service.notify_owners(owner.bakery_id, push_service.build_payload("sale", "Sam", "sold"))

        assert calls[0]["backoff"] == "exponential"
        assert len(deliveries) == 1

    def test_delivery_failure_does_not_fail_the_action(self, db_session, owner, sales_rep, bread_type, push_enabled, monkeypatch):
        push_service.subscribe(owner, SUBSCRIPTION)

        def broken(subscription_info, data):
            raise RuntimeError("push service exploded")

        monkeypatch.setattr(push_service, "_deliver", broken)

        sale = sales_service.record_sale(user=sales_rep, bread_type_id=bread_type.id, quantity=1, now=MORNING_NOW)
        assert sale.id is not None


class TestOwnerEndpoints:

    def test_health(self, client, owner_headers, owner, push_enabled):
        push_service.subscribe(owner, SUBSCRIPTION)

        data = client.get('/api/notifications/health', headers=owner_headers).json["data"]
        assert data == {"configured": True, "public_key": "test-public-key", "subscribers": 1}

    def test_activity_feed(self, client, owner_headers, sales_headers, bread_type):
        client.post('/api/sales', headers=sales_headers, json={'bread_type_id': bread_type.id, 'quantity': 3})

        response = client.get('/api/notifications/activities', headers=owner_headers)
        assert response.status_code == 200
        types = [a["activity_type"] for a in response.json["data"]]
        assert types[0] == "sale"
        assert "login" in types

    def test_test_notification(self, client, owner_headers, owner, push_enabled, deliveries):
        push_service.subscribe(owner, SUBSCRIPTION)

        response = client.post('/api/notifications/test', headers=owner_headers)
        assert response.json["data"]["sent"] == 1
        assert deliveries[0][1]["body"] == "Test notification from HomeBake"
