#!/usr/bin/env python3
"""
Unit tests for the push HTTP API.

The push service is overridden with one wired over in-memory Redis and a
recording transport; rate limiting is disabled.
"""

import unittest
from types import SimpleNamespace
from unittest.mock import MagicMock

import redis
from fastapi.testclient import TestClient

from core.store import ChannelStore
from push.exceptions import PushConfigurationError
from web.backend.app import app
from web.backend.dependencies import get_app_context, get_push_service
from web.backend.routers import limiter
from tests.mocks.push_mocks import InMemoryRedis, RecordingTransport, build_push_service, subscription_json


def notify_body(**overrides):
    body = {
        "channelId": "c1",
        "authToken": "tok",
        "senderDeviceId": "deviceA",
        "locale": "en",
        "eventId": "evt-9",
        "playedAt": "2024-05-01T12:00:00.000Z",
        "playerAName": "Alice",
        "playerBName": "Bob",
        "winnerName": "Alice",
    }
    body.update(overrides)
    return body


def subscribe_body(device_id, endpoint, locale="en", auth_token="tok"):
    return {
        "channelId": "c1",
        "authToken": auth_token,
        "deviceId": device_id,
        "locale": locale,
        "subscription": subscription_json(endpoint),
    }


class PushApiTestCase(unittest.TestCase):

    def setUp(self):
        limiter.enabled = False
        self.redis = InMemoryRedis()
        self.transport = RecordingTransport()
        self.service = build_push_service(redis=self.redis, transport=self.transport)
        app.dependency_overrides[get_push_service] = lambda: self.service
        self.client = TestClient(app, raise_server_exceptions=False)

    def tearDown(self):
        app.dependency_overrides.clear()
        limiter.enabled = True


class TestSubscribeEndpoint(PushApiTestCase):

    def test_subscribe_returns_count(self):
        response = self.client.post("/push/subscribe", json=subscribe_body("deviceA", "https://push/a"))

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"ok": True, "subscriptionCount": 1})

    def test_subscription_stored_with_camel_case_keys(self):
        self.client.post("/push/subscribe", json=subscribe_body("deviceA", "https://push/a"))

        records = self.service.registry.list_subscriptions("c1")
        self.assertEqual(records[0].subscription["keys"], {"p256dh": "BNcR-key", "auth": "tBHI-auth"})
        self.assertNotIn("expiration_time", records[0].subscription)

    def test_wrong_token_is_unauthorized(self):
        self.client.post("/push/subscribe", json=subscribe_body("deviceA", "https://push/a"))

        response = self.client.post(
            "/push/subscribe",
            json=subscribe_body("deviceB", "https://push/b", auth_token="nope")
        )

        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json(), {"ok": False, "error": "UnauthorizedChannel"})

    def test_missing_endpoint_is_invalid(self):
        body = subscribe_body("deviceA", "https://push/a")
        body["subscription"] = {"keys": {}}

        response = self.client.post("/push/subscribe", json=body)

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json(), {"ok": False, "error": "InvalidBody"})


class TestUnsubscribeEndpoint(PushApiTestCase):

    def test_unsubscribe_removes_subscription(self):
        self.client.post("/push/subscribe", json=subscribe_body("deviceA", "https://push/a"))

        response = self.client.post("/push/unsubscribe", json={
            "channelId": "c1",
            "authToken": "tok",
            "subscription": {"endpoint": "https://push/a"},
        })

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"ok": True})
        self.assertEqual(self.service.registry.count_subscriptions("c1"), 0)

    def test_unsubscribe_unknown_channel_is_unauthorized(self):
        response = self.client.post("/push/unsubscribe", json={
            "channelId": "c9",
            "authToken": "tok",
            "subscription": {"endpoint": "https://push/a"},
        })

        self.assertEqual(response.status_code, 401)


class TestNotifyMatchEndpoint(PushApiTestCase):

    def setUp(self):
        super().setUp()
        self.client.post("/push/subscribe", json=subscribe_body("deviceA", "https://push/a"))
        self.client.post("/push/subscribe", json=subscribe_body("deviceB", "https://push/b", locale="cs"))

    def test_notify_reports_counts(self):
        response = self.client.post("/push/notify-match", json=notify_body())

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {
            "ok": True,
            "deduped": False,
            "totalSubscriptions": 2,
            "skippedSender": 1,
            "attempted": 1,
            "sent": 1,
            "failed": 0,
        })

    def test_repeat_event_is_deduped(self):
        self.client.post("/push/notify-match", json=notify_body())

        response = self.client.post("/push/notify-match", json=notify_body())

        data = response.json()
        self.assertEqual(response.status_code, 200)
        self.assertTrue(data["deduped"])
        self.assertEqual(data["attempted"], 0)
        self.assertEqual(len(self.transport.sent), 1)

    def test_winner_b_is_accepted(self):
        response = self.client.post("/push/notify-match", json=notify_body(winnerName="Bob", eventId="evt-10"))
        self.assertEqual(response.status_code, 200)

    def test_winner_mismatch_rejected_before_auth(self):
        service = MagicMock()
        app.dependency_overrides[get_push_service] = lambda: service

        response = self.client.post("/push/notify-match", json=notify_body(winnerName="Carol"))

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json(), {"ok": False, "error": "InvalidBody"})
        service.notify_match.assert_not_called()

    def test_non_numeric_rating_rejected(self):
        response = self.client.post("/push/notify-match", json=notify_body(playerARating="high"))
        self.assertEqual(response.status_code, 400)

    def test_malformed_json_rejected(self):
        response = self.client.post(
            "/push/notify-match",
            content="{not json",
            headers={"Content-Type": "application/json"}
        )

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error"], "InvalidBody")

    def test_wrong_token_is_unauthorized(self):
        response = self.client.post("/push/notify-match", json=notify_body(authToken="nope"))

        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json(), {"ok": False, "error": "UnauthorizedChannel"})

    def test_missing_vapid_is_internal_error(self):
        service = MagicMock()
        service.notify_match.side_effect = PushConfigurationError("Missing VAPID configuration.")
        app.dependency_overrides[get_push_service] = lambda: service

        response = self.client.post("/push/notify-match", json=notify_body())

        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json(), {"ok": False, "error": "InternalError"})

    def test_store_failure_is_internal_error(self):
        service = MagicMock()
        service.notify_match.side_effect = redis.ConnectionError("down")
        app.dependency_overrides[get_push_service] = lambda: service

        response = self.client.post("/push/notify-match", json=notify_body())

        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json(), {"ok": False, "error": "InternalError"})


class TestMethodAndHealth(PushApiTestCase):

    def test_get_is_method_not_allowed(self):
        for path in ("/push/subscribe", "/push/unsubscribe", "/push/notify-match"):
            response = self.client.get(path)

            self.assertEqual(response.status_code, 405)
            self.assertEqual(response.json(), {"ok": False, "error": "MethodNotAllowed"})
            self.assertEqual(response.headers["allow"], "POST")

    def test_health_reports_redis(self):
        context = SimpleNamespace(store=ChannelStore(self.redis))
        app.dependency_overrides[get_app_context] = lambda: context

        response = self.client.get("/health")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["redis"], "connected")
        self.assertEqual(response.json()["status"], "healthy")


if __name__ == '__main__':
    unittest.main()
