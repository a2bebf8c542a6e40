import json
import unittest
from datetime import datetime, timezone

from core.store import ChannelStore
from push.registry import SubscriptionRegistry, parse_subscription_record, utc_timestamp
from tests.mocks.push_mocks import InMemoryRedis, subscription_json


class TestUtcTimestamp(unittest.TestCase):

    def test_millisecond_precision_with_z_suffix(self):
        now = datetime(2024, 5, 1, 12, 30, 45, 123456, tzinfo=timezone.utc)
        self.assertEqual(utc_timestamp(now), "2024-05-01T12:30:45.123Z")


class TestParseSubscriptionRecord(unittest.TestCase):

    def test_parses_camel_case_json(self):
        raw = json.dumps({
            "endpoint": "https://push/1",
            "deviceId": "dev-1",
            "locale": "cs",
            "updatedAt": "2024-05-01T12:00:00.000Z",
            "subscription": subscription_json("https://push/1"),
        })
        record = parse_subscription_record(raw)
        self.assertEqual(record.device_id, "dev-1")
        self.assertEqual(record.subscription["keys"]["auth"], "tBHI-auth")

    def test_malformed_values_return_none(self):
        self.assertIsNone(parse_subscription_record("not json"))
        self.assertIsNone(parse_subscription_record('{"endpoint": "x"}'))
        self.assertIsNone(parse_subscription_record(42))


class TestSubscriptionRegistry(unittest.TestCase):

    def setUp(self):
        self.redis = InMemoryRedis()
        self.store = ChannelStore(self.redis)
        self.registry = SubscriptionRegistry(self.store)

    def _record(self, endpoint, device_id, locale="en"):
        return self.registry.build_record(
            endpoint=endpoint,
            device_id=device_id,
            locale=locale,
            subscription=subscription_json(endpoint),
        )

    def test_upsert_writes_camel_case_record(self):
        self.registry.upsert_subscription("c1", self._record("https://push/1", "dev-1"))

        raw = self.redis.hashes["push:subs:c1"]["https://push/1"]
        stored = json.loads(raw)
        self.assertEqual(stored["deviceId"], "dev-1")
        self.assertIn("updatedAt", stored)
        self.assertEqual(stored["subscription"]["endpoint"], "https://push/1")

    def test_new_endpoint_supersedes_device_previous_endpoints(self):
        self.registry.upsert_subscription("c1", self._record("https://push/old", "dev-1"))
        self.registry.upsert_subscription("c1", self._record("https://push/other", "dev-2"))
        self.registry.upsert_subscription("c1", self._record("https://push/new", "dev-1"))

        endpoints = sorted(r.endpoint for r in self.registry.list_subscriptions("c1"))
        self.assertEqual(endpoints, ["https://push/new", "https://push/other"])

    def test_same_endpoint_is_overwritten(self):
        self.registry.upsert_subscription("c1", self._record("https://push/1", "dev-1", "en"))
        self.registry.upsert_subscription("c1", self._record("https://push/1", "dev-1", "cs"))

        records = self.registry.list_subscriptions("c1")
        self.assertEqual(len(records), 1)
        self.assertEqual(records[0].locale, "cs")
        self.assertEqual(self.registry.count_subscriptions("c1"), 1)

    def test_remove_is_idempotent(self):
        self.registry.upsert_subscription("c1", self._record("https://push/1", "dev-1"))

        self.registry.remove_subscription("c1", "https://push/1")
        self.registry.remove_subscription("c1", "https://push/1")

        self.assertEqual(self.registry.count_subscriptions("c1"), 0)

    def test_list_skips_malformed_entries(self):
        self.registry.upsert_subscription("c1", self._record("https://push/1", "dev-1"))
        self.redis.hset("push:subs:c1", "https://push/broken", "{not json")

        records = self.registry.list_subscriptions("c1")

        self.assertEqual([r.endpoint for r in records], ["https://push/1"])

    def test_list_unknown_channel_is_empty(self):
        self.assertEqual(self.registry.list_subscriptions("missing"), [])


if __name__ == '__main__':
    unittest.main()
