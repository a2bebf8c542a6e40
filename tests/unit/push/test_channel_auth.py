import hashlib
import unittest

from core.store import ChannelStore
from push.auth import ChannelAuthService, hash_auth_token, safe_equal
from tests.mocks.push_mocks import InMemoryRedis


class TestTokenHashing(unittest.TestCase):

    def test_hash_is_sha256_hex(self):
        self.assertEqual(hash_auth_token("tok"), hashlib.sha256(b"tok").hexdigest())
        self.assertEqual(len(hash_auth_token("tok")), 64)

    def test_safe_equal(self):
        self.assertTrue(safe_equal("abc", "abc"))
        self.assertFalse(safe_equal("abc", "abd"))
        self.assertFalse(safe_equal("abc", "abcd"))


class TestChannelAuthService(unittest.TestCase):

    def setUp(self):
        self.redis = InMemoryRedis()
        self.store = ChannelStore(self.redis)
        self.auth = ChannelAuthService(self.store)

    def test_unknown_channel_rejected_without_bootstrap(self):
        self.assertFalse(self.auth.verify_channel_auth("c1", "tok"))
        self.assertIsNone(self.store.get_channel_token_hash("c1"))

    def test_bootstrap_stores_hash_not_token(self):
        self.assertTrue(self.auth.verify_channel_auth("c1", "tok", allow_bootstrap=True))

        stored = self.store.get_channel_token_hash("c1")
        self.assertEqual(stored, hash_auth_token("tok"))
        self.assertNotIn("tok", self.redis.strings.values())

    def test_matching_token_accepted_after_bootstrap(self):
        self.auth.verify_channel_auth("c1", "tok", allow_bootstrap=True)
        self.assertTrue(self.auth.verify_channel_auth("c1", "tok"))

    def test_bootstrap_never_overwrites_existing_credential(self):
        self.auth.verify_channel_auth("c1", "tok", allow_bootstrap=True)

        self.assertFalse(self.auth.verify_channel_auth("c1", "other", allow_bootstrap=True))
        self.assertEqual(self.store.get_channel_token_hash("c1"), hash_auth_token("tok"))

    def test_channels_are_independent(self):
        self.auth.verify_channel_auth("c1", "tok", allow_bootstrap=True)
        self.assertFalse(self.auth.verify_channel_auth("c2", "tok"))


if __name__ == '__main__':
    unittest.main()
