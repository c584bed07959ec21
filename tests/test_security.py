"""Unit tests for accounts.core.security: bcrypt hashing, signed tokens, secret comparison."""

import unittest
from datetime import UTC, datetime, timedelta

from accounts.core.security import (
    PasswordHasher,
    TokenExpired,
    TokenInvalid,
    TokenService,
    constant_time_equals,
)
from tests.util import TEST_JWT_SECRET, FakeClock


class TestPasswordHasher(unittest.TestCase):
    """Hashes are salted per call and verify only the original password."""

    def setUp(self) -> None:
        self.hasher = PasswordHasher(rounds=4)

    def test_same_password_hashes_differently(self) -> None:
        first = self.hasher.hash("x")
        second = self.hasher.hash("x")
        self.assertNotEqual(first, second)
        self.assertTrue(self.hasher.verify("x", first))
        self.assertTrue(self.hasher.verify("x", second))

    def test_hash_is_not_the_plain_password(self) -> None:
        hashed = self.hasher.hash("hunter2")
        self.assertNotIn("hunter2", hashed)
        self.assertTrue(hashed.startswith("$2"))

    def test_wrong_password_fails(self) -> None:
        hashed = self.hasher.hash("correct horse")
        self.assertFalse(self.hasher.verify("correct horsE", hashed))
        self.assertFalse(self.hasher.verify("", hashed))

    def test_work_factor_is_encoded_in_hash(self) -> None:
        hashed = PasswordHasher(rounds=5).hash("pw")
        self.assertEqual(hashed.split("$")[2], "05")

    def test_malformed_stored_hash_is_a_mismatch_and_logged(self) -> None:
        with self.assertLogs("accounts.core.security", level="WARNING"):
            self.assertFalse(self.hasher.verify("pw", "not-a-bcrypt-hash"))

    def test_long_password_is_accepted(self) -> None:
        long_password = "p" * 100
        hashed = self.hasher.hash(long_password)
        self.assertTrue(self.hasher.verify(long_password, hashed))


class TestTokenService(unittest.TestCase):
    """Round trip, expiry against the injected clock, and rejection of foreign tokens."""

    def setUp(self) -> None:
        self.clock = FakeClock(datetime(2026, 1, 1, 12, 0, tzinfo=UTC))
        self.tokens = TokenService(
            secret=TEST_JWT_SECRET,
            ttl=timedelta(hours=1),
            clock=self.clock,
        )

    def test_round_trip(self) -> None:
        token = self.tokens.issue(42, "ana")
        identity = self.tokens.verify(token)
        self.assertEqual(identity.account_id, 42)
        self.assertEqual(identity.username, "ana")
        self.assertEqual(identity.issued_at, self.clock.now)
        self.assertEqual(identity.expires_at, self.clock.now + timedelta(hours=1))

    def test_tokens_issued_together_are_distinct(self) -> None:
        first = self.tokens.issue(1, "ana")
        second = self.tokens.issue(1, "ana")
        self.assertNotEqual(first, second)
        self.assertEqual(self.tokens.verify(first).username, "ana")
        self.assertEqual(self.tokens.verify(second).username, "ana")

    def test_valid_until_just_before_expiry(self) -> None:
        token = self.tokens.issue(1, "ana")
        self.clock.now += timedelta(minutes=59, seconds=59)
        self.assertEqual(self.tokens.verify(token).account_id, 1)

    def test_expired_at_issued_at_plus_ttl(self) -> None:
        token = self.tokens.issue(1, "ana")
        self.clock.now += timedelta(hours=1)
        with self.assertRaises(TokenExpired):
            self.tokens.verify(token)

    def test_wrong_secret_is_invalid(self) -> None:
        other = TokenService(secret="another-secret-" + "z" * 32, clock=self.clock)
        with self.assertRaises(TokenInvalid):
            self.tokens.verify(other.issue(1, "ana"))

    def test_wrong_secret_is_invalid_even_when_expired(self) -> None:
        other = TokenService(secret="another-secret-" + "z" * 32, clock=self.clock)
        token = other.issue(1, "ana")
        self.clock.now += timedelta(days=1)
        with self.assertRaises(TokenInvalid):
            self.tokens.verify(token)

    def test_mutated_payload_is_invalid(self) -> None:
        token = self.tokens.issue(1, "ana")
        header, payload, signature = token.split(".")
        i = len(payload) // 2
        replacement = "A" if payload[i] != "A" else "B"
        tampered = ".".join([header, payload[:i] + replacement + payload[i + 1:], signature])
        with self.assertRaises(TokenInvalid):
            self.tokens.verify(tampered)

    def test_garbage_is_invalid(self) -> None:
        for token in ("", "abc", "a.b.c"):
            with self.subTest(token=token):
                with self.assertRaises(TokenInvalid):
                    self.tokens.verify(token)

    def test_empty_secret_rejected(self) -> None:
        with self.assertRaises(ValueError):
            TokenService(secret="")


class TestConstantTimeEquals(unittest.TestCase):
    def test_equal_and_unequal(self) -> None:
        self.assertTrue(constant_time_equals("Panelkey1", "Panelkey1"))
        self.assertFalse(constant_time_equals("Panelkey2", "Panelkey1"))
        self.assertFalse(constant_time_equals("", "Panelkey1"))

    def test_non_ascii_does_not_raise(self) -> None:
        self.assertFalse(constant_time_equals("clé", "cle"))
        self.assertTrue(constant_time_equals("clé", "clé"))


if __name__ == "__main__":
    unittest.main()
