"""Tests for app.services.token_service: issue/verify round trip, rejection order, revocation."""

import unittest
from datetime import timedelta

import jwt

from app.core.errors import RejectionReason, TokenRejected
from app.models import RoleName
from app.services.token_service import TokenBlacklist, TokenService
from tests.support import (
    ONE_HOUR,
    TEST_SECRET,
    DatabaseTestCase,
    FakeClock,
    fixed_utc,
    make_settings,
)


class TokenServiceTestCase(DatabaseTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.clock = FakeClock(fixed_utc())
        self.blacklist = TokenBlacklist()
        self.tokens = TokenService(
            self.blacklist, secret=TEST_SECRET, lifetime=ONE_HOUR, clock=self.clock
        )
        self.user = self.create_user()
        self.token = self.tokens.issue(self.user.id, self.user.email, RoleName.READER)

    def assertRejected(self, token: str, reason: RejectionReason) -> TokenRejected:
        with self.assertRaises(TokenRejected) as ctx:
            self.tokens.verify(token, self.store)
        self.assertEqual(ctx.exception.reason, reason)
        self.assertEqual(ctx.exception.status_code, 401)
        return ctx.exception


class TestIssueVerify(TokenServiceTestCase):
    def test_round_trip_returns_identity(self) -> None:
        identity = self.tokens.verify(self.token, self.store)
        self.assertEqual(identity.user_id, self.user.id)
        self.assertEqual(identity.email, self.user.email)
        self.assertEqual(identity.role, RoleName.READER)
        self.assertEqual(identity.issued_at, fixed_utc())
        self.assertEqual(identity.expires_at, fixed_utc() + ONE_HOUR)

    def test_claims_carry_identity_fields(self) -> None:
        claims = jwt.decode(self.token, options={"verify_signature": False})
        self.assertEqual(
            set(claims),
            {"id", "email", "role", "iat", "exp", "jti"},
        )
        self.assertEqual(claims["role"], "reader")

    def test_valid_one_second_before_expiry(self) -> None:
        self.clock.advance(ONE_HOUR - timedelta(seconds=1))
        self.assertEqual(self.tokens.verify(self.token, self.store).user_id, self.user.id)

    def test_expired_exactly_at_expiry(self) -> None:
        self.clock.advance(ONE_HOUR)
        self.assertRejected(self.token, RejectionReason.EXPIRED)

    def test_from_settings_uses_configured_lifetime(self) -> None:
        service = TokenService.from_settings(make_settings(JWT_EXPIRE_MINUTES=5), clock=self.clock)
        identity = service.verify(service.issue(self.user.id, self.user.email, "reader"), self.store)
        self.assertEqual(identity.expires_at - identity.issued_at, timedelta(minutes=5))


class TestRejections(TokenServiceTestCase):
    def test_malformed(self) -> None:
        error = self.assertRejected("not-a-token", RejectionReason.INVALID)
        self.assertEqual(error.message, "Malformed token.")

    def test_empty(self) -> None:
        self.assertRejected("", RejectionReason.INVALID)

    def test_forged_signature(self) -> None:
        claims = jwt.decode(self.token, options={"verify_signature": False})
        forged = jwt.encode(claims, "attacker-secret", algorithm="HS256")
        self.assertRejected(forged, RejectionReason.INVALID)

    def test_unknown_role_claim(self) -> None:
        claims = jwt.decode(self.token, options={"verify_signature": False})
        claims["role"] = "superuser"
        self.assertRejected(jwt.encode(claims, TEST_SECRET, algorithm="HS256"), RejectionReason.INVALID)

    def test_missing_claims(self) -> None:
        token = jwt.encode({"id": self.user.id}, TEST_SECRET, algorithm="HS256")
        self.assertRejected(token, RejectionReason.INVALID)

    def test_user_removed(self) -> None:
        self.session.delete(self.user)
        self.session.commit()
        error = self.assertRejected(self.token, RejectionReason.INVALID)
        self.assertIn("User not found", error.message)

    def test_revoked_checked_before_expiry(self) -> None:
        self.tokens.revoke(self.token)
        self.clock.advance(ONE_HOUR * 2)
        self.assertRejected(self.token, RejectionReason.REVOKED)

    def test_revoked_checked_before_signature(self) -> None:
        claims = jwt.decode(self.token, options={"verify_signature": False})
        forged = jwt.encode(claims, "attacker-secret", algorithm="HS256")
        self.tokens.revoke(forged)
        self.assertRejected(forged, RejectionReason.REVOKED)

    def test_malformed_checked_before_revoked(self) -> None:
        self.tokens.revoke("garbage")
        self.assertRejected("garbage", RejectionReason.INVALID)


class TestRevoke(TokenServiceTestCase):
    def test_revoke_is_idempotent(self) -> None:
        self.tokens.revoke(self.token)
        self.assertRejected(self.token, RejectionReason.REVOKED)
        self.tokens.revoke(self.token)
        self.assertRejected(self.token, RejectionReason.REVOKED)
        self.assertEqual(len(self.blacklist), 1)

    def test_revoking_unknown_token_succeeds(self) -> None:
        self.tokens.revoke("never-issued")
        self.assertIn("never-issued", self.blacklist)

    def test_tokens_issued_in_same_second_differ(self) -> None:
        other = self.tokens.issue(self.user.id, self.user.email, RoleName.READER)
        self.assertNotEqual(other, self.token)

    def test_revoking_one_token_leaves_others_valid(self) -> None:
        other = self.tokens.issue(self.user.id, self.user.email, RoleName.READER)
        fresh = self.tokens.issue(self.user.id, self.user.email, RoleName.READER)
        self.tokens.revoke(other)
        self.assertEqual(self.tokens.verify(fresh, self.store).user_id, self.user.id)

    def test_expired_entries_are_evicted_on_later_revoke(self) -> None:
        self.tokens.revoke(self.token)
        self.clock.advance(ONE_HOUR + timedelta(seconds=1))
        later = self.tokens.issue(self.user.id, self.user.email, RoleName.READER)
        self.tokens.revoke(later)
        self.assertNotIn(self.token, self.blacklist)
        self.assertIn(later, self.blacklist)


class TestTokenBlacklist(unittest.TestCase):
    def test_purge_keeps_entries_without_expiry(self) -> None:
        blacklist = TokenBlacklist()
        blacklist.add("a", fixed_utc(1))
        blacklist.add("b", None)
        blacklist.add("c", fixed_utc(23))
        self.assertEqual(blacklist.purge_expired(fixed_utc(12)), 1)
        self.assertNotIn("a", blacklist)
        self.assertIn("b", blacklist)
        self.assertIn("c", blacklist)

    def test_concurrent_adds_are_not_lost(self) -> None:
        import threading

        blacklist = TokenBlacklist()

        def add_many(prefix: str) -> None:
            for i in range(500):
                blacklist.add(f"{prefix}-{i}")

        threads = [threading.Thread(target=add_many, args=(str(n),)) for n in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        self.assertEqual(len(blacklist), 4000)


if __name__ == "__main__":
    unittest.main()
