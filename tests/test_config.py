"""Unit tests for app.core.config validation and app.core.database engine options."""

import unittest

from pydantic import ValidationError

from app.core.database import engine_options
from tests.support import make_settings


class TestSettingsValidation(unittest.TestCase):
    def test_defaults(self) -> None:
        settings = make_settings()
        self.assertEqual(settings.JWT_EXPIRE_MINUTES, 60)
        self.assertEqual(settings.CACHE_TTL_SECONDS, 300.0)
        self.assertEqual(settings.API_PREFIX, "/api")
        self.assertFalse(settings.is_production)

    def test_rejects_non_sql_database_url(self) -> None:
        with self.assertRaises(ValidationError):
            make_settings(DATABASE_URL="mysql://localhost/db")

    def test_rejects_low_bcrypt_rounds(self) -> None:
        with self.assertRaises(ValidationError):
            make_settings(BCRYPT_ROUNDS=8)

    def test_rejects_asymmetric_algorithm(self) -> None:
        with self.assertRaises(ValidationError):
            make_settings(JWT_ALGORITHM="RS256")

    def test_algorithm_is_normalized(self) -> None:
        self.assertEqual(make_settings(JWT_ALGORITHM=" hs512 ").JWT_ALGORITHM, "HS512")

    def test_prod_requires_real_secret(self) -> None:
        with self.assertRaises(ValidationError):
            make_settings(APP_ENV="prod", JWT_SECRET="change-me-in-production")
        self.assertTrue(make_settings(APP_ENV="prod", JWT_SECRET="s3cr3t-value").is_production)

    def test_rejects_zero_pool_size(self) -> None:
        with self.assertRaises(ValidationError):
            make_settings(DB_POOL_SIZE=0)


class TestEngineOptions(unittest.TestCase):
    def test_postgres_pool_is_bounded_with_timeouts(self) -> None:
        settings = make_settings(
            DATABASE_URL="postgresql://u:p@db:5432/warden",
            DB_POOL_SIZE=3,
            DB_MAX_OVERFLOW=2,
            DB_POOL_TIMEOUT_SEC=5,
            DB_STATEMENT_TIMEOUT_MS=2000,
        )
        options = engine_options(settings)
        self.assertEqual(options["pool_size"], 3)
        self.assertEqual(options["max_overflow"], 2)
        self.assertEqual(options["pool_timeout"], 5)
        self.assertEqual(options["connect_args"]["options"], "-c statement_timeout=2000")
        self.assertEqual(options["connect_args"]["connect_timeout"], 10)

    def test_in_memory_sqlite_has_no_pool_limits(self) -> None:
        options = engine_options(make_settings(DATABASE_URL="sqlite://"))
        self.assertNotIn("pool_size", options)
        self.assertFalse(options["connect_args"]["check_same_thread"])

    def test_file_sqlite_gets_pool_limits(self) -> None:
        options = engine_options(make_settings(DATABASE_URL="sqlite:///./warden.db"))
        self.assertEqual(options["pool_size"], 5)


if __name__ == "__main__":
    unittest.main()
