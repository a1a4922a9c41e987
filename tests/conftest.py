"""
Test environment. Runs before any app import so the cached Settings use an
in-memory SQLite URL and a fixed signing secret instead of the Postgres defaults.
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("JWT_SECRET", "test-secret-key")
os.environ.setdefault("BCRYPT_ROUNDS", "10")
os.environ.setdefault("APP_ENV", "dev")
