"""Test environment: in-memory SQLite and a cheap bcrypt cost, set before app settings load."""

import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["APP_ENV"] = "dev"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ.setdefault("JWT_SECRET", "test-secret-key-for-unit-tests-only")
