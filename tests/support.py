"""Shared fixtures: a fresh schema per test and helpers to create users."""

import unittest

from fastapi.testclient import TestClient

from app.core.database import SessionLocal, engine
from app.core.roles import Role
from app.main import app
from app.models import Base, User
from app.services.auth import create_user_with_role


class DatabaseTestCase(unittest.TestCase):
    """Creates all tables before each test and drops them afterwards."""

    def setUp(self) -> None:
        Base.metadata.create_all(engine)
        self.db = SessionLocal()

    def tearDown(self) -> None:
        self.db.close()
        Base.metadata.drop_all(engine)

    def make_user(
        self,
        name: str = "Alice",
        email: str = "alice@x.com",
        password: str = "secret1",
        role: Role = "user",
    ) -> User:
        return create_user_with_role(self.db, name, email, password, role)

    def user_count(self) -> int:
        self.db.expire_all()
        return self.db.query(User).count()


def new_client(base_url: str = "http://testserver") -> TestClient:
    """A separate cookie jar, i.e. a separate browser/device."""
    return TestClient(app, base_url=base_url)


def set_cookie_headers(response) -> list[str]:
    return response.headers.get_list("set-cookie")


def cookie_header(response, name: str) -> str | None:
    return next((h for h in set_cookie_headers(response) if h.startswith(f"{name}=")), None)
