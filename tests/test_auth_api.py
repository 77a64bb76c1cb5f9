"""HTTP tests for /auth and /protected routes: payload shapes, cookies, sessions and role gates."""

import unittest
from datetime import timedelta
from unittest.mock import patch

from app.core.config import Settings, settings
from app.core.security import create_access_token, create_refresh_token
from tests.support import DatabaseTestCase, cookie_header, new_client, set_cookie_headers

PREFIX = settings.API_V1_PREFIX
ALICE = {"name": "Alice", "email": "alice@x.com", "password": "secret1"}


class ApiTestCase(DatabaseTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.client = new_client()

    def tearDown(self) -> None:
        self.client.close()
        super().tearDown()

    def register(self, client=None, **overrides):
        body = {**ALICE, **overrides}
        return (client or self.client).post(f"{PREFIX}/auth/register", json=body)

    def login(self, client=None, email: str = "alice@x.com", password: str = "secret1"):
        return (client or self.client).post(
            f"{PREFIX}/auth/login", json={"email": email, "password": password}
        )


class TestRegisterEndpoint(ApiTestCase):
    def test_created_with_public_fields_only(self) -> None:
        response = self.register()
        self.assertEqual(response.status_code, 201)
        body = response.json()
        self.assertEqual(body["message"], "User registered successfully")
        self.assertEqual(set(body["user"]), {"id", "email", "name", "role"})
        self.assertEqual(body["user"]["email"], "alice@x.com")
        self.assertEqual(body["user"]["role"], "user")

    def test_missing_field_is_400(self) -> None:
        response = self.client.post(
            f"{PREFIX}/auth/register", json={"name": "Alice", "email": "alice@x.com"}
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["message"], "Please provide name, email, and password")

    def test_short_password_is_400(self) -> None:
        response = self.register(password="123")
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["message"], "Password must be at least 6 characters")

    def test_oversized_fields_are_400(self) -> None:
        for overrides, message in [
            ({"password": "p" * 73}, "Password must be at most 72 bytes"),
            ({"name": "n" * 256}, "Name must be at most 255 characters"),
            ({"email": "a" * 315 + "@x.com"}, "Email must be at most 320 characters"),
        ]:
            with self.subTest(field=next(iter(overrides))):
                response = self.register(**overrides)
                self.assertEqual(response.status_code, 400)
                self.assertEqual(response.json()["message"], message)
        self.assertEqual(self.user_count(), 0)

    def test_malformed_json_is_400(self) -> None:
        response = self.client.post(
            f"{PREFIX}/auth/register",
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )
        self.assertEqual(response.status_code, 400)
        self.assertIn("message", response.json())

    def test_duplicate_case_insensitive_is_409(self) -> None:
        self.assertEqual(self.register().status_code, 201)
        response = self.register(email="ALICE@X.com")
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.json()["message"], "User with this email already exists")
        self.assertEqual(self.user_count(), 1)


class TestLoginEndpoint(ApiTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.register()

    def test_sets_both_cookies_with_attributes(self) -> None:
        response = self.login()
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["message"], "Login successful")
        self.assertEqual(response.json()["user"]["email"], "alice@x.com")

        access = cookie_header(response, "accessToken")
        refresh = cookie_header(response, "refreshToken")
        self.assertIsNotNone(access)
        self.assertIsNotNone(refresh)
        for header in (access, refresh):
            lowered = header.lower()
            self.assertIn("httponly", lowered)
            self.assertIn("samesite=lax", lowered)
            self.assertIn("path=/", lowered)
            # dev: not secure, no domain
            self.assertNotIn("secure", lowered)
            self.assertNotIn("domain=", lowered)
        self.assertIn("max-age=900", access.lower())
        self.assertIn("max-age=604800", refresh.lower())

    def test_production_cookies_are_secure_and_scoped(self) -> None:
        prod = Settings(APP_ENV="prod", COOKIE_DOMAIN="example.com", DATABASE_URL="sqlite://")
        with patch("app.api.v1.auth.get_settings", return_value=prod):
            response = self.login()
        self.assertEqual(response.status_code, 200)
        for name in ("accessToken", "refreshToken"):
            header = cookie_header(response, name).lower()
            self.assertIn("secure", header)
            self.assertIn("domain=example.com", header)

    def test_bad_credentials_are_indistinguishable(self) -> None:
        wrong_password = self.login(password="wrong-one")
        unknown_email = self.login(email="nobody@x.com")
        self.assertEqual(wrong_password.status_code, 401)
        self.assertEqual(unknown_email.status_code, 401)
        self.assertEqual(wrong_password.json(), unknown_email.json())
        self.assertEqual(wrong_password.json()["message"], "Invalid email or password")
        self.assertEqual(set_cookie_headers(wrong_password), [])

    def test_missing_fields_is_400(self) -> None:
        response = self.client.post(f"{PREFIX}/auth/login", json={"email": "alice@x.com"})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["message"], "Please provide email and password")


class TestSessionLifecycle(ApiTestCase):
    """register → login → refresh → second device login → stale refresh rejected."""

    def test_full_scenario(self) -> None:
        self.assertEqual(self.register().status_code, 201)
        login = self.login()
        self.assertEqual(login.status_code, 200)
        self.assertIsNotNone(cookie_header(login, "accessToken"))
        self.assertIsNotNone(cookie_header(login, "refreshToken"))

        refreshed = self.client.post(f"{PREFIX}/auth/refresh")
        self.assertEqual(refreshed.status_code, 200)
        self.assertEqual(refreshed.json()["message"], "Token refreshed successfully")
        self.assertEqual(refreshed.json()["user"]["email"], "alice@x.com")
        self.assertIsNotNone(cookie_header(refreshed, "accessToken"))
        self.assertIsNone(cookie_header(refreshed, "refreshToken"))

        with new_client() as second_device:
            self.assertEqual(self.login(client=second_device).status_code, 200)

            stale = self.client.post(f"{PREFIX}/auth/refresh")
            self.assertEqual(stale.status_code, 401)
            self.assertEqual(stale.json()["message"], "Invalid refresh token")

            current = second_device.post(f"{PREFIX}/auth/refresh")
            self.assertEqual(current.status_code, 200)

    def test_refresh_without_cookie(self) -> None:
        response = self.client.post(f"{PREFIX}/auth/refresh")
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()["message"], "Refresh token not provided")

    def test_refresh_ignores_authorization_header(self) -> None:
        self.register()
        login = self.login()
        refresh_token = login.cookies.get("refreshToken")
        with new_client() as other:
            response = other.post(
                f"{PREFIX}/auth/refresh",
                headers={"Authorization": f"Bearer {refresh_token}"},
            )
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()["message"], "Refresh token not provided")

    def test_refresh_with_garbage_cookie(self) -> None:
        with new_client() as other:
            other.cookies.set("refreshToken", "garbage")
            response = other.post(f"{PREFIX}/auth/refresh")
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()["message"], "Invalid or expired refresh token")

    def test_me_after_login(self) -> None:
        self.register()
        self.login()
        response = self.client.get(f"{PREFIX}/auth/me")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["user"]["name"], "Alice")
        self.assertEqual(set(response.json()["user"]), {"id", "email", "name", "role"})


class TestLogoutEndpoint(ApiTestCase):
    def _assert_cleared(self, response) -> None:
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"message": "Logout successful"})
        for name in ("accessToken", "refreshToken"):
            header = cookie_header(response, name)
            self.assertIsNotNone(header, name)
            self.assertIn("max-age=0", header.lower())

    def test_logout_without_cookies(self) -> None:
        self._assert_cleared(self.client.post(f"{PREFIX}/auth/logout"))

    def test_logout_with_garbage_refresh_cookie(self) -> None:
        with new_client() as other:
            other.cookies.set("refreshToken", "garbage")
            self._assert_cleared(other.post(f"{PREFIX}/auth/logout"))

    def test_logout_invalidates_refresh(self) -> None:
        self.register()
        refresh_token = self.login().cookies.get("refreshToken")
        self._assert_cleared(self.client.post(f"{PREFIX}/auth/logout"))
        with new_client() as other:
            other.cookies.set("refreshToken", refresh_token)
            response = other.post(f"{PREFIX}/auth/refresh")
        self.assertEqual(response.status_code, 401)

    def test_logout_survives_store_failure(self) -> None:
        self.register()
        self.login()
        with patch("app.services.users.update_refresh_token", side_effect=RuntimeError("boom")):
            response = self.client.post(f"{PREFIX}/auth/logout")
        self._assert_cleared(response)


class TestAccessControl(ApiTestCase):
    """Token lookup order, expired vs invalid messages, optional auth and role gates."""

    def _token(self, role: str = "user", **kwargs) -> str:
        claims = {
            "id": "6f1c2b9e-3a4d-4c5e-8f70-1a2b3c4d5e6f",
            "email": "alice@x.com",
            "name": "Alice",
            "role": role,
        }
        return create_access_token(claims, **kwargs)

    def test_missing_token(self) -> None:
        response = self.client.get(f"{PREFIX}/protected/dashboard")
        self.assertEqual(response.status_code, 401)
        self.assertEqual(
            response.json()["message"], "Access token not provided. Please login to continue."
        )
        self.assertEqual(response.headers.get("www-authenticate"), "Bearer")

    def test_bearer_header(self) -> None:
        response = self.client.get(
            f"{PREFIX}/protected/dashboard",
            headers={"Authorization": f"Bearer {self._token()}"},
        )
        self.assertEqual(response.status_code, 200)
        self.assertIn("Welcome back, Alice!", response.json()["message"])

    def test_cookie_takes_precedence_over_header(self) -> None:
        with new_client() as other:
            other.cookies.set("accessToken", self._token(role="admin"))
            response = other.get(
                f"{PREFIX}/protected/admin",
                headers={"Authorization": f"Bearer {self._token(role='user')}"},
            )
        self.assertEqual(response.status_code, 200)

    def test_expired_and_invalid_messages_differ(self) -> None:
        expired = self._token(expires_delta=timedelta(seconds=-5))
        expired_response = self.client.get(
            f"{PREFIX}/auth/me", headers={"Authorization": f"Bearer {expired}"}
        )
        invalid_response = self.client.get(
            f"{PREFIX}/auth/me", headers={"Authorization": "Bearer not.a.token"}
        )
        self.assertEqual(expired_response.status_code, 401)
        self.assertEqual(invalid_response.status_code, 401)
        self.assertEqual(
            expired_response.json()["message"],
            "Access token has expired. Please refresh your session.",
        )
        self.assertEqual(
            invalid_response.json()["message"], "Invalid access token. Please login again."
        )

    def test_refresh_token_is_not_an_access_token(self) -> None:
        token = create_refresh_token("6f1c2b9e-3a4d-4c5e-8f70-1a2b3c4d5e6f")
        response = self.client.get(
            f"{PREFIX}/auth/me", headers={"Authorization": f"Bearer {token}"}
        )
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()["message"], "Invalid access token. Please login again.")

    def test_optional_auth(self) -> None:
        anonymous = self.client.get(f"{PREFIX}/protected/public")
        self.assertEqual(anonymous.status_code, 200)
        self.assertFalse(anonymous.json()["authenticated"])

        invalid = self.client.get(
            f"{PREFIX}/protected/public", headers={"Authorization": "Bearer nope"}
        )
        self.assertEqual(invalid.status_code, 200)
        self.assertFalse(invalid.json()["authenticated"])

        known = self.client.get(
            f"{PREFIX}/protected/public", headers={"Authorization": f"Bearer {self._token()}"}
        )
        self.assertTrue(known.json()["authenticated"])
        self.assertEqual(known.json()["message"], "Hello, Alice!")

    def test_moderator_role_gates(self) -> None:
        headers = {"Authorization": f"Bearer {self._token(role='moderator')}"}
        admin = self.client.get(f"{PREFIX}/protected/admin", headers=headers)
        moderator = self.client.get(f"{PREFIX}/protected/moderator", headers=headers)
        self.assertEqual(admin.status_code, 403)
        self.assertIn("admin", admin.json()["message"])
        self.assertEqual(moderator.status_code, 200)

    def test_user_role_is_forbidden_not_unauthorized(self) -> None:
        headers = {"Authorization": f"Bearer {self._token(role='user')}"}
        self.assertEqual(
            self.client.get(f"{PREFIX}/protected/moderator", headers=headers).status_code, 403
        )

    def test_admin_lists_users_from_login(self) -> None:
        self.make_user(name="Root", email="root@x.com", password="rootpass", role="admin")
        self.make_user(name="Bob", email="bob@x.com", password="bobpass", role="user")
        self.assertEqual(self.login(email="root@x.com", password="rootpass").status_code, 200)
        response = self.client.get(f"{PREFIX}/protected/admin/users")
        self.assertEqual(response.status_code, 200)
        users = response.json()["users"]
        self.assertEqual(sorted(u["email"] for u in users), ["bob@x.com", "root@x.com"])
        self.assertTrue(all("password_hash" not in u for u in users))


class TestMiscRoutes(ApiTestCase):
    def test_health(self) -> None:
        response = self.client.get(f"{PREFIX}/health")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["status"], "ok")
        self.assertEqual(response.json()["database"], "connected")

    def test_unknown_route(self) -> None:
        response = self.client.get("/definitely/not/here")
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json(), {"message": "Route not found"})


if __name__ == "__main__":
    unittest.main()
