"""User registration, admin account, restaurant and dashboard API tests."""

from __future__ import annotations

import asyncio
import os
import unittest

from fastapi.testclient import TestClient

from tastemap.core.config import get_settings
from tastemap.core.passwords import PasswordHasher
from tastemap.main import create_app
from tastemap.schemas.auth import UserRole
from tastemap.services.tokens import TokenService

_SECRET = "unit-test-jwt-secret-with-enough-entropy-0123456789"


def _token_service() -> TokenService:
    return TokenService(
        secret=_SECRET,
        issuer="tastemap-api",
        audience="tastemap-clients",
        access_token_ttl=3600,
        refresh_token_ttl=86400,
    )


class _LoopAwareHasher(PasswordHasher):
    def __init__(self) -> None:
        super().__init__(time_cost=1, memory_cost=8192, parallelism=1)
        self.calls_on_event_loop: list[bool] = []

    def hash(self, password: str) -> str:
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            self.calls_on_event_loop.append(False)
        else:
            self.calls_on_event_loop.append(True)
        return super().hash(password)


class _SettingsEnvCase(unittest.TestCase):
    _env_keys = ("TASTEMAP_JWT_SECRET", "TASTEMAP_AUTH_PROVIDER")

    def setUp(self) -> None:
        self._old_env = {k: os.environ.get(k) for k in self._env_keys}
        os.environ["TASTEMAP_JWT_SECRET"] = _SECRET
        os.environ["TASTEMAP_AUTH_PROVIDER"] = "mock"
        get_settings.cache_clear()
        self.app = create_app()
        self.app.state.password_hasher = PasswordHasher(time_cost=1, memory_cost=8192, parallelism=1)
        self.client = TestClient(self.app)
        self.store = self.app.state.store
        self.admin = self.store.create_user(
            first_name="Ada", last_name="Admin", email="ada@example.com", role=UserRole.ADMIN, user_id=1
        )

    def tearDown(self) -> None:
        for key, value in self._old_env.items():
            if value is None:
                os.environ.pop(key, None)
            else:
                os.environ[key] = value
        get_settings.cache_clear()

    def _auth(self, user) -> dict[str, str]:
        return {"Authorization": f"Bearer {_token_service().issue_pair(user).access_token}"}


class UserApiTests(_SettingsEnvCase):
    def _register(self, **overrides) -> object:
        payload = {
            "firstName": "Ana",
            "lastName": "Owner",
            "email": "Ana@Example.com",
            "password": "s3cret-pass",
            "role": "restaurant_owner",
        }
        payload.update(overrides)
        return self.client.post("/users", json=payload)

    def test_register_then_sign_in(self) -> None:
        created = self._register()

        self.assertEqual(created.status_code, 201)
        body = created.json()
        self.assertEqual(body["email"], "ana@example.com")
        self.assertEqual(body["role"], "restaurant_owner")
        self.assertFalse(body["isBlocked"])
        self.assertNotIn("password", body)
        self.assertNotIn("passwordHash", body)
        stored = self.store.get_user(body["id"])
        self.assertNotEqual(stored.password_hash, "s3cret-pass")

        signed_in = self.client.post("/auth/sign-in", json={"email": "ana@example.com", "password": "s3cret-pass"})
        self.assertEqual(signed_in.status_code, 200)

    def test_registration_hashes_password_off_the_event_loop(self) -> None:
        hasher = _LoopAwareHasher()
        self.app.state.password_hasher = hasher

        created = self._register()

        self.assertEqual(created.status_code, 201)
        self.assertEqual(hasher.calls_on_event_loop, [False])
        self.assertTrue(hasher.verify("s3cret-pass", self.store.get_user(created.json()["id"]).password_hash))

    def test_duplicate_email_is_409(self) -> None:
        self._register()

        duplicate = self._register(email="ana@example.com")

        self.assertEqual(duplicate.status_code, 409)
        self.assertEqual(duplicate.json()["code"], "EMAIL_ALREADY_REGISTERED")

    def test_admin_role_cannot_be_self_registered(self) -> None:
        response = self._register(role="admin")

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["code"], "ROLE_NOT_ALLOWED")
        self.assertEqual(self.store.count_users(), 1)

    def test_short_password_is_validation_error(self) -> None:
        response = self._register(password="short")

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["code"], "VALIDATION_ERROR")

    def test_admin_blocks_and_unblocks_user(self) -> None:
        user_id = self._register().json()["id"]
        user = self.store.get_user(user_id)
        user_headers = self._auth(user)

        blocked = self.client.patch(f"/users/{user_id}/block", headers=self._auth(self.admin))
        self.assertEqual(blocked.status_code, 200)
        self.assertTrue(blocked.json()["isBlocked"])

        # Tokens issued before the block keep their claims until refreshed.
        self.assertEqual(self.client.get("/notifications", headers=user_headers).status_code, 200)
        refreshed = self.client.get("/notifications", headers=self._auth(self.store.get_user(user_id)))
        self.assertEqual(refreshed.status_code, 403)
        self.assertEqual(refreshed.json()["code"], "ACCOUNT_BLOCKED")

        unblocked = self.client.patch(f"/users/{user_id}/unblock", headers=self._auth(self.admin))
        self.assertFalse(unblocked.json()["isBlocked"])

    def test_admin_changes_role(self) -> None:
        user_id = self._register(role="user").json()["id"]

        response = self.client.patch(
            f"/users/{user_id}/role",
            headers=self._auth(self.admin),
            json={"role": "restaurant_owner"},
        )

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["role"], "restaurant_owner")
        self.assertIs(self.store.get_user(user_id).role, UserRole.RESTAURANT_OWNER)

    def test_admin_operations_on_missing_user_are_404(self) -> None:
        response = self.client.patch("/users/404/block", headers=self._auth(self.admin))

        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json()["message"], "User not found.")

    def test_non_admin_cannot_manage_users(self) -> None:
        user_id = self._register(role="user").json()["id"]

        response = self.client.patch(
            f"/users/{user_id}/role",
            headers=self._auth(self.store.get_user(user_id)),
            json={"role": "admin"},
        )

        self.assertEqual(response.status_code, 403)
        self.assertIs(self.store.get_user(user_id).role, UserRole.USER)


class RestaurantAndDashboardApiTests(_SettingsEnvCase):
    def setUp(self) -> None:
        super().setUp()
        self.owner = self.store.create_user(
            first_name="Ana", last_name="Owner", email="ana@example.com", role=UserRole.RESTAURANT_OWNER, user_id=7
        )
        self.diner = self.store.create_user(
            first_name="Di", last_name="Ner", email="di@example.com", role=UserRole.USER, user_id=9
        )

    def test_owner_creates_restaurant_owned_by_caller(self) -> None:
        response = self.client.post("/restaurants", headers=self._auth(self.owner), json={"name": "Blue Door"})

        self.assertEqual(response.status_code, 201)
        body = response.json()
        self.assertEqual(body["ownerId"], 7)
        self.assertFalse(body["verified"])
        self.assertEqual(self.client.get(f"/restaurants/{body['id']}").json()["name"], "Blue Door")

    def test_diner_cannot_create_restaurant(self) -> None:
        response = self.client.post("/restaurants", headers=self._auth(self.diner), json={"name": "Nope"})

        self.assertEqual(response.status_code, 403)
        self.assertEqual(self.store.count_restaurants(), 0)

    def test_unknown_restaurant_is_404(self) -> None:
        response = self.client.get("/restaurants/999")

        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json(), {"code": "RESOURCE_NOT_FOUND", "message": "Restaurant not found."})

    def test_verified_listing_hides_unverified_restaurants(self) -> None:
        self.store.create_restaurant(owner_id=7, name="Blue Door", restaurant_id=3)

        response = self.client.get("/restaurants/verified")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), [])

    def test_admin_dashboard_counts(self) -> None:
        self.store.create_restaurant(owner_id=7, name="Blue Door", restaurant_id=3)
        self.store.create_verification_request(restaurant_id=3)

        response = self.client.get("/admin/dashboard", headers=self._auth(self.admin))
        forbidden = self.client.get("/admin/dashboard", headers=self._auth(self.owner))

        self.assertEqual(response.status_code, 200)
        self.assertEqual(
            response.json(),
            {"totalUsers": 3, "totalRestaurants": 1, "pendingVerifications": 1},
        )
        self.assertEqual(forbidden.status_code, 403)

    def test_openapi_documents_route_response_codes(self) -> None:
        paths = self.client.get("/openapi.json").json()["paths"]

        self.assertEqual(set(paths["/auth/sign-in"]["post"]["responses"]), {"200", "400", "401", "408"})
        self.assertEqual(set(paths["/restaurants/verified"]["get"]["responses"]), {"200"})
        self.assertEqual(
            set(paths["/verification/{id}/approve"]["patch"]["responses"]),
            {"200", "400", "401", "403", "404", "503"},
        )


if __name__ == "__main__":
    unittest.main()
