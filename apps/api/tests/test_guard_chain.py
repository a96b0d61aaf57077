"""Authentication, role and ownership guard tests."""

from __future__ import annotations

import os
import unittest

from fastapi import FastAPI
from fastapi.testclient import TestClient

from tastemap.core.config import get_settings
from tastemap.domain.policies import AUTHENTICATED, PUBLIC, OwnershipSource, RoutePolicyTable, roles
from tastemap.errors import ApiError
from tastemap.main import create_app, ensure_routes_have_policies
from tastemap.repositories.memory import InMemoryStore
from tastemap.routes.policies import ROUTE_POLICIES, build_route_policy_table
from tastemap.schemas.auth import UserRole
from tastemap.services.guards import ANONYMOUS, GuardChain
from tastemap.services.tokens import TokenService

_SECRET = "unit-test-jwt-secret-with-enough-entropy-0123456789"

_OWNED_BY_PATH = roles(
    UserRole.RESTAURANT_OWNER,
    UserRole.ADMIN,
    ownership=OwnershipSource(location="path", field_name="restaurantId"),
)


def _token_service() -> TokenService:
    return TokenService(
        secret=_SECRET,
        issuer="tastemap-api",
        audience="tastemap-clients",
        access_token_ttl=3600,
        refresh_token_ttl=86400,
    )


class GuardChainUnitTests(unittest.TestCase):
    def setUp(self) -> None:
        self.store = InMemoryStore()
        self.tokens = _token_service()
        self.guards = GuardChain(tokens=self.tokens, restaurants=self.store)
        self.owner = self.store.create_user(
            first_name="Ana", last_name="Owner", email="ana@example.com", role=UserRole.RESTAURANT_OWNER, user_id=7
        )
        self.other_owner = self.store.create_user(
            first_name="Bo", last_name="Owner", email="bo@example.com", role=UserRole.RESTAURANT_OWNER, user_id=8
        )
        self.admin = self.store.create_user(
            first_name="Ada", last_name="Admin", email="ada@example.com", role=UserRole.ADMIN, user_id=1
        )
        self.store.create_restaurant(owner_id=7, name="Blue Door", restaurant_id=3)

    def _token(self, user) -> str:
        return self.tokens.issue_pair(user).access_token

    def test_public_policy_needs_no_token(self) -> None:
        self.assertIs(self.guards.evaluate(PUBLIC, None), ANONYMOUS)
        self.assertIs(self.guards.evaluate(PUBLIC, "garbage"), ANONYMOUS)

    def test_missing_or_invalid_token_is_401(self) -> None:
        for token in (None, "", "garbage", self.tokens.issue_pair(self.owner).refresh_token):
            with self.subTest(token=token):
                with self.assertRaises(ApiError) as context:
                    self.guards.evaluate(AUTHENTICATED, token)
                self.assertEqual(context.exception.status_code, 401)
                self.assertEqual(context.exception.payload.message, "Invalid or missing bearer token")

    def test_blocked_account_is_403_before_role_checks(self) -> None:
        self.owner.is_blocked = True
        token = self._token(self.owner)

        with self.assertRaises(ApiError) as context:
            self.guards.evaluate(roles(UserRole.ADMIN), token)

        self.assertEqual(context.exception.status_code, 403)
        self.assertEqual(context.exception.payload.code, "ACCOUNT_BLOCKED")
        self.assertEqual(
            context.exception.payload.message,
            "Your account has been blocked. Please contact support.",
        )

    def test_role_outside_required_set_is_403(self) -> None:
        with self.assertRaises(ApiError) as context:
            self.guards.evaluate(roles(UserRole.ADMIN), self._token(self.owner))

        self.assertEqual(context.exception.status_code, 403)
        self.assertEqual(context.exception.payload.code, "FORBIDDEN")

    def test_authenticated_context_carries_identity(self) -> None:
        context = self.guards.evaluate(AUTHENTICATED, self._token(self.owner))

        self.assertEqual(context.user_id, 7)
        self.assertIs(context.identity.role, UserRole.RESTAURANT_OWNER)

    def test_anonymous_context_has_no_user_id(self) -> None:
        with self.assertRaises(LookupError):
            ANONYMOUS.user_id

    def test_ownership_answers(self) -> None:
        owner_context = self.guards.authenticate(AUTHENTICATED, self._token(self.owner))
        other_context = self.guards.authenticate(AUTHENTICATED, self._token(self.other_owner))
        admin_context = self.guards.authenticate(AUTHENTICATED, self._token(self.admin))

        self.assertTrue(self.guards.check_ownership(owner_context, 3))
        self.assertFalse(self.guards.check_ownership(other_context, 3))
        self.assertTrue(self.guards.check_ownership(admin_context, 3))
        self.assertTrue(self.guards.check_ownership(admin_context, 999))
        self.assertFalse(self.guards.check_ownership(owner_context, None))
        self.assertFalse(self.guards.check_ownership(ANONYMOUS, 3))

    def test_ownership_of_missing_restaurant_is_404(self) -> None:
        owner_context = self.guards.authenticate(AUTHENTICATED, self._token(self.owner))

        with self.assertRaises(ApiError) as context:
            self.guards.check_ownership(owner_context, 999)

        self.assertEqual(context.exception.status_code, 404)
        self.assertEqual(context.exception.payload.message, "Restaurant not found.")

    def test_ownership_deny_becomes_403(self) -> None:
        with self.assertRaises(ApiError) as context:
            self.guards.evaluate(_OWNED_BY_PATH, self._token(self.other_owner), restaurant_id=3)

        self.assertEqual(context.exception.status_code, 403)
        self.assertEqual(context.exception.payload.message, "You do not own this restaurant.")

    def test_ownership_is_not_evaluated_when_role_fails(self) -> None:
        diner = self.store.create_user(
            first_name="Di", last_name="Ner", email="di@example.com", role=UserRole.USER
        )

        with self.assertRaises(ApiError) as context:
            self.guards.evaluate(_OWNED_BY_PATH, self._token(diner), restaurant_id=999)

        self.assertEqual(context.exception.status_code, 403)


class RoutePolicyTableTests(unittest.TestCase):
    def test_duplicate_registration_is_rejected(self) -> None:
        table = RoutePolicyTable()
        table.register("get", "/things", PUBLIC)

        with self.assertRaises(ValueError):
            table.register("GET", "/things", AUTHENTICATED)

        self.assertIs(table.resolve("GET", "/things"), PUBLIC)
        self.assertIn(("get", "/things"), table)

    def test_every_declared_policy_is_registered(self) -> None:
        table = build_route_policy_table()

        self.assertEqual(len(table), sum(len(methods) for methods in ROUTE_POLICIES.values()))

    def test_app_refuses_routes_without_policy(self) -> None:
        app = FastAPI()

        @app.get("/unguarded")
        async def unguarded() -> dict:
            return {}

        with self.assertRaises(RuntimeError) as context:
            ensure_routes_have_policies(app, build_route_policy_table())

        self.assertIn("GET /unguarded", str(context.exception))


class _SettingsEnvCase(unittest.TestCase):
    _env_keys = ("TASTEMAP_JWT_SECRET", "TASTEMAP_AUTH_PROVIDER")

    def setUp(self) -> None:
        self._old_env = {k: os.environ.get(k) for k in self._env_keys}
        os.environ["TASTEMAP_JWT_SECRET"] = _SECRET
        os.environ["TASTEMAP_AUTH_PROVIDER"] = "mock"
        get_settings.cache_clear()

    def tearDown(self) -> None:
        for key, value in self._old_env.items():
            if value is None:
                os.environ.pop(key, None)
            else:
                os.environ[key] = value
        get_settings.cache_clear()


class GuardApiTests(_SettingsEnvCase):
    def setUp(self) -> None:
        super().setUp()
        self.app = create_app()
        self.client = TestClient(self.app)
        self.store = self.app.state.store
        self.owner = self.store.create_user(
            first_name="Ana", last_name="Owner", email="ana@example.com", role=UserRole.RESTAURANT_OWNER, user_id=7
        )
        self.other_owner = self.store.create_user(
            first_name="Bo", last_name="Owner", email="bo@example.com", role=UserRole.RESTAURANT_OWNER, user_id=8
        )
        self.store.create_restaurant(owner_id=7, name="Blue Door", restaurant_id=3)

    def _auth(self, user) -> dict[str, str]:
        return {"Authorization": f"Bearer {_token_service().issue_pair(user).access_token}"}

    def test_protected_route_without_token_is_401_and_has_no_side_effects(self) -> None:
        writes_before = self.store.verification_write_count

        response = self.client.post("/verification/request", json={"restaurantId": 3})

        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()["code"], "UNAUTHORIZED")
        self.assertEqual(self.store.verification_write_count, writes_before)

    def test_non_owner_is_403_for_body_scoped_route(self) -> None:
        response = self.client.post(
            "/verification/request",
            headers=self._auth(self.other_owner),
            json={"restaurantId": 3},
        )

        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.json()["message"], "You do not own this restaurant.")
        self.assertEqual(self.store.verification_requests, {})

    def test_non_owner_is_403_for_path_scoped_route(self) -> None:
        response = self.client.get("/verification/restaurant/3", headers=self._auth(self.other_owner))

        self.assertEqual(response.status_code, 403)

    def test_owner_scoped_route_with_missing_restaurant_is_404(self) -> None:
        response = self.client.get("/verification/restaurant/999", headers=self._auth(self.owner))

        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json()["code"], "RESOURCE_NOT_FOUND")

    def test_admin_only_route_rejects_owner(self) -> None:
        response = self.client.get("/verification/pending", headers=self._auth(self.owner))

        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.json()["code"], "FORBIDDEN")

    def test_public_route_accepts_anonymous_request(self) -> None:
        response = self.client.get("/restaurants/3")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["ownerId"], 7)

    def test_guard_rejection_is_logged_without_raw_token(self) -> None:
        with self.assertLogs("tastemap.routes.dependencies", level="WARNING") as captured:
            response = self.client.get(
                "/notifications",
                headers={"Authorization": "Bearer very-secret-garbage", "X-Correlation-Id": "corr-1"},
            )

        self.assertEqual(response.status_code, 401)
        self.assertIn("guard.rejected", captured.output[0])
        self.assertIn("code=UNAUTHORIZED", captured.output[0])
        self.assertNotIn("very-secret-garbage", captured.output[0])
        self.assertNotIn("corr-1", captured.output[0])


if __name__ == "__main__":
    unittest.main()
