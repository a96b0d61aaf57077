"""FastAPI application entrypoint."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.openapi.utils import get_openapi
from fastapi.responses import JSONResponse
from fastapi.routing import APIRoute

from tastemap.core.passwords import PasswordHasher
from tastemap.domain.policies import RoutePolicyTable
from tastemap.errors import ApiError
from tastemap.repositories.memory import InMemoryStore
from tastemap.routes import (
    admin_router,
    auth_router,
    notifications_router,
    restaurants_router,
    users_router,
    verification_router,
)
from tastemap.routes.policies import build_route_policy_table
from tastemap.schemas.error import ErrorResponse
from tastemap.services.notifications import NotificationDispatcher, store_delivery

logger = logging.getLogger(__name__)

_GUARDED_CODES = {"401", "403"}

_OPENAPI_RESPONSE_CODES: dict[str, dict[str, set[str]]] = {
    "/auth/sign-in": {"post": {"200", "400", "401", "408"}},
    "/auth/refresh-tokens": {"post": {"200", "400", "401"}},
    "/auth/google-authentication": {"post": {"201", "400", "401"}},
    "/users": {"post": {"201", "400", "409"}},
    "/users/{id}/role": {"patch": {"200", "400", "404"} | _GUARDED_CODES},
    "/users/{id}/block": {"patch": {"200", "404"} | _GUARDED_CODES},
    "/users/{id}/unblock": {"patch": {"200", "404"} | _GUARDED_CODES},
    "/restaurants": {"post": {"201", "400"} | _GUARDED_CODES},
    "/restaurants/verified": {"get": {"200"}},
    "/restaurants/{id}": {"get": {"200", "404"}},
    "/verification/request": {"post": {"201", "400", "404"} | _GUARDED_CODES},
    "/verification/pending": {"get": {"200"} | _GUARDED_CODES},
    "/verification/all": {"get": {"200"} | _GUARDED_CODES},
    "/verification/restaurant/{restaurantId}": {"get": {"200", "404"} | _GUARDED_CODES},
    "/verification/{id}": {"get": {"200", "404"} | _GUARDED_CODES},
    "/verification/{id}/approve": {"patch": {"200", "400", "404", "503"} | _GUARDED_CODES},
    "/verification/{id}/reject": {"patch": {"200", "400", "404"} | _GUARDED_CODES},
    "/admin/dashboard": {"get": {"200"} | _GUARDED_CODES},
    "/notifications": {"get": {"200", "401"}},
    "/notifications/{id}/read": {"patch": {"200", "401", "404"}},
}


def _apply_contract_response_codes(schema: dict) -> None:
    """Limit documented response codes to the ones each route can actually return."""
    for path, methods in _OPENAPI_RESPONSE_CODES.items():
        path_item = schema.get("paths", {}).get(path)
        if not path_item:
            continue

        for method, allowed_codes in methods.items():
            operation = path_item.get(method)
            if not operation:
                continue

            responses = operation.setdefault("responses", {})
            for status_code in list(responses.keys()):
                if status_code not in allowed_codes:
                    responses.pop(status_code, None)

            for status_code in sorted(allowed_codes):
                responses.setdefault(status_code, {"description": "See API contract"})


def ensure_routes_have_policies(app: FastAPI, policies: RoutePolicyTable) -> None:
    """Refuse to start when a route has no registered access policy."""
    missing = [
        f"{method} {route.path}"
        for route in app.routes
        if isinstance(route, APIRoute)
        for method in sorted(route.methods)
        if (method, route.path) not in policies
    ]
    if missing:
        raise RuntimeError(f"Routes without an access policy: {', '.join(missing)}")


@asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
    dispatcher: NotificationDispatcher = app.state.notification_dispatcher
    dispatcher.start()
    logger.info("app.started routes=%s", len(app.state.route_policies))
    try:
        yield
    finally:
        await dispatcher.stop()
        logger.info(
            "app.stopped notifications_delivered=%s notifications_failed=%s notifications_dropped=%s",
            dispatcher.delivered_count,
            dispatcher.failed_count,
            dispatcher.dropped_count,
        )


def create_app(store: InMemoryStore | None = None) -> FastAPI:
    app = FastAPI(title="TasteMap API", version="0.4.0", lifespan=_lifespan)
    app.state.store = store if store is not None else InMemoryStore()
    app.state.password_hasher = PasswordHasher()
    app.state.notification_dispatcher = NotificationDispatcher(store_delivery(app.state.store))
    app.state.route_policies = build_route_policy_table()

    @app.exception_handler(ApiError)
    async def handle_api_error(_, exc: ApiError) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content=exc.payload.model_dump(mode="json", exclude_none=True),
        )

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        fields = [".".join(str(part) for part in error.get("loc", ())) for error in exc.errors()]
        payload = ErrorResponse(
            code="VALIDATION_ERROR",
            message="Invalid request payload",
            details={"fields": fields},
        )
        return JSONResponse(status_code=400, content=payload.model_dump(mode="json"))

    app.include_router(auth_router)
    app.include_router(users_router)
    app.include_router(restaurants_router)
    app.include_router(verification_router)
    app.include_router(notifications_router)
    app.include_router(admin_router)

    ensure_routes_have_policies(app, app.state.route_policies)

    def custom_openapi() -> dict:
        if app.openapi_schema:
            return app.openapi_schema
        schema = get_openapi(
            title=app.title,
            version=app.version,
            description=app.description,
            routes=app.routes,
        )
        _apply_contract_response_codes(schema)
        app.openapi_schema = schema
        return app.openapi_schema

    app.openapi = custom_openapi

    return app


app = create_app()
