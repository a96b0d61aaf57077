"""User registration and admin account operations."""

from dataclasses import replace
import logging

from fastapi.concurrency import run_in_threadpool

from tastemap.core.logging_safety import mask_email, safe_log_identifier
from tastemap.core.passwords import PasswordHasher
from tastemap.domain.directories import DuplicateUserError, UserDirectory, UserRecord
from tastemap.errors import ApiError, not_found
from tastemap.schemas.auth import UserRole
from tastemap.schemas.user import User

logger = logging.getLogger(__name__)

_SELF_REGISTRATION_ROLES = frozenset({UserRole.USER, UserRole.RESTAURANT_OWNER})


class UserService:
    def __init__(self, users: UserDirectory, hasher: PasswordHasher) -> None:
        self._users = users
        self._hasher = hasher

    async def register(
        self,
        *,
        first_name: str,
        last_name: str,
        email: str,
        password: str,
        role: UserRole,
    ) -> User:
        if role not in _SELF_REGISTRATION_ROLES:
            raise ApiError(
                status_code=400,
                code="ROLE_NOT_ALLOWED",
                message="This role cannot be chosen at registration.",
                details={"role": role},
            )

        password_hash = await run_in_threadpool(self._hasher.hash, password)
        try:
            record = self._users.create_user(
                first_name=first_name,
                last_name=last_name,
                email=email,
                role=role,
                password_hash=password_hash,
            )
        except DuplicateUserError as exc:
            logger.info("user.register_rejected email=%s reason=duplicate", mask_email(email))
            raise ApiError(
                status_code=409,
                code="EMAIL_ALREADY_REGISTERED",
                message="User already exists, please check your email.",
            ) from exc

        logger.info(
            "user.registered user_id=%s role=%s",
            safe_log_identifier(record.id, prefix="uid"),
            record.role.value,
        )
        return self._to_user(record)

    def set_blocked(self, *, user_id: int, blocked: bool) -> User:
        record = self._get_record(user_id)
        saved = self._users.save_user(replace(record, is_blocked=blocked))
        logger.info(
            "user.block_changed user_id=%s blocked=%s",
            safe_log_identifier(saved.id, prefix="uid"),
            saved.is_blocked,
        )
        return self._to_user(saved)

    def change_role(self, *, user_id: int, role: UserRole) -> User:
        record = self._get_record(user_id)
        saved = self._users.save_user(replace(record, role=role))
        logger.info(
            "user.role_changed user_id=%s role=%s",
            safe_log_identifier(saved.id, prefix="uid"),
            saved.role.value,
        )
        return self._to_user(saved)

    def _get_record(self, user_id: int) -> UserRecord:
        record = self._users.get_user(user_id)
        if record is None:
            raise not_found("User not found.")
        return record

    @staticmethod
    def _to_user(record: UserRecord) -> User:
        return User(
            id=record.id,
            first_name=record.first_name,
            last_name=record.last_name,
            email=record.email,
            role=record.role,
            is_blocked=record.is_blocked,
            created_at=record.created_at,
        )
