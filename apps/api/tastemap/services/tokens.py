"""Signed, time-boxed access and refresh tokens."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Any

import jwt
from pydantic import ValidationError

from tastemap.core.config import Settings
from tastemap.domain.directories import UserRecord
from tastemap.schemas.auth import IdentityClaims, RefreshClaims, TokenPair

_REQUIRED_CLAIMS = ["sub", "iss", "aud", "iat", "exp"]
_ACCESS_ONLY_CLAIMS = frozenset({"email", "role", "isBlocked"})


class TokenVerificationError(Exception):
    """Raised when a token fails signature, issuer, audience, expiry or shape checks."""


class BlockedIdentityError(TokenVerificationError):
    """Raised when an otherwise valid access token belongs to a blocked account."""

    def __init__(self, claims: IdentityClaims) -> None:
        self.claims = claims
        super().__init__("Account is blocked")


class TokenService:
    def __init__(
        self,
        *,
        secret: str,
        issuer: str,
        audience: str,
        access_token_ttl: int,
        refresh_token_ttl: int,
        algorithm: str = "HS256",
    ) -> None:
        self._secret = secret
        self._issuer = issuer
        self._audience = audience
        self._access_token_ttl = access_token_ttl
        self._refresh_token_ttl = refresh_token_ttl
        self._algorithm = algorithm

    @classmethod
    def from_settings(cls, settings: Settings) -> TokenService:
        return cls(
            secret=settings.jwt_secret,
            issuer=settings.jwt_issuer,
            audience=settings.jwt_audience,
            access_token_ttl=settings.access_token_ttl,
            refresh_token_ttl=settings.refresh_token_ttl,
            algorithm=settings.jwt_algorithm,
        )

    @property
    def access_token_ttl(self) -> int:
        return self._access_token_ttl

    def issue(self, subject_id: int, ttl: int, extra_claims: dict[str, Any] | None = None) -> str:
        now = datetime.now(UTC)
        payload: dict[str, Any] = {
            **(extra_claims or {}),
            # PyJWT requires a string subject.
            "sub": str(subject_id),
            "iss": self._issuer,
            "aud": self._audience,
            "iat": now,
            "exp": now + timedelta(seconds=ttl),
        }
        return jwt.encode(payload, self._secret, algorithm=self._algorithm)

    def issue_pair(self, user: UserRecord) -> TokenPair:
        access_token = self.issue(
            user.id,
            self._access_token_ttl,
            {
                "email": user.email,
                "role": user.role.value,
                "isBlocked": user.is_blocked,
            },
        )
        refresh_token = self.issue(user.id, self._refresh_token_ttl)
        return TokenPair(access_token=access_token, refresh_token=refresh_token)

    def verify(
        self,
        token: str,
        *,
        expected_audience: str | None = None,
        expected_issuer: str | None = None,
    ) -> dict[str, Any]:
        """Check signature, expiry, issuer and audience and return the raw claims."""
        try:
            return jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                audience=expected_audience or self._audience,
                issuer=expected_issuer or self._issuer,
                options={"require": _REQUIRED_CLAIMS},
            )
        except jwt.ExpiredSignatureError as exc:
            raise TokenVerificationError("Token has expired") from exc
        except jwt.InvalidTokenError as exc:
            raise TokenVerificationError("Invalid token") from exc

    def verify_access_token(self, token: str) -> IdentityClaims:
        payload = self.verify(token)
        try:
            claims = IdentityClaims.model_validate(payload)
        except ValidationError as exc:
            raise TokenVerificationError("Token is not an access token") from exc

        if claims.is_blocked:
            raise BlockedIdentityError(claims)
        return claims

    def verify_refresh_token(self, token: str) -> RefreshClaims:
        payload = self.verify(token)
        if _ACCESS_ONLY_CLAIMS & payload.keys():
            raise TokenVerificationError("Token is not a refresh token")
        try:
            return RefreshClaims.model_validate(payload)
        except ValidationError as exc:
            raise TokenVerificationError("Invalid refresh token claims") from exc


__all__ = ["BlockedIdentityError", "TokenService", "TokenVerificationError"]
