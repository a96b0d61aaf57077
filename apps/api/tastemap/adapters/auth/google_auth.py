"""Google OAuth ID token verifier adapter."""

from __future__ import annotations

from tastemap.adapters.auth.base import FederatedIdentityVerifier, IdentityAssertionError, identity_from_claims
from tastemap.schemas.auth import FederatedIdentity

_GOOGLE_ISSUERS = {"accounts.google.com", "https://accounts.google.com"}


class GoogleIdentityVerifier(FederatedIdentityVerifier):
    """Verifies Google Sign-In ID tokens issued to this application's OAuth client."""

    def __init__(self, client_id: str | None) -> None:
        self._client_id = client_id

    def verify_assertion(self, assertion: str) -> FederatedIdentity:
        if not self._client_id:
            raise IdentityAssertionError("Google OAuth client id is not configured")

        try:
            from google.auth.transport import requests as google_requests
            from google.oauth2 import id_token
        except ImportError as exc:  # pragma: no cover - depends on installed SDK
            raise IdentityAssertionError("Google identity verifier is unavailable") from exc

        try:
            decoded = id_token.verify_oauth2_token(assertion, google_requests.Request(), self._client_id)
        except Exception as exc:  # pragma: no cover - provider exception surface
            raise IdentityAssertionError("Invalid identity assertion") from exc

        if decoded.get("iss") not in _GOOGLE_ISSUERS:
            raise IdentityAssertionError("Invalid identity assertion issuer")

        return identity_from_claims(decoded)


__all__ = ["GoogleIdentityVerifier"]
