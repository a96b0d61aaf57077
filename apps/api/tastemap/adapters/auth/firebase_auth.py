"""Firebase Auth identity assertion verifier adapter."""

from __future__ import annotations

from tastemap.adapters.auth.base import FederatedIdentityVerifier, IdentityAssertionError, identity_from_claims
from tastemap.schemas.auth import FederatedIdentity


class FirebaseIdentityVerifier(FederatedIdentityVerifier):
    """Verifies Firebase ID tokens (Google sign-in) against Google's public keys."""

    def __init__(self, project_id: str | None, audience: str | None) -> None:
        self._project_id = project_id
        self._audience = audience

    def verify_assertion(self, assertion: str) -> FederatedIdentity:
        try:
            import firebase_admin
            from firebase_admin import auth as firebase_auth
        except ImportError as exc:  # pragma: no cover - depends on installed SDK
            raise IdentityAssertionError("Firebase identity verifier is unavailable") from exc

        if not firebase_admin._apps:
            options = {"projectId": self._project_id} if self._project_id else None
            firebase_admin.initialize_app(options=options)

        try:
            decoded = firebase_auth.verify_id_token(assertion, check_revoked=True)
        except Exception as exc:  # pragma: no cover - provider exception surface
            raise IdentityAssertionError("Invalid identity assertion") from exc

        if self._audience and decoded.get("aud") != self._audience:
            raise IdentityAssertionError("Invalid identity assertion audience")

        if self._project_id:
            issuer = str(decoded.get("iss", ""))
            audience = str(decoded.get("aud", ""))
            if self._project_id not in issuer and audience != self._project_id:
                raise IdentityAssertionError("Invalid identity assertion issuer")

        return identity_from_claims(decoded)


__all__ = ["FirebaseIdentityVerifier"]
