"""Federated identity provider interfaces."""

from abc import ABC, abstractmethod
from typing import Any, Mapping

from tastemap.schemas.auth import FederatedIdentity


class IdentityAssertionError(Exception):
    """Raised when a federated identity assertion cannot be verified or normalized."""


class FederatedIdentityVerifier(ABC):
    """Provider-neutral identity assertion verification interface."""

    @abstractmethod
    def verify_assertion(self, assertion: str) -> FederatedIdentity:
        """Verify the provider-issued assertion and return the normalized identity."""


def identity_from_claims(decoded: Mapping[str, Any]) -> FederatedIdentity:
    """Normalize verified OpenID Connect claims into a federated identity."""
    federated_id = str(decoded.get("uid") or decoded.get("sub") or "").strip()
    if not federated_id:
        raise IdentityAssertionError("Identity assertion missing subject")

    email = decoded.get("email")
    if email is not None and decoded.get("email_verified") is False:
        raise IdentityAssertionError("Identity assertion email is not verified")

    first_name = decoded.get("given_name")
    last_name = decoded.get("family_name")
    if first_name is None and last_name is None and decoded.get("name"):
        first_name, _, last_name = str(decoded["name"]).partition(" ")

    return FederatedIdentity(
        federated_id=federated_id,
        email=email,
        first_name=first_name or None,
        last_name=last_name or None,
    )


__all__ = ["FederatedIdentityVerifier", "IdentityAssertionError", "identity_from_claims"]
