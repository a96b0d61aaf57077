"""Mock identity verifier for local development and tests."""

from tastemap.adapters.auth.base import FederatedIdentityVerifier, IdentityAssertionError
from tastemap.schemas.auth import FederatedIdentity


class MockIdentityVerifier(FederatedIdentityVerifier):
    """Accepts deterministic test assertions only.

    Expected assertion format:
    - ``test:<federated_id>:<email>``
    - ``test:<federated_id>:<email>:<first_name>:<last_name>``
    """

    def verify_assertion(self, assertion: str) -> FederatedIdentity:
        parts = assertion.split(":")
        if len(parts) not in (3, 5) or parts[0] != "test":
            raise IdentityAssertionError("Invalid identity assertion")

        federated_id = parts[1].strip()
        email = parts[2].strip()
        first_name = parts[3].strip() if len(parts) == 5 else ""
        last_name = parts[4].strip() if len(parts) == 5 else ""

        if not federated_id:
            raise IdentityAssertionError("Identity assertion missing subject")
        if not email:
            raise IdentityAssertionError("Identity assertion missing email")

        return FederatedIdentity(
            federated_id=federated_id,
            email=email,
            first_name=first_name or None,
            last_name=last_name or None,
        )


__all__ = ["MockIdentityVerifier"]
