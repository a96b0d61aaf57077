"""Federated identity verifier adapters."""

from .base import FederatedIdentityVerifier, IdentityAssertionError
from .firebase_auth import FirebaseIdentityVerifier
from .google_auth import GoogleIdentityVerifier
from .mock_auth import MockIdentityVerifier

__all__ = [
    "FederatedIdentityVerifier",
    "IdentityAssertionError",
    "FirebaseIdentityVerifier",
    "GoogleIdentityVerifier",
    "MockIdentityVerifier",
]
