"""One-way password hashing backed by argon2id."""

from __future__ import annotations

from argon2 import PasswordHasher as Argon2PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError, VerifyMismatchError


class PasswordComparisonError(Exception):
    """Raised when a stored hash cannot be compared at all (as opposed to a mismatch)."""


class PasswordHasher:
    """Hashes and verifies passwords.

    ``verify`` returns ``False`` for a plain mismatch and raises
    :class:`PasswordComparisonError` when the stored hash is unusable, so callers
    can tell a wrong password apart from a broken record.
    """

    def __init__(
        self,
        *,
        time_cost: int = 2,
        memory_cost: int = 65536,
        parallelism: int = 4,
    ) -> None:
        self._hasher = Argon2PasswordHasher(
            time_cost=time_cost,
            memory_cost=memory_cost,
            parallelism=parallelism,
        )

    def hash(self, password: str) -> str:
        return self._hasher.hash(password)

    def verify(self, password: str, password_hash: str) -> bool:
        try:
            return self._hasher.verify(password_hash, password)
        except VerifyMismatchError:
            return False
        except (InvalidHashError, VerificationError) as exc:
            raise PasswordComparisonError("Stored password hash could not be compared") from exc


__all__ = ["PasswordComparisonError", "PasswordHasher"]
