"""
Password policy and salted, adaptive hashing.

Hashing is delegated to :func:`werkzeug.security.generate_password_hash`
with an explicit PBKDF2 work factor, so stored hashes are self-describing
(``pbkdf2:sha256:<iterations>$<salt>$<digest>``) and verify correctly even
after the configured iteration count changes.
"""

from __future__ import annotations

from typing import Any

from werkzeug.security import check_password_hash, generate_password_hash

from authcore.core.config import MAX_HASH_ITERATIONS, MIN_HASH_ITERATIONS
from authcore.services._shared.errors import ConfigurationError, FieldViolation, ValidationError

PASSWORD_MIN_LENGTH = 8
PASSWORD_MAX_LENGTH = 15
PASSWORD_SYMBOLS = frozenset("!@#$%^&*()_+-=[]{};':\"\\|,.<>/?")

SALT_LENGTH = 16


def check_password_policy(password: Any, *, field: str = "password") -> list[FieldViolation]:
    """
    Validate a candidate password against the policy.

    :param password: Candidate value (any type; non-strings are rejected).
    :param field: Field name reported in violations.
    :returns: Every violated rule, in check order. Empty when acceptable.
    """
    if password is None or password == "":
        return [FieldViolation(field, "Password is required")]
    if not isinstance(password, str):
        return [FieldViolation(field, "Password must be a string")]

    violations: list[FieldViolation] = []
    if len(password) < PASSWORD_MIN_LENGTH:
        violations.append(
            FieldViolation(field, f"Password must be at least {PASSWORD_MIN_LENGTH} characters long")
        )
    if len(password) > PASSWORD_MAX_LENGTH:
        violations.append(
            FieldViolation(field, f"Password must be at most {PASSWORD_MAX_LENGTH} characters long")
        )
    if not any("A" <= ch <= "Z" for ch in password):
        violations.append(
            FieldViolation(field, "Password must contain at least one capital letter")
        )
    if not any(ch in PASSWORD_SYMBOLS for ch in password):
        violations.append(FieldViolation(field, "Password must contain at least one symbol"))
    return violations


class PasswordHasher:
    """
    Credential hasher with a configurable PBKDF2 work factor.

    :param iterations: PBKDF2-SHA256 iteration count.
    :raises ConfigurationError: If ``iterations`` is outside the accepted range.
    """

    def __init__(self, iterations: int) -> None:
        if not isinstance(iterations, int) or not (
            MIN_HASH_ITERATIONS <= iterations <= MAX_HASH_ITERATIONS
        ):
            raise ConfigurationError(
                f"Password hash iterations must be between {MIN_HASH_ITERATIONS} "
                f"and {MAX_HASH_ITERATIONS}"
            )
        self.iterations = iterations
        self.method = f"pbkdf2:sha256:{iterations}"
        # Same cost as a real hash, so verifying against it takes the same time
        self._dummy_hash = generate_password_hash(
            "Dummy-password!", method=self.method, salt_length=SALT_LENGTH
        )

    def hash(self, password: Any) -> str:
        """
        Produce a salted hash of ``password``.

        :raises ValidationError: If the password violates the policy.
        """
        violations = check_password_policy(password)
        if violations:
            raise ValidationError(violations)
        return generate_password_hash(password, method=self.method, salt_length=SALT_LENGTH)

    def verify(self, password: Any, hashed: Any) -> bool:
        """
        Check ``password`` against a stored hash.

        Never raises: malformed inputs simply do not match.
        """
        if not isinstance(password, str) or not password.strip():
            return False
        if not isinstance(hashed, str) or not hashed:
            return False
        try:
            return check_password_hash(hashed, password)
        except (ValueError, TypeError):
            # corrupt hash string (unknown method, bad iteration field)
            return False

    def verify_dummy(self, password: Any) -> bool:
        """Spend one full verification on a throwaway hash. Always ``False``."""
        candidate = password if isinstance(password, str) and password else "x"
        check_password_hash(self._dummy_hash, candidate)
        return False
