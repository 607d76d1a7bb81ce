# authcore/services/auth/service.py
from __future__ import annotations

import math
import time
from typing import Any

from sqlalchemy.exc import IntegrityError

from authcore.models.user import normalize_email
from authcore.repositories.user import UNIQUE_EMAIL_CONSTRAINT, UserRepository
from authcore.services._shared.base import BaseService, ServiceContext
from authcore.services._shared.errors import (
    AuthenticationError,
    ConflictError,
    ValidationError,
    violates,
)
from authcore.services._shared.ports import (
    RefreshTokenStore,
    RevocationStore,
    RotationResult,
    TokenCodec,
)
from authcore.services._shared.ports.token_codec import SUBJECT_CLAIM
from authcore.services._shared.result import Outcome
from authcore.services.auth import events
from authcore.services.auth.dto import (
    LoginIn,
    LogoutIn,
    LogoutOut,
    RefreshIn,
    RegisterIn,
    SessionOut,
    UserPublicOut,
)
from authcore.services.auth.passwords import PasswordHasher
from authcore.services.auth.validation import is_present, validate_register

INVALID_CREDENTIALS = "Invalid credentials"
TOKEN_REQUIRED = "Token is required"
INVALID_TOKEN = "Invalid or expired token"
MISSING_USER_ID = "Invalid token: missing user id"
INVALID_REFRESH = "Invalid refresh token"
REGISTRATION_FAILED = "Registration failed"


class SessionService(BaseService):
    """
    Authentication lifecycle service (register / login / me / logout / refresh).

    Access tokens are signed by a :class:`TokenCodec` and denied early through a
    :class:`RevocationStore`; refresh tokens live in a :class:`RefreshTokenStore`
    with atomic single-use rotation.

    Every operation returns an :class:`Outcome`. Expected failures (bad input,
    bad credentials, duplicates, bad tokens) come back as typed errors; store
    outages propagate as exceptions.
    """

    def __init__(
        self,
        *,
        token_codec: TokenCodec,
        revocation_store: RevocationStore,
        refresh_store: RefreshTokenStore,
        hasher: PasswordHasher,
        ctx: ServiceContext | None = None,
    ) -> None:
        """
        Initialize the service with its dependencies.

        :param token_codec: Adapter for issuing/verifying access tokens.
        :param revocation_store: Denylist for logged-out access tokens.
        :param refresh_store: Stateful store for refresh tokens (atomic rotation).
        :param hasher: Password hasher.
        :param ctx: Request-scoped context.
        """
        super().__init__(ctx=ctx)
        self.tokens = token_codec
        self.revocations = revocation_store
        self.refresh_store = refresh_store
        self.hasher = hasher

    @classmethod
    def from_components(cls, components, *, ctx: ServiceContext | None = None) -> SessionService:
        """Build from :class:`authcore.core.extensions.AuthComponents`."""
        return cls(
            token_codec=components.token_codec,
            revocation_store=components.revocation_store,
            refresh_store=components.refresh_store,
            hasher=components.hasher,
            ctx=ctx,
        )

    # ------------------------------------------------------------------ #
    # Register
    # ------------------------------------------------------------------ #

    def register(self, dto: RegisterIn) -> Outcome[SessionOut]:
        """
        Create an account and open a session.

        The password is hashed before the existence check, so a taken email
        costs as much time as a fresh one.

        :param dto: Registration input.
        :returns: Session on success; ``ValidationError`` or ``ConflictError``.
        """
        violations = validate_register(dto.email, dto.password, dto.name)
        if violations:
            events.registration_attempt(
                dto.email, self.ctx.client_ip, success=False, reason="validation_failed"
            )
            return Outcome.failure(ValidationError(violations))

        email = normalize_email(dto.email)
        name = dto.name.strip()
        password_hash = self.hasher.hash(dto.password)

        try:
            with self.rw_uow() as uow:
                repo: UserRepository = uow.users
                if repo.exists_by_email(email):
                    events.registration_attempt(
                        email, self.ctx.client_ip, success=False, reason="email_exists"
                    )
                    return Outcome.failure(ConflictError("User", REGISTRATION_FAILED))
                user = UserPublicOut.from_model(
                    repo.create(email=email, password_hash=password_hash, name=name)
                )
        except IntegrityError as exc:
            # Lost a concurrent registration race at the unique index
            if not violates(exc, UNIQUE_EMAIL_CONSTRAINT):
                raise
            events.registration_attempt(
                email, self.ctx.client_ip, success=False, reason="email_exists"
            )
            return Outcome.failure(ConflictError("User", REGISTRATION_FAILED))

        events.registration_attempt(email, self.ctx.client_ip, success=True)
        return Outcome.success(self._open_session(user))

    # ------------------------------------------------------------------ #
    # Login
    # ------------------------------------------------------------------ #

    def login(self, dto: LoginIn) -> Outcome[SessionOut]:
        """
        Authenticate credentials and open a session.

        Every failure returns the same ``AuthenticationError``. When no user
        matches, a dummy hash is verified so the response time does not reveal
        whether the email is registered.
        """
        if not is_present(dto.email) or not is_present(dto.password):
            self.hasher.verify_dummy(dto.password)
            events.failed_login(dto.email, self.ctx.client_ip, reason="missing_fields")
            return Outcome.failure(AuthenticationError(INVALID_CREDENTIALS))

        email = normalize_email(dto.email)
        with self.ro_uow() as uow:
            row = uow.users.get_by_email(email)
            if row is None:
                user, password_hash = None, None
            else:
                user, password_hash = UserPublicOut.from_model(row), row.password_hash

        if user is None:
            self.hasher.verify_dummy(dto.password)
            events.failed_login(email, self.ctx.client_ip, reason="unknown_user")
            return Outcome.failure(AuthenticationError(INVALID_CREDENTIALS))

        if not self.hasher.verify(dto.password, password_hash):
            events.failed_login(email, self.ctx.client_ip, reason="wrong_password")
            return Outcome.failure(AuthenticationError(INVALID_CREDENTIALS))

        events.successful_login(user.id, user.email, self.ctx.client_ip)
        return Outcome.success(self._open_session(user))

    # ------------------------------------------------------------------ #
    # Current user
    # ------------------------------------------------------------------ #

    def get_current_user(self, token: Any) -> Outcome[UserPublicOut]:
        """
        Resolve the user behind a bearer access token.

        :returns: The user; ``AuthenticationError`` for a missing, invalid,
                  expired or revoked token, or one whose user no longer exists.
        """
        checked = self._authenticate_token(token)
        if not checked.ok:
            return Outcome.failure(checked.error)  # type: ignore[arg-type]
        user_id, _ = checked.unwrap()

        with self.ro_uow() as uow:
            row = uow.users.get(user_id)
            user = UserPublicOut.from_model(row) if row is not None else None

        if user is None:
            events.token_validation_failure(self.ctx.client_ip, reason="user_not_found")
            return Outcome.failure(AuthenticationError(INVALID_TOKEN))
        return Outcome.success(user)

    # ------------------------------------------------------------------ #
    # Logout
    # ------------------------------------------------------------------ #

    def logout(self, dto: LogoutIn) -> Outcome[LogoutOut]:
        """
        Revoke the access token for the rest of its lifetime.

        A refresh token presented alongside is revoked too, but only when it
        belongs to the same user. If the access-token revoke fails, the error
        propagates and the refresh token is left untouched.
        """
        checked = self._authenticate_token(dto.token)
        if not checked.ok:
            return Outcome.failure(checked.error)  # type: ignore[arg-type]
        user_id, claims = checked.unwrap()

        remaining = math.ceil(float(claims.get("exp", 0)) - time.time())
        self.revocations.revoke(dto.token.strip(), max(1, remaining))

        refresh_revoked = False
        if is_present(dto.refresh_token):
            record = self.refresh_store.find_by_raw_token(dto.refresh_token)
            if record is not None and record.user_id == user_id:
                refresh_revoked = self.refresh_store.revoke(record)

        events.logout(user_id, self.ctx.client_ip, refresh_revoked=refresh_revoked)
        return Outcome.success(LogoutOut(refresh_revoked=refresh_revoked))

    # ------------------------------------------------------------------ #
    # Refresh with atomic rotation
    # ------------------------------------------------------------------ #

    def refresh_session(self, dto: RefreshIn) -> Outcome[SessionOut]:
        """
        Exchange a refresh token for a new access token and a new refresh token.

        Security
        --------
        - The presented token is consumed atomically; it never works twice.
        - Presenting an already consumed token (replay, or losing a concurrent
          rotation) revokes every token descended from it.
        - All failures share one generic message.
        """
        failure: Outcome[SessionOut] = Outcome.failure(AuthenticationError(INVALID_REFRESH))
        if not is_present(dto.refresh_token):
            return failure

        record = self.refresh_store.find_by_raw_token(dto.refresh_token)
        if record is None:
            events.token_validation_failure(self.ctx.client_ip, reason="refresh_not_found")
            return failure

        rotation = self.refresh_store.rotate(record)
        if rotation.result is RotationResult.REPLAYED:
            revoked = self.refresh_store.revoke_chain(record)
            events.refresh_replay_detected(record.user_id, self.ctx.client_ip, revoked=revoked)
            return failure
        if not rotation.ok or rotation.issued is None:
            events.token_validation_failure(
                self.ctx.client_ip, reason=f"refresh_{rotation.result.name.lower()}"
            )
            return failure

        issued = rotation.issued
        with self.ro_uow() as uow:
            row = uow.users.get(record.user_id)
            user = UserPublicOut.from_model(row) if row is not None else None

        if user is None:
            self.refresh_store.revoke(issued.record)
            events.token_validation_failure(self.ctx.client_ip, reason="user_not_found")
            return failure

        events.refresh_rotated(user.id, self.ctx.client_ip)
        return Outcome.success(
            SessionOut(user=user, token=self._issue_access(user), refresh_token=issued.raw_token)
        )

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #

    def _issue_access(self, user: UserPublicOut) -> str:
        return self.tokens.issue({SUBJECT_CLAIM: user.id, "email": user.email})

    def _open_session(self, user: UserPublicOut) -> SessionOut:
        token = self._issue_access(user)
        issued = self.refresh_store.create(user.id)
        return SessionOut(user=user, token=token, refresh_token=issued.raw_token)

    def _authenticate_token(self, token: Any) -> Outcome[tuple[int, dict[str, Any]]]:
        """Verify signature, expiry, revocation and subject of an access token."""
        if not is_present(token):
            return Outcome.failure(AuthenticationError(TOKEN_REQUIRED))
        token = token.strip()

        verification = self.tokens.verify(token)
        if not verification.valid:
            events.token_validation_failure(
                self.ctx.client_ip, reason=verification.status.name.lower()
            )
            return Outcome.failure(AuthenticationError(INVALID_TOKEN))
        if self.revocations.is_revoked(token):
            events.token_validation_failure(self.ctx.client_ip, reason="revoked")
            return Outcome.failure(AuthenticationError(INVALID_TOKEN))

        user_id = self._coerce_user_id(verification.claims.get(SUBJECT_CLAIM))
        if user_id is None:
            events.token_validation_failure(self.ctx.client_ip, reason="missing_user_id")
            return Outcome.failure(AuthenticationError(MISSING_USER_ID))
        return Outcome.success((user_id, verification.claims))

    @staticmethod
    def _coerce_user_id(subject: Any) -> int | None:
        """Treat the ``uid`` claim as an integer user id, or ``None``."""
        if isinstance(subject, bool):
            return None
        if isinstance(subject, int):
            return subject
        if isinstance(subject, str) and subject.isdigit():
            return int(subject)
        return None
