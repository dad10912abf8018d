"""
Authentication collaborator and a local reference implementation.

The monitoring core only needs `is_authenticated()` and `current_user_id()`.
`LocalAuthService` provides them on top of the storage collaborator, with
registration, scrypt password hashing, account lockout, expiring sessions and
a security audit log.
"""

import os
import secrets
import uuid
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Literal, Protocol

import structlog
from cryptography.exceptions import InvalidKey
from cryptography.hazmat.primitives.kdf.scrypt import Scrypt
from pydantic import BaseModel, ValidationError

from vitalcheck.config import SecurityConfig
from vitalcheck.domain.models import SecurityEvent, SessionInfo, UserInfo, UserRole
from vitalcheck.errors import StorageError
from vitalcheck.services.storage import StorageBackend

logger = structlog.get_logger(__name__)

SESSION_KEY = "session"

EventSeverity = Literal["info", "warning", "critical"]


class Authenticator(Protocol):
    """What the monitoring core asks of authentication."""

    def is_authenticated(self) -> bool: ...

    def current_user_id(self) -> str | None: ...


@dataclass(frozen=True)
class AuthResult:
    """Outcome of a login or registration attempt."""

    success: bool
    message: str


class StoredUser(BaseModel):
    """User record as persisted; never leaves this module."""

    id: str
    email: str
    name: str
    role: UserRole = "patient"
    password_hash: str
    salt: str

    def to_info(self) -> UserInfo:
        return UserInfo(id=self.id, email=self.email, name=self.name, role=self.role)


def _scrypt(salt: bytes) -> Scrypt:
    return Scrypt(salt=salt, length=32, n=2**14, r=8, p=1)


def hash_password(password: str, salt: bytes) -> str:
    return _scrypt(salt).derive(password.encode()).hex()


def verify_password(password: str, salt: bytes, expected_hash: str) -> bool:
    try:
        _scrypt(salt).verify(password.encode(), bytes.fromhex(expected_hash))
    except InvalidKey:
        return False
    return True


def _user_key(email: str) -> str:
    return f"user_{email}"


def _user_index_key(user_id: str) -> str:
    return f"user_index_{user_id}"


def _normalize_email(email: str) -> str:
    return email.strip().lower()


class LocalAuthService:
    """
    On-device authentication.

    Design principles:
    - Fail closed: any storage or parsing problem means "not authenticated"
    - Bounded: only the most recent warning/critical events are retained
    """

    def __init__(
        self,
        storage: StorageBackend,
        config: SecurityConfig,
        clock: Callable[[], datetime] = lambda: datetime.now(UTC),
    ) -> None:
        self.storage = storage
        self.config = config
        self._clock = clock
        self.logger = logger.bind(component="auth_service")

        self._session: SessionInfo | None = None
        self._user: UserInfo | None = None
        self._failed_attempts: dict[str, int] = {}
        self._locked_until: dict[str, datetime] = {}
        self._events: deque[SecurityEvent] = deque(maxlen=config.security_log_retention)

    # Authenticator protocol

    def is_authenticated(self) -> bool:
        if self._session is None:
            return False
        return self._session.expires_at > self._clock()

    def current_user_id(self) -> str | None:
        if not self.is_authenticated() or self._user is None:
            return None
        return self._user.id

    def current_user(self) -> UserInfo | None:
        return self._user if self.is_authenticated() else None

    # Account lifecycle

    async def register(
        self, name: str, email: str, password: str, role: UserRole = "patient"
    ) -> AuthResult:
        email = _normalize_email(email)
        try:
            if await self.storage.get(_user_key(email)) is not None:
                return AuthResult(False, "Email is already registered")

            salt = os.urandom(16)
            user = StoredUser(
                id=f"user_{uuid.uuid4().hex}",
                email=email,
                name=name,
                role=role,
                password_hash=hash_password(password, salt),
                salt=salt.hex(),
            )
            await self.storage.set(_user_key(email), user.model_dump_json().encode())
            await self.storage.set(_user_index_key(user.id), email.encode())
        except StorageError as e:
            self.log_security_event("Registration error", "warning", error=str(e))
            return AuthResult(False, "An error occurred during registration")

        self.log_security_event("User registered", "info", user_id=user.id)
        return AuthResult(True, "Registration successful")

    async def login(self, email: str, password: str) -> AuthResult:
        email = _normalize_email(email)

        if self._is_locked(email):
            return AuthResult(
                False,
                "Account is temporarily locked due to multiple failed login attempts. "
                "Try again later.",
            )

        try:
            user = await self._load_user(email)
        except StorageError as e:
            self.log_security_event("Login error", "warning", error=str(e))
            return AuthResult(False, "An error occurred during login")

        if user is None or not verify_password(
            password, bytes.fromhex(user.salt), user.password_hash
        ):
            self._record_failed_attempt(email)
            return AuthResult(False, "Invalid email or password")

        self._failed_attempts.pop(email, None)
        self._locked_until.pop(email, None)

        self._user = user.to_info()
        self._session = SessionInfo(
            user_id=user.id,
            token=secrets.token_urlsafe(32),
            expires_at=self._clock() + timedelta(hours=self.config.session_duration_hours),
            device_id=f"{os.name}_{secrets.token_hex(4)}",
        )
        try:
            await self.storage.set(SESSION_KEY, self._session.model_dump_json().encode())
        except StorageError as e:
            # The session is valid in memory; it just won't survive a restart
            self.log_security_event("Session persist error", "warning", error=str(e))

        self.log_security_event("User logged in", "info", user_id=user.id)
        return AuthResult(True, "Login successful")

    async def logout(self) -> None:
        if self._user is not None:
            self.log_security_event("User logged out", "info", user_id=self._user.id)
        self._user = None
        self._session = None
        try:
            await self.storage.delete(SESSION_KEY)
        except StorageError as e:
            self.log_security_event("Session removal error", "warning", error=str(e))

    async def restore_session(self) -> bool:
        """Reload a persisted, unexpired session. Expired sessions are discarded."""
        try:
            raw = await self.storage.get(SESSION_KEY)
            if raw is None:
                return False
            session = SessionInfo.model_validate_json(raw)
            if session.expires_at <= self._clock():
                await self.storage.delete(SESSION_KEY)
                return False

            email = await self.storage.get(_user_index_key(session.user_id))
            user = await self._load_user(email.decode()) if email else None
        except (StorageError, ValidationError) as e:
            self.logger.warning("session_restore_failed", error=str(e))
            return False

        if user is None:
            await self.logout()
            return False

        self._session = session
        self._user = user.to_info()
        self.log_security_event("Session restored", "info", user_id=user.id)
        return True

    # Access control

    def can_access_health_data(self, user_id: str) -> bool:
        current = self.current_user()
        if current is None:
            return False

        if current.role == "admin":
            self.log_security_event("Admin accessed health data", "info", target_user_id=user_id)
            return True

        # Users can only access their own data
        if current.id != user_id:
            self.log_security_event(
                "Unauthorized health data access attempt",
                "warning",
                target_user_id=user_id,
            )
            return False
        return True

    # Security logging

    def log_security_event(self, action: str, severity: EventSeverity, **details: object) -> None:
        event = SecurityEvent(
            action=action,
            severity=severity,
            user_id=self._user.id if self._user else None,
            details={k: str(v) for k, v in details.items()},
            timestamp=self._clock(),
        )
        log = getattr(self.logger, severity)
        log("security_event", action=action, actor=event.user_id, **event.details)

        if severity in ("warning", "critical"):
            self._events.append(event)

    def security_events(self) -> list[SecurityEvent]:
        return list(self._events)

    # Internals

    async def _load_user(self, email: str) -> StoredUser | None:
        raw = await self.storage.get(_user_key(email))
        if raw is None:
            return None
        try:
            return StoredUser.model_validate_json(raw)
        except ValidationError as e:
            self.logger.error("user_record_corrupt", email=email, error=str(e))
            return None

    def _is_locked(self, email: str) -> bool:
        locked_until = self._locked_until.get(email)
        if locked_until is None:
            return False
        if self._clock() > locked_until:
            del self._locked_until[email]
            self._failed_attempts.pop(email, None)
            return False
        return True

    def _record_failed_attempt(self, email: str) -> None:
        attempts = self._failed_attempts.get(email, 0) + 1
        self._failed_attempts[email] = attempts
        locking = attempts >= self.config.lockout_threshold

        self.log_security_event(
            "Failed login attempt",
            "warning" if locking else "info",
            email=email,
            attempts=attempts,
        )

        if locking:
            self._locked_until[email] = self._clock() + timedelta(
                minutes=self.config.lockout_minutes
            )
            self.log_security_event(
                "Account locked",
                "warning",
                email=email,
                lock_expiration=self._locked_until[email].isoformat(),
            )
