"""Signup and login rules for the auth gateway."""

from __future__ import annotations

import logging
import re
import secrets
from typing import Optional

from .errors import (
    AuthenticationError,
    ConflictError,
    StoreError,
    UnexpectedRecordError,
    ValidationError,
)
from .models import User
from .store import UserStore, storage_key

logger = logging.getLogger("authgateway.auth")

MIN_PASSWORD_LENGTH = 6

MISSING_CREDENTIALS = "Email and password are required"
INVALID_EMAIL = "Invalid email format"
PASSWORD_TOO_SHORT = f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
USER_EXISTS = "User already exists"
INVALID_CREDENTIALS = "Invalid credentials"

SIGNUP_SUCCESS = "User created successfully"
LOGIN_SUCCESS = "Login successful"

_EMAIL_PATTERN = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")


def is_valid_email(email: str) -> bool:
    return _EMAIL_PATTERN.fullmatch(email) is not None


def _passwords_match(provided: str, stored: Optional[str]) -> bool:
    if stored is None:
        return False
    return secrets.compare_digest(provided.encode("utf-8"), stored.encode("utf-8"))


def _require_credentials(email: Optional[str], password: Optional[str]) -> tuple[str, str]:
    if not email or not password:
        raise ValidationError(MISSING_CREDENTIALS)
    if not is_valid_email(email):
        raise ValidationError(INVALID_EMAIL)
    return email, password


class AuthService:
    """Validate credentials and read or create user records."""

    def __init__(self, store: UserStore) -> None:
        self._store = store

    async def signup(self, email: Optional[str], password: Optional[str]) -> str:
        email, password = _require_credentials(email, password)
        if len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(PASSWORD_TOO_SHORT)

        key = storage_key(email)
        try:
            existing = await self._find_user(key)
        except UnexpectedRecordError as exc:
            logger.warning("Storage key %s already holds a non-record value", key)
            raise ConflictError(USER_EXISTS) from exc
        if existing is not None:
            raise ConflictError(USER_EXISTS)

        # Existence check and write are not atomic; a concurrent signup for the
        # same key can overwrite this record.
        await self._store.put(key, User(email=email, password=password))
        logger.info("Created user record %s", key)
        return SIGNUP_SUCCESS

    async def login(self, email: Optional[str], password: Optional[str]) -> str:
        email, password = _require_credentials(email, password)

        key = storage_key(email)
        try:
            user = await self._find_user(key)
        except UnexpectedRecordError as exc:
            logger.warning("Storage key %s holds a non-record value", key)
            raise AuthenticationError(INVALID_CREDENTIALS) from exc
        if user is None or not _passwords_match(password, user.password):
            logger.info("Rejected login for %s", key)
            raise AuthenticationError(INVALID_CREDENTIALS)

        logger.info("User %s logged in", key)
        return LOGIN_SUCCESS

    async def lookup(self, email: str) -> Optional[User]:
        """Return the stored record for ``email`` without masking store failures."""

        return await self._store.get(storage_key(email))

    async def _find_user(self, key: str) -> Optional[User]:
        try:
            return await self._store.get(key)
        except UnexpectedRecordError:
            raise
        except StoreError as exc:
            if not self._store.settings.lookup_errors_as_absent:
                raise
            logger.warning("Treating failed lookup of %s as absent: %s", key, exc)
            return None


__all__ = [
    "AuthService",
    "INVALID_CREDENTIALS",
    "INVALID_EMAIL",
    "LOGIN_SUCCESS",
    "MIN_PASSWORD_LENGTH",
    "MISSING_CREDENTIALS",
    "PASSWORD_TOO_SHORT",
    "SIGNUP_SUCCESS",
    "USER_EXISTS",
    "is_valid_email",
]
