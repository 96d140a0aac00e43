from __future__ import annotations

import logging

from ..core.config import settings
from ..core.errors import (
    AccountExists, AccountNotFound, InvalidCredentials, StorageError, ValidationFailed,
)
from ..schemas import CredentialRecord
from ..store import KeyValueStore
from .sessions import Session, SessionManager
from .subscriptions import load_profile

logger = logging.getLogger(__name__)

REGISTERED_MESSAGE = "Account created successfully! Please login."
LOGIN_MESSAGE = "Login successful!"


def _check_email(email: str) -> None:
    if not email.strip():
        raise ValidationFailed("Please enter your email address", code="email_required")
    if "@" not in email or "." not in email:
        raise ValidationFailed("Please enter a valid email address", code="email_invalid")


async def register(store: KeyValueStore, email: str, password: str) -> str:
    _check_email(email)
    if not password.strip():
        raise ValidationFailed("Please enter a password", code="password_required")
    if len(password) < settings.min_password_length:
        raise ValidationFailed(
            f"Password must be at least {settings.min_password_length} characters long",
            code="password_too_short",
        )

    user_email = email.lower()
    try:
        created = await store.create_credentials(CredentialRecord(email=user_email, password=password))
    except StorageError as e:
        raise StorageError("Registration failed. Please try again.",
                           code=e.code, original_exception=e.original_exception)
    if not created:
        raise AccountExists(
            "An account with this email already exists. Please login.",
            code="account_exists",
        )

    logger.info("Registered %s", user_email)
    return REGISTERED_MESSAGE


async def login(store: KeyValueStore, sessions: SessionManager, email: str, password: str) -> Session:
    _check_email(email)
    if not password.strip():
        raise ValidationFailed("Please enter your password", code="password_required")

    user_email = email.lower()
    try:
        record = await store.load_credentials(user_email)
    except StorageError as e:
        raise StorageError("Login failed. Please try again.",
                           code=e.code, original_exception=e.original_exception)
    if record is None:
        raise AccountNotFound(
            "No account found with this email. Please register first.",
            code="account_not_found",
        )
    if record.password != password:
        logger.info("Rejected login for %s: wrong password", user_email)
        raise InvalidCredentials("Incorrect password. Please try again.", code="wrong_password")

    profile, notice = await load_profile(store, user_email)
    session = sessions.open(profile, notice=notice)
    logger.info("Logged in %s", user_email)
    return session


def logout(sessions: SessionManager, token: str | None) -> bool:
    return sessions.close(token)
