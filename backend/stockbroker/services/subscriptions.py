from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional, Tuple

from ..core.config import settings
from ..core.errors import AlreadySubscribed, StorageError, ValidationFailed
from ..schemas import UserProfile
from ..store import KeyValueStore

if TYPE_CHECKING:
    from .sessions import Session

logger = logging.getLogger(__name__)

LOAD_FAILED_NOTICE = "Failed to load your saved data. Starting fresh."


async def load_profile(store: KeyValueStore, email: str) -> Tuple[UserProfile, Optional[str]]:
    """
    Load the saved profile for `email`.

    Returns the profile and an optional notice for the user. A missing record
    gives an empty profile; an unreadable one also gives an empty profile plus
    a notice, so a storage problem never blocks the login itself.
    """
    try:
        profile = await store.load_profile(email)
    except StorageError:
        logger.warning("Starting %s with an empty profile after a load failure", email)
        return UserProfile(email=email), LOAD_FAILED_NOTICE
    if profile is None:
        return UserProfile(email=email), None
    # Drop anything outside the universe and any duplicates from older records
    known = set(settings.tickers)
    cleaned = list(dict.fromkeys(t for t in profile.subscriptions if t in known))
    return UserProfile(email=email, subscriptions=cleaned), None


async def subscribe(store: KeyValueStore, session: Session, ticker: Optional[str]) -> str:
    if not ticker:
        raise ValidationFailed("Please select a stock to subscribe", code="ticker_required")
    ticker = ticker.upper()
    if ticker not in settings.tickers:
        raise ValidationFailed(f"Unknown ticker: {ticker}", code="ticker_unknown")

    async with session.lock:
        if ticker in session.subscriptions:
            raise AlreadySubscribed("You are already subscribed to this stock", code="already_subscribed")
        updated = UserProfile(email=session.email, subscriptions=[*session.subscriptions, ticker])
        try:
            await store.save_profile(updated)
        except StorageError as e:
            raise StorageError("Failed to subscribe. Please try again.",
                               code=e.code, original_exception=e.original_exception)
        session.subscriptions[:] = updated.subscriptions
    logger.info("%s subscribed to %s", session.email, ticker)
    return f"Successfully subscribed to {ticker}!"


async def unsubscribe(store: KeyValueStore, session: Session, ticker: str) -> str:
    ticker = ticker.upper()
    async with session.lock:
        updated = UserProfile(
            email=session.email,
            subscriptions=[s for s in session.subscriptions if s != ticker],
        )
        try:
            await store.save_profile(updated)
        except StorageError as e:
            raise StorageError("Failed to unsubscribe. Please try again.",
                               code=e.code, original_exception=e.original_exception)
        session.subscriptions[:] = updated.subscriptions
    logger.info("%s unsubscribed from %s", session.email, ticker)
    return f"Unsubscribed from {ticker}"
