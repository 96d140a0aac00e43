import asyncio
import json

import pytest

from stockbroker.core.errors import AlreadySubscribed, StorageError, ValidationFailed
from stockbroker.schemas import UserProfile
from stockbroker.services import subscriptions


@pytest.fixture
def session(sessions):
    return sessions.open(UserProfile(email="a@b.com"))


def stored(raw):
    return json.loads(raw.get("user_a@b.com"))["subscriptions"]


async def test_subscribe_persists_full_profile(store, session, raw):
    message = await subscriptions.subscribe(store, session, "TSLA")
    assert message == "Successfully subscribed to TSLA!"
    assert session.subscriptions == ["TSLA"]
    assert json.loads(raw.get("user_a@b.com")) == {"email": "a@b.com", "subscriptions": ["TSLA"]}

    await subscriptions.subscribe(store, session, "goog")
    assert session.subscriptions == ["TSLA", "GOOG"]
    assert stored(raw) == session.subscriptions


async def test_subscribe_twice_never_duplicates(store, session, raw):
    await subscriptions.subscribe(store, session, "NVDA")
    with pytest.raises(AlreadySubscribed) as info:
        await subscriptions.subscribe(store, session, "NVDA")
    assert info.value.message == "You are already subscribed to this stock"
    assert session.subscriptions == ["NVDA"]
    assert stored(raw) == ["NVDA"]


@pytest.mark.parametrize("ticker, message", [
    (None, "Please select a stock to subscribe"),
    ("", "Please select a stock to subscribe"),
    ("AAPL", "Unknown ticker: AAPL"),
])
async def test_subscribe_rejects_bad_ticker(store, session, raw, ticker, message):
    with pytest.raises(ValidationFailed) as info:
        await subscriptions.subscribe(store, session, ticker)
    assert info.value.message == message
    assert session.subscriptions == []
    assert raw.get("user_a@b.com") is None


async def test_unsubscribe_is_unconditional(store, session, raw):
    await subscriptions.subscribe(store, session, "META")
    await subscriptions.subscribe(store, session, "AMZN")

    assert await subscriptions.unsubscribe(store, session, "META") == "Unsubscribed from META"
    assert session.subscriptions == ["AMZN"]
    assert stored(raw) == ["AMZN"]

    # Not subscribed: still succeeds and still persists
    await subscriptions.unsubscribe(store, session, "GOOG")
    assert session.subscriptions == ["AMZN"]
    assert stored(raw) == ["AMZN"]


async def test_failed_write_keeps_memory_and_store_equal(store, session, server, raw):
    await subscriptions.subscribe(store, session, "TSLA")

    server.connected = False
    with pytest.raises(StorageError) as info:
        await subscriptions.subscribe(store, session, "GOOG")
    assert info.value.message == "Failed to subscribe. Please try again."
    with pytest.raises(StorageError) as info:
        await subscriptions.unsubscribe(store, session, "TSLA")
    assert info.value.message == "Failed to unsubscribe. Please try again."
    server.connected = True

    assert session.subscriptions == ["TSLA"]
    assert stored(raw) == ["TSLA"]


async def test_load_profile_defaults(store, raw):
    profile, notice = await subscriptions.load_profile(store, "new@b.com")
    assert profile == UserProfile(email="new@b.com", subscriptions=[])
    assert notice is None


async def test_load_profile_drops_unknown_and_duplicate_tickers(store, raw):
    raw.set("user_a@b.com", json.dumps({"email": "a@b.com", "subscriptions": ["TSLA", "XYZ", "TSLA", "GOOG"]}))
    profile, _ = await subscriptions.load_profile(store, "a@b.com")
    assert profile.subscriptions == ["TSLA", "GOOG"]


async def test_load_profile_when_store_down(store, server):
    server.connected = False
    profile, notice = await subscriptions.load_profile(store, "a@b.com")
    assert profile.subscriptions == []
    assert notice == subscriptions.LOAD_FAILED_NOTICE


async def test_concurrent_subscribes_keep_both_tickers(store, session, raw):
    results = await asyncio.gather(
        subscriptions.subscribe(store, session, "TSLA"),
        subscriptions.subscribe(store, session, "GOOG"),
    )

    assert results == ["Successfully subscribed to TSLA!", "Successfully subscribed to GOOG!"]
    assert session.subscriptions == ["TSLA", "GOOG"]
    assert stored(raw) == ["TSLA", "GOOG"]


async def test_concurrent_duplicate_subscribe_is_rejected(store, session, raw):
    results = await asyncio.gather(
        subscriptions.subscribe(store, session, "META"),
        subscriptions.subscribe(store, session, "META"),
        return_exceptions=True,
    )

    assert results[0] == "Successfully subscribed to META!"
    assert isinstance(results[1], AlreadySubscribed)
    assert session.subscriptions == ["META"]
    assert stored(raw) == ["META"]


async def test_concurrent_subscribe_and_unsubscribe(store, session, raw):
    await subscriptions.subscribe(store, session, "NVDA")
    await asyncio.gather(
        subscriptions.subscribe(store, session, "AMZN"),
        subscriptions.unsubscribe(store, session, "NVDA"),
    )

    assert session.subscriptions == ["AMZN"]
    assert stored(raw) == ["AMZN"]
