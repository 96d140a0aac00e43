from __future__ import annotations

import asyncio
import logging
import secrets
from dataclasses import dataclass, field
from typing import Dict, Optional, Set

from ..core.errors import SessionRequired
from ..schemas import UserProfile
from .history import HistoryBuffer
from .simulator import PriceSimulator

logger = logging.getLogger(__name__)


@dataclass
class Session:
    token: str
    email: str
    subscriptions: list[str]
    history: HistoryBuffer
    prices: Dict[str, float] = field(default_factory=dict)
    listener_id: Optional[str] = None
    notice: Optional[str] = None
    watchers: Set[asyncio.Queue] = field(default_factory=set)
    # Held across build, save and assign of a profile change
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)

    def profile(self) -> UserProfile:
        return UserProfile(email=self.email, subscriptions=list(self.subscriptions))

    def on_prices(self, prices: Dict[str, float]) -> None:
        self.prices = dict(prices)
        self.history.record(prices)
        self._publish(self.prices)

    def _publish(self, update: Optional[Dict[str, float]]) -> None:
        for queue in self.watchers:
            # Slow consumers only ever see the newest update
            if queue.full():
                queue.get_nowait()
            queue.put_nowait(update)

    def watch(self) -> asyncio.Queue:
        queue: asyncio.Queue = asyncio.Queue(maxsize=1)
        self.watchers.add(queue)
        return queue

    def unwatch(self, queue: asyncio.Queue) -> None:
        self.watchers.discard(queue)


class SessionManager:
    """Logged-in sessions by token, each wired to the simulator by one listener."""

    def __init__(self, simulator: PriceSimulator, history_size: int = 20,
                 time_format: str = "%H:%M:%S"):
        self.simulator = simulator
        self.history_size = history_size
        self.time_format = time_format
        self._sessions: Dict[str, Session] = {}

    def open(self, profile: UserProfile, notice: Optional[str] = None) -> Session:
        session = Session(
            token=secrets.token_urlsafe(24),
            email=profile.email,
            subscriptions=list(profile.subscriptions),
            history=HistoryBuffer(self.history_size, self.time_format),
            notice=notice,
        )
        # Seed once from the current table so the dashboard is never blank
        session.on_prices(self.simulator.snapshot())
        session.listener_id = self.simulator.add_listener(session.on_prices)
        self._sessions[session.token] = session
        logger.info("Session opened for %s", session.email)
        return session

    def get(self, token: Optional[str]) -> Optional[Session]:
        if not token:
            return None
        return self._sessions.get(token)

    def require(self, token: Optional[str]) -> Session:
        session = self.get(token)
        if session is None:
            raise SessionRequired()
        return session

    def close(self, token: Optional[str]) -> bool:
        session = self._sessions.pop(token, None) if token else None
        if session is None:
            return False
        if session.listener_id is not None:
            self.simulator.remove_listener(session.listener_id)
            session.listener_id = None
        session.subscriptions.clear()
        session.history.clear()
        session.prices.clear()
        # None tells open dashboard streams the session is gone
        session._publish(None)
        session.watchers.clear()
        logger.info("Session closed for %s", session.email)
        return True

    def close_all(self) -> None:
        for token in list(self._sessions):
            self.close(token)

    def __len__(self) -> int:
        return len(self._sessions)
