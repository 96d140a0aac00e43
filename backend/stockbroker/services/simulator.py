from __future__ import annotations

import asyncio
import logging
import uuid
from typing import Callable, Dict, Mapping, Optional

import numpy as np

logger = logging.getLogger(__name__)

PriceListener = Callable[[Dict[str, float]], None]


class PriceSimulator:
    """
    Process-wide random-walk price table.

    One clock task advances every ticker each `tick_interval` seconds and
    pushes a copy of the new table to every registered listener. Listeners
    are keyed by the id returned from `add_listener`.
    """

    def __init__(
        self,
        initial_prices: Mapping[str, float],
        tick_interval: float = 2.0,
        max_step: float = 2.5,
        price_floor: float = 10.0,
        seed: Optional[int] = None,
    ):
        self.tick_interval = tick_interval
        self.max_step = max_step
        self.price_floor = price_floor
        self._prices: Dict[str, float] = {t: max(price_floor, float(p)) for t, p in initial_prices.items()}
        self._listeners: Dict[str, PriceListener] = {}
        self._rng = np.random.default_rng(seed)
        self._task: Optional[asyncio.Task] = None
        self.ticks = 0

    @property
    def tickers(self) -> list[str]:
        return list(self._prices)

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def snapshot(self) -> Dict[str, float]:
        return dict(self._prices)

    def add_listener(self, callback: PriceListener) -> str:
        listener_id = uuid.uuid4().hex
        self._listeners[listener_id] = callback
        logger.debug("Listener %s registered (%d active)", listener_id, len(self._listeners))
        return listener_id

    def remove_listener(self, listener_id: str) -> None:
        if self._listeners.pop(listener_id, None) is not None:
            logger.debug("Listener %s removed (%d active)", listener_id, len(self._listeners))

    def listener_count(self) -> int:
        return len(self._listeners)

    def tick(self) -> Dict[str, float]:
        tickers = list(self._prices)
        deltas = self._rng.uniform(-self.max_step, self.max_step, size=len(tickers))
        new_prices = {
            t: max(self.price_floor, self._prices[t] + float(d))
            for t, d in zip(tickers, deltas)
        }
        self._prices = new_prices
        self.ticks += 1
        logger.debug("Tick %d: %s", self.ticks, new_prices)

        # Copy the registry so listeners may deregister while being notified
        for listener_id, callback in list(self._listeners.items()):
            try:
                callback(dict(new_prices))
            except Exception:
                logger.exception("Price listener %s failed", listener_id)
        return dict(new_prices)

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.tick_interval)
            self.tick()

    def start(self) -> None:
        if self.running:
            return
        logger.info("Price simulator started (%.1fs interval, %d tickers)",
                    self.tick_interval, len(self._prices))
        self._task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Price simulator stopped after %d ticks", self.ticks)
