from __future__ import annotations

from collections import deque
from datetime import datetime
from typing import Deque, Dict, Mapping

from ..schemas import PriceSample


class HistoryBuffer:
    """Rolling per-ticker price samples; the oldest sample is dropped first."""

    def __init__(self, size: int = 20, time_format: str = "%H:%M:%S"):
        if size < 1:
            raise ValueError("History size must be at least 1.")
        self.size = size
        self.time_format = time_format
        self._samples: Dict[str, Deque[PriceSample]] = {}

    def record(self, prices: Mapping[str, float], now: datetime | None = None) -> None:
        stamp = (now or datetime.now()).strftime(self.time_format)
        for ticker, price in prices.items():
            buf = self._samples.get(ticker)
            if buf is None:
                buf = self._samples[ticker] = deque(maxlen=self.size)
            buf.append(PriceSample(time=stamp, price=float(price)))

    def samples(self, ticker: str) -> list[PriceSample]:
        return list(self._samples.get(ticker, ()))

    def starting_price(self, ticker: str) -> float | None:
        buf = self._samples.get(ticker)
        return buf[0].price if buf else None

    def price_change(self, ticker: str, current: float) -> float:
        # Fewer than two samples means there is nothing to compare against yet
        buf = self._samples.get(ticker)
        if not buf or len(buf) < 2:
            return 0.0
        return current - buf[0].price

    def percent_change(self, ticker: str, current: float) -> float:
        buf = self._samples.get(ticker)
        if not buf or len(buf) < 2:
            return 0.0
        return (current - buf[0].price) / buf[0].price * 100.0

    def clear(self) -> None:
        self._samples.clear()

    def __len__(self) -> int:
        return len(self._samples)
