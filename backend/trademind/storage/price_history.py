"""Bounded per-instrument price history.

Holds one fixed-capacity ring buffer per token. The price feed is the only
writer; readers take snapshots (tuples) so an evaluation never sees a buffer
change underneath it.

Data structure:
- token -> deque[PriceSample] (maxlen = capacity, oldest evicted first)
"""

from __future__ import annotations

import logging
import math
import threading
from collections import deque
from datetime import datetime, timezone
from typing import Iterable

from trademind.models import PriceSample

logger = logging.getLogger(__name__)

# Matches the dashboard's "keep only last 50 prices"
DEFAULT_CAPACITY = 50


class PriceHistoryStore:
    """Keyed store of fixed-capacity price buffers."""

    def __init__(self, capacity: int = DEFAULT_CAPACITY, tokens: Iterable[str] = ()):
        """
        Args:
            capacity: Maximum samples kept per token
            tokens: Tokens to register up front (with empty histories)
        """
        if capacity <= 0:
            raise ValueError(f"capacity must be positive, got {capacity}")

        self.capacity = capacity
        self._buffers: dict[str, deque[PriceSample]] = {}
        self._lock = threading.Lock()

        for token in tokens:
            self._buffers[token] = deque(maxlen=capacity)

    def append(
        self,
        token: str,
        price: float,
        timestamp: datetime | None = None,
    ) -> bool:
        """Append a price sample, evicting the oldest on overflow.

        Non-finite prices are rejected.

        Returns:
            True if the sample was stored
        """
        price = float(price)
        if not math.isfinite(price):
            logger.warning(f"Rejected non-finite price for {token}: {price}")
            return False

        sample = PriceSample(price=price, timestamp=timestamp or datetime.now(timezone.utc))
        with self._lock:
            buffer = self._buffers.get(token)
            if buffer is None:
                buffer = deque(maxlen=self.capacity)
                self._buffers[token] = buffer
            buffer.append(sample)
        return True

    def prices(self, token: str) -> tuple[float, ...]:
        """Snapshot of a token's prices, oldest first (empty if unknown)."""
        with self._lock:
            buffer = self._buffers.get(token)
            if buffer is None:
                return ()
            return tuple(s.price for s in buffer)

    def samples(self, token: str) -> tuple[PriceSample, ...]:
        """Snapshot of a token's samples, oldest first."""
        with self._lock:
            return tuple(self._buffers.get(token, ()))

    def latest(self, token: str) -> PriceSample | None:
        """Most recent sample for a token."""
        with self._lock:
            buffer = self._buffers.get(token)
            return buffer[-1] if buffer else None

    def snapshot(self) -> dict[str, tuple[float, ...]]:
        """Snapshot of every token's prices."""
        with self._lock:
            return {
                token: tuple(s.price for s in buffer)
                for token, buffer in self._buffers.items()
            }

    def tokens(self) -> list[str]:
        with self._lock:
            return list(self._buffers)

    def __contains__(self, token: str) -> bool:
        with self._lock:
            return token in self._buffers

    def __len__(self) -> int:
        with self._lock:
            return len(self._buffers)

    def clear(self, token: str | None = None) -> None:
        """Empty one token's history, or all of them."""
        with self._lock:
            if token is None:
                for buffer in self._buffers.values():
                    buffer.clear()
            elif token in self._buffers:
                self._buffers[token].clear()
