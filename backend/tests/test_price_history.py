"""Tests for the bounded price history store."""

import math
import threading
from datetime import datetime, timezone

import pytest

from trademind.storage import DEFAULT_CAPACITY, PriceHistoryStore


class TestPriceHistoryStore:
    """Tests for PriceHistoryStore."""

    def test_default_capacity(self):
        assert PriceHistoryStore().capacity == DEFAULT_CAPACITY == 50

    def test_invalid_capacity(self):
        with pytest.raises(ValueError):
            PriceHistoryStore(capacity=0)

    def test_registered_tokens_start_empty(self):
        """Tokens passed at init exist with empty histories."""
        store = PriceHistoryStore(tokens=["binancecoin", "ethereum"])

        assert store.tokens() == ["binancecoin", "ethereum"]
        assert "ethereum" in store
        assert store.prices("ethereum") == ()
        assert len(store) == 2

    def test_append_keeps_chronological_order(self):
        store = PriceHistoryStore()
        for price in [100.0, 101.0, 102.0]:
            store.append("binancecoin", price)

        assert store.prices("binancecoin") == (100.0, 101.0, 102.0)

    def test_oldest_evicted_on_overflow(self):
        """Only the last `capacity` samples are kept."""
        store = PriceHistoryStore(capacity=3)
        for price in range(1, 6):
            store.append("binancecoin", price)

        assert store.prices("binancecoin") == (3.0, 4.0, 5.0)

    def test_fifty_sample_cap(self):
        store = PriceHistoryStore()
        for price in range(120):
            store.append("ethereum", float(price))

        prices = store.prices("ethereum")
        assert len(prices) == 50
        assert prices[0] == 70.0
        assert prices[-1] == 119.0

    def test_unknown_token_auto_registered(self):
        store = PriceHistoryStore()
        assert store.prices("cardano") == ()

        store.append("cardano", 0.5)
        assert "cardano" in store
        assert store.prices("cardano") == (0.5,)

    def test_non_finite_rejected(self):
        store = PriceHistoryStore()

        assert not store.append("binancecoin", math.nan)
        assert not store.append("binancecoin", math.inf)
        assert store.prices("binancecoin") == ()

    def test_samples_and_latest(self):
        ts = datetime(2024, 1, 1, tzinfo=timezone.utc)
        store = PriceHistoryStore()
        store.append("binancecoin", 300.0, ts)
        store.append("binancecoin", 301.0)

        samples = store.samples("binancecoin")
        assert samples[0].price == 300.0
        assert samples[0].timestamp == ts
        assert store.latest("binancecoin").price == 301.0
        assert store.latest("ethereum") is None

    def test_snapshot_is_a_copy(self):
        """Later appends do not change an earlier snapshot."""
        store = PriceHistoryStore()
        store.append("binancecoin", 300.0)

        snapshot = store.snapshot()
        store.append("binancecoin", 301.0)

        assert snapshot == {"binancecoin": (300.0,)}
        assert store.prices("binancecoin") == (300.0, 301.0)

    def test_clear(self):
        store = PriceHistoryStore()
        store.append("binancecoin", 300.0)
        store.append("ethereum", 2000.0)

        store.clear("binancecoin")
        assert store.prices("binancecoin") == ()
        assert store.prices("ethereum") == (2000.0,)

        store.clear()
        assert store.prices("ethereum") == ()
        assert "ethereum" in store

    def test_concurrent_appends(self):
        """Appends from several threads are all counted up to capacity."""
        store = PriceHistoryStore(capacity=1000)

        def writer(token):
            for i in range(200):
                store.append(token, float(i + 1))

        threads = [
            threading.Thread(target=writer, args=(f"token-{n}",)) for n in range(4)
        ]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        snapshot = store.snapshot()
        assert len(snapshot) == 4
        assert all(len(prices) == 200 for prices in snapshot.values())
