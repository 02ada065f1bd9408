"""Shared test helpers."""

from datetime import datetime, timedelta

import pytest

from arbitrage_engine.core.schemas import Tariff


@pytest.fixture
def make_tariffs():
    """Build consecutive tariffs from a list of prices."""

    def _make(prices, start=datetime(2024, 1, 1), slot_minutes=60):
        return [
            Tariff(timestamp=start + timedelta(minutes=slot_minutes * i), unit_price=float(p))
            for i, p in enumerate(prices)
        ]

    return _make
