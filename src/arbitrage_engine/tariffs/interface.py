"""Tariff provider interface."""

from typing import Protocol

from arbitrage_engine.core.schemas import Tariff


class TariffProvider(Protocol):
    """Protocol for tariff providers.

    Providers hand the optimizer an explicit, ordered and gapless tariff
    series; the optimizer itself never reads files or global state.
    """

    def tariffs(self) -> list[Tariff]:
        """Return the full tariff series, ordered by timestamp."""
        ...
