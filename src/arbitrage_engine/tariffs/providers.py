"""Tariff provider implementations."""

from datetime import datetime, timedelta
from typing import Optional, Sequence

import pandas as pd

from arbitrage_engine.core.constants import COL_UNIT_PRICE
from arbitrage_engine.core.errors import ValidationError
from arbitrage_engine.core.schemas import Tariff
from arbitrage_engine.core.validate import validate_tariff_frame
from arbitrage_engine.tariffs.samples import SAMPLE_DAYS


class StaticTariffProvider:
    """Serves a literal list of tariffs."""

    def __init__(self, tariffs: Sequence[Tariff]):
        self._tariffs = list(tariffs)

    def tariffs(self) -> list[Tariff]:
        return list(self._tariffs)


class FrameTariffProvider:
    """Serves tariffs from a DataFrame with a DatetimeIndex and a unit_price column."""

    def __init__(self, frame: pd.DataFrame, slot_minutes: int = 60):
        """Initialize with a validated tariff frame.

        Args:
            frame: Tariffs with DatetimeIndex
            slot_minutes: Expected slot length in minutes

        Raises:
            ValidationError: If the frame is malformed or has gaps
        """
        validate_tariff_frame(frame, slot_minutes)
        self.frame = frame

    def tariffs(self) -> list[Tariff]:
        return [
            Tariff(timestamp=ts.to_pydatetime(), unit_price=float(price))
            for ts, price in self.frame[COL_UNIT_PRICE].items()
        ]


class SampleDayProvider:
    """Stamps one or more reference price days onto consecutive calendar days."""

    def __init__(self, names: Sequence[str], start: datetime):
        """Initialize with sample day names.

        Args:
            names: Keys of SAMPLE_DAYS, one per calendar day
            start: Midnight of the first day
        """
        unknown = [name for name in names if name not in SAMPLE_DAYS]
        if unknown:
            raise ValidationError(
                f"Unknown sample days {unknown}. Available: {sorted(SAMPLE_DAYS)}"
            )
        self.names = list(names)
        self.start = start

    def tariffs(self) -> list[Tariff]:
        result = []
        for day, name in enumerate(self.names):
            midnight = self.start + timedelta(days=day)
            result.extend(
                Tariff(timestamp=midnight + timedelta(hours=hour), unit_price=price)
                for hour, price in enumerate(SAMPLE_DAYS[name])
            )
        return result


def tariffs_to_frame(tariffs: Sequence[Tariff]) -> pd.DataFrame:
    """Inverse of FrameTariffProvider: tariffs as a DataFrame with DatetimeIndex."""
    return pd.DataFrame(
        {COL_UNIT_PRICE: [t.unit_price for t in tariffs]},
        index=pd.DatetimeIndex([t.timestamp for t in tariffs], name="timestamp"),
    )


def sample_provider(name: Optional[str], days: int, start: datetime) -> SampleDayProvider:
    """Repeat one sample day, or alternate through all of them when name is None."""
    if name is None:
        cycle = sorted(SAMPLE_DAYS)
        return SampleDayProvider([cycle[i % len(cycle)] for i in range(days)], start)
    return SampleDayProvider([name] * days, start)
