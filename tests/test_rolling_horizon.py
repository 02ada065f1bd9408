"""Test the rolling-horizon driver."""

from datetime import datetime, timedelta, timezone

import pytest

from arbitrage_engine.core.constants import NUMERICAL_TOLERANCE
from arbitrage_engine.core.errors import InfeasibleError
from arbitrage_engine.core.schemas import BatteryConfig, HorizonConfig, RunConfig, TierSpec
from arbitrage_engine.runners.rolling import DriverState, RollingHorizonOptimizer, optimize_rolling
from arbitrage_engine.runners.window import optimize_window
from arbitrage_engine.tariffs.providers import SampleDayProvider


@pytest.fixture
def battery():
    """Create the two-band battery of the reference tool."""
    return BatteryConfig(
        max_energy_kwh=5.0,
        max_charge_kw=2.2,
        max_discharge_kw=1.7,
        tiers=[
            TierSpec(power_fraction=1.0, roundtrip_efficiency=0.9),
            TierSpec(power_fraction=0.5, roundtrip_efficiency=0.9),
        ],
    )


@pytest.fixture
def run_config():
    """Create run configuration with the default noon publication policy."""
    return RunConfig(run_id="test_run", start_energy_kwh=1.0)


@pytest.fixture
def three_days():
    """Three hourly sample days starting at midnight."""
    provider = SampleDayProvider(["jun07_2023", "oct31_2022", "jun07_2023"], datetime(2023, 6, 7))
    return provider.tariffs()


def test_commit_and_window_lengths(battery, run_config, three_days):
    """Test half-day first commit, full-day steady commits, final window committed whole."""
    result = optimize_rolling(three_days, battery, run_config)

    assert [w.slots for w in result.windows] == [24, 36, 36]
    assert [w.committed_slots for w in result.windows] == [12, 24, 36]
    assert result.complete
    assert result.error is None


def test_committed_states_cover_series(battery, run_config, three_days):
    """Test every tariff slot is committed exactly once, in order."""
    result = optimize_rolling(three_days, battery, run_config)

    assert len(result.states) == len(three_days)
    assert [s.timestamp for s in result.states] == [t.timestamp for t in three_days]


def test_continuity_across_windows(battery, run_config, three_days):
    """Test each window starts exactly where the previous commit ended."""
    result = optimize_rolling(three_days, battery, run_config)

    assert result.windows[0].start_energy_kwh == run_config.start_energy_kwh
    for previous, current in zip(result.windows, result.windows[1:]):
        assert current.start_energy_kwh == previous.end_soc_kwh

    for previous, current in zip(result.states, result.states[1:]):
        assert current.start_soc == pytest.approx(previous.end_soc, abs=1e-9)


def test_rolling_never_beats_one_shot(battery, run_config, three_days):
    """Test the perfect-foresight one-shot solve bounds the rolling profit."""
    rolling = optimize_rolling(three_days, battery, run_config)
    one_shot = optimize_window(three_days, battery, run_config)

    assert rolling.total_profit <= one_shot.profit + NUMERICAL_TOLERANCE


def test_aggregates(battery, run_config, three_days):
    """Test total profit and cycle count are derived from committed states."""
    result = optimize_rolling(three_days, battery, run_config)

    assert result.total_profit == pytest.approx(-sum(s.cost for s in result.states))
    assert result.cycles == pytest.approx(sum(s.charge for s in result.states) / 5.0)
    assert result.total_profit > 0


def test_initial_commit_follows_publication_hour(battery, three_days):
    """Test the first commit runs up to the next price publication."""
    afternoon = [t.model_copy(update={"timestamp": t.timestamp + timedelta(hours=13)}) for t in three_days]
    noon = [t.model_copy(update={"timestamp": t.timestamp + timedelta(hours=12)}) for t in three_days]
    run_config = RunConfig(run_id="test_run")

    assert RollingHorizonOptimizer(battery, run_config, three_days).initial_commit_slots() == 12
    assert RollingHorizonOptimizer(battery, run_config, afternoon).initial_commit_slots() == 23
    assert RollingHorizonOptimizer(battery, run_config, noon).initial_commit_slots() == 24


def test_configured_initial_commit(battery, three_days):
    """Test an explicit initial commit overrides the publication schedule."""
    run_config = RunConfig(
        run_id="test_run",
        horizon=HorizonConfig(initial_commit_hours=6, commit_hours=24, lookahead_hours=12),
    )

    result = optimize_rolling(three_days, battery, run_config)

    assert result.windows[0].committed_slots == 6
    assert result.windows[0].slots == 18
    assert sum(w.committed_slots for w in result.windows) == len(three_days)


def test_quarter_hour_slots(battery, make_tariffs):
    """Test commit and lookahead lengths scale with the slot length."""
    prices = [0.08 + 0.04 * ((i // 16) % 2) for i in range(192)]
    tariffs = make_tariffs(prices, start=datetime(2024, 3, 1), slot_minutes=15)
    run_config = RunConfig(run_id="test_run", horizon=HorizonConfig(slot_minutes=15))

    result = optimize_rolling(tariffs, battery, run_config)

    assert [w.committed_slots for w in result.windows] == [48, 144]
    assert result.states[1].timestamp - result.states[0].timestamp == timedelta(minutes=15)
    # A 15 minute slot moves at most a quarter of the hourly power
    assert all(s.charge <= 2.2 / 4 + NUMERICAL_TOLERANCE for s in result.states)


def test_failure_aborts_run_and_keeps_commits(battery, three_days):
    """Test an infeasible final window marks the run incomplete without losing earlier commits."""
    run_config = RunConfig(run_id="test_run", end_energy_kwh=100.0)
    optimizer = RollingHorizonOptimizer(battery, run_config, three_days)

    result = optimizer.run()

    assert not result.complete
    assert isinstance(result.error, InfeasibleError)
    assert len(result.windows) == 2
    assert len(result.states) == 36
    assert optimizer.cursor == 36
    assert optimizer.energy == result.windows[-1].end_soc_kwh
    assert optimizer.state is DriverState.DONE


def test_step_raises_window_errors(battery, three_days):
    """Test a failing step propagates and leaves driver state untouched."""
    run_config = RunConfig(run_id="test_run", start_energy_kwh=50.0)
    optimizer = RollingHorizonOptimizer(battery, run_config, three_days)

    with pytest.raises(InfeasibleError):
        optimizer.step()

    assert optimizer.cursor == 0
    assert optimizer.energy == 50.0
    assert optimizer.states == []
    assert optimizer.state is DriverState.ADVANCING


def test_step_after_done(battery, run_config, three_days):
    """Test the driver refuses to step once the series is exhausted."""
    optimizer = RollingHorizonOptimizer(battery, run_config, three_days)
    optimizer.run()

    assert optimizer.state is DriverState.DONE
    with pytest.raises(RuntimeError):
        optimizer.step()


def test_empty_series(battery, run_config):
    """Test no tariffs means done immediately with an empty, complete result."""
    optimizer = RollingHorizonOptimizer(battery, run_config, [])

    assert optimizer.state is DriverState.DONE
    result = optimizer.run()
    assert result.complete
    assert result.states == []
    assert result.total_profit == 0


def test_to_frame(battery, run_config, three_days):
    """Test the schedule frame mirrors the committed states."""
    result = optimize_rolling(three_days, battery, run_config)
    frame = result.to_frame()

    assert len(frame) == len(result.states)
    assert frame.index[0] == three_days[0].timestamp
    assert frame["end_soc_kwh"].iloc[-1] == result.states[-1].end_soc


@pytest.fixture
def large_battery():
    """A battery that needs most of a day to fill."""
    return BatteryConfig(max_energy_kwh=40.0, max_charge_kw=2.2, max_discharge_kw=1.7)


def day_night_prices(slots):
    return [0.05 if h % 24 < 12 else 0.30 for h in range(slots)]


def test_end_target_reachable_across_windows(large_battery, make_tariffs):
    """Test earlier windows keep enough energy for a full battery at the end."""
    tariffs = make_tariffs(day_night_prices(49), start=datetime(2024, 1, 1))
    run_config = RunConfig(run_id="test_run", end_energy_kwh=40.0)

    one_shot = optimize_window(tariffs, large_battery, run_config)
    result = optimize_rolling(tariffs, large_battery, run_config)

    assert one_shot.end_soc >= 40.0 - NUMERICAL_TOLERANCE
    assert result.complete, result.error
    assert [w.committed_slots for w in result.windows] == [12, 24, 13]
    assert result.states[-1].end_soc >= 40.0 - NUMERICAL_TOLERANCE


def test_end_target_reachable_without_lookahead(large_battery, make_tariffs):
    """Test a one-slot final window still reaches the target."""
    tariffs = make_tariffs(day_night_prices(37), start=datetime(2024, 1, 1))
    run_config = RunConfig(
        run_id="test_run", end_energy_kwh=40.0, horizon=HorizonConfig(lookahead_hours=0)
    )

    result = optimize_rolling(tariffs, large_battery, run_config)

    assert result.complete, result.error
    assert [w.committed_slots for w in result.windows] == [12, 24, 1]
    assert result.states[-1].end_soc >= 40.0 - NUMERICAL_TOLERANCE


def test_recoverable_floor(large_battery, make_tariffs):
    """Test intermediate floors track what full-rate charging can still recover."""
    tariffs = make_tariffs(day_night_prices(49))
    optimizer = RollingHorizonOptimizer(
        large_battery, RunConfig(run_id="test_run", end_energy_kwh=40.0), tariffs
    )

    assert optimizer.recoverable_floor(24) == 0.0
    assert optimizer.recoverable_floor(48) == pytest.approx(37.8)
    assert optimizer.recoverable_floor(49) == pytest.approx(40.0)

    unreachable = RollingHorizonOptimizer(
        large_battery, RunConfig(run_id="test_run", end_energy_kwh=100.0), tariffs
    )
    assert unreachable.recoverable_floor(48) == 40.0


def test_initial_commit_uses_publication_timezone(battery, three_days):
    """Test UTC timestamps are converted before aligning to the publication hour."""
    utc = [t.model_copy(update={"timestamp": t.timestamp.replace(tzinfo=timezone.utc)}) for t in three_days]

    amsterdam = RunConfig(run_id="test_run")
    in_utc = RunConfig(run_id="test_run", horizon=HorizonConfig(timezone="UTC"))

    # Midnight UTC in June is 02:00 in Amsterdam
    assert RollingHorizonOptimizer(battery, amsterdam, utc).initial_commit_slots() == 10
    assert RollingHorizonOptimizer(battery, in_utc, utc).initial_commit_slots() == 12
