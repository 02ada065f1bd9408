"""Run bundle I/O operations.

A run bundle is a folder containing:
- battery_config.yaml: Battery configuration
- run_config.yaml: Run configuration
- tariffs.parquet: Input tariffs (timestamp, unit_price)
- (outputs):
  - schedule.parquet: Committed schedule
  - windows.json: Per-window solve statistics
  - metrics.json: Computed metrics
  - bundle_metadata.json: Reproducibility metadata
"""

import json
from pathlib import Path
from typing import Optional, TypeVar

import pandas as pd
import pydantic
import yaml

from arbitrage_engine import __version__
from arbitrage_engine.core.errors import ValidationError
from arbitrage_engine.core.schemas import BatteryConfig, BundleMetadata, RunConfig, WindowReport
from arbitrage_engine.core.validate import validate_tariff_frame
from arbitrage_engine.io.formats import read_parquet_timeseries, write_parquet_timeseries

BATTERY_FILE = "battery_config.yaml"
RUN_FILE = "run_config.yaml"
TARIFF_FILE = "tariffs.parquet"
REQUIRED_FILES = [BATTERY_FILE, RUN_FILE, TARIFF_FILE]

ModelT = TypeVar("ModelT", bound=pydantic.BaseModel)


def _read_config(path: Path, model: type[ModelT]) -> ModelT:
    with open(path) as f:
        return model(**(yaml.safe_load(f) or {}))


def _write_config(path: Path, config: pydantic.BaseModel) -> None:
    # Python-mode dump keeps inf tier bounds as YAML .inf
    with open(path, "w") as f:
        yaml.safe_dump(config.model_dump(), f, default_flow_style=False, sort_keys=False)


def _write_json(path: Path, payload) -> None:
    with open(path, "w") as f:
        json.dump(payload, f, indent=2, default=str)


def load_bundle(bundle_path: str | Path) -> tuple[BatteryConfig, RunConfig, pd.DataFrame]:
    """Load a run bundle.

    Args:
        bundle_path: Path to bundle directory

    Returns:
        Tuple of (battery_config, run_config, tariffs_df)
    """
    bundle_path = Path(bundle_path)

    if not bundle_path.exists():
        raise FileNotFoundError(f"Bundle not found: {bundle_path}")

    battery_config = _read_config(bundle_path / BATTERY_FILE, BatteryConfig)
    run_config = _read_config(bundle_path / RUN_FILE, RunConfig)
    tariffs = read_parquet_timeseries(str(bundle_path / TARIFF_FILE))

    return battery_config, run_config, tariffs


def write_results(
    bundle_path: str | Path,
    schedule: pd.DataFrame,
    windows: list[WindowReport],
    metrics: Optional[dict] = None,
    solver_name: str = "highs",
    error: Optional[str] = None,
) -> None:
    """Write the committed schedule, window reports, metrics and run metadata.

    Args:
        bundle_path: Path to bundle directory
        schedule: Committed schedule dataframe
        windows: Per-window reports
        metrics: Optional metrics dictionary
        solver_name: Solver backend used
        error: Error that aborted the run, if any
    """
    bundle_path = Path(bundle_path)
    bundle_path.mkdir(exist_ok=True)

    write_parquet_timeseries(schedule, str(bundle_path / "schedule.parquet"))
    _write_json(bundle_path / "windows.json", [w.model_dump(mode="json") for w in windows])
    if metrics is not None:
        _write_json(bundle_path / "metrics.json", metrics)

    metadata = BundleMetadata(
        engine_version=__version__,
        solver_name=solver_name,
        complete=error is None,
        error=error,
    )
    _write_json(bundle_path / "bundle_metadata.json", metadata.model_dump(mode="json"))


def init_bundle(
    bundle_path: str | Path,
    battery_config: BatteryConfig,
    run_config: RunConfig,
    tariffs: pd.DataFrame,
) -> None:
    """Initialize a new run bundle.

    Args:
        bundle_path: Path to bundle directory
        battery_config: Battery configuration
        run_config: Run configuration
        tariffs: Tariff dataframe with DatetimeIndex
    """
    bundle_path = Path(bundle_path)
    bundle_path.mkdir(parents=True, exist_ok=True)

    _write_config(bundle_path / BATTERY_FILE, battery_config)
    _write_config(bundle_path / RUN_FILE, run_config)
    write_parquet_timeseries(tariffs, str(bundle_path / TARIFF_FILE))


def validate_bundle(bundle_path: str | Path) -> bool:
    """Check a bundle can be backtested without solving anything.

    Required files must exist, both configs must parse and the tariff frame
    must be gapless at the configured slot length.

    Args:
        bundle_path: Path to bundle directory

    Returns:
        True if valid

    Raises:
        ValidationError: If the bundle is incomplete or malformed
    """
    bundle_path = Path(bundle_path)

    missing = [name for name in REQUIRED_FILES if not (bundle_path / name).exists()]
    if missing:
        raise ValidationError(f"Missing required files in {bundle_path}: {missing}")

    try:
        _, run_config, tariffs = load_bundle(bundle_path)
    except (pydantic.ValidationError, yaml.YAMLError, TypeError) as e:
        raise ValidationError(f"Malformed bundle config: {e}") from e

    validate_tariff_frame(tariffs, run_config.horizon.slot_minutes)
    return True
