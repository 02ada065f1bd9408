"""Metrics computation for committed schedules."""

from typing import Optional, Sequence

from arbitrage_engine.model.extract import OptimizedState


def compute_metrics(
    states: Sequence[OptimizedState],
    max_energy_kwh: float,
    reference_profit: Optional[float] = None,
) -> dict:
    """Compute summary metrics for a schedule.

    Args:
        states: Committed schedule states
        max_energy_kwh: Battery capacity, for the cycle count
        reference_profit: Profit of a perfect-foresight one-shot solve, if run

    Returns:
        Dictionary of metrics
    """
    total_cost = sum(s.cost for s in states)
    charged_kwh = sum(s.charge for s in states)
    discharged_kwh = sum(s.discharge for s in states)

    # Price-weighted averages over slots where energy actually moved
    buy_spend = sum(s.grid_price * s.charge for s in states)
    sell_income = sum(s.grid_price * s.discharge for s in states)
    avg_buy_price = buy_spend / charged_kwh if charged_kwh > 0 else 0.0
    avg_sell_price = sell_income / discharged_kwh if discharged_kwh > 0 else 0.0

    metrics = {
        "slots": len(states),
        "total_profit": -total_cost,
        "total_cost": total_cost,
        "charged_kwh": charged_kwh,
        "discharged_kwh": discharged_kwh,
        "throughput_kwh": charged_kwh + discharged_kwh,
        "cycles": charged_kwh / max_energy_kwh,
        "avg_buy_price": avg_buy_price,
        "avg_sell_price": avg_sell_price,
        "final_soc_kwh": states[-1].end_soc if states else None,
    }

    if reference_profit is not None:
        metrics["one_shot_profit"] = reference_profit
        metrics["foresight_gap"] = reference_profit - metrics["total_profit"]

    return metrics
