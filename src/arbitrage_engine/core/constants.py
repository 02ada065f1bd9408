"""Canonical column names, units, and sign conventions.

SIGN CONVENTIONS:
- charge_kwh: Positive = energy into the battery during the slot (DC side)
- discharge_kwh: Positive = energy out of the battery during the slot (DC side)
- cost: Net spend for the slot. Positive = money paid, negative = money earned
- end_soc_kwh: Absolute state of charge at the end of the slot

UNITS:
- Power: kW
- Energy: kWh
- Prices: currency per kWh (AC side, after surcharge and VAT)
- Time: minutes (for slots), hours (for commit/lookahead lengths)

STATE OF CHARGE RECURSION:
soc[h] = soc[h-1] + charge[h] - discharge[h], with soc[-1] = start energy.

Decision variables are energy per slot, so a tier bounded at P kW may move at
most P * slot_hours kWh in one slot.
"""

# Tariff input columns
COL_TIMESTAMP = "timestamp"
COL_UNIT_PRICE = "unit_price"

REQUIRED_TARIFF_COLUMNS = [COL_UNIT_PRICE]

# Schedule output columns
COL_GRID_PRICE = "grid_price"
COL_CHARGE_KWH = "charge_kwh"
COL_DISCHARGE_KWH = "discharge_kwh"
COL_COST = "cost"
COL_END_SOC_KWH = "end_soc_kwh"

SCHEDULE_COLUMNS = [
    COL_GRID_PRICE,
    COL_CHARGE_KWH,
    COL_DISCHARGE_KWH,
    COL_COST,
    COL_END_SOC_KWH,
]

# LP variable names
VAR_CHARGE = "charge"
VAR_DISCHARGE = "discharge"

# LP dimension names
DIM_CHARGE_TIER = "charge_tier"
DIM_DISCHARGE_TIER = "discharge_tier"
DIM_HOUR = "hour"

# Solver safety bound (1000 ms)
DEFAULT_TIME_LIMIT_SECONDS = 1.0

# Tolerance for numerical comparisons
NUMERICAL_TOLERANCE = 1e-6
