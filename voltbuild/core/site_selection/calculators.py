"""Climate and land calculators used during site evaluation."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

# (max ambient temperature in C, estimated PUE)
PUE_BANDS: tuple[tuple[float, float], ...] = (
    (10, 1.12),
    (20, 1.25),
    (30, 1.40),
    (40, 1.55),
)
HOT_CLIMATE_PUE = 1.70

DEFAULT_LAND_ACRES = 20
DEFAULT_PRICE_PER_ACRE = Decimal("15000")

LAND_SIZING_GUIDE: tuple[dict, ...] = (
    {"capacity_mw": 10, "acres": "2-5", "containers": "10-20", "building_sqft": 10_000},
    {"capacity_mw": 25, "acres": "5-10", "containers": "25-50", "building_sqft": 25_000},
    {"capacity_mw": 50, "acres": "10-15", "containers": "50-100", "building_sqft": 50_000},
    {"capacity_mw": 100, "acres": "15-25", "containers": "100-200", "building_sqft": 100_000},
    {"capacity_mw": 200, "acres": "30-50", "containers": "200-400", "building_sqft": 200_000},
)


def estimate_pue(ambient_temp_c: float) -> float:
    for max_temp, pue in PUE_BANDS:
        if ambient_temp_c <= max_temp:
            return pue
    return HOT_CLIMATE_PUE


def cooling_overhead_pct(pue: float) -> int:
    overhead = (Decimal(str(pue)) - 1) * 100
    return int(overhead.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def land_cost(acres: float, price_per_acre: Decimal | float) -> Decimal:
    if acres < 0 or price_per_acre < 0:
        raise ValueError("Acreage and price per acre must not be negative")
    total = Decimal(str(acres)) * Decimal(str(price_per_acre))
    return total.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
