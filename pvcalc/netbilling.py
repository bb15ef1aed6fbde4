"""Month-level settlement of a PV system's bill under each utility regime.

* net_metering      -- surplus kWh is banked and offsets later grid draw
* self_consumption  -- only the self-consumed share of production offsets load
"""
import logging

from .config import defaults
from .tariff import TariffConfig, bill_amount

logger = logging.getLogger(__name__)

NET_METERING = "net_metering"
SELF_CONSUMPTION = "self_consumption"
REGIMES = (NET_METERING, SELF_CONSUMPTION)


def check_regime(regime: str) -> str:
    if regime not in REGIMES:
        raise ValueError("regime must be: net_metering / self_consumption")
    return regime


def self_consumption_rate(battery_enabled: bool, daytime_share_pct: float) -> float:
    if battery_enabled:
        return defaults()["battery_self_consumption"]
    return daytime_share_pct / 100


def settle_net_metering(production: float, consumption: float, credit_bank: float,
                        tariff: TariffConfig, escalation: float = 1.0) -> tuple[float, float]:
    """Returns (bill, credit_bank after this month)."""
    net = production - consumption
    if net >= 0:
        return 0.0, credit_bank + net
    deficit = -net
    drawn = min(deficit, credit_bank)
    logger.debug("deficit %.1f kWh, %.1f drawn from bank", deficit, drawn)
    return bill_amount(deficit - drawn, tariff, escalation), credit_bank - drawn


def settle_self_consumption(production: float, consumption: float, rate: float,
                            tariff: TariffConfig, escalation: float = 1.0) -> float:
    saved = min(production * rate, consumption)
    return bill_amount(consumption - saved, tariff, escalation)
