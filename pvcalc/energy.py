import math
from dataclasses import dataclass, field

from .config import defaults, project_default
from .ledger import Ledger
from .netbilling import SELF_CONSUMPTION, check_regime
from .seasonal import SeasonalAnalysis
from .tariff import round_half_up


@dataclass(frozen=True)
class SizingParameters:
    # percentages are 0..100; space in m2, panel rating in W
    daytime_consumption: float = field(default_factory=lambda: project_default("daytime_consumption"))
    available_space: float = field(default_factory=lambda: project_default("available_space"))
    peak_sun_hours: float = field(default_factory=lambda: project_default("peak_sun_hours"))
    system_efficiency: float = field(default_factory=lambda: project_default("system_efficiency"))
    panel_wattage: float = field(default_factory=lambda: project_default("panel_wattage"))


@dataclass(frozen=True)
class SystemRecommendation:
    system_size: float = 0.0        # kWp actually installed
    panel_count: int = 0
    space_required: float = 0.0     # m2
    annual_production: float = 0.0  # kWh, year 1
    inverter_capacity: float = 0.0  # kW AC
    battery_capacity: int = 0       # kWh
    summer_coverage: float = 0.0
    winter_coverage: float = 0.0
    annual_coverage: float = 0.0
    fits_available_space: bool = True

    def rounded(self) -> dict:
        return {
            "system_size": round_half_up(self.system_size, 1),
            "panel_count": self.panel_count,
            "space_required": round_half_up(self.space_required),
            "annual_production": round_half_up(self.annual_production),
            "inverter_capacity": self.inverter_capacity,
            "battery_capacity": self.battery_capacity,
            "summer_coverage": round_half_up(self.summer_coverage),
            "winter_coverage": round_half_up(self.winter_coverage),
            "annual_coverage": round_half_up(self.annual_coverage),
            "fits_available_space": self.fits_available_space,
        }


def _coverage(produced: float, needed: float) -> float:
    if needed <= 0:
        return 100.0
    return max(0.0, min(100.0, produced / needed * 100))


def inverter_size_kw(system_kw: float) -> float:
    """AC rating for a DC array at the configured DC/AC ratio, to 0.1 kW."""
    return round_half_up(system_kw / defaults()["inverter_dc_ac_ratio"], 1)


def battery_size_kwh(avg_daily: float, daytime_pct: float) -> int:
    night = avg_daily * (1 - daytime_pct / 100)
    return math.ceil(night * defaults()["battery_reserve_factor"])


def recommend_system(ledger: Ledger, seasons: SeasonalAnalysis, regime: str,
                     battery_enabled: bool, params: SizingParameters) -> SystemRecommendation:
    check_regime(regime)
    if len(ledger) == 0:
        return SystemRecommendation()
    cfg = defaults()
    avg_monthly = ledger.average_consumption()
    avg_daily = avg_monthly / cfg["days_per_month"]
    eff = params.system_efficiency / 100
    storage = regime == SELF_CONSUMPTION and battery_enabled

    target = avg_daily
    if regime == SELF_CONSUMPTION and not battery_enabled:
        # without storage only the daytime load can be served
        target = avg_daily * params.daytime_consumption / 100

    psh = params.peak_sun_hours if params.peak_sun_hours > 0 else 1
    raw_kw = target / (psh * eff) if eff > 0 else 0.0
    if params.panel_wattage > 0:
        panels = math.ceil(raw_kw * 1000 / params.panel_wattage)
    else:
        panels = 0
    actual_kw = panels * params.panel_wattage / 1000 if panels else 0.0
    annual = actual_kw * psh * 365 * eff
    monthly = annual / 12
    space = panels * cfg["panel_footprint_m2"]

    return SystemRecommendation(
        system_size=actual_kw,
        panel_count=panels,
        space_required=space,
        annual_production=annual,
        inverter_capacity=inverter_size_kw(actual_kw),
        battery_capacity=battery_size_kwh(avg_daily, params.daytime_consumption) if storage else 0,
        summer_coverage=_coverage(monthly, seasons.summer_avg),
        winter_coverage=_coverage(monthly, seasons.winter_avg),
        annual_coverage=_coverage(annual, avg_monthly * 12),
        fits_available_space=space <= params.available_space,
    )
