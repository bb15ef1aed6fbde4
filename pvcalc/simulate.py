# pvcalc/simulate.py
import logging
from dataclasses import dataclass

from .config import months
from .energy import SystemRecommendation, recommend_system
from .finance import FinancialAnalysis, simulate_financials
from .ledger import Ledger
from .project import Project
from .seasonal import SeasonalAnalysis, analyze_seasons
from .tariff import TieredTariff, round_half_up, tier_chain_problems

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Analysis:
    seasons: SeasonalAnalysis
    system: SystemRecommendation
    financials: FinancialAnalysis
    profile: tuple[dict, ...]

    def summary(self) -> dict:
        """Presentation view: rounded figures, payback may be "unattained"."""
        fin = self.financials
        return {
            "seasonal": self.seasons.rounded(),
            "system": self.system.rounded(),
            "financial": {
                "annual_savings": fin.annual_savings,
                "payback_period": fin.payback_period if fin.payback_period is not None else "unattained",
                "roi_25_year": fin.roi_25_year,
                "roi_percentage": fin.roi_percentage,
                "net_metering_credits_value": fin.net_metering_credits_value,
            },
            "cashflow": [round_half_up(y.cumulative) for y in fin.years],
            "years": [y.year for y in fin.years],
            "profile": [dict(row, production=round_half_up(row["production"])) for row in self.profile],
        }


def monthly_profile(ledger: Ledger, system: SystemRecommendation) -> tuple[dict, ...]:
    """Consumption vs. year-1 production per calendar month."""
    production = system.annual_production / 12
    rows = []
    for month in months():
        bill = ledger.get(month)
        rows.append({
            "month": month,
            "consumption": bill.consumption if bill else 0,
            "production": production,
        })
    return tuple(rows)


def analyze(project: Project) -> Analysis:
    """Recompute every derived result from the project inputs."""
    tariff = project.tariff
    if isinstance(tariff, TieredTariff):
        for problem in tier_chain_problems(tariff.tiers):
            logger.warning("tariff: %s", problem)

    # unrounded figures flow downstream; rounding is presentation only
    seasons = analyze_seasons(project.ledger)
    system = recommend_system(
        project.ledger,
        seasons,
        regime=project.regime,
        battery_enabled=project.battery_enabled,
        params=project.sizing,
    )
    financials = simulate_financials(
        project.ledger,
        system.annual_production,
        regime=project.regime,
        battery_enabled=project.battery_enabled,
        daytime_share_pct=project.sizing.daytime_consumption,
        tariff=tariff,
        investment=project.system_cost,
    )
    return Analysis(seasons, system, financials, monthly_profile(project.ledger, system))
