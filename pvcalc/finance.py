import logging
from dataclasses import dataclass, field

from .config import defaults
from .ledger import Ledger
from .netbilling import (
    NET_METERING,
    check_regime,
    self_consumption_rate,
    settle_net_metering,
    settle_self_consumption,
)
from .tariff import TariffConfig, bill_amount, round_half_up

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class YearResult:
    year: int
    savings: float
    cash_flow: float
    cumulative: float
    credit_bank_kwh: float = 0.0


@dataclass(frozen=True)
class FinancialAnalysis:
    annual_savings: int = 0
    payback_period: float | None = None  # None = not reached within the horizon
    roi_25_year: int = 0
    roi_percentage: int = 0
    net_metering_credits_value: int = 0
    years: tuple[YearResult, ...] = field(default_factory=tuple)


def fractional_payback(year: int, previous_cumulative: float, cash_flow: float) -> float | None:
    """Years to break even when the crossing happens during `year`."""
    if cash_flow <= 0:
        return None
    return (year - 1) + abs(previous_cumulative) / cash_flow


def payback_period(cash_flows: list[float], investment: float) -> float | None:
    cumulative = -investment
    for year, cf in enumerate(cash_flows, start=1):
        previous = cumulative
        cumulative += cf
        if previous <= 0 < cumulative:
            return fractional_payback(year, previous, cf)
    return None


def average_effective_tariff(ledger: Ledger) -> float:
    total = ledger.total_consumption()
    return ledger.total_amount() / total if total > 0 else 0.0


def simulate_financials(ledger: Ledger, annual_production: float, regime: str,
                        battery_enabled: bool, daytime_share_pct: float,
                        tariff: TariffConfig, investment: float | None) -> FinancialAnalysis:
    check_regime(regime)
    if not investment or investment <= 0 or len(ledger) == 0 or annual_production <= 0:
        return FinancialAnalysis()

    cfg = defaults()
    years = cfg["lifetime_years"]
    maintenance = investment * cfg["maintenance_pct_of_capex"]
    consumption = ledger.consumption_by_month()
    sc_rate = self_consumption_rate(battery_enabled, daytime_share_pct)

    cumulative = -investment
    credit_bank = 0.0
    first_year_savings = 0.0
    year1_bank = 0.0
    rows = []

    for year in range(1, years + 1):
        degradation = (1 - cfg["degradation_annual"]) ** (year - 1)
        escalation = (1 + cfg["tariff_escalation_annual"]) ** (year - 1)
        production = annual_production / 12 * degradation
        savings = 0.0
        for kwh in consumption.values():
            original = bill_amount(kwh, tariff) * escalation
            if regime == NET_METERING:
                new, credit_bank = settle_net_metering(production, kwh, credit_bank, tariff, escalation)
            else:
                new = settle_self_consumption(production, kwh, sc_rate, tariff, escalation)
            savings += original - new

        if year == 1:
            first_year_savings = savings
            year1_bank = credit_bank

        cash_flow = savings - maintenance
        cumulative += cash_flow
        rows.append(YearResult(year, savings, cash_flow, cumulative, credit_bank))

    payback = payback_period([r.cash_flow for r in rows], investment)
    if payback is None:
        logger.debug("no payback within %d years", years)

    return FinancialAnalysis(
        annual_savings=round_half_up(first_year_savings),
        payback_period=None if payback is None else round_half_up(payback, 1),
        roi_25_year=round_half_up(cumulative),
        roi_percentage=round_half_up(cumulative / investment * 100),
        net_metering_credits_value=round_half_up(year1_bank * average_effective_tariff(ledger)),
        years=tuple(rows),
    )
