from dataclasses import asdict, dataclass

from .config import defaults, summer_months
from .ledger import Ledger
from .tariff import round_half_up


@dataclass(frozen=True)
class SeasonalAnalysis:
    summer_avg: float = 0.0
    winter_avg: float = 0.0
    spike_percentage: float = 0.0
    base_load: float = 0.0
    cooling_load: float = 0.0
    daily_avg: float = 0.0

    def rounded(self) -> dict:
        return {k: round_half_up(v) for k, v in asdict(self).items()}


def _mean(values: list[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def analyze_seasons(ledger: Ledger) -> SeasonalAnalysis:
    if len(ledger) == 0:
        return SeasonalAnalysis()
    summer = summer_months()
    summer_avg = _mean([b.consumption for b in ledger if b.month in summer])
    winter_avg = _mean([b.consumption for b in ledger if b.month not in summer])
    spike = (summer_avg - winter_avg) / winter_avg * 100 if winter_avg > 0 else 0.0
    return SeasonalAnalysis(
        summer_avg=summer_avg,
        winter_avg=winter_avg,
        spike_percentage=spike,
        base_load=winter_avg,
        cooling_load=summer_avg - winter_avg,
        daily_avg=ledger.average_consumption() / defaults()["days_per_month"],
    )
