import logging
import re
from dataclasses import dataclass, replace

from .config import month_index, months, seasonal_factor
from .errors import InputParseError
from .tariff import TariffConfig, bill_amount, round_half_up

logger = logging.getLogger(__name__)

_SPLIT = re.compile(r"[,;\n]+")
_ENTRY = re.compile(r"^([A-Za-z]+)[\s-]*(\d+(?:\.\d+)?)$")


@dataclass(frozen=True)
class Bill:
    month: str
    consumption: float
    amount: float
    is_estimated: bool = False


def resolve_month(word: str) -> str:
    """First calendar month whose name starts with `word` (case-insensitive)."""
    w = word.lower()
    for m in months():
        if m.lower().startswith(w):
            return m
    raise InputParseError(f"not a month: {word!r}")


def parse_entry(entry: str) -> tuple[str, float]:
    match = _ENTRY.match(entry.strip())
    if not match:
        raise InputParseError(f"malformed bill entry: {entry!r}")
    month = resolve_month(match.group(1))
    consumption = float(match.group(2))
    if consumption <= 0:
        raise InputParseError(f"consumption must be positive: {entry!r}")
    return month, consumption


def parse_entries(text: str) -> list[tuple[str, float]]:
    """Parse "Jan-2000, Feb 2100; mar1950" style input; bad entries are dropped."""
    parsed: list[tuple[str, float]] = []
    seen: set[str] = set()
    for entry in _SPLIT.split(text or ""):
        if not entry.strip():
            continue
        try:
            month, consumption = parse_entry(entry)
        except InputParseError as e:
            logger.debug("dropped bill entry: %s", e)
            continue
        if month in seen:
            logger.debug("dropped duplicate entry for %s", month)
            continue
        seen.add(month)
        parsed.append((month, consumption))
    return parsed


class Ledger:
    """At most one bill per calendar month, kept in calendar order."""

    def __init__(self, bills=()):
        self._bills: list[Bill] = []
        for bill in bills:
            if bill.month in self:
                raise ValueError(f"duplicate bill for {bill.month}")
            month_index(bill.month)
            self._bills.append(bill)
        self._sort()

    def _sort(self):
        self._bills.sort(key=lambda b: month_index(b.month))

    def __len__(self):
        return len(self._bills)

    def __iter__(self):
        return iter(self._bills)

    def __contains__(self, month):
        return any(b.month == month for b in self._bills)

    def __eq__(self, other):
        return isinstance(other, Ledger) and self._bills == other._bills

    def __repr__(self):
        return f"Ledger({self._bills!r})"

    @property
    def bills(self) -> list[Bill]:
        return list(self._bills)

    def get(self, month: str) -> Bill | None:
        for b in self._bills:
            if b.month == month:
                return b
        return None

    def add_bills(self, parsed, tariff: TariffConfig) -> list[Bill]:
        """Merge parsed (month, kWh) pairs; months already held are skipped."""
        added = []
        for month, consumption in parsed:
            if month in self:
                logger.debug("%s already in ledger; remove it first to replace", month)
                continue
            bill = Bill(month, consumption, bill_amount(consumption, tariff), False)
            self._bills.append(bill)
            added.append(bill)
        self._sort()
        return added

    def add_text(self, text: str, tariff: TariffConfig) -> list[Bill]:
        return self.add_bills(parse_entries(text), tariff)

    def remove_bill(self, month: str):
        self._bills = [b for b in self._bills if b.month != month]

    def clear(self):
        self._bills = []

    def missing_months(self) -> list[str]:
        return [m for m in months() if m not in self]

    def estimate_full_year(self, tariff: TariffConfig) -> list[Bill]:
        """Fill missing months from one seasonally-normalized baseline."""
        if not 0 < len(self._bills) < 12:
            return []
        baseline = sum(b.consumption / seasonal_factor(b.month) for b in self._bills) / len(self._bills)
        estimated = []
        for month in self.missing_months():
            consumption = round_half_up(baseline * seasonal_factor(month))
            estimated.append(Bill(month, consumption, bill_amount(consumption, tariff), True))
        self._bills = [replace(b, is_estimated=False) for b in self._bills] + estimated
        self._sort()
        logger.info("estimated %d month(s) from a baseline of %.1f kWh", len(estimated), baseline)
        return estimated

    def total_consumption(self) -> float:
        return sum(b.consumption for b in self._bills)

    def total_amount(self) -> float:
        return sum(b.amount for b in self._bills)

    def average_consumption(self) -> float:
        if not self._bills:
            return 0.0
        return self.total_consumption() / len(self._bills)

    def consumption_by_month(self) -> dict[str, float]:
        """All 12 months; absent ones take the ledger mean."""
        avg = self.average_consumption()
        return {m: (self.get(m).consumption if m in self else avg) for m in months()}
