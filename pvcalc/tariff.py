import logging
import math
from dataclasses import dataclass, replace
from typing import Union

from .config import tariffs
from .errors import ConfigValidationError

logger = logging.getLogger(__name__)

FLAT = "flat"
TIERED = "tiered"


@dataclass(frozen=True)
class Tier:
    start: int
    end: int | None  # None = unbounded top tier
    rate: float

    def span(self, remaining: float) -> float:
        """Units billable in this tier; bounds are inclusive (2001..4000 -> 2000)."""
        if self.end is None:
            return remaining
        return self.end - (self.start - 1 if self.start > 0 else 0)


@dataclass(frozen=True)
class FlatTariff:
    rate: float


@dataclass(frozen=True)
class TieredTariff:
    tiers: tuple[Tier, ...]


TariffConfig = Union[FlatTariff, TieredTariff]


def default_tiers() -> list[Tier]:
    return [Tier(int(t["from"]), None if t["to"] is None else int(t["to"]), float(t["rate"]))
            for t in tariffs()["tiers"]]

def round_half_up(value: float, ndigits: int = 0):
    """Round halves upward (2.5 -> 3, -2.5 -> -2)."""
    scale = 10 ** ndigits
    out = math.floor(value * scale + 0.5) / scale
    return int(out) if ndigits == 0 else out


def bill_amount(consumption: float, tariff: TariffConfig, escalation: float = 1.0) -> float:
    if consumption <= 0:
        return 0.0
    if isinstance(tariff, FlatTariff):
        return consumption * tariff.rate * escalation

    total = 0.0
    remaining = consumption
    for tier in sorted(tariff.tiers, key=lambda t: t.start):
        if remaining <= 0:
            break
        width = max(0.0, min(remaining, tier.span(remaining)))
        total += width * tier.rate * escalation
        remaining -= width
    if remaining > 0:
        # no unbounded top tier: the excess stays unbilled
        logger.debug("%.1f kWh above the last finite tier left unbilled", remaining)
    return total


def tier_chain_problems(tiers) -> list[str]:
    problems = []
    if not tiers:
        return ["no tiers configured"]
    if tiers[0].start != 0:
        problems.append(f"first tier starts at {tiers[0].start}, not 0")
    for lo, hi in zip(tiers, tiers[1:]):
        if lo.end is None or lo.end + 1 != hi.start:
            problems.append(f"gap or overlap between tier {lo.start} and tier {hi.start}")
    if tiers[-1].end is not None:
        problems.append(f"top tier ends at {tiers[-1].end}; consumption above it is not billed")
    return problems


def renormalize_tiers(tiers) -> list[Tier]:
    """Rebuild the chain: start at 0, contiguous, unbounded top tier."""
    out: list[Tier] = []
    last = len(tiers) - 1
    for i, tier in enumerate(tiers):
        start = 0 if i == 0 else out[-1].end + 1
        if i == last:
            end = None
        elif tier.end is None or tier.end < start:
            end = start
        else:
            end = tier.end
        out.append(replace(tier, start=start, end=end))
    return out


def add_tier(tiers, width: int | None = None, step: float | None = None) -> list[Tier]:
    """Split the top tier and append a pricier unbounded tier above it."""
    if width is None:
        width = tariffs()["new_tier_width"]
    if step is None:
        step = tariffs()["new_tier_rate_step"]
    if not tiers:
        return [Tier(0, None, float(tariffs()["flat_rate"]))]
    top = tiers[-1]
    new_start = top.start + width if top.end is None else top.end + 1
    chain = list(tiers[:-1]) + [
        Tier(top.start, new_start - 1, top.rate),
        Tier(new_start, None, round(top.rate + step, 2)),
    ]
    return renormalize_tiers(chain)


_FIELDS = {"from": "start", "start": "start", "to": "end", "end": "end", "rate": "rate"}

def update_tier(tiers, index: int, field: str, value) -> list[Tier]:
    if field not in _FIELDS:
        raise ConfigValidationError(f"unknown tier field: {field}")
    if not 0 <= index < len(tiers):
        raise ConfigValidationError(f"no tier at index {index}")
    attr = _FIELDS[field]
    try:
        num = float(value) if attr == "rate" else int(float(value))
    except (TypeError, ValueError, OverflowError):
        logger.debug("ignoring non-numeric tier %s: %r", field, value)
        return list(tiers)

    chain = list(tiers)
    chain[index] = replace(chain[index], **{attr: num})
    if attr == "end" and index < len(chain) - 1:
        chain[index + 1] = replace(chain[index + 1], start=num + 1)
    elif attr == "start" and index > 0:
        chain[index - 1] = replace(chain[index - 1], end=num - 1)
    return renormalize_tiers(chain)


def remove_tier(tiers, index: int) -> list[Tier]:
    if len(tiers) <= 1:
        return list(tiers)
    if not 0 <= index < len(tiers):
        raise ConfigValidationError(f"no tier at index {index}")
    return renormalize_tiers([t for i, t in enumerate(tiers) if i != index])
