from dataclasses import dataclass, field, replace

from .config import project_default, regime_for_authority, tariffs
from .energy import SizingParameters
from .ledger import Bill, Ledger
from .netbilling import NET_METERING
from . import tariff as tf


@dataclass
class Project:
    """One calculator session: inputs only, every result is derived from it."""
    project_name: str = field(default_factory=lambda: project_default("project_name"))
    location: str = field(default_factory=lambda: project_default("location"))
    authority: str = field(default_factory=lambda: project_default("authority"))
    battery_enabled: bool = False
    ledger: Ledger = field(default_factory=Ledger)
    rate_structure: str = field(default_factory=lambda: tariffs()["rate_structure"])
    electricity_rate: float = field(default_factory=lambda: float(tariffs()["flat_rate"]))
    tiers: tuple[tf.Tier, ...] = field(default_factory=lambda: tuple(tf.default_tiers()))
    sizing: SizingParameters = field(default_factory=SizingParameters)
    system_cost: float | None = None

    def __post_init__(self):
        regime_for_authority(self.authority)
        if self.rate_structure not in (tf.FLAT, tf.TIERED):
            raise ValueError("rate_structure must be: flat / tiered")
        if self.regime == NET_METERING:
            self.battery_enabled = False

    @property
    def regime(self) -> str:
        return regime_for_authority(self.authority)

    @property
    def tariff(self) -> tf.TariffConfig:
        if self.rate_structure == tf.TIERED:
            return tf.TieredTariff(tuple(self.tiers))
        return tf.FlatTariff(self.electricity_rate)

    # -- setters --

    def set_authority(self, authority: str):
        regime_for_authority(authority)
        self.authority = authority
        if self.regime == NET_METERING:
            self.battery_enabled = False

    def set_battery(self, enabled: bool):
        # storage changes nothing under net metering
        self.battery_enabled = bool(enabled) and self.regime != NET_METERING

    def set_rate_structure(self, structure: str):
        if structure not in (tf.FLAT, tf.TIERED):
            raise ValueError("rate_structure must be: flat / tiered")
        self.rate_structure = structure

    def set_electricity_rate(self, rate: float):
        self.electricity_rate = float(rate)

    def set_tiers(self, tiers):
        self.tiers = tuple(tiers)

    def set_sizing(self, **changes):
        self.sizing = replace(self.sizing, **changes)

    def set_system_cost(self, cost: float | None):
        self.system_cost = cost

    # -- tariff tiers --

    def add_tier(self):
        self.set_tiers(tf.add_tier(self.tiers))

    def update_tier(self, index: int, field_name: str, value):
        self.set_tiers(tf.update_tier(self.tiers, index, field_name, value))

    def remove_tier(self, index: int):
        self.set_tiers(tf.remove_tier(self.tiers, index))

    # -- bills --

    def add_bills(self, text: str) -> list[Bill]:
        return self.ledger.add_text(text, self.tariff)

    def remove_bill(self, month: str):
        self.ledger.remove_bill(month)

    def clear_bills(self):
        self.ledger.clear()

    def estimate_full_year(self) -> list[Bill]:
        return self.ledger.estimate_full_year(self.tariff)
