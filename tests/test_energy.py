"""System sizing tests.

Reference load: 1500 kWh every month -> 50 kWh/day.  At 5.5 peak sun hours
and 85% efficiency one kWp yields 4.675 kWh/day.
"""

import copy

import pytest

from pvcalc import config
from pvcalc.energy import SizingParameters, SystemRecommendation, inverter_size_kw, recommend_system
from pvcalc.ledger import Ledger
from pvcalc.netbilling import NET_METERING, SELF_CONSUMPTION
from pvcalc.seasonal import analyze_seasons
from pvcalc.tariff import FlatTariff

PARAMS = SizingParameters(daytime_consumption=60, available_space=100,
                          peak_sun_hours=5.5, system_efficiency=85, panel_wattage=550)


def flat_year(kwh=1500):
    ledger = Ledger()
    ledger.add_bills([(m, kwh) for m in ("January", "February", "March", "April", "May", "June",
                                         "July", "August", "September", "October",
                                         "November", "December")], FlatTariff(0.5))
    return ledger


def size(ledger, regime=NET_METERING, battery=False, params=PARAMS):
    return recommend_system(ledger, analyze_seasons(ledger), regime, battery, params)


class TestSizing:
    def test_net_metering_covers_full_load(self):
        """50 / 4.675 = 10.70 kW -> ceil(19.45) = 20 panels = 11.0 kWp."""
        rec = size(flat_year())
        assert rec.panel_count == 20
        assert rec.system_size == pytest.approx(11.0)
        assert rec.space_required == pytest.approx(42.0)
        assert rec.annual_production == pytest.approx(11.0 * 5.5 * 365 * 0.85)
        assert rec.inverter_capacity == pytest.approx(9.6)
        assert rec.battery_capacity == 0
        assert rec.fits_available_space

    def test_self_consumption_without_battery_sizes_daytime_only(self):
        """60% of 50 kWh = 30 -> 6.42 kW -> 12 panels."""
        rec = size(flat_year(), SELF_CONSUMPTION, battery=False)
        assert rec.panel_count == 12
        assert rec.system_size == pytest.approx(6.6)
        assert rec.battery_capacity == 0

    def test_self_consumption_with_battery(self):
        """Night share 38% of 50 kWh = 19, x1.2 reserve = 22.8 -> 23 kWh."""
        params = SizingParameters(daytime_consumption=62, available_space=100,
                                  peak_sun_hours=5.5, system_efficiency=85, panel_wattage=550)
        rec = size(flat_year(), SELF_CONSUMPTION, battery=True, params=params)
        assert rec.panel_count == 20
        assert rec.battery_capacity == 23

    def test_battery_ignored_under_net_metering(self):
        rec = size(flat_year(), NET_METERING, battery=True)
        assert rec.battery_capacity == 0

    def test_panel_count_rounds_up(self):
        rec = size(flat_year(1))
        assert rec.panel_count == 1

    def test_space_check(self):
        tight = SizingParameters(daytime_consumption=60, available_space=40,
                                 peak_sun_hours=5.5, system_efficiency=85, panel_wattage=550)
        assert not size(flat_year(), params=tight).fits_available_space

    def test_inverter_ratio(self):
        assert inverter_size_kw(11.5) == pytest.approx(10.0)
        assert inverter_size_kw(0) == 0


class TestGuards:
    def test_empty_ledger(self):
        assert size(Ledger()) == SystemRecommendation()

    def test_zero_panel_wattage(self):
        params = SizingParameters(60, 100, 5.5, 85, 0)
        rec = size(flat_year(), params=params)
        assert rec.panel_count == 0
        assert rec.annual_production == 0

    def test_zero_peak_sun_hours_uses_one(self):
        """50 / (1 * 0.85) = 58.8 kW -> 107 panels."""
        params = SizingParameters(60, 100, 0, 85, 550)
        assert size(flat_year(), params=params).panel_count == 107

    def test_defaults_read_when_constructed(self, monkeypatch):
        patched = copy.deepcopy(config.defaults())
        patched["project"]["panel_wattage"] = 400
        patched["project"]["peak_sun_hours"] = 6.0
        monkeypatch.setattr(config, "_defaults", patched)
        params = SizingParameters()
        assert params.panel_wattage == 400
        assert params.peak_sun_hours == 6.0

    def test_unknown_regime(self):
        with pytest.raises(ValueError):
            size(flat_year(), regime="feed_in")


class TestCoverage:
    def test_full_coverage_is_capped(self):
        rec = size(flat_year())
        assert rec.summer_coverage == 100
        assert rec.winter_coverage == 100
        assert rec.annual_coverage == 100

    def test_partial_coverage(self):
        """6.6 kWp makes 11262 kWh/yr against 18000 kWh -> 62.6%."""
        rec = size(flat_year(), SELF_CONSUMPTION, battery=False)
        assert rec.annual_coverage == pytest.approx(6.6 * 5.5 * 365 * 0.85 / 18000 * 100)

    def test_no_summer_bills_means_full_summer_coverage(self):
        ledger = Ledger()
        ledger.add_text("Jan 900, Feb 800", FlatTariff(0.5))
        assert size(ledger).summer_coverage == 100

    @pytest.mark.parametrize("psh", [0, 2.5, 5.5, 9])
    @pytest.mark.parametrize("watts", [0, 300, 550])
    @pytest.mark.parametrize("regime", [NET_METERING, SELF_CONSUMPTION])
    def test_coverage_bounds(self, psh, watts, regime):
        ledger = Ledger()
        ledger.add_text("Jan 400, Jul 2600, Oct 1200", FlatTariff(0.5))
        params = SizingParameters(35, 100, psh, 80, watts)
        rec = size(ledger, regime, params=params)
        for value in (rec.summer_coverage, rec.winter_coverage, rec.annual_coverage):
            assert 0 <= value <= 100
