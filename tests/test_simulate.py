"""Project session and the recompute pipeline."""

import pytest

from pvcalc.netbilling import NET_METERING, SELF_CONSUMPTION
from pvcalc.project import Project
from pvcalc.simulate import analyze, monthly_profile
from pvcalc.tariff import FlatTariff, TieredTariff

YEAR = ("Jan 1100, Feb 1000, Mar 1200, Apr 1400, May 1800, Jun 2100, "
        "Jul 2300, Aug 2250, Sep 1900, Oct 1600, Nov 1300, Dec 1150")


@pytest.fixture
def project():
    p = Project(project_name="Villa 12")
    p.add_bills(YEAR)
    p.set_system_cost(30000)
    return p


class TestProject:
    def test_defaults(self):
        p = Project()
        assert p.location == "Dubai, UAE"
        assert p.authority == "DEWA"
        assert p.regime == NET_METERING
        assert p.sizing.peak_sun_hours == 5.5
        assert p.sizing.panel_wattage == 550
        assert isinstance(p.tariff, FlatTariff)

    def test_battery_only_under_self_consumption(self):
        p = Project()
        p.set_battery(True)
        assert not p.battery_enabled
        p.set_authority("FEWA")
        assert p.regime == SELF_CONSUMPTION
        p.set_battery(True)
        assert p.battery_enabled
        p.set_authority("DEWA")
        assert not p.battery_enabled

    def test_unknown_authority(self):
        with pytest.raises(ValueError):
            Project(authority="XYZ")
        with pytest.raises(ValueError):
            Project().set_authority("XYZ")

    def test_rate_structure_switch(self):
        p = Project()
        p.set_rate_structure("tiered")
        assert isinstance(p.tariff, TieredTariff)
        with pytest.raises(ValueError):
            p.set_rate_structure("time_of_use")

    def test_bill_amount_kept_after_tariff_change(self):
        p = Project()
        p.add_bills("Jan 5000")
        p.set_rate_structure("tiered")
        p.add_bills("Feb 5000")
        assert p.ledger.get("January").amount == pytest.approx(2500)
        assert p.ledger.get("February").amount == pytest.approx(1800)

    def test_tier_edits_keep_chain(self):
        p = Project()
        p.add_tier()
        p.update_tier(0, "to", 1000)
        p.remove_tier(2)
        starts = [t.start for t in p.tiers]
        assert starts[:2] == [0, 1001]
        assert p.tiers[-1].end is None
        for lo, hi in zip(p.tiers, p.tiers[1:]):
            assert lo.end + 1 == hi.start

    def test_sizing_replaced_whole(self, project):
        before = project.sizing
        project.set_sizing(panel_wattage=400)
        assert project.sizing.panel_wattage == 400
        assert before.panel_wattage == 550


class TestPipeline:
    def test_full_analysis(self, project):
        res = analyze(project)
        assert res.seasons.summer_avg == pytest.approx(2070)
        assert res.system.panel_count > 0
        assert res.financials.annual_savings > 0
        assert res.financials.payback_period is not None
        assert len(res.financials.years) == 25

    def test_recomputes_after_mutation(self, project):
        first = analyze(project)
        project.set_authority("FEWA")
        second = analyze(project)
        assert second.system.panel_count < first.system.panel_count
        project.set_battery(True)
        third = analyze(project)
        assert third.system.battery_capacity > 0

    def test_deterministic(self, project):
        assert analyze(project) == analyze(project)

    def test_no_cost_gives_empty_financials(self, project):
        project.set_system_cost(None)
        res = analyze(project)
        assert res.financials.annual_savings == 0
        assert res.summary()["financial"]["payback_period"] == "unattained"

    def test_empty_project(self):
        res = analyze(Project())
        assert res.system.panel_count == 0
        assert res.seasons.daily_avg == 0

    def test_summary_is_rounded(self, project):
        summary = analyze(project).summary()
        assert set(summary) == {"seasonal", "system", "financial", "cashflow", "years", "profile"}
        assert isinstance(summary["system"]["annual_production"], int)
        assert summary["years"] == list(range(1, 26))


class TestMonthlyProfile:
    def test_twelve_rows(self, project):
        project.remove_bill("March")
        res = analyze(project)
        rows = monthly_profile(project.ledger, res.system)
        assert [r["month"] for r in rows][:3] == ["January", "February", "March"]
        assert len(rows) == 12
        assert rows[2]["consumption"] == 0
        assert rows[0]["production"] == pytest.approx(res.system.annual_production / 12)
