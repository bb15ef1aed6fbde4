"""Project snapshot import/export and the plain-text project report.

A snapshot is the JSON record of every input of a `Project`; results are
never stored and are re-derived with `simulate.analyze` after loading.
Loading is all-or-nothing: any problem raises `SnapshotLoadError` and the
caller keeps whatever project it already had.
"""
import json
import logging
from datetime import date
from pathlib import Path
from typing import Literal

from jinja2 import Environment, FileSystemLoader
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from .config import BASE, defaults, months, project_default, regime_for_authority, tariffs
from .energy import SizingParameters
from .errors import SnapshotLoadError
from .ledger import Bill, Ledger
from .project import Project
from .simulate import Analysis, analyze
from .tariff import Tier, round_half_up, tier_chain_problems

logger = logging.getLogger(__name__)


# ---------- Models ----------

class TierRecord(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    start: int = Field(alias="from", ge=0)
    end: int | None = Field(alias="to", default=None)  # null = unbounded
    rate: float = Field(ge=0)


class BillRecord(BaseModel):
    month: str
    consumption: float = Field(ge=0)
    amount: float = Field(ge=0)
    isEstimated: bool = False

    @field_validator("month")
    @classmethod
    def known_month(cls, v: str) -> str:
        if v not in months():
            raise ValueError(f"unknown month: {v}")
        return v


def _default_tiers():
    return [TierRecord.model_validate(t) for t in tariffs()["tiers"]]


class ProjectSnapshot(BaseModel):
    projectName: str = Field(default_factory=lambda: project_default("project_name"))
    location: str = Field(default_factory=lambda: project_default("location"))
    authority: str = Field(default_factory=lambda: project_default("authority"))
    batteryEnabled: bool = False
    bills: list[BillRecord] = Field(default_factory=list)
    rateStructure: Literal["flat", "tiered"] = Field(default_factory=lambda: tariffs()["rate_structure"])
    electricityRate: float = Field(default_factory=lambda: float(tariffs()["flat_rate"]), ge=0)
    tiers: list[TierRecord] = Field(default_factory=_default_tiers)
    daytimeConsumption: float = Field(default_factory=lambda: project_default("daytime_consumption"), ge=0, le=100)
    availableSpace: float = Field(default_factory=lambda: project_default("available_space"), ge=0)
    peakSunHours: float = Field(default_factory=lambda: project_default("peak_sun_hours"))
    systemEfficiency: float = Field(default_factory=lambda: project_default("system_efficiency"))
    panelWattage: float = Field(default_factory=lambda: project_default("panel_wattage"))
    systemCost: float | None = None

    @field_validator("authority")
    @classmethod
    def known_authority(cls, v: str) -> str:
        regime_for_authority(v)
        return v

    @field_validator("systemCost", mode="before")
    @classmethod
    def blank_cost(cls, v):
        # the form keeps the cost as free text; empty means "not entered"
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @model_validator(mode="after")
    def one_bill_per_month(self):
        seen = [b.month for b in self.bills]
        if len(seen) != len(set(seen)):
            raise ValueError("bills contain the same month twice")
        return self


# ---------- Conversion ----------

def to_snapshot(project: Project) -> ProjectSnapshot:
    s = project.sizing
    return ProjectSnapshot(
        projectName=project.project_name,
        location=project.location,
        authority=project.authority,
        batteryEnabled=project.battery_enabled,
        bills=[BillRecord(month=b.month, consumption=b.consumption, amount=b.amount,
                          isEstimated=b.is_estimated) for b in project.ledger],
        rateStructure=project.rate_structure,
        electricityRate=project.electricity_rate,
        tiers=[TierRecord(start=t.start, end=t.end, rate=t.rate) for t in project.tiers],
        daytimeConsumption=s.daytime_consumption,
        availableSpace=s.available_space,
        peakSunHours=s.peak_sun_hours,
        systemEfficiency=s.system_efficiency,
        panelWattage=s.panel_wattage,
        systemCost=project.system_cost,
    )


def from_snapshot(snap: ProjectSnapshot) -> Project:
    tiers = tuple(Tier(t.start, t.end, t.rate) for t in snap.tiers)
    if snap.rateStructure == "tiered":
        for problem in tier_chain_problems(tiers):
            logger.warning("loaded tariff: %s", problem)
    return Project(
        project_name=snap.projectName,
        location=snap.location,
        authority=snap.authority,
        battery_enabled=snap.batteryEnabled,
        ledger=Ledger(Bill(b.month, b.consumption, b.amount, b.isEstimated) for b in snap.bills),
        rate_structure=snap.rateStructure,
        electricity_rate=snap.electricityRate,
        tiers=tiers,
        sizing=SizingParameters(
            daytime_consumption=snap.daytimeConsumption,
            available_space=snap.availableSpace,
            peak_sun_hours=snap.peakSunHours,
            system_efficiency=snap.systemEfficiency,
            panel_wattage=snap.panelWattage,
        ),
        system_cost=snap.systemCost,
    )


def export_snapshot(project: Project) -> str:
    return to_snapshot(project).model_dump_json(by_alias=True, indent=2)


def load_snapshot(text: str | bytes) -> Project:
    try:
        snap = ProjectSnapshot.model_validate_json(text)
        project = from_snapshot(snap)
    except (ValidationError, ValueError) as e:
        logger.warning("rejected project snapshot: %s", e)
        raise SnapshotLoadError(f"Could not load the project file: {e}") from e
    logger.info("loaded project %r with %d bill(s)", project.project_name, len(project.ledger))
    return project


def load_snapshot_file(path) -> Project:
    try:
        text = Path(path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        logger.warning("cannot read project file %s: %s", path, e)
        raise SnapshotLoadError(f"Could not load the project file: {e}") from e
    return load_snapshot(text)


def save_snapshot_file(path, project: Project) -> Path:
    path = Path(path)
    path.write_text(export_snapshot(project), encoding="utf-8")
    logger.info("saved project snapshot to %s", path)
    return path


# ---------- Report ----------

def _thousands(value) -> str:
    return f"{round_half_up(value or 0):,}"

_env = Environment(loader=FileSystemLoader(str(BASE / "templates")),
                   trim_blocks=True, keep_trailing_newline=True)
_env.filters["thousands"] = _thousands


def render_report(project: Project, analysis: Analysis | None = None,
                  today: date | None = None) -> str:
    if analysis is None:
        analysis = analyze(project)
    summary = analysis.summary()
    title = project_default("report_title")
    return _env.get_template("report.txt.j2").render(
        title=title,
        project_name=project.project_name or "Solar Project",
        location=project.location,
        authority=project.authority,
        date=(today or date.today()).isoformat(),
        battery_enabled=project.battery_enabled,
        currency=project_default("currency"),
        system_cost=project.system_cost,
        horizon=defaults()["lifetime_years"],
        **summary,
    )


def export_bundle(project: Project, today: date | None = None) -> dict:
    """Snapshot record plus the human-readable report."""
    return {
        "snapshot": json.loads(export_snapshot(project)),
        "report": render_report(project, today=today),
    }
