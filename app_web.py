import logging
import os

from fastapi import FastAPI
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel, Field
from pvcalc.errors import PVCalcError
from pvcalc.ledger import parse_entries
from pvcalc.simulate import analyze
from pvcalc.snapshot import ProjectSnapshot, export_bundle, from_snapshot, render_report, to_snapshot

logging.basicConfig(level=os.environ.get("PVCALC_LOG_LEVEL", "INFO"))
logger = logging.getLogger("pvcalc.web")

app = FastAPI(title="PV sizing & payback calculator")

# ---------- Models ----------

class BillText(BaseModel):
    text: str = Field(default="", description='e.g. "Jan-2000, Feb 2100; Mar1950"')

def _error(e: Exception):
    logger.warning("request failed: %s", e)
    return {"status": "error", "message": str(e)}

# ---------- API ----------

@app.post("/api/bills/parse")
def api_parse_bills(inp: BillText):
    entries = parse_entries(inp.text)
    return {"status": "ok",
            "entries": [{"month": m, "consumption": c} for m, c in entries]}

@app.post("/api/analyze")
def api_analyze(snap: ProjectSnapshot):
    try:
        res = analyze(from_snapshot(snap))
        return {"status": "ok", **res.summary()}
    except (PVCalcError, ValueError) as e:
        return _error(e)

@app.post("/api/estimate")
def api_estimate(snap: ProjectSnapshot):
    # fills missing months and hands back the updated snapshot
    try:
        project = from_snapshot(snap)
        estimated = project.estimate_full_year()
        return {"status": "ok",
                "estimated": [b.month for b in estimated],
                "snapshot": to_snapshot(project).model_dump(by_alias=True)}
    except (PVCalcError, ValueError) as e:
        return _error(e)

@app.post("/api/report", response_class=PlainTextResponse)
def api_report(snap: ProjectSnapshot):
    return render_report(from_snapshot(snap))

@app.post("/api/export")
def api_export(snap: ProjectSnapshot):
    try:
        return {"status": "ok", **export_bundle(from_snapshot(snap))}
    except (PVCalcError, ValueError) as e:
        return _error(e)

# Health
@app.get("/health")
def health():
    return {"status": "ok"}
