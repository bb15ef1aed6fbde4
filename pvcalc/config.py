import os
from pathlib import Path

import yaml

BASE = Path(__file__).resolve().parent
DATA = Path(os.environ.get("PVCALC_DATA_DIR", BASE / "data"))

def load_yaml(name: str):
    with open(DATA / name, "r", encoding="utf-8") as f:
        return yaml.safe_load(f)

# lazy read-only caches
_defaults = None
_tariffs = None

def defaults():
    global _defaults
    if _defaults is None:
        _defaults = load_yaml("defaults.yaml")
    return _defaults

def tariffs():
    global _tariffs
    if _tariffs is None:
        _tariffs = load_yaml("tariffs.yaml")
    return _tariffs

def months() -> list[str]:
    return list(defaults()["months"])

def month_index(month: str) -> int:
    return months().index(month)

def seasonal_factor(month: str) -> float:
    return float(defaults()["seasonal_factors"][month])

def summer_months() -> set[str]:
    return set(defaults()["summer_months"])

def project_default(key: str):
    return defaults()["project"][key]

def regime_for_authority(authority: str) -> str:
    """Map a utility authority code (DEWA/FEWA) to its billing regime."""
    table = defaults()["authorities"]
    if authority not in table:
        raise ValueError(f"authority must be one of: {' / '.join(table)}")
    return table[authority]
