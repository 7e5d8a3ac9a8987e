from __future__ import annotations
import math
from typing import Any, Dict

BASE_SCORE = 50

# Canonical server table. The listing form's preview also knew wood, glass,
# ceramic, metal, leather and polyester; those score as unknown here.
MATERIAL_SCORES: Dict[str, int] = {
    "recycled": 30,
    "organic": 25,
    "bamboo": 20,
    "cotton": 15,
    "plastic": -10,
    "synthetic": -15,
}

CONDITION_SCORES: Dict[str, int] = {
    "excellent": 20,
    "good": 15,
    "fair": 10,
    "poor": 5,
}

def _norm(v: Any) -> str:
    return v.strip().lower() if isinstance(v, str) else ""

def compute_eco_score(material: Any, condition: Any) -> int:
    score = BASE_SCORE
    score += MATERIAL_SCORES.get(_norm(material), 0)
    score += CONDITION_SCORES.get(_norm(condition), 0)
    return max(0, min(100, score))

def _round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))

def estimate_impact(price: Any, eco_score: Any) -> Dict[str, int]:
    """Rough savings shown next to a listing: kg of CO2 and litres of water."""
    try:
        p = max(0.0, float(price or 0))
        s = max(0, min(100, int(eco_score or 0)))
    except (TypeError, ValueError):
        p, s = 0.0, 0
    return {
        "co2SavedKg": _round_half_up(p * s / 100 * 0.5),
        "waterSavedL": _round_half_up(s / 10),
    }
