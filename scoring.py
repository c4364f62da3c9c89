# scoring.py

from __future__ import annotations

from collections import Counter
from typing import Dict, Iterable

from models import RISK_LEVELS, Finding

BASELINE_SCORE = 100

LEVEL_PENALTIES = {"High": 15, "Medium": 8, "Low": 3}


def score(findings: Iterable[Finding]) -> int:
    """Safety score in [0, 100]; every finding subtracts its level's penalty."""
    penalty = sum(LEVEL_PENALTIES.get(f.level, 0) for f in findings)
    return max(0, BASELINE_SCORE - penalty)


def risk_distribution(findings: Iterable[Finding]) -> Dict[str, int]:
    counts = Counter(f.level for f in findings)
    return {level: counts.get(level, 0) for level in RISK_LEVELS}


def score_band(value: int) -> str:
    if value > 80:
        return "safe"
    if value > 50:
        return "caution"
    return "danger"
