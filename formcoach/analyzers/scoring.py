"""
Scoring Module
==============

The two per-frame form scoring strategies.

    flat_penalty_score: coarse phase score, fixed deduction per failed
        angle check
    severity_weighted_score: rule score, deduction by violation severity
"""

from typing import Iterable

from .profiles import Severity

MAX_SCORE = 100.0
MIN_SCORE = 0.0

SEVERITY_PENALTIES = {
    Severity.CRITICAL: 30.0,
    Severity.MAJOR: 15.0,
    Severity.MINOR: 5.0,
}


def clamp_score(score: float) -> float:
    return max(MIN_SCORE, min(MAX_SCORE, score))


def flat_penalty_score(failed_checks: int, penalty: float = 15.0) -> float:
    """100 minus ``penalty`` per failed check, floored at 0."""
    return clamp_score(MAX_SCORE - penalty * failed_checks)


def severity_weighted_score(severities: Iterable[Severity]) -> float:
    """100 minus the stacked severity penalties, clamped to [0, 100]."""
    score = MAX_SCORE
    for severity in severities:
        score -= SEVERITY_PENALTIES[severity]
    return clamp_score(score)
