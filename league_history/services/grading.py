import math
from typing import Sequence

from ..models.analytics import GradeBand

# Ordered best to worst; the first band whose threshold the score meets wins.
GRADE_BANDS: Sequence[GradeBand] = (
    GradeBand(threshold=90.0, grade="A+", color="text-emerald-400"),
    GradeBand(threshold=75.0, grade="A", color="text-green-400"),
    GradeBand(threshold=50.0, grade="B", color="text-lime-400"),
    GradeBand(threshold=25.0, grade="C", color="text-yellow-400"),
    GradeBand(threshold=10.0, grade="D", color="text-orange-400"),
    GradeBand(threshold=-math.inf, grade="F", color="text-red-400"),
)


def assign_grade(score: float, bands: Sequence[GradeBand] = GRADE_BANDS) -> GradeBand:
    """Map a 0-100 score onto the grade band table."""
    for band in bands:
        if score >= band.threshold:
            return band
    return bands[-1]


def squash(x: float) -> float:
    """Map any real onto (0, 1), strictly increasing, squash(0) == 0.5."""
    return 0.5 + 0.5 * math.tanh(x)


def blended_score(rate: float, rate_weight: float, magnitude: float, magnitude_weight: float, scale: float) -> float:
    """
    Blend a rate in [0, 1] with an unbounded magnitude into a 0-100 score.

    Non-negative weights keep the score monotonic in both inputs.
    """
    total_weight = rate_weight + magnitude_weight
    if total_weight <= 0:
        return 0.0
    rate = min(1.0, max(0.0, rate))
    combined = rate_weight * rate + magnitude_weight * squash(magnitude / scale)
    return 100.0 * combined / total_weight


def percentile_by_rank(sorted_count: int, idx: int) -> float:
    """Rank 0 of n is the 100th percentile, rank n-1 the 0th."""
    if sorted_count <= 1:
        return 100.0
    return (sorted_count - idx - 1) / (sorted_count - 1) * 100.0
