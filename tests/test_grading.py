import pytest

from league_history.services.grading import (
    assign_grade,
    blended_score,
    percentile_by_rank,
    squash,
)


@pytest.mark.parametrize("score,grade", [
    (100, "A+"), (90, "A+"), (89.9, "A"), (75, "A"), (50, "B"),
    (25, "C"), (10, "D"), (9.99, "F"), (-5, "F"),
])
def test_grade_bands(score, grade):
    assert assign_grade(score).grade == grade


def test_squash_is_centered_and_bounded():
    assert squash(0) == 0.5
    assert 0 < squash(-5) < squash(-1) < squash(1) < squash(5) < 1


def test_blended_score_monotonic_in_both_inputs():
    rates = [0.0, 0.25, 0.5, 0.75, 1.0]
    magnitudes = [-10000, -1000, 0, 1000, 10000]
    for magnitude in magnitudes:
        scores = [blended_score(r, 0.5, magnitude, 0.5, 5000) for r in rates]
        assert scores == sorted(scores)
    for rate in rates:
        scores = [blended_score(rate, 0.5, m, 0.5, 5000) for m in magnitudes]
        assert scores == sorted(scores)


def test_blended_score_range():
    assert blended_score(0.5, 1, 0, 1, 100) == pytest.approx(50.0)
    assert 0 <= blended_score(0, 1, -1e9, 1, 100) < 1
    assert 99 < blended_score(1, 1, 1e9, 1, 100) <= 100


def test_percentile_by_rank():
    assert percentile_by_rank(1, 0) == 100.0
    assert percentile_by_rank(5, 0) == 100.0
    assert percentile_by_rank(5, 4) == 0.0
    assert percentile_by_rank(5, 2) == 50.0
