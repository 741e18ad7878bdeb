from league_history.models.analytics import FranchiseTrajectory, Unavailable
from league_history.services.trajectory import compute_trajectory, is_fully_recorded
from tests.factories import game, history, season

SCORES = {"a": 100, "b": 90, "c": 80, "d": 70}


def _season(year, weeks=(1, 2), complete=True):
    games = []
    for week in weeks:
        games.append(game(year, week, "a", SCORES["a"], "b", SCORES["b"]))
        games.append(game(year, week, "c", SCORES["c"], "d", SCORES["d"]))
    return season(year, games=games, regular_season_weeks=2, complete=complete)


def test_fully_recorded_requires_completion_and_every_week():
    assert is_fully_recorded(_season(2023))
    assert not is_fully_recorded(_season(2023, complete=False))
    assert not is_fully_recorded(_season(2023, weeks=(1,)))


def test_war_is_cumulative_points_over_median_and_carries_across_seasons():
    result = compute_trajectory(history(_season(2023), _season(2024)), window=2)
    assert isinstance(result, FranchiseTrajectory)

    a = result.managers["a"]
    assert [p.cumulative_war for p in a.points] == [15.0, 30.0, 45.0, 60.0]
    assert [p.rolling_war for p in a.points] == [15.0, 30.0, 30.0, 30.0]
    assert [(p.season, p.week, p.index) for p in a.points] == [(2023, 1, 0), (2023, 2, 1), (2024, 1, 2), (2024, 2, 3)]
    assert [(s.season, s.war, s.cumulative_war) for s in a.seasons] == [(2023, 30.0, 30.0), (2024, 30.0, 60.0)]

    d = result.managers["d"]
    assert d.points[-1].cumulative_war == -60.0
    assert [(b.season, b.start_index) for b in result.season_boundaries] == [(2023, 0), (2024, 2)]
    assert result.completed_seasons == [2023, 2024]


def test_in_progress_season_still_plotted():
    result = compute_trajectory(history(_season(2023), _season(2024, weeks=(1,), complete=False)))
    assert result.completed_seasons == [2023]
    assert len(result.managers["a"].points) == 3


def test_no_completed_season_is_unavailable():
    result = compute_trajectory(history(_season(2024, complete=False)))
    assert isinstance(result, Unavailable)
