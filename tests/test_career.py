from league_history.services.career import career_breakdowns, head_to_head
from tests.factories import game, history, season, team


def _history():
    return history(
        season(2022,
               games=[game(2022, 1, "alice", 120, "bob", 100),
                      game(2022, 15, "alice", 130, "bob", 90, playoff=True)],
               standings=[team("alice", 1, wins=10, losses=4, points_for=1500, rank=1),
                          team("bob", 2, wins=4, losses=10, points_for=1200, rank=2)],
               champion="alice"),
        season(2023,
               games=[game(2023, 1, "bob", 110, "alice", 100),
                      game(2023, 2, "bob", 95, "alice", 95)],
               standings=[team("alice", 1, wins=6, losses=8, points_for=1300, rank=2),
                          team("bob", 2, wins=8, losses=6, points_for=1400, rank=1)],
               complete=False),
    )


def test_career_totals():
    careers = career_breakdowns(_history())
    alice = careers["alice"]

    assert (alice.wins, alice.losses) == (16, 12)
    assert alice.titles == 1
    assert (alice.playoff_wins, alice.playoff_losses) == (1, 0)
    assert alice.seasons_played == [2022, 2023]
    assert alice.avg_points_for == 1400
    assert alice.best_season.season == 2022
    assert alice.worst_season.season == 2023
    assert alice.tier == "Elite"
    assert careers["bob"].titles == 0
    assert careers["bob"].tier == "Cellar Dweller"


def test_head_to_head_from_either_side():
    record = head_to_head(_history(), "bob", "alice")

    assert (record.wins_a, record.wins_b, record.ties) == (1, 2, 1)
    assert record.playoff_wins_b == 1
    assert record.points_a == 100 + 90 + 110 + 95
    assert [g.winner for g in record.games] == ["B", "B", "A", "tie"]
