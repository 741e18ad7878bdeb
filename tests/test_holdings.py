from league_history.models.sleeper import Player, Roster
from league_history.services.holdings import compute_holdings
from tests.factories import ref

PLAYERS = {
    "qb": Player(player_id="qb", full_name="Josh Allen", position="QB", team="BUF"),
    "wr": Player(player_id="wr", full_name="Amon-Ra St. Brown", position="WR", team="DET"),
    "rb": Player(player_id="rb", full_name="Bijan Robinson", position="RB", team="ATL"),
}


def test_holdings_across_leagues_sorted_by_shares_then_position():
    league_rosters = [
        (ref("l1", "Dynasty Bros", 2024), [
            Roster(roster_id=1, owner_id="me", players=["wr", "qb", "unknown"]),
            Roster(roster_id=2, owner_id="them", players=["rb"]),
        ]),
        (ref("l2", "Work League", 2024), [
            Roster(roster_id=1, owner_id="me", players=["wr", "rb"]),
        ]),
        (ref("l3", "Not Mine", 2024), [
            Roster(roster_id=1, owner_id="them", players=["qb"]),
        ]),
    ]
    holdings = compute_holdings("me", league_rosters, PLAYERS)

    assert [(h.player_id, h.shares) for h in holdings] == [("wr", 2), ("qb", 1), ("rb", 1)]
    assert holdings[0].league_names == ["Dynasty Bros", "Work League"]
    assert holdings[0].team == "DET"


def test_no_rosters_no_holdings():
    assert compute_holdings("me", [], PLAYERS) == []
