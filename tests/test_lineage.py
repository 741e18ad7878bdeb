from league_history.models.sleeper import League
from league_history.services.lineage import find_lineage, resolve_lineages, to_league_ref, valid_matchups
from tests.factories import game, ref, season


def test_leagues_with_the_same_name_form_one_lineage_newest_first():
    lineages = resolve_lineages([
        ref("a-2022", "Dynasty Bros", 2022),
        ref("b-2024", "Redraft Pals", 2024),
        ref("a-2024", "Dynasty Bros", 2024),
        ref("a-2023", "Dynasty Bros", 2023),
    ])

    assert [lin.name for lin in lineages] == ["Dynasty Bros", "Redraft Pals"]
    dynasty = lineages[0]
    assert dynasty.league_ids == ["a-2024", "a-2023", "a-2022"]
    assert dynasty.root_league_id == "a-2024"


def test_lineages_ordered_by_most_recent_season():
    lineages = resolve_lineages([
        ref("old", "Zebra League", 2021),
        ref("new", "Alpha League", 2024),
        ref("mid", "Middle League", 2023),
    ])
    assert [lin.root_league_id for lin in lineages] == ["new", "mid", "old"]


def test_duplicate_name_and_season_keeps_first_league():
    lineages = resolve_lineages([
        ref("first", "Dynasty Bros", 2024),
        ref("second", "Dynasty Bros", 2024),
    ])
    assert len(lineages) == 1
    assert lineages[0].league_ids == ["first"]


def test_no_leagues_means_no_lineages():
    assert resolve_lineages([]) == []


def test_to_league_ref_parses_season():
    league = League(league_id="1", name="Dynasty Bros", season="2023", total_rosters=12,
                    roster_positions=["QB", "RB", "FLEX"])
    result = to_league_ref(league)
    assert result.season == 2023
    assert result.roster_positions == ("QB", "RB", "FLEX")


def test_find_lineage_by_root():
    lineages = resolve_lineages([ref("a-2024", "Dynasty Bros", 2024), ref("a-2023", "Dynasty Bros", 2023)])
    assert find_lineage(lineages, "a-2024").name == "Dynasty Bros"
    # only the newest season identifies a lineage
    assert find_lineage(lineages, "a-2023") is None


def test_valid_matchups_skips_unknown_self_and_unplayed():
    s = season(2023, users=["alice", "bob"], games=[
        game(2023, 2, "alice", 100, "bob", 90),
        game(2023, 1, "alice", 100, "ghost", 90),
        game(2023, 3, "alice", 100, "alice", 90),
        game(2023, 4, "alice", 0, "bob", 0),
        game(2023, 1, "bob", 80, "alice", 70),
    ])
    result = valid_matchups(s)
    assert [(m.week, m.user_a) for m in result] == [(1, "bob"), (2, "alice")]
