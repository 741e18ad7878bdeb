import pytest

from league_history.models.analytics import SeasonDraft
from league_history.models.sleeper import Draft, DraftPick, Matchup
from league_history.services.drafts import (
    analyze_drafts,
    build_pick_resolutions,
    classify_surplus,
    original_slot_owner,
    replacement_levels,
    season_player_points,
    slot_in_round,
    summarize_cross_league_drafts,
)
from tests.factories import season

SEASON = season(2023, users=["alice", "bob"])  # rosters 1, 2
DRAFT = Draft(draft_id="d1", season="2023", type="snake", status="complete",
              settings={"teams": 2}, slot_to_roster_id={"1": 1, "2": 2})


def pick(pick_no, round, roster_id, player_id, position="RB", keeper=False):
    return DraftPick(
        draft_id="d1", pick_no=pick_no, round=round, roster_id=roster_id, player_id=player_id,
        is_keeper=keeper,
        metadata={"position": position, "first_name": player_id.upper(), "last_name": "Player"},
    )


def two_round_draft(keeper=False):
    picks = (
        pick(1, 1, 1, "a1"),
        pick(2, 1, 2, "b1"),
        pick(3, 2, 2, "b2", keeper=keeper),
        pick(4, 2, 1, "a2"),
    )
    points = {"a1": 300.0, "b1": 100.0, "b2": 200.0, "a2": 50.0}
    return SeasonDraft(season=SEASON, draft=DRAFT, picks=picks, player_points=points)


def test_season_player_points_sums_weeks():
    weekly = [
        [Matchup(roster_id=1, players_points={"a1": 10.0, "b1": 5.0})],
        [Matchup(roster_id=1, players_points={"a1": 7.5}), Matchup(roster_id=2, players_points=None)],
    ]
    assert season_player_points(weekly) == {"a1": 17.5, "b1": 5.0}


def test_replacement_level_is_position_median():
    draft = two_round_draft()
    assert replacement_levels(draft.picks, draft.player_points) == {"RB": 150.0}


def test_snake_slots_reverse_on_even_rounds():
    assert [slot_in_round(p, DRAFT) for p in two_round_draft().picks] == [1, 2, 2, 1]
    linear = DRAFT.model_copy(update={"type": "linear"})
    assert slot_in_round(pick(3, 2, 1, "x"), linear) == 1


def test_original_owner_follows_slot_not_drafter():
    traded = DraftPick(draft_id="d1", pick_no=1, round=1, roster_id=2, picked_by="bob", player_id="x")
    assert original_slot_owner(traded, DRAFT, SEASON.roster_to_user) == "alice"
    unknown_order = DRAFT.model_copy(update={"slot_to_roster_id": None})
    assert original_slot_owner(traded, unknown_order, SEASON.roster_to_user) == "bob"


def test_pick_resolutions_keyed_by_original_owner():
    resolutions = build_pick_resolutions([two_round_draft()])
    assert resolutions[(2023, 1, "alice")].player_id == "a1"
    assert resolutions[(2023, 2, "bob")].player_id == "b2"
    assert resolutions[(2023, 2, "bob")].slot == 2
    assert resolutions[(2023, 1, "bob")].player_name == "B1 Player"
    assert resolutions[(2023, 1, "alice")].season_points == 300.0


@pytest.mark.parametrize("surplus,label", [(26, "hit"), (25, "neutral"), (-25, "neutral"), (-26, "bust")])
def test_classify_surplus(surplus, label):
    assert classify_surplus(surplus) == label


def test_analyze_drafts_grades_surplus_over_round_expectation():
    analysis = analyze_drafts([two_round_draft()])

    assert analysis.has_data
    assert analysis.expected_war_by_round == {1: 50.0, 2: -25.0}

    alice = analysis.managers["alice"]
    assert alice.total_picks == 2
    assert alice.total_surplus == pytest.approx(25.0)
    assert alice.hits == 1 and alice.busts == 1
    assert alice.hit_rate + alice.bust_rate + alice.neutral_rate == pytest.approx(1.0)
    assert alice.best_pick.player_id == "a1"
    assert alice.worst_pick.player_id == "a2"
    assert alice.league_rank == 1
    assert alice.surplus_percentile == 100.0

    bob = analysis.managers["bob"]
    assert bob.total_surplus == pytest.approx(-25.0)
    assert bob.league_rank == 2
    assert [c.season for c in bob.draft_classes] == [2023]


def test_keepers_listed_but_not_graded():
    analysis = analyze_drafts([two_round_draft(keeper=True)])
    assert analysis.expected_war_by_round[2] == -100.0

    bob = analysis.managers["bob"]
    keeper = next(p for p in bob.draft_classes[0].picks if p.player_id == "b2")
    assert keeper.classification == "keeper"
    assert keeper.surplus is None
    assert bob.total_picks == 2
    assert bob.graded_picks == 1
    assert bob.bust_rate == 1.0
    assert bob.total_war == pytest.approx(0.0)  # -50 drafted, +50 kept

    a2 = next(p for p in analysis.managers["alice"].draft_classes[0].picks if p.player_id == "a2")
    assert a2.classification == "neutral"


def test_no_picks_no_data():
    empty = SeasonDraft(season=SEASON, draft=DRAFT)
    assert analyze_drafts([empty]).has_data is False


def test_cross_league_drafts():
    stats = summarize_cross_league_drafts(
        "alice",
        {"league-2023": analyze_drafts([two_round_draft()]), "other": analyze_drafts([])},
        {"league-2023": "Dynasty Bros", "other": "Other"},
    )
    assert stats.has_data
    assert stats.total_picks == 2
    assert stats.hit_rate == 0.5
    assert stats.best_pick.player_id == "a1"
    assert [b.league_name for b in stats.per_league] == ["Dynasty Bros"]
