import asyncio

from league_history import client
from league_history.errors import UpstreamUnavailable
from league_history.models.sleeper import League
from league_history.services import sleeper_service

LEAGUE = League(
    league_id="L1", name="Dynasty Bros", season="2023", status="complete", total_rosters=4,
    settings={"playoff_week_start": 3}, roster_positions=["QB", "RB", "WR", "SUPER_FLEX"],
    scoring_settings={"rec": 0.5},
)

USERS = [
    {"user_id": "u1", "display_name": "Alice", "metadata": {"team_name": "Team A"}},
    {"user_id": "u2", "display_name": "Bob"},
    {"user_id": "u3", "display_name": "Carol"},
    {"user_id": "u4", "display_name": "Dave"},
]

ROSTERS = [
    {"roster_id": 1, "owner_id": "u1", "settings": {"wins": 2, "losses": 0, "fpts": 250, "fpts_decimal": 50}},
    {"roster_id": 2, "owner_id": "u2", "settings": {"wins": 1, "losses": 1, "fpts": 230}},
    {"roster_id": 3, "owner_id": "u3", "settings": {"wins": 1, "losses": 1, "fpts": 240}},
    {"roster_id": 4, "owner_id": "u4", "settings": {"wins": 0, "losses": 2, "fpts": 200}},
]

WEEKS = {
    1: [
        {"roster_id": 1, "matchup_id": 1, "points": 120.5, "players_points": {"p1": 20.0}},
        {"roster_id": 2, "matchup_id": 1, "points": 100.0},
        {"roster_id": 3, "matchup_id": 2, "points": 110.0},
        {"roster_id": 4, "matchup_id": 2, "points": 90.0},
    ],
    2: [
        {"roster_id": 1, "matchup_id": 1, "points": 130.0},
        {"roster_id": 3, "matchup_id": 1, "points": 130.0},
        {"roster_id": 2, "matchup_id": 2, "points": 130.0},
        {"roster_id": 4, "matchup_id": 2, "points": 110.0},
    ],
    3: [
        # winners bracket final and a consolation game
        {"roster_id": 1, "matchup_id": 1, "points": 140.0},
        {"roster_id": 3, "matchup_id": 1, "points": 120.0},
        {"roster_id": 2, "matchup_id": 2, "points": 99.0},
        {"roster_id": 4, "matchup_id": 2, "points": 98.0},
    ],
}

BRACKET = [{"r": 1, "m": 1, "t1": 1, "t2": 3, "w": 1, "l": 3, "p": 1}]


def fake_client(monkeypatch):
    async def get_league_users(league_id):
        return USERS

    async def get_league_rosters(league_id):
        return ROSTERS

    async def get_winners_bracket(league_id):
        return BRACKET

    async def get_weekly_matchups(league_id, weeks):
        return [WEEKS.get(week, []) for week in range(1, weeks + 1)]

    monkeypatch.setattr(client, "get_league_users", get_league_users)
    monkeypatch.setattr(client, "get_league_rosters", get_league_rosters)
    monkeypatch.setattr(client, "get_winners_bracket", get_winners_bracket)
    monkeypatch.setattr(client, "get_weekly_matchups", get_weekly_matchups)


def test_fetch_season_normalizes_league(monkeypatch):
    fake_client(monkeypatch)
    season, weekly = asyncio.run(sleeper_service.fetch_season(LEAGUE))

    assert season.season == 2023
    assert season.regular_season_weeks == 2
    assert season.roster_to_user == {1: "u1", 2: "u2", 3: "u3", 4: "u4"}
    assert season.managers["u1"].team_name == "Team A"
    assert season.champion() == "u1"

    assert [t.user_id for t in season.standings] == ["u1", "u3", "u2", "u4"]
    assert season.team("u1").points_for == 250.5
    assert season.team("u1").rank == 1

    assert len(season.regular_season_matchups) == 4
    playoffs = season.playoff_matchups
    assert len(playoffs) == 1
    assert {playoffs[0].user_a, playoffs[0].user_b} == {"u1", "u3"}
    assert weekly[0][0].players_points == {"p1": 20.0}


def test_byes_and_unowned_rosters_skipped(monkeypatch):
    fake_client(monkeypatch)
    rosters = ROSTERS[:3] + [{"roster_id": 4, "owner_id": None}]
    weeks = {1: WEEKS[1] + [{"roster_id": 5, "matchup_id": None, "points": 0.0}]}

    async def get_league_rosters(league_id):
        return rosters

    async def get_weekly_matchups(league_id, count):
        return [weeks.get(week, []) for week in range(1, count + 1)]

    monkeypatch.setattr(client, "get_league_rosters", get_league_rosters)
    monkeypatch.setattr(client, "get_weekly_matchups", get_weekly_matchups)
    season = asyncio.run(sleeper_service.load_season(LEAGUE))

    assert len(season.matchups) == 1
    assert 4 not in season.roster_to_user


def test_valuation_format_from_league():
    fmt = sleeper_service.valuation_format(LEAGUE)
    assert (fmt.num_qbs, fmt.num_teams, fmt.ppr) == (2, 4, 0.5)


def test_valuation_unavailable_returns_none(monkeypatch):
    async def failing(num_qbs, num_teams, ppr):
        raise UpstreamUnavailable("https://api.fantasycalc.com/values/current", 500)

    monkeypatch.setattr(client, "get_fantasycalc_values", failing)
    assert asyncio.run(sleeper_service.load_valuation(LEAGUE)) is None


def test_user_lineages_group_seasons(monkeypatch):
    async def get_leagues_for_user(user_id, season):
        if season == "2023":
            return [{"league_id": "L1", "name": "Dynasty Bros", "season": "2023"}]
        if season == "2022":
            return [{"league_id": "L0", "name": "Dynasty Bros", "season": "2022"}, {"bad": "row"}]
        return []

    monkeypatch.setattr(client, "get_leagues_for_user", get_leagues_for_user)
    lineages, leagues = asyncio.run(sleeper_service.get_user_lineages("u1"))

    assert len(lineages) == 1
    assert lineages[0].league_ids == ["L1", "L0"]
    assert set(leagues) == {"L1", "L0"}
