from league_history.models.analytics import (
    LeagueRef,
    LeagueSeason,
    LineageHistory,
    ManagerInfo,
    Matchup,
    TeamSeason,
)

LEAGUE_NAME = "Dynasty Bros"


def game(season, week, user_a, points_a, user_b, points_b, playoff=False):
    return Matchup(
        season=season, week=week, user_a=user_a, user_b=user_b,
        points_a=points_a, points_b=points_b, is_playoff=playoff,
    )


def team(user_id, roster_id, wins=0, losses=0, points_for=0.0, rank=0, ties=0):
    return TeamSeason(
        user_id=user_id, roster_id=roster_id, wins=wins, losses=losses, ties=ties,
        points_for=points_for, rank=rank,
    )


def season(year, games=(), users=None, standings=(), champion=None, complete=True,
           regular_season_weeks=14, league_id=None):
    if users is None:
        users = sorted({g.user_a for g in games} | {g.user_b for g in games})
    return LeagueSeason(
        league_id=league_id or f"league-{year}",
        name=LEAGUE_NAME,
        season=year,
        roster_to_user={idx: user_id for idx, user_id in enumerate(users, start=1)},
        managers={user_id: ManagerInfo(user_id=user_id, display_name=user_id.title()) for user_id in users},
        standings=tuple(standings),
        matchups=tuple(games),
        champion_user_id=champion,
        regular_season_weeks=regular_season_weeks,
        is_complete=complete,
    )


def history(*seasons):
    return LineageHistory(
        name=LEAGUE_NAME,
        seasons=tuple(sorted(seasons, key=lambda s: s.season, reverse=True)),
    )


def ref(league_id, name, year, status="complete"):
    return LeagueRef(league_id=league_id, name=name, season=year, status=status)
