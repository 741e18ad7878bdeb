from typing import Dict, List, Union

from .. import config
from ..models.analytics import LeagueSeason, PowerRankingEntry, PowerRankings, Unavailable
from .lineage import valid_matchups


def _mean(values: List[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def compute_power_rankings(season: LeagueSeason) -> Union[PowerRankings, Unavailable]:
    """
    Rank a season's teams by current strength rather than record alone.

    The score blends recent scoring (last `POWER_RECENT_WEEKS` games), season scoring
    average and win percentage. Only regular-season games count; win percentage comes
    from the standings.
    """
    if not season.standings:
        return Unavailable(reason=f"{season.name} {season.season} has no standings to rank")

    scores: Dict[str, List[float]] = {}
    current_week = 0
    for matchup in valid_matchups(season):
        if matchup.is_playoff:
            continue
        scores.setdefault(matchup.user_a, []).append(matchup.points_a)
        scores.setdefault(matchup.user_b, []).append(matchup.points_b)
        current_week = max(current_week, matchup.week)

    entries = []
    for team in season.standings:
        weekly = scores.get(team.user_id, [])
        recent_avg = _mean(weekly[-config.POWER_RECENT_WEEKS:])
        season_avg = _mean(weekly)
        games = team.wins + team.losses + team.ties
        win_pct = team.wins / games if games else 0.0
        score = (
            config.POWER_RECENT_WEIGHT * recent_avg / config.POWER_POINTS_SCALE
            + config.POWER_SEASON_WEIGHT * season_avg / config.POWER_POINTS_SCALE
            + config.POWER_WIN_PCT_WEIGHT * win_pct
        )
        info = season.managers.get(team.user_id)
        entries.append(PowerRankingEntry(
            user_id=team.user_id,
            display_name=season.display_name(team.user_id),
            team_name=info.team_name if info else None,
            avatar=info.avatar if info else None,
            rank=0,
            score=round(score * 100, 1),
            recent_avg=round(recent_avg, 1),
            season_avg=round(season_avg, 1),
            win_pct=round(win_pct * 100, 1),
        ))

    entries.sort(key=lambda e: (-e.score, e.display_name))
    ranked = [entry.model_copy(update={"rank": rank}) for rank, entry in enumerate(entries, start=1)]
    return PowerRankings(season=season.season, current_week=current_week, entries=ranked)
