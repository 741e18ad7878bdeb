import logging
import statistics
from typing import Dict, List, Union

from .. import config
from ..models.analytics import (
    FranchiseTrajectory,
    LeagueSeason,
    LineageHistory,
    ManagerTrajectory,
    SeasonBoundary,
    SeasonWAR,
    Unavailable,
    WARPoint,
)
from .lineage import valid_matchups

logger = logging.getLogger(__name__)


def _weekly_points(season: LeagueSeason) -> Dict[int, Dict[str, float]]:
    weeks: Dict[int, Dict[str, float]] = {}
    for matchup in valid_matchups(season):
        if matchup.is_playoff or matchup.week > season.regular_season_weeks:
            continue
        week = weeks.setdefault(matchup.week, {})
        week[matchup.user_a] = matchup.points_a
        week[matchup.user_b] = matchup.points_b
    return weeks


def is_fully_recorded(season: LeagueSeason) -> bool:
    """A finished season with at least one played matchup in every regular-season week."""
    if not season.is_complete:
        return False
    weeks = _weekly_points(season)
    return all(week in weeks for week in range(1, season.regular_season_weeks + 1))


def compute_trajectory(history: LineageHistory,
                       window: int = config.ROLLING_WAR_WEEKS) -> Union[FranchiseTrajectory, Unavailable]:
    """
    All-time WAR per manager, one point per regular-season week, carried across seasons.

    A manager's WAR after week W is their cumulative points minus the league median
    cumulative points through W. Each season continues from where the last one ended,
    and rolling WAR sums the last `window` weekly changes.
    """
    seasons = history.chronological()
    completed = [s.season for s in seasons if is_fully_recorded(s)]
    if not completed:
        return Unavailable(reason=f"{history.name!r} has no completed season with full matchup data")

    cumulative: Dict[str, List[float]] = {}
    labels: Dict[str, List[tuple]] = {}
    names: Dict[str, str] = {}
    offsets: Dict[str, float] = {}
    boundaries: List[SeasonBoundary] = []
    season_wars: Dict[str, List[SeasonWAR]] = {}
    index = 0

    for season in seasons:
        weeks = _weekly_points(season)
        week_numbers = sorted(weeks)
        if not week_numbers:
            continue
        users = sorted(set(season.roster_to_user.values()) & set(season.managers))
        if not users:
            logger.warning("Season %s of %r has no managers with rosters", season.season, history.name)
            continue
        boundaries.append(SeasonBoundary(season=season.season, start_index=index))

        running = {user_id: 0.0 for user_id in users}
        for week in week_numbers:
            for user_id in users:
                running[user_id] += weeks[week].get(user_id, 0.0)
            replacement = statistics.median(running.values())
            for user_id in users:
                war = running[user_id] - replacement
                cumulative.setdefault(user_id, []).append(offsets.get(user_id, 0.0) + war)
                labels.setdefault(user_id, []).append((season.season, week, index))
            index += 1

        final_replacement = statistics.median(running.values())
        for user_id in users:
            names[user_id] = season.display_name(user_id)
            season_war = running[user_id] - final_replacement
            offsets[user_id] = offsets.get(user_id, 0.0) + season_war
            season_wars.setdefault(user_id, []).append(SeasonWAR(
                season=season.season,
                war=round(season_war, 2),
                cumulative_war=round(offsets[user_id], 2),
            ))

    managers: Dict[str, ManagerTrajectory] = {}
    for user_id, values in cumulative.items():
        points = []
        window_sum = 0.0
        deltas = [v if i == 0 else v - values[i - 1] for i, v in enumerate(values)]
        for i, delta in enumerate(deltas):
            window_sum += delta
            if i >= window:
                window_sum -= deltas[i - window]
            season_year, week, global_index = labels[user_id][i]
            points.append(WARPoint(
                season=season_year,
                week=week,
                index=global_index,
                cumulative_war=round(values[i], 2),
                rolling_war=round(window_sum, 2),
            ))
        managers[user_id] = ManagerTrajectory(
            user_id=user_id,
            display_name=names[user_id],
            points=points,
            seasons=season_wars[user_id],
        )

    return FranchiseTrajectory(managers=managers, season_boundaries=boundaries, completed_seasons=completed)
