import logging
from typing import Dict, List, Union

from .. import config
from ..models.analytics import LeagueSeason, LineageHistory, LuckEntry, LuckIndex, Unavailable
from .lineage import valid_matchups

logger = logging.getLogger(__name__)


def compute_season_luck(season: LeagueSeason) -> Union[LuckIndex, Unavailable]:
    """
    Schedule luck for one season: actual wins minus all-play expected wins.

    Each week a manager is credited with the fraction of the other teams they outscored
    that week; an equal score counts as half. Positive luck means the schedule helped.
    """
    weekly_scores: Dict[int, Dict[str, float]] = {}
    actual: Dict[str, float] = {}

    for matchup in valid_matchups(season):
        if matchup.is_playoff:
            continue
        week = weekly_scores.setdefault(matchup.week, {})
        week[matchup.user_a] = matchup.points_a
        week[matchup.user_b] = matchup.points_b
        winner = matchup.winner_id
        if winner is None:
            actual[matchup.user_a] = actual.get(matchup.user_a, 0.0) + 0.5
            actual[matchup.user_b] = actual.get(matchup.user_b, 0.0) + 0.5
        else:
            actual[winner] = actual.get(winner, 0.0) + 1.0
            actual.setdefault(matchup.loser_id, 0.0)

    managers = set(actual)
    if len(managers) < config.LUCK_MIN_MANAGERS:
        return Unavailable(
            reason=f"Luck needs at least {config.LUCK_MIN_MANAGERS} managers with scores; "
                   f"{season.season} has {len(managers)}",
        )

    expected: Dict[str, float] = {user_id: 0.0 for user_id in managers}
    for week, scores in weekly_scores.items():
        opponents = len(scores) - 1
        if opponents <= 0:
            continue
        for user_id, points in scores.items():
            beaten = 0.0
            for other_id, other_points in scores.items():
                if other_id == user_id:
                    continue
                if points > other_points:
                    beaten += 1.0
                elif points == other_points:
                    beaten += 0.5
            expected[user_id] += beaten / opponents

    entries = [
        LuckEntry(
            user_id=user_id,
            display_name=season.display_name(user_id),
            actual_wins=actual[user_id],
            expected_wins=round(expected[user_id], 4),
            luck_score=round(actual[user_id] - expected[user_id], 4),
        )
        for user_id in managers
    ]
    entries.sort(key=lambda e: (-e.luck_score, e.display_name))
    return LuckIndex(scope="season", seasons=[season.season], entries=entries)


def compute_lineage_luck(history: LineageHistory) -> Union[LuckIndex, Unavailable]:
    """Sum each manager's season luck over every season that had enough managers to measure it."""
    totals: Dict[str, LuckEntry] = {}
    counted: List[int] = []

    for season in history.chronological():
        result = compute_season_luck(season)
        if isinstance(result, Unavailable):
            logger.info("Skipping %s %s for lineage luck: %s", history.name, season.season, result.reason)
            continue
        counted.append(season.season)
        for entry in result.entries:
            previous = totals.get(entry.user_id)
            if previous is None:
                totals[entry.user_id] = entry
                continue
            totals[entry.user_id] = LuckEntry(
                user_id=entry.user_id,
                display_name=entry.display_name,
                actual_wins=previous.actual_wins + entry.actual_wins,
                expected_wins=round(previous.expected_wins + entry.expected_wins, 4),
                luck_score=round(previous.luck_score + entry.luck_score, 4),
                seasons=previous.seasons + 1,
            )

    if not counted:
        return Unavailable(reason=f"No season of {history.name!r} has enough managers to measure luck")

    entries = sorted(totals.values(), key=lambda e: (-e.luck_score, e.display_name))
    return LuckIndex(scope="lineage", seasons=counted, entries=entries)
