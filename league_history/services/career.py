from typing import Dict, List, Tuple

from ..models.analytics import (
    HeadToHeadGame,
    HeadToHeadRecord,
    LineageHistory,
    ManagerCareerBreakdown,
    SeasonRecord,
)
from .lineage import valid_matchups

TIERS = ("Elite", "Contender", "Average", "Rebuilding", "Cellar Dweller")


def _season_strength(record: SeasonRecord) -> Tuple[float, float]:
    games = record.wins + record.losses + record.ties
    pct = (record.wins + 0.5 * record.ties) / games if games else 0.0
    return pct, record.points_for


def career_breakdowns(history: LineageHistory) -> Dict[str, ManagerCareerBreakdown]:
    """Per-manager totals across every season of a lineage, plus a relative tier."""
    careers: Dict[str, ManagerCareerBreakdown] = {}
    points_totals: Dict[str, float] = {}

    for season in history.chronological():
        playoff_record: Dict[str, List[int]] = {}
        for matchup in valid_matchups(season):
            if not matchup.is_playoff or matchup.winner_id is None:
                continue
            playoff_record.setdefault(matchup.winner_id, [0, 0])[0] += 1
            playoff_record.setdefault(matchup.loser_id, [0, 0])[1] += 1

        champion = season.champion()
        for team in season.standings:
            user_id = team.user_id
            p_wins, p_losses = playoff_record.get(user_id, [0, 0])
            record = SeasonRecord(
                season=season.season,
                wins=team.wins,
                losses=team.losses,
                ties=team.ties,
                points_for=team.points_for,
                rank=team.rank,
                playoff_wins=p_wins,
                playoff_losses=p_losses,
            )
            career = careers.get(user_id)
            if career is None:
                career = ManagerCareerBreakdown(user_id=user_id, display_name=season.display_name(user_id))
                careers[user_id] = career
            # keep most recent name
            career.display_name = season.display_name(user_id)
            career.avatar = season.avatar(user_id)
            career.wins += team.wins
            career.losses += team.losses
            career.ties += team.ties
            career.playoff_wins += p_wins
            career.playoff_losses += p_losses
            if user_id == champion:
                career.titles += 1
            career.seasons.append(record)
            career.seasons_played.append(season.season)
            points_totals[user_id] = points_totals.get(user_id, 0.0) + team.points_for

    for user_id, career in careers.items():
        games = career.wins + career.losses + career.ties
        career.win_pct = (career.wins + 0.5 * career.ties) / games if games else 0.0
        career.avg_points_for = points_totals[user_id] / len(career.seasons)
        career.best_season = max(career.seasons, key=_season_strength)
        career.worst_season = min(career.seasons, key=_season_strength)

    _assign_tiers(careers)
    return careers


def _assign_tiers(careers: Dict[str, ManagerCareerBreakdown]) -> None:
    if not careers:
        return
    max_avg_points = max(max(c.avg_points_for for c in careers.values()), 1.0)
    scored = sorted(
        careers.values(),
        key=lambda c: (
            c.win_pct * 0.5
            + (c.avg_points_for / max_avg_points) * 0.3
            + (c.titles / len(c.seasons)) * 0.2
        ),
        reverse=True,
    )
    n = len(scored)
    for idx, career in enumerate(scored):
        pct = idx / (n - 1) if n > 1 else 0.0
        career.tier = TIERS[min(int(pct / 0.2), len(TIERS) - 1)]


def head_to_head(history: LineageHistory, user_a: str, user_b: str) -> HeadToHeadRecord:
    record = HeadToHeadRecord(user_a=user_a, user_b=user_b)
    for season in history.chronological():
        for matchup in valid_matchups(season):
            if (matchup.user_a, matchup.user_b) == (user_a, user_b):
                points_a, points_b = matchup.points_a, matchup.points_b
            elif (matchup.user_a, matchup.user_b) == (user_b, user_a):
                points_a, points_b = matchup.points_b, matchup.points_a
            else:
                continue

            record.points_a += points_a
            record.points_b += points_b
            if points_a > points_b:
                winner = "A"
                record.wins_a += 1
                if matchup.is_playoff:
                    record.playoff_wins_a += 1
            elif points_b > points_a:
                winner = "B"
                record.wins_b += 1
                if matchup.is_playoff:
                    record.playoff_wins_b += 1
            else:
                winner = "tie"
                record.ties += 1

            record.games.append(HeadToHeadGame(
                season=season.season,
                week=matchup.week,
                points_a=round(points_a, 2),
                points_b=round(points_b, 2),
                winner=winner,
                is_playoff=matchup.is_playoff,
            ))

    record.points_a = round(record.points_a, 2)
    record.points_b = round(record.points_b, 2)
    return record
