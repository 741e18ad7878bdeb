import logging
from typing import Dict, List, Optional, Tuple

from .. import config
from ..models.analytics import (
    BlowoutGame,
    BlowoutSummary,
    LineageHistory,
    RecordEntry,
    RecordHolder,
)
from .lineage import valid_matchups

logger = logging.getLogger(__name__)


def _plural(count: float, word: str) -> str:
    return f"{count:g} {word}{'' if count == 1 else 's'}"


class _StreakTracker:
    """Running win/loss streaks for one manager across a chronological sequence of games."""

    def __init__(self):
        self.current_win = 0
        self.current_loss = 0
        self.best_win = 0
        self.best_win_at = -1
        self.best_loss = 0
        self.best_loss_at = -1

    def record(self, result: Optional[str], position: int) -> None:
        if result == "W":
            self.current_win += 1
            self.current_loss = 0
            # strictly greater keeps the earliest streak of a given length
            if self.current_win > self.best_win:
                self.best_win = self.current_win
                self.best_win_at = position
        elif result == "L":
            self.current_loss += 1
            self.current_win = 0
            if self.current_loss > self.best_loss:
                self.best_loss = self.current_loss
                self.best_loss_at = position
        else:
            self.current_win = 0
            self.current_loss = 0


def compute_all_time_records(history: LineageHistory) -> List[RecordEntry]:
    """
    All-time superlatives for a lineage, from one chronological pass over its matchups.

    Streaks run across season boundaries. A lineage with no played matchups has no records.
    """
    seasons = history.chronological()
    played = {season.season: valid_matchups(season) for season in seasons}
    if not any(played.values()):
        return []

    names: Dict[str, Tuple[str, Optional[str]]] = {}
    career_wins: Dict[str, int] = {}
    titles: Dict[str, List[int]] = {}
    last_places: Dict[str, List[int]] = {}
    seasons_played: Dict[str, List[int]] = {}
    best_season_points: Optional[Tuple[str, float, int]] = None
    streaks: Dict[str, _StreakTracker] = {}
    highest_week: Optional[Tuple[str, float, int, int]] = None
    lowest_week: Optional[Tuple[str, float, int, int]] = None
    biggest_blowout = None
    blowout_wins: Dict[str, int] = {}
    playoff_record: Dict[str, List[int]] = {}
    position = 0

    for season in seasons:
        for user_id, info in season.managers.items():
            names[user_id] = (info.display_name, info.avatar)

        champion = season.champion()
        if champion is not None:
            titles.setdefault(champion, []).append(season.season)

        if season.standings:
            last = max(season.standings, key=lambda t: t.rank)
            if last.rank > 0:
                last_places.setdefault(last.user_id, []).append(season.season)

        for team in season.standings:
            career_wins[team.user_id] = career_wins.get(team.user_id, 0) + team.wins
            seasons_played.setdefault(team.user_id, []).append(season.season)
            if best_season_points is None or team.points_for > best_season_points[1]:
                best_season_points = (team.user_id, team.points_for, season.season)

        for matchup in played[season.season]:
            winner, loser = matchup.winner_id, matchup.loser_id
            for user_id in (matchup.user_a, matchup.user_b):
                tracker = streaks.setdefault(user_id, _StreakTracker())
                if winner is None:
                    tracker.record(None, position)
                else:
                    tracker.record("W" if user_id == winner else "L", position)
            position += 1

            for user_id, points in ((matchup.user_a, matchup.points_a), (matchup.user_b, matchup.points_b)):
                if points <= 0:
                    continue
                if highest_week is None or points > highest_week[1]:
                    highest_week = (user_id, points, season.season, matchup.week)
                if lowest_week is None or points < lowest_week[1]:
                    lowest_week = (user_id, points, season.season, matchup.week)

            if winner is None:
                continue
            if biggest_blowout is None or matchup.margin > biggest_blowout[0]:
                biggest_blowout = (matchup.margin, winner, loser, season.season, matchup.week)
            if matchup.margin > config.BLOWOUT_MARGIN:
                blowout_wins[winner] = blowout_wins.get(winner, 0) + 1
            if matchup.is_playoff:
                playoff_record.setdefault(winner, [0, 0])[0] += 1
                playoff_record.setdefault(loser, [0, 0])[1] += 1

    def holder(user_id: str) -> RecordHolder:
        name, avatar = names.get(user_id, (user_id, None))
        return RecordHolder(holder_id=user_id, holder=name, avatar=avatar)

    def entry(record_id: str, category: str, leaders: List[str], value: float, display: str,
              context: str, season: Optional[int] = None, week: Optional[int] = None) -> RecordEntry:
        first = holder(leaders[0])
        return RecordEntry(
            id=record_id,
            category=category,
            holder_id=first.holder_id,
            holder=first.holder,
            avatar=first.avatar,
            value=value,
            display=display,
            context=context,
            season=season,
            week=week,
            co_holders=[holder(uid) for uid in leaders[1:]],
        )

    def leaders_of(values: Dict[str, float]) -> Tuple[float, List[str]]:
        best = max(values.values())
        return best, [uid for uid, v in values.items() if v == best]

    records: List[RecordEntry] = []

    if career_wins:
        best, leaders = leaders_of(career_wins)
        records.append(entry("career-wins", "Most Career Wins", leaders, best,
                             _plural(best, "win"), "All-time record"))

    if best_season_points is not None:
        user_id, points, season_year = best_season_points
        records.append(entry("highest-season-pts", "Highest Single-Season Points", [user_id], points,
                             f"{points:.1f} pts", f"{season_year} Season", season=season_year))

    if titles:
        best, leaders = leaders_of({uid: len(years) for uid, years in titles.items()})
        records.append(entry("most-titles", "Most Championships", leaders, best, _plural(best, "title"),
                             ", ".join(str(y) for y in titles[leaders[0]])))

    if last_places:
        best, leaders = leaders_of({uid: len(years) for uid, years in last_places.items()})
        records.append(entry("most-last-place", "Most Last-Place Finishes", leaders, best,
                             _plural(best, "time"), ", ".join(str(y) for y in last_places[leaders[0]])))

    win_streak = _streak_record(streaks, "best_win", "best_win_at")
    if win_streak is not None:
        length, leaders = win_streak
        records.append(entry("longest-win-streak", "Longest Winning Streak", leaders, length,
                             f"{length} straight wins", "Consecutive wins across seasons"))

    droughts = _title_droughts(seasons_played, titles)
    if droughts and max(droughts.values()) > 0:
        best, leaders = leaders_of(droughts)
        records.append(entry("title-drought", "Longest Championship Drought", leaders, best,
                             _plural(best, "season"), "Consecutive seasons without a title"))

    loss_streak = _streak_record(streaks, "best_loss", "best_loss_at")
    if loss_streak is not None:
        length, leaders = loss_streak
        records.append(entry("longest-loss-streak", "Longest Losing Streak", leaders, length,
                             f"{length} straight losses", "Consecutive losses across seasons"))

    if highest_week is not None:
        user_id, points, season_year, week = highest_week
        records.append(entry("highest-weekly", "Highest Single-Week Score", [user_id], points,
                             f"{points:.2f} pts", f"{season_year} Season, Week {week}",
                             season=season_year, week=week))

    if lowest_week is not None:
        user_id, points, season_year, week = lowest_week
        records.append(entry("lowest-weekly", "Lowest Single-Week Score", [user_id], points,
                             f"{points:.2f} pts", f"{season_year} Season, Week {week}",
                             season=season_year, week=week))

    if biggest_blowout is not None:
        margin, winner, loser, season_year, week = biggest_blowout
        records.append(entry("biggest-blowout", "Biggest Blowout in League History", [winner], margin,
                             f"+{margin:.2f} pts",
                             f"{season_year} Wk {week} · def. {holder(loser).holder}",
                             season=season_year, week=week))

    if blowout_wins:
        best, leaders = leaders_of(blowout_wins)
        records.append(entry("blowout-wins", "Most Career Blowout Wins", leaders, best,
                             _plural(best, "blowout"), f"Wins by {config.BLOWOUT_MARGIN:g}+ points"))

    if playoff_record:
        best, leaders = leaders_of({uid: rec[0] for uid, rec in playoff_record.items()})
        if best > 0:
            wins, losses = playoff_record[leaders[0]]
            records.append(entry("playoff-wins", "Most Career Playoff Wins", leaders, best,
                                 _plural(best, "win"), f"{wins}–{losses} all-time in the playoffs"))

    return records


def _streak_record(streaks: Dict[str, "_StreakTracker"], length_attr: str,
                   position_attr: str) -> Optional[Tuple[int, List[str]]]:
    if not streaks:
        return None
    best = max(getattr(t, length_attr) for t in streaks.values())
    if best <= 0:
        return None
    tied = [(getattr(t, position_attr), uid) for uid, t in streaks.items() if getattr(t, length_attr) == best]
    tied.sort()
    return best, [uid for _, uid in tied]


def _title_droughts(seasons_played: Dict[str, List[int]], titles: Dict[str, List[int]]) -> Dict[str, int]:
    droughts = {}
    for user_id, seasons in seasons_played.items():
        won = set(titles.get(user_id, []))
        longest = current = 0
        for season in sorted(seasons):
            if season in won:
                current = 0
            else:
                current += 1
                longest = max(longest, current)
        droughts[user_id] = longest
    return droughts


def compute_blowouts(history: LineageHistory, count: int = config.BLOWOUT_LIST_SIZE) -> BlowoutSummary:
    games: List[BlowoutGame] = []
    for season in history.chronological():
        for matchup in valid_matchups(season):
            winner, loser = matchup.winner_id, matchup.loser_id
            if winner is None:
                continue
            winner_points = max(matchup.points_a, matchup.points_b)
            loser_points = min(matchup.points_a, matchup.points_b)
            games.append(BlowoutGame(
                season=season.season,
                week=matchup.week,
                winner_id=winner,
                winner_name=season.display_name(winner),
                winner_points=winner_points,
                loser_id=loser,
                loser_name=season.display_name(loser),
                loser_points=loser_points,
                margin=round(matchup.margin, 2),
                is_playoff=matchup.is_playoff,
            ))

    by_margin = sorted(games, key=lambda g: g.margin, reverse=True)
    return BlowoutSummary(
        blowouts=by_margin[:count],
        closest=sorted(games, key=lambda g: g.margin)[:count],
    )
