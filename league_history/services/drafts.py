import logging
import statistics
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from .. import config
from ..models.analytics import (
    AnalyzedPick,
    CrossLeagueDraftStats,
    DraftClass,
    LeagueDraftAnalysis,
    LeagueDraftBreakdown,
    ManagerDraftSummary,
    PickKey,
    PickResolution,
    SeasonDraft,
)
from ..models.sleeper import Draft, DraftPick, Matchup, Player
from .grading import assign_grade, blended_score, percentile_by_rank

logger = logging.getLogger(__name__)


def season_player_points(weekly_matchups: Iterable[Iterable[Matchup]]) -> Dict[str, float]:
    """Total fantasy points per player over the given weeks of raw matchup rows."""
    points: Dict[str, float] = {}
    for week in weekly_matchups:
        for row in week:
            for player_id, pts in (row.players_points or {}).items():
                points[player_id] = points.get(player_id, 0.0) + (pts or 0.0)
    return points


def replacement_levels(picks: Iterable[DraftPick], player_points: Mapping[str, float]) -> Dict[str, float]:
    """Median season points of every drafted player at each position. Scoreless players count as 0."""
    by_position: Dict[str, List[float]] = {}
    for pick in picks:
        position = pick.metadata.get("position")
        if not position or not pick.player_id:
            continue
        by_position.setdefault(position, []).append(player_points.get(pick.player_id, 0.0))
    return {position: statistics.median(values) for position, values in by_position.items()}


def _pick_name(pick: DraftPick, players: Optional[Mapping[str, Player]] = None) -> str:
    name = f"{pick.metadata.get('first_name') or ''} {pick.metadata.get('last_name') or ''}".strip()
    if name:
        return name
    player = (players or {}).get(pick.player_id)
    return player.name if player else pick.player_id


def slot_in_round(pick: DraftPick, draft: Draft) -> Optional[int]:
    """Draft slot (1-based) whose pick this was. Snake drafts reverse every even round."""
    teams = draft.settings.get("teams")
    if not teams:
        return None
    position = (pick.pick_no - 1) % teams + 1
    round_no = (pick.pick_no - 1) // teams + 1
    if draft.type == "snake" and round_no % 2 == 0:
        return teams - position + 1
    return position


def original_slot_owner(pick: DraftPick, draft: Draft, roster_to_user: Mapping[int, str]) -> Optional[str]:
    """
    The user whose draft slot a pick was, as opposed to whoever ended up making it.

    Unique per pick even when one manager holds several picks in a round. Falls back to
    the drafter when the draft order is unknown.
    """
    slot = slot_in_round(pick, draft)
    if slot is not None and draft.slot_to_roster_id:
        roster_id = draft.slot_to_roster_id.get(str(slot))
        if roster_id is not None and roster_id in roster_to_user:
            return roster_to_user[roster_id]
    return _drafter(pick, roster_to_user)


def _drafter(pick: DraftPick, roster_to_user: Mapping[int, str]) -> Optional[str]:
    if pick.picked_by:
        return pick.picked_by
    if pick.roster_id is not None:
        return roster_to_user.get(pick.roster_id)
    return None


def build_pick_resolutions(drafts: Iterable[SeasonDraft],
                           players: Optional[Mapping[str, Player]] = None) -> Dict[PickKey, PickResolution]:
    """Map every made pick to the player it became, keyed by (season, round, original slot owner)."""
    resolutions: Dict[PickKey, PickResolution] = {}
    for season_draft in drafts:
        roster_to_user = season_draft.season.roster_to_user
        for pick in season_draft.picks:
            if not pick.player_id:
                continue
            owner = original_slot_owner(pick, season_draft.draft, roster_to_user)
            if owner is None:
                logger.warning("Draft %s pick %s has no owner; not resolvable", pick.draft_id, pick.pick_no)
                continue
            player = (players or {}).get(pick.player_id)
            position = pick.metadata.get("position") or (player.position if player else None) or ""
            key = (season_draft.season.season, pick.round, owner)
            resolutions[key] = PickResolution(
                season=season_draft.season.season,
                round=pick.round,
                original_owner_id=owner,
                slot=slot_in_round(pick, season_draft.draft),
                player_id=pick.player_id,
                player_name=_pick_name(pick, players),
                position=position,
                season_points=season_draft.player_points.get(pick.player_id, 0.0),
            )
    return resolutions


def classify_surplus(surplus: float) -> str:
    if surplus > config.DRAFT_HIT_SURPLUS:
        return "hit"
    if surplus < config.DRAFT_BUST_SURPLUS:
        return "bust"
    return "neutral"


def draft_grade_score(hit_rate: float, total_surplus: float) -> float:
    return blended_score(
        hit_rate, config.DRAFT_HIT_RATE_WEIGHT,
        total_surplus, config.DRAFT_SURPLUS_WEIGHT,
        config.DRAFT_SURPLUS_SCALE,
    )


def _rates(picks: List[AnalyzedPick]) -> Tuple[int, int, int]:
    hits = sum(1 for p in picks if p.classification == "hit")
    busts = sum(1 for p in picks if p.classification == "bust")
    neutral = sum(1 for p in picks if p.classification == "neutral")
    return hits, busts, neutral


def analyze_drafts(drafts: Iterable[SeasonDraft]) -> LeagueDraftAnalysis:
    """
    Grade every manager's drafting across the given seasons.

    WAR is a pick's season points over the median drafted player at its position that
    season. Expected WAR is the mean WAR of all non-keeper picks in the same round across
    every season given; surplus is the difference. Keepers are listed but never graded.
    """
    raw: List[Tuple[str, AnalyzedPick]] = []
    names: Dict[str, str] = {}

    for season_draft in drafts:
        season = season_draft.season
        replacement = replacement_levels(season_draft.picks, season_draft.player_points)
        for user_id, info in season.managers.items():
            names[user_id] = info.display_name
        for pick in season_draft.picks:
            if not pick.player_id:
                continue
            user_id = _drafter(pick, season.roster_to_user)
            if user_id is None:
                logger.warning("Skipping draft %s pick %s with no drafter", pick.draft_id, pick.pick_no)
                continue
            position = pick.metadata.get("position") or "UNK"
            points = season_draft.player_points.get(pick.player_id, 0.0)
            level = replacement.get(position, 0.0)
            raw.append((user_id, AnalyzedPick(
                season=season.season,
                round=pick.round,
                pick_no=pick.pick_no,
                slot=slot_in_round(pick, season_draft.draft),
                user_id=user_id,
                player_id=pick.player_id,
                player_name=_pick_name(pick),
                position=position,
                is_keeper=bool(pick.is_keeper),
                season_points=points,
                replacement_level=level,
                war=points - level,
            )))

    if not raw:
        return LeagueDraftAnalysis(has_data=False)

    by_round: Dict[int, List[float]] = {}
    for _, pick in raw:
        if not pick.is_keeper:
            by_round.setdefault(pick.round, []).append(pick.war)
    expected_by_round = {rnd: sum(wars) / len(wars) for rnd, wars in sorted(by_round.items())}

    picks_by_user: Dict[str, List[AnalyzedPick]] = {}
    for user_id, pick in raw:
        if pick.is_keeper:
            graded = pick.model_copy(update={"classification": "keeper"})
        else:
            expected = expected_by_round[pick.round]
            surplus = pick.war - expected
            graded = pick.model_copy(update={
                "expected_war": expected,
                "surplus": surplus,
                "classification": classify_surplus(surplus),
            })
        picks_by_user.setdefault(user_id, []).append(graded)

    summaries: Dict[str, ManagerDraftSummary] = {}
    for user_id, picks in picks_by_user.items():
        graded = [p for p in picks if not p.is_keeper]
        hits, busts, neutral = _rates(graded)
        total_surplus = sum(p.surplus for p in graded)
        hit_rate = hits / len(graded) if graded else 0.0
        score = draft_grade_score(hit_rate, total_surplus)
        band = assign_grade(score)

        classes = []
        for season in sorted({p.season for p in picks}, reverse=True):
            season_picks = [p for p in picks if p.season == season]
            season_graded = [p for p in season_picks if not p.is_keeper]
            c_hits, c_busts, c_neutral = _rates(season_graded)
            c_total = len(season_graded)
            c_surplus = sum(p.surplus for p in season_graded)
            classes.append(DraftClass(
                season=season,
                picks=sorted(season_picks, key=lambda p: p.pick_no),
                total_war=sum(p.war for p in season_picks),
                total_surplus=c_surplus,
                avg_surplus=c_surplus / c_total if c_total else 0.0,
                hit_rate=c_hits / c_total if c_total else 0.0,
                bust_rate=c_busts / c_total if c_total else 0.0,
                neutral_rate=c_neutral / c_total if c_total else 0.0,
            ))

        summaries[user_id] = ManagerDraftSummary(
            user_id=user_id,
            display_name=names.get(user_id, user_id),
            total_picks=len(picks),
            graded_picks=len(graded),
            hits=hits,
            busts=busts,
            total_war=sum(p.war for p in picks),
            total_surplus=total_surplus,
            avg_surplus_per_pick=total_surplus / len(graded) if graded else 0.0,
            hit_rate=hit_rate,
            bust_rate=busts / len(graded) if graded else 0.0,
            neutral_rate=neutral / len(graded) if graded else 0.0,
            best_pick=max(graded, key=lambda p: p.surplus) if graded else None,
            worst_pick=min(graded, key=lambda p: p.surplus) if graded else None,
            grade=band.grade,
            grade_color=band.color,
            grade_score=score,
            draft_classes=classes,
        )

    ranked = sorted(summaries.values(), key=lambda s: s.total_surplus, reverse=True)
    for idx, summary in enumerate(ranked):
        summary.league_rank = idx + 1
        summary.surplus_percentile = percentile_by_rank(len(ranked), idx)

    return LeagueDraftAnalysis(managers=summaries, expected_war_by_round=expected_by_round, has_data=True)


def summarize_cross_league_drafts(
    user_id: str,
    analyses: Mapping[str, LeagueDraftAnalysis],
    league_names: Mapping[str, str],
) -> CrossLeagueDraftStats:
    """One manager's drafting across several lineages, keyed by root league id."""
    stats = CrossLeagueDraftStats(user_id=user_id)
    hits = busts = graded = 0

    for league_id, analysis in analyses.items():
        summary = analysis.managers.get(user_id)
        if summary is None or summary.total_picks == 0:
            continue
        stats.per_league.append(LeagueDraftBreakdown(
            league_id=league_id,
            league_name=league_names.get(league_id, league_id),
            total_picks=summary.total_picks,
            total_war=summary.total_war,
            total_surplus=summary.total_surplus,
            hit_rate=summary.hit_rate,
            bust_rate=summary.bust_rate,
            grade=summary.grade,
            grade_color=summary.grade_color,
            best_pick=summary.best_pick,
            worst_pick=summary.worst_pick,
        ))
        stats.total_picks += summary.total_picks
        stats.total_war += summary.total_war
        stats.total_surplus += summary.total_surplus
        hits += summary.hits
        busts += summary.busts
        graded += summary.graded_picks
        if summary.best_pick is not None and (
                stats.best_pick is None or summary.best_pick.surplus > stats.best_pick.surplus):
            stats.best_pick = summary.best_pick
        if summary.worst_pick is not None and (
                stats.worst_pick is None or summary.worst_pick.surplus < stats.worst_pick.surplus):
            stats.worst_pick = summary.worst_pick

    if not stats.per_league:
        return stats

    stats.per_league.sort(key=lambda b: b.total_surplus, reverse=True)
    stats.hit_rate = hits / graded if graded else 0.0
    stats.bust_rate = busts / graded if graded else 0.0
    band = assign_grade(draft_grade_score(stats.hit_rate, stats.total_surplus))
    stats.grade = band.grade
    stats.grade_color = band.color
    stats.has_data = True
    return stats
