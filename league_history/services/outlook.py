"""
Forward-looking franchise outlook.

Everything here works from a current-roster snapshot: player WAR from this season's
scoring, ages, and future draft picks. Nothing reaches outside the snapshot, and a
roster without the age data to project from gets no outlook at all.
"""
import math
import statistics
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from .. import config
from ..models.analytics import (
    FocusArea,
    FranchiseOutlook,
    FuturePick,
    LeagueContext,
    PositionWAR,
    ProjectedWAR,
    RookieDraftTarget,
    RookieProspect,
    RosterPlayer,
    RosterSnapshot,
    StrategyRecommendation,
    TradeTarget,
    Unavailable,
    YoungAsset,
)
from ..models.sleeper import Player, TradedPick

FLEX_POSITIONS = {
    "FLEX": ("RB", "WR", "TE"),
    "SUPER_FLEX": ("QB", "RB", "WR", "TE"),
}
YOUNG_ASSET_MAX_AGE = 24


# ---------- Player WAR ----------

def starters_per_position(roster_positions: Iterable[str]) -> Dict[str, int]:
    counts: Dict[str, int] = {}
    for slot in roster_positions:
        if slot in config.SKILL_POSITIONS:
            counts[slot] = counts.get(slot, 0) + 1
        for position in FLEX_POSITIONS.get(slot, ()):
            counts[position] = counts.get(position, 0) + 1
    return counts


def replacement_by_position(player_points: Mapping[str, float], players: Mapping[str, Player],
                            roster_positions: Sequence[str], num_teams: int) -> Dict[str, float]:
    """
    Points of the first player outside each position's league-wide starter pool.

    A position with fewer scorers than starter slots falls back to its median scorer.
    """
    starters = starters_per_position(roster_positions)
    by_position: Dict[str, List[float]] = {}
    for player_id, points in player_points.items():
        player = players.get(player_id)
        if player is None or player.position not in config.SKILL_POSITIONS:
            continue
        by_position.setdefault(player.position, []).append(points)

    levels = {}
    for position, values in by_position.items():
        values.sort(reverse=True)
        idx = num_teams * starters.get(position, 0)
        levels[position] = values[idx] if idx < len(values) else values[len(values) // 2]
    return levels


def player_war_map(player_points: Mapping[str, float], players: Mapping[str, Player],
                   roster_positions: Sequence[str], num_teams: int,
                   weeks_played: int, regular_season_weeks: int) -> Dict[str, float]:
    """Season WAR per skill player, with partial seasons scaled up to a full-season pace."""
    pace = regular_season_weeks / weeks_played if weeks_played > 0 else 1.0
    paced = {player_id: points * pace for player_id, points in player_points.items()}
    levels = replacement_by_position(paced, players, roster_positions, num_teams)
    wars = {}
    for player_id, points in paced.items():
        player = players.get(player_id)
        if player is None or player.position not in config.SKILL_POSITIONS:
            continue
        wars[player_id] = points - levels.get(player.position, 0.0)
    return wars


def future_pick_ownership(roster_ids: Iterable[int], traded_picks: Iterable[TradedPick],
                          first_season: int, seasons: int, rounds: int) -> Dict[int, List[FuturePick]]:
    """Who holds each future pick: every roster its own, then moved by the league's traded picks."""
    owner: Dict[Tuple[int, int, int], int] = {}
    for roster_id in roster_ids:
        for season in range(first_season, first_season + seasons):
            for rnd in range(1, rounds + 1):
                owner[(season, rnd, roster_id)] = roster_id
    for pick in traded_picks:
        key = (int(pick.season), pick.round, pick.roster_id)
        if key in owner:
            owner[key] = pick.owner_id

    holdings: Dict[int, List[FuturePick]] = {}
    for (season, rnd, _), holder in sorted(owner.items()):
        holdings.setdefault(holder, []).append(FuturePick(season=season, round=rnd))
    return holdings


# ---------- Age curves ----------

def age_multiplier(position: str, age: float) -> float:
    curve = config.AGE_CURVES.get(position)
    if not curve:
        return 1.0
    ages = sorted(curve)
    if age <= ages[0]:
        return curve[ages[0]]
    if age >= ages[-1]:
        return max(curve[ages[-1]], config.AGE_MULTIPLIER_FLOOR)
    return curve.get(int(age), max(curve[ages[-1]], config.AGE_MULTIPLIER_FLOOR))


def peak_multiplier(position: str) -> float:
    curve = config.AGE_CURVES.get(position)
    return max(curve.values()) if curve else 1.0


def _has_age(player: RosterPlayer) -> bool:
    return player.age is not None and 18 <= player.age <= 50


def team_weighted_age(players: Iterable[RosterPlayer]) -> float:
    """Age weighted by each player's positive WAR; a plain mean when nobody has positive WAR."""
    aged = [p for p in players if p.position in config.SKILL_POSITIONS and _has_age(p)]
    if not aged:
        return config.DEFAULT_TEAM_AGE
    positive = sum(max(p.war, 0.0) for p in aged)
    if positive == 0:
        return sum(p.age for p in aged) / len(aged)
    return sum(p.age * max(p.war, 0.0) / positive for p in aged)


# ---------- League context ----------

def _percentile_75(values: Sequence[float]) -> float:
    if not values:
        return 0.0
    ordered = sorted(values)
    return ordered[max(0, math.ceil(len(ordered) * 0.75) - 1)]


def _percentile_rank(value: float, values: Sequence[float]) -> int:
    if len(values) <= 1:
        return 50
    below = sum(1 for v in values if v < value)
    return round(below / (len(values) - 1) * 100)


def build_league_contexts(rosters: Sequence[RosterSnapshot], current_year: int) -> Dict[str, LeagueContext]:
    """League-wide comparison numbers for every roster, keyed by user id."""
    if not rosters:
        return {}
    team_wars = [sum(p.war for p in r.players) for r in rosters]
    ages = [team_weighted_age(r.players) for r in rosters]

    position_wars: List[Dict[str, float]] = []
    for roster in rosters:
        totals = {position: 0.0 for position in config.SKILL_POSITIONS}
        for player in roster.players:
            if player.position in totals:
                totals[player.position] += player.war
        position_wars.append(totals)
    league_avg = {
        position: sum(t[position] for t in position_wars) / len(rosters)
        for position in config.SKILL_POSITIONS
    }

    def ranks(scores: Sequence[float]) -> List[int]:
        order = sorted(range(len(scores)), key=lambda i: scores[i], reverse=True)
        result = [0] * len(scores)
        for rank, idx in enumerate(order, start=1):
            result[idx] = rank
        return result

    war_ranks = ranks(team_wars)
    wins_ranks = ranks([r.wins for r in rosters])
    position_ranks = {
        position: ranks([t[position] for t in position_wars]) for position in config.SKILL_POSITIONS
    }

    contexts = {}
    for idx, roster in enumerate(rosters):
        contexts[roster.user_id] = LeagueContext(
            current_year=current_year,
            team_wars=tuple(team_wars),
            team_weighted_ages=tuple(ages),
            league_avg_war_by_position=league_avg,
            position_ranks={position: position_ranks[position][idx] for position in config.SKILL_POSITIONS},
            war_rank=war_ranks[idx],
            wins_rank=wins_ranks[idx],
        )
    return contexts


# ---------- Outlook ----------

def _age_category(weighted_age: float) -> str:
    if weighted_age < 25.5:
        return "Young"
    if weighted_age <= 28.5:
        return "Prime"
    return "Aging"


def _risk_category(risk: float) -> str:
    if risk < 25:
        return "Low"
    if risk < 50:
        return "Moderate"
    if risk < 75:
        return "High"
    return "Extreme"


def _pick_war(round: int, year_offset: int) -> float:
    return config.PICK_WAR_BY_ROUND.get(round, config.PICK_WAR_DEFAULT) * config.PICK_WAR_DISCOUNT ** year_offset


def _plural(count: int, word: str) -> str:
    return f"{count} {word}" if count == 1 else f"{count} {word}s"


def focus_areas(war_by_position: Sequence[PositionWAR], currently_contender: bool, current_war: float,
                year_two_war: float, current_year: int, future_picks: Sequence[FuturePick],
                young_assets: int) -> List[FocusArea]:
    """The roster's most pressing signals: warnings first, then strengths, then context. At most three."""
    found = []
    for group in war_by_position:
        if group.war < group.league_avg_war and group.avg_age > config.FOCUS_AGING_AGE:
            found.append(FocusArea(
                signal=f"{group.position} needs investment",
                detail=f"Below-average production (#{group.rank} in league) with an aging corps "
                       f"(avg {group.avg_age:.0f}). Target younger {group.position}s.",
                severity="warning",
            ))
        elif group.war > group.league_avg_war and 0 < group.avg_age <= config.FOCUS_YOUNG_AGE:
            found.append(FocusArea(
                signal=f"{group.position} is a long-term strength",
                detail=f"#{group.rank} in league with a young corps (avg {group.avg_age:.0f}). "
                       f"Set for several years.",
                severity="positive",
            ))

    if currently_contender and current_war > 0 and year_two_war < current_war * config.SHORT_WINDOW_RATIO:
        drop = round((1 - year_two_war / current_war) * 100)
        found.append(FocusArea(
            signal="Short window: prioritize now",
            detail=f"Roster projected to drop ~{drop}% by {current_year + 2}. "
                   f"Favor proven contributors over developmental players.",
            severity="warning",
        ))

    future_firsts = sum(1 for p in future_picks if p.round == 1)
    if not currently_contender and (future_firsts >= 2 or young_assets >= 3):
        found.append(FocusArea(
            signal="Rebuild capital is strong",
            detail=f"{_plural(future_firsts, 'future first')} and {_plural(young_assets, 'player')} "
                   f"under {YOUNG_ASSET_MAX_AGE + 1}. Stay patient and accumulate assets.",
            severity="info",
        ))

    order = {"warning": 0, "positive": 1, "info": 2}
    return sorted(found, key=lambda f: order[f.severity])[:3]


def _strategy_rationale(areas: Sequence[FocusArea], peak_year_offset: int, luck_score: int) -> List[str]:
    rationale = [area.detail for area in areas[:2]]
    if peak_year_offset == 0:
        rationale.append("Roster is at peak strength right now. Timing is critical.")
    elif peak_year_offset >= 2:
        rationale.append(f"Roster is projected to peak in {_plural(peak_year_offset, 'year')}. "
                         f"Runway exists to build before the window opens.")
    if luck_score >= config.OUTLOOK_LUCK_SIGNAL:
        rationale.append(f"Record is outpacing true talent (+{luck_score} luck) and may regress. "
                         f"Prioritize roster improvement over record-chasing.")
    elif luck_score <= -config.OUTLOOK_LUCK_SIGNAL:
        rationale.append(f"Unlucky record ({luck_score} vs WAR rank). Talent is better than "
                         f"standings suggest, so stay the course.")
    return rationale[:3]


def recommend_strategy(tier: str, window_length: int, risk_score: int, current_war: float,
                       projected: List[ProjectedWAR], future_picks: Sequence[FuturePick],
                       young_assets: int, war_rank: int, num_teams: int,
                       areas: Sequence[FocusArea] = (), peak_year_offset: int = 1,
                       luck_score: int = 0) -> StrategyRecommendation:
    future_firsts = sum(1 for p in future_picks if p.round == 1)
    year_two = next((p.total_war for p in projected if p.year_offset == 2), current_war)
    projected_drop = (current_war - year_two) / current_war if current_war > 0 else 0.0

    if tier == "Contender" and window_length >= 3 and risk_score < 30:
        mode, headline = "Steady State", "You're a sustained contender. Maintain course."
        urgency = 15 + min(15, risk_score / 2)
    elif tier == "Contender" and (window_length <= 2 or projected_drop > 0.15):
        mode, headline = "Push All-In Now", "Short window. Maximize wins while you can."
        urgency = min(98, 72 + risk_score / 5 + (18 if window_length == 0 else 0))
    elif tier == "Fringe" and war_rank <= math.ceil(num_teams / 2):
        mode, headline = "Win-Now Pivot", "Close to contention. Targeted upgrades can push you over."
        urgency = 50 + min(20, risk_score / 4)
    elif tier == "Rebuilding" and (future_firsts >= 2 or young_assets >= 3):
        mode, headline = "Asset Accumulation", "Strong foundation. Stay patient and accumulate value."
        urgency = 15 + min(20, young_assets * 3 + future_firsts * 3)
    else:
        mode, headline = "Full Rebuild", "Reset mode. Prioritize future assets aggressively."
        urgency = 35 + min(30, (num_teams - war_rank) * 3)

    return StrategyRecommendation(
        mode=mode,
        headline=headline,
        rationale=_strategy_rationale(areas, peak_year_offset, luck_score),
        urgency_score=round(urgency),
    )


# ---------- Roster highlights and targets ----------

def young_assets(players: Iterable[RosterPlayer],
                 values: Optional[Mapping[str, float]] = None) -> List[YoungAsset]:
    """Players still short of their age-curve peak, most valuable first."""
    values = values or {}
    assets = []
    for player in players:
        if not _has_age(player) or player.age > YOUNG_ASSET_MAX_AGE:
            continue
        now = age_multiplier(player.position, player.age)
        assets.append(YoungAsset(
            player_id=player.player_id,
            name=player.name,
            position=player.position,
            age=player.age,
            war=round(player.war, 1),
            upside_ratio=round(peak_multiplier(player.position) / now, 2) if now > 0 else 1.0,
            dynasty_value=values.get(player.player_id),
        ))
    assets.sort(key=lambda a: a.dynasty_value if a.dynasty_value is not None else a.upside_ratio * 1000,
                reverse=True)
    return assets


def key_players(players: Iterable[RosterPlayer], values: Optional[Mapping[str, float]] = None,
                count: int = config.KEY_PLAYER_COUNT) -> List[RosterPlayer]:
    """The roster's pillars: top WAR, with dynasty value breaking near-ties (e.g. in the offseason)."""
    values = values or {}
    ranked = sorted(players, key=lambda p: (-round(p.war, 1), -values.get(p.player_id, 0.0), p.name))
    return [p.model_copy(update={"war": round(p.war, 1)}) for p in ranked[:count]]


def _need_score(group: PositionWAR) -> float:
    aging = (group.avg_age - config.ROOKIE_NEED_AGE) * 2 if group.avg_age > config.ROOKIE_NEED_AGE else 0.0
    return group.league_avg_war - group.war + aging


def rookie_draft_targets(war_by_position: Sequence[PositionWAR], rookie_pool: Sequence[RookieProspect],
                         limit: int = config.ROOKIE_TARGET_LIMIT) -> List[RookieDraftTarget]:
    """
    Top incoming rookies at the roster's positions of need.

    Positions below league average or with an old corps are needs, neediest first; the
    neediest position may take three targets, the next two, the rest one each. With no
    need anywhere every position is open.
    """
    if not rookie_pool:
        return []
    needs = sorted(
        (g for g in war_by_position
         if g.war < g.league_avg_war or g.avg_age > config.ROOKIE_NEED_AGE),
        key=_need_score, reverse=True,
    )
    positions = [g.position for g in needs] or list(config.SKILL_POSITIONS)
    groups = {g.position: g for g in war_by_position}

    targets: List[RookieDraftTarget] = []
    taken: Dict[str, int] = {}
    for rookie in sorted(rookie_pool, key=lambda r: r.value, reverse=True):
        if len(targets) >= limit:
            break
        if rookie.position not in positions:
            continue
        need_rank = positions.index(rookie.position)
        cap = 3 if need_rank == 0 else 2 if need_rank == 1 else 1
        if taken.get(rookie.position, 0) >= cap:
            continue
        group = groups.get(rookie.position)
        if group is None:
            reason = f"Add depth at {rookie.position}."
        else:
            aging = f" (avg age {group.avg_age:.0f})" if group.avg_age > config.ROOKIE_NEED_AGE else ""
            reason = f"Your {rookie.position} group is #{group.rank} in league{aging}. " \
                     f"Target young {rookie.position}s early."
        targets.append(RookieDraftTarget(
            name=rookie.name,
            position=rookie.position,
            dynasty_value=rookie.value,
            overall_rank=rookie.overall_rank,
            position_rank=rookie.position_rank,
            reason=reason,
        ))
        taken[rookie.position] = taken.get(rookie.position, 0) + 1
    return targets


def trade_targets(roster: RosterSnapshot, rosters: Sequence[RosterSnapshot],
                  war_by_position: Sequence[PositionWAR], values: Optional[Mapping[str, float]] = None,
                  display_names: Optional[Mapping[str, str]] = None,
                  limit: int = config.TRADE_TARGET_LIMIT) -> List[TradeTarget]:
    """
    Players and picks on other rosters that would shore up this roster's weak positions.

    Weak positions are those below league-average WAR, or the bottom two when none is.
    Candidates rank by dynasty value, falling back to WAR and youth; each other manager
    contributes at most `TRADE_TARGETS_PER_OWNER`.
    """
    values = values or {}
    display_names = display_names or {}
    weak = [g for g in war_by_position if g.war < g.league_avg_war]
    if not weak:
        weak = sorted(war_by_position, key=lambda g: g.war)[:2]
    groups = {g.position: g for g in weak}
    owned = {p.player_id for p in roster.players}

    candidates: List[Tuple[float, TradeTarget]] = []
    for other in rosters:
        if other.roster_id == roster.roster_id:
            continue
        owner_name = display_names.get(other.user_id, other.user_id)
        for player in other.players:
            group = groups.get(player.position)
            if group is None or player.player_id in owned:
                continue
            value = values.get(player.player_id)
            age = player.age if _has_age(player) else None
            if value is None and player.war <= 0 and (age or 99) > 30:
                continue
            score = value if value is not None else max(player.war, 0.0) * 500 + (30 - (age or 30)) * 60
            candidates.append((score, TradeTarget(
                name=player.name,
                position=player.position,
                age=age,
                war=round(player.war, 1),
                dynasty_value=value,
                owner_user_id=other.user_id,
                owner_display_name=owner_name,
                reason=f"Fills your {player.position} weakness (#{group.rank} in league)",
            )))
        picks = sorted(other.future_picks, key=lambda p: (p.season, p.round))
        for pick in picks[:config.TRADE_TARGET_PICKS_PER_TEAM]:
            value = config.PICK_ROUND_VALUE.get(pick.round, config.PICK_DEFAULT_VALUE)
            candidates.append((value * config.TRADE_TARGET_PICK_WEIGHT, TradeTarget(
                name=f"{pick.season} Round {pick.round} Pick",
                position="PICK",
                dynasty_value=value,
                owner_user_id=other.user_id,
                owner_display_name=owner_name,
                reason=f"Future draft capital ({pick.season} Rd {pick.round})",
            )))

    candidates.sort(key=lambda c: c[0], reverse=True)
    targets: List[TradeTarget] = []
    per_owner: Dict[str, int] = {}
    for _, target in candidates:
        if len(targets) >= limit:
            break
        if per_owner.get(target.owner_user_id, 0) >= config.TRADE_TARGETS_PER_OWNER:
            continue
        targets.append(target)
        per_owner[target.owner_user_id] = per_owner.get(target.owner_user_id, 0) + 1
    return targets


def project_outlook(roster: RosterSnapshot, league: LeagueContext,
                    values: Optional[Mapping[str, float]] = None,
                    rookie_pool: Sequence[RookieProspect] = ()) -> Union[FranchiseOutlook, Unavailable]:
    """
    Project a roster's WAR over the next few seasons and classify its contention window.

    Players keep their current WAR scaled by how their positional age curve moves; future
    picks add a discounted bonus in their draft year. Contention means reaching the 75th
    percentile of current team WAR in the league.

    `values` (dynasty values by player id) and `rookie_pool` only feed the highlights and
    rookie targets; the projection itself never depends on them.
    """
    skill = [p for p in roster.players if p.position in config.SKILL_POSITIONS]
    if not skill:
        return Unavailable(reason=f"Roster {roster.roster_id} has no skill-position players")
    aged = [p for p in skill if _has_age(p)]
    if not aged:
        return Unavailable(reason=f"Roster {roster.roster_id} has no player ages to project from")

    weighted_age = team_weighted_age(aged)
    current_war = sum(p.war for p in skill)

    projected = []
    for offset in range(1, config.PROJECTION_YEARS + 1):
        total = 0.0
        for player in aged:
            now = age_multiplier(player.position, player.age)
            later = age_multiplier(player.position, player.age + offset)
            total += player.war * (later / now if now > 0 else 0.0)
        target_year = league.current_year + offset
        total += sum(_pick_war(p.round, offset) for p in roster.future_picks if p.season == target_year)
        projected.append(ProjectedWAR(year_offset=offset, total_war=total))

    year_two = next((p.total_war for p in projected if p.year_offset == 2), current_war)
    risk = min(100.0, max(0.0, (current_war - year_two) / current_war * 100)) if current_war > 0 else 0.0

    team_wars = list(league.team_wars) or [current_war]
    threshold = _percentile_75(team_wars)
    median_war = statistics.median(team_wars)
    timeline = [ProjectedWAR(year_offset=0, total_war=current_war)] + projected
    window_length = sum(1 for p in timeline if p.total_war >= threshold)
    currently_contender = current_war >= threshold
    peak = max(timeline, key=lambda p: p.total_war)

    if currently_contender and window_length >= 2:
        tier = "Contender"
    elif current_war >= median_war:
        tier = "Fringe"
    else:
        tier = "Rebuilding"

    age_category = _age_category(weighted_age)
    if currently_contender and age_category == "Aging":
        window_label = "aging core"
    elif tier == "Contender":
        window_label = "contending"
    elif tier == "Fringe":
        window_label = "fringe"
    else:
        window_label = "rebuilding"

    by_position = []
    for position in config.SKILL_POSITIONS:
        group = [p for p in skill if p.position == position]
        group_aged = [p for p in group if _has_age(p)]
        by_position.append(PositionWAR(
            position=position,
            war=round(sum(p.war for p in group), 1),
            league_avg_war=round(league.league_avg_war_by_position.get(position, 0.0), 1),
            rank=league.position_ranks.get(position, 0),
            avg_age=round(team_weighted_age(group_aged), 1) if group_aged else 0.0,
        ))

    risk_score = round(risk)
    young = young_assets(skill, values)
    luck_score = (league.wins_rank - league.war_rank
                  if league.wins_rank is not None and league.war_rank is not None else 0)
    areas = focus_areas(by_position, currently_contender, current_war, year_two, league.current_year,
                        roster.future_picks, len(young))
    strategy = recommend_strategy(
        tier, window_length, risk_score, current_war, projected, roster.future_picks,
        len(young), league.war_rank or 1, len(team_wars),
        areas=areas, peak_year_offset=peak.year_offset, luck_score=luck_score,
    )

    return FranchiseOutlook(
        user_id=roster.user_id,
        weighted_age=round(weighted_age, 1),
        age_category=age_category,
        league_age_percentile=_percentile_rank(weighted_age, list(league.team_weighted_ages)),
        risk_score=risk_score,
        risk_category=_risk_category(risk),
        current_war=round(current_war, 1),
        projected_war=[p.model_copy(update={"total_war": round(p.total_war, 1)}) for p in projected],
        contender_threshold=round(threshold, 1),
        league_median_war=round(median_war, 1),
        window_length=window_length,
        currently_contender=currently_contender,
        peak_year_offset=peak.year_offset,
        peak_war=round(peak.total_war, 1),
        tier=tier,
        window_label=window_label,
        luck_score=luck_score,
        war_by_position=by_position,
        strategy=strategy,
        focus_areas=areas,
        key_players=key_players(skill, values),
        young_assets=young,
        rookie_draft_targets=rookie_draft_targets(by_position, rookie_pool),
    )


def roster_snapshot(user_id: str, roster_id: int, player_ids: Iterable[str], players: Mapping[str, Player],
                    wars: Mapping[str, float], future_picks: Sequence[FuturePick] = (),
                    wins: int = 0, losses: int = 0, ages: Optional[Mapping[str, float]] = None) -> RosterSnapshot:
    """Assemble a RosterSnapshot from upstream players, preferring valuation ages over the player feed."""
    roster_players = []
    for player_id in player_ids:
        player = players.get(player_id)
        if player is None or player.position not in config.SKILL_POSITIONS:
            continue
        age = player.age
        if ages and player_id in ages:
            age = int(ages[player_id])
        roster_players.append(RosterPlayer(
            player_id=player_id,
            name=player.name,
            position=player.position,
            age=age,
            war=wars.get(player_id, 0.0),
        ))
    return RosterSnapshot(
        user_id=user_id,
        roster_id=roster_id,
        players=tuple(roster_players),
        future_picks=tuple(future_picks),
        wins=wins,
        losses=losses,
    )
