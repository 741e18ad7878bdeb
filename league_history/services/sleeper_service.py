import asyncio
import logging
import time
from datetime import datetime
from typing import Dict, List, Optional, Tuple, Type, TypeVar, Union

from pydantic import BaseModel, ValidationError

from .. import client, config
from ..errors import UpstreamUnavailable
from ..models.analytics import (
    FranchiseOutlook,
    LeagueDraftAnalysis,
    LeagueLineage,
    LeagueSeason,
    LeagueTradeAnalysis,
    LineageHistory,
    ManagerInfo,
    Matchup,
    PlayerHolding,
    SeasonDraft,
    TeamSeason,
    Unavailable,
)
from ..models.sleeper import (
    BracketMatch,
    Draft,
    DraftPick,
    FantasyCalcEntry,
    League,
    LeagueUser,
    Matchup as RawMatchup,
    Player,
    Roster,
    TradedPick,
    Transaction,
    User,
)
from . import drafts, holdings, outlook, trades
from .lineage import resolve_lineages, to_league_ref
from .valuation import SnapshotValuer, ValuationFormat, ValuationSnapshot, ValuationTable

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


def _parse(model: Type[ModelT], rows, what: str) -> List[ModelT]:
    """Validate upstream rows, skipping (and logging) any that don't fit the model."""
    parsed = []
    for row in rows or []:
        try:
            parsed.append(model(**row))
        except (ValidationError, TypeError) as e:
            logger.warning("Skipping malformed %s: %s", what, e)
    return parsed


# ---------- Users & lineages ----------

async def get_user(username: str) -> Optional[User]:
    data = await client.get_user_by_username(username)
    if not data:
        return None
    return User(**data)


async def get_user_leagues(user_id: str) -> List[League]:
    """Every league the user has been in over the last HISTORY_SEASONS seasons."""
    current = datetime.now().year
    seasons = [str(year) for year in range(current, current - config.HISTORY_SEASONS, -1)]
    results = await asyncio.gather(*[client.get_leagues_for_user(user_id, season) for season in seasons])
    leagues = []
    for rows in results:
        leagues.extend(_parse(League, rows, "league"))
    return leagues


async def get_user_lineages(user_id: str) -> Tuple[List[LeagueLineage], Dict[str, League]]:
    leagues = await get_user_leagues(user_id)
    refs = []
    for league in leagues:
        try:
            refs.append(to_league_ref(league))
        except ValueError:
            logger.warning("Skipping league %s with unparseable season %r", league.league_id, league.season)
    return resolve_lineages(refs), {league.league_id: league for league in leagues}


# ---------- Seasons ----------

def _playoff_week_start(league: League) -> int:
    return league.settings.get("playoff_week_start") or config.DEFAULT_PLAYOFF_WEEK_START


def _managers(users: List[LeagueUser]) -> Dict[str, ManagerInfo]:
    managers = {}
    for user in users:
        team_name = (user.metadata or {}).get("team_name")
        managers[user.user_id] = ManagerInfo(
            user_id=user.user_id,
            display_name=user.display_name or user.user_id,
            team_name=team_name,
            avatar=user.avatar,
        )
    return managers


def _standings(rosters: List[Roster], roster_to_user: Dict[int, str]) -> Tuple[TeamSeason, ...]:
    teams = []
    for roster in rosters:
        user_id = roster_to_user.get(roster.roster_id)
        if user_id is None:
            continue
        s = roster.settings
        teams.append(TeamSeason(
            user_id=user_id,
            roster_id=roster.roster_id,
            wins=s.get("wins") or 0,
            losses=s.get("losses") or 0,
            ties=s.get("ties") or 0,
            points_for=(s.get("fpts") or 0) + (s.get("fpts_decimal") or 0) / 100,
            points_against=(s.get("fpts_against") or 0) + (s.get("fpts_against_decimal") or 0) / 100,
        ))
    ordered = sorted(teams, key=lambda t: (-t.wins, -t.points_for))
    return tuple(t.model_copy(update={"rank": idx}) for idx, t in enumerate(ordered, start=1))


def _pair_matchups(season: int, week: int, rows: List[RawMatchup], roster_to_user: Dict[int, str],
                   is_playoff: bool, allowed_pairs=None) -> List[Matchup]:
    """Pair rows sharing a matchup_id. With `allowed_pairs`, only those roster pairings are kept."""
    by_matchup: Dict[int, List[RawMatchup]] = {}
    for row in rows:
        if row.matchup_id is None:
            continue  # bye
        by_matchup.setdefault(row.matchup_id, []).append(row)

    matchups = []
    for matchup_id, pair in by_matchup.items():
        if len(pair) != 2:
            logger.warning("Season %s week %s matchup %s has %d teams; skipping",
                           season, week, matchup_id, len(pair))
            continue
        a, b = pair
        if allowed_pairs is not None and frozenset((a.roster_id, b.roster_id)) not in allowed_pairs:
            continue
        user_a, user_b = roster_to_user.get(a.roster_id), roster_to_user.get(b.roster_id)
        if user_a is None or user_b is None:
            logger.warning("Season %s week %s matchup %s has an unowned roster; skipping",
                           season, week, matchup_id)
            continue
        matchups.append(Matchup(
            season=season, week=week, user_a=user_a, user_b=user_b,
            points_a=a.points or 0.0, points_b=b.points or 0.0, is_playoff=is_playoff,
        ))
    return matchups


async def fetch_season(league: League) -> Tuple[LeagueSeason, List[List[RawMatchup]]]:
    """Normalize one league season, also returning its raw weekly matchup rows (index 0 is week 1)."""
    users_data, rosters_data, bracket_data, weekly_data = await asyncio.gather(
        client.get_league_users(league.league_id),
        client.get_league_rosters(league.league_id),
        client.get_winners_bracket(league.league_id),
        client.get_weekly_matchups(league.league_id, config.MAX_WEEKS),
    )
    season = int(league.season)
    users = _parse(LeagueUser, users_data, "league user")
    rosters = _parse(Roster, rosters_data, "roster")
    bracket = _parse(BracketMatch, bracket_data, "bracket match")
    weekly = [_parse(RawMatchup, rows, "matchup") for rows in weekly_data]

    roster_to_user = {r.roster_id: r.owner_id for r in rosters if r.owner_id}
    playoff_start = _playoff_week_start(league)
    bracket_pairs = {frozenset((m.t1, m.t2)) for m in bracket if m.t1 is not None and m.t2 is not None}

    matchups: List[Matchup] = []
    for week, rows in enumerate(weekly, start=1):
        if week < playoff_start:
            matchups.extend(_pair_matchups(season, week, rows, roster_to_user, is_playoff=False))
            continue
        # only winners-bracket games count as playoff games
        matchups.extend(_pair_matchups(season, week, rows, roster_to_user, is_playoff=True,
                                       allowed_pairs=bracket_pairs or None))

    final = next((m for m in bracket if m.p == 1 and m.w is not None), None)
    champion = roster_to_user.get(final.w) if final else None

    league_season = LeagueSeason(
        league_id=league.league_id,
        name=league.name,
        season=season,
        roster_to_user=roster_to_user,
        managers=_managers(users),
        standings=_standings(rosters, roster_to_user),
        matchups=tuple(matchups),
        champion_user_id=champion,
        regular_season_weeks=max(1, playoff_start - 1),
        is_complete=league.status == "complete",
    )
    return league_season, weekly


async def load_season(league: League) -> LeagueSeason:
    season, _ = await fetch_season(league)
    return season


async def load_history(lineage: LeagueLineage, leagues: Dict[str, League]) -> LineageHistory:
    seasons = await asyncio.gather(*[load_season(leagues[ref.league_id]) for ref in lineage.seasons])
    return LineageHistory(name=lineage.name, seasons=tuple(seasons))


# ---------- Players & valuations ----------

async def load_players() -> Dict[str, Player]:
    data = await client.get_all_players() or {}
    players = {}
    for player_id, row in data.items():
        try:
            players[player_id] = Player(**{**row, "player_id": player_id})
        except (ValidationError, TypeError) as e:
            logger.warning("Skipping malformed player %s: %s", player_id, e)
    return players


def valuation_format(league: League) -> ValuationFormat:
    positions = league.roster_positions
    superflex = "SUPER_FLEX" in positions or positions.count("QB") > 1
    return ValuationFormat(
        num_qbs=2 if superflex else 1,
        num_teams=league.total_rosters or config.DEFAULT_LEAGUE_SIZE,
        ppr=float(league.scoring_settings.get("rec", 1.0)),
    )


async def load_valuation(league: League) -> Optional[ValuationSnapshot]:
    """Today's FantasyCalc values for the league's format, or None when FantasyCalc can't be reached."""
    fmt = valuation_format(league)
    try:
        rows = await client.get_fantasycalc_values(fmt.num_qbs, fmt.num_teams, fmt.ppr)
    except UpstreamUnavailable as e:
        logger.warning("Player valuations unavailable, omitting value metrics: %s", e)
        return None
    entries = _parse(FantasyCalcEntry, rows, "valuation entry")
    return ValuationSnapshot.from_fantasycalc(entries, taken_at=int(time.time() * 1000), fmt=fmt)


# ---------- Drafts ----------

async def load_season_draft(league: League, season: LeagueSeason,
                            weekly: List[List[RawMatchup]]) -> Optional[SeasonDraft]:
    """The season's (first started) draft, with players scored over the regular season."""
    draft_rows = await client.get_league_drafts(league.league_id)
    started = [d for d in _parse(Draft, draft_rows, "draft") if d.status != "pre_draft"]
    if not started:
        return None
    draft = next((d for d in started if d.type == "snake"), started[0])
    picks = _parse(DraftPick, await client.get_draft_picks(draft.draft_id), "draft pick")
    if not picks:
        return None
    points = drafts.season_player_points(weekly[:season.regular_season_weeks])
    return SeasonDraft(season=season, draft=draft, picks=tuple(picks), player_points=points)


async def _load_lineage_drafts(lineage: LeagueLineage,
                               leagues: Dict[str, League]) -> Tuple[List[LeagueSeason], List[SeasonDraft]]:
    async def one(ref):
        league = leagues[ref.league_id]
        season, weekly = await fetch_season(league)
        return season, await load_season_draft(league, season, weekly)

    results = await asyncio.gather(*[one(ref) for ref in lineage.seasons])
    seasons = [season for season, _ in results]
    season_drafts = [d for _, d in results if d is not None]
    return seasons, season_drafts


async def lineage_drafts(lineage: LeagueLineage, leagues: Dict[str, League]) -> LeagueDraftAnalysis:
    _, season_drafts = await _load_lineage_drafts(lineage, leagues)
    return drafts.analyze_drafts(season_drafts)


# ---------- Trades ----------

async def lineage_trades(lineage: LeagueLineage, leagues: Dict[str, League]) -> LeagueTradeAnalysis:
    """
    Every trade in a lineage, valued as of today's read.

    Picks resolve against whatever drafts have happened so far, so a trade's value
    moves as its picks turn into players.
    """
    (seasons, season_drafts), players, snapshot, transactions = await asyncio.gather(
        _load_lineage_drafts(lineage, leagues),
        load_players(),
        load_valuation(leagues[lineage.root_league_id]),
        asyncio.gather(*[client.get_all_league_transactions(ref.league_id) for ref in lineage.seasons]),
    )
    resolutions = drafts.build_pick_resolutions(season_drafts, players)
    valuer = SnapshotValuer(ValuationTable([snapshot])) if snapshot is not None else None

    by_league = {season.league_id: season for season in seasons}
    analyzed = []
    for ref, rows in zip(lineage.seasons, transactions):
        season = by_league[ref.league_id]
        parsed = _parse(Transaction, rows, "transaction")
        analyzed.extend(trades.analyze_season_trades(season, parsed, players, resolutions, valuer))
    return trades.summarize_trades(analyzed, {ref.league_id: ref.name for ref in lineage.seasons})


# ---------- Outlook ----------

async def lineage_outlook(lineage: LeagueLineage,
                          leagues: Dict[str, League]) -> Dict[str, Union[FranchiseOutlook, Unavailable]]:
    """Outlook for every manager of the lineage's current season, keyed by user id."""
    league = leagues[lineage.root_league_id]
    regular_weeks = max(1, _playoff_week_start(league) - 1)
    rosters_data, users_data, players, traded_data, weekly_data, snapshot = await asyncio.gather(
        client.get_league_rosters(league.league_id),
        client.get_league_users(league.league_id),
        load_players(),
        client.get_traded_picks(league.league_id),
        client.get_weekly_matchups(league.league_id, regular_weeks),
        load_valuation(league),
    )
    rosters = [r for r in _parse(Roster, rosters_data, "roster") if r.owner_id]
    managers = _managers(_parse(LeagueUser, users_data, "league user"))
    traded = _parse(TradedPick, traded_data, "traded pick")
    weekly = [_parse(RawMatchup, rows, "matchup") for rows in weekly_data]

    weeks_played = sum(1 for rows in weekly if any(r.players_points for r in rows))
    points = drafts.season_player_points(weekly)
    wars = outlook.player_war_map(
        points, players, league.roster_positions,
        league.settings.get("num_teams") or league.total_rosters or config.DEFAULT_LEAGUE_SIZE,
        weeks_played, regular_weeks,
    )
    current_year = int(league.season)
    future = outlook.future_pick_ownership(
        [r.roster_id for r in rosters], traded,
        first_season=current_year + 1,
        seasons=config.PROJECTION_YEARS,
        rounds=league.settings.get("draft_rounds") or len(config.PICK_WAR_BY_ROUND),
    )
    ages = snapshot.ages if snapshot is not None else None
    values = snapshot.values if snapshot is not None else None
    rookie_pool = snapshot.rookies if snapshot is not None else ()
    names = {user_id: info.display_name for user_id, info in managers.items()}

    snapshots = [
        outlook.roster_snapshot(
            roster.owner_id, roster.roster_id, roster.players or [], players, wars,
            future.get(roster.roster_id, []),
            wins=roster.settings.get("wins") or 0,
            losses=roster.settings.get("losses") or 0,
            ages=ages,
        )
        for roster in rosters
    ]
    contexts = outlook.build_league_contexts(snapshots, current_year)

    results: Dict[str, Union[FranchiseOutlook, Unavailable]] = {}
    for snap in snapshots:
        result = outlook.project_outlook(snap, contexts[snap.user_id], values, rookie_pool)
        if isinstance(result, FranchiseOutlook):
            targets = outlook.trade_targets(snap, snapshots, result.war_by_position, values, names)
            result = result.model_copy(update={"trade_targets": targets})
        results[snap.user_id] = result
    return results


# ---------- Holdings ----------

async def user_holdings(user_id: str, lineages: List[LeagueLineage]) -> List[PlayerHolding]:
    roots = [lin.root for lin in lineages]
    players, rosters_by_league = await asyncio.gather(
        load_players(),
        asyncio.gather(*[client.get_league_rosters(ref.league_id) for ref in roots]),
    )
    league_rosters = [
        (ref, _parse(Roster, rows, "roster")) for ref, rows in zip(roots, rosters_by_league)
    ]
    return holdings.compute_holdings(user_id, league_rosters, players)
