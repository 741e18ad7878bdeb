import logging
from typing import Dict, Iterable, List, Optional

from ..models.analytics import LeagueLineage, LeagueRef, LeagueSeason, Matchup
from ..models.sleeper import League

logger = logging.getLogger(__name__)


def to_league_ref(league: League) -> LeagueRef:
    return LeagueRef(
        league_id=league.league_id,
        name=league.name,
        season=int(league.season),
        total_rosters=league.total_rosters,
        roster_positions=tuple(league.roster_positions),
        status=league.status,
    )


def resolve_lineages(leagues: Iterable[LeagueRef]) -> List[LeagueLineage]:
    """
    Group a user's leagues into lineages by exact display name.

    A reused name merges unrelated leagues into one lineage; that is accepted.
    Seasons inside a lineage run newest first, and lineages are ordered by their
    most recent season (newest first), then by name.
    """
    grouped: Dict[str, Dict[int, LeagueRef]] = {}
    for ref in leagues:
        by_season = grouped.setdefault(ref.name, {})
        if ref.season in by_season:
            logger.warning(
                "Duplicate season %s for league name %r: keeping %s, skipping %s",
                ref.season, ref.name, by_season[ref.season].league_id, ref.league_id,
            )
            continue
        by_season[ref.season] = ref

    lineages = [
        LeagueLineage(
            name=name,
            seasons=tuple(sorted(by_season.values(), key=lambda r: r.season, reverse=True)),
        )
        for name, by_season in grouped.items()
    ]
    lineages.sort(key=lambda lin: (-lin.root.season, lin.name))
    return lineages


def valid_matchups(season: LeagueSeason) -> List[Matchup]:
    """Played matchups between known managers, in week order. Anything else is skipped and logged."""
    result = []
    for matchup in sorted(season.matchups, key=lambda m: m.week):
        if matchup.user_a not in season.managers or matchup.user_b not in season.managers:
            logger.warning(
                "Skipping matchup in %s (%s week %s) with unknown user: %s vs %s",
                season.league_id, season.season, matchup.week, matchup.user_a, matchup.user_b,
            )
            continue
        if matchup.user_a == matchup.user_b:
            logger.warning(
                "Skipping self-matchup in %s (%s week %s) for %s",
                season.league_id, season.season, matchup.week, matchup.user_a,
            )
            continue
        if matchup.is_unplayed:
            continue
        result.append(matchup)
    return result


def find_lineage(lineages: Iterable[LeagueLineage], root_league_id: str) -> Optional[LeagueLineage]:
    return next((lin for lin in lineages if lin.root_league_id == root_league_id), None)
