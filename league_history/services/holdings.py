from typing import Dict, Iterable, List, Mapping, Tuple

from ..models.analytics import LeagueRef, PlayerHolding
from ..models.sleeper import Player, Roster

POSITION_ORDER = {"QB": 0, "RB": 1, "WR": 2, "TE": 3, "K": 4, "DEF": 5, "DST": 5}


def compute_holdings(
    user_id: str,
    league_rosters: Iterable[Tuple[LeagueRef, List[Roster]]],
    players: Mapping[str, Player],
) -> List[PlayerHolding]:
    """Every player a user rosters across their current leagues, most widely held first."""
    holdings: Dict[str, PlayerHolding] = {}
    for league, rosters in league_rosters:
        roster = next((r for r in rosters if r.owner_id == user_id), None)
        if roster is None:
            continue
        for player_id in roster.players or []:
            player = players.get(player_id)
            if player is None:
                continue
            holding = holdings.get(player_id)
            if holding is None:
                holding = PlayerHolding(
                    player_id=player_id,
                    name=player.name,
                    position=player.position or "N/A",
                    team=player.team,
                )
                holdings[player_id] = holding
            holding.league_ids.append(league.league_id)
            holding.league_names.append(league.name)
            holding.shares += 1

    return sorted(
        holdings.values(),
        key=lambda h: (-h.shares, POSITION_ORDER.get(h.position, 6), h.name.lower()),
    )
