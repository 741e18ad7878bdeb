import asyncio
import logging
from typing import Any, Dict, List, Optional

import httpx

from . import config
from .errors import UpstreamUnavailable

logger = logging.getLogger(__name__)


async def get(url: str, params: Optional[Dict[str, Any]] = None, allow_404: bool = False):
    """
    A generic GET request for the Sleeper and FantasyCalc APIs.

    Any transport failure or non-2xx response becomes UpstreamUnavailable. With
    `allow_404`, a 404 returns None instead: Sleeper answers 404 for weeks and
    resources that simply don't exist yet.
    """
    try:
        async with httpx.AsyncClient(timeout=config.REQUEST_TIMEOUT_SECONDS) as client:
            response = await client.get(url, params=params)
            if allow_404 and response.status_code == 404:
                return None
            response.raise_for_status()
            return response.json()
    except httpx.HTTPStatusError as e:
        logger.error("GET %s failed with status %s", url, e.response.status_code)
        raise UpstreamUnavailable(url, e.response.status_code) from e
    except httpx.HTTPError as e:
        logger.error("GET %s failed: %r", url, e)
        raise UpstreamUnavailable(url, detail=repr(e)) from e


async def get_user_by_username(username: str):
    url = f"{config.API_URL}/user/{username}"
    return await get(url, allow_404=True)


async def get_leagues_for_user(user_id: str, season: str):
    url = f"{config.API_URL}/user/{user_id}/leagues/nfl/{season}"
    return await get(url, allow_404=True) or []


async def get_league_users(league_id: str):
    url = f"{config.API_URL}/league/{league_id}/users"
    return await get(url)


async def get_league_rosters(league_id: str):
    url = f"{config.API_URL}/league/{league_id}/rosters"
    return await get(url)


async def get_league_drafts(league_id: str):
    url = f"{config.API_URL}/league/{league_id}/drafts"
    return await get(url, allow_404=True) or []


async def get_draft_picks(draft_id: str):
    url = f"{config.API_URL}/draft/{draft_id}/picks"
    return await get(url, allow_404=True) or []


async def get_traded_picks(league_id: str):
    url = f"{config.API_URL}/league/{league_id}/traded_picks"
    return await get(url, allow_404=True) or []


async def get_winners_bracket(league_id: str):
    url = f"{config.API_URL}/league/{league_id}/winners_bracket"
    return await get(url, allow_404=True) or []


async def get_league_matchups(league_id: str, week: int):
    url = f"{config.API_URL}/league/{league_id}/matchups/{week}"
    return await get(url, allow_404=True) or []


async def get_league_transactions(league_id: str, week: int):
    url = f"{config.API_URL}/league/{league_id}/transactions/{week}"
    return await get(url, allow_404=True) or []


async def get_all_players():
    url = f"{config.API_URL}/players/nfl"
    return await get(url)


async def get_weekly_matchups(league_id: str, weeks: int) -> List[List[dict]]:
    """Matchup rows for weeks 1..weeks, index 0 being week 1."""
    tasks = [get_league_matchups(league_id, week) for week in range(1, weeks + 1)]
    return list(await asyncio.gather(*tasks))


async def get_all_league_transactions(league_id: str, weeks: int = config.MAX_WEEKS) -> List[dict]:
    """Every transaction of a league season, tagged with the week it was listed under."""
    tasks = [get_league_transactions(league_id, week) for week in range(1, weeks + 1)]
    weekly = await asyncio.gather(*tasks)

    all_transactions = []
    for week, transactions in enumerate(weekly, start=1):
        for tx in transactions:
            tx["week"] = week
            all_transactions.append(tx)
    return all_transactions


async def get_fantasycalc_values(num_qbs: int, num_teams: int, ppr: float, is_dynasty: bool = True):
    params = {
        "isDynasty": str(is_dynasty).lower(),
        "numQbs": num_qbs,
        "numTeams": num_teams,
        "ppr": ppr,
    }
    return await get(config.FANTASYCALC_URL, params=params)
