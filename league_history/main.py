import asyncio
import logging
from typing import Dict, List, Optional, Tuple, Union

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import config
from .errors import UpstreamUnavailable
from .models.analytics import (
    BlowoutSummary,
    CrossLeagueDraftStats,
    CrossLeagueTradeStats,
    FranchiseOutlook,
    FranchiseTrajectory,
    HeadToHeadRecord,
    LeagueDraftAnalysis,
    LeagueLineage,
    LeagueTradeAnalysis,
    LuckIndex,
    ManagerCareerBreakdown,
    PlayerHolding,
    PowerRankings,
    RecordEntry,
    Unavailable,
)
from .models.sleeper import League, User
from .services import career, drafts, luck, power, records, sleeper_service, trades, trajectory
from .services.lineage import find_lineage

logging.basicConfig(level=config.LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

app = FastAPI(title="League History")

# Configure CORS for frontend integration
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:3000",  # Next.js development server
        "http://127.0.0.1:3000",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(UpstreamUnavailable)
async def upstream_unavailable_handler(request: Request, exc: UpstreamUnavailable):
    return JSONResponse(
        status_code=502,
        content=Unavailable(kind="upstream_unavailable", reason=str(exc)).model_dump(),
    )


async def _user(username: str) -> User:
    user = await sleeper_service.get_user(username)
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")
    return user


async def _lineage(username: str, root_league_id: str) -> Tuple[LeagueLineage, Dict[str, League]]:
    user = await _user(username)
    lineages, leagues = await sleeper_service.get_user_lineages(user.user_id)
    lineage = find_lineage(lineages, root_league_id)
    if lineage is None:
        raise HTTPException(status_code=404, detail="League not found")
    return lineage, leagues


@app.get("/")
def read_root():
    return {"service": "league-history"}


@app.get("/user/{username}", response_model=User)
async def get_user(username: str):
    return await _user(username)


@app.get("/user/{username}/lineages", response_model=List[LeagueLineage])
async def get_lineages(username: str):
    user = await _user(username)
    lineages, _ = await sleeper_service.get_user_lineages(user.user_id)
    return lineages


@app.get("/user/{username}/lineages/{root_league_id}/career", response_model=Dict[str, ManagerCareerBreakdown])
async def get_career(username: str, root_league_id: str):
    lineage, leagues = await _lineage(username, root_league_id)
    history = await sleeper_service.load_history(lineage, leagues)
    return career.career_breakdowns(history)


@app.get("/user/{username}/lineages/{root_league_id}/head-to-head/{user_a}/{user_b}",
         response_model=HeadToHeadRecord)
async def get_head_to_head(username: str, root_league_id: str, user_a: str, user_b: str):
    lineage, leagues = await _lineage(username, root_league_id)
    history = await sleeper_service.load_history(lineage, leagues)
    return career.head_to_head(history, user_a, user_b)


@app.get("/user/{username}/lineages/{root_league_id}/records", response_model=List[RecordEntry])
async def get_records(username: str, root_league_id: str):
    lineage, leagues = await _lineage(username, root_league_id)
    history = await sleeper_service.load_history(lineage, leagues)
    return records.compute_all_time_records(history)


@app.get("/user/{username}/lineages/{root_league_id}/blowouts", response_model=BlowoutSummary)
async def get_blowouts(username: str, root_league_id: str, count: int = config.BLOWOUT_LIST_SIZE):
    lineage, leagues = await _lineage(username, root_league_id)
    history = await sleeper_service.load_history(lineage, leagues)
    return records.compute_blowouts(history, count)


@app.get("/user/{username}/lineages/{root_league_id}/luck", response_model=Union[LuckIndex, Unavailable])
async def get_luck(username: str, root_league_id: str, season: Optional[int] = None):
    """Lineage-wide luck, or one season's when `season` is given."""
    lineage, leagues = await _lineage(username, root_league_id)
    history = await sleeper_service.load_history(lineage, leagues)
    if season is None:
        return luck.compute_lineage_luck(history)
    match = next((s for s in history.seasons if s.season == season), None)
    if match is None:
        raise HTTPException(status_code=404, detail="Season not found")
    return luck.compute_season_luck(match)


@app.get("/user/{username}/lineages/{root_league_id}/power", response_model=Union[PowerRankings, Unavailable])
async def get_power_rankings(username: str, root_league_id: str, season: Optional[int] = None):
    """Power rankings for `season`, the lineage's most recent season by default."""
    lineage, leagues = await _lineage(username, root_league_id)
    history = await sleeper_service.load_history(lineage, leagues)
    if season is None and history.seasons:
        season = history.seasons[0].season
    match = next((s for s in history.seasons if s.season == season), None)
    if match is None:
        raise HTTPException(status_code=404, detail="Season not found")
    return power.compute_power_rankings(match)


@app.get("/user/{username}/lineages/{root_league_id}/trades", response_model=LeagueTradeAnalysis)
async def get_trades(username: str, root_league_id: str):
    lineage, leagues = await _lineage(username, root_league_id)
    return await sleeper_service.lineage_trades(lineage, leagues)


@app.get("/user/{username}/lineages/{root_league_id}/drafts", response_model=LeagueDraftAnalysis)
async def get_drafts(username: str, root_league_id: str):
    lineage, leagues = await _lineage(username, root_league_id)
    return await sleeper_service.lineage_drafts(lineage, leagues)


@app.get("/user/{username}/lineages/{root_league_id}/trajectory",
         response_model=Union[FranchiseTrajectory, Unavailable])
async def get_trajectory(username: str, root_league_id: str):
    lineage, leagues = await _lineage(username, root_league_id)
    history = await sleeper_service.load_history(lineage, leagues)
    return trajectory.compute_trajectory(history)


@app.get("/user/{username}/lineages/{root_league_id}/outlook",
         response_model=Dict[str, Union[FranchiseOutlook, Unavailable]])
async def get_outlook(username: str, root_league_id: str):
    lineage, leagues = await _lineage(username, root_league_id)
    return await sleeper_service.lineage_outlook(lineage, leagues)


@app.get("/user/{username}/trades", response_model=CrossLeagueTradeStats)
async def get_cross_league_trades(username: str):
    user = await _user(username)
    lineages, leagues = await sleeper_service.get_user_lineages(user.user_id)
    analyses = await asyncio.gather(*[sleeper_service.lineage_trades(lin, leagues) for lin in lineages])
    return trades.summarize_cross_league_trades(
        user.user_id,
        {lin.root_league_id: analysis for lin, analysis in zip(lineages, analyses)},
        {lin.root_league_id: lin.name for lin in lineages},
    )


@app.get("/user/{username}/drafts", response_model=CrossLeagueDraftStats)
async def get_cross_league_drafts(username: str):
    user = await _user(username)
    lineages, leagues = await sleeper_service.get_user_lineages(user.user_id)
    analyses = await asyncio.gather(*[sleeper_service.lineage_drafts(lin, leagues) for lin in lineages])
    return drafts.summarize_cross_league_drafts(
        user.user_id,
        {lin.root_league_id: analysis for lin, analysis in zip(lineages, analyses)},
        {lin.root_league_id: lin.name for lin in lineages},
    )


@app.get("/user/{username}/holdings", response_model=List[PlayerHolding])
async def get_holdings(username: str):
    user = await _user(username)
    lineages, _ = await sleeper_service.get_user_lineages(user.user_id)
    return await sleeper_service.user_holdings(user.user_id, lineages)
