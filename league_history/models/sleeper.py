"""Payload shapes returned by the Sleeper and FantasyCalc APIs.

Only the fields the analytics read are declared; everything else in a
payload is ignored. Sleeper sends seasons as strings and most numeric
settings as loose dicts, so those stay untyped here and are interpreted
by the loader.
"""
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


# /user/<name>, /league/<id>/users

class User(BaseModel):
    user_id: str
    username: Optional[str] = None
    display_name: Optional[str] = None
    avatar: Optional[str] = None


class LeagueUser(User):
    # team_name lives under metadata
    metadata: Optional[Dict[str, Any]] = None


# /user/<id>/leagues/nfl/<season>, /league/<id>

class League(BaseModel):
    league_id: str
    name: str
    season: str
    previous_league_id: Optional[str] = None
    status: str = "unknown"
    total_rosters: int = 0
    roster_positions: List[str] = Field(default_factory=list)
    settings: Dict[str, Any] = Field(default_factory=dict)
    scoring_settings: Dict[str, Any] = Field(default_factory=dict)


class Roster(BaseModel):
    roster_id: int
    owner_id: Optional[str] = None
    players: Optional[List[str]] = None
    starters: Optional[List[str]] = None
    settings: Dict[str, Any] = Field(default_factory=dict)


# /league/<id>/matchups/<week>

class Matchup(BaseModel):
    roster_id: int
    matchup_id: Optional[int] = None  # None on a bye
    points: Optional[float] = None
    starters: Optional[List[str]] = None
    players: Optional[List[str]] = None
    players_points: Optional[Dict[str, float]] = None


# /league/<id>/winners_bracket

class BracketMatch(BaseModel):
    """One bracket game. `p` is the place decided by the game (1 = final)."""

    r: int
    m: int
    t1: Optional[int] = None
    t2: Optional[int] = None
    w: Optional[int] = None
    l: Optional[int] = None
    p: Optional[int] = None


# /league/<id>/drafts, /draft/<id>/picks, /league/<id>/traded_picks

class Draft(BaseModel):
    draft_id: str
    season: str
    type: str = "snake"
    status: str = "unknown"
    slot_to_roster_id: Optional[Dict[str, int]] = None
    settings: Dict[str, Any] = Field(default_factory=dict)
    metadata: Optional[Dict[str, Any]] = None


class DraftPick(BaseModel):
    draft_id: str
    round: int
    pick_no: int
    player_id: Optional[str] = None
    roster_id: Optional[int] = None
    picked_by: Optional[str] = None
    is_keeper: Optional[bool] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)


class TradedPick(BaseModel):
    """A future pick whose current holder differs from its original slot.

    `roster_id` names the slot the pick belongs to, `owner_id` the roster
    holding it now.
    """

    season: str
    round: int
    roster_id: int
    owner_id: int
    previous_owner_id: Optional[int] = None


# /league/<id>/transactions/<week>

class DraftPickMovement(TradedPick):
    """A pick changing hands inside a single trade.

    Same shape as TradedPick, but `previous_owner_id` is the sending roster
    and `owner_id` the receiving one.
    """

    previous_owner_id: int


class Transaction(BaseModel):
    transaction_id: str
    type: str
    status: str = "complete"
    created: Optional[int] = None
    status_updated: Optional[int] = None
    roster_ids: List[int] = Field(default_factory=list)
    adds: Optional[Dict[str, int]] = None
    drops: Optional[Dict[str, int]] = None
    draft_picks: Optional[List[DraftPickMovement]] = None
    # stamped by the loader, not part of the payload
    season: Optional[str] = None
    week: int = 0


# /players/nfl

class Player(BaseModel):
    player_id: str
    full_name: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    position: Optional[str] = None
    team: Optional[str] = None
    age: Optional[int] = None

    @property
    def name(self) -> str:
        joined = " ".join(part for part in (self.first_name, self.last_name) if part)
        return self.full_name or joined or self.player_id


# FantasyCalc /values/current

class FantasyCalcPlayer(BaseModel):
    name: str
    position: Optional[str] = None
    sleeper_id: Optional[str] = Field(default=None, alias="sleeperId")
    maybe_age: Optional[float] = Field(default=None, alias="maybeAge")
    maybe_yoe: Optional[int] = Field(default=None, alias="maybeYoe")


class FantasyCalcEntry(BaseModel):
    player: FantasyCalcPlayer
    value: float
    overall_rank: Optional[int] = Field(default=None, alias="overallRank")
    position_rank: Optional[int] = Field(default=None, alias="positionRank")
