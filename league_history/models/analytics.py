from typing import Annotated, Dict, List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, computed_field

from .sleeper import Draft, DraftPick


class Unavailable(BaseModel):
    """Explicit "no result": either too little history or a provider we couldn't reach."""
    model_config = ConfigDict(frozen=True)

    available: Literal[False] = False
    kind: Literal["missing_data", "upstream_unavailable"] = "missing_data"
    reason: str


# ---------- Lineage ----------

class LeagueRef(BaseModel):
    model_config = ConfigDict(frozen=True)

    league_id: str
    name: str
    season: int
    total_rosters: int = 0
    roster_positions: Tuple[str, ...] = ()
    status: str = "unknown"


class LeagueLineage(BaseModel):
    """Same-named leagues across seasons, most recent season first."""
    model_config = ConfigDict(frozen=True)

    name: str
    seasons: Tuple[LeagueRef, ...]

    @computed_field
    @property
    def root_league_id(self) -> str:
        return self.seasons[0].league_id

    @property
    def root(self) -> LeagueRef:
        return self.seasons[0]

    @property
    def league_ids(self) -> List[str]:
        return [ref.league_id for ref in self.seasons]


class ManagerInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    user_id: str
    display_name: str
    team_name: Optional[str] = None
    avatar: Optional[str] = None


class TeamSeason(BaseModel):
    model_config = ConfigDict(frozen=True)

    user_id: str
    roster_id: int
    wins: int = 0
    losses: int = 0
    ties: int = 0
    points_for: float = 0.0
    points_against: float = 0.0
    rank: int = 0


class Matchup(BaseModel):
    model_config = ConfigDict(frozen=True)

    season: int
    week: int
    user_a: str
    user_b: str
    points_a: float
    points_b: float
    is_playoff: bool = False

    @property
    def margin(self) -> float:
        return abs(self.points_a - self.points_b)

    @property
    def is_unplayed(self) -> bool:
        return self.points_a == 0 and self.points_b == 0

    @property
    def winner_id(self) -> Optional[str]:
        if self.points_a > self.points_b:
            return self.user_a
        if self.points_b > self.points_a:
            return self.user_b
        return None

    @property
    def loser_id(self) -> Optional[str]:
        if self.points_a > self.points_b:
            return self.user_b
        if self.points_b > self.points_a:
            return self.user_a
        return None


class LeagueSeason(BaseModel):
    model_config = ConfigDict(frozen=True)

    league_id: str
    name: str
    season: int
    roster_to_user: Dict[int, str] = {}
    managers: Dict[str, ManagerInfo] = {}
    standings: Tuple[TeamSeason, ...] = ()
    matchups: Tuple[Matchup, ...] = ()
    champion_user_id: Optional[str] = None
    regular_season_weeks: int = 14
    is_complete: bool = True

    def display_name(self, user_id: str) -> str:
        info = self.managers.get(user_id)
        return info.display_name if info else user_id

    def avatar(self, user_id: str) -> Optional[str]:
        info = self.managers.get(user_id)
        return info.avatar if info else None

    def team(self, user_id: str) -> Optional[TeamSeason]:
        return next((t for t in self.standings if t.user_id == user_id), None)

    def champion(self) -> Optional[str]:
        """Bracket winner, else the first-place team of a finished season."""
        if self.champion_user_id:
            return self.champion_user_id
        if not self.is_complete:
            return None
        leader = next((t for t in self.standings if t.rank == 1), None)
        return leader.user_id if leader else None

    @property
    def regular_season_matchups(self) -> List[Matchup]:
        return [m for m in self.matchups if not m.is_playoff]

    @property
    def playoff_matchups(self) -> List[Matchup]:
        return [m for m in self.matchups if m.is_playoff]


class LineageHistory(BaseModel):
    """A lineage with every season's data loaded, most recent season first."""
    model_config = ConfigDict(frozen=True)

    name: str
    seasons: Tuple[LeagueSeason, ...] = ()

    def chronological(self) -> List[LeagueSeason]:
        return sorted(self.seasons, key=lambda s: s.season)


# ---------- Career ----------

class SeasonRecord(BaseModel):
    season: int
    wins: int
    losses: int
    ties: int = 0
    points_for: float
    rank: int
    playoff_wins: int = 0
    playoff_losses: int = 0


class ManagerCareerBreakdown(BaseModel):
    user_id: str
    display_name: str
    avatar: Optional[str] = None
    wins: int = 0
    losses: int = 0
    ties: int = 0
    playoff_wins: int = 0
    playoff_losses: int = 0
    titles: int = 0
    seasons_played: List[int] = []
    avg_points_for: float = 0.0
    win_pct: float = 0.0
    best_season: Optional[SeasonRecord] = None
    worst_season: Optional[SeasonRecord] = None
    tier: str = "Average"
    seasons: List[SeasonRecord] = []


class HeadToHeadGame(BaseModel):
    season: int
    week: int
    points_a: float
    points_b: float
    winner: Literal["A", "B", "tie"]
    is_playoff: bool


class HeadToHeadRecord(BaseModel):
    user_a: str
    user_b: str
    wins_a: int = 0
    wins_b: int = 0
    ties: int = 0
    points_a: float = 0.0
    points_b: float = 0.0
    playoff_wins_a: int = 0
    playoff_wins_b: int = 0
    games: List[HeadToHeadGame] = []


# ---------- Records ----------

class RecordHolder(BaseModel):
    holder_id: Optional[str] = None
    holder: str
    avatar: Optional[str] = None


class RecordEntry(BaseModel):
    id: str
    category: str
    holder_id: Optional[str] = None
    holder: str
    avatar: Optional[str] = None
    value: float
    display: str
    context: str
    season: Optional[int] = None
    week: Optional[int] = None
    co_holders: List[RecordHolder] = []


class BlowoutGame(BaseModel):
    season: int
    week: int
    winner_id: str
    winner_name: str
    winner_points: float
    loser_id: str
    loser_name: str
    loser_points: float
    margin: float
    is_playoff: bool


class BlowoutSummary(BaseModel):
    blowouts: List[BlowoutGame] = []
    closest: List[BlowoutGame] = []


# ---------- Luck ----------

class LuckEntry(BaseModel):
    user_id: str
    display_name: str
    actual_wins: float
    expected_wins: float
    luck_score: float
    seasons: int = 1


class LuckIndex(BaseModel):
    scope: Literal["season", "lineage"]
    seasons: List[int]
    entries: List[LuckEntry]


# ---------- Power rankings ----------

class PowerRankingEntry(BaseModel):
    user_id: str
    display_name: str
    team_name: Optional[str] = None
    avatar: Optional[str] = None
    rank: int
    score: float  # 0-100
    recent_avg: float
    season_avg: float
    win_pct: float  # 0-100


class PowerRankings(BaseModel):
    season: int
    current_week: int
    entries: List[PowerRankingEntry]


# ---------- Grading ----------

class GradeBand(BaseModel):
    model_config = ConfigDict(frozen=True)

    threshold: float
    grade: str
    color: str


# ---------- Trades ----------

class PlayerAsset(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["player"] = "player"
    player_id: str
    name: str
    position: str = "UNK"
    value: Optional[float] = None


class PickAsset(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["pick"] = "pick"
    season: int
    round: int
    slot: Optional[int] = None
    original_owner_id: Optional[str] = None
    status: Literal["pending", "resolved"] = "pending"
    drafted_player_id: Optional[str] = None
    drafted_player_name: Optional[str] = None
    drafted_position: Optional[str] = None
    value: Optional[float] = None


Asset = Annotated[Union[PlayerAsset, PickAsset], Field(discriminator="kind")]


class TradeSide(BaseModel):
    model_config = ConfigDict(frozen=True)

    roster_id: int
    user_id: str
    display_name: str
    assets_received: List[Asset] = []
    assets_sent: List[Asset] = []
    value_received: Optional[float] = None
    value_sent: Optional[float] = None
    net_value: Optional[float] = None
    outcome: Optional[Literal["win", "loss", "push"]] = None


class AnalyzedTrade(BaseModel):
    model_config = ConfigDict(frozen=True)

    transaction_id: str
    league_id: str
    season: int
    week: int
    timestamp: int
    sides: List[TradeSide]
    has_pending_picks: bool = False

    def side_for(self, user_id: str) -> Optional[TradeSide]:
        return next((side for side in self.sides if side.user_id == user_id), None)


class TradeRef(BaseModel):
    trade: AnalyzedTrade
    net_value: float
    league_name: Optional[str] = None


class TradingPartner(BaseModel):
    user_id: str
    display_name: str
    count: int


class ManagerTradeSummary(BaseModel):
    user_id: str
    display_name: str
    total_trades: int = 0
    wins: int = 0
    losses: int = 0
    pushes: int = 0
    total_net_value: Optional[float] = None
    win_rate: Optional[float] = None
    avg_value_per_trade: Optional[float] = None
    best_trade: Optional[TradeRef] = None
    worst_trade: Optional[TradeRef] = None
    most_frequent_partner: Optional[TradingPartner] = None
    grade: Optional[str] = None
    grade_color: Optional[str] = None
    grade_score: Optional[float] = None
    net_value_percentile: Optional[float] = None
    league_rank: Optional[int] = None
    trades: List[AnalyzedTrade] = []


class TradeHighlight(BaseModel):
    user_id: str
    display_name: str
    trade: AnalyzedTrade
    net_value: float


class LeagueTradeAnalysis(BaseModel):
    managers: Dict[str, ManagerTradeSummary] = {}
    trades: List[AnalyzedTrade] = []
    biggest_win: Optional[TradeHighlight] = None
    biggest_loss: Optional[TradeHighlight] = None
    most_active_trader: Optional[TradingPartner] = None
    valued: bool = True
    has_data: bool = False


class LeagueTradeBreakdown(BaseModel):
    league_id: str
    league_name: str
    trade_count: int
    net_value: Optional[float] = None
    win_rate: Optional[float] = None
    grade: Optional[str] = None
    grade_color: Optional[str] = None
    best_trade: Optional[TradeRef] = None
    worst_trade: Optional[TradeRef] = None
    most_frequent_partner: Optional[TradingPartner] = None


class CrossLeagueTradeStats(BaseModel):
    user_id: str
    total_trades: int = 0
    total_net_value: Optional[float] = None
    win_rate: Optional[float] = None
    grade: Optional[str] = None
    grade_color: Optional[str] = None
    per_league: List[LeagueTradeBreakdown] = []
    best_trade: Optional[TradeRef] = None
    worst_trade: Optional[TradeRef] = None
    has_data: bool = False


# ---------- Drafts ----------

# (season, round, original slot owner user id)
PickKey = Tuple[int, int, str]


class PickResolution(BaseModel):
    """The player a draft slot turned into."""
    model_config = ConfigDict(frozen=True)

    season: int
    round: int
    original_owner_id: str
    slot: Optional[int] = None
    player_id: str
    player_name: str
    position: str = ""
    season_points: float = 0.0


class SeasonDraft(BaseModel):
    """One season's draft with what its players went on to score."""
    model_config = ConfigDict(frozen=True)

    season: LeagueSeason
    draft: Draft
    picks: Tuple[DraftPick, ...] = ()
    player_points: Dict[str, float] = {}


class AnalyzedPick(BaseModel):
    model_config = ConfigDict(frozen=True)

    season: int
    round: int
    pick_no: int
    slot: Optional[int] = None
    user_id: str
    player_id: str
    player_name: str
    position: str = "UNK"
    is_keeper: bool = False
    season_points: float = 0.0
    replacement_level: float = 0.0
    war: float = 0.0
    expected_war: Optional[float] = None
    surplus: Optional[float] = None
    classification: Literal["hit", "bust", "neutral", "keeper"] = "neutral"


class DraftClass(BaseModel):
    season: int
    picks: List[AnalyzedPick]
    total_war: float
    total_surplus: float
    avg_surplus: float
    hit_rate: float
    bust_rate: float
    neutral_rate: float


class ManagerDraftSummary(BaseModel):
    user_id: str
    display_name: str
    total_picks: int = 0
    graded_picks: int = 0
    hits: int = 0
    busts: int = 0
    total_war: float = 0.0
    total_surplus: float = 0.0
    avg_surplus_per_pick: float = 0.0
    hit_rate: float = 0.0
    bust_rate: float = 0.0
    neutral_rate: float = 0.0
    best_pick: Optional[AnalyzedPick] = None
    worst_pick: Optional[AnalyzedPick] = None
    grade: str = "F"
    grade_color: str = ""
    grade_score: float = 0.0
    surplus_percentile: float = 0.0
    league_rank: int = 0
    draft_classes: List[DraftClass] = []


class LeagueDraftAnalysis(BaseModel):
    managers: Dict[str, ManagerDraftSummary] = {}
    expected_war_by_round: Dict[int, float] = {}
    has_data: bool = False


class LeagueDraftBreakdown(BaseModel):
    league_id: str
    league_name: str
    total_picks: int
    total_war: float
    total_surplus: float
    hit_rate: float
    bust_rate: float
    grade: str
    grade_color: str
    best_pick: Optional[AnalyzedPick] = None
    worst_pick: Optional[AnalyzedPick] = None


class CrossLeagueDraftStats(BaseModel):
    user_id: str
    total_picks: int = 0
    total_war: float = 0.0
    total_surplus: float = 0.0
    hit_rate: float = 0.0
    bust_rate: float = 0.0
    grade: Optional[str] = None
    grade_color: Optional[str] = None
    per_league: List[LeagueDraftBreakdown] = []
    best_pick: Optional[AnalyzedPick] = None
    worst_pick: Optional[AnalyzedPick] = None
    has_data: bool = False


# ---------- Trajectory ----------

class WARPoint(BaseModel):
    season: int
    week: int
    index: int
    cumulative_war: float
    rolling_war: float


class SeasonWAR(BaseModel):
    season: int
    war: float
    cumulative_war: float


class SeasonBoundary(BaseModel):
    season: int
    start_index: int


class ManagerTrajectory(BaseModel):
    user_id: str
    display_name: str
    points: List[WARPoint] = []
    seasons: List[SeasonWAR] = []


class FranchiseTrajectory(BaseModel):
    managers: Dict[str, ManagerTrajectory]
    season_boundaries: List[SeasonBoundary]
    completed_seasons: List[int]


# ---------- Outlook ----------

class RosterPlayer(BaseModel):
    model_config = ConfigDict(frozen=True)

    player_id: str
    name: str
    position: str
    age: Optional[int] = None
    war: float = 0.0


class FuturePick(BaseModel):
    model_config = ConfigDict(frozen=True)

    season: int
    round: int


class RosterSnapshot(BaseModel):
    model_config = ConfigDict(frozen=True)

    user_id: str
    roster_id: int
    players: Tuple[RosterPlayer, ...] = ()
    future_picks: Tuple[FuturePick, ...] = ()
    wins: int = 0
    losses: int = 0


class LeagueContext(BaseModel):
    model_config = ConfigDict(frozen=True)

    current_year: int
    team_wars: Tuple[float, ...] = ()
    team_weighted_ages: Tuple[float, ...] = ()
    league_avg_war_by_position: Dict[str, float] = {}
    position_ranks: Dict[str, int] = {}
    war_rank: Optional[int] = None
    wins_rank: Optional[int] = None


class ProjectedWAR(BaseModel):
    year_offset: int
    total_war: float


class PositionWAR(BaseModel):
    position: str
    war: float
    league_avg_war: float
    rank: int
    avg_age: float


class StrategyRecommendation(BaseModel):
    mode: str
    headline: str
    rationale: List[str] = []
    urgency_score: int


class FocusArea(BaseModel):
    signal: str
    detail: str
    severity: Literal["warning", "positive", "info"]


class YoungAsset(BaseModel):
    player_id: str
    name: str
    position: str
    age: int
    war: float
    upside_ratio: float
    dynasty_value: Optional[float] = None


class RookieProspect(BaseModel):
    """An incoming rookie from the valuation feed."""
    model_config = ConfigDict(frozen=True)

    name: str
    position: str
    value: float
    overall_rank: Optional[int] = None
    position_rank: Optional[int] = None


class RookieDraftTarget(BaseModel):
    name: str
    position: str
    dynasty_value: float
    overall_rank: Optional[int] = None
    position_rank: Optional[int] = None
    reason: str


class TradeTarget(BaseModel):
    name: str
    position: str  # "PICK" for draft capital
    age: Optional[int] = None
    war: float = 0.0
    dynasty_value: Optional[float] = None
    owner_user_id: str
    owner_display_name: str
    reason: str


class FranchiseOutlook(BaseModel):
    user_id: str
    weighted_age: float
    age_category: Literal["Young", "Prime", "Aging"]
    league_age_percentile: int
    risk_score: int
    risk_category: Literal["Low", "Moderate", "High", "Extreme"]
    current_war: float
    projected_war: List[ProjectedWAR]
    contender_threshold: float
    league_median_war: float
    window_length: int
    currently_contender: bool
    peak_year_offset: int
    peak_war: float
    tier: Literal["Contender", "Fringe", "Rebuilding"]
    window_label: Literal["contending", "aging core", "fringe", "rebuilding"]
    luck_score: int = 0
    war_by_position: List[PositionWAR]
    strategy: StrategyRecommendation
    focus_areas: List[FocusArea] = []
    key_players: List[RosterPlayer] = []
    young_assets: List[YoungAsset] = []
    rookie_draft_targets: List[RookieDraftTarget] = []
    trade_targets: List[TradeTarget] = []


# ---------- Holdings ----------

class PlayerHolding(BaseModel):
    player_id: str
    name: str
    position: str
    team: Optional[str] = None
    league_ids: List[str] = []
    league_names: List[str] = []
    shares: int = 0
