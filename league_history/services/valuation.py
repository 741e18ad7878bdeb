"""
Asset valuation for trades.

Trade value is never stored: every read asks an `AssetValuer` for the value of each
asset at the trade's timestamp. A pick that has since been used in a draft is
valued as the player it became, so old trades re-grade themselves as drafts resolve.
"""
import bisect
from typing import Dict, Iterable, List, Mapping, Optional, Protocol, Sequence, Tuple

from pydantic import BaseModel, ConfigDict

from .. import config
from ..models.analytics import PickAsset, RookieProspect
from ..models.sleeper import FantasyCalcEntry


class ValuationFormat(BaseModel):
    """The league shape a valuation applies to."""
    model_config = ConfigDict(frozen=True)

    num_qbs: int = 1
    num_teams: int = config.DEFAULT_LEAGUE_SIZE
    ppr: float = 1.0


class ValuationSnapshot(BaseModel):
    model_config = ConfigDict(frozen=True)

    taken_at: int  # Unix timestamp in ms
    format: ValuationFormat = ValuationFormat()
    values: Dict[str, float] = {}
    positions: Dict[str, str] = {}
    ages: Dict[str, float] = {}
    # players with no NFL seasons yet, kept whether or not they have a Sleeper id
    rookies: Tuple[RookieProspect, ...] = ()

    @classmethod
    def from_fantasycalc(cls, entries: Iterable[FantasyCalcEntry], taken_at: int,
                         fmt: Optional[ValuationFormat] = None) -> "ValuationSnapshot":
        values, positions, ages = {}, {}, {}
        rookies = []
        for entry in entries:
            if entry.player.maybe_yoe == 0 and entry.player.position:
                rookies.append(RookieProspect(
                    name=entry.player.name,
                    position=entry.player.position,
                    value=entry.value,
                    overall_rank=entry.overall_rank,
                    position_rank=entry.position_rank,
                ))
            sleeper_id = entry.player.sleeper_id
            if not sleeper_id:
                continue
            values[sleeper_id] = entry.value
            if entry.player.position:
                positions[sleeper_id] = entry.player.position
            if entry.player.maybe_age is not None:
                ages[sleeper_id] = entry.player.maybe_age
        return cls(taken_at=taken_at, format=fmt or ValuationFormat(), values=values,
                   positions=positions, ages=ages, rookies=tuple(rookies))


class ValuationTable:
    """Time-indexed player values for one format."""

    def __init__(self, snapshots: Sequence[ValuationSnapshot]):
        if not snapshots:
            raise ValueError("ValuationTable needs at least one snapshot")
        self.snapshots: List[ValuationSnapshot] = sorted(snapshots, key=lambda s: s.taken_at)
        self._times = [s.taken_at for s in self.snapshots]

    def snapshot_at(self, timestamp: int) -> ValuationSnapshot:
        """Latest snapshot taken at or before `timestamp`; the earliest one if all are newer."""
        idx = bisect.bisect_right(self._times, timestamp) - 1
        return self.snapshots[max(idx, 0)]

    def value_at(self, player_id: str, timestamp: int) -> float:
        return self.snapshot_at(timestamp).values.get(player_id, 0.0)

    def latest_value(self, player_id: str) -> float:
        return self.snapshots[-1].values.get(player_id, 0.0)

    @property
    def latest(self) -> ValuationSnapshot:
        return self.snapshots[-1]


class PickValueCurve:
    """Expected value of a not-yet-used pick by round, tilted by slot inside the round."""

    def __init__(self, round_values: Mapping[int, float] = config.PICK_ROUND_VALUE,
                 default_value: float = config.PICK_DEFAULT_VALUE,
                 slot_spread: float = config.PICK_SLOT_SPREAD,
                 league_size: int = config.DEFAULT_LEAGUE_SIZE):
        self.round_values = dict(round_values)
        self.default_value = default_value
        self.slot_spread = slot_spread
        self.league_size = max(league_size, 1)

    def value(self, round: int, slot: Optional[int] = None) -> float:
        base = self.round_values.get(round, self.default_value)
        if slot is None or self.league_size == 1:
            return base
        slot = min(max(slot, 1), self.league_size)
        # slot 1 -> 1 + spread, last slot -> 1 - spread
        position = (slot - 1) / (self.league_size - 1)
        return base * (1 + self.slot_spread - 2 * self.slot_spread * position)


class AssetValuer(Protocol):
    def player_value(self, player_id: str, timestamp: int) -> float:
        ...

    def pick_value(self, pick: PickAsset, timestamp: int) -> float:
        ...


class SnapshotValuer:
    """Values players from a ValuationTable and picks from the curve or their resolution."""

    def __init__(self, table: ValuationTable, curve: Optional[PickValueCurve] = None):
        self.table = table
        self.curve = curve or PickValueCurve(league_size=table.latest.format.num_teams)

    def player_value(self, player_id: str, timestamp: int) -> float:
        return self.table.value_at(player_id, timestamp)

    def pick_value(self, pick: PickAsset, timestamp: int) -> float:
        if pick.status == "resolved" and pick.drafted_player_id:
            return self.table.latest_value(pick.drafted_player_id)
        return self.curve.value(pick.round, pick.slot)
