import pytest

from league_history.models.analytics import PickAsset
from league_history.models.sleeper import FantasyCalcEntry
from league_history.services.valuation import (
    PickValueCurve,
    SnapshotValuer,
    ValuationFormat,
    ValuationSnapshot,
    ValuationTable,
)


def snapshot(taken_at, values):
    return ValuationSnapshot(taken_at=taken_at, values=values)


def test_from_fantasycalc_keys_by_sleeper_id():
    entries = [
        FantasyCalcEntry(**{"player": {"name": "Ja'Marr Chase", "position": "WR", "sleeperId": "7564",
                                        "maybeAge": 24.6}, "value": 10200}),
        FantasyCalcEntry(**{"player": {"name": "No Sleeper Id"}, "value": 50}),
    ]
    snap = ValuationSnapshot.from_fantasycalc(entries, taken_at=1, fmt=ValuationFormat(num_qbs=2))
    assert snap.values == {"7564": 10200}
    assert snap.positions == {"7564": "WR"}
    assert snap.ages == {"7564": 24.6}
    assert snap.format.num_qbs == 2


def test_table_uses_latest_snapshot_at_or_before_timestamp():
    table = ValuationTable([snapshot(300, {"p": 3.0}), snapshot(100, {"p": 1.0}), snapshot(200, {"p": 2.0})])
    assert table.value_at("p", 250) == 2.0
    assert table.value_at("p", 200) == 2.0
    assert table.value_at("p", 10_000) == 3.0
    # every snapshot newer than the trade: fall back to the earliest
    assert table.value_at("p", 50) == 1.0
    assert table.latest.taken_at == 300


def test_unknown_player_is_worth_nothing():
    table = ValuationTable([snapshot(100, {})])
    assert table.value_at("missing", 100) == 0.0
    assert table.latest_value("missing") == 0.0


def test_empty_table_rejected():
    with pytest.raises(ValueError):
        ValuationTable([])


def test_pick_curve_tilts_by_slot():
    curve = PickValueCurve(round_values={1: 1000.0}, default_value=10.0, slot_spread=0.2, league_size=12)
    assert curve.value(1) == 1000.0
    assert curve.value(1, slot=1) == pytest.approx(1200.0)
    assert curve.value(1, slot=12) == pytest.approx(800.0)
    assert curve.value(1, slot=1) > curve.value(1, slot=6) > curve.value(1, slot=12)
    assert curve.value(7) == 10.0


def test_snapshot_valuer_values_resolved_pick_as_drafted_player():
    table = ValuationTable([snapshot(100, {"rookie": 4000.0}), snapshot(900, {"rookie": 6500.0})])
    valuer = SnapshotValuer(table, PickValueCurve(round_values={1: 3000.0}, league_size=12))

    resolved = PickAsset(season=2024, round=1, status="resolved", drafted_player_id="rookie")
    pending = PickAsset(season=2025, round=1)

    assert valuer.pick_value(resolved, timestamp=100) == 6500.0
    assert valuer.pick_value(pending, timestamp=100) == 3000.0
    assert valuer.player_value("rookie", timestamp=100) == 4000.0


def test_from_fantasycalc_collects_incoming_rookies():
    entries = [
        FantasyCalcEntry(**{"player": {"name": "Rookie Back", "position": "RB", "maybeYoe": 0},
                            "value": 6100, "overallRank": 40, "positionRank": 12}),
        FantasyCalcEntry(**{"player": {"name": "Rookie Wideout", "position": "WR", "sleeperId": "11",
                                        "maybeYoe": 0}, "value": 5200}),
        FantasyCalcEntry(**{"player": {"name": "Veteran", "position": "WR", "sleeperId": "12", "maybeYoe": 5},
                            "value": 7000}),
    ]
    snap = ValuationSnapshot.from_fantasycalc(entries, taken_at=1)

    assert [r.name for r in snap.rookies] == ["Rookie Back", "Rookie Wideout"]
    assert snap.rookies[0].overall_rank == 40
    assert "11" in snap.values
