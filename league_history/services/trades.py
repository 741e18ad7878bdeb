import logging
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from .. import config
from ..models.analytics import (
    AnalyzedTrade,
    CrossLeagueTradeStats,
    LeagueSeason,
    LeagueTradeAnalysis,
    LeagueTradeBreakdown,
    ManagerTradeSummary,
    PickAsset,
    PickKey,
    PickResolution,
    PlayerAsset,
    TradeHighlight,
    TradeRef,
    TradeSide,
    TradingPartner,
)
from ..models.sleeper import Player, Transaction
from .grading import assign_grade, blended_score, percentile_by_rank
from .valuation import AssetValuer

logger = logging.getLogger(__name__)


def trade_grade_score(win_rate: Optional[float], net_value: float) -> float:
    # no decided trades counts as an even record
    rate = 0.5 if win_rate is None else win_rate
    return blended_score(
        rate, config.TRADE_WIN_RATE_WEIGHT,
        net_value, config.TRADE_NET_VALUE_WEIGHT,
        config.TRADE_NET_VALUE_SCALE,
    )


def _player_asset(player_id: str, players: Mapping[str, Player]) -> PlayerAsset:
    player = players.get(player_id)
    if player is None:
        return PlayerAsset(player_id=player_id, name=f"ID:{player_id[-6:]}")
    return PlayerAsset(player_id=player_id, name=player.name, position=player.position or "UNK")


def analyze_trade(
    transaction: Transaction,
    season: LeagueSeason,
    players: Mapping[str, Player],
    resolutions: Mapping[PickKey, PickResolution],
    valuer: Optional[AssetValuer] = None,
) -> AnalyzedTrade:
    """
    Break one trade into per-roster sides and value every asset as of the trade.

    Pick assets resolve against the draft that used them, keyed by the slot's original
    owner. With no valuer the sides carry assets only, and every value field is None.
    """
    timestamp = transaction.created or transaction.status_updated or 0
    received: Dict[int, List] = {rid: [] for rid in transaction.roster_ids}
    sent: Dict[int, List] = {rid: [] for rid in transaction.roster_ids}
    has_pending = False

    # an asset is kept only when both ends are sides of the trade, so sides stay zero-sum
    for player_id, receiver in (transaction.adds or {}).items():
        sender = (transaction.drops or {}).get(player_id)
        if sender is None:
            others = [rid for rid in transaction.roster_ids if rid != receiver]
            if len(others) == 1:
                sender = others[0]
        if sender is None:
            logger.warning("Trade %s: no sender for player %s, skipping it",
                           transaction.transaction_id, player_id)
            continue
        if receiver not in received or sender not in sent:
            logger.warning("Trade %s: player %s moves %s -> %s outside the trade's rosters %s, skipping it",
                           transaction.transaction_id, player_id, sender, receiver, transaction.roster_ids)
            continue
        asset = _player_asset(player_id, players)
        if valuer is not None:
            asset = asset.model_copy(update={"value": valuer.player_value(player_id, timestamp)})
        received[receiver].append(asset)
        sent[sender].append(asset)

    for movement in transaction.draft_picks or []:
        if movement.owner_id not in received or movement.previous_owner_id not in sent:
            logger.warning(
                "Trade %s: %s round %s pick moves %s -> %s outside the trade's rosters %s, skipping it",
                transaction.transaction_id, movement.season, movement.round,
                movement.previous_owner_id, movement.owner_id, transaction.roster_ids,
            )
            continue
        original_owner = season.roster_to_user.get(movement.roster_id)
        pick_season = int(movement.season)
        resolution = None
        if original_owner is not None:
            resolution = resolutions.get((pick_season, movement.round, original_owner))
        if resolution is not None:
            asset = PickAsset(
                season=pick_season,
                round=movement.round,
                slot=resolution.slot,
                original_owner_id=original_owner,
                status="resolved",
                drafted_player_id=resolution.player_id,
                drafted_player_name=resolution.player_name,
                drafted_position=resolution.position or None,
            )
        else:
            has_pending = True
            asset = PickAsset(season=pick_season, round=movement.round, original_owner_id=original_owner)
        if valuer is not None:
            asset = asset.model_copy(update={"value": valuer.pick_value(asset, timestamp)})
        received[movement.owner_id].append(asset)
        sent[movement.previous_owner_id].append(asset)

    sides = []
    for roster_id in transaction.roster_ids:
        user_id = season.roster_to_user[roster_id]
        side = TradeSide(
            roster_id=roster_id,
            user_id=user_id,
            display_name=season.display_name(user_id),
            assets_received=received[roster_id],
            assets_sent=sent[roster_id],
        )
        if valuer is not None:
            value_received = sum(a.value for a in received[roster_id])
            value_sent = sum(a.value for a in sent[roster_id])
            net = value_received - value_sent
            if net > 0:
                outcome = "win"
            elif net < 0:
                outcome = "loss"
            else:
                outcome = "push"
            side = side.model_copy(update={
                "value_received": value_received,
                "value_sent": value_sent,
                "net_value": net,
                "outcome": outcome,
            })
        sides.append(side)

    return AnalyzedTrade(
        transaction_id=transaction.transaction_id,
        league_id=season.league_id,
        season=season.season,
        week=transaction.week,
        timestamp=timestamp,
        sides=sides,
        has_pending_picks=has_pending,
    )


def analyze_season_trades(
    season: LeagueSeason,
    transactions: Iterable[Transaction],
    players: Mapping[str, Player],
    resolutions: Mapping[PickKey, PickResolution],
    valuer: Optional[AssetValuer] = None,
) -> List[AnalyzedTrade]:
    """Analyze every completed trade of one season, skipping ones that name unknown rosters."""
    trades = []
    for transaction in transactions:
        if transaction.type != "trade" or transaction.status != "complete":
            continue
        unknown = [rid for rid in transaction.roster_ids if rid not in season.roster_to_user]
        if unknown or len(transaction.roster_ids) < 2:
            logger.warning(
                "Skipping trade %s in %s: rosters %s not in league",
                transaction.transaction_id, season.league_id, unknown or transaction.roster_ids,
            )
            continue
        trades.append(analyze_trade(transaction, season, players, resolutions, valuer))
    return trades


def _most_frequent_partner(user_id: str, trades: List[AnalyzedTrade]) -> Optional[TradingPartner]:
    counts: Dict[str, int] = {}
    last_seen: Dict[str, int] = {}
    names: Dict[str, str] = {}
    for trade in trades:
        for side in trade.sides:
            if side.user_id == user_id:
                continue
            counts[side.user_id] = counts.get(side.user_id, 0) + 1
            last_seen[side.user_id] = max(last_seen.get(side.user_id, 0), trade.timestamp)
            names.setdefault(side.user_id, side.display_name)
    if not counts:
        return None
    partner = max(counts, key=lambda uid: (counts[uid], last_seen[uid]))
    return TradingPartner(user_id=partner, display_name=names[partner], count=counts[partner])


def summarize_trades(trades: Iterable[AnalyzedTrade],
                     league_names: Optional[Mapping[str, str]] = None) -> LeagueTradeAnalysis:
    """
    Per-manager trade summaries over any set of trades (one season, or a whole lineage).

    Managers are graded on a blend of win rate and total net value and ranked by
    net value. Unvalued trades are still counted, but nothing value-derived is filled in.
    """
    trades = sorted(trades, key=lambda t: t.timestamp, reverse=True)
    if not trades:
        return LeagueTradeAnalysis(has_data=False)

    league_names = league_names or {}
    valued = all(side.net_value is not None for trade in trades for side in trade.sides)

    by_user: Dict[str, List[Tuple[AnalyzedTrade, TradeSide]]] = {}
    for trade in trades:
        for side in trade.sides:
            by_user.setdefault(side.user_id, []).append((trade, side))

    summaries: Dict[str, ManagerTradeSummary] = {}
    for user_id, entries in by_user.items():
        user_trades = [trade for trade, _ in entries]
        summary = ManagerTradeSummary(
            user_id=user_id,
            display_name=entries[0][1].display_name,
            total_trades=len(entries),
            most_frequent_partner=_most_frequent_partner(user_id, user_trades),
            trades=user_trades,
        )
        if valued:
            wins = sum(1 for _, side in entries if side.outcome == "win")
            losses = sum(1 for _, side in entries if side.outcome == "loss")
            total_net = sum(side.net_value for _, side in entries)
            win_rate = wins / (wins + losses) if wins + losses else None
            best = max(entries, key=lambda e: e[1].net_value)
            worst = min(entries, key=lambda e: e[1].net_value)
            band = assign_grade(trade_grade_score(win_rate, total_net))
            summary = summary.model_copy(update={
                "wins": wins,
                "losses": losses,
                "pushes": len(entries) - wins - losses,
                "total_net_value": total_net,
                "win_rate": win_rate,
                "avg_value_per_trade": total_net / len(entries),
                "best_trade": TradeRef(trade=best[0], net_value=best[1].net_value,
                                       league_name=league_names.get(best[0].league_id)),
                "worst_trade": TradeRef(trade=worst[0], net_value=worst[1].net_value,
                                        league_name=league_names.get(worst[0].league_id)),
                "grade": band.grade,
                "grade_color": band.color,
                "grade_score": trade_grade_score(win_rate, total_net),
            })
        summaries[user_id] = summary

    analysis = LeagueTradeAnalysis(trades=trades, valued=valued, has_data=True)

    most_active = max(summaries.values(), key=lambda s: s.total_trades)
    analysis.most_active_trader = TradingPartner(
        user_id=most_active.user_id, display_name=most_active.display_name, count=most_active.total_trades,
    )

    if valued:
        ranked = sorted(summaries.values(), key=lambda s: s.total_net_value, reverse=True)
        for idx, summary in enumerate(ranked):
            summary.league_rank = idx + 1
            summary.net_value_percentile = percentile_by_rank(len(ranked), idx)
        winner = max(ranked, key=lambda s: s.best_trade.net_value)
        loser = min(ranked, key=lambda s: s.worst_trade.net_value)
        analysis.biggest_win = TradeHighlight(user_id=winner.user_id, display_name=winner.display_name,
                                              trade=winner.best_trade.trade, net_value=winner.best_trade.net_value)
        analysis.biggest_loss = TradeHighlight(user_id=loser.user_id, display_name=loser.display_name,
                                               trade=loser.worst_trade.trade, net_value=loser.worst_trade.net_value)

    analysis.managers = summaries
    return analysis


def summarize_cross_league_trades(
    user_id: str,
    analyses: Mapping[str, LeagueTradeAnalysis],
    league_names: Mapping[str, str],
) -> CrossLeagueTradeStats:
    """One manager's trading record across several lineages, keyed by root league id."""
    stats = CrossLeagueTradeStats(user_id=user_id)
    total_net = 0.0
    wins = losses = 0
    any_valued = False

    for league_id, analysis in analyses.items():
        summary = analysis.managers.get(user_id)
        if summary is None or summary.total_trades == 0:
            continue
        name = league_names.get(league_id, league_id)
        stats.per_league.append(LeagueTradeBreakdown(
            league_id=league_id,
            league_name=name,
            trade_count=summary.total_trades,
            net_value=summary.total_net_value,
            win_rate=summary.win_rate,
            grade=summary.grade,
            grade_color=summary.grade_color,
            best_trade=summary.best_trade,
            worst_trade=summary.worst_trade,
            most_frequent_partner=summary.most_frequent_partner,
        ))
        stats.total_trades += summary.total_trades
        if summary.total_net_value is None:
            continue
        any_valued = True
        total_net += summary.total_net_value
        wins += summary.wins
        losses += summary.losses
        best = summary.best_trade.model_copy(update={"league_name": name})
        worst = summary.worst_trade.model_copy(update={"league_name": name})
        if stats.best_trade is None or best.net_value > stats.best_trade.net_value:
            stats.best_trade = best
        if stats.worst_trade is None or worst.net_value < stats.worst_trade.net_value:
            stats.worst_trade = worst

    stats.per_league.sort(key=lambda b: b.trade_count, reverse=True)
    stats.has_data = stats.total_trades > 0
    if any_valued:
        stats.total_net_value = total_net
        stats.win_rate = wins / (wins + losses) if wins + losses else None
        band = assign_grade(trade_grade_score(stats.win_rate, total_net))
        stats.grade = band.grade
        stats.grade_color = band.color
    return stats
