"""
Human-readable text reports for backtest results.
"""
from typing import List, Sequence, Tuple

from .portfolio_types import BacktestResult, TradeAction

WIDTH = 80


def _pct(value: float) -> str:
    return f"{value * 100:.2f}%"


def _money(value: float) -> str:
    return f"{value:,.2f}"


def generate_report(result: BacktestResult, max_trades: int = 50) -> str:
    """
    Text report: summary metrics, trade statistics and the trade ledger
    (most recent ``max_trades`` entries; 0 hides the ledger).
    """
    lines = [
        "=" * WIDTH,
        f"BACKTEST REPORT: {result.config_name}",
        "=" * WIDTH,
        f"Period:                 {result.start_date.date()} to {result.end_date.date()}",
        f"Initial capital:        {_money(result.initial_capital)}",
        f"Final capital:          {_money(result.final_capital)}",
        f"Total return:           {_pct(result.total_return)}",
        f"Annualized return:      {_pct(result.annualized_return)}",
        f"Max drawdown:           {_pct(result.max_drawdown)}",
        f"Sharpe ratio:           {result.sharpe_ratio:.2f}",
        "",
        "TRADE STATISTICS",
        "-" * WIDTH,
        f"Round trips:            {result.trade_count}",
        f"Win rate:               {_pct(result.win_rate)}",
        f"Winning / losing:       {result.winning_trades} / {result.losing_trades}",
        f"Average win:            {_money(result.average_win)}",
        f"Average loss:           {_money(result.average_loss)}",
        f"Profit factor:          {result.profit_factor:.2f}",
        f"Max consecutive losses: {result.max_consecutive_losses}",
    ]

    if max_trades and result.trades:
        shown = result.trades[-max_trades:]
        lines += [
            "",
            f"TRADES (last {len(shown)} of {len(result.trades)})",
            "-" * WIDTH,
            f"{'Date':<12}{'Action':<8}{'Qty':>8}{'Price':>14}{'P&L':>14}  Reason",
        ]
        for trade in shown:
            pnl = _money(trade.realized_pnl) if trade.action is TradeAction.SELL else "-"
            lines.append(
                f"{str(trade.date.date()):<12}{trade.action.value:<8}{trade.quantity:>8}"
                f"{_money(trade.price):>14}{pnl:>14}  {trade.reason.value}"
            )
    lines.append("=" * WIDTH)
    return "\n".join(lines)


def format_comparison(rows: Sequence[Tuple[str, BacktestResult]]) -> str:
    """Side-by-side table of several configurations run on the same series."""
    header = (
        f"{'Config':<24}{'Return':>10}{'Annual':>10}{'MaxDD':>10}"
        f"{'Sharpe':>9}{'Trades':>8}{'WinRate':>9}"
    )
    lines: List[str] = [header, "-" * len(header)]
    for name, result in rows:
        lines.append(
            f"{name[:23]:<24}{_pct(result.total_return):>10}{_pct(result.annualized_return):>10}"
            f"{_pct(result.max_drawdown):>10}{result.sharpe_ratio:>9.2f}"
            f"{result.trade_count:>8}{_pct(result.win_rate):>9}"
        )
    return "\n".join(lines)
