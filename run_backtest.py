#!/usr/bin/env python3
"""
Run a confidence-scored backtest.

Usage:
    python run_backtest.py --synthetic --start 2024-01-01 --end 2024-02-01
    python run_backtest.py --data data/historical/BTCUSDT_1h.csv --start 2024-03-01 --end 2024-04-01
    python run_backtest.py --config run.json --json results.json
    python run_backtest.py --synthetic --seed 7 --weights 0.4 0.3 0.2 0.1 --max-positions 2
    python run_backtest.py --synthetic --adviser                 # Ollama-adjusted confidence

Modes:
    1. Mathematical adjustment (default): confidence shifted by volatility forecast
    2. Adviser (--adviser): local Ollama model reviews each score (requires ollama serve)
    3. Raw scores (--no-adjust): confidence used exactly as scored
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from scorebot.ai import OllamaClient, OllamaConfidenceAdviser
from scorebot.backtest import BacktestEngine, BacktestResult
from scorebot.core import (
    BacktestError,
    InvalidConfigurationError,
    RunConfig,
    StrategyWeights,
)
from scorebot.signals import ConfidenceEnhancer, NoOpEnhancer
from scorebot.simulation import HistoricalDataSource, SyntheticDataGenerator


def build_config(args: argparse.Namespace) -> RunConfig:
    """Merge the optional JSON config file with command-line overrides."""
    data: dict = {}
    if args.config:
        data = json.loads(Path(args.config).read_text())

    overrides = {
        "symbol": args.symbol,
        "timeframe": args.timeframe,
        "start": args.start,
        "end": args.end,
        "initial_capital": args.capital,
        "risk_per_trade": args.risk,
        "max_positions": args.max_positions,
        "stop_loss_percent": args.stop_loss,
        "take_profit_percent": args.take_profit,
    }
    data.update({key: value for key, value in overrides.items() if value is not None})

    if args.weights:
        momentum, volume, trend, volatility = args.weights
        data["weights"] = StrategyWeights(momentum, volume, trend, volatility).to_dict()

    data.setdefault("symbol", "BTCUSDT")
    return RunConfig.from_dict(data)


def print_recent_trades(result: BacktestResult, count: int = 5) -> None:
    if not result.trades:
        return
    print(f"\n📜 RECENT TRADES (last {count})")
    print("-" * 60)
    for trade in result.trades[-count:]:
        pnl_emoji = "✅" if trade.pnl > 0 else "❌"
        print(
            f"  {pnl_emoji} {trade.side.name} {trade.exit_reason.value}: "
            f"${trade.entry_price:,.2f} → ${trade.exit_price:,.2f} "
            f"| P&L: ${trade.pnl:+,.2f} ({trade.pnl_percent:+.2f}%)"
        )


async def main() -> int:
    parser = argparse.ArgumentParser(description="Run a confidence-scored backtest")
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--data", "-d", help="Path to OHLCV CSV file")
    source.add_argument(
        "--synthetic",
        action="store_true",
        help="Use generated random-walk demo data (not market data)",
    )
    parser.add_argument("--seed", type=int, default=42, help="Seed for --synthetic (default: 42)")
    parser.add_argument("--config", "-c", help="JSON run configuration")

    parser.add_argument("--symbol", help="Symbol (default: BTCUSDT)")
    parser.add_argument("--timeframe", "-t", help="Bar timeframe: 1m, 5m, 15m, 1h, 4h, 1d")
    parser.add_argument("--start", help="Start of the trading period (ISO date)")
    parser.add_argument("--end", help="End of the trading period (ISO date)")
    parser.add_argument("--capital", "-b", type=float, help="Initial capital (default: 10000)")
    parser.add_argument("--risk", type=float, help="Risk per trade in %% (default: 1.0)")
    parser.add_argument("--max-positions", type=int, help="Concurrent positions (default: 1)")
    parser.add_argument("--stop-loss", type=float, help="Stop-loss %% (default: 2.0)")
    parser.add_argument("--take-profit", type=float, help="Take-profit %% (default: 4.5)")
    parser.add_argument(
        "--weights",
        nargs=4,
        type=float,
        metavar=("MOMENTUM", "VOLUME", "TREND", "VOLATILITY"),
        help="Confidence weights, must sum to 1.0",
    )

    adjust = parser.add_mutually_exclusive_group()
    adjust.add_argument(
        "--adviser",
        action="store_true",
        help="Adjust confidence with a local Ollama model",
    )
    adjust.add_argument(
        "--no-adjust",
        action="store_true",
        help="Use raw confidence scores without adjustment",
    )
    parser.add_argument("--model", default="mistral", help="Ollama model (default: mistral)")
    parser.add_argument(
        "--ollama-url",
        default="http://localhost:11434",
        help="Ollama server URL",
    )

    parser.add_argument("--json", "-o", help="Write the full result as JSON to this path")
    parser.add_argument("--verbose", "-v", action="store_true", help="Also log to the console")

    args = parser.parse_args()

    if args.verbose:
        logging.getLogger().addHandler(logging.StreamHandler())

    if (args.start is None or args.end is None) and not args.config:
        print("❌ --start and --end are required (or provide them in --config)")
        return 1

    try:
        config = build_config(args)
    except (InvalidConfigurationError, OSError, json.JSONDecodeError) as e:
        print(f"❌ Invalid configuration: {e}")
        return 1

    if args.synthetic:
        candles = SyntheticDataGenerator(seed=args.seed).generate(
            config.timeframe, config.start, config.end
        )
        data_label = f"synthetic (seed={args.seed}) - DEMO DATA"
    else:
        try:
            candles = HistoricalDataSource(args.data).candles
        except (OSError, ValueError, BacktestError) as e:
            print(f"❌ Could not load data: {e}")
            return 1
        data_label = args.data

    print(f"\n{'='*60}")
    print("🚀 BACKTEST CONFIGURATION")
    print("=" * 60)
    print(f"  Data:      {data_label}")
    print(f"  Symbol:    {config.symbol} {config.timeframe}")
    print(f"  Period:    {config.start:%Y-%m-%d %H:%M} → {config.end:%Y-%m-%d %H:%M}")
    print(f"  Capital:   ${config.initial_capital:,.2f}")
    print(f"  Risk:      {config.risk_per_trade}% per trade, {config.max_positions} max positions")
    print(f"  SL / TP:   {config.stop_loss_percent}% / {config.take_profit_percent}%")
    weights = config.weights
    print(
        f"  Weights:   momentum={weights.momentum} volume={weights.volume} "
        f"trend={weights.trend} volatility={weights.volatility}"
    )
    if args.adviser:
        adjust_mode = f"Ollama adviser ({args.model})"
    elif args.no_adjust:
        adjust_mode = "Disabled (raw scores)"
    else:
        adjust_mode = "Mathematical (volatility forecast)"
    print(f"  Adjust:    {adjust_mode}")
    print("=" * 60)

    client: OllamaClient | None = None
    enhancer: ConfidenceEnhancer | None = None
    if args.adviser:
        client = OllamaClient(base_url=args.ollama_url, model=args.model)
        if not await client.is_available():
            print("\n⚠️  Ollama not reachable - falling back to mathematical adjustment per step")
            print("   Start with: ollama serve")
        enhancer = OllamaConfidenceAdviser(client)
    elif args.no_adjust:
        enhancer = NoOpEnhancer()

    print("\n⏳ Running backtest...")
    try:
        result = await BacktestEngine(config, enhancer=enhancer).run(candles)
    except BacktestError as e:
        print(f"❌ Backtest failed: {e}")
        return 1
    finally:
        if client is not None:
            await client.close()

    result.print_summary()
    print_recent_trades(result)

    if args.json:
        output = Path(args.json)
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(json.dumps(result.to_dict(), indent=2))
        print(f"\n💾 Results written to {output}")
    return 0


if __name__ == "__main__":
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        handlers=[logging.FileHandler("backtest.log")],
    )
    sys.exit(asyncio.run(main()))
