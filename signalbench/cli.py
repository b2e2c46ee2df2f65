"""signalbench.cli

Command line interface entry point for signalbench.

Design constraints:
- argparse-based.
- Lazy imports: do not import numpy or pydantic at parse time.
- Library errors surface as one line on stderr and exit code 2.
"""

from __future__ import annotations

import argparse
import json
import signal
import sys
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from signalbench.core.config import Config


@dataclass(frozen=True)
class CliContext:
    repo_root: Path


def _repo_root_from_cwd() -> Path:
    return Path.cwd()


def _add_config_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--config", type=Path, default=None, help="YAML config (default: config/default.yaml).")
    p.add_argument("--preset", default=None, help="Strategy preset from config/presets.")
    p.add_argument("--strategy", default=None, help="Registered strategy name.")
    p.add_argument("--file", type=Path, default=None, help="Bar CSV.")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="signalbench",
        description="Flip-signal detection and fixed-horizon trade simulation.",
    )
    parser.add_argument(
        "--version",
        action="store_true",
        help="Print version and exit.",
    )

    sub = parser.add_subparsers(dest="command")

    p_bt = sub.add_parser("backtest", help="Run a strategy over a bar file")
    _add_config_args(p_bt)
    p_bt.add_argument("--bars", type=int, default=None, help="Use at most this many bars.")
    p_bt.add_argument("--expiry", type=int, default=None, help="Holding period in bars.")
    p_bt.add_argument("--adx", type=float, default=None, help="ADX threshold.")
    p_bt.add_argument("--min-flips", dest="min_flips", type=int, default=None, help="Persistence K.")
    p_bt.add_argument("--step", type=float, default=None, help="PSAR acceleration step.")
    p_bt.add_argument("--max", dest="max_step", type=float, default=None, help="PSAR maximum acceleration.")
    p_bt.add_argument("--range", dest="range_multiplier", type=float, default=None, help="Range multiplier.")
    p_bt.add_argument("--json", action="store_true", help="Print the report as JSON.")

    p_live = sub.add_parser("live", help="Poll a growing bar file and log signals")
    _add_config_args(p_live)
    p_live.add_argument("--symbol", default=None)
    p_live.add_argument("--interval", type=float, default=None, help="Seconds between polls.")
    p_live.add_argument("--log", type=Path, default=None, help="Signal log path (JSON lines).")
    p_live.add_argument("--max-polls", dest="max_polls", type=int, default=None)

    sub.add_parser("strategies", help="List strategies and presets")

    return parser


def _print_version() -> None:
    from signalbench import __version__

    print(f"signalbench v{__version__}")


def _load_config(ctx: CliContext, args: argparse.Namespace) -> Config:
    from signalbench.core.config import Config

    cfg_path = args.config or ctx.repo_root / "config" / "default.yaml"
    if args.config is not None or cfg_path.exists():
        return Config.from_yaml(cfg_path, preset=args.preset)
    if args.preset:
        return Config.from_preset(args.preset, repo_root=ctx.repo_root)
    return Config()


def _strategy_params(config: Config, name: str, overrides: dict[str, Any]) -> dict[str, Any]:
    # preset params only carry over to the strategy they were written for
    params = dict(config.strategy.params) if name == config.strategy.name else {}
    params.update({k: v for k, v in overrides.items() if v is not None})
    return params


def _cmd_backtest(ctx: CliContext, args: argparse.Namespace) -> int:
    from signalbench.backtest.engine import EngineConfig, run_backtest
    from signalbench.backtest.io import load_bars_csv
    from signalbench.backtest.strategies.registry import build_strategy
    from signalbench.core.logging import configure_logging

    config = _load_config(ctx, args)
    configure_logging(config.logging)

    name = args.strategy or config.strategy.name
    params = _strategy_params(
        config,
        name,
        {
            "adx_threshold": args.adx,
            "min_flips": args.min_flips,
            "step": args.step,
            "max_step": args.max_step,
            "range_multiplier": args.range_multiplier,
        },
    )
    strategy = build_strategy(name, params)
    cfg = EngineConfig(
        expiry_bars=args.expiry if args.expiry is not None else config.backtest.expiry_bars,
        min_bars=config.backtest.min_bars,
    )

    path = args.file or config.data.file
    if path is None:
        print("error: no bar file (use --file or data.file)", file=sys.stderr)
        return 2
    max_bars = args.bars if args.bars is not None else config.data.max_bars
    prices = load_bars_csv(path, max_bars=max_bars, volume_seed=config.data.volume_seed)

    report = run_backtest(strategy=strategy, prices=prices, cfg=cfg)
    res = report.result

    if args.json:
        payload = {"strategy": report.strategy, "bars": report.n_bars, "expiry_bars": cfg.expiry_bars, "params": params}
        payload.update(res.as_dict())
        print(json.dumps(payload, sort_keys=True))
        return 0

    print(f"{report.strategy} backtest ({report.n_bars} bars, expiry={cfg.expiry_bars} bars)")
    print(f"Total trades opened: {res.total_trades}")
    print(f"Winning trades     : {res.correct_trades}")
    print(f"Accuracy           : {res.accuracy_pct:.2f}%")
    return 0


def _cmd_live(ctx: CliContext, args: argparse.Namespace) -> int:
    from datetime import timedelta

    from signalbench.backtest.strategies.registry import build_strategy
    from signalbench.core.logging import configure_logging
    from signalbench.live import CsvTailSource, LiveRunner, LiveSession, SignalLog

    config = _load_config(ctx, args)
    configure_logging(config.logging)

    name = args.strategy or config.strategy.name
    strategy = build_strategy(name, _strategy_params(config, name, {}))

    path = args.file or config.data.file
    if path is None:
        print("error: no bar file (use --file or data.file)", file=sys.stderr)
        return 2

    live = config.live
    session = LiveSession(
        strategy=strategy,
        log=SignalLog(args.log or live.log_path),
        symbol=args.symbol or live.symbol,
        cfg=config.engine_config(),
        bar_interval=timedelta(seconds=live.bar_seconds),
    )
    source = CsvTailSource(path, history_bars=live.history_bars, volume_seed=config.data.volume_seed)
    runner = LiveRunner(source=source, session=session)

    def _on_signal(signum: int, frame: object) -> None:
        runner.stop()

    previous = {sig: signal.signal(sig, _on_signal) for sig in (signal.SIGINT, signal.SIGTERM)}

    interval = args.interval if args.interval is not None else live.interval_seconds
    print(f"signalbench live: {strategy.name} on {session.symbol}, polling every {interval:g}s")
    try:
        runner.run_forever(interval, max_polls=args.max_polls)
    finally:
        for sig, handler in previous.items():
            signal.signal(sig, handler)
    print(f"stopped after {runner.polls} polls ({runner.failures} failed)")
    return 0


def _cmd_strategies(ctx: CliContext, args: argparse.Namespace) -> int:
    from signalbench.backtest.strategies.registry import list_strategies
    from signalbench.core.config import available_presets

    print("strategies:")
    for name in list_strategies():
        print(f"- {name}")
    presets = available_presets(ctx.repo_root / "config")
    if presets:
        print("presets:")
        for name in presets:
            print(f"- {name}")
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.version:
        _print_version()
        return 0

    if not args.command:
        parser.print_help()
        return 2

    ctx = CliContext(repo_root=_repo_root_from_cwd())

    dispatch: dict[str, Callable[[CliContext, argparse.Namespace], int]] = {
        "backtest": _cmd_backtest,
        "live": _cmd_live,
        "strategies": _cmd_strategies,
    }

    fn = dispatch.get(str(args.command))
    if fn is None:
        print(f"Unknown command: {args.command}", file=sys.stderr)
        return 2

    from pydantic import ValidationError

    from signalbench.core.exceptions import SignalbenchError

    try:
        return int(fn(ctx, args))
    except ValidationError as e:
        first = e.errors()[0]
        loc = ".".join(str(x) for x in first.get("loc", ()))
        print(f"error: invalid config: {loc}: {first.get('msg', '')}", file=sys.stderr)
        return 2
    except SignalbenchError as e:
        print(f"error: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
