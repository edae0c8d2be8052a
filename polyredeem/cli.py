"""polyredeem CLI entry point."""

from __future__ import annotations

import argparse
import asyncio
import importlib
import sys
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from polyredeem.config.loader import ConfigError, ConfigLoader
from polyredeem.config.settings import Settings
from polyredeem.core.logging import get_logger
from polyredeem.data.balances import BalanceInspector
from polyredeem.data.holdings import PositionLedger
from polyredeem.data.market_listing import MarketListing
from polyredeem.data.resolution import ResolutionOracle
from polyredeem.errors import PolyRedeemError
from polyredeem.execution.redeemer import Redeemer
from polyredeem.execution.rpc import PolygonRPC
from polyredeem.execution.transactions import TransactionSender
from polyredeem.reconciler import BatchReconciler
from polyredeem.reporting import format_check, format_summary, summary_to_json
from polyredeem.session import run_session

log = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Build the CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="polyredeem",
        description="Find resolved Polymarket markets and redeem winning positions",
    )

    parser.add_argument(
        "--api",
        action="store_true",
        help="Scan closed markets from the Gamma API instead of the holdings file",
    )
    parser.add_argument(
        "--max",
        dest="max_markets",
        type=int,
        default=None,
        help="Maximum markets to scan in --api mode (default: redeem.max_markets)",
    )
    parser.add_argument("--dry-run", action="store_true", help="Check but don't redeem")
    parser.add_argument(
        "--clear-holdings",
        action="store_true",
        help="Remove a market from the holdings file after a confirmed redemption",
    )
    parser.add_argument(
        "--check",
        metavar="CONDITION_ID",
        default=None,
        help="Check whether a single market is resolved",
    )
    parser.add_argument(
        "--redeem",
        action="store_true",
        help="With --check: redeem the market if you hold winning tokens",
    )
    parser.add_argument("--json", action="store_true", help="Print the summary as JSON")
    parser.add_argument(
        "--session",
        metavar="MODULE:FACTORY",
        default=None,
        help=(
            "Start a trading session: bootstrap credentials and allowances, wait for "
            "funding, then start the strategy built by FACTORY(clob_client)"
        ),
    )
    parser.add_argument(
        "--config-dir",
        type=str,
        default="config",
        help="Config directory path (default: config)",
    )
    parser.add_argument(
        "--env",
        type=str,
        default=None,
        help="Environment name (default: from POLYREDEEM_ENV)",
    )

    return parser


@dataclass
class _Components:
    rpc: PolygonRPC
    oracle: ResolutionOracle
    ledger: PositionLedger
    listing: MarketListing
    reconciler: BatchReconciler

    async def close(self) -> None:
        await self.oracle.close()
        await self.listing.close()
        await self.rpc.close()


def build_components(settings: Settings) -> _Components:
    """Wire the reconciler from settings. Raises ValueError without a key."""
    rpc = PolygonRPC(settings.rpc_url, timeout=settings.request_timeout_seconds)
    sender = TransactionSender(
        rpc,
        settings.private_key,
        funder=settings.funder_address or None,
        chain_id=settings.chain_id,
    )
    oracle = ResolutionOracle(rpc, clob_url=settings.clob_url)
    ledger = PositionLedger(settings.ledger_path)
    listing = MarketListing(settings.gamma_url, page_size=settings.page_size)
    reconciler = BatchReconciler(
        oracle=oracle,
        balances=BalanceInspector(rpc),
        redeemer=Redeemer(rpc, sender, receipt_timeout=settings.receipt_timeout_seconds),
        holder=sender.holder,
        ledger=ledger,
    )
    return _Components(rpc=rpc, oracle=oracle, ledger=ledger, listing=listing, reconciler=reconciler)


async def _run(args: argparse.Namespace, components: _Components, settings: Settings) -> int:
    reconciler = components.reconciler

    if args.check:
        check = await reconciler.check_market(args.check, redeem=args.redeem)
        print(format_check(check))
        outcome = check.outcome
        if args.redeem and (outcome.error or (outcome.has_winning_tokens and not outcome.redeemed)):
            return 1
        if not args.redeem and check.status.is_resolved:
            print(f"\nTo redeem this market, run:\n  polyredeem --check {args.check} --redeem")
        return 0

    if args.dry_run:
        print("=== DRY RUN MODE: No actual redemptions will be performed ===")

    if args.api:
        max_markets = args.max_markets or settings.max_markets
        print(f"Fetching up to {max_markets} closed markets from the API...")
        summary = await reconciler.redeem_from_listing(
            components.listing, max_markets=max_markets, dry_run=args.dry_run,
        )
    else:
        entries = components.ledger.all()
        if not entries:
            print(f"No holdings found in {components.ledger.path}. Nothing to redeem.")
            print("Holdings are tracked when orders are placed; use --api to scan all markets.")
            return 0
        print(f"Found {len(entries)} market(s) in holdings, checking which are resolved...")
        summary = await reconciler.redeem_from_ledger(
            dry_run=args.dry_run,
            clear_holdings_after_redeem=args.clear_holdings,
        )

    print(summary_to_json(summary) if args.json else format_summary(summary))
    return 0


def load_strategy_factory(spec: str) -> Callable[[Any], Any]:
    """Resolve ``package.module:factory`` to the callable it names."""
    module_name, sep, attr = spec.partition(":")
    if not sep or not module_name or not attr:
        msg = f"strategy factory must look like 'module:factory', got {spec!r}"
        raise ValueError(msg)
    try:
        factory = getattr(importlib.import_module(module_name), attr)
    except (ImportError, AttributeError) as exc:
        msg = f"cannot load strategy factory {spec!r}: {exc}"
        raise ValueError(msg) from exc
    if not callable(factory):
        msg = f"strategy factory {spec!r} is not callable"
        raise ValueError(msg)
    return factory


def _start_session(args: argparse.Namespace, settings: Settings) -> int:
    try:
        factory = load_strategy_factory(args.session)
    except ValueError as exc:
        log.error("cli.startup_failed", error=str(exc))
        return 1
    try:
        return asyncio.run(run_session(factory, settings))
    except Exception as exc:
        log.exception("cli.session_failed", error=str(exc)[:200])
        return 1


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.redeem and not args.check:
        parser.error("--redeem requires --check")
    if args.max_markets is not None and args.max_markets <= 0:
        parser.error("--max must be > 0")
    if args.session and (args.check or args.api):
        parser.error("--session cannot be combined with --check or --api")

    try:
        settings = Settings.from_loader(ConfigLoader(config_dir=args.config_dir, env=args.env))
    except ConfigError as exc:
        log.error("cli.config_error", error=str(exc))
        return 1

    if args.session:
        return _start_session(args, settings)

    try:
        components = build_components(settings)
    except ValueError as exc:
        log.error("cli.startup_failed", error=str(exc))
        return 1

    async def _main() -> int:
        try:
            return await _run(args, components, settings)
        finally:
            await components.close()

    try:
        return asyncio.run(_main())
    except PolyRedeemError as exc:
        log.error("cli.fatal", error=str(exc))
        return 1
    except Exception as exc:
        log.exception("cli.unexpected_error", error=str(exc)[:200])
        return 1


if __name__ == "__main__":
    sys.exit(main())
