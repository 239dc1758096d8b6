"""
Main Execution Script for the Slot Hunter.

Loads settings from the environment and strategies from a JSON file, builds
the demand stack against a slot gateway, then runs rounds until every
strategy is complete (or the auto-complete timer fires).
"""

import argparse
import asyncio
import logging
import sys

from gateways import SnapshotGateway
from scheduler.builders import build_strategies_stack
from scheduler.context import SchedulerContext
from scheduler.engine import RoundScheduler
from scheduler.errors import SlotHunterError
from scheduler.gateway import HostShutdownController
from scheduler.settings import Settings, load_strategy_file

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[logging.StreamHandler()]
)
logger = logging.getLogger("Main")

# --- CONFIGURATION ---
STRATEGY_FILENAME = "strategies.json"
SNAPSHOT_FILENAME = "snapshot.json"
# ---------------------


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Reserve time slots according to declared strategies.")
    parser.add_argument("--strategies", default=STRATEGY_FILENAME, help="Strategy JSON file")
    parser.add_argument("--snapshot", default=SNAPSHOT_FILENAME, help="Slot snapshot JSON file")
    parser.add_argument("--interval", type=float, default=None, help="Override round interval (seconds)")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return parser.parse_args(argv)


async def run(args: argparse.Namespace) -> int:
    settings = Settings.from_env()
    if args.interval is not None:
        settings = settings.model_copy(update={"interval": args.interval})

    strategy_file = load_strategy_file(args.strategies)
    gateway = SnapshotGateway.from_file(args.snapshot)
    context = SchedulerContext(gateway, settings=settings, visit_types=strategy_file.visit_types)

    strategies = await build_strategies_stack(context, strategy_file.strategies)
    if settings.debug:
        logger.info("Debug mode is on: host power-off will be simulated")

    scheduler = RoundScheduler(context, strategies, system=HostShutdownController())
    ledger = await scheduler.run()

    stats = ledger.get_statistics()
    print("\n" + "=" * 50)
    print("📊 FINAL EXECUTION REPORT")
    print("=" * 50)
    print(stats)

    report = ledger.get_failure_report()
    if report:
        print("\n🔍 FAILURE ANALYSIS")
        for fail in report:
            print(f"❌ [{fail['strategy_id']}/{fail['item_id']}] {fail['total_attempts']} attempts")
            print(f"   Cause: {fail['primary_failure_cause']} - {fail['latest_reason']}")
    return 0


def main(argv=None) -> int:
    args = parse_args(argv)
    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    logger.info("🚀 Starting Slot Hunter...")
    try:
        return asyncio.run(run(args))
    except SlotHunterError as e:
        logger.error(f"❌ {e}")
        return 1
    except KeyboardInterrupt:
        logger.warning("Interrupted")
        return 130


if __name__ == "__main__":
    sys.exit(main())
