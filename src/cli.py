"""
Report Command Line

Runs catalog reports once and prints the batch as JSON.

Usage:
    ecommerce-reports --list
    ecommerce-reports --source seed
    ecommerce-reports --report average_order_value --report late_deliveries --sla-days 3
"""

import argparse
import asyncio
import json
import sys
from typing import List, Optional

import structlog

from src.analytics import REPORT_NAMES, ReportEngine, ReportError, Snapshot
from src.config import get_settings
from src.config.logging import configure_logging
from src.data.seed import seed_snapshot
from src.database.connection import close_database, get_db, init_database
from src.database.loader import load_snapshot

logger = structlog.get_logger(__name__)


async def load_database_snapshot() -> Snapshot:
    await init_database()
    try:
        async with get_db() as db:
            return await load_snapshot(db)
    finally:
        await close_database()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ecommerce-reports",
        description="Run e-commerce business reports over a data snapshot",
    )
    parser.add_argument("--list", action="store_true", help="List report names and exit")
    parser.add_argument(
        "--report",
        action="append",
        dest="reports",
        metavar="NAME",
        help="Report to run; repeat for several (default: all)",
    )
    parser.add_argument(
        "--source",
        choices=["database", "seed"],
        default=None,
        help="Snapshot source (default: REPORT_SNAPSHOT_SOURCE)",
    )
    parser.add_argument("--sla-days", type=int, help="Delivery SLA in days")
    parser.add_argument("--high-value-threshold", type=float, dest="high_value_ltv_threshold", help="Lifetime value threshold")
    parser.add_argument("--top-n", type=int, help="Rows kept by top-N reports")
    parser.add_argument("--slow-moving-threshold", type=int, dest="slow_moving_units_threshold", help="Units sold below which a product is slow moving")
    parser.add_argument("--strict-references", action="store_true", default=None, help="Fail reports on dangling references")
    parser.add_argument("--timeout", type=float, help="Batch deadline in seconds")
    parser.add_argument("--log-level", default=None, help="Log level (default: LOG_LEVEL)")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level)

    if args.list:
        for name in REPORT_NAMES:
            print(name)
        return 0

    settings = get_settings()
    source = args.source or settings.reports.snapshot_source

    try:
        engine = ReportEngine(
            seed_snapshot() if source == "seed" else asyncio.run(load_database_snapshot()),
            settings.reports,
            sla_days=args.sla_days,
            high_value_ltv_threshold=args.high_value_ltv_threshold,
            top_n=args.top_n,
            slow_moving_units_threshold=args.slow_moving_units_threshold,
            strict_references=args.strict_references,
        )
        batch = engine.run_batch(args.reports, timeout=args.timeout)
    except ReportError as e:
        logger.error("Report run rejected", error=str(e), code=e.code)
        print(json.dumps(e.to_dict()), file=sys.stderr)
        return 2

    print(json.dumps(batch.to_dict(), indent=2, default=str))
    return 1 if batch.failed else 0


if __name__ == "__main__":
    sys.exit(main())
