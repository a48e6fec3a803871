#!/usr/bin/env python3
"""
Write a billable-time CSV export from the configured record store.

Examples:
    python scripts/export_report.py
    python scripts/export_report.py --mode month --year 2024 --month-index 0
    python scripts/export_report.py --attorney-id <id> --mode range --start-date 2024-01-01 --end-date 2024-01-31
    python scripts/export_report.py --case-id <id> -o case.csv
"""

import argparse
import asyncio
import logging
from pathlib import Path
from typing import Optional

logger = logging.getLogger("export_report")


async def _build(args: argparse.Namespace):
    from timetrack import records
    from timetrack.config import get_settings
    from timetrack.exporter import build_case_export, build_export
    from timetrack.filters import PeriodFilter
    from timetrack.store import create_store

    settings = get_settings()
    store = create_store(settings)
    try:
        if args.case_id:
            detail = await records.get_case_detail(store, args.case_id)
            return build_case_export(detail.case, detail.time_logs, settings.tzinfo)

        period = PeriodFilter(
            mode=args.mode,
            start_date=args.start_date,
            end_date=args.end_date,
            year=args.year,
            month_index=args.month_index,
        )
        context = await records.resolve_attorney_context(store, args.attorney_id)
        snapshot = await records.fetch_snapshot(store, context)
        return build_export(
            snapshot.cases,
            snapshot.time_logs,
            period=period,
            attorney_name=context.attorney_name,
            tz=settings.tzinfo,
        )
    finally:
        await store.close()


def main(argv: Optional[list] = None) -> int:
    parser = argparse.ArgumentParser(description="Export billable time as CSV.")
    parser.add_argument("--case-id", help="Export the time logs of one case only")
    parser.add_argument("--attorney-id", help="Restrict the export to one attorney")
    parser.add_argument("--mode", choices=["all", "range", "month"], default="all")
    parser.add_argument("--start-date", help="YYYY-MM-DD (range mode)")
    parser.add_argument("--end-date", help="YYYY-MM-DD (range mode)")
    parser.add_argument("--year", help="Year (month mode)")
    parser.add_argument("--month-index", help="0-11 (month mode)")
    parser.add_argument("-o", "--output", help="Output path (default: export filename in cwd)")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO)

    from timetrack.errors import TimeTrackError

    try:
        artifact = asyncio.run(_build(args))
    except TimeTrackError as e:
        logger.error(f"Export failed: {e}")
        return 1

    output = Path(args.output or artifact.filename)
    output.write_bytes(artifact.to_bytes())
    print(f"Wrote {output} ({len(artifact.content.splitlines())} rows)")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
