"""Import past-season cards from the cumulative card spreadsheet (CSV)."""

from __future__ import annotations

import argparse
import asyncio
import csv
from pathlib import Path
from typing import Dict, List

from league.config import settings
from league.logging_config import setup_logging
from league.services.disciplinary_service import import_disciplinary_history
from league.services.league_context import LeagueContext
from league.utils.db_async import SessionLocal, dispose_engine, load_schema_modules


def _read_csv(path: Path) -> List[Dict[str, str]]:
    if not path.exists() or path.stat().st_size == 0:
        return []
    with path.open("r", encoding="utf-8-sig") as f:
        rdr = csv.DictReader(f)
        return [dict(row) for row in rdr]


async def run(csv_path: Path, commit: bool) -> None:
    load_schema_modules()
    rows = _read_csv(csv_path)
    try:
        async with SessionLocal() as session:
            ctx = LeagueContext.from_session(session)
            report = await import_disciplinary_history(ctx, rows, dry_run=not commit)
    finally:
        await dispose_engine()

    mode = "dry run" if report.dry_run else "import"
    print(
        f"[{mode}] processed={report.records_processed} "
        f"imported={report.records_imported} skipped={report.records_skipped}"
    )
    for name in report.unmatched:
        print(f"  unmatched: {name}")
    for warning in report.warnings:
        print(f"  warning: {warning}")


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Import historical disciplinary records from CSV"
    )
    parser.add_argument("csv_path", type=str, help="Path to the card spreadsheet export")
    parser.add_argument(
        "--commit",
        action="store_true",
        help="Write records (default is a dry run)",
    )
    args = parser.parse_args()
    setup_logging(level=settings.log_level, access_log=False, cli=True)
    asyncio.run(run(Path(args.csv_path), args.commit))


if __name__ == "__main__":
    main()
