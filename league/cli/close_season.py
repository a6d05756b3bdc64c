"""Close the current season from the command line."""

from __future__ import annotations

import argparse
import asyncio

from league.config import settings
from league.logging_config import setup_logging
from league.models.season_close import CloseProgress
from league.services.errors import LeagueError
from league.services.league_context import LeagueContext
from league.services.season_close_service import close_season, preview_migration
from league.utils.db_async import SessionLocal, dispose_engine, load_schema_modules


def _print_progress(update: CloseProgress) -> None:
    counts = f" ({update.completed}/{update.total})" if update.total else ""
    print(f"[close] {update.step.value}: {update.message}{counts}")


async def run(preview_only: bool) -> int:
    load_schema_modules()
    try:
        async with SessionLocal() as session:
            ctx = LeagueContext.from_session(session)
            preview = await preview_migration(ctx)
            print(
                f"[close] season {preview.season.label}: {preview.event_count} event(s), "
                f"{preview.card_count} card(s) ({preview.yellow_cards} yellow, {preview.red_cards} red), "
                f"{preview.active_suspensions} active suspension(s)"
            )
            if preview_only:
                return 0
            if not preview.can_close:
                print(f"[close] blocked: {preview.blocking_reason}")
                return 2
            try:
                result = await close_season(ctx, on_progress=_print_progress)
            except LeagueError as exc:
                print(f"[close] FAILED: {exc}")
                print("[close] completed steps were not rolled back; recover manually")
                return 1
            print(f"[close] done: {result.records_created} record(s), archive #{result.archive_id}")
            return 0
    finally:
        await dispose_engine()


def main() -> None:
    parser = argparse.ArgumentParser(description="Close the current league season")
    parser.add_argument(
        "--preview",
        action="store_true",
        help="Only print what the close would migrate",
    )
    args = parser.parse_args()
    setup_logging(level=settings.log_level, access_log=False, cli=True)
    raise SystemExit(asyncio.run(run(args.preview)))


if __name__ == "__main__":
    main()
