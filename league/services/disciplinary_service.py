"""Permanent disciplinary history: lookups and historical CSV import.

The importer takes the league's cumulative card spreadsheet (one row per card
issued in past seasons), matches each row to a rostered member and stores it
as an already-served disciplinary record.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Iterable, Optional

from league.models.disciplinary import DisciplinaryRecordRead, MemberDisciplinarySummary
from league.models.events import MemberData, TeamData
from league.models.fields import CardType
from league.schemas.disciplinary_records import DisciplinaryRecord
from league.services.league_context import LeagueContext

logger = logging.getLogger(__name__)

# Spreadsheet column headers
COL_PLAYER = "Name of Player Receiving Card"
COL_TEAM = "Team of Player Receiving Yellow Card"
COL_CARD = "Card Type"
COL_REASON = "Reason Card Issued"
COL_DATE = "Game (Date)"
COL_SEASON = "Season"
COL_DIVISION = "Division"
COL_COMMENTS = "Additional Comments about Card Issued"
COL_OFFICIAL = "Official Issuing Card"

TEAM_ALIASES = {
    "greenachers": "Green Achers",
    "shin splints utd": "Shin Splints United",
}

_LAST_FIRST = re.compile(r"^(.+?),\s*(.+?)\s*\((?:male|female)\)$", re.IGNORECASE)
_US_DATE = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})$")
_DIVISION_SUFFIX = re.compile(r"\s*\([^)]*\)$")


async def get_disciplinary_records(
    ctx: LeagueContext,
    member_id: Optional[str] = None,
    team_id: Optional[str] = None,
) -> list[DisciplinaryRecordRead]:
    """Records for a member or a team, newest incident first."""
    if member_id:
        rows = await ctx.disciplinary.list_for_member(member_id)
    elif team_id:
        rows = await ctx.disciplinary.list_for_team(team_id)
    else:
        raise ValueError("member_id or team_id is required")
    return [DisciplinaryRecordRead.model_validate(row) for row in rows]


def summarize_member_history(
    member_id: str, records: list[DisciplinaryRecordRead]
) -> MemberDisciplinarySummary:
    yellow = sum(1 for r in records if r.card_type == CardType.yellow)
    return MemberDisciplinarySummary(
        member_id=member_id,
        yellow=yellow,
        red=len(records) - yellow,
        records=records,
    )


# ------------------------------
# Historical import
# ------------------------------


def normalize_player_name(raw: str) -> str:
    """'Doe, Jane (Female)' -> 'Jane Doe'; other formats are only trimmed."""
    name = raw.strip().replace('"', "").replace("'", "")
    match = _LAST_FIRST.match(name)
    if match:
        return f"{match.group(2).strip()} {match.group(1).strip()}"
    return name


def normalize_team_name(raw: str) -> str:
    name = _DIVISION_SUFFIX.sub("", raw.strip())
    return TEAM_ALIASES.get(name.lower(), name)


def normalize_card_type(raw: str) -> Optional[CardType]:
    """Map the sheet's card column; 'N/A' rows are skipped, unclear ones count as yellow."""
    value = raw.strip().upper()
    if value == "RED":
        return CardType.red
    if value == "N/A":
        return None
    return CardType.yellow


def parse_game_date(raw: str) -> Optional[date]:
    match = _US_DATE.match(raw.strip())
    if not match:
        return None
    month, day, year = (int(part) for part in match.groups())
    try:
        return date(year, month, day)
    except ValueError:
        return None


@dataclass
class RosterEntry:
    member: MemberData
    team: TeamData


def _name_parts_overlap(csv_name: str, roster_name: str) -> bool:
    csv_parts = csv_name.split()
    roster_parts = roster_name.split()
    hits = 0
    for csv_part in csv_parts:
        for roster_part in roster_parts:
            if len(csv_part) > 2 and len(roster_part) > 2 and (
                csv_part in roster_part or roster_part in csv_part
            ):
                hits += 1
                break
    return hits >= max(1, len(csv_parts) / 2)


def find_player_match(
    player_name: str, team_name: str, roster: list[RosterEntry]
) -> Optional[RosterEntry]:
    """Exact name+team, then exact name anywhere, then fuzzy name within the team."""
    name = player_name.lower()
    team = team_name.lower()

    for entry in roster:
        if entry.member.name.lower() == name and entry.team.name.lower() == team:
            return entry
    for entry in roster:
        if entry.member.name.lower() == name:
            return entry
    for entry in roster:
        if entry.team.name.lower() == team and _name_parts_overlap(name, entry.member.name.lower()):
            return entry
    return None


@dataclass
class ImportReport:
    dry_run: bool
    records_processed: int = 0
    records_imported: int = 0
    records_skipped: int = 0
    unmatched: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


def build_import_records(
    rows: Iterable[dict[str, str]],
    teams: Iterable[TeamData],
    report: ImportReport,
) -> list[DisciplinaryRecord]:
    roster = [RosterEntry(member=m, team=t) for t in teams for m in t.members]
    records: list[DisciplinaryRecord] = []

    for row in rows:
        report.records_processed += 1
        player_name = normalize_player_name(row.get(COL_PLAYER) or "")
        team_name = normalize_team_name(row.get(COL_TEAM) or "")
        card_type = normalize_card_type(row.get(COL_CARD) or "")

        if card_type is None or not player_name or not team_name:
            report.records_skipped += 1
            continue

        entry = find_player_match(player_name, team_name, roster)
        if entry is None:
            report.records_skipped += 1
            report.unmatched.append(f"{player_name} ({team_name})")
            continue

        raw_date = row.get(COL_DATE) or ""
        incident_date = parse_game_date(raw_date)
        if incident_date is None and raw_date.strip():
            report.warnings.append(f"Unparseable game date {raw_date!r} for {player_name}")

        notes = " | ".join(
            part for part in (
                (row.get(COL_COMMENTS) or "").strip(),
                f"Official: {row[COL_OFFICIAL].strip()}" if (row.get(COL_OFFICIAL) or "").strip() else "",
            ) if part
        )
        season = (row.get(COL_SEASON) or "").strip()
        division = (row.get(COL_DIVISION) or "").strip()
        records.append(
            DisciplinaryRecord(
                member_id=entry.member.id,
                member_name=entry.member.name,
                team_id=entry.team.id,
                team_name=entry.team.name,
                card_type=card_type,
                reason=(row.get(COL_REASON) or "").strip() or None,
                notes=notes or None,
                incident_date=incident_date,
                event_description=" ".join(p for p in (season, division) if p) or None,
                suspension_served=True,
                season_label=season or None,
                created_at=datetime.utcnow(),
            )
        )
    return records


async def import_disciplinary_history(
    ctx: LeagueContext,
    rows: Iterable[dict[str, str]],
    dry_run: bool = True,
) -> ImportReport:
    report = ImportReport(dry_run=dry_run)
    teams = await ctx.teams.list_teams()
    records = build_import_records(rows, teams, report)

    if dry_run:
        logger.info("Dry run: %d record(s) would be imported", len(records))
        report.records_imported = len(records)
        return report

    report.records_imported = await ctx.disciplinary.create_batch(records)
    logger.info(
        "Imported %d disciplinary record(s), skipped %d",
        report.records_imported,
        report.records_skipped,
    )
    return report
