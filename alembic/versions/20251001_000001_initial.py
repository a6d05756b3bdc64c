"""Initial schema: rosters, live events, discipline and season archives.

Revision ID: 20251001_000001
Revises:
Create Date: 2025-10-01 00:00:01
"""

from alembic import op  # type: ignore[attr-defined]
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision = "20251001_000001"
down_revision = None
branch_labels = None
depends_on = None

MATCH_STATUS = ("scheduled", "in_progress", "completed", "cancelled")
TEAM_TYPE = ("home", "away")
CARD_TYPE = ("yellow", "red")
TRIGGER_TYPE = ("red", "yellow_accumulation")
SUSPENSION_STATE = ("active", "served")
CLOSE_RUN_STATUS = ("running", "failed", "completed")
CLOSE_STEP = ("collect", "transform", "persist_records", "archive", "clear_live", "complete")


def _enum(values, name):
    # Postgres enum types are created once up front; tables only reference them.
    return sa.Enum(*values, name=name).with_variant(
        postgresql.ENUM(*values, name=name, create_type=False), "postgresql"
    )


def upgrade() -> None:
    bind = op.get_bind()
    is_postgres = bind.dialect.name == "postgresql"
    for values, name in (
        (MATCH_STATUS, "match_status_enum"),
        (TEAM_TYPE, "team_type_enum"),
        (CARD_TYPE, "card_type_enum"),
        (TRIGGER_TYPE, "trigger_type_enum"),
        (SUSPENSION_STATE, "suspension_state_enum"),
        (CLOSE_RUN_STATUS, "close_run_status_enum"),
        (CLOSE_STEP, "close_step_enum"),
    ):
        if is_postgres:
            postgresql.ENUM(*values, name=name).create(bind, checkfirst=True)

    json_type = sa.JSON().with_variant(postgresql.JSONB(), "postgresql")

    op.create_table(
        "teams",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("category", sa.String(), nullable=True),
        sa.Column("color", sa.String(), nullable=True),
        sa.Column("captain_id", sa.String(), nullable=True),
    )
    op.create_table(
        "team_members",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("team_id", sa.String(), sa.ForeignKey("teams.id"), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("jersey_number", sa.Integer(), nullable=True),
        sa.Column("active", sa.Boolean(), nullable=False, server_default=sa.true()),
    )
    op.create_index("ix_team_members_team_id", "team_members", ["team_id"])
    op.create_table(
        "referees",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("level", sa.String(), nullable=True),
    )

    op.create_table(
        "events",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("date", sa.BigInteger(), nullable=True),
        sa.Column("description", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_events_date", "events", ["date"])
    op.create_table(
        "matches",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("event_id", sa.String(), sa.ForeignKey("events.id"), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("home_team_id", sa.String(), nullable=False),
        sa.Column("away_team_id", sa.String(), nullable=False),
        sa.Column("field", sa.String(), nullable=True),
        sa.Column("match_time", sa.BigInteger(), nullable=True),
        sa.Column("main_referee_id", sa.String(), nullable=True),
        sa.Column("assistant_referee_id", sa.String(), nullable=True),
        sa.Column("notes", sa.String(), nullable=True),
        sa.Column("home_score", sa.Integer(), nullable=True),
        sa.Column("away_score", sa.Integer(), nullable=True),
        sa.Column("status", _enum(MATCH_STATUS, "match_status_enum"), nullable=False),
    )
    op.create_index("ix_matches_event_id", "matches", ["event_id"])
    op.create_table(
        "match_cards",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("match_id", sa.String(), sa.ForeignKey("matches.id"), nullable=False),
        sa.Column("member_id", sa.String(), nullable=False),
        sa.Column("member_name", sa.String(), nullable=True),
        sa.Column("team_type", _enum(TEAM_TYPE, "team_type_enum"), nullable=False),
        sa.Column("card_type", _enum(CARD_TYPE, "card_type_enum"), nullable=False),
        sa.Column("minute", sa.Integer(), nullable=True),
        sa.Column("reason", sa.String(), nullable=True),
        sa.Column("notes", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_match_cards_match_id", "match_cards", ["match_id"])
    op.create_index("ix_match_cards_member_id", "match_cards", ["member_id"])
    op.create_table(
        "match_attendees",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("match_id", sa.String(), sa.ForeignKey("matches.id"), nullable=False),
        sa.Column("member_id", sa.String(), nullable=False),
        sa.Column("team_type", _enum(TEAM_TYPE, "team_type_enum"), nullable=False),
        sa.Column("checked_in_at", sa.DateTime(), nullable=False),
        sa.UniqueConstraint("match_id", "member_id", name="uq_match_attendees_member"),
    )
    op.create_index("ix_match_attendees_match_id", "match_attendees", ["match_id"])

    op.create_table(
        "disciplinary_records",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("member_id", sa.String(), nullable=False),
        sa.Column("member_name", sa.String(), nullable=True),
        sa.Column("team_id", sa.String(), nullable=True),
        sa.Column("team_name", sa.String(), nullable=True),
        sa.Column("card_type", _enum(CARD_TYPE, "card_type_enum"), nullable=False),
        sa.Column("reason", sa.String(), nullable=True),
        sa.Column("notes", sa.String(), nullable=True),
        sa.Column("incident_date", sa.Date(), nullable=True),
        sa.Column("event_description", sa.String(), nullable=True),
        sa.Column("suspension_events", sa.Integer(), nullable=True),
        sa.Column("suspension_served", sa.Boolean(), nullable=False),
        sa.Column("suspension_served_date", sa.Date(), nullable=True),
        sa.Column("source_event_id", sa.String(), nullable=True),
        sa.Column("source_match_id", sa.String(), nullable=True),
        sa.Column("season_label", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_disciplinary_records_member_id", "disciplinary_records", ["member_id"])
    op.create_index("ix_disciplinary_records_team_id", "disciplinary_records", ["team_id"])
    op.create_index("ix_disciplinary_records_season_label", "disciplinary_records", ["season_label"])
    op.create_index(
        "ix_disciplinary_records_member_date",
        "disciplinary_records",
        ["member_id", "incident_date"],
    )

    op.create_table(
        "suspensions",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("member_id", sa.String(), nullable=False),
        sa.Column("trigger_type", _enum(TRIGGER_TYPE, "trigger_type_enum"), nullable=False),
        sa.Column("source_ref", sa.String(), nullable=False),
        sa.Column("suspension_events", sa.Integer(), nullable=False),
        sa.Column("events_remaining", sa.Integer(), nullable=False),
        sa.Column("status", _enum(SUSPENSION_STATE, "suspension_state_enum"), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("served_at", sa.DateTime(), nullable=True),
        sa.CheckConstraint("events_remaining >= 0", name="ck_suspensions_remaining_non_negative"),
    )
    op.create_index("ix_suspensions_member_id", "suspensions", ["member_id"])
    op.create_index("ix_suspensions_status", "suspensions", ["status"])
    op.create_index(
        "uq_suspensions_active_source",
        "suspensions",
        ["member_id", "source_ref"],
        unique=True,
        postgresql_where=sa.text("status = 'active'"),
        sqlite_where=sa.text("status = 'active'"),
    )

    op.create_table(
        "season_archives",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("season_label", sa.String(), nullable=False),
        sa.Column("season_type", sa.String(), nullable=False),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("snapshot", json_type, nullable=False),
        sa.Column("archived_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_season_archives_season_label", "season_archives", ["season_label"])
    op.create_table(
        "season_close_runs",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("season_label", sa.String(), nullable=False),
        sa.Column("status", _enum(CLOSE_RUN_STATUS, "close_run_status_enum"), nullable=False),
        sa.Column("current_step", _enum(CLOSE_STEP, "close_step_enum"), nullable=False),
        sa.Column("cards_collected", sa.Integer(), nullable=False),
        sa.Column("records_persisted", sa.Integer(), nullable=False),
        sa.Column("records_persisted_at", sa.DateTime(), nullable=True),
        sa.Column("archive_id", sa.Integer(), sa.ForeignKey("season_archives.id"), nullable=True),
        sa.Column("live_cleared_at", sa.DateTime(), nullable=True),
        sa.Column("error", sa.Text(), nullable=True),
        sa.Column("started_at", sa.DateTime(), nullable=False),
        sa.Column("finished_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_season_close_runs_season_label", "season_close_runs", ["season_label"])


def downgrade() -> None:
    op.drop_table("season_close_runs")
    op.drop_table("season_archives")
    op.drop_table("suspensions")
    op.drop_table("disciplinary_records")
    op.drop_table("match_attendees")
    op.drop_table("match_cards")
    op.drop_table("matches")
    op.drop_table("events")
    op.drop_table("referees")
    op.drop_table("team_members")
    op.drop_table("teams")
    bind = op.get_bind()
    if bind.dialect.name != "postgresql":
        return
    for name in (
        "close_step_enum",
        "close_run_status_enum",
        "suspension_state_enum",
        "trigger_type_enum",
        "card_type_enum",
        "team_type_enum",
        "match_status_enum",
    ):
        postgresql.ENUM(name=name).drop(bind, checkfirst=True)
