"""HTTP-level tests for the league API."""

import pytest

from league.models.fields import TeamType, TriggerType
from league.services.season_calendar import get_current_season
from tests.factories import event, match, red, seed_rosters, yellow

DAY = 24 * 60 * 60


def _current_season_events():
    """Three yellows for m1 and a red for m4, dated inside whatever season is current."""
    start = int(get_current_season().start_epoch) + 12 * 60 * 60
    return [
        event("e1", start, [match("g1", [yellow("m1", id=1, reason="Dissent")])]),
        event("e2", start + 7 * DAY, [match("g2", [yellow("m1", id=2), red("m4", TeamType.away, id=3)])]),
        event("e3", start + 14 * DAY, [match("g3", [yellow("m1", id=4)])]),
    ]


@pytest.mark.asyncio
async def test_health(app_client):
    response = await app_client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


@pytest.mark.asyncio
async def test_current_season_and_membership(app_client):
    current = (await app_client.get("/api/season/current")).json()
    assert current["type"] in ("Spring", "Fall")
    assert current["label"].endswith(current["type"])

    season = get_current_season()
    response = await app_client.get("/api/season/is-current", params={"date": season.start_epoch})
    body = response.json()
    assert body["is_current_season"] is True
    assert body["current_season"]["label"] == season.label

    before = await app_client.get("/api/season/is-current", params={"date": season.start_epoch - 1})
    assert before.json()["is_current_season"] is False


@pytest.mark.asyncio
@pytest.mark.parametrize("bad", ["1e20", "-1e20", "nan", "inf"])
async def test_unusable_membership_dates_are_rejected(app_client, bad):
    response = await app_client.get("/api/season/is-current", params={"date": bad})
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_cards_and_stats(app_client, ctx, db_session):
    await seed_rosters(db_session)
    await ctx.events.replace_events(_current_season_events())

    cards = (await app_client.get("/api/season/cards")).json()
    assert [c["card_ref"] for c in cards] == ["g1:1", "g2:2", "g2:3", "g3:4"]
    assert cards[0]["member_name"] == "Alex Reyes"

    stats = (await app_client.get("/api/season/stats")).json()
    assert stats["total_cards"] == 4
    assert stats["red_cards"] == 1
    assert stats["by_team"][0]["key"] == "lions|Over 30"

    assert (await app_client.get("/api/members/m1/cards")).json() == {"yellow": 3, "red": 0}
    assert (await app_client.get("/api/teams/tigers/cards")).json() == {"yellow": 0, "red": 1}
    assert (await app_client.get("/api/teams/nope/cards")).status_code == 404


@pytest.mark.asyncio
async def test_suspension_endpoints(app_client, ctx, db_session):
    await seed_rosters(db_session)
    await ctx.events.replace_events(_current_season_events())

    pending = (await app_client.get("/api/suspensions/pending")).json()
    assert {p["trigger"]["trigger_type"] for p in pending} == {"red", "yellow_accumulation"}
    assert all(p["status"] == "pending" for p in pending)
    yellow_trigger = next(p["trigger"] for p in pending if p["trigger"]["member_id"] == "m1")

    bad = await app_client.post(
        "/api/suspensions", json={"member_id": "m1", "trigger": yellow_trigger, "events_count": 0}
    )
    assert bad.status_code == 422

    missing = await app_client.post("/api/suspensions", json={"member_id": "m1", "events_count": 2})
    assert missing.status_code == 422

    created = await app_client.post(
        "/api/suspensions", json={"member_id": "m1", "trigger": yellow_trigger, "events_count": 2}
    )
    assert created.status_code == 201
    suspension = created.json()
    assert suspension["events_remaining"] == 2

    duplicate = await app_client.post(
        "/api/suspensions", json={"member_id": "m1", "trigger": yellow_trigger, "events_count": 2}
    )
    assert duplicate.status_code == 409

    status = (await app_client.get("/api/members/m1/suspension-status")).json()
    assert status["is_suspended"] is True
    assert status["total_events_remaining"] == 2

    after_event = (await app_client.post("/api/members/m1/suspension-events")).json()
    assert after_event[0]["events_remaining"] == 1

    served = await app_client.post(f"/api/suspensions/{suspension['id']}/served")
    assert served.status_code == 200
    assert served.json()["status"] == "served"

    not_found = await app_client.post("/api/suspensions/9999/served")
    assert not_found.status_code == 404


@pytest.mark.asyncio
async def test_check_in_endpoints(app_client, ctx, db_session):
    await seed_rosters(db_session)
    await ctx.events.replace_events(_current_season_events())
    await app_client.post(
        "/api/suspensions",
        json={
            "member_id": "m4",
            "trigger": next(
                p["trigger"]
                for p in (await app_client.get("/api/suspensions/pending")).json()
                if p["trigger"]["trigger_type"] == "red"
            ),
            "events_count": 1,
        },
    )

    statuses = (await app_client.get("/api/matches/g1/suspensions")).json()
    assert statuses["m4"]["is_suspended"] is True
    assert statuses["m1"]["is_suspended"] is False

    blocked = (
        await app_client.post("/api/matches/g1/check-in", json={"member_id": "m4", "team_type": "away"})
    ).json()
    assert blocked["present"] is False
    assert blocked["state"] == "rejected"
    assert blocked["trigger_types"] == ["red"]
    # The prefetched status rejects before any attendee row is written
    assert await ctx.events.list_attendee_ids("g1") == []

    ok = (
        await app_client.post("/api/matches/g1/check-in", json={"member_id": "m2", "team_type": "home"})
    ).json()
    assert ok["state"] == "confirmed"

    removed = await app_client.delete("/api/matches/g1/check-in/m2")
    assert removed.json() == {"removed": True}

    unknown = await app_client.post("/api/matches/nope/check-in", json={"member_id": "m2", "team_type": "home"})
    assert unknown.status_code == 404


@pytest.mark.asyncio
async def test_season_close_endpoints(app_client, ctx, db_session):
    await seed_rosters(db_session)
    await ctx.events.replace_events(_current_season_events())
    await ctx.suspensions.create(
        member_id="m4", trigger_type=TriggerType.red, source_ref="red:g2:3", suspension_events=1
    )

    preview = (await app_client.get("/api/season/close/preview")).json()
    assert preview["card_count"] == 4
    assert preview["can_close"] is False

    blocked = await app_client.post("/api/season/close")
    assert blocked.status_code == 409

    [active] = await ctx.suspensions.list_active()
    await app_client.post(f"/api/suspensions/{active.id}/served")

    closed = await app_client.post("/api/season/close")
    assert closed.status_code == 200
    body = closed.json()
    assert body["records_created"] == 4
    assert body["run"]["status"] == "completed"

    records = (await app_client.get("/api/disciplinary-records", params={"member_id": "m1"})).json()
    assert len(records) == 3
    assert records[0]["kind"] == "disciplinary_record"
    assert all(r["suspension_served_date"] for r in records)

    summary = (await app_client.get("/api/members/m1/disciplinary-summary")).json()
    assert (summary["yellow"], summary["red"]) == (3, 0)

    run = (await app_client.get(f"/api/season/close/runs/{body['run']['id']}")).json()
    assert run["status"] == "completed"
    assert run["live_cleared_at"] is not None
    assert (await app_client.get("/api/season/close/runs/9999")).status_code == 404

    [archive] = (await app_client.get("/api/season/archives")).json()
    assert archive["event_count"] == 3
    assert archive["season_label"] == get_current_season().label

    assert (await app_client.get("/api/season/cards")).json() == []


@pytest.mark.asyncio
async def test_disciplinary_records_require_a_filter(app_client):
    response = await app_client.get("/api/disciplinary-records")
    assert response.status_code == 400
