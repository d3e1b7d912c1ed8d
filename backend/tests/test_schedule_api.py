from sqlalchemy import select

from crux.db import SessionLocal
from crux.models import ScheduledSession, TrainingItem

MARCH = {"range_start": "2026-03-01", "range_end": "2026-03-31"}


def weekly_rule(client, headers, item_id, **recurrence):
    body = {
        "item_id": item_id,
        "start_date": "2026-03-01",
        "recurrence": {"frequency": "weekly", "by_weekdays": [1, 3], "until": "2026-03-28", **recurrence},
        "overrides": {"reps": 3},
        "notes": "board session",
    }
    r = client.post("/schedule/rules", headers=headers, json=body)
    assert r.status_code == 201, r.text
    return r.json()


def calendar(client, headers, **params):
    r = client.get("/schedule/calendar", headers=headers, params=params or MARCH)
    assert r.status_code == 200, r.text
    return r.json()


def rows_for_rule(rule_id):
    with SessionLocal() as db:
        stmt = select(ScheduledSession).where(ScheduledSession.recurrence_rule_id == rule_id)
        return list(db.execute(stmt).scalars().all())


def test_requires_auth(client):
    assert client.get("/schedule/calendar", params=MARCH).status_code == 401
    assert client.post("/schedule/sessions", json={"item_id": 1, "scheduled_for": "2026-03-02"}).status_code == 401


def test_add_one_off_session_freezes_snapshot(client, make_user, make_item):
    headers, uid = make_user()
    item_id = make_item(uid, title="Max hangs")
    r = client.post("/schedule/sessions", headers=headers,
                    json={"item_id": item_id, "scheduled_for": "2026-03-03", "overrides": {"weight": 10}})
    assert r.status_code == 201, r.text
    session = r.json()
    assert session["snapshot"]["title"] == "Max hangs"
    assert session["snapshot"]["variables"]["reps"] == 2
    assert session["overrides"] == {"weight": 10}
    assert session["recurrence_rule_id"] is None

    with SessionLocal() as db:
        db.get(TrainingItem, item_id).title = "Renamed"
        db.commit()
    again = client.get(f"/schedule/sessions/{session['id']}", headers=headers).json()
    assert again["snapshot"]["title"] == "Max hangs"


def test_cannot_schedule_someone_elses_unsaved_item(client, make_user, make_item, save_item):
    _, owner = make_user("owner")
    headers, uid = make_user("other")
    item_id = make_item(owner)
    r = client.post("/schedule/sessions", headers=headers, json={"item_id": item_id, "scheduled_for": "2026-03-02"})
    assert r.status_code == 403
    assert r.json()["code"] == "SCHEDULING_POLICY_VIOLATION"

    save_item(uid, item_id)
    r = client.post("/schedule/sessions", headers=headers, json={"item_id": item_id, "scheduled_for": "2026-03-02"})
    assert r.status_code == 201


def test_unknown_item_404(client, make_user):
    headers, _ = make_user()
    r = client.post("/schedule/sessions", headers=headers, json={"item_id": 999999, "scheduled_for": "2026-03-02"})
    assert r.status_code == 404
    assert r.json()["code"] == "NOT_FOUND"


def test_impromptu_session_is_today(client, make_user, make_item):
    headers, uid = make_user()
    item_id = make_item(uid)
    r = client.post("/schedule/sessions/impromptu", headers=headers, json={"item_id": item_id})
    assert r.status_code == 201
    body = r.json()
    assert body["is_impromptu"] is True
    assert body["scheduled_for"] == "2026-03-01"


def test_weekly_rule_is_virtual_until_touched(client, make_user, make_item):
    headers, uid = make_user()
    rule = weekly_rule(client, headers, make_item(uid))
    assert rule["recurrence"]["by_weekdays"] == [1, 3]
    assert rule["active"] is True

    cal = calendar(client, headers)
    assert cal["window_start"] == "2026-03-01"
    assert cal["window_end"] == "2026-03-31"
    assert cal["today"] == "2026-03-01"
    days = [e["scheduled_for"] for e in cal["sessions"]]
    assert days == ["2026-03-02", "2026-03-04", "2026-03-09", "2026-03-11",
                    "2026-03-16", "2026-03-18", "2026-03-23", "2026-03-25"]
    assert all(e["kind"] == "virtual" for e in cal["sessions"])
    first = cal["sessions"][0]
    assert first["key"] == f"virtual:{rule['id']}:2026-03-02"
    assert first["overrides"] == {"reps": 3}
    assert first["notes"] == "board session"
    assert rows_for_rule(rule["id"]) == []


def test_calendar_widens_to_whole_months(client, make_user):
    headers, _ = make_user()
    cal = calendar(client, headers, range_start="2026-02-10", range_end="2026-02-12")
    assert (cal["window_start"], cal["window_end"]) == ("2026-02-01", "2026-02-28")


def test_calendar_rejects_reversed_range(client, make_user):
    headers, _ = make_user()
    r = client.get("/schedule/calendar", headers=headers,
                   params={"range_start": "2026-03-10", "range_end": "2026-03-01"})
    assert r.status_code == 422


def test_materialize_is_idempotent(client, make_user, make_item):
    headers, uid = make_user()
    rule = weekly_rule(client, headers, make_item(uid))
    url = f"/schedule/rules/{rule['id']}/occurrences/2026-03-04/materialize"
    first = client.post(url, headers=headers)
    second = client.post(url, headers=headers)
    assert first.status_code == second.status_code == 200
    assert first.json()["id"] == second.json()["id"]
    assert first.json()["overrides"] == {"reps": 3}
    assert len(rows_for_rule(rule["id"])) == 1

    entries = calendar(client, headers)["sessions"]
    assert len(entries) == 8
    on_day = [e for e in entries if e["scheduled_for"] == "2026-03-04"]
    assert len(on_day) == 1 and on_day[0]["kind"] == "concrete"


def test_materialize_off_pattern_date_422(client, make_user, make_item):
    headers, uid = make_user()
    rule = weekly_rule(client, headers, make_item(uid))
    r = client.post(f"/schedule/rules/{rule['id']}/occurrences/2026-03-05/materialize", headers=headers)
    assert r.status_code == 422
    assert r.json()["code"] == "INVALID_RECURRENCE"


def test_cancel_occurrence_hides_it_for_good(client, make_user, make_item):
    headers, uid = make_user()
    rule = weekly_rule(client, headers, make_item(uid))
    r = client.delete(f"/schedule/rules/{rule['id']}/occurrences/2026-03-09", headers=headers)
    assert r.status_code == 200
    assert r.json() == {"success": True}

    days = [e["scheduled_for"] for e in calendar(client, headers)["sessions"]]
    assert "2026-03-09" not in days
    assert len(days) == 7

    r = client.post(f"/schedule/rules/{rule['id']}/occurrences/2026-03-09/materialize", headers=headers)
    assert r.status_code == 409
    assert r.json()["code"] == "IMMUTABLE_STATE"


def test_cancel_past_occurrence_409(client, make_user, make_item, clock):
    headers, uid = make_user()
    rule = weekly_rule(client, headers, make_item(uid))
    clock.advance(days=10)
    r = client.delete(f"/schedule/rules/{rule['id']}/occurrences/2026-03-02", headers=headers)
    assert r.status_code == 409


def test_invalid_recurrence_rejected(client, make_user, make_item):
    headers, uid = make_user()
    item_id = make_item(uid)
    for recurrence in (
        {"frequency": "daily", "interval": 0},
        {"frequency": "weekly", "by_weekdays": [7]},
        {"frequency": "daily", "until": "2026-02-01"},
    ):
        r = client.post("/schedule/rules", headers=headers,
                        json={"item_id": item_id, "start_date": "2026-03-01", "recurrence": recurrence})
        assert r.status_code == 422, recurrence
        assert r.json()["code"] == "INVALID_RECURRENCE"


def test_move_occurrence_leaves_exception_behind(client, make_user, make_item):
    headers, uid = make_user()
    rule = weekly_rule(client, headers, make_item(uid))
    session = client.post(f"/schedule/rules/{rule['id']}/occurrences/2026-03-02/materialize", headers=headers).json()

    r = client.patch(f"/schedule/sessions/{session['id']}", headers=headers, json={"scheduled_for": "2026-03-03"})
    assert r.status_code == 200, r.text
    assert r.json()["scheduled_for"] == "2026-03-03"

    entries = calendar(client, headers)["sessions"]
    days = [e["scheduled_for"] for e in entries]
    assert "2026-03-02" not in days
    assert "2026-03-03" in days
    assert len(entries) == 8


def test_move_onto_existing_rule_date_conflicts(client, make_user, make_item):
    headers, uid = make_user()
    rule = weekly_rule(client, headers, make_item(uid))
    base = f"/schedule/rules/{rule['id']}/occurrences"
    monday = client.post(f"{base}/2026-03-02/materialize", headers=headers).json()
    client.post(f"{base}/2026-03-04/materialize", headers=headers)
    r = client.patch(f"/schedule/sessions/{monday['id']}", headers=headers, json={"scheduled_for": "2026-03-04"})
    assert r.status_code == 409
    assert r.json()["code"] == "SCHEDULE_CONFLICT"


def test_cannot_move_into_the_past(client, make_user, make_item):
    headers, uid = make_user()
    session = client.post("/schedule/sessions", headers=headers,
                          json={"item_id": make_item(uid), "scheduled_for": "2026-03-05"}).json()
    r = client.patch(f"/schedule/sessions/{session['id']}", headers=headers, json={"scheduled_for": "2026-02-27"})
    assert r.status_code == 409


def test_remove_one_off_and_occurrence(client, make_user, make_item):
    headers, uid = make_user()
    item_id = make_item(uid)
    one_off = client.post("/schedule/sessions", headers=headers,
                          json={"item_id": item_id, "scheduled_for": "2026-03-05"}).json()
    assert client.delete(f"/schedule/sessions/{one_off['id']}", headers=headers).status_code == 200
    assert client.get(f"/schedule/sessions/{one_off['id']}", headers=headers).status_code == 404

    rule = weekly_rule(client, headers, item_id)
    occ = client.post(f"/schedule/rules/{rule['id']}/occurrences/2026-03-11/materialize", headers=headers).json()
    assert client.delete(f"/schedule/sessions/{occ['id']}", headers=headers).status_code == 200
    # the row stays as the exception so the rule does not bring the date back
    assert client.get(f"/schedule/sessions/{occ['id']}", headers=headers).status_code == 404
    days = [e["scheduled_for"] for e in calendar(client, headers)["sessions"]]
    assert "2026-03-11" not in days


def test_complete_session_then_immutable(client, make_user, make_item):
    headers, uid = make_user()
    session = client.post("/schedule/sessions", headers=headers,
                          json={"item_id": make_item(uid), "scheduled_for": "2026-03-01"}).json()
    r = client.post(f"/schedule/sessions/{session['id']}/complete", headers=headers, json={"notes": "felt strong"})
    assert r.status_code == 200
    assert r.json()["completed_at"] is not None
    assert r.json()["notes"] == "felt strong"

    r = client.patch(f"/schedule/sessions/{session['id']}", headers=headers, json={"notes": "edit"})
    assert r.status_code == 409
    assert client.delete(f"/schedule/sessions/{session['id']}", headers=headers).status_code == 409


def test_update_rule_from_date_patches_future_rows(client, make_user, make_item):
    headers, uid = make_user()
    rule = weekly_rule(client, headers, make_item(uid))
    base = f"/schedule/rules/{rule['id']}/occurrences"
    early = client.post(f"{base}/2026-03-04/materialize", headers=headers).json()
    later = client.post(f"{base}/2026-03-11/materialize", headers=headers).json()

    r = client.patch(f"/schedule/rules/{rule['id']}/future", headers=headers,
                     json={"effective_from": "2026-03-09", "overrides": {"reps": 8}})
    assert r.status_code == 200, r.text
    assert r.json()["default_overrides"] == {"reps": 8}

    assert client.get(f"/schedule/sessions/{early['id']}", headers=headers).json()["overrides"] == {"reps": 3}
    assert client.get(f"/schedule/sessions/{later['id']}", headers=headers).json()["overrides"] == {"reps": 8}
    virtual = [e for e in calendar(client, headers)["sessions"] if e["kind"] == "virtual"]
    assert all(e["overrides"] == {"reps": 8} for e in virtual)


def test_remove_rule_from_start_deactivates(client, make_user, make_item):
    headers, uid = make_user()
    rule = weekly_rule(client, headers, make_item(uid))
    base = f"/schedule/rules/{rule['id']}/occurrences"
    client.post(f"{base}/2026-03-04/materialize", headers=headers)
    client.delete(f"{base}/2026-03-09", headers=headers)

    r = client.delete(f"/schedule/rules/{rule['id']}/future", headers=headers,
                      params={"effective_from": "2026-03-01"})
    assert r.status_code == 200, r.text
    assert r.json() == {"removed_count": 2, "active": False}
    assert calendar(client, headers)["sessions"] == []
    assert rows_for_rule(rule["id"]) == []


def test_remove_rule_from_future_date_truncates(client, make_user, make_item):
    headers, uid = make_user()
    rule = weekly_rule(client, headers, make_item(uid))
    r = client.delete(f"/schedule/rules/{rule['id']}/future", headers=headers,
                      params={"effective_from": "2026-03-16"})
    assert r.json() == {"removed_count": 0, "active": True}
    days = [e["scheduled_for"] for e in calendar(client, headers)["sessions"]]
    assert days == ["2026-03-02", "2026-03-04", "2026-03-09", "2026-03-11"]


def test_remove_rule_from_past_date_409(client, make_user, make_item, clock):
    headers, uid = make_user()
    rule = weekly_rule(client, headers, make_item(uid))
    clock.advance(days=5)
    r = client.delete(f"/schedule/rules/{rule['id']}/future", headers=headers,
                      params={"effective_from": "2026-03-02"})
    assert r.status_code == 409


def test_other_users_cannot_touch_schedule(client, make_user, make_item):
    headers, uid = make_user("a")
    other, _ = make_user("b")
    rule = weekly_rule(client, headers, make_item(uid))
    session = client.post(f"/schedule/rules/{rule['id']}/occurrences/2026-03-02/materialize", headers=headers).json()

    assert client.get(f"/schedule/sessions/{session['id']}", headers=other).status_code == 404
    assert client.patch(f"/schedule/sessions/{session['id']}", headers=other, json={"notes": "x"}).status_code == 403
    assert client.post(f"/schedule/rules/{rule['id']}/occurrences/2026-03-04/materialize",
                       headers=other).status_code == 403
    assert calendar(client, other)["sessions"] == []


def test_open_ended_monday_rule_over_four_weeks(client, make_user, make_item):
    headers, uid = make_user()
    r = client.post("/schedule/rules", headers=headers, json={
        "item_id": make_item(uid),
        "start_date": "2026-02-02",
        "recurrence": {"frequency": "weekly", "by_weekdays": [1, 3]},
    })
    rule = r.json()
    assert rule["recurrence"]["until"] is None

    # February 2026 is exactly four Sunday-anchored weeks
    entries = calendar(client, headers, range_start="2026-02-02", range_end="2026-02-28")["sessions"]
    assert [e["scheduled_for"] for e in entries] == [
        "2026-02-02", "2026-02-04", "2026-02-09", "2026-02-11",
        "2026-02-16", "2026-02-18", "2026-02-23", "2026-02-25",
    ]
    assert {e["kind"] for e in entries} == {"virtual"}
    assert rows_for_rule(rule["id"]) == []

    client.post(f"/schedule/rules/{rule['id']}/occurrences/2026-02-23/materialize", headers=headers)
    assert len(rows_for_rule(rule["id"])) == 1


def test_until_never_grows_back(client, make_user, make_item):
    headers, uid = make_user()
    rule = weekly_rule(client, headers, make_item(uid))
    url = f"/schedule/rules/{rule['id']}/future"
    assert client.delete(url, headers=headers, params={"effective_from": "2026-03-16"}).status_code == 200
    r = client.delete(url, headers=headers, params={"effective_from": "2026-03-23"})
    assert r.json() == {"removed_count": 0, "active": True}

    updated = client.patch(url, headers=headers, json={"effective_from": "2026-03-01"}).json()
    assert updated["recurrence"]["until"] == "2026-03-15"
    days = [e["scheduled_for"] for e in calendar(client, headers)["sessions"]]
    assert days == ["2026-03-02", "2026-03-04", "2026-03-09", "2026-03-11"]
    assert all(d <= "2026-03-15" for d in days)
