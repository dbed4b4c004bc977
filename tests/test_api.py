from datetime import timedelta

from production_tracker.core.dates import to_storage_string
from production_tracker.core.timezone import today_local
from production_tracker.db.session import SessionLocal
from production_tracker.services import storage

from conftest import ADMIN_PASSWORD, SUPERVISOR_PASSWORD, login, make_entry


def _days_ago(n):
    return to_storage_string(today_local() - timedelta(days=n))


def _add(client, **fields):
    body = {"date": _days_ago(1), "crew": "AJS1", "type": "ROCK", "feet": 120}
    body.update(fields)
    return client.post("/api/entries", json=body)


def test_health(client):
    assert client.get("/health").json()["status"] == "healthy"


def test_requires_login(client):
    assert client.get("/api/entries").status_code == 401
    assert client.get("/api/me").status_code == 401


def test_bad_login(client):
    r = client.post("/api/login", json={"username": "admin", "password": "nope"})
    assert r.status_code == 401


def test_startup_seeds_admin_and_reference_data(admin_client):
    me = admin_client.get("/api/me").json()
    assert me == {"role": "admin", "username": "admin"}
    assert [c["name"] for c in admin_client.get("/api/crews").json()] == ["AJS1", "AJS2"]
    assert [t["name"] for t in admin_client.get("/api/types").json()] == ["NO ROCK", "ROCK"]


def test_supervisor_adds_and_edits_own_entry(supervisors):
    client = supervisors
    login(client, "sup1", SUPERVISOR_PASSWORD)
    assert _add(client, date=_days_ago(2).replace("/", "-")).status_code == 201

    rows = client.get("/api/entries").json()
    assert len(rows) == 1
    entry = rows[0]
    assert entry["username"] == "sup1"
    assert entry["date"] == _days_ago(2)
    assert entry["editable"] is True

    r = client.patch(f"/api/entries/{entry['id']}",
                     json={"date": _days_ago(3), "crew": "AJS2", "type": "NO ROCK", "feet": 90})
    assert r.status_code == 200, r.text
    assert r.json()["crew"] == "AJS2"
    assert r.json()["feet"] == 90


def test_other_supervisor_cannot_touch_entry(supervisors):
    client = supervisors
    login(client, "sup1", SUPERVISOR_PASSWORD)
    _add(client)
    entry_id = client.get("/api/entries").json()[0]["id"]
    client.post("/api/logout")

    login(client, "sup2", SUPERVISOR_PASSWORD)
    rows = client.get("/api/entries").json()
    assert rows[0]["editable"] is False
    assert client.get("/api/audit").json() == []
    assert client.delete(f"/api/entries/{entry_id}").status_code == 403
    r = client.patch(f"/api/entries/{entry_id}",
                     json={"date": _days_ago(1), "crew": "AJS1", "type": "ROCK", "feet": 1})
    assert r.status_code == 403


def test_entries_older_than_window_are_locked(supervisors):
    with SessionLocal() as db:
        assert storage.insert_entry(db, make_entry(date=_days_ago(45), username="sup1", crew="AJS1"))
        assert storage.insert_entry(db, make_entry(date=_days_ago(30), username="sup1", crew="AJS2"))
    client = supervisors
    login(client, "sup1", SUPERVISOR_PASSWORD)
    rows = {r["crew"]: r for r in client.get("/api/audit").json()}
    assert rows["AJS1"]["editable"] is False
    assert rows["AJS2"]["editable"] is True
    assert client.delete(f"/api/entries/{rows['AJS1']['id']}").status_code == 403
    assert client.delete(f"/api/entries/{rows['AJS2']['id']}").status_code == 200


def test_admin_can_delete_any_entry(supervisors):
    with SessionLocal() as db:
        storage.insert_entry(db, make_entry(date="2019/01/01", username="sup1"))
    client = supervisors
    login(client, "admin", ADMIN_PASSWORD)
    rows = client.get("/api/audit").json()
    assert rows[0]["editable"] is True
    assert client.delete(f"/api/entries/{rows[0]['id']}").status_code == 200
    assert client.get("/api/entries").json() == []
    assert client.delete(f"/api/entries/{rows[0]['id']}").status_code == 404


def test_entry_validation(admin_client):
    assert _add(admin_client, feet=0).status_code == 422
    assert _add(admin_client, feet=-5).status_code == 422
    assert _add(admin_client, date="06/01/2024").status_code == 422
    assert _add(admin_client, crew="  ").status_code == 422


def test_entry_listing_filters(admin_client):
    _add(admin_client, crew="AJS1", type="ROCK", date=_days_ago(1))
    _add(admin_client, crew="AJS2", type="ROCK", date=_days_ago(5))
    _add(admin_client, crew="AJS1", type="NO ROCK", date=_days_ago(10))
    assert len(admin_client.get("/api/entries", params={"crew": "AJS1"}).json()) == 2
    assert len(admin_client.get("/api/entries", params={"q": "no rock"}).json()) == 1
    assert len(admin_client.get("/api/entries", params={"since": _days_ago(5)}).json()) == 2
    assert admin_client.get("/api/entries", params={"since": "yesterday"}).status_code == 400


def test_dashboard_and_exports(admin_client):
    _add(admin_client, feet=99, date=_days_ago(0))
    _add(admin_client, feet=150, crew="AJS2", date=_days_ago(0))
    _add(admin_client, feet=1000, date=_days_ago(200))

    data = admin_client.get("/api/dashboard", params={"timeframe": "day"}).json()
    assert data["summary"]["total_feet"] == 249
    assert data["by_crew"] == {"AJS2": 150, "AJS1": 99}
    assert data["distribution"] == {"0-100": 1, "100-200": 1}
    assert data["by_user"] == {"admin": 249}

    csv = admin_client.get("/api/export.csv", params={"timeframe": "day"})
    assert csv.status_code == 200
    assert csv.headers["content-type"].startswith("text/csv")
    lines = csv.text.split("\n")
    assert lines[0] == "Date,User,Crew,Type,Feet"
    assert len(lines) == 3

    report = admin_client.get("/report", params={"timeframe": "day"})
    assert report.status_code == 200
    assert "Production Data Report" in report.text
    assert "249 ft" in report.text

    bad = admin_client.get("/api/dashboard", params={"timeframe": "custom"})
    assert bad.status_code == 400


def test_dashboard_hides_user_ranking_from_supervisors(supervisors):
    client = supervisors
    login(client, "sup1", SUPERVISOR_PASSWORD)
    _add(client, date=_days_ago(0))
    data = client.get("/api/dashboard", params={"timeframe": "day"}).json()
    assert "by_user" not in data
    assert data["summary"]["total_entries"] == 1


def test_reference_data_management(admin_client):
    r = admin_client.post("/api/crews", json={"name": "AJS3", "color": "#123456"})
    assert r.status_code == 201
    assert admin_client.post("/api/crews", json={"name": "AJS3"}).status_code == 409
    assert admin_client.patch("/api/crews/AJS3", json={"color": "#ABCDEF"}).status_code == 200
    assert admin_client.patch("/api/crews/AJS3", json={"color": "blue"}).status_code == 422
    assert admin_client.patch("/api/crews/NOPE", json={"color": "#ABCDEF"}).status_code == 404
    colors = {c["name"]: c["color"] for c in admin_client.get("/api/crews").json()}
    assert colors["AJS3"] == "#ABCDEF"
    assert admin_client.delete("/api/crews/AJS3").status_code == 200

    assert admin_client.post("/api/types", json={"name": "CLAY", "color": "#00FF00"}).status_code == 201
    assert admin_client.delete("/api/types/CLAY").status_code == 200
    assert admin_client.delete("/api/types/CLAY").status_code == 404


def test_reference_mutations_are_admin_only(supervisors):
    client = supervisors
    login(client, "sup1", SUPERVISOR_PASSWORD)
    assert client.get("/api/crews").status_code == 200
    assert client.post("/api/crews", json={"name": "X1"}).status_code == 403
    assert client.delete("/api/types/ROCK").status_code == 403
    assert client.get("/api/users").status_code == 403


def test_user_management(admin_client):
    weak = admin_client.post("/api/users", json={"username": "weak", "password": "password"})
    assert weak.status_code == 400
    ok = admin_client.post("/api/users", json={"username": "pam", "password": "Pam@12345", "crew": "AJS1"})
    assert ok.status_code == 201
    dup = admin_client.post("/api/users", json={"username": "pam", "password": "Pam@12345"})
    assert dup.status_code == 409

    listed = {u["username"]: u for u in admin_client.get("/api/users").json()}
    assert listed["pam"]["role"] == "supervisor"
    assert listed["pam"]["crew"] == "AJS1"
    assert "password" not in listed["pam"]

    assert admin_client.patch("/api/users/pam/crew", json={"crew": "AJS2"}).status_code == 200
    r = admin_client.patch("/api/users/pam/password",
                           json={"new_password": "New@12345", "confirm_password": "New@1234"})
    assert r.status_code == 400
    r = admin_client.patch("/api/users/pam/password",
                           json={"new_password": "New@12345", "confirm_password": "New@12345"})
    assert r.status_code == 200

    assert admin_client.delete("/api/users/admin").status_code == 400
    assert admin_client.delete("/api/users/ghost").status_code == 404

    admin_client.post("/api/logout")
    login(admin_client, "pam", "New@12345")
    assert admin_client.get("/api/me").json() == {"role": "supervisor", "username": "pam", "crew": "AJS2"}


def test_register(client):
    r = client.post("/api/register",
                    json={"username": "newbie", "password": "Newb@1234", "confirm_password": "Newb@123"})
    assert r.status_code == 400
    r = client.post("/api/register",
                    json={"username": "newbie", "password": "Newb@1234", "confirm_password": "Newb@1234"})
    assert r.status_code == 201
    assert r.json()["role"] == "supervisor"
    assert client.get("/api/me").json()["username"] == "newbie"
    client.cookies.clear()
    r = client.post("/api/register",
                    json={"username": "newbie", "password": "Newb@1234", "confirm_password": "Newb@1234"})
    assert r.status_code == 409


def test_storage_reports_failure_for_missing_rows(db):
    assert storage.update_entry(db, 12345, {"feet": 5}) is False
    assert storage.delete_entry(db, 12345) is False
    assert storage.remove_crew(db, "ghost") is False
    assert storage.list_entries(db) == []


def test_entries_must_use_configured_crews_and_types(supervisors):
    client = supervisors
    login(client, "sup1", SUPERVISOR_PASSWORD)
    assert _add(client, crew="NOPE").status_code == 400
    assert _add(client, type="MADEUP").status_code == 400
    assert client.get("/api/entries").json() == []

    assert _add(client).status_code == 201
    entry_id = client.get("/api/entries").json()[0]["id"]
    r = client.patch(f"/api/entries/{entry_id}",
                     json={"date": _days_ago(1), "crew": "NOPE", "type": "ROCK", "feet": 5})
    assert r.status_code == 400
    r = client.patch(f"/api/entries/{entry_id}",
                     json={"date": _days_ago(1), "crew": "AJS1", "type": "MADEUP", "feet": 5})
    assert r.status_code == 400
    assert client.get(f"/api/entries/{entry_id}").json()["feet"] == 120


def test_blank_usernames_are_rejected(admin_client):
    r = admin_client.post("/api/users", json={"username": "   ", "password": "Abc@12345"})
    assert r.status_code == 422
    r = admin_client.post("/api/users", json={"username": "  pam  ", "password": "Abc@12345"})
    assert r.status_code == 201
    assert "pam" in {u["username"] for u in admin_client.get("/api/users").json()}

    admin_client.cookies.clear()
    r = admin_client.post("/api/register",
                          json={"username": "   ", "password": "Abc@12345", "confirm_password": "Abc@12345"})
    assert r.status_code == 422


def test_dashboard_counts_active_crews(admin_client):
    _add(admin_client, crew="AJS2", date=_days_ago(0))
    data = admin_client.get("/api/dashboard", params={"timeframe": "day"}).json()
    assert data["active_crews"] == {"active": 1, "total": 2}
