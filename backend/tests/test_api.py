"""HTTP-level tests through FastAPI's TestClient.

Run with: pytest backend/tests/test_api.py -v
"""

import io

from openpyxl import load_workbook


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}


def test_login_and_me(client, seeded, login):
    headers = login("dealer")
    r = client.get("/api/auth/me", headers=headers)
    assert r.status_code == 200
    assert r.json()["role"] == "dealer"


def test_login_rejects_bad_password(client, seeded):
    r = client.post("/api/auth/login", json={"username": "dealer", "password": "nope"})
    assert r.status_code == 401


def test_seats_require_auth(client, seeded):
    assert client.get(f"/api/tables/{seeded.table_id}/seats").status_code == 401


def test_list_seats(client, seeded, login):
    r = client.get(f"/api/tables/{seeded.table_id}/seats", headers=login("dealer"))
    assert r.status_code == 200
    body = r.json()
    assert [s["position"] for s in body] == list(range(1, 10))
    assert {s["status"] for s in body} == {"Open"}


def test_seat_lifecycle_over_http(client, seeded, login, clock):
    headers = login("dealer")
    seat_id = seeded.seats[2].id

    r = client.patch(f"/api/seats/{seat_id}", json={"status": "Playing", "new_player_name": "Ana"}, headers=headers)
    assert r.status_code == 200, r.text
    seat = r.json()
    assert seat["status"] == "Playing"
    assert seat["player_name"] == "Ana"
    player_id = seat["player_id"]

    clock.advance(10)
    r = client.get(f"/api/seats/{seat_id}", headers=headers)
    assert r.json()["live_elapsed"] == 10

    r = client.patch(f"/api/seats/{seat_id}", json={"status": "Open"}, headers=headers)
    assert r.status_code == 200
    assert r.json()["player_id"] is None

    r = client.get(f"/api/players/{player_id}/time", headers=headers)
    assert r.status_code == 200
    body = r.json()
    assert body["elapsed_seconds"] == 10
    assert body["elapsed"] == "00:00:10"
    assert body["total_play_time"] == 10
    assert len(body["records"]) == 1


def test_player_required_error_body(client, seeded, login):
    r = client.patch(f"/api/seats/{seeded.seats[0].id}", json={"status": "Playing"}, headers=login("dealer"))
    assert r.status_code == 400
    assert r.json()["kind"] == "PlayerRequired"
    assert r.json()["error"]


def test_unknown_status_is_invalid_transition(client, seeded, login):
    r = client.patch(f"/api/seats/{seeded.seats[0].id}", json={"status": "Dancing"}, headers=login("dealer"))
    assert r.status_code == 400
    assert r.json()["kind"] == "InvalidTransition"


def test_closed_to_playing_over_http(client, seeded, login):
    headers = login("dealer")
    seat_id = seeded.seats[0].id
    assert client.patch(f"/api/seats/{seat_id}", json={"status": "Closed"}, headers=headers).status_code == 200
    r = client.patch(f"/api/seats/{seat_id}", json={"status": "Playing", "new_player_name": "Ana"}, headers=headers)
    assert r.status_code == 400
    assert r.json()["kind"] == "InvalidTransition"


def test_unknown_seat(client, seeded, login):
    r = client.patch("/api/seats/4040", json={"status": "Open"}, headers=login("dealer"))
    assert r.status_code == 404
    assert r.json()["kind"] == "NotFound"


def test_other_dealer_cannot_touch_the_table(client, seeded, login):
    headers = login("other-dealer")
    assert client.get(f"/api/tables/{seeded.table_id}/seats", headers=headers).status_code == 403
    r = client.patch(f"/api/seats/{seeded.seats[0].id}", json={"status": "Closed"}, headers=headers)
    assert r.status_code == 403


def test_players_list_and_create(client, seeded, login):
    headers = login("owner")
    r = client.post("/api/players", json={"name": " Zed ", "club_id": seeded.club_id, "notes": "regular"}, headers=headers)
    assert r.status_code == 200, r.text
    assert r.json()["name"] == "Zed"

    r = client.get("/api/players", params={"club_id": seeded.club_id}, headers=headers)
    assert [p["name"] for p in r.json()] == ["Zed"]


def test_sessions_over_http(client, seeded, login, clock):
    headers = login("dealer")
    r = client.post("/api/sessions", json={"table_id": seeded.table_id}, headers=headers)
    assert r.status_code == 200, r.text
    session = r.json()
    assert session["dealer_id"] == seeded.dealer_id

    r = client.get("/api/sessions/open", params={"table_id": seeded.table_id}, headers=headers)
    assert r.json()["id"] == session["id"]

    clock.advance(120)
    r = client.post(f"/api/sessions/{session['id']}/end", headers=headers)
    assert r.status_code == 200
    assert r.json()["total_time"] == 120

    r = client.get("/api/sessions/open", params={"table_id": seeded.table_id}, headers=headers)
    assert r.json() is None


def test_admin_creates_table_with_seats(client, seeded, login):
    headers = login("owner")
    r = client.post(
        "/api/admin/tables",
        json={"name": "Table 2", "club_id": seeded.club_id, "max_seats": 6, "seats_closed": True},
        headers=headers,
    )
    assert r.status_code == 200, r.text
    table_id = r.json()["id"]

    r = client.get(f"/api/tables/{table_id}/seats", headers=headers)
    assert [s["status"] for s in r.json()] == ["Closed"] * 6


def test_dealer_cannot_create_tables(client, seeded, login):
    r = client.post("/api/admin/tables", json={"name": "T", "club_id": seeded.club_id}, headers=login("dealer"))
    assert r.status_code == 403


def test_play_time_report(client, seeded, login, clock):
    headers = login("owner")
    client.patch(
        f"/api/seats/{seeded.seats[0].id}",
        json={"status": "Playing", "new_player_name": "Ana"},
        headers=login("dealer"),
    )
    clock.advance(3661)

    r = client.get("/api/admin/reports/play-time", params={"club_id": seeded.club_id}, headers=headers)
    assert r.status_code == 200
    assert r.headers["content-type"].startswith(
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
    )

    wb = load_workbook(io.BytesIO(r.content))
    assert wb.sheetnames == ["Players", "Time records"]
    assert wb["Players"]["A2"].value == "Ana"
    assert wb["Players"]["B2"].value == "01:01:01"
    assert wb["Time records"]["E2"].value == "playing"
