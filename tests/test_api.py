from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from barbershop.auth import hash_password
from barbershop.deps import get_shop
from barbershop.main import app

from conftest import TODAY, at, make_appointment

PASSWORD = "secret123"
SLOT = "2026-10-20T10:00:00"


@pytest.fixture
def client(shop, barbers):
    for barber_id in ("x", "boss"):
        barber = shop.catalog.get_barber(barber_id)
        barber.password_hash = hash_password(PASSWORD)
        shop.catalog.save_barber(barber)

    app.dependency_overrides[get_shop] = lambda: shop
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


def barber_headers(client, username):
    resp = client.post("/auth/login", data={"username": username, "password": PASSWORD})
    assert resp.status_code == 200, resp.text
    return {"Authorization": f"Bearer {resp.json()['access_token']}"}


def client_headers(client, phone="+351912345678", name="Ana"):
    resp = client.post("/auth/client", json={"phone": phone, "name": name})
    assert resp.status_code == 200, resp.text
    return {"Authorization": f"Bearer {resp.json()['access_token']}"}


def book(client, headers, when=SLOT, **extra):
    body = {"service_id": "haircut", "barber_id": "x", "scheduled_at": when}
    body.update(extra)
    return client.post("/appointments", json=body, headers=headers)


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_login_and_me(client):
    assert client.post("/auth/login", data={"username": "xavier", "password": "wrong-pass"}).status_code == 401

    me = client.get("/me", headers=barber_headers(client, "xavier")).json()
    assert me == {"id": "x", "role": "barber", "name": "Xavier", "is_admin": False}

    me = client.get("/me", headers=client_headers(client)).json()
    assert me["role"] == "client"
    assert me["id"] == "+351912345678"


def test_bad_token_is_rejected(client):
    resp = client.get("/me", headers={"Authorization": "Bearer nonsense"})
    assert resp.status_code == 401


def test_availability(client):
    resp = client.get("/barbers/x/availability", params={"date": "2026-10-20", "service_id": "haircut"})

    assert resp.status_code == 200
    starts = resp.json()["available_starts"]
    assert starts[0] == "09:00"
    assert starts[-1] == "17:30"

    book(client, client_headers(client))
    starts = client.get("/barbers/x/availability", params={"date": "2026-10-20"}).json()["available_starts"]
    assert "10:00" not in starts


def test_full_booking_flow(client):
    ana = client_headers(client)
    xavier = barber_headers(client, "xavier")

    resp = book(client, ana, observations="beard too")
    assert resp.status_code == 201
    appt = resp.json()
    assert appt["status"] == "pending"
    assert appt["customer_name"] == "Ana"

    agenda = client.get("/barbers/me/appointments", headers=xavier).json()
    assert [a["id"] for a in agenda] == [appt["id"]]

    resp = client.patch(f"/appointments/{appt['id']}/status", json={"status": "confirmed"}, headers=xavier)
    assert resp.json()["status"] == "confirmed"
    resp = client.patch(
        f"/appointments/{appt['id']}/status",
        json={"status": "completed", "products_revenue": "5"},
        headers=xavier,
    )
    assert resp.status_code == 200
    assert resp.json()["status"] == "completed"

    loyalty = client.get("/clients/me/loyalty", headers=ana).json()
    assert loyalty["points"] == 1
    assert loyalty["total_completed_appointments"] == 1

    history = client.get("/clients/me/appointments", headers=ana).json()
    assert history[0]["status"] == "completed"


def test_errors_are_distinguishable(client):
    assert book(client, client_headers(client)).status_code == 201

    lost = book(client, client_headers(client, "+351900000001", "Bea"))
    assert lost.status_code == 409
    assert lost.json()["code"] == "slot_conflict"

    broke = book(client, client_headers(client, "+351900000002", "Caio"), when="2026-10-20T11:00:00",
                 use_loyalty_points=True)
    assert broke.status_code == 400
    assert broke.json()["code"] == "insufficient_balance"

    off_grid = book(client, client_headers(client), when="2026-10-20T11:10:00")
    assert off_grid.status_code == 422
    assert off_grid.json()["code"] == "validation_error"


def test_redeem_and_cancel_refunds(client, give_points):
    give_points("+351912345678", 10)
    ana = client_headers(client)

    appt = book(client, ana, service_id="fade", use_loyalty_points=True).json()
    assert Decimal(appt["discount_applied"]) == Decimal("20")
    assert client.get("/clients/me/loyalty", headers=ana).json()["points"] == 0

    # clients may cancel, but not confirm
    resp = client.patch(f"/appointments/{appt['id']}/status", json={"status": "confirmed"}, headers=ana)
    assert resp.status_code == 403
    resp = client.patch(f"/appointments/{appt['id']}/status", json={"status": "cancelled"}, headers=ana)
    assert resp.json()["status"] == "cancelled"
    assert client.get("/clients/me/loyalty", headers=ana).json()["points"] == 10


def test_clients_only_see_their_own_appointments(client):
    appt = book(client, client_headers(client)).json()
    other = client_headers(client, "+351900000009", "Duda")

    assert client.get(f"/appointments/{appt['id']}", headers=other).status_code == 403
    assert client.get("/appointments/missing", headers=other).status_code == 404


def test_walk_in_and_transfer(client):
    xavier = barber_headers(client, "xavier")
    boss = barber_headers(client, "boss")

    resp = client.post(
        "/appointments/walk-in",
        json={"customer_name": "Eva", "customer_phone": "+351900000010", "service_id": "haircut",
              "scheduled_at": SLOT},
        headers=xavier,
    )
    assert resp.status_code == 201
    walk_in = resp.json()
    assert walk_in["status"] == "confirmed"
    assert walk_in["booked_by"] == "staff"

    # non-admins cannot book on someone else's chair
    resp = client.post(
        "/appointments/walk-in",
        json={"customer_name": "Eva", "service_id": "haircut", "barber_id": "y", "scheduled_at": SLOT},
        headers=xavier,
    )
    assert resp.status_code == 403

    resp = client.patch(f"/appointments/{walk_in['id']}/barber", json={"barber_id": "y"}, headers=boss)
    assert resp.status_code == 200
    assert resp.json()["barber_id"] == "y"


def test_messages(client):
    ana = client_headers(client)
    xavier = barber_headers(client, "xavier")
    appt = book(client, ana).json()

    client.post(f"/appointments/{appt['id']}/messages", json={"text": "Running 5 min late"}, headers=ana)
    resp = client.post(f"/appointments/{appt['id']}/messages", json={"text": "No problem"}, headers=xavier)

    assert resp.status_code == 201
    assert [(m["sender"], m["text"]) for m in resp.json()["messages"]] == [
        ("Ana", "Running 5 min late"),
        ("Xavier", "No problem"),
    ]


def test_revenue_is_scoped_for_staff(client, put_appointments):
    put_appointments(
        make_appointment("x", when=at(TODAY, "09:00"), products_revenue=Decimal("5")),
        make_appointment("y", when=at(TODAY, "09:00")),
    )
    boss = barber_headers(client, "boss")
    xavier = barber_headers(client, "xavier")

    team = client.get("/revenue", headers=boss).json()
    assert Decimal(team["total"]) == Decimal("45")
    assert len(team["buckets"]) == 14

    only_y = client.get("/revenue", params={"barber": "y"}, headers=boss).json()
    assert Decimal(only_y["total"]) == Decimal("20")

    mine = client.get("/revenue", params={"barber": "y"}, headers=xavier).json()
    assert mine["barber_id"] == "x"
    assert Decimal(mine["total"]) == Decimal("25")

    annual = client.get("/revenue", params={"window": "annual"}, headers=xavier).json()
    assert len(annual["buckets"]) == 12

    summary = client.get("/revenue/summary", headers=xavier).json()
    assert Decimal(summary["month_to_date"]) == Decimal("25")
    assert Decimal(summary["products_month_to_date"]) == Decimal("5")

    assert client.get("/revenue", headers=client_headers(client)).status_code == 403


def test_admin_only_catalog_changes(client):
    xavier = barber_headers(client, "xavier")
    boss = barber_headers(client, "boss")
    body = {"name": "Kids Cut", "price": "15.00", "duration_minutes": 20}

    assert client.post("/services", json=body, headers=xavier).status_code == 403
    created = client.post("/services", json=body, headers=boss)
    assert created.status_code == 201
    assert created.json()["name"] == "Kids Cut"
    assert len(client.get("/services").json()) == 4

    resp = client.post(
        "/barbers",
        json={"name": "Zeca", "username": "zeca", "password": "longenough"},
        headers=boss,
    )
    assert resp.status_code == 201
    assert "password_hash" not in resp.json()
    assert len(resp.json()["assigned_services"]) == 4

    resp = client.put(
        "/config",
        json={"open_time": "10:00", "close_time": "19:00", "slot_interval_minutes": 15, "monthly_goal": "5000"},
        headers=boss,
    )
    assert resp.status_code == 200
    assert client.get("/config").json()["slot_interval_minutes"] == 15


def test_barber_sets_own_goal(client):
    xavier = barber_headers(client, "xavier")

    resp = client.put("/barbers/me/goal", json={"monthly_goal": "1500"}, headers=xavier)

    assert resp.status_code == 200
    summary = client.get("/revenue/summary", headers=xavier).json()
    assert Decimal(summary["monthly_goal"]) == Decimal("1500")


def test_event_feed_is_filtered_per_viewer(client):
    ana = client_headers(client)
    book(client, ana)
    book(client, client_headers(client, "+351900000011", "Fabi"), when="2026-10-20T11:00:00")

    feed = client.get("/events", headers=ana).json()
    assert [e["kind"] for e in feed["events"]] == ["booking_created"]
    assert feed["events"][0]["payload"]["appointment"]["customer_identity"] == "+351912345678"

    boss_feed = client.get("/events", headers=barber_headers(client, "boss")).json()
    assert len(boss_feed["events"]) == 2
    later = client.get("/events", params={"after": boss_feed["last_seq"]}, headers=ana).json()
    assert later["events"] == []
