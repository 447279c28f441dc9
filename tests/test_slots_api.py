import pytest
from sqlalchemy import text

import services
from app import create_app
from models import db
from models.audit_log import AuditLog

from conftest import TEST_CONFIG, auth_headers, make_slot, signup


@pytest.fixture()
def slots(app):
    services.get_slot_store().insert_many([
        make_slot("S", date="2030-01-01", time="18:00"),
        make_slot("T", date="2030-01-01", time="06:00", court="Court 2", price=1200),
        make_slot("U", date="2030-01-02", time="06:00"),
    ])


@pytest.fixture()
def alice(client):
    return signup(client, "alice")


@pytest.fixture()
def bob(client):
    return signup(client, "bob")


def _actions():
    return [row.action for row in AuditLog.query.order_by(AuditLog.id.asc()).all()]


def test_health(client):
    r = client.get("/api/health")
    assert r.status_code == 200
    assert r.get_json()["status"] == "ok"
    assert r.headers["X-Content-Type-Options"] == "nosniff"


def test_list_available_is_public_and_sorted(client, slots):
    r = client.get("/api/slots")
    assert r.status_code == 200
    data = r.get_json()
    assert [s["id"] for s in data] == ["T", "S", "U"]
    assert data[0] == {
        "id": "T",
        "date": "2030-01-01",
        "time": "06:00",
        "court": "Court 2",
        "price": 1200,
        "duration": "1 hour",
        "status": "AVAILABLE",
        "booked": False,
        "booked_by": None,
        "booked_at": None,
    }


def test_list_available_filters(client, slots):
    r = client.get("/api/slots?date=2030-01-02")
    assert [s["id"] for s in r.get_json()] == ["U"]
    r = client.get("/api/slots?court=Court%202")
    assert [s["id"] for s in r.get_json()] == ["T"]


@pytest.mark.parametrize("method,path", [
    ("post", "/api/slots/book"),
    ("post", "/api/slots/S/book"),
    ("delete", "/api/slots/cancel/S"),
    ("get", "/api/slots/mine"),
])
def test_protected_endpoints_need_a_token(client, slots, method, path):
    r = getattr(client, method)(path, json={"slotId": "S"})
    assert r.status_code == 401
    assert r.get_json()["code"] == "UNAUTHENTICATED"

    r = getattr(client, method)(path, json={"slotId": "S"}, headers=auth_headers("bogus"))
    assert r.status_code == 401
    assert r.get_json()["error"] == "Invalid token"

    # nothing was booked by the rejected calls
    assert len(client.get("/api/slots").get_json()) == 3


def test_book_success(client, slots, alice):
    r = client.post("/api/slots/book", json={"slotId": "S"}, headers=auth_headers(alice["token"]))
    assert r.status_code == 200
    body = r.get_json()
    assert body["message"] == "Slot booked successfully"
    assert body["slot"]["status"] == "BOOKED"
    assert body["slot"]["booked"] is True
    assert body["slot"]["booked_by"] == alice["user"]["id"]
    assert body["slot"]["booked_at"] is not None
    assert body["slot"]["owner"] == {
        "id": alice["user"]["id"],
        "username": "alice",
        "email": "alice@example.com",
        "first_name": "Alice",
        "last_name": "Tester",
    }

    assert "S" not in [s["id"] for s in client.get("/api/slots").get_json()]
    assert "BOOKING_CREATE" in _actions()


def test_book_accepts_snake_case_and_path_forms(client, slots, alice):
    h = auth_headers(alice["token"])
    assert client.post("/api/slots/book", json={"slot_id": "S"}, headers=h).status_code == 200
    assert client.post("/api/slots/T/book", headers=h).status_code == 200
    mine = client.get("/api/slots/mine", headers=h).get_json()
    assert [s["id"] for s in mine] == ["T", "S"]


def test_book_requires_slot_id(client, slots, alice):
    r = client.post("/api/slots/book", json={}, headers=auth_headers(alice["token"]))
    assert r.status_code == 400
    assert r.get_json()["error"] == "Slot ID is required"


def test_book_unknown_slot(client, slots, alice):
    r = client.post("/api/slots/book", json={"slotId": "nope"}, headers=auth_headers(alice["token"]))
    assert r.status_code == 404
    assert r.get_json()["code"] == "SLOT_NOT_FOUND"


def test_http_scenario(client, slots, alice, bob):
    a, b = auth_headers(alice["token"]), auth_headers(bob["token"])

    assert client.post("/api/slots/book", json={"slotId": "S"}, headers=a).status_code == 200

    r = client.post("/api/slots/book", json={"slotId": "S"}, headers=b)
    assert r.status_code == 409
    assert r.get_json()["code"] == "ALREADY_BOOKED"

    r = client.delete("/api/slots/cancel/S", headers=b)
    assert r.status_code == 403
    assert r.get_json()["code"] == "FORBIDDEN"
    assert [s["id"] for s in client.get("/api/slots/mine", headers=a).get_json()] == ["S"]

    r = client.delete("/api/slots/cancel/S", headers=a)
    assert r.status_code == 200
    assert r.get_json()["message"] == "Booking cancelled successfully"

    r = client.delete("/api/slots/cancel/S", headers=a)
    assert r.status_code == 409
    assert r.get_json()["code"] == "NOT_BOOKED"

    assert "S" in [s["id"] for s in client.get("/api/slots").get_json()]
    assert client.get("/api/slots/mine", headers=a).get_json() == []

    actions = _actions()
    for action in ("BOOKING_CREATE", "BOOKING_FAIL_ALREADY_BOOKED", "BOOKING_CANCEL_DENIED", "BOOKING_CANCEL"):
        assert action in actions


def test_cancel_unknown_slot(client, slots, alice):
    r = client.delete("/api/slots/cancel/nope", headers=auth_headers(alice["token"]))
    assert r.status_code == 404


def test_memory_backend_serves_the_same_api():
    app = create_app(dict(TEST_CONFIG, SLOT_STORE_BACKEND="memory"))
    with app.app_context():
        db.create_all()
        services.get_slot_store().insert_many([make_slot("S")])
        client = app.test_client()
        alice = signup(client, "alice")
        h = auth_headers(alice["token"])

        assert client.post("/api/slots/S/book", headers=h).status_code == 200
        assert client.get("/api/slots").get_json() == []
        assert client.delete("/api/slots/cancel/S", headers=h).status_code == 200
        assert [s["id"] for s in client.get("/api/slots").get_json()] == ["S"]
        db.drop_all()


def test_store_outage_is_503(client, slots, alice, monkeypatch):
    from services.errors import StoreUnavailable

    def down(*args, **kwargs):
        raise StoreUnavailable()

    monkeypatch.setattr(services.get_slot_store(), "try_transition", down)
    r = client.post("/api/slots/book", json={"slotId": "S"}, headers=auth_headers(alice["token"]))
    assert r.status_code == 503
    assert r.get_json()["code"] == "STORE_UNAVAILABLE"


def test_list_available_without_store_is_503(client, slots):
    db.session.execute(text("DROP TABLE slots"))
    db.session.commit()

    r = client.get("/api/slots")
    assert r.status_code == 503
    assert r.get_json()["code"] == "STORE_UNAVAILABLE"


def test_book_and_cancel_without_store_are_503(client, slots, alice):
    h = auth_headers(alice["token"])
    db.session.execute(text("DROP TABLE slots"))
    db.session.commit()

    r = client.post("/api/slots/book", json={"slotId": "S"}, headers=h)
    assert r.status_code == 503
    assert r.get_json() == {"error": "Booking storage unavailable, try again later", "code": "STORE_UNAVAILABLE"}

    r = client.delete("/api/slots/cancel/S", headers=h)
    assert r.status_code == 503
    assert r.get_json()["code"] == "STORE_UNAVAILABLE"

    # routes that do not touch slots keep working
    assert client.get("/api/health").status_code == 200
