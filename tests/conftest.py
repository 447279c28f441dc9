import pytest

from app import create_app
from models import db
from services.slot_store import InMemorySlotStore, SlotRecord, SqlSlotStore

TEST_CONFIG = {
    "TESTING": True,
    "SQLALCHEMY_DATABASE_URI": "sqlite:///:memory:",
    "SEED_SLOTS_ON_STARTUP": False,
    "BCRYPT_ROUNDS": 4,  # fast hashes for tests
}

ALICE = 1
BOB = 2


def make_slot(slot_id="slot-1", date="2030-01-01", time="18:00", court="Court 1", **extra):
    return SlotRecord(id=slot_id, date=date, time=time, court=court, **extra)


def assert_consistent(slot):
    booked = slot.status.value == "BOOKED"
    assert (slot.booked_by is not None) == booked
    assert (slot.booked_at is not None) == booked


@pytest.fixture()
def app():
    app = create_app(TEST_CONFIG)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture(params=["sql", "memory"])
def store(request, app):
    """Both store implementations behind the same contract."""
    if request.param == "sql":
        return SqlSlotStore()
    return InMemorySlotStore()


@pytest.fixture()
def seeded_store(store):
    store.insert_many([
        make_slot("slot-1", date="2030-01-02", time="07:00"),
        make_slot("slot-2", date="2030-01-01", time="18:00", court="Court 2"),
        make_slot("slot-3", date="2030-01-01", time="06:00"),
        make_slot("slot-4", date="2030-01-01", time="18:00", court="Court 1"),
    ])
    return store


def signup(client, username="alice", email=None, password="secret123"):
    r = client.post("/api/auth/signup", json={
        "username": username,
        "email": email or f"{username}@example.com",
        "password": password,
        "first_name": username.capitalize(),
        "last_name": "Tester",
    })
    assert r.status_code == 201, r.get_json()
    return r.get_json()


def auth_headers(token):
    return {"Authorization": f"Bearer {token}"}
