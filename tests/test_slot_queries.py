import pytest

from models.slot import SlotStatus
from services.booking_engine import BookingEngine
from services.slot_queries import SlotQueries

from conftest import ALICE, BOB


@pytest.fixture()
def queries(seeded_store):
    return SlotQueries(seeded_store)


def test_available_excludes_booked_and_reflects_latest_state(queries):
    engine = BookingEngine(queries.store)
    assert len(queries.list_available()) == 4

    engine.book("slot-2", ALICE)
    available = queries.list_available()
    assert "slot-2" not in [s.id for s in available]
    assert all(s.status is SlotStatus.AVAILABLE for s in available)

    engine.cancel("slot-2", ALICE)
    assert "slot-2" in [s.id for s in queries.list_available()]


def test_available_filters(queries):
    assert [s.id for s in queries.list_available(date="2030-01-01")] == ["slot-3", "slot-4", "slot-2"]
    assert [s.id for s in queries.list_available(court="Court 2")] == ["slot-2"]
    assert [s.id for s in queries.list_available(date="2030-01-02", court="Court 1")] == ["slot-1"]
    assert queries.list_available(date="1999-01-01") == []


def test_owned_by_is_exactly_the_users_booked_slots(queries):
    engine = BookingEngine(queries.store)
    engine.book("slot-1", ALICE)
    engine.book("slot-4", ALICE)
    engine.book("slot-3", BOB)

    assert [s.id for s in queries.list_owned_by(ALICE)] == ["slot-4", "slot-1"]
    assert [s.id for s in queries.list_owned_by(BOB)] == ["slot-3"]

    engine.cancel("slot-1", ALICE)
    assert [s.id for s in queries.list_owned_by(ALICE)] == ["slot-4"]
