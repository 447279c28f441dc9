from flask import current_app

from services.booking_engine import BookingEngine
from services.slot_queries import SlotQueries
from services.slot_store import SlotStore, build_slot_store

EXTENSION_KEY = "slot_store"


def init_app(app, store: SlotStore = None):
    """Attach one store instance to the app; the in-memory backend must be shared across requests."""
    if store is None:
        store = build_slot_store(app.config.get("SLOT_STORE_BACKEND", "sql"))
    app.extensions[EXTENSION_KEY] = store
    return store


def get_slot_store() -> SlotStore:
    return current_app.extensions[EXTENSION_KEY]


def get_booking_engine() -> BookingEngine:
    return BookingEngine(get_slot_store())


def get_slot_queries() -> SlotQueries:
    return SlotQueries(get_slot_store())
